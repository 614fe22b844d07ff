"""
Routing strategy selection.

A Router stores three independent boolean toggles. ``select_strategy``
collapses them into exactly one variant using the fixed precedence
single model > classification > sentence matching, so overlapping flags
never reach the decision engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from promptrouter.policy.models import Category, NoMatchPolicy, Router, Sentence


class StrategyKind(str, Enum):
    SINGLE_MODEL = "single_model"
    CLASSIFICATION = "classification"
    SENTENCE_MATCHING = "sentence_matching"
    NONE = "none"


@dataclass(frozen=True)
class SingleModelStrategy:
    kind: ClassVar[StrategyKind] = StrategyKind.SINGLE_MODEL

    model_id: str | None


@dataclass(frozen=True)
class ClassificationStrategy:
    kind: ClassVar[StrategyKind] = StrategyKind.CLASSIFICATION

    categories: tuple[Category, ...]

    @property
    def labels(self) -> list[str]:
        return [category.label for category in self.categories]

    def find_category(self, label: str) -> Category | None:
        return next((c for c in self.categories if c.label == label), None)


@dataclass(frozen=True)
class SentenceMatchingStrategy:
    kind: ClassVar[StrategyKind] = StrategyKind.SENTENCE_MATCHING

    sentences: tuple[Sentence, ...]
    on_no_match: NoMatchPolicy = NoMatchPolicy.RETURN_BEST_EFFORT


@dataclass(frozen=True)
class NoStrategy:
    kind: ClassVar[StrategyKind] = StrategyKind.NONE


RoutingStrategy = SingleModelStrategy | ClassificationStrategy | SentenceMatchingStrategy | NoStrategy


def select_strategy(router: Router) -> RoutingStrategy:
    """Resolve a router's toggles to the single strategy that applies"""
    if router.use_single_model:
        return SingleModelStrategy(router.model_id)
    if router.use_prompt_classification:
        return ClassificationStrategy(tuple(router.categories))
    if router.use_sentence_matching:
        return SentenceMatchingStrategy(tuple(router.sentences), router.on_no_match)
    return NoStrategy()
