"""
Routing results.

Every successful decision is one of four frozen variants. All carry the
resolved model plus the prompt and its size; ``to_dict`` renders the JSON
payload returned to callers.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from promptrouter.policy.models import ModelObject


class RoutingResultKind(str, Enum):
    SINGLE_MODEL = "single_model"
    CLASSIFICATION = "classification"
    EXACT_SENTENCE_MATCH = "exact_sentence_match"
    SIMILARITY_SENTENCE_MATCH = "similarity_sentence_match"


def _json_score(score: float) -> float | None:
    return score if math.isfinite(score) else None


@dataclass(frozen=True)
class RoutingResult:
    kind: ClassVar[RoutingResultKind]

    model: ModelObject
    prompt: str
    prompt_size: int

    def _extra(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "model": self.model.model_dump(mode="json"),
            **self._extra(),
            "prompt": self.prompt,
            "prompt_size": self.prompt_size,
        }


@dataclass(frozen=True)
class SingleModelResult(RoutingResult):
    kind: ClassVar[RoutingResultKind] = RoutingResultKind.SINGLE_MODEL


@dataclass(frozen=True)
class ClassificationResult(RoutingResult):
    kind: ClassVar[RoutingResultKind] = RoutingResultKind.CLASSIFICATION

    label: str
    score: float

    def _extra(self) -> dict[str, Any]:
        return {"label": self.label, "score": _json_score(self.score)}


@dataclass(frozen=True)
class ExactSentenceMatchResult(RoutingResult):
    kind: ClassVar[RoutingResultKind] = RoutingResultKind.EXACT_SENTENCE_MATCH


@dataclass(frozen=True)
class SimilaritySentenceMatchResult(RoutingResult):
    kind: ClassVar[RoutingResultKind] = RoutingResultKind.SIMILARITY_SENTENCE_MATCH

    score: float
    temperature: float
    appropriate_match: bool

    def _extra(self) -> dict[str, Any]:
        return {
            "score": _json_score(self.score),
            "temperature": self.temperature,
            "appropriate_match": self.appropriate_match,
        }
