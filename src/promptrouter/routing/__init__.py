"""
Routing package: strategy selection, the decision engine, and the
RouteLLMPrompt service wrapping it.
"""

from .decision_engine import RoutingDecisionEngine
from .results import (
    ClassificationResult,
    ExactSentenceMatchResult,
    RoutingResult,
    RoutingResultKind,
    SimilaritySentenceMatchResult,
    SingleModelResult,
)
from .service import PromptRoutingService
from .strategy import (
    ClassificationStrategy,
    NoStrategy,
    RoutingStrategy,
    SentenceMatchingStrategy,
    SingleModelStrategy,
    StrategyKind,
    select_strategy,
)

__all__ = [
    "ClassificationResult",
    "ClassificationStrategy",
    "ExactSentenceMatchResult",
    "NoStrategy",
    "PromptRoutingService",
    "RoutingDecisionEngine",
    "RoutingResult",
    "RoutingResultKind",
    "RoutingStrategy",
    "select_strategy",
    "SentenceMatchingStrategy",
    "SimilaritySentenceMatchResult",
    "SingleModelResult",
    "SingleModelStrategy",
    "StrategyKind",
]
