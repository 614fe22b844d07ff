"""
Routing Decision Engine
=======================

Resolves a prompt to one of an organization's models under a Router policy.

Decision flow (single pass, nothing persisted):
1. Resolve the router; missing -> NotFound, inactive/deleted -> ValidationError
2. Single model: return the router's model without looking at the prompt
3. Length gate: 1 <= len(prompt) <= max_prompt_length
4. Classification: zero-shot score the category labels, first strict maximum wins
5. Sentence matching: walk sentences in order (exact, then cosine similarity)
6. Nothing fired: ValidationError ``prompt.not.processed``

Organization data may change while inference runs, so model references are
re-resolved against a refreshed view after every inference call.
"""

from promptrouter.core.exceptions import NotFoundError, ValidationError
from promptrouter.core.structured_logger import get_logger
from promptrouter.inference.classification import ClassificationEngine, select_best_label
from promptrouter.inference.similarity import SimilarityEngine, is_similar
from promptrouter.inference.worker import CancellationToken
from promptrouter.policy.models import NoMatchPolicy, Router
from promptrouter.policy.view import RoutingPolicyView

from .results import (
    ClassificationResult,
    ExactSentenceMatchResult,
    RoutingResult,
    SimilaritySentenceMatchResult,
    SingleModelResult,
)
from .strategy import (
    ClassificationStrategy,
    SentenceMatchingStrategy,
    SingleModelStrategy,
    select_strategy,
)

logger = get_logger("RoutingDecisionEngine")


class RoutingDecisionEngine:
    """
    Stateless per call: the only shared state lives inside the two engines'
    inference workers.
    """

    def __init__(self, classifier: ClassificationEngine, similarity: SimilarityEngine):
        self.classifier = classifier
        self.similarity = similarity

    async def route(
        self,
        view: RoutingPolicyView,
        router_id: str,
        prompt: str,
        cancel_token: CancellationToken | None = None,
    ) -> RoutingResult:
        """
        Decide which model should serve ``prompt``.

        Raises:
            NotFoundError: Router, category or model missing
            ValidationError: Router unavailable, prompt length, or policy cannot route
            InferenceError: A classification or similarity call failed
            RoutingCancelledError: ``cancel_token`` fired before an inference call
        """
        router = view.find_router(router_id)
        if router is None:
            raise NotFoundError("router", router_id)
        if not router.usable:
            raise ValidationError(f"Router '{router_id}' is inactive or deleted", reason="router.unavailable")

        strategy = select_strategy(router)
        logger.debug(
            "Routing strategy selected",
            org_id=view.organization_id,
            router_id=router_id,
            strategy=strategy.kind.value,
        )

        if isinstance(strategy, SingleModelStrategy):
            model = view.require_model(strategy.model_id)
            return SingleModelResult(model, prompt, len(prompt))

        self._check_prompt_length(router, prompt)

        if isinstance(strategy, ClassificationStrategy):
            return await self._route_by_classification(view, strategy, prompt, cancel_token)
        if isinstance(strategy, SentenceMatchingStrategy):
            return await self._route_by_sentences(view, strategy, prompt, cancel_token)

        raise ValidationError("Prompt not processed: no routing method enabled", reason="prompt.not.processed")

    @staticmethod
    def _check_prompt_length(router: Router, prompt: str) -> None:
        size = len(prompt)
        if size < 1 or size > router.max_prompt_length:
            raise ValidationError(
                f"Prompt length {size} outside 1..{router.max_prompt_length}",
                reason="prompt.length.invalid",
                details={"prompt_size": size, "max_prompt_length": router.max_prompt_length},
            )

    async def _route_by_classification(
        self,
        view: RoutingPolicyView,
        strategy: ClassificationStrategy,
        prompt: str,
        cancel_token: CancellationToken | None,
    ) -> RoutingResult:
        if not strategy.categories:
            raise ValidationError("Router has no classification categories", reason="router.categories.empty")

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        scores = await self.classifier.aclassify(prompt, strategy.labels, cancel_token)

        best = select_best_label(scores)
        if best is None:
            raise NotFoundError("category", details={"labels": strategy.labels})
        category = strategy.find_category(best.label)
        if category is None:
            raise NotFoundError("category", best.label)

        await view.refresh()
        model = view.require_model(category.model_id)
        logger.debug("Prompt classified", label=best.label, score=best.score, model_id=model.id)
        return ClassificationResult(model, prompt, len(prompt), label=best.label, score=best.score)

    async def _route_by_sentences(
        self,
        view: RoutingPolicyView,
        strategy: SentenceMatchingStrategy,
        prompt: str,
        cancel_token: CancellationToken | None,
    ) -> RoutingResult:
        last_index = len(strategy.sentences) - 1
        lowered_prompt = prompt.lower()

        for index, sentence in enumerate(strategy.sentences):
            model = view.require_model(sentence.model_id)

            if sentence.exact and sentence.text.lower() == lowered_prompt:
                return ExactSentenceMatchResult(model, prompt, len(prompt))

            if sentence.use_cosine_similarity:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                score = await self.similarity.asimilarity(sentence.text, prompt, cancel_token)

                await view.refresh()
                model = view.require_model(sentence.model_id)
                temperature = sentence.cosine_similarity_temperature

                if is_similar(score, temperature):
                    return SimilaritySentenceMatchResult(
                        model, prompt, len(prompt),
                        score=score, temperature=temperature, appropriate_match=True,
                    )
                if index == last_index:
                    if strategy.on_no_match is NoMatchPolicy.ERROR:
                        raise ValidationError(
                            "No sentence matched the prompt",
                            reason="sentence.no.match",
                            details={"temperature": temperature},
                        )
                    logger.info("Returning last sentence candidate below threshold", index=index, model_id=model.id)
                    return SimilaritySentenceMatchResult(
                        model, prompt, len(prompt),
                        score=score, temperature=temperature, appropriate_match=False,
                    )
                continue

            if not sentence.exact:
                raise ValidationError(
                    f"Sentence {index} has no match method enabled",
                    reason="sentence.no.match.method",
                    details={"index": index},
                )

        raise ValidationError("Prompt not processed: no sentence matched", reason="prompt.not.processed")
