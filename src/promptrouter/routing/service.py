"""
Prompt Routing Service
======================

The ``RouteLLMPrompt`` operation: validate the request, load the
organization, authorize the access token, then run one routing decision
under a deadline.

Every call runs inside its own TraceContext so the access gate, the
decision engine and the inference workers all log under one trace id.
"""

import asyncio
import time

from promptrouter.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PromptRouterError,
    RoutingTimeoutError,
    ValidationError,
)
from promptrouter.core.structured_logger import TraceContext, get_logger
from promptrouter.inference.worker import CancellationToken
from promptrouter.observability.metrics import MetricsCollector
from promptrouter.persistence.repositories import OrganizationRepository
from promptrouter.policy.view import RoutingPolicyView
from promptrouter.security.access_gate import PROMPT_ROUTING_SCOPES, AccessGate

from .decision_engine import RoutingDecisionEngine
from .results import RoutingResult, SimilaritySentenceMatchResult

logger = get_logger("PromptRoutingService")


class PromptRoutingService:
    """Entry point used by the HTTP boundary and the CLI"""

    def __init__(
        self,
        repository: OrganizationRepository,
        engine: RoutingDecisionEngine,
        gate: AccessGate | None = None,
        metrics: MetricsCollector | None = None,
        decision_timeout: float | None = 10.0,
    ):
        self.repository = repository
        self.engine = engine
        self.gate = gate or AccessGate()
        self.metrics = metrics
        self.decision_timeout = decision_timeout

    async def route_llm_prompt(
        self,
        org_id: str | None,
        router_id: str | None,
        access_token: str | None,
        prompt: str | None,
    ) -> RoutingResult:
        """
        Route ``prompt`` with the organization's router ``router_id``.

        Raises:
            ValidationError: Missing ids or prompt, or the policy cannot route the prompt
            AuthorizationError: Missing, unknown or under-scoped access token
            NotFoundError: Organization, router, category or model absent
            InferenceError: A model call failed
            RoutingTimeoutError: The decision exceeded ``decision_timeout``
        """
        with TraceContext():
            started = time.perf_counter()
            try:
                result = await self._route(org_id, router_id, access_token, prompt)
            except PromptRouterError as exc:
                duration = time.perf_counter() - started
                if self.metrics:
                    self.metrics.record_error(type(exc).__name__, duration)
                logger.warning(
                    "Routing failed",
                    org_id=org_id,
                    router_id=router_id,
                    reason=exc.reason,
                    error_code=int(exc.error_code),
                    duration_ms=round(duration * 1000, 2),
                )
                raise

            duration = time.perf_counter() - started
            outcome = "routed"
            if isinstance(result, SimilaritySentenceMatchResult) and not result.appropriate_match:
                outcome = "best_effort"
            if self.metrics:
                self.metrics.record_decision(result.kind.value, outcome, duration)
            logger.info(
                "Prompt routed",
                org_id=org_id,
                router_id=router_id,
                result=result.kind.value,
                outcome=outcome,
                model_id=result.model.id,
                prompt_size=result.prompt_size,
                duration_ms=round(duration * 1000, 2),
            )
            return result

    async def _route(
        self,
        org_id: str | None,
        router_id: str | None,
        access_token: str | None,
        prompt: str | None,
    ) -> RoutingResult:
        if not org_id:
            raise ValidationError("Organization id is required", reason="organization.id.required")
        if not router_id:
            raise ValidationError("Router id is required", reason="router.id.required")
        if prompt is None:
            raise ValidationError("Prompt is required", reason="prompt.required")
        if not access_token:
            raise AuthorizationError("Missing access token", reason="unauthorized")

        organization = await self.repository.find_organization(org_id)
        if organization is None or organization.deleted:
            raise NotFoundError("organization", org_id)

        self.gate.authorize(organization, access_token, PROMPT_ROUTING_SCOPES)

        view = RoutingPolicyView(organization, reload=lambda: self.repository.find_organization(org_id))
        cancel_token = CancellationToken()
        decision = self.engine.route(view, router_id, prompt, cancel_token)
        try:
            if self.decision_timeout is None:
                return await decision
            return await asyncio.wait_for(decision, timeout=self.decision_timeout)
        except TimeoutError:
            cancel_token.cancel()
            raise RoutingTimeoutError(self.decision_timeout) from None
        except asyncio.CancelledError:
            cancel_token.cancel()
            raise
