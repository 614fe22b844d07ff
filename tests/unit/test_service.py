"""
Unit tests for PromptRoutingService: request validation, organization
lookup, authorization, metrics and the decision deadline.
"""

import asyncio

import pytest
from prometheus_client import CollectorRegistry

from promptrouter.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    RoutingTimeoutError,
    ValidationError,
)
from promptrouter.observability import MetricsCollector
from promptrouter.policy import Category, Router, Sentence
from promptrouter.routing import (
    ClassificationResult,
    PromptRoutingService,
    SimilaritySentenceMatchResult,
    SingleModelResult,
)
from tests.fakes import ADMIN_TOKEN, MODELS_TOKEN, ROUTE_TOKEN, make_organization, seeded_repository


class StallingEngine:
    """Decision engine that never finishes on its own"""

    def __init__(self):
        self.cancel_token = None

    async def route(self, view, router_id, prompt, cancel_token=None):
        self.cancel_token = cancel_token
        await asyncio.sleep(30)


@pytest.fixture
def metrics():
    return MetricsCollector(registry=CollectorRegistry())


def routers():
    return (
        Router(id="r-single", use_single_model=True, model_id="m-a"),
        Router(
            id="r-cls",
            use_prompt_classification=True,
            categories=[Category(label="math", model_id="m-b"), Category(label="chat", model_id="m-c")],
        ),
        Router(
            id="r-sent",
            use_sentence_matching=True,
            sentences=[
                Sentence(text="zzzz", use_cosine_similarity=True, cosine_similarity_temperature=0.99, model_id="m-c")
            ],
        ),
    )


async def build_service(engine, metrics=None, **kwargs):
    repository = await seeded_repository(make_organization(*routers(), **kwargs))
    return PromptRoutingService(repository, engine, metrics=metrics, decision_timeout=5.0)


class TestRequestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "org_id,router_id,prompt,reason",
        [
            (None, "r-single", "hi", "organization.id.required"),
            ("", "r-single", "hi", "organization.id.required"),
            ("org-1", None, "hi", "router.id.required"),
            ("org-1", "", "hi", "router.id.required"),
            ("org-1", "r-single", None, "prompt.required"),
        ],
    )
    async def test_missing_fields(self, decision_engine, metrics, org_id, router_id, prompt, reason):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(ValidationError) as exc_info:
            await service.route_llm_prompt(org_id, router_id, ROUTE_TOKEN, prompt)
        assert exc_info.value.reason == reason

    @pytest.mark.asyncio
    async def test_missing_token(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(AuthorizationError) as exc_info:
            await service.route_llm_prompt("org-1", "r-single", None, "hi")
        assert exc_info.value.reason == "unauthorized"


class TestOrganizationAndAuthorization:
    @pytest.mark.asyncio
    async def test_unknown_organization(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(NotFoundError) as exc_info:
            await service.route_llm_prompt("org-missing", "r-single", ROUTE_TOKEN, "hi")
        assert exc_info.value.reason == "organization.not.found"

    @pytest.mark.asyncio
    async def test_deleted_organization(self, decision_engine):
        service = await build_service(decision_engine, deleted=True)
        with pytest.raises(NotFoundError):
            await service.route_llm_prompt("org-1", "r-single", ROUTE_TOKEN, "hi")

    @pytest.mark.asyncio
    async def test_insufficient_scope(self, decision_engine, metrics, fake_pipeline):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(AuthorizationError) as exc_info:
            await service.route_llm_prompt("org-1", "r-cls", MODELS_TOKEN, "hi")
        assert exc_info.value.reason == "unauthorized.access.token.scopes"
        assert fake_pipeline.calls == []

    @pytest.mark.asyncio
    async def test_authorization_checked_before_router_lookup(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(AuthorizationError):
            await service.route_llm_prompt("org-1", "r-missing", "tok-bogus", "hi")

    @pytest.mark.asyncio
    async def test_admin_token_routes(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        result = await service.route_llm_prompt("org-1", "r-single", ADMIN_TOKEN, "hi")
        assert isinstance(result, SingleModelResult)


class TestRouting:
    @pytest.mark.asyncio
    async def test_single_model(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        result = await service.route_llm_prompt("org-1", "r-single", ROUTE_TOKEN, "hello")
        assert result.model.id == "m-a"
        assert result.prompt == "hello"
        assert result.prompt_size == 5

    @pytest.mark.asyncio
    async def test_classification(self, decision_engine, metrics, fake_pipeline):
        service = await build_service(decision_engine, metrics)
        fake_pipeline.scores = {"math": 0.2, "chat": 0.8}
        result = await service.route_llm_prompt("org-1", "r-cls", ROUTE_TOKEN, "how are you")
        assert isinstance(result, ClassificationResult)
        assert result.label == "chat"
        assert result.model.id == "m-c"

    @pytest.mark.asyncio
    async def test_missing_router(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(NotFoundError) as exc_info:
            await service.route_llm_prompt("org-1", "r-missing", ROUTE_TOKEN, "hi")
        assert exc_info.value.reason == "router.not.found"


class TestMetrics:
    @pytest.mark.asyncio
    async def test_success_recorded(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        await service.route_llm_prompt("org-1", "r-single", ROUTE_TOKEN, "hi")
        value = metrics.registry.get_sample_value(
            "promptrouter_routing_decisions_total",
            {"strategy": "single_model", "outcome": "routed"},
        )
        assert value == 1.0

    @pytest.mark.asyncio
    async def test_best_effort_outcome(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        result = await service.route_llm_prompt("org-1", "r-sent", ROUTE_TOKEN, "abc")
        assert isinstance(result, SimilaritySentenceMatchResult)
        assert result.appropriate_match is False
        value = metrics.registry.get_sample_value(
            "promptrouter_routing_decisions_total",
            {"strategy": "similarity_sentence_match", "outcome": "best_effort"},
        )
        assert value == 1.0

    @pytest.mark.asyncio
    async def test_error_recorded(self, decision_engine, metrics):
        service = await build_service(decision_engine, metrics)
        with pytest.raises(NotFoundError):
            await service.route_llm_prompt("org-1", "r-missing", ROUTE_TOKEN, "hi")
        value = metrics.registry.get_sample_value(
            "promptrouter_routing_errors_total", {"error_type": "NotFoundError"}
        )
        assert value == 1.0

    @pytest.mark.asyncio
    async def test_metrics_optional(self, decision_engine):
        service = await build_service(decision_engine)
        result = await service.route_llm_prompt("org-1", "r-single", ROUTE_TOKEN, "hi")
        assert result.model.id == "m-a"


class TestDeadline:
    @pytest.mark.asyncio
    async def test_timeout_raises_and_cancels_token(self):
        repository = await seeded_repository(make_organization(*routers()))
        engine = StallingEngine()
        service = PromptRoutingService(repository, engine, decision_timeout=0.05)

        with pytest.raises(RoutingTimeoutError) as exc_info:
            await service.route_llm_prompt("org-1", "r-single", ROUTE_TOKEN, "hi")

        assert exc_info.value.http_status == 504
        assert exc_info.value.reason == "routing.timeout"
        assert engine.cancel_token.cancelled

    @pytest.mark.asyncio
    async def test_caller_cancellation_cancels_token(self):
        repository = await seeded_repository(make_organization(*routers()))
        engine = StallingEngine()
        service = PromptRoutingService(repository, engine, decision_timeout=None)

        task = asyncio.create_task(service.route_llm_prompt("org-1", "r-single", ROUTE_TOKEN, "hi"))
        while engine.cancel_token is None:
            await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert engine.cancel_token.cancelled
