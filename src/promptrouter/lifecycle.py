"""Lifecycle Management: bootstrap and graceful shutdown of the routing runtime."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from prometheus_client import CollectorRegistry

from promptrouter.config.settings import Settings, load_settings
from promptrouter.core.structured_logger import get_logger
from promptrouter.inference.classification import ClassificationEngine
from promptrouter.inference.similarity import SimilarityEngine
from promptrouter.observability.metrics import MetricsCollector
from promptrouter.persistence import InMemoryOrganizationRepository, OrganizationRepository
from promptrouter.routing.decision_engine import RoutingDecisionEngine
from promptrouter.routing.service import PromptRoutingService

logger = get_logger("Lifecycle")


@dataclass
class RuntimeContext:
    """DI container holding all initialized promptrouter components."""

    settings: Settings
    repository: OrganizationRepository
    classifier: ClassificationEngine
    similarity: SimilarityEngine
    metrics: MetricsCollector
    service: PromptRoutingService
    accepting_work: bool = True


class Runtime:
    """
    Runtime orchestrator. Builds the store, loads both models on their
    inference workers, and wires the routing service.

    Loaders, repository and metrics registry are injectable so tests can
    run the full stack without downloading models.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        settings: Settings | None = None,
        repository: OrganizationRepository | None = None,
        classification_loader: Callable[[], Any] | None = None,
        embedding_loader: Callable[[], Any] | None = None,
        metrics_registry: CollectorRegistry | None = None,
        shutdown_timeout: float = 30.0,
    ):
        self.config_path = config_path
        self._settings = settings
        self._repository = repository
        self._classification_loader = classification_loader
        self._embedding_loader = embedding_loader
        self._metrics_registry = metrics_registry
        self.shutdown_timeout = shutdown_timeout
        self.context: RuntimeContext | None = None
        self._initialized = False
        self._shutdown_in_progress = False

    async def bootstrap(self) -> RuntimeContext:
        """Bootstrap the application and return RuntimeContext."""
        if self._initialized:
            logger.warning("Runtime already initialized")
            return self.context

        logger.info("Bootstrapping promptrouter runtime")
        settings = self._settings or load_settings(self.config_path)

        repository = self._repository or InMemoryOrganizationRepository(
            validate_references=settings.store.validate_references
        )
        if settings.store.organizations_file and isinstance(repository, InMemoryOrganizationRepository):
            await repository.load_file(settings.store.organizations_file)

        metrics = MetricsCollector(registry=self._metrics_registry or CollectorRegistry())

        inference = settings.inference
        classifier = ClassificationEngine(
            model_name=inference.classification_model,
            device=inference.device,
            loader=self._classification_loader,
            hypothesis_template=inference.hypothesis_template,
            max_queue_size=inference.max_queue_size,
            on_complete=metrics.record_inference,
            on_queue_change=metrics.update_queue_depth,
        )
        similarity = SimilarityEngine(
            model_name=inference.embedding_model,
            device=inference.device,
            loader=self._embedding_loader,
            max_queue_size=inference.max_queue_size,
            on_complete=metrics.record_inference,
            on_queue_change=metrics.update_queue_depth,
        )
        await self._start_engines([classifier, similarity], inference.load_timeout_seconds)

        service = PromptRoutingService(
            repository=repository,
            engine=RoutingDecisionEngine(classifier, similarity),
            metrics=metrics,
            decision_timeout=settings.routing.decision_timeout_seconds,
        )

        self.context = RuntimeContext(
            settings=settings,
            repository=repository,
            classifier=classifier,
            similarity=similarity,
            metrics=metrics,
            service=service,
        )
        self._initialized = True
        logger.info(
            "Runtime bootstrap completed",
            classification_model=inference.classification_model,
            embedding_model=inference.embedding_model,
        )
        return self.context

    async def _start_engines(self, engines: list, timeout: float) -> None:
        """Load all models in parallel; if any fails, stop the others and re-raise"""
        results = await asyncio.gather(
            *(asyncio.to_thread(engine.start, True, timeout) for engine in engines),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            for engine in engines:
                await asyncio.to_thread(engine.stop, self.shutdown_timeout)
            logger.error("Model loading failed", errors=[str(e) for e in errors])
            raise errors[0]

    async def shutdown(self) -> None:
        """Graceful shutdown: stop accepting work, then drain and stop both workers."""
        if not self._initialized:
            logger.warning("Runtime not initialized, nothing to shutdown")
            return
        if self._shutdown_in_progress:
            logger.warning("Shutdown already in progress")
            return

        self._shutdown_in_progress = True
        shutdown_start = asyncio.get_running_loop().time()
        logger.info("Starting graceful shutdown", timeout_seconds=self.shutdown_timeout)
        try:
            self.context.accepting_work = False
            await asyncio.gather(
                asyncio.to_thread(self.context.classifier.stop, self.shutdown_timeout),
                asyncio.to_thread(self.context.similarity.stop, self.shutdown_timeout),
            )
            self._initialized = False
            logger.info(
                "Shutdown completed",
                duration_seconds=asyncio.get_running_loop().time() - shutdown_start,
            )
        finally:
            self._shutdown_in_progress = False

    def is_accepting_work(self) -> bool:
        """Check if runtime is accepting new work."""
        return bool(self.context and self.context.accepting_work and not self._shutdown_in_progress)

    def is_ready(self) -> bool:
        """Both models loaded and work is being accepted"""
        return bool(
            self.is_accepting_work()
            and self.context.classifier.ready
            and self.context.similarity.ready
        )
