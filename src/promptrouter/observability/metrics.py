"""Prometheus metrics for routing decisions and inference workers."""

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Prometheus metrics collector for promptrouter."""

    def __init__(self, service_name: str = "promptrouter", registry: CollectorRegistry | None = None) -> None:
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY
        self._init_standard_metrics()
        logger.info("MetricsCollector initialized")

    def _init_standard_metrics(self) -> None:
        self.service_info = Info("promptrouter_service", "Service information", registry=self.registry)
        try:
            _version = _pkg_version("promptrouter")
        except PackageNotFoundError:
            _version = "0.0.0-dev"
        self.service_info.info({"service": self.service_name, "version": _version})

        self.routing_decisions_total = Counter(
            "promptrouter_routing_decisions_total",
            "Completed routing decisions",
            ["strategy", "outcome"],
            registry=self.registry,
        )
        self.routing_errors_total = Counter(
            "promptrouter_routing_errors_total",
            "Routing decisions that ended in an error",
            ["error_type"],
            registry=self.registry,
        )
        self.routing_duration_seconds = Histogram(
            "promptrouter_routing_duration_seconds",
            "End-to-end routing decision duration",
            registry=self.registry,
        )
        self.inference_duration_seconds = Histogram(
            "promptrouter_inference_duration_seconds",
            "Time spent inside one model call",
            ["engine"],
            registry=self.registry,
        )
        self.inference_queue_depth = Gauge(
            "promptrouter_inference_queue_depth",
            "Requests waiting for an inference worker",
            ["engine"],
            registry=self.registry,
        )

    def record_decision(self, strategy: str, outcome: str, duration: float) -> None:
        self.routing_decisions_total.labels(strategy=strategy, outcome=outcome).inc()
        self.routing_duration_seconds.observe(duration)

    def record_error(self, error_type: str, duration: float | None = None) -> None:
        self.routing_errors_total.labels(error_type=error_type).inc()
        if duration is not None:
            self.routing_duration_seconds.observe(duration)

    def record_inference(self, engine: str, duration: float) -> None:
        self.inference_duration_seconds.labels(engine=engine).observe(duration)

    def update_queue_depth(self, engine: str, depth: int) -> None:
        self.inference_queue_depth.labels(engine=engine).set(depth)

    def render(self) -> bytes:
        return generate_latest(self.registry)
