"""
JSON logging for routing decisions.

Each record is one JSON object. While a decision is in flight its trace id
is attached to every record, so one prompt can be followed from the access
gate through both inference workers. Access tokens never reach the output.
"""

import json
import logging
import re
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

_decision_trace: ContextVar[str | None] = ContextVar("decision_trace", default=None)

_TOKEN_PATTERN = re.compile(
    r"(sk-[A-Za-z0-9]+|hf_[A-Za-z0-9]+|Bearer\s+[A-Za-z0-9._~+/=-]+)",
    re.IGNORECASE,
)

# Field names whose values are always credentials
_CREDENTIAL_FIELDS = frozenset({"token", "access_token", "authorization", "api_key"})

REDACTED = "[REDACTED]"


def _redact_secrets(text: str) -> str:
    return _TOKEN_PATTERN.sub(REDACTED, text)


def _scrub_field(name: str, value):
    if name.lower() in _CREDENTIAL_FIELDS and value:
        return REDACTED
    if isinstance(value, str):
        return _redact_secrets(value)
    return value


class StructuredLogger:
    """
    Writes routing events as JSON lines under a component name.

    ``logger.info("Prompt routed", org_id="org-1", strategy="classification")``
    inside a ``TraceContext`` produces::

        {"timestamp": "...", "level": "INFO", "component": "RoutingService",
         "message": "Prompt routed", "trace_id": "1f0c9a2e",
         "org_id": "org-1", "strategy": "classification"}
    """

    def __init__(self, component: str, logger: logging.Logger | None = None) -> None:
        self.component = component
        self.logger = logger or logging.getLogger(component)

    def _emit(self, level: int, message: str, fields: dict) -> None:
        if not self.logger.isEnabledFor(level):
            return

        record = {
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "level": logging.getLevelName(level),
            "component": self.component,
            "message": _redact_secrets(message),
        }
        trace_id = _decision_trace.get()
        if trace_id:
            record["trace_id"] = trace_id
        record.update((name, _scrub_field(name, value)) for name, value in fields.items())

        # Non-string values rendered via str() may still carry a token
        self.logger.log(level, _redact_secrets(json.dumps(record, default=str)))

    def debug(self, message: str, **fields) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields) -> None:
        self._emit(logging.ERROR, message, fields)

    def critical(self, message: str, **fields) -> None:
        self._emit(logging.CRITICAL, message, fields)


class TraceContext:
    """
    Binds a trace id to the current routing decision.

    The id is visible to every StructuredLogger call made in the same task,
    including ones awaited inside the block::

        with TraceContext() as trace_id:
            await service.route_llm_prompt(...)
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self._reset_token = None

    def __enter__(self) -> str:
        self._reset_token = _decision_trace.set(self.trace_id)
        return self.trace_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _decision_trace.reset(self._reset_token)


def current_trace_id() -> str | None:
    return _decision_trace.get()


def get_logger(component: str) -> StructuredLogger:
    return StructuredLogger(component)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Replace the root handlers with one stream handler.

    StructuredLogger output is already JSON, so ``json`` writes the message
    as is; ``text`` prefixes time, level and logger name.
    """
    handler = logging.StreamHandler()
    if fmt == "text":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())
