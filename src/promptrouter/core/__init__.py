"""Core promptrouter module: errors and structured logging."""

from promptrouter.core.exceptions import (
    AuthorizationError,
    ErrorCode,
    InferenceBusyError,
    InferenceError,
    NotFoundError,
    PromptRouterError,
    RoutingCancelledError,
    RoutingTimeoutError,
    ValidationError,
)
from promptrouter.core.structured_logger import TraceContext, configure_logging, get_logger

__all__ = [
    "AuthorizationError",
    "configure_logging",
    "ErrorCode",
    "get_logger",
    "InferenceBusyError",
    "InferenceError",
    "NotFoundError",
    "PromptRouterError",
    "RoutingCancelledError",
    "RoutingTimeoutError",
    "TraceContext",
    "ValidationError",
]
