"""
Custom Exceptions for promptrouter
==================================

Structured error handling allows the HTTP boundary and the CLI to react to
errors by type rather than parsing strings.

Error Codes:
- 1xxx: Client errors (payload, policy configuration, prompt length)
- 2xxx: Security errors (missing or invalid access token, scopes)
- 3xxx: Resource errors (organization, router, model, category absent)
- 4xxx: Inference errors (classification / similarity calls)
- 5xxx: System errors (internal, unexpected)
"""

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Structured error codes for user-friendly messages"""

    # 1xxx: Client Errors
    VALIDATION_ERROR = 1001
    INVALID_PAYLOAD = 1002
    POLICY_VIOLATION = 1003

    # 2xxx: Security Errors
    UNAUTHORIZED = 2001
    INSUFFICIENT_SCOPE = 2002

    # 3xxx: Resource Errors
    NOT_FOUND = 3001

    # 4xxx: Inference Errors
    INFERENCE_FAILED = 4001
    INFERENCE_BUSY = 4002
    TIMEOUT = 4003
    CANCELLED = 4004

    # 5xxx: System Errors
    INTERNAL_ERROR = 5001
    CONFIGURATION_ERROR = 5002


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_PAYLOAD: 400,
    ErrorCode.POLICY_VIOLATION: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.INSUFFICIENT_SCOPE: 401,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INFERENCE_FAILED: 500,
    ErrorCode.INFERENCE_BUSY: 503,
    ErrorCode.TIMEOUT: 504,
    ErrorCode.CANCELLED: 499,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.CONFIGURATION_ERROR: 500,
}


class PromptRouterError(Exception):
    """Base exception for all promptrouter errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self.error_code, 500)

    @property
    def reason(self) -> str:
        """Dotted machine-readable reason, e.g. ``router.not.found``"""
        return self.details.get("reason", "internal.server.error")

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging"""
        return {
            'error_type': self.__class__.__name__,
            'error_code': int(self.error_code),
            'message': self.message,
            'details': self.details
        }

    def user_message(self) -> str:
        """Get user-friendly error message based on error code"""
        code_messages = {
            ErrorCode.VALIDATION_ERROR: "Invalid input provided",
            ErrorCode.INVALID_PAYLOAD: "Invalid payload",
            ErrorCode.POLICY_VIOLATION: "Router policy cannot process this prompt",
            ErrorCode.UNAUTHORIZED: "Authentication required",
            ErrorCode.INSUFFICIENT_SCOPE: "Access token lacks the required scope",
            ErrorCode.NOT_FOUND: "Resource not found",
            ErrorCode.INFERENCE_FAILED: "Inference failed",
            ErrorCode.INFERENCE_BUSY: "Inference queue is full. Please try again",
            ErrorCode.TIMEOUT: "Routing decision timed out",
            ErrorCode.CANCELLED: "Routing decision cancelled",
            ErrorCode.INTERNAL_ERROR: "Internal server error",
            ErrorCode.CONFIGURATION_ERROR: "Configuration error",
        }
        return f"Error {self.error_code}: {code_messages.get(self.error_code, self.message)}"


class ValidationError(PromptRouterError):
    """Raised when input or router policy validation fails"""

    def __init__(
        self,
        message: str,
        reason: str = "bad.request",
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(message, error_code, {"reason": reason, **(details or {})})


class AuthorizationError(PromptRouterError):
    """Raised when the access token is missing, unknown or under-scoped"""

    def __init__(
        self,
        message: str,
        reason: str = "unauthorized",
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ):
        super().__init__(message, error_code, {"reason": reason, **(details or {})})


class NotFoundError(PromptRouterError):
    """Raised when an organization, router, model or category is absent"""

    def __init__(self, resource: str, identifier: str | None = None, details: dict[str, Any] | None = None):
        message = f"{resource} not found" if identifier is None else f"{resource} '{identifier}' not found"
        super().__init__(
            message,
            ErrorCode.NOT_FOUND,
            {"reason": f"{resource}.not.found", "resource": resource, "id": identifier, **(details or {})},
        )
        self.resource = resource
        self.identifier = identifier


class InferenceError(PromptRouterError):
    """Raised when a classification or similarity call fails"""

    def __init__(self, engine: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.INFERENCE_FAILED, {"reason": f"{engine}.error", "engine": engine, **(details or {})})
        self.engine = engine


class InferenceBusyError(InferenceError):
    """Raised when an inference worker queue is full"""

    def __init__(self, engine: str, queue_size: int):
        super().__init__(engine, f"{engine} queue is full ({queue_size} pending)", {"queue_size": queue_size})
        self.error_code = ErrorCode.INFERENCE_BUSY
        self.details["reason"] = f"{engine}.busy"


class RoutingTimeoutError(PromptRouterError):
    """Raised when a routing decision exceeds its deadline"""

    def __init__(self, timeout: float):
        super().__init__(
            f"routing decision exceeded {timeout}s",
            ErrorCode.TIMEOUT,
            {"reason": "routing.timeout", "timeout_seconds": timeout},
        )
        self.timeout = timeout


class RoutingCancelledError(PromptRouterError):
    """Raised when a cancellation token fires before the decision completes"""

    def __init__(self, message: str = "routing decision cancelled"):
        super().__init__(message, ErrorCode.CANCELLED, {"reason": "routing.cancelled"})
