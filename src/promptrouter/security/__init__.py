"""Access control for organization-scoped operations."""

from promptrouter.security.access_gate import PROMPT_ROUTING_SCOPES, AccessGate

__all__ = ["AccessGate", "PROMPT_ROUTING_SCOPES"]
