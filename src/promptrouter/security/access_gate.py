"""AccessGate: validates organization access tokens against required capabilities."""

from __future__ import annotations

import hmac
from collections.abc import Iterable

from promptrouter.core.exceptions import AuthorizationError, ErrorCode
from promptrouter.core.structured_logger import get_logger
from promptrouter.policy.models import AccessToken, AccessTokenScope, Organization

logger = get_logger("AccessGate")

# Routing a prompt needs either the dedicated scope or full admin rights
PROMPT_ROUTING_SCOPES: frozenset[AccessTokenScope] = frozenset(
    {AccessTokenScope.ACCESS_PROMPT_MODEL_SUGGESTION, AccessTokenScope.ADMIN}
)


class AccessGate:
    """
    Authorizes a caller's token for an operation.

    Matching is exact on the token string, and scope matching is any-of:
    a token is accepted when its scopes intersect the required set.
    Pure read: no mutation, no retries.
    """

    def _match_token(self, organization: Organization, token: str) -> AccessToken | None:
        # compare_digest on every candidate so timing does not reveal the match position
        matched = None
        for access_token in organization.access_tokens:
            if hmac.compare_digest(access_token.token.encode(), token.encode()) and matched is None:
                matched = access_token
        return matched

    def authorize(
        self,
        organization: Organization,
        token: str | None,
        required_scopes: Iterable[AccessTokenScope],
    ) -> frozenset[AccessTokenScope]:
        """
        Validate ``token`` for an operation requiring any of ``required_scopes``.

        Returns:
            The full scope set granted to the token

        Raises:
            AuthorizationError: token missing, unknown, or without a required scope
        """
        if not token:
            raise AuthorizationError("Missing access token", reason="unauthorized")

        access_token = self._match_token(organization, token)
        if access_token is None:
            logger.warning("Unknown access token", org_id=organization.id)
            raise AuthorizationError("Unauthorized access token", reason="unauthorized.access.token")

        granted = frozenset(access_token.scopes)
        required = frozenset(required_scopes)
        if not granted & required:
            logger.warning(
                "Access token lacks required scope",
                org_id=organization.id,
                granted=sorted(s.value for s in granted),
                required=sorted(s.value for s in required),
            )
            raise AuthorizationError(
                "Access token lacks the required scope",
                reason="unauthorized.access.token.scopes",
                error_code=ErrorCode.INSUFFICIENT_SCOPE,
            )

        return granted
