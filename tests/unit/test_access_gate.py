"""
Tests for AccessGate token and scope checks.
"""

import pytest

from promptrouter.core.exceptions import AuthorizationError, ErrorCode
from promptrouter.policy import AccessToken, AccessTokenScope
from promptrouter.security import PROMPT_ROUTING_SCOPES, AccessGate
from tests.fakes import ADMIN_TOKEN, MODELS_TOKEN, ROUTE_TOKEN, make_organization


@pytest.fixture
def gate():
    return AccessGate()


@pytest.fixture
def organization():
    return make_organization()


class TestAuthorize:
    def test_suggestion_scope_is_granted(self, gate, organization):
        granted = gate.authorize(organization, ROUTE_TOKEN, PROMPT_ROUTING_SCOPES)
        assert granted == frozenset({AccessTokenScope.ACCESS_PROMPT_MODEL_SUGGESTION})

    def test_admin_scope_is_granted(self, gate, organization):
        granted = gate.authorize(organization, ADMIN_TOKEN, PROMPT_ROUTING_SCOPES)
        assert AccessTokenScope.ADMIN in granted

    def test_manage_models_only_is_rejected(self, gate, organization):
        with pytest.raises(AuthorizationError) as exc_info:
            gate.authorize(organization, MODELS_TOKEN, PROMPT_ROUTING_SCOPES)
        assert exc_info.value.reason == "unauthorized.access.token.scopes"
        assert exc_info.value.error_code == ErrorCode.INSUFFICIENT_SCOPE
        assert exc_info.value.http_status == 401

    def test_unknown_token_is_rejected(self, gate, organization):
        with pytest.raises(AuthorizationError) as exc_info:
            gate.authorize(organization, "tok-unknown", PROMPT_ROUTING_SCOPES)
        assert exc_info.value.reason == "unauthorized.access.token"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_is_rejected(self, gate, organization, token):
        with pytest.raises(AuthorizationError) as exc_info:
            gate.authorize(organization, token, PROMPT_ROUTING_SCOPES)
        assert exc_info.value.reason == "unauthorized"

    def test_token_match_is_exact(self, gate, organization):
        with pytest.raises(AuthorizationError):
            gate.authorize(organization, ROUTE_TOKEN.upper(), PROMPT_ROUTING_SCOPES)
        with pytest.raises(AuthorizationError):
            gate.authorize(organization, ROUTE_TOKEN + " ", PROMPT_ROUTING_SCOPES)

    def test_returns_full_scope_set(self, gate):
        organization = make_organization()
        organization.access_tokens.append(
            AccessToken(
                token="tok-multi",
                scopes=[AccessTokenScope.MANAGE_ROUTERS, AccessTokenScope.ACCESS_PROMPT_MODEL_SUGGESTION],
            )
        )
        granted = gate.authorize(organization, "tok-multi", PROMPT_ROUTING_SCOPES)
        assert granted == frozenset(
            {AccessTokenScope.MANAGE_ROUTERS, AccessTokenScope.ACCESS_PROMPT_MODEL_SUGGESTION}
        )

    def test_token_without_scopes_is_rejected(self, gate):
        organization = make_organization()
        organization.access_tokens.append(AccessToken(token="tok-empty"))
        with pytest.raises(AuthorizationError) as exc_info:
            gate.authorize(organization, "tok-empty", PROMPT_ROUTING_SCOPES)
        assert exc_info.value.reason == "unauthorized.access.token.scopes"

    def test_other_operations_use_their_own_scopes(self, gate, organization):
        granted = gate.authorize(organization, MODELS_TOKEN, [AccessTokenScope.MANAGE_MODELS])
        assert granted == frozenset({AccessTokenScope.MANAGE_MODELS})
