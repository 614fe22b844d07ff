"""Routing policy records and the read-only view the engine consumes."""

from promptrouter.policy.models import (
    AccessToken,
    AccessTokenScope,
    Category,
    MemberRole,
    ModelObject,
    ModelType,
    NoMatchPolicy,
    Organization,
    OrgMember,
    Router,
    Sentence,
)
from promptrouter.policy.view import RoutingPolicyView

__all__ = [
    "AccessToken",
    "AccessTokenScope",
    "Category",
    "MemberRole",
    "ModelObject",
    "ModelType",
    "NoMatchPolicy",
    "Organization",
    "OrgMember",
    "Router",
    "RoutingPolicyView",
    "Sentence",
]
