"""
RoutingPolicyView - read-only projection of one organization's routing policy.

The view holds a snapshot of the organization and, when built with a
``reload`` callable, can re-read the store between steps of a decision.
Nothing here takes a lock: the store hands out copies, and a model that
vanished between two reads is reported as ``NotFoundError`` instead of
being trusted from the earlier snapshot.
"""

import logging
from collections.abc import Awaitable, Callable

from promptrouter.core.exceptions import NotFoundError
from promptrouter.policy.models import ModelObject, Organization, Router

logger = logging.getLogger(__name__)

Reloader = Callable[[], Awaitable[Organization | None]]


class RoutingPolicyView:
    """Router/Model accessors over an organization snapshot"""

    def __init__(self, organization: Organization, reload: Reloader | None = None) -> None:
        self._organization = organization
        self._reload = reload

    @property
    def organization(self) -> Organization:
        return self._organization

    @property
    def organization_id(self) -> str:
        return self._organization.id

    async def refresh(self) -> None:
        """Replace the snapshot with the store's current copy, if a reloader is attached"""
        if self._reload is None:
            return
        latest = await self._reload()
        if latest is None or latest.deleted:
            raise NotFoundError("organization", self._organization.id)
        self._organization = latest
        logger.debug("Policy view refreshed for organization %s", latest.id)

    def find_router(self, router_id: str) -> Router | None:
        return self._organization.find_router(router_id)

    def require_model(self, model_id: str | None) -> ModelObject:
        """Resolve ``model_id`` against the current snapshot or raise NotFoundError"""
        model = self._organization.find_model(model_id)
        if model is None:
            raise NotFoundError("model", model_id)
        return model
