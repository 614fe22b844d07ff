"""
In-Memory Organization Store
============================

Async-compatible organization store backed by a dict.
Ideal for development, testing, and single-node deployments seeded from a
YAML/JSON file.

Reads hand out deep copies: a routing decision works on its own snapshot and
never observes a half-applied edit.
"""

import asyncio
import json
import logging
from pathlib import Path

import yaml

from promptrouter.core.exceptions import ValidationError
from promptrouter.policy.models import Organization

from .repositories import OrganizationRepository

logger = logging.getLogger(__name__)


class InMemoryOrganizationRepository(OrganizationRepository):
    """
    In-memory organization store.

    Features:
    - Write-time referential integrity check of router -> model ids
    - Copy-on-read snapshots
    - asyncio lock serializing writers (readers never wait)

    Limitations:
    - Not persistent (edits lost on restart)
    - Single-node only
    """

    def __init__(self, validate_references: bool = True):
        self._organizations: dict[str, Organization] = {}
        self._lock = asyncio.Lock()
        self.validate_references = validate_references

        logger.info("InMemoryOrganizationRepository initialized")

    async def find_organization(self, org_id: str) -> Organization | None:
        organization = self._organizations.get(org_id)
        if organization is None:
            return None
        return organization.model_copy(deep=True)

    async def save_organization(self, organization: Organization) -> None:
        if self.validate_references:
            dangling = organization.dangling_model_references()
            if dangling:
                raise ValidationError(
                    f"Organization {organization.id} references unregistered models",
                    reason="model.reference.dangling",
                    details={"dangling": dangling},
                )

        async with self._lock:
            self._organizations[organization.id] = organization.model_copy(deep=True)

        logger.info(
            f"Saved organization {organization.id} "
            f"(routers={len(organization.routers)}, models={len(organization.models)})"
        )

    async def delete_organization(self, org_id: str) -> bool:
        async with self._lock:
            removed = self._organizations.pop(org_id, None) is not None
        if removed:
            logger.info(f"Deleted organization {org_id}")
        return removed

    async def list_organizations(self) -> list[Organization]:
        return [org.model_copy(deep=True) for org in self._organizations.values()]

    async def load_file(self, path: str | Path) -> int:
        """
        Seed the store from a YAML or JSON file.

        The file holds either a list of organizations or a mapping with an
        ``organizations`` key.

        Returns:
            Number of organizations loaded

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If a record references unregistered models
        """
        organizations = read_organizations_file(path)
        for organization in organizations:
            await self.save_organization(organization)
        logger.info(f"Loaded {len(organizations)} organization(s) from {path}")
        return len(organizations)


def read_organizations_file(path: str | Path) -> list[Organization]:
    """Parse a YAML/JSON organizations file into records without storing them"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Organizations file not found: {path}")

    with open(path) as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("organizations", [])
    return [Organization.model_validate(item) for item in data]
