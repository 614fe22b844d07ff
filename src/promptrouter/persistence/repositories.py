"""
Abstract Repository Interfaces
================================

Contract for the organization store the routing engine reads from.
Organization, router and model CRUD lives in the external org-management
service; this interface only describes what the engine needs from it.
"""

from abc import ABC, abstractmethod

from promptrouter.policy.models import Organization


class OrganizationRepository(ABC):
    """
    Abstract interface for organization lookup.

    Implementations:
    - InMemoryOrganizationRepository: seed file / tests / single node
    - a document-store backed implementation supplied by the deployment
    """

    @abstractmethod
    async def find_organization(self, org_id: str) -> Organization | None:
        """Return a copy of the organization, or None when it does not exist"""
        pass

    @abstractmethod
    async def save_organization(self, organization: Organization) -> None:
        """Insert or replace an organization"""
        pass

    @abstractmethod
    async def delete_organization(self, org_id: str) -> bool:
        """Remove an organization. Returns True if it existed"""
        pass

    @abstractmethod
    async def list_organizations(self) -> list[Organization]:
        """List all organizations"""
        pass
