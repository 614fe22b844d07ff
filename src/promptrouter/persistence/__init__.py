"""
Persistence Layer - Data Access Objects (DAO) Pattern
======================================================

Abstract organization store plus the in-memory implementation.
Allows swapping backends without changing the routing engine.
"""

from .inmemory_impl import InMemoryOrganizationRepository, read_organizations_file
from .repositories import OrganizationRepository

__all__ = [
    "InMemoryOrganizationRepository",
    "OrganizationRepository",
    "read_organizations_file",
]
