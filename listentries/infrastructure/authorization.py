"""Authorization gate for list entry operations.

Principals are resolved from API keys. A principal holds a set of
permissions and, optionally, the catalogs it is scoped to. The gate
answers allow/deny for a subject: search criteria, a move request or a
collection of loaded entities.

Invariants:
    - A missing permission always denies
    - A catalog-scoped principal is denied subjects that are not
      provably inside its catalogs (e.g. criteria without a catalog, or
      criteria naming explicit ids, which the stores resolve in any catalog)
    - Unscoped principals pass the catalog check
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from listentries.domain.list_entries import MoveRequest, SearchCriteria
from listentries.infrastructure.config import settings

logger = structlog.get_logger()


class Permission(str, Enum):
    """Catalog permissions."""

    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller.

    Attributes:
        id: Principal identifier (for logs).
        permissions: Granted permissions.
        catalog_ids: Catalogs the principal may touch, None for all.
    """

    id: str
    permissions: frozenset[Permission]
    catalog_ids: frozenset[str] | None = None

    @classmethod
    def from_api_key(cls, api_key: str) -> "Principal | None":
        """Resolve a principal from configured API keys.

        Args:
            api_key: Presented API key.

        Returns:
            Principal, or None if the key is unknown.
        """
        granted = settings.api_key_permissions.get(api_key)
        if granted is None:
            return None
        scope = settings.api_key_catalog_scopes.get(api_key)
        return cls(
            id=f"key:{api_key[:4]}...",
            permissions=frozenset(Permission(p) for p in granted),
            catalog_ids=frozenset(scope) if scope is not None else None,
        )


class AuthorizationGate(Protocol):
    """Evaluates a permission against a subject."""

    async def authorize(self, subject: Any, permission: Permission) -> bool: ...


def describe_subject(subject: Any) -> str:
    """Short description of an authorization subject for messages."""
    if isinstance(subject, SearchCriteria):
        return "search criteria"
    if isinstance(subject, MoveRequest):
        return "move request"
    if isinstance(subject, Iterable):
        return f"{len(list(subject))} entries"
    return type(subject).__name__


def _catalogs_of(subject: Any) -> set[str] | None:
    """Catalogs a subject touches, None when unbounded."""
    if isinstance(subject, SearchCriteria):
        if subject.object_ids:
            return None
        return {subject.catalog_id} if subject.catalog_id else None
    if isinstance(subject, MoveRequest):
        return {subject.catalog_id} if subject.catalog_id else None
    if isinstance(subject, Iterable):
        return {entity.catalog_id for entity in subject}
    return None


class PermissionAuthorizationGate:
    """Gate backed by a principal's permission set and catalog scope."""

    def __init__(self, principal: Principal) -> None:
        self.principal = principal

    async def authorize(self, subject: Any, permission: Permission) -> bool:
        """Check whether the principal may apply ``permission`` to ``subject``.

        Args:
            subject: Criteria, move request or loaded entities.
            permission: Permission to check.

        Returns:
            True if allowed.
        """
        if permission not in self.principal.permissions:
            logger.warning(
                "Permission not granted",
                principal=self.principal.id,
                permission=permission.value,
            )
            return False

        if self.principal.catalog_ids is None:
            return True

        catalogs = _catalogs_of(subject)
        allowed = catalogs is not None and catalogs <= self.principal.catalog_ids
        if not allowed:
            logger.warning(
                "Subject outside principal catalog scope",
                principal=self.principal.id,
                permission=permission.value,
                catalogs=sorted(catalogs) if catalogs else None,
            )
        return allowed
