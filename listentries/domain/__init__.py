"""Domain layer for catalog list entries.

Contains entities, list entry value objects, the move state machine
and domain exceptions. No I/O happens here.
"""

from listentries.domain.entities import (
    Catalog,
    Category,
    CategoryResponseGroup,
    EntryKind,
    ItemResponseGroup,
    Link,
    Product,
)
from listentries.domain.exceptions import (
    AuthorizationDeniedError,
    DomainError,
    EntityNotFoundError,
    InvalidMoveTargetError,
    InvalidStateTransitionError,
    ValidationFailedError,
)
from listentries.domain.list_entries import (
    BulkLinkCreationRequest,
    CategoryListEntry,
    ListEntry,
    ListEntrySearchResult,
    MoveEntry,
    MoveRequest,
    PaginationWindow,
    ProductListEntry,
    SearchCriteria,
)
from listentries.domain.state_machines import MoveStatus

__all__ = [
    # Entities
    "Catalog",
    "Category",
    "CategoryResponseGroup",
    "EntryKind",
    "ItemResponseGroup",
    "Link",
    "Product",
    # List entries
    "BulkLinkCreationRequest",
    "CategoryListEntry",
    "ListEntry",
    "ListEntrySearchResult",
    "MoveEntry",
    "MoveRequest",
    "PaginationWindow",
    "ProductListEntry",
    "SearchCriteria",
    # State machines
    "MoveStatus",
    # Exceptions
    "AuthorizationDeniedError",
    "DomainError",
    "EntityNotFoundError",
    "InvalidMoveTargetError",
    "InvalidStateTransitionError",
    "ValidationFailedError",
]
