"""List entry value objects.

A list entry is an immutable listing view of either a category or a
product. Search criteria, results and pagination windows are value
objects too: services derive new ones instead of mutating what the
caller passed in.
"""

from dataclasses import dataclass, field, replace
from typing import Self

from listentries.domain.entities import Category, EntryKind, Link, Product


# ============================================================================
# Pagination
# ============================================================================


@dataclass(frozen=True)
class PaginationWindow:
    """Logical ``(skip, take)`` window over a merged result set.

    Attributes:
        skip: Rows to skip before the page starts.
        take: Maximum rows in the page.
    """

    skip: int = 0
    take: int = 20

    def __post_init__(self) -> None:
        if self.skip < 0 or self.take < 0:
            raise ValueError(f"Invalid pagination window: skip={self.skip}, take={self.take}")

    def after_bucket(self, bucket_total: int) -> Self:
        """Window left for the next bucket once this bucket is placed first.

        The bucket covers logical rows ``[0, bucket_total)``. Rows it occupies
        before the page are removed from ``skip``; rows it places on the page
        are removed from ``take``.

        Args:
            bucket_total: Total number of rows in the preceding bucket.

        Returns:
            Residual window for the following bucket.
        """
        skip_consumed = min(bucket_total, self.skip)
        take_consumed = min(self.take, max(0, bucket_total - self.skip))
        return replace(self, skip=self.skip - skip_consumed, take=self.take - take_consumed)

    def next_page(self) -> Self:
        """Window for the page following this one."""
        return replace(self, skip=self.skip + self.take)


# ============================================================================
# Criteria
# ============================================================================


@dataclass(frozen=True)
class SearchCriteria:
    """Criteria for searching list entries.

    Attributes:
        keyword: Free-text keyword; empty means browse.
        object_ids: Explicit ids; when set, keyword matching is bypassed.
        catalog_id: Restrict to a catalog.
        category_id: Restrict to a category (direct children unless searching).
        store_id: Restrict to the catalog of a store (index-side filter).
        search_in_children: Match the whole subtree instead of direct children.
        sort: Opaque sort instruction forwarded to backends as-is.
        window: Requested page.
    """

    keyword: str | None = None
    object_ids: tuple[str, ...] | None = None
    catalog_id: str | None = None
    category_id: str | None = None
    store_id: str | None = None
    search_in_children: bool = False
    sort: str | None = None
    window: PaginationWindow = field(default_factory=PaginationWindow)

    @property
    def skip(self) -> int:
        return self.window.skip

    @property
    def take(self) -> int:
        return self.window.take

    def with_window(self, window: PaginationWindow) -> Self:
        """Copy of these criteria with a different window."""
        return replace(self, window=window)


# ============================================================================
# List Entries
# ============================================================================


@dataclass(frozen=True)
class CategoryListEntry:
    """Listing view of a category."""

    id: str
    name: str
    catalog_id: str
    code: str | None = None
    parent_id: str | None = None
    outline: str | None = None
    is_active: bool = True
    links: tuple[Link, ...] = ()

    kind = EntryKind.CATEGORY

    @classmethod
    def from_model(cls, category: Category) -> "CategoryListEntry":
        """Snapshot a category."""
        return cls(
            id=category.id,
            name=category.name,
            catalog_id=category.catalog_id,
            code=category.code,
            parent_id=category.parent_id,
            outline=category.outline,
            is_active=category.is_active,
            links=tuple(category.links),
        )


@dataclass(frozen=True)
class ProductListEntry:
    """Listing view of a product."""

    id: str
    name: str
    catalog_id: str
    code: str | None = None
    category_id: str | None = None
    outline: str | None = None
    links: tuple[Link, ...] = ()

    kind = EntryKind.PRODUCT

    @classmethod
    def from_model(cls, product: Product) -> "ProductListEntry":
        """Snapshot a product."""
        return cls(
            id=product.id,
            name=product.name,
            catalog_id=product.catalog_id,
            code=product.code,
            category_id=product.category_id,
            outline=product.outline,
            links=tuple(product.links),
        )


ListEntry = CategoryListEntry | ProductListEntry


@dataclass
class ListEntrySearchResult:
    """Page of list entries.

    Attributes:
        results: Categories first, then products.
        total_count: Logical total across both kinds.
    """

    results: list[ListEntry] = field(default_factory=list)
    total_count: int = 0


# ============================================================================
# Mutation Requests
# ============================================================================


@dataclass(frozen=True)
class BulkLinkCreationRequest:
    """Link every entry matching ``search_criteria`` into a target."""

    catalog_id: str | None
    search_criteria: SearchCriteria
    category_id: str | None = None


@dataclass(frozen=True)
class MoveEntry:
    """Entry named in a move request."""

    id: str
    kind: EntryKind


@dataclass(frozen=True)
class MoveRequest:
    """Relocate entries into a catalog or category.

    Attributes:
        catalog_id: Target catalog.
        category_id: Target category, None for the catalog root.
        entries: Entries to move, tagged by kind.
    """

    catalog_id: str | None
    entries: tuple[MoveEntry, ...] = ()
    category_id: str | None = None

    def ids_of(self, kind: EntryKind) -> list[str]:
        """Ids of the requested entries of one kind, in request order."""
        return [entry.id for entry in self.entries if entry.kind == kind]
