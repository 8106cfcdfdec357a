"""Entry store contracts.

The entry store gives uniform read/write access to catalogs, categories
and products keyed by string ids. Two backends implement it: an
in-memory store (default) and an async SQLAlchemy store.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Protocol

import structlog

from listentries.domain.entities import (
    Catalog,
    Category,
    CategoryResponseGroup,
    ItemResponseGroup,
    Product,
)
from listentries.domain.list_entries import PaginationWindow, SearchCriteria
from listentries.infrastructure.config import settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class EntryQuery:
    """Store-level query for one entry kind.

    Attributes:
        keyword: Whitespace-separated terms matched against name and code.
        object_ids: Explicit ids; other filters are ignored when set.
        catalog_id: Owning (or linked) catalog.
        category_id: Parent category, None for the catalog root.
        search_in_children: Match the whole subtree under ``category_id``.
        window: Page to return.
    """

    keyword: str | None = None
    object_ids: tuple[str, ...] | None = None
    catalog_id: str | None = None
    category_id: str | None = None
    search_in_children: bool = False
    window: PaginationWindow = PaginationWindow()

    @classmethod
    def from_criteria(cls, criteria: SearchCriteria) -> "EntryQuery":
        """Build a store query from list entry criteria."""
        return cls(
            keyword=criteria.keyword or None,
            object_ids=criteria.object_ids or None,
            catalog_id=criteria.catalog_id,
            category_id=criteria.category_id,
            search_in_children=criteria.search_in_children,
            window=criteria.window,
        )

    @property
    def children_only(self) -> bool:
        """Whether only direct children of ``category_id`` match."""
        return not self.keyword and not self.search_in_children

    def with_window(self, window: PaginationWindow) -> "EntryQuery":
        return replace(self, window=window)


class CatalogRepository(Protocol):
    """Read access to catalogs."""

    async def get_by_ids(self, ids: Sequence[str]) -> list[Catalog]: ...


class CategoryRepository(Protocol):
    """Read/write access to categories."""

    async def get_by_ids(
        self,
        ids: Sequence[str],
        response_group: CategoryResponseGroup = CategoryResponseGroup.INFO,
    ) -> list[Category]: ...

    async def save(self, categories: Sequence[Category]) -> None: ...

    async def delete(self, ids: Sequence[str]) -> None: ...

    async def find(
        self,
        query: EntryQuery,
        response_group: CategoryResponseGroup = CategoryResponseGroup.INFO,
    ) -> tuple[list[Category], int]: ...


class ProductRepository(Protocol):
    """Read/write access to products."""

    async def get_by_ids(
        self,
        ids: Sequence[str],
        response_group: ItemResponseGroup = ItemResponseGroup.ITEM_INFO,
    ) -> list[Product]: ...

    async def save(self, products: Sequence[Product]) -> None: ...

    async def delete(self, ids: Sequence[str]) -> None: ...

    async def find(
        self,
        query: EntryQuery,
        response_group: ItemResponseGroup = ItemResponseGroup.ITEM_INFO,
    ) -> tuple[list[Product], int]: ...


@dataclass
class EntryStore:
    """Bundle of the repositories backing list entries."""

    catalogs: CatalogRepository
    categories: CategoryRepository
    products: ProductRepository


_entry_store: EntryStore | None = None


def get_entry_store() -> EntryStore:
    """Get the entry store singleton for the configured backend.

    Returns:
        EntryStore instance.
    """
    global _entry_store
    if _entry_store is None:
        if settings.entry_store_backend == "database":
            from listentries.infrastructure.sql_store import create_sql_entry_store

            _entry_store = create_sql_entry_store()
        else:
            from listentries.infrastructure.memory_store import create_memory_entry_store

            _entry_store = create_memory_entry_store()
        logger.info("Entry store initialized", backend=settings.entry_store_backend)
    return _entry_store


def reset_entry_store() -> None:
    """Drop the entry store singleton (used by tests)."""
    global _entry_store
    _entry_store = None
