"""Indexed search adapters.

Categories and products are indexed independently. Each index answers
keyword searches with skip/take paging and a response group that selects
which parts of the hits are returned.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import structlog

from listentries.domain.entities import (
    Category,
    CategoryResponseGroup,
    EntryKind,
    ItemResponseGroup,
    Product,
)
from listentries.domain.list_entries import PaginationWindow, SearchCriteria
from listentries.infrastructure.config import settings
from listentries.infrastructure.store import EntryQuery, EntryStore, get_entry_store

if TYPE_CHECKING:
    from listentries.infrastructure.index_client import IndexClient

logger = structlog.get_logger()

CATEGORY_SEARCH_RESPONSE_GROUP = CategoryResponseGroup.INFO | CategoryResponseGroup.WITH_OUTLINES
PRODUCT_SEARCH_RESPONSE_GROUP = ItemResponseGroup.ITEM_INFO | ItemResponseGroup.OUTLINES


@dataclass(frozen=True)
class IndexedSearchCriteria:
    """Criteria sent to one index.

    Attributes:
        kind: Index to query.
        keyword: Search keyword.
        window: Page to return.
        response_group: Comma-separated response group names.
        object_ids: Explicit ids filter.
        catalog_id: Catalog filter.
        category_id: Subtree filter.
        store_id: Store filter.
        search_in_children: Match the whole subtree under ``category_id``.
        sort: Sort instruction, passed through unmodified.
    """

    kind: EntryKind
    keyword: str | None
    window: PaginationWindow
    response_group: str
    object_ids: tuple[str, ...] | None = None
    catalog_id: str | None = None
    category_id: str | None = None
    store_id: str | None = None
    search_in_children: bool = False
    sort: str | None = None

    @classmethod
    def for_categories(
        cls, criteria: SearchCriteria, window: PaginationWindow
    ) -> "IndexedSearchCriteria":
        """Translate list entry criteria to category index criteria."""
        return cls._from_list_entry_criteria(
            EntryKind.CATEGORY, criteria, window, _group_names(CATEGORY_SEARCH_RESPONSE_GROUP)
        )

    @classmethod
    def for_products(
        cls, criteria: SearchCriteria, window: PaginationWindow
    ) -> "IndexedSearchCriteria":
        """Translate list entry criteria to product index criteria."""
        return cls._from_list_entry_criteria(
            EntryKind.PRODUCT, criteria, window, _group_names(PRODUCT_SEARCH_RESPONSE_GROUP)
        )

    @classmethod
    def _from_list_entry_criteria(
        cls,
        kind: EntryKind,
        criteria: SearchCriteria,
        window: PaginationWindow,
        response_group: str,
    ) -> "IndexedSearchCriteria":
        return cls(
            kind=kind,
            keyword=criteria.keyword,
            window=window,
            response_group=response_group,
            object_ids=criteria.object_ids,
            catalog_id=criteria.catalog_id,
            category_id=criteria.category_id,
            store_id=criteria.store_id,
            search_in_children=criteria.search_in_children,
            sort=criteria.sort,
        )


def _group_names(group: CategoryResponseGroup | ItemResponseGroup) -> str:
    return ",".join(member.name for member in type(group) if member.value and member in group)


@dataclass
class IndexedSearchResult:
    """Page of index hits."""

    items: list[Category] | list[Product] = field(default_factory=list)
    total_count: int = 0


class IndexedSearchService(Protocol):
    """One indexed search backend."""

    async def search(self, criteria: IndexedSearchCriteria) -> IndexedSearchResult: ...


class InMemoryIndexedSearch:
    """Index emulation backed by the entry store.

    Used when no external search service is configured.
    """

    def __init__(self, store: EntryStore, kind: EntryKind) -> None:
        self.store = store
        self.kind = kind

    async def search(self, criteria: IndexedSearchCriteria) -> IndexedSearchResult:
        query = EntryQuery(
            keyword=criteria.keyword,
            object_ids=criteria.object_ids,
            catalog_id=criteria.catalog_id,
            category_id=criteria.category_id,
            search_in_children=True,
            window=criteria.window,
        )
        if self.kind == EntryKind.CATEGORY:
            items, total = await self.store.categories.find(query, CATEGORY_SEARCH_RESPONSE_GROUP)
        else:
            items, total = await self.store.products.find(query, PRODUCT_SEARCH_RESPONSE_GROUP)
        return IndexedSearchResult(items=items, total_count=total)


# HTTP index clients, one per kind, shared across requests
_index_clients: dict[EntryKind, "IndexClient"] = {}


def get_indexed_search(kind: EntryKind) -> IndexedSearchService:
    """Get the indexed search backend for one kind.

    Args:
        kind: Entry kind to search.

    Returns:
        HTTP client when a search service URL is configured, otherwise
        an in-memory index over the entry store.
    """
    if not settings.search_service_url:
        return InMemoryIndexedSearch(get_entry_store(), kind)

    from listentries.infrastructure.index_client import IndexClient

    if kind not in _index_clients:
        _index_clients[kind] = IndexClient(
            base_url=settings.search_service_url,
            kind=kind,
            timeout=settings.search_service_timeout,
        )
        logger.info("Index client created", kind=kind.value, url=settings.search_service_url)
    return _index_clients[kind]


async def close_indexed_search() -> None:
    """Close all HTTP index clients."""
    for client in _index_clients.values():
        await client.close()
    _index_clients.clear()
