"""List entry search services.

Two paths produce the same result shape:

- the direct path lists entries straight from the entry store;
- the hybrid path queries the category and product indexes.

Both merge a category bucket and a product bucket under a single
``(skip, take, total_count)`` contract. Categories fill the page first;
products fill whatever the category bucket leaves of the window.
"""

from collections.abc import Awaitable, Callable, Sequence

import structlog

from listentries.domain.entities import CategoryResponseGroup, EntryKind, ItemResponseGroup
from listentries.domain.list_entries import (
    CategoryListEntry,
    ListEntry,
    ListEntrySearchResult,
    PaginationWindow,
    ProductListEntry,
    SearchCriteria,
)
from listentries.infrastructure.indexed_search import (
    CATEGORY_SEARCH_RESPONSE_GROUP,
    PRODUCT_SEARCH_RESPONSE_GROUP,
    IndexedSearchCriteria,
    IndexedSearchService,
    get_indexed_search,
)
from listentries.infrastructure.settings_manager import (
    USE_INDEXED_SEARCH,
    SettingsProvider,
    get_settings_manager,
)
from listentries.infrastructure.store import EntryQuery, EntryStore, get_entry_store

logger = structlog.get_logger()

LISTING_CATEGORY_RESPONSE_GROUP = CATEGORY_SEARCH_RESPONSE_GROUP | CategoryResponseGroup.WITH_LINKS
LISTING_PRODUCT_RESPONSE_GROUP = PRODUCT_SEARCH_RESPONSE_GROUP | ItemResponseGroup.LINKS

BucketFetch = Callable[[PaginationWindow], Awaitable[tuple[Sequence[ListEntry], int]]]


async def merge_buckets(
    window: PaginationWindow,
    fetch_categories: BucketFetch,
    fetch_products: BucketFetch,
) -> ListEntrySearchResult:
    """Fill one page from the category bucket, then the product bucket.

    Args:
        window: Requested page over the combined result.
        fetch_categories: Fetches a category page and the category total.
        fetch_products: Fetches a product page and the product total.

    Returns:
        Combined page with the total across both buckets.
    """
    categories, category_total = await fetch_categories(window)
    residual = window.after_bucket(category_total)
    products, product_total = await fetch_products(residual)
    return ListEntrySearchResult(
        results=[*categories, *products],
        total_count=category_total + product_total,
    )


class ListEntrySearchService:
    """Direct list entry search over the entry store."""

    def __init__(self, store: EntryStore) -> None:
        self.store = store

    async def search(self, criteria: SearchCriteria) -> ListEntrySearchResult:
        """List or search entries straight from the store.

        Args:
            criteria: Search criteria.

        Returns:
            Page of entries, categories first.
        """
        query = EntryQuery.from_criteria(criteria)

        async def fetch_categories(window: PaginationWindow) -> tuple[list[ListEntry], int]:
            items, total = await self.store.categories.find(
                query.with_window(window), LISTING_CATEGORY_RESPONSE_GROUP
            )
            return [CategoryListEntry.from_model(c) for c in items], total

        async def fetch_products(window: PaginationWindow) -> tuple[list[ListEntry], int]:
            items, total = await self.store.products.find(
                query.with_window(window), LISTING_PRODUCT_RESPONSE_GROUP
            )
            return [ProductListEntry.from_model(p) for p in items], total

        return await merge_buckets(criteria.window, fetch_categories, fetch_products)


class HybridSearchService:
    """Search that prefers the indexes when a keyword is given.

    The caller is responsible for checking read permission before
    calling :meth:`search`.
    """

    def __init__(
        self,
        category_index: IndexedSearchService,
        product_index: IndexedSearchService,
        list_entry_search: ListEntrySearchService,
        settings_provider: SettingsProvider,
    ) -> None:
        """Initialize service.

        Args:
            category_index: Category index backend.
            product_index: Product index backend.
            list_entry_search: Direct search path.
            settings_provider: Source of the indexed-search flag.
        """
        self.category_index = category_index
        self.product_index = product_index
        self.list_entry_search = list_entry_search
        self.settings_provider = settings_provider

    async def search(self, criteria: SearchCriteria) -> ListEntrySearchResult:
        """Search list entries.

        Without a keyword, or with indexed search switched off, the call is
        delegated unchanged to the direct path. Otherwise the category index
        is queried with the requested window and the product index with the
        window the category bucket leaves over. Sorting is passed through to
        the indexes; results are not re-ranked across kinds.

        Args:
            criteria: Search criteria; never modified.

        Returns:
            Page of entries with the combined total.
        """
        use_indexed_search = self.settings_provider.get_flag(USE_INDEXED_SEARCH, True)
        if not use_indexed_search or not criteria.keyword:
            return await self.list_entry_search.search(criteria)

        async def fetch_categories(window: PaginationWindow) -> tuple[list[ListEntry], int]:
            result = await self.category_index.search(
                IndexedSearchCriteria.for_categories(criteria, window)
            )
            return [CategoryListEntry.from_model(c) for c in result.items], result.total_count

        async def fetch_products(window: PaginationWindow) -> tuple[list[ListEntry], int]:
            result = await self.product_index.search(
                IndexedSearchCriteria.for_products(criteria, window)
            )
            return [ProductListEntry.from_model(p) for p in result.items], result.total_count

        result = await merge_buckets(criteria.window, fetch_categories, fetch_products)
        logger.debug(
            "Indexed list entry search",
            keyword=criteria.keyword,
            skip=criteria.skip,
            take=criteria.take,
            total_count=result.total_count,
            returned=len(result.results),
        )
        return result


def get_list_entry_search_service() -> ListEntrySearchService:
    """Get direct list entry search over the configured store."""
    return ListEntrySearchService(get_entry_store())


def get_hybrid_search_service() -> HybridSearchService:
    """Get hybrid search wired to the configured backends."""
    return HybridSearchService(
        category_index=get_indexed_search(EntryKind.CATEGORY),
        product_index=get_indexed_search(EntryKind.PRODUCT),
        list_entry_search=get_list_entry_search_service(),
        settings_provider=get_settings_manager(),
    )
