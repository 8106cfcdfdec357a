"""Tests for hybrid and direct list entry search."""

from unittest.mock import AsyncMock

import pytest

from listentries.application.search_service import (
    HybridSearchService,
    ListEntrySearchService,
)
from listentries.domain.entities import Category, EntryKind, Link, Product
from listentries.domain.list_entries import (
    CategoryListEntry,
    ListEntrySearchResult,
    PaginationWindow,
    ProductListEntry,
    SearchCriteria,
)
from listentries.infrastructure.index_client import IndexedSearchError
from listentries.infrastructure.indexed_search import IndexedSearchCriteria, IndexedSearchResult
from listentries.infrastructure.settings_manager import USE_INDEXED_SEARCH, SettingsManager


class FakeIndex:
    """Index returning slices of a fixed hit list and recording criteria."""

    def __init__(self, items: list) -> None:
        self.items = items
        self.calls: list[IndexedSearchCriteria] = []

    async def search(self, criteria: IndexedSearchCriteria) -> IndexedSearchResult:
        self.calls.append(criteria)
        start = criteria.window.skip
        return IndexedSearchResult(
            items=self.items[start : start + criteria.window.take],
            total_count=len(self.items),
        )


def make_categories(count: int) -> list[Category]:
    return [Category(id=f"c{i:02d}", catalog_id="main", name=f"Cat {i}") for i in range(count)]


def make_products(count: int) -> list[Product]:
    return [Product(id=f"p{i:02d}", catalog_id="main", name=f"Prod {i}") for i in range(count)]


@pytest.fixture
def direct() -> AsyncMock:
    """Direct search path stub."""
    mock = AsyncMock(spec=ListEntrySearchService)
    mock.search.return_value = ListEntrySearchResult(results=[], total_count=99)
    return mock


def make_service(
    categories: int,
    products: int,
    direct: AsyncMock,
    indexed: bool = True,
) -> tuple[HybridSearchService, FakeIndex, FakeIndex]:
    category_index = FakeIndex(make_categories(categories))
    product_index = FakeIndex(make_products(products))
    service = HybridSearchService(
        category_index=category_index,
        product_index=product_index,
        list_entry_search=direct,
        settings_provider=SettingsManager({USE_INDEXED_SEARCH: indexed}),
    )
    return service, category_index, product_index


class TestHybridSearchRouting:
    """Tests for choosing between the indexed and direct paths."""

    @pytest.mark.asyncio
    async def test_disabled_flag_delegates_to_direct_path(self, direct: AsyncMock) -> None:
        """With indexed search off, the direct result is returned verbatim."""
        service, category_index, product_index = make_service(5, 5, direct, indexed=False)
        criteria = SearchCriteria(keyword="tv")

        result = await service.search(criteria)

        direct.search.assert_awaited_once_with(criteria)
        assert result.total_count == 99
        assert category_index.calls == []
        assert product_index.calls == []

    @pytest.mark.asyncio
    async def test_empty_keyword_delegates_to_direct_path(self, direct: AsyncMock) -> None:
        """Browsing without a keyword never touches the indexes."""
        service, category_index, _ = make_service(5, 5, direct)

        await service.search(SearchCriteria(keyword=""))
        await service.search(SearchCriteria(keyword=None))

        assert direct.search.await_count == 2
        assert category_index.calls == []

    @pytest.mark.asyncio
    async def test_flag_read_as_string(self, direct: AsyncMock) -> None:
        """String flag values are understood."""
        service, category_index, _ = make_service(5, 5, direct)
        service.settings_provider = SettingsManager({USE_INDEXED_SEARCH: "false"})

        await service.search(SearchCriteria(keyword="tv"))

        direct.search.assert_awaited_once()
        assert category_index.calls == []


class TestHybridSearchMerge:
    """Tests for the category-first bucket merge."""

    @pytest.mark.asyncio
    async def test_categories_before_page_shift_product_window(self, direct: AsyncMock) -> None:
        """12 categories and a (15, 10) request query products at (3, 10)."""
        service, category_index, product_index = make_service(12, 30, direct)
        criteria = SearchCriteria(keyword="x", window=PaginationWindow(skip=15, take=10))

        result = await service.search(criteria)

        assert category_index.calls[0].window == PaginationWindow(skip=15, take=10)
        assert product_index.calls[0].window == PaginationWindow(skip=3, take=10)
        assert result.total_count == 42
        assert [e.id for e in result.results] == [f"p{i:02d}" for i in range(3, 13)]

    @pytest.mark.asyncio
    async def test_page_straddling_both_kinds(self, direct: AsyncMock) -> None:
        """Categories come first, products fill the rest of the page."""
        service, _, product_index = make_service(12, 30, direct)
        criteria = SearchCriteria(keyword="x", window=PaginationWindow(skip=5, take=10))

        result = await service.search(criteria)

        assert product_index.calls[0].window == PaginationWindow(skip=0, take=3)
        kinds = [e.kind for e in result.results]
        assert kinds == [EntryKind.CATEGORY] * 7 + [EntryKind.PRODUCT] * 3
        assert isinstance(result.results[0], CategoryListEntry)
        assert isinstance(result.results[-1], ProductListEntry)

    @pytest.mark.asyncio
    async def test_zero_take_still_reports_total(self, direct: AsyncMock) -> None:
        """take=0 returns no rows but the full total."""
        service, _, _ = make_service(4, 6, direct)

        result = await service.search(
            SearchCriteria(keyword="x", window=PaginationWindow(skip=0, take=0))
        )

        assert result.results == []
        assert result.total_count == 10

    @pytest.mark.asyncio
    async def test_skip_past_end_returns_empty_with_total(self, direct: AsyncMock) -> None:
        """Skipping past everything yields an empty page and the true total."""
        service, _, _ = make_service(4, 6, direct)

        result = await service.search(
            SearchCriteria(keyword="x", window=PaginationWindow(skip=50, take=10))
        )

        assert result.results == []
        assert result.total_count == 10

    @pytest.mark.asyncio
    async def test_paging_covers_every_entry_once(self, direct: AsyncMock) -> None:
        """Walking all pages yields each category and product exactly once."""
        service, _, _ = make_service(7, 11, direct)
        seen: list[str] = []

        window = PaginationWindow(skip=0, take=4)
        while True:
            result = await service.search(SearchCriteria(keyword="x", window=window))
            seen.extend(e.id for e in result.results)
            window = window.next_page()
            if window.skip >= result.total_count:
                break

        assert len(seen) == 18
        assert len(set(seen)) == 18

    @pytest.mark.asyncio
    async def test_criteria_not_modified(self, direct: AsyncMock) -> None:
        """The caller's criteria keep their window."""
        service, _, _ = make_service(12, 30, direct)
        criteria = SearchCriteria(keyword="x", window=PaginationWindow(skip=15, take=10))

        await service.search(criteria)

        assert criteria.window == PaginationWindow(skip=15, take=10)

    @pytest.mark.asyncio
    async def test_index_criteria_carry_filters_and_response_groups(
        self, direct: AsyncMock
    ) -> None:
        """Filters pass through; each index gets its own response group."""
        service, category_index, product_index = make_service(1, 1, direct)
        criteria = SearchCriteria(
            keyword="x", catalog_id="main", store_id="b2c", sort="name:desc"
        )

        await service.search(criteria)

        category_call = category_index.calls[0]
        product_call = product_index.calls[0]
        assert category_call.kind == EntryKind.CATEGORY
        assert category_call.response_group == "INFO,WITH_OUTLINES"
        assert product_call.kind == EntryKind.PRODUCT
        assert product_call.response_group == "ITEM_INFO,OUTLINES"
        assert product_call.catalog_id == "main"
        assert product_call.store_id == "b2c"
        assert product_call.sort == "name:desc"

    @pytest.mark.asyncio
    async def test_category_index_failure_propagates(self, direct: AsyncMock) -> None:
        """A failing index fails the whole search."""
        service, _, product_index = make_service(1, 1, direct)
        service.category_index = AsyncMock()
        service.category_index.search.side_effect = IndexedSearchError("category", "down", 503)

        with pytest.raises(IndexedSearchError):
            await service.search(SearchCriteria(keyword="x"))

        assert product_index.calls == []


class TestDirectSearch:
    """Tests for the direct path over the entry store."""

    @pytest.mark.asyncio
    async def test_root_listing(self, seeded_store) -> None:
        """Without a category the catalog root is listed."""
        service = ListEntrySearchService(seeded_store)

        result = await service.search(SearchCriteria(catalog_id="main"))

        assert [e.id for e in result.results] == ["electronics", "garden"]
        assert result.total_count == 2

    @pytest.mark.asyncio
    async def test_category_listing_has_children_of_both_kinds(self, seeded_store) -> None:
        """A category lists its child categories, then its products."""
        service = ListEntrySearchService(seeded_store)

        result = await service.search(
            SearchCriteria(catalog_id="main", category_id="electronics")
        )

        assert [(e.kind, e.id) for e in result.results] == [
            (EntryKind.CATEGORY, "audio"),
            (EntryKind.PRODUCT, "p-tv"),
        ]
        assert result.results[1].outline == "main/electronics/p-tv"

    @pytest.mark.asyncio
    async def test_keyword_searches_subtree(self, seeded_store) -> None:
        """A keyword matches across the whole catalog."""
        service = ListEntrySearchService(seeded_store)

        result = await service.search(SearchCriteria(catalog_id="main", keyword="headphones"))

        assert [e.id for e in result.results] == ["headphones", "p-hp2", "p-hp1"]
        assert result.total_count == 3

    @pytest.mark.asyncio
    async def test_linked_entries_appear_in_listing(self, seeded_store) -> None:
        """An entry linked into a category is listed under it."""
        [mower] = await seeded_store.products.get_by_ids(["p-mower"])
        mower.links.append(Link("p-mower", "main", "electronics", EntryKind.PRODUCT))
        await seeded_store.products.save([mower])
        service = ListEntrySearchService(seeded_store)

        result = await service.search(
            SearchCriteria(catalog_id="main", category_id="electronics")
        )

        assert "p-mower" in [e.id for e in result.results]
        mower_entry = next(e for e in result.results if e.id == "p-mower")
        assert mower_entry.links[0].category_id == "electronics"

    @pytest.mark.asyncio
    async def test_object_ids_bypass_other_filters(self, seeded_store) -> None:
        """Explicit ids are returned regardless of keyword or parent."""
        service = ListEntrySearchService(seeded_store)

        result = await service.search(
            SearchCriteria(keyword="nothing-matches", object_ids=("garden", "p-hp1"))
        )

        assert {e.id for e in result.results} == {"garden", "p-hp1"}

    @pytest.mark.asyncio
    async def test_hybrid_in_memory_index_matches_direct_keyword_search(
        self, seeded_store
    ) -> None:
        """The in-memory index returns the same entries as the direct path."""
        from listentries.application.search_service import get_hybrid_search_service

        criteria = SearchCriteria(catalog_id="main", keyword="headphones")

        hybrid = await get_hybrid_search_service().search(criteria)
        plain = await ListEntrySearchService(seeded_store).search(criteria)

        assert [e.id for e in hybrid.results] == [e.id for e in plain.results]
        assert hybrid.total_count == plain.total_count
