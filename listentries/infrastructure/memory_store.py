"""In-memory entry store.

Keeps catalogs, categories and products in dictionaries. Entities are
copied on the way in and on the way out, so callers never hold live
references to stored state: unsaved changes stay invisible to others.
"""

import copy
from collections.abc import Iterable, Sequence

from listentries.domain.entities import (
    Catalog,
    Category,
    CategoryResponseGroup,
    ItemResponseGroup,
    Link,
    Product,
    build_outline,
)
from listentries.infrastructure.store import EntryQuery, EntryStore


def _matches_keyword(keyword: str, name: str, code: str | None) -> bool:
    haystack = f"{name} {code or ''}".lower()
    return all(term in haystack for term in keyword.lower().split())


def _linked_into(links: Iterable[Link], catalog_id: str | None, category_id: str | None) -> bool:
    if catalog_id is None:
        return False
    return any(
        link.catalog_id == catalog_id and link.category_id == category_id for link in links
    )


def _page(items: list, query: EntryQuery) -> list:
    start = query.window.skip
    return items[start : start + query.window.take]


class InMemoryCatalogRepository:
    """In-memory repository for catalogs."""

    def __init__(self) -> None:
        self._catalogs: dict[str, Catalog] = {}

    def add(self, catalog: Catalog) -> None:
        """Register a catalog."""
        self._catalogs[catalog.id] = copy.deepcopy(catalog)

    async def get_by_ids(self, ids: Sequence[str]) -> list[Catalog]:
        return [copy.deepcopy(self._catalogs[i]) for i in ids if i in self._catalogs]


class InMemoryCategoryRepository:
    """In-memory repository for categories."""

    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}

    def ancestors(self, category_id: str | None) -> list[str]:
        """Category ids from the root down to ``category_id`` inclusive."""
        chain: list[str] = []
        seen: set[str] = set()
        current = self._categories.get(category_id) if category_id else None
        while current is not None and current.id not in seen:
            seen.add(current.id)
            chain.append(current.id)
            current = self._categories.get(current.parent_id) if current.parent_id else None
        return list(reversed(chain))

    def _project(self, category: Category, response_group: CategoryResponseGroup) -> Category:
        result = copy.deepcopy(category)
        if CategoryResponseGroup.WITH_OUTLINES in response_group:
            result.outline = build_outline(
                result.catalog_id, self.ancestors(result.parent_id), result.id
            )
        if CategoryResponseGroup.WITH_LINKS not in response_group:
            result.links = []
        return result

    def _matches(self, category: Category, query: EntryQuery) -> bool:
        if query.object_ids is not None:
            return category.id in query.object_ids
        if query.children_only:
            owned = category.parent_id == query.category_id and (
                query.catalog_id is None or category.catalog_id == query.catalog_id
            )
            return owned or _linked_into(category.links, query.catalog_id, query.category_id)
        if query.catalog_id is not None and category.catalog_id != query.catalog_id:
            return False
        if query.category_id is not None and query.category_id not in self.ancestors(
            category.parent_id
        ):
            return False
        return not query.keyword or _matches_keyword(query.keyword, category.name, category.code)

    async def get_by_ids(
        self,
        ids: Sequence[str],
        response_group: CategoryResponseGroup = CategoryResponseGroup.INFO,
    ) -> list[Category]:
        return [
            self._project(self._categories[i], response_group)
            for i in dict.fromkeys(ids)
            if i in self._categories
        ]

    async def save(self, categories: Sequence[Category]) -> None:
        for category in categories:
            stored = copy.deepcopy(category)
            stored.outline = None
            self._categories[stored.id] = stored

    async def delete(self, ids: Sequence[str]) -> None:
        for category_id in ids:
            self._categories.pop(category_id, None)

    async def find(
        self,
        query: EntryQuery,
        response_group: CategoryResponseGroup = CategoryResponseGroup.INFO,
    ) -> tuple[list[Category], int]:
        matched = sorted(
            (c for c in self._categories.values() if self._matches(c, query)),
            key=lambda c: (c.name.lower(), c.id),
        )
        return [self._project(c, response_group) for c in _page(matched, query)], len(matched)


class InMemoryProductRepository:
    """In-memory repository for products.

    Shares the category repository to resolve outlines and subtrees.
    """

    def __init__(self, categories: InMemoryCategoryRepository) -> None:
        self._products: dict[str, Product] = {}
        self._categories = categories

    def _project(self, product: Product, response_group: ItemResponseGroup) -> Product:
        result = copy.deepcopy(product)
        if ItemResponseGroup.OUTLINES in response_group:
            result.outline = build_outline(
                result.catalog_id, self._categories.ancestors(result.category_id), result.id
            )
        if ItemResponseGroup.LINKS not in response_group:
            result.links = []
        return result

    def _matches(self, product: Product, query: EntryQuery) -> bool:
        if query.object_ids is not None:
            return product.id in query.object_ids
        if query.children_only:
            owned = product.category_id == query.category_id and (
                query.catalog_id is None or product.catalog_id == query.catalog_id
            )
            return owned or _linked_into(product.links, query.catalog_id, query.category_id)
        if query.catalog_id is not None and product.catalog_id != query.catalog_id:
            return False
        if query.category_id is not None and query.category_id not in self._categories.ancestors(
            product.category_id
        ):
            return False
        return not query.keyword or _matches_keyword(query.keyword, product.name, product.code)

    async def get_by_ids(
        self,
        ids: Sequence[str],
        response_group: ItemResponseGroup = ItemResponseGroup.ITEM_INFO,
    ) -> list[Product]:
        return [
            self._project(self._products[i], response_group)
            for i in dict.fromkeys(ids)
            if i in self._products
        ]

    async def save(self, products: Sequence[Product]) -> None:
        for product in products:
            stored = copy.deepcopy(product)
            stored.outline = None
            self._products[stored.id] = stored

    async def delete(self, ids: Sequence[str]) -> None:
        for product_id in ids:
            self._products.pop(product_id, None)

    async def find(
        self,
        query: EntryQuery,
        response_group: ItemResponseGroup = ItemResponseGroup.ITEM_INFO,
    ) -> tuple[list[Product], int]:
        matched = sorted(
            (p for p in self._products.values() if self._matches(p, query)),
            key=lambda p: (p.name.lower(), p.id),
        )
        return [self._project(p, response_group) for p in _page(matched, query)], len(matched)


def create_memory_entry_store() -> EntryStore:
    """Create an empty in-memory entry store."""
    categories = InMemoryCategoryRepository()
    return EntryStore(
        catalogs=InMemoryCatalogRepository(),
        categories=categories,
        products=InMemoryProductRepository(categories),
    )
