"""Entry store backed by async SQLAlchemy.

Each repository call runs in its own session and commits on success.
Subtree filters use a recursive CTE over ``categories.parent_id``.
"""

from collections.abc import Sequence
from typing import Any, ClassVar

from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listentries.domain.entities import (
    Catalog,
    Category,
    CategoryResponseGroup,
    EntryKind,
    ItemResponseGroup,
    Link,
    Product,
    build_outline,
)
from listentries.infrastructure.database import get_session_factory
from listentries.infrastructure.models import (
    CatalogRecord,
    CategoryRecord,
    LinkRecord,
    ProductRecord,
)
from listentries.infrastructure.store import EntryQuery, EntryStore


def subtree_ids(category_id: str) -> Select:
    """Select ids of a category and all of its descendants."""
    tree = (
        select(CategoryRecord.id)
        .where(CategoryRecord.id == category_id)
        .cte("subtree", recursive=True)
    )
    tree = tree.union_all(select(CategoryRecord.id).where(CategoryRecord.parent_id == tree.c.id))
    return select(tree.c.id)


async def ancestor_ids(session: AsyncSession, category_id: str | None) -> list[str]:
    """Category ids from the root down to ``category_id`` inclusive."""
    chain: list[str] = []
    current = category_id
    while current is not None and current not in chain:
        chain.append(current)
        result = await session.execute(
            select(CategoryRecord.parent_id).where(CategoryRecord.id == current)
        )
        current = result.scalar_one_or_none()
    return list(reversed(chain))


def keyword_conditions(keyword: str, *columns: Any) -> list[Any]:
    """One OR-condition per keyword term over the given columns."""
    return [
        or_(*(column.ilike(f"%{term}%") for column in columns)) for term in keyword.split()
    ]


class SqlCatalogRepository:
    """Read access to catalogs."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_by_ids(self, ids: Sequence[str]) -> list[Catalog]:
        if not ids:
            return []
        async with self.session_factory() as session:
            result = await session.execute(select(CatalogRecord).where(CatalogRecord.id.in_(ids)))
            return [
                Catalog(id=row.id, name=row.name, is_virtual=row.is_virtual)
                for row in result.scalars().all()
            ]


class _SqlEntryRepository:
    """Shared persistence for categories and products.

    Subclasses define the record type, the parent column and how rows
    map to entities.
    """

    record: ClassVar[Any]
    kind: ClassVar[EntryKind]
    links_flag: ClassVar[Any]
    outlines_flag: ClassVar[Any]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    def _parent_column(self) -> Any:
        raise NotImplementedError

    def _parent_in_subtree(self, category_id: str) -> Any:
        raise NotImplementedError

    def _to_entity(self, row: Any, links: list[Link], outline: str | None) -> Any:
        raise NotImplementedError

    def _to_record(self, entity: Any) -> Any:
        raise NotImplementedError

    def _conditions(self, query: EntryQuery) -> list[Any]:
        record = self.record
        if query.object_ids is not None:
            return [record.id.in_(query.object_ids)]

        parent = self._parent_column()
        if query.children_only:
            owned = [parent == query.category_id if query.category_id else parent.is_(None)]
            if query.catalog_id is None:
                return owned
            owned.append(record.catalog_id == query.catalog_id)
            linked = select(LinkRecord.entry_id).where(
                LinkRecord.entry_kind == self.kind.value,
                LinkRecord.catalog_id == query.catalog_id,
                LinkRecord.category_id == query.category_id
                if query.category_id
                else LinkRecord.category_id.is_(None),
            )
            return [or_(and_(*owned), record.id.in_(linked))]

        conditions = []
        if query.catalog_id is not None:
            conditions.append(record.catalog_id == query.catalog_id)
        if query.category_id is not None:
            conditions.append(self._parent_in_subtree(query.category_id))
        if query.keyword:
            conditions.extend(keyword_conditions(query.keyword, record.name, record.code))
        return conditions

    async def _load_links(self, session: AsyncSession, ids: list[str]) -> dict[str, list[Link]]:
        links: dict[str, list[Link]] = {}
        if not ids:
            return links
        result = await session.execute(
            select(LinkRecord)
            .where(LinkRecord.entry_kind == self.kind.value, LinkRecord.entry_id.in_(ids))
            .order_by(LinkRecord.entry_id, LinkRecord.position)
        )
        for row in result.scalars().all():
            links.setdefault(row.entry_id, []).append(
                Link(
                    entry_id=row.entry_id,
                    catalog_id=row.catalog_id,
                    category_id=row.category_id,
                    entry_kind=self.kind,
                )
            )
        return links

    async def _to_entities(
        self, session: AsyncSession, rows: Sequence[Any], response_group: Any
    ) -> list:
        links = {}
        if self.links_flag in response_group:
            links = await self._load_links(session, [row.id for row in rows])
        entities = []
        for row in rows:
            outline = None
            if self.outlines_flag in response_group:
                parent_id = getattr(row, self._parent_column().key)
                ancestors = await ancestor_ids(session, parent_id)
                outline = build_outline(row.catalog_id, ancestors, row.id)
            entities.append(self._to_entity(row, links.get(row.id, []), outline))
        return entities

    async def get_by_ids(self, ids: Sequence[str], response_group: Any) -> list:
        if not ids:
            return []
        async with self.session_factory() as session:
            result = await session.execute(select(self.record).where(self.record.id.in_(ids)))
            order = {entity_id: index for index, entity_id in enumerate(ids)}
            rows = sorted(result.scalars().all(), key=lambda row: order[row.id])
            return await self._to_entities(session, rows, response_group)

    async def save(self, entities: Sequence[Any]) -> None:
        if not entities:
            return
        ids = [entity.id for entity in entities]
        async with self.session_factory() as session:
            for entity in entities:
                await session.merge(self._to_record(entity))
            await session.execute(
                delete(LinkRecord).where(
                    LinkRecord.entry_kind == self.kind.value, LinkRecord.entry_id.in_(ids)
                )
            )
            session.add_all(
                LinkRecord(
                    entry_id=entity.id,
                    entry_kind=self.kind.value,
                    catalog_id=link.catalog_id,
                    category_id=link.category_id,
                    position=position,
                )
                for entity in entities
                for position, link in enumerate(entity.links)
            )
            await session.commit()

    async def delete(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        async with self.session_factory() as session:
            await session.execute(
                delete(LinkRecord).where(
                    LinkRecord.entry_kind == self.kind.value, LinkRecord.entry_id.in_(ids)
                )
            )
            await session.execute(delete(self.record).where(self.record.id.in_(ids)))
            await session.commit()

    async def find(self, query: EntryQuery, response_group: Any) -> tuple[list, int]:
        conditions = self._conditions(query)
        async with self.session_factory() as session:
            total = await session.execute(
                select(func.count()).select_from(self.record).where(*conditions)
            )
            rows = await session.execute(
                select(self.record)
                .where(*conditions)
                .order_by(func.lower(self.record.name), self.record.id)
                .offset(query.window.skip)
                .limit(query.window.take)
            )
            entities = await self._to_entities(session, rows.scalars().all(), response_group)
            return entities, total.scalar_one()


class SqlCategoryRepository(_SqlEntryRepository):
    """Categories in the ``categories`` table."""

    record = CategoryRecord
    kind = EntryKind.CATEGORY
    links_flag = CategoryResponseGroup.WITH_LINKS
    outlines_flag = CategoryResponseGroup.WITH_OUTLINES

    def _parent_column(self) -> Any:
        return CategoryRecord.parent_id

    def _parent_in_subtree(self, category_id: str) -> Any:
        return CategoryRecord.parent_id.in_(subtree_ids(category_id))

    def _to_entity(self, row: CategoryRecord, links: list[Link], outline: str | None) -> Category:
        return Category(
            id=row.id,
            catalog_id=row.catalog_id,
            name=row.name,
            code=row.code,
            parent_id=row.parent_id,
            is_active=row.is_active,
            outline=outline,
            links=links,
        )

    def _to_record(self, entity: Category) -> CategoryRecord:
        return CategoryRecord(
            id=entity.id,
            catalog_id=entity.catalog_id,
            parent_id=entity.parent_id,
            name=entity.name,
            code=entity.code,
            is_active=entity.is_active,
        )

    async def get_by_ids(
        self,
        ids: Sequence[str],
        response_group: CategoryResponseGroup = CategoryResponseGroup.INFO,
    ) -> list[Category]:
        return await super().get_by_ids(ids, response_group)

    async def find(
        self,
        query: EntryQuery,
        response_group: CategoryResponseGroup = CategoryResponseGroup.INFO,
    ) -> tuple[list[Category], int]:
        return await super().find(query, response_group)


class SqlProductRepository(_SqlEntryRepository):
    """Products in the ``products`` table."""

    record = ProductRecord
    kind = EntryKind.PRODUCT
    links_flag = ItemResponseGroup.LINKS
    outlines_flag = ItemResponseGroup.OUTLINES

    def _parent_column(self) -> Any:
        return ProductRecord.category_id

    def _parent_in_subtree(self, category_id: str) -> Any:
        return ProductRecord.category_id.in_(subtree_ids(category_id))

    def _to_entity(self, row: ProductRecord, links: list[Link], outline: str | None) -> Product:
        return Product(
            id=row.id,
            catalog_id=row.catalog_id,
            name=row.name,
            code=row.code,
            category_id=row.category_id,
            outline=outline,
            links=links,
        )

    def _to_record(self, entity: Product) -> ProductRecord:
        return ProductRecord(
            id=entity.id,
            catalog_id=entity.catalog_id,
            category_id=entity.category_id,
            name=entity.name,
            code=entity.code,
        )

    async def get_by_ids(
        self,
        ids: Sequence[str],
        response_group: ItemResponseGroup = ItemResponseGroup.ITEM_INFO,
    ) -> list[Product]:
        return await super().get_by_ids(ids, response_group)

    async def find(
        self,
        query: EntryQuery,
        response_group: ItemResponseGroup = ItemResponseGroup.ITEM_INFO,
    ) -> tuple[list[Product], int]:
        return await super().find(query, response_group)


def create_sql_entry_store() -> EntryStore:
    """Create an entry store over the configured database."""
    session_factory = get_session_factory()
    return EntryStore(
        catalogs=SqlCatalogRepository(session_factory),
        categories=SqlCategoryRepository(session_factory),
        products=SqlProductRepository(session_factory),
    )
