"""Bulk mutation application service.

Link creation, link deletion and delete-by-criteria all follow
load -> authorize -> mutate -> persist. Authorization is checked against
the entities actually loaded, since requested ids may resolve to
entries the caller cannot see.

None of these operations is transactional. Batches already persisted
stay persisted when a later batch fails or is denied; every operation
is safe to re-run, except that re-running bulk link creation appends
the same links again.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from listentries.application.search_service import (
    HybridSearchService,
    ListEntrySearchService,
    get_hybrid_search_service,
    get_list_entry_search_service,
)
from listentries.domain.entities import (
    Category,
    CategoryResponseGroup,
    EntryKind,
    ItemResponseGroup,
    Link,
    Product,
)
from listentries.domain.exceptions import AuthorizationDeniedError, ValidationFailedError
from listentries.domain.list_entries import BulkLinkCreationRequest, SearchCriteria
from listentries.infrastructure.authorization import (
    AuthorizationGate,
    Permission,
    describe_subject,
)
from listentries.infrastructure.config import settings
from listentries.infrastructure.store import EntryStore, get_entry_store

logger = structlog.get_logger()

LINKED_PRODUCT_RESPONSE_GROUP = ItemResponseGroup.ITEM_INFO | ItemResponseGroup.LINKS
LINKED_CATEGORY_RESPONSE_GROUP = CategoryResponseGroup.INFO | CategoryResponseGroup.WITH_LINKS

DELETABLE_KINDS = frozenset({EntryKind.CATEGORY, EntryKind.PRODUCT})


@dataclass
class BulkLinkResult:
    """Outcome of a criteria-driven link creation."""

    links_added: int = 0
    pages: int = 0


class BulkMutationService:
    """Application service for link and delete workflows."""

    def __init__(
        self,
        store: EntryStore,
        gate: AuthorizationGate,
        search: HybridSearchService,
        list_entry_search: ListEntrySearchService,
        delete_batch_size: int = 20,
    ) -> None:
        """Initialize service.

        Args:
            store: Entry store.
            gate: Authorization gate for the calling principal.
            search: Hybrid search, used to resolve delete targets.
            list_entry_search: Direct search, used to page bulk link targets.
            delete_batch_size: Ids per delete batch.
        """
        if delete_batch_size < 1:
            raise ValueError("delete_batch_size must be positive")
        self.store = store
        self.gate = gate
        self.search = search
        self.list_entry_search = list_entry_search
        self.delete_batch_size = delete_batch_size

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    async def load_entries(self, ids: Sequence[str]) -> list[Product | Category]:
        """Load linkable entities by id.

        Ids resolve against products first; only the ids left over are
        looked up as categories, so no id is loaded as both kinds.

        Args:
            ids: Entry ids of either kind.

        Returns:
            Products followed by categories. Unknown ids are dropped.
        """
        if not ids:
            return []
        products = await self.store.products.get_by_ids(ids, LINKED_PRODUCT_RESPONSE_GROUP)
        product_ids = {p.id for p in products}
        remaining = [i for i in dict.fromkeys(ids) if i not in product_ids]
        categories = await self.store.categories.get_by_ids(
            remaining, LINKED_CATEGORY_RESPONSE_GROUP
        )
        return [*products, *categories]

    async def save_entries(self, entities: Sequence[Product | Category]) -> None:
        """Persist entities with one batched save per kind."""
        products = [e for e in entities if isinstance(e, Product)]
        if products:
            await self.store.products.save(products)

        categories = [e for e in entities if isinstance(e, Category)]
        if categories:
            await self.store.categories.save(categories)

    async def _authorize(self, subject: object, permission: Permission) -> None:
        if not await self.gate.authorize(subject, permission):
            raise AuthorizationDeniedError(permission.value, describe_subject(subject))

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def create_links(self, links: Sequence[Link]) -> int:
        """Attach links to the entries they name.

        A link already present on its entry (by value) is not added again,
        so repeating the call is harmless.

        Args:
            links: Links to add.

        Returns:
            Number of links actually added.

        Raises:
            AuthorizationDeniedError: If update is denied for the loaded entries.
        """
        entities = await self.load_entries([link.entry_id for link in links])
        await self._authorize(entities, Permission.UPDATE)

        by_id = {entity.id: entity for entity in entities}
        added = 0
        for link in links:
            entity = by_id.get(link.entry_id)
            if entity is not None and link not in entity.links:
                entity.links.append(link)
                added += 1

        if entities:
            await self.save_entries(entities)

        logger.info("Links created", requested=len(links), added=added, entries=len(entities))
        return added

    async def bulk_create_links(self, request: BulkLinkCreationRequest) -> BulkLinkResult:
        """Link every entry matching the request criteria into a target.

        Pages through the direct search one window at a time. Each page is
        loaded, authorized and persisted before the next is fetched. Links
        are appended without checking for an equal link.

        Args:
            request: Target and criteria.

        Returns:
            Counts of links added and pages processed.

        Raises:
            ValidationFailedError: If no target catalog is given.
            AuthorizationDeniedError: If update is denied for a page; pages
                before it remain persisted.
        """
        if not request.catalog_id:
            raise ValidationFailedError(
                "Target catalog identifier should be specified.", field="catalog_id"
            )

        result = BulkLinkResult()
        criteria = request.search_criteria
        while True:
            page = await self.list_entry_search.search(criteria)
            entities = await self.load_entries([entry.id for entry in page.results])
            if not entities:
                break

            await self._authorize(entities, Permission.UPDATE)

            for entity in entities:
                entity.links.append(
                    Link(
                        entry_id=entity.id,
                        catalog_id=request.catalog_id,
                        category_id=request.category_id,
                        entry_kind=entity.kind,
                    )
                )
            await self.save_entries(entities)

            result.links_added += len(entities)
            result.pages += 1
            logger.info(
                "Bulk link page persisted",
                page=result.pages,
                skip=criteria.skip,
                entries=len(entities),
            )

            criteria = criteria.with_window(criteria.window.next_page())
            if criteria.skip >= page.total_count:
                break

        logger.info(
            "Bulk link creation finished",
            catalog_id=request.catalog_id,
            category_id=request.category_id,
            links_added=result.links_added,
            pages=result.pages,
        )
        return result

    async def delete_links(self, links: Sequence[Link]) -> int:
        """Detach links from the entries they name.

        Every link equal to a requested one is removed; links that are not
        present are ignored.

        Args:
            links: Links to remove.

        Returns:
            Number of links removed.

        Raises:
            AuthorizationDeniedError: If delete is denied for the loaded entries.
        """
        entities = await self.load_entries([link.entry_id for link in links])
        await self._authorize(entities, Permission.DELETE)

        by_id = {entity.id: entity for entity in entities}
        changed: dict[str, Product | Category] = {}
        removed = 0
        for link in links:
            entity = by_id.get(link.entry_id)
            if entity is None:
                continue
            kept = [existing for existing in entity.links if existing != link]
            if len(kept) != len(entity.links):
                removed += len(entity.links) - len(kept)
                entity.links = kept
                changed[entity.id] = entity

        if changed:
            await self.save_entries(list(changed.values()))

        logger.info("Links deleted", requested=len(links), removed=removed, entries=len(changed))
        return removed

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_by_criteria(self, criteria: SearchCriteria) -> int:
        """Delete the entries named by, or matching, the criteria.

        Explicit ``object_ids`` are deleted as given. Otherwise the ids of
        the category and product entries returned by a search are used.
        Ids are processed in batches; within a batch, products are deleted
        first and the remaining ids are deleted as categories.

        Args:
            criteria: Criteria naming the entries.

        Returns:
            Number of entities deleted.

        Raises:
            AuthorizationDeniedError: If delete is denied for the criteria.
        """
        await self._authorize(criteria, Permission.DELETE)

        if criteria.object_ids:
            ids = list(criteria.object_ids)
        else:
            found = await self.search.search(criteria)
            ids = [entry.id for entry in found.results if entry.kind in DELETABLE_KINDS]

        deleted = 0
        for start in range(0, len(ids), self.delete_batch_size):
            batch = ids[start : start + self.delete_batch_size]

            products = await self.store.products.get_by_ids(batch, ItemResponseGroup.NONE)
            product_ids = [p.id for p in products]
            if product_ids:
                await self.store.products.delete(product_ids)

            remaining = [i for i in batch if i not in set(product_ids)]
            categories = await self.store.categories.get_by_ids(
                remaining, CategoryResponseGroup.NONE
            )
            category_ids = [c.id for c in categories]
            if category_ids:
                await self.store.categories.delete(category_ids)

            deleted += len(product_ids) + len(category_ids)
            logger.info(
                "Delete batch processed",
                batch_start=start,
                batch_size=len(batch),
                products=len(product_ids),
                categories=len(category_ids),
            )

        return deleted


def get_bulk_mutation_service(gate: AuthorizationGate) -> BulkMutationService:
    """Get bulk mutation service for a caller's gate.

    Args:
        gate: Authorization gate for the calling principal.

    Returns:
        BulkMutationService instance.
    """
    return BulkMutationService(
        store=get_entry_store(),
        gate=gate,
        search=get_hybrid_search_service(),
        list_entry_search=get_list_entry_search_service(),
        delete_batch_size=settings.delete_batch_size,
    )
