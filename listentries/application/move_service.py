"""Move coordination service.

Moves run in two phases. Every mover first prepares a batch: it loads
the entries of its kind and rewrites their parent fields on copies.
Only after every mover has prepared does the coordinator confirm the
batches, which is the first point anything is persisted.
"""

import copy
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from listentries.domain.entities import (
    Category,
    CategoryResponseGroup,
    EntryKind,
    ItemResponseGroup,
    Product,
)
from listentries.domain.exceptions import (
    AuthorizationDeniedError,
    EntityNotFoundError,
    InvalidMoveTargetError,
    ValidationFailedError,
)
from listentries.domain.list_entries import MoveRequest
from listentries.domain.state_machines import MoveStatus, validate_move_transition
from listentries.infrastructure.authorization import (
    AuthorizationGate,
    Permission,
    describe_subject,
)
from listentries.infrastructure.store import (
    CategoryRepository,
    EntryStore,
    ProductRepository,
    get_entry_store,
)

logger = structlog.get_logger()

T = TypeVar("T", Category, Product)


# ============================================================================
# Move Batch
# ============================================================================


@dataclass
class MoveBatch(Generic[T]):
    """Prepared, not yet persisted, entities of one kind.

    Attributes:
        kind: Entry kind of every entity in the batch.
        entities: Copies with catalog and parent fields rewritten.
        sources: The entities as loaded, before rewriting.
        id: Batch identifier (for logs and transition errors).
        status: Lifecycle state.
    """

    kind: EntryKind
    entities: list[T]
    sources: list[T] = field(default_factory=list)
    id: str = field(default_factory=lambda: f"move_{uuid.uuid4().hex[:12]}")
    status: MoveStatus = MoveStatus.PREPARED

    def transition_to(self, target: MoveStatus) -> None:
        """Advance the batch, rejecting invalid transitions."""
        validate_move_transition(self.id, self.status, target)
        self.status = target


# ============================================================================
# Movers
# ============================================================================


class ListEntryMover(Generic[T]):
    """Prepares and confirms moves for one entry kind."""

    kind: EntryKind

    async def _load(self, ids: list[str]) -> list[T]:
        raise NotImplementedError

    async def _save(self, entities: list[T]) -> None:
        raise NotImplementedError

    def _rewrite(self, entity: T, request: MoveRequest) -> None:
        raise NotImplementedError

    async def prepare_move(self, request: MoveRequest) -> MoveBatch[T]:
        """Build a batch of relocated copies. Persists nothing.

        Args:
            request: Move request; entries of other kinds are ignored.

        Returns:
            Prepared batch, possibly empty.

        Raises:
            EntityNotFoundError: If any requested id of this kind is unknown.
            ValidationFailedError: If the relocation is not allowed.
        """
        ids = list(dict.fromkeys(request.ids_of(self.kind)))
        loaded = await self._load(ids) if ids else []

        missing = sorted(set(ids) - {entity.id for entity in loaded})
        if missing:
            raise EntityNotFoundError(self.kind.value, missing)

        moved = []
        for entity in loaded:
            relocated = copy.deepcopy(entity)
            self._rewrite(relocated, request)
            moved.append(relocated)
        return MoveBatch(kind=self.kind, entities=moved, sources=loaded)

    async def confirm_move(self, batch: MoveBatch[T]) -> None:
        """Persist a prepared batch.

        Raises:
            InvalidStateTransitionError: If the batch is not prepared.
        """
        batch.transition_to(MoveStatus.CONFIRMED)
        if batch.entities:
            await self._save(batch.entities)
        logger.info(
            "Move batch confirmed",
            batch_id=batch.id,
            kind=batch.kind.value,
            entries=len(batch.entities),
        )

    def discard(self, batch: MoveBatch[T]) -> None:
        """Drop a prepared batch without persisting it."""
        batch.transition_to(MoveStatus.DISCARDED)


class CategoryMover(ListEntryMover[Category]):
    """Moves categories by rewriting ``catalog_id`` and ``parent_id``."""

    kind = EntryKind.CATEGORY

    def __init__(self, categories: CategoryRepository) -> None:
        self.categories = categories

    async def _load(self, ids: list[str]) -> list[Category]:
        return await self.categories.get_by_ids(
            ids, CategoryResponseGroup.INFO | CategoryResponseGroup.WITH_LINKS
        )

    async def _save(self, entities: list[Category]) -> None:
        await self.categories.save(entities)

    def _rewrite(self, entity: Category, request: MoveRequest) -> None:
        if request.category_id == entity.id:
            raise ValidationFailedError(
                f"Category {entity.id} cannot be moved into itself", field="category_id"
            )
        entity.catalog_id = request.catalog_id
        entity.parent_id = request.category_id


class ProductMover(ListEntryMover[Product]):
    """Moves products by rewriting ``catalog_id`` and ``category_id``."""

    kind = EntryKind.PRODUCT

    def __init__(self, products: ProductRepository) -> None:
        self.products = products

    async def _load(self, ids: list[str]) -> list[Product]:
        return await self.products.get_by_ids(
            ids, ItemResponseGroup.ITEM_INFO | ItemResponseGroup.LINKS
        )

    async def _save(self, entities: list[Product]) -> None:
        await self.products.save(entities)

    def _rewrite(self, entity: Product, request: MoveRequest) -> None:
        entity.catalog_id = request.catalog_id
        entity.category_id = request.category_id


# ============================================================================
# Coordinator
# ============================================================================


class MoveService:
    """Validates move requests and drives every mover through both phases."""

    def __init__(
        self,
        store: EntryStore,
        movers: Sequence[ListEntryMover],
        gate: AuthorizationGate,
    ) -> None:
        """Initialize service.

        Args:
            store: Entry store, used to validate targets.
            movers: One mover per entry kind.
            gate: Authorization gate for the calling principal.
        """
        self.store = store
        self.movers = list(movers)
        self.gate = gate

    async def _validate(self, request: MoveRequest) -> None:
        if not request.catalog_id:
            raise ValidationFailedError(
                "Target catalog identifier should be specified.", field="catalog_id"
            )

        catalogs = await self.store.catalogs.get_by_ids([request.catalog_id])
        if not catalogs:
            raise EntityNotFoundError("catalog", [request.catalog_id])
        if catalogs[0].is_virtual:
            raise InvalidMoveTargetError(request.catalog_id)

        if request.category_id is None:
            return

        targets = await self.store.categories.get_by_ids(
            [request.category_id], CategoryResponseGroup.INFO | CategoryResponseGroup.WITH_OUTLINES
        )
        if not targets:
            raise EntityNotFoundError("category", [request.category_id])
        target = targets[0]
        if target.catalog_id != request.catalog_id:
            raise ValidationFailedError(
                f"Category {target.id} does not belong to catalog {request.catalog_id}",
                field="category_id",
            )

        # Outline is catalog/root/.../target; skip the catalog segment.
        lineage = set((target.outline or "").split("/")[1:])
        cycle = lineage & set(request.ids_of(EntryKind.CATEGORY))
        if cycle:
            raise ValidationFailedError(
                f"Cannot move categories under themselves: {', '.join(sorted(cycle))}",
                field="category_id",
            )

    async def move(self, request: MoveRequest) -> int:
        """Move entries to a new catalog or category.

        Args:
            request: Target and entries.

        Returns:
            Number of entries moved.

        Raises:
            AuthorizationDeniedError: If update is denied for the request or
                for any of the entries where they currently live.
            ValidationFailedError: If the target is missing or invalid.
            InvalidMoveTargetError: If the target catalog is virtual.
            EntityNotFoundError: If the target or any entry does not exist.
        """
        if not await self.gate.authorize(request, Permission.UPDATE):
            raise AuthorizationDeniedError(Permission.UPDATE.value, describe_subject(request))

        await self._validate(request)

        prepared: list[tuple[ListEntryMover, MoveBatch]] = []
        try:
            for mover in self.movers:
                prepared.append((mover, await mover.prepare_move(request)))

            sources = [entity for _, batch in prepared for entity in batch.sources]
            if sources and not await self.gate.authorize(sources, Permission.UPDATE):
                raise AuthorizationDeniedError(
                    Permission.UPDATE.value, describe_subject(sources)
                )
        except Exception:
            for mover, batch in prepared:
                mover.discard(batch)
            raise

        for mover, batch in prepared:
            await mover.confirm_move(batch)

        moved = sum(len(batch.entities) for _, batch in prepared)
        logger.info(
            "Entries moved",
            catalog_id=request.catalog_id,
            category_id=request.category_id,
            moved=moved,
        )
        return moved


def get_move_service(gate: AuthorizationGate) -> MoveService:
    """Get move service for a caller's gate.

    Args:
        gate: Authorization gate for the calling principal.

    Returns:
        MoveService instance.
    """
    store = get_entry_store()
    return MoveService(
        store=store,
        movers=[CategoryMover(store.categories), ProductMover(store.products)],
        gate=gate,
    )
