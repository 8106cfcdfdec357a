"""Catalog entities managed through list entries.

Catalogs are read-only containers. Categories and products are the two
linkable entity kinds; both carry a ``links`` list that attaches them to
additional parent catalogs or categories.
"""

from dataclasses import dataclass, field
from enum import Enum, Flag, auto


class EntryKind(str, Enum):
    """Kinds of entities that can appear as list entries."""

    CATEGORY = "category"
    PRODUCT = "product"


class CategoryResponseGroup(Flag):
    """Parts of a category a load should return."""

    NONE = 0
    INFO = auto()
    WITH_LINKS = auto()
    WITH_OUTLINES = auto()


class ItemResponseGroup(Flag):
    """Parts of a product a load should return."""

    NONE = 0
    ITEM_INFO = auto()
    LINKS = auto()
    OUTLINES = auto()


@dataclass(frozen=True)
class Link:
    """Association of an entry with a parent catalog or category.

    Two links are equal when they attach the same entry to the same
    catalog/category pair. ``entry_kind`` is informational only.

    Attributes:
        entry_id: Linked category or product.
        catalog_id: Parent catalog.
        category_id: Parent category, None for the catalog root.
        entry_kind: Kind of the linked entry, when known.
    """

    entry_id: str
    catalog_id: str
    category_id: str | None = None
    entry_kind: EntryKind | None = field(default=None, compare=False)


@dataclass
class Catalog:
    """Catalog container.

    Attributes:
        id: Catalog identifier.
        name: Display name.
        is_virtual: Virtual catalogs only aggregate links and cannot own entries.
    """

    id: str
    name: str
    is_virtual: bool = False


@dataclass
class Category:
    """Hierarchical category within a catalog.

    Attributes:
        id: Category identifier.
        catalog_id: Owning catalog.
        name: Display name.
        code: Short unique code.
        parent_id: Parent category, None at the catalog root.
        is_active: Whether the category is visible.
        outline: Materialized path ``catalog/ancestor/.../id``, filled on request.
        links: Additional parents this category is linked into.
    """

    id: str
    catalog_id: str
    name: str
    code: str | None = None
    parent_id: str | None = None
    is_active: bool = True
    outline: str | None = None
    links: list[Link] = field(default_factory=list)

    kind = EntryKind.CATEGORY


@dataclass
class Product:
    """Leaf product within a catalog.

    Attributes:
        id: Product identifier.
        catalog_id: Owning catalog.
        name: Display name.
        code: SKU.
        category_id: Owning category, None at the catalog root.
        outline: Materialized path ``catalog/ancestor/.../id``, filled on request.
        links: Additional parents this product is linked into.
    """

    id: str
    catalog_id: str
    name: str
    code: str | None = None
    category_id: str | None = None
    outline: str | None = None
    links: list[Link] = field(default_factory=list)

    kind = EntryKind.PRODUCT


def build_outline(catalog_id: str, ancestor_ids: list[str], entity_id: str) -> str:
    """Build a materialized outline path.

    Args:
        catalog_id: Root catalog.
        ancestor_ids: Category ids from the root down to the direct parent.
        entity_id: Id of the entity the outline belongs to.

    Returns:
        Slash-separated outline.
    """
    return "/".join([catalog_id, *ancestor_ids, entity_id])
