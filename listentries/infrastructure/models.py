"""SQLAlchemy models for the catalog entry store.

Defines catalog, category, product and link tables. Links are owned by
their entry: they are rewritten whenever the entry is saved.
"""

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from listentries.infrastructure.database import Base


class CatalogRecord(Base):
    """Catalog row."""

    __tablename__ = "catalogs"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    is_virtual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<CatalogRecord(id={self.id}, virtual={self.is_virtual})>"


class CategoryRecord(Base):
    """Category row.

    Attributes:
        id: Category identifier.
        catalog_id: Owning catalog.
        parent_id: Parent category, NULL at the catalog root.
        name: Display name.
        code: Short unique code.
        is_active: Visibility flag.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    catalog_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("catalogs.id"), nullable=False, index=True
    )
    parent_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    code: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<CategoryRecord(id={self.id}, name={self.name[:30]})>"


class ProductRecord(Base):
    """Product row.

    Attributes:
        id: Product identifier.
        catalog_id: Owning catalog.
        category_id: Owning category, NULL at the catalog root.
        name: Display name.
        code: SKU.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    catalog_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("catalogs.id"), nullable=False, index=True
    )
    category_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    code: Mapped[str | None] = mapped_column(String(128), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductRecord(id={self.id}, name={self.name[:30]})>"


class LinkRecord(Base):
    """Link of a category or product into another catalog/category.

    Duplicates are allowed: bulk link creation appends without checking.
    """

    __tablename__ = "entry_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    entry_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    catalog_id: Mapped[str] = mapped_column(String(128), nullable=False)
    category_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
