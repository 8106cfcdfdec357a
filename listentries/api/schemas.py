"""API schemas for the list entry API.

Pydantic models for request/response validation and serialization.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from listentries.domain.entities import EntryKind, Link
from listentries.domain.list_entries import (
    BulkLinkCreationRequest,
    MoveEntry,
    MoveRequest,
    PaginationWindow,
    SearchCriteria,
)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict | list = Field(default_factory=dict, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class AffectedResponse(BaseModel):
    """Count of entries or links touched by a mutation."""

    affected: int = Field(..., ge=0, description="Number of items affected")


# ============================================================================
# Criteria Schemas
# ============================================================================


class SearchCriteriaSchema(BaseModel):
    """List entry search criteria."""

    keyword: str | None = Field(default=None, description="Free-text keyword")
    object_ids: list[str] | None = Field(
        default=None, description="Explicit ids; keyword is ignored when non-empty"
    )
    catalog_id: str | None = Field(default=None, description="Catalog filter")
    category_id: str | None = Field(
        default=None, description="Parent category; catalog root when absent"
    )
    store_id: str | None = Field(default=None, description="Store filter (indexed search only)")
    search_in_children: bool = Field(
        default=False, description="Match the whole subtree instead of direct children"
    )
    sort: str | None = Field(default=None, description="Sort instruction, e.g. 'name:desc'")
    skip: int = Field(default=0, ge=0, description="Rows to skip")
    take: int = Field(default=20, ge=0, le=1000, description="Page size")

    def to_domain(self) -> SearchCriteria:
        """Convert to domain criteria."""
        return SearchCriteria(
            keyword=self.keyword,
            object_ids=tuple(self.object_ids) if self.object_ids else None,
            catalog_id=self.catalog_id,
            category_id=self.category_id,
            store_id=self.store_id,
            search_in_children=self.search_in_children,
            sort=self.sort,
            window=PaginationWindow(skip=self.skip, take=self.take),
        )


# ============================================================================
# Link Schemas
# ============================================================================


class LinkSchema(BaseModel):
    """Link of an entry into a catalog or category."""

    entry_id: str = Field(..., min_length=1, description="Linked category or product id")
    catalog_id: str = Field(..., min_length=1, description="Parent catalog id")
    category_id: str | None = Field(default=None, description="Parent category id")
    entry_kind: EntryKind | None = Field(default=None, description="Kind of the linked entry")

    def to_domain(self) -> Link:
        """Convert to a domain link."""
        return Link(
            entry_id=self.entry_id,
            catalog_id=self.catalog_id,
            category_id=self.category_id,
            entry_kind=self.entry_kind,
        )

    @classmethod
    def from_domain(cls, link: Link) -> "LinkSchema":
        """Convert from a domain link."""
        return cls(
            entry_id=link.entry_id,
            catalog_id=link.catalog_id,
            category_id=link.category_id,
            entry_kind=link.entry_kind,
        )


class BulkLinkCreationRequestSchema(BaseModel):
    """Request to link every entry matching criteria into a target."""

    catalog_id: str | None = Field(default=None, description="Target catalog id")
    category_id: str | None = Field(default=None, description="Target category id")
    search_criteria: SearchCriteriaSchema = Field(
        default_factory=SearchCriteriaSchema, description="Criteria selecting the entries"
    )

    def to_domain(self) -> BulkLinkCreationRequest:
        """Convert to a domain request."""
        return BulkLinkCreationRequest(
            catalog_id=self.catalog_id,
            category_id=self.category_id,
            search_criteria=self.search_criteria.to_domain(),
        )


# ============================================================================
# Move Schemas
# ============================================================================


class MoveEntrySchema(BaseModel):
    """Entry to move."""

    id: str = Field(..., min_length=1, description="Entry id")
    type: EntryKind = Field(..., description="Entry kind")


class MoveRequestSchema(BaseModel):
    """Request to relocate entries."""

    catalog_id: str | None = Field(default=None, description="Target catalog id")
    category_id: str | None = Field(
        default=None, description="Target category id; catalog root when absent"
    )
    entries: list[MoveEntrySchema] = Field(default_factory=list, description="Entries to move")

    def to_domain(self) -> MoveRequest:
        """Convert to a domain request."""
        return MoveRequest(
            catalog_id=self.catalog_id,
            category_id=self.category_id,
            entries=tuple(MoveEntry(id=e.id, kind=e.type) for e in self.entries),
        )


# ============================================================================
# List Entry Schemas
# ============================================================================


class CategoryListEntrySchema(BaseModel):
    """Category as a list entry."""

    type: Literal["category"] = "category"
    id: str
    name: str
    catalog_id: str
    code: str | None = None
    parent_id: str | None = None
    outline: str | None = None
    is_active: bool = True
    links: list[LinkSchema] = Field(default_factory=list)


class ProductListEntrySchema(BaseModel):
    """Product as a list entry."""

    type: Literal["product"] = "product"
    id: str
    name: str
    catalog_id: str
    code: str | None = None
    category_id: str | None = None
    outline: str | None = None
    links: list[LinkSchema] = Field(default_factory=list)


ListEntrySchema = Annotated[
    CategoryListEntrySchema | ProductListEntrySchema,
    Field(discriminator="type"),
]


class ListEntrySearchResponse(BaseModel):
    """Page of list entries."""

    results: list[ListEntrySchema] = Field(
        default_factory=list, description="Categories first, then products"
    )
    total_count: int = Field(..., ge=0, description="Total matches across both kinds")
