"""List entry API endpoints.

Search, link, move and delete catalog entries through one
category-and-product listing.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response, status

from listentries.api.schemas import (
    AffectedResponse,
    BulkLinkCreationRequestSchema,
    CategoryListEntrySchema,
    ErrorResponse,
    LinkSchema,
    ListEntrySearchResponse,
    MoveRequestSchema,
    ProductListEntrySchema,
    SearchCriteriaSchema,
)
from listentries.application.bulk_service import BulkMutationService, get_bulk_mutation_service
from listentries.application.move_service import MoveService, get_move_service
from listentries.application.search_service import HybridSearchService, get_hybrid_search_service
from listentries.application.slugs import get_slug
from listentries.domain.exceptions import AuthorizationDeniedError
from listentries.domain.list_entries import CategoryListEntry, ListEntry
from listentries.infrastructure.authorization import (
    AuthorizationGate,
    Permission,
    PermissionAuthorizationGate,
    Principal,
    describe_subject,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/catalog", tags=["List entries"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_gate(request: Request) -> AuthorizationGate:
    """Get authorization gate for the authenticated principal."""
    principal: Principal = request.state.principal
    return PermissionAuthorizationGate(principal)


def get_search_service() -> HybridSearchService:
    """Get hybrid search service."""
    return get_hybrid_search_service()


def get_bulk_service(
    gate: Annotated[AuthorizationGate, Depends(get_gate)],
) -> BulkMutationService:
    """Get bulk mutation service bound to the caller's gate."""
    return get_bulk_mutation_service(gate)


def get_mover(gate: Annotated[AuthorizationGate, Depends(get_gate)]) -> MoveService:
    """Get move service bound to the caller's gate."""
    return get_move_service(gate)


# ============================================================================
# Converters
# ============================================================================


def entry_to_response(entry: ListEntry) -> CategoryListEntrySchema | ProductListEntrySchema:
    """Convert a list entry to its response schema."""
    links = [LinkSchema.from_domain(link) for link in entry.links]
    if isinstance(entry, CategoryListEntry):
        return CategoryListEntrySchema(
            id=entry.id,
            name=entry.name,
            catalog_id=entry.catalog_id,
            code=entry.code,
            parent_id=entry.parent_id,
            outline=entry.outline,
            is_active=entry.is_active,
            links=links,
        )
    return ProductListEntrySchema(
        id=entry.id,
        name=entry.name,
        catalog_id=entry.catalog_id,
        code=entry.code,
        category_id=entry.category_id,
        outline=entry.outline,
        links=links,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/listentries",
    response_model=ListEntrySearchResponse,
    responses=ERROR_RESPONSES,
    summary="Search list entries",
    description="Search categories and products as one paged listing, categories first.",
)
async def search_list_entries(
    criteria: SearchCriteriaSchema,
    gate: Annotated[AuthorizationGate, Depends(get_gate)],
    service: Annotated[HybridSearchService, Depends(get_search_service)],
) -> ListEntrySearchResponse:
    """Search list entries.

    Args:
        criteria: Search criteria.
        gate: Authorization gate.
        service: Hybrid search service.

    Returns:
        Page of list entries with the total across both kinds.

    Raises:
        AuthorizationDeniedError: If read is denied for the criteria.
    """
    domain_criteria = criteria.to_domain()
    if not await gate.authorize(domain_criteria, Permission.READ):
        raise AuthorizationDeniedError(
            Permission.READ.value, describe_subject(domain_criteria)
        )

    result = await service.search(domain_criteria)
    return ListEntrySearchResponse(
        results=[entry_to_response(entry) for entry in result.results],
        total_count=result.total_count,
    )


@router.post(
    "/listentrylinks",
    response_model=AffectedResponse,
    responses=ERROR_RESPONSES,
    summary="Create links",
    description="Link entries into additional catalogs or categories. Existing links are kept.",
)
async def create_links(
    links: list[LinkSchema],
    service: Annotated[BulkMutationService, Depends(get_bulk_service)],
) -> AffectedResponse:
    """Create links, skipping ones already present."""
    added = await service.create_links([link.to_domain() for link in links])
    return AffectedResponse(affected=added)


@router.post(
    "/listentrylinks/bulkcreate",
    response_model=AffectedResponse,
    responses=ERROR_RESPONSES,
    summary="Bulk create links",
    description="Link every entry matching the criteria into the target, page by page.",
)
async def bulk_create_links(
    request: BulkLinkCreationRequestSchema,
    service: Annotated[BulkMutationService, Depends(get_bulk_service)],
) -> AffectedResponse:
    """Create links for every entry matching the request criteria."""
    result = await service.bulk_create_links(request.to_domain())
    return AffectedResponse(affected=result.links_added)


@router.post(
    "/listentrylinks/delete",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERROR_RESPONSES,
    summary="Delete links",
    description="Remove links from the entries they name. Missing links are ignored.",
)
async def delete_links(
    links: list[LinkSchema],
    service: Annotated[BulkMutationService, Depends(get_bulk_service)],
) -> Response:
    """Delete links."""
    await service.delete_links([link.to_domain() for link in links])
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/listentries/move",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse}},
    summary="Move list entries",
    description="Move categories and products into another catalog or category.",
)
async def move_list_entries(
    request: MoveRequestSchema,
    service: Annotated[MoveService, Depends(get_mover)],
) -> Response:
    """Move entries; nothing is persisted unless every entry can be moved."""
    await service.move(request.to_domain())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/listentries/delete",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERROR_RESPONSES,
    summary="Delete list entries",
    description="Delete the entries named by, or matching, the criteria in batches.",
)
async def delete_list_entries(
    criteria: SearchCriteriaSchema,
    service: Annotated[BulkMutationService, Depends(get_bulk_service)],
) -> Response:
    """Delete entries by criteria."""
    deleted = await service.delete_by_criteria(criteria.to_domain())
    logger.info("List entries deleted", deleted=deleted)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/getslug",
    response_model=str,
    summary="Generate slug",
    description="Generate a URL slug from free text.",
)
async def generate_slug(
    text: Annotated[str, Query(description="Text to slugify")] = "",
) -> str:
    """Generate a URL slug."""
    return get_slug(text)
