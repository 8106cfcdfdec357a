"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from listentries.application.bulk_service import (
    BulkMutationService,
    get_bulk_mutation_service,
)
from listentries.application.move_service import (
    CategoryMover,
    MoveService,
    ProductMover,
    get_move_service,
)
from listentries.application.search_service import (
    HybridSearchService,
    ListEntrySearchService,
    get_hybrid_search_service,
    get_list_entry_search_service,
)
from listentries.application.slugs import get_slug

__all__ = [
    "BulkMutationService",
    "get_bulk_mutation_service",
    "CategoryMover",
    "MoveService",
    "ProductMover",
    "get_move_service",
    "HybridSearchService",
    "ListEntrySearchService",
    "get_hybrid_search_service",
    "get_list_entry_search_service",
    "get_slug",
]
