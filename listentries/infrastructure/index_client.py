"""HTTP client for an external search index service.

The service exposes one endpoint per index:
``POST /indexes/{kind}/search`` taking the criteria as JSON and answering
``{"items": [...], "total_count": n}``.
"""

from typing import Any

import httpx
import structlog

from listentries.domain.entities import Category, EntryKind, Link, Product
from listentries.infrastructure.indexed_search import IndexedSearchCriteria, IndexedSearchResult

logger = structlog.get_logger()


class IndexedSearchError(Exception):
    """Error from the search index service."""

    def __init__(self, kind: str, message: str, status_code: int | None = None) -> None:
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{kind} index] {message}")


def _links_from_response(data: dict[str, Any], kind: EntryKind) -> list[Link]:
    return [
        Link(
            entry_id=data["id"],
            catalog_id=link["catalog_id"],
            category_id=link.get("category_id"),
            entry_kind=kind,
        )
        for link in data.get("links", [])
    ]


def category_from_response(data: dict[str, Any]) -> Category:
    """Create a category from an index hit."""
    return Category(
        id=data["id"],
        catalog_id=data["catalog_id"],
        name=data.get("name", ""),
        code=data.get("code"),
        parent_id=data.get("parent_id"),
        is_active=data.get("is_active", True),
        outline=data.get("outline"),
        links=_links_from_response(data, EntryKind.CATEGORY),
    )


def product_from_response(data: dict[str, Any]) -> Product:
    """Create a product from an index hit."""
    return Product(
        id=data["id"],
        catalog_id=data["catalog_id"],
        name=data.get("name", ""),
        code=data.get("code"),
        category_id=data.get("category_id"),
        outline=data.get("outline"),
        links=_links_from_response(data, EntryKind.PRODUCT),
    )


class IndexClient:
    """HTTP client for one index of the search service."""

    def __init__(
        self,
        base_url: str,
        kind: EntryKind,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize index client.

        Args:
            base_url: Search service base URL.
            kind: Index to query.
            timeout: Request timeout in seconds.
            transport: Optional transport override.
        """
        self.base_url = base_url
        self.kind = kind
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(self, criteria: IndexedSearchCriteria) -> IndexedSearchResult:
        """Search the index.

        Args:
            criteria: Index criteria for this client's kind.

        Returns:
            Page of hits with the index total.

        Raises:
            IndexedSearchError: On transport error or non-200 response.
        """
        payload: dict[str, Any] = {
            "keyword": criteria.keyword,
            "skip": criteria.window.skip,
            "take": criteria.window.take,
            "response_group": criteria.response_group,
            "search_in_children": criteria.search_in_children,
        }
        if criteria.object_ids is not None:
            payload["object_ids"] = list(criteria.object_ids)
        if criteria.catalog_id:
            payload["catalog_id"] = criteria.catalog_id
        if criteria.category_id:
            payload["category_id"] = criteria.category_id
        if criteria.store_id:
            payload["store_id"] = criteria.store_id
        if criteria.sort:
            payload["sort"] = criteria.sort

        # Forward the correlation id bound by the request middleware.
        headers = {}
        request_id = structlog.contextvars.get_contextvars().get("request_id")
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            client = await self._get_client()
            response = await client.post(
                f"/indexes/{self.kind.value}/search", json=payload, headers=headers
            )
        except httpx.RequestError as e:
            logger.error(
                "Index search request failed",
                kind=self.kind.value,
                error=str(e),
            )
            raise IndexedSearchError(self.kind.value, f"Search request failed: {e}") from e

        if response.status_code != 200:
            raise IndexedSearchError(
                self.kind.value,
                f"Search failed: {response.text}",
                response.status_code,
            )

        data = response.json()
        if self.kind == EntryKind.CATEGORY:
            parse = category_from_response
        else:
            parse = product_from_response
        return IndexedSearchResult(
            items=[parse(item) for item in data.get("items", [])],
            total_count=data.get("total_count", 0),
        )
