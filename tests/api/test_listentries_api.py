"""Tests for list entry API endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from listentries.api.listentries import get_search_service
from listentries.application.search_service import HybridSearchService
from listentries.infrastructure.config import settings
from listentries.infrastructure.index_client import IndexedSearchError
from listentries.infrastructure.settings_manager import SettingsManager
from listentries.main import app

BASE = "/api/catalog"


@pytest.fixture
def reader_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Client whose key may only read."""
    monkeypatch.setitem(settings.api_key_permissions, "reader-key", ["read"])
    return TestClient(app, headers={"Authorization": "Bearer reader-key"})


class TestSearch:
    """Tests for POST /api/catalog/listentries."""

    def test_root_listing(self, auth_client: TestClient, seeded_store) -> None:
        """Browsing a catalog lists its root categories."""
        response = auth_client.post(f"{BASE}/listentries", json={"catalog_id": "main"})

        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 2
        assert [(r["type"], r["id"]) for r in data["results"]] == [
            ("category", "electronics"),
            ("category", "garden"),
        ]

    def test_keyword_search_categories_first(self, auth_client: TestClient, seeded_store) -> None:
        """Keyword results put categories before products."""
        response = auth_client.post(
            f"{BASE}/listentries", json={"catalog_id": "main", "keyword": "headphones"}
        )

        data = response.json()
        assert data["total_count"] == 3
        assert [r["type"] for r in data["results"]] == ["category", "product", "product"]
        assert data["results"][1]["outline"] == "main/electronics/audio/headphones/p-hp2"

    def test_paging(self, auth_client: TestClient, seeded_store) -> None:
        """skip/take page over the merged listing."""
        response = auth_client.post(
            f"{BASE}/listentries",
            json={"catalog_id": "main", "keyword": "headphones", "skip": 1, "take": 1},
        )

        data = response.json()
        assert data["total_count"] == 3
        assert [r["id"] for r in data["results"]] == ["p-hp2"]

    def test_empty_object_ids_ignored(self, auth_client: TestClient, seeded_store) -> None:
        """An empty id list behaves like no id list."""
        response = auth_client.post(
            f"{BASE}/listentries", json={"catalog_id": "main", "object_ids": []}
        )

        data = response.json()
        assert data["total_count"] == 2
        assert [r["id"] for r in data["results"]] == ["electronics", "garden"]

    def test_negative_skip_rejected(self, auth_client: TestClient) -> None:
        """Invalid windows fail validation."""
        response = auth_client.post(f"{BASE}/listentries", json={"skip": -1})
        assert response.status_code == 422

    def test_requires_auth(self, client: TestClient) -> None:
        """Search needs an API key."""
        response = client.post(f"{BASE}/listentries", json={})
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_index_failure_is_bad_gateway(self, auth_client: TestClient) -> None:
        """Index service errors map to 502."""
        failing = AsyncMock()
        failing.search.side_effect = IndexedSearchError("category", "unavailable", 503)
        app.dependency_overrides[get_search_service] = lambda: HybridSearchService(
            category_index=failing,
            product_index=AsyncMock(),
            list_entry_search=AsyncMock(),
            settings_provider=SettingsManager(),
        )

        response = auth_client.post(f"{BASE}/listentries", json={"keyword": "tv"})

        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "INDEXED_SEARCH_ERROR"
        assert data["details"]["kind"] == "category"
        assert data["request_id"]


class TestLinks:
    """Tests for link endpoints."""

    def test_create_links_is_idempotent(self, auth_client: TestClient, seeded_store) -> None:
        """Creating the same link twice adds it once."""
        body = [{"entry_id": "p-tv", "catalog_id": "outlet"}]

        first = auth_client.post(f"{BASE}/listentrylinks", json=body)
        second = auth_client.post(f"{BASE}/listentrylinks", json=body)

        assert first.status_code == 200
        assert first.json() == {"affected": 1}
        assert second.json() == {"affected": 0}

    def test_linked_entry_listed_in_target(self, auth_client: TestClient, seeded_store) -> None:
        """A linked product shows up when listing the target category."""
        auth_client.post(
            f"{BASE}/listentrylinks",
            json=[{"entry_id": "p-mower", "catalog_id": "main", "category_id": "electronics"}],
        )

        response = auth_client.post(
            f"{BASE}/listentries", json={"catalog_id": "main", "category_id": "electronics"}
        )

        assert "p-mower" in [r["id"] for r in response.json()["results"]]

    def test_bulk_create_requires_catalog(self, auth_client: TestClient, seeded_store) -> None:
        """Bulk creation without a target catalog is a bad request."""
        response = auth_client.post(
            f"{BASE}/listentrylinks/bulkcreate",
            json={"search_criteria": {"keyword": "headphones"}},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_FAILED"

    def test_bulk_create(self, auth_client: TestClient, seeded_store) -> None:
        """Every matching entry gets a link."""
        response = auth_client.post(
            f"{BASE}/listentrylinks/bulkcreate",
            json={
                "catalog_id": "outlet",
                "search_criteria": {"catalog_id": "main", "keyword": "headphones", "take": 2},
            },
        )

        assert response.status_code == 200
        assert response.json() == {"affected": 3}

    def test_delete_links(self, auth_client: TestClient, seeded_store) -> None:
        """Deleted links disappear from listings."""
        link = {"entry_id": "p-mower", "catalog_id": "main", "category_id": "electronics"}
        auth_client.post(f"{BASE}/listentrylinks", json=[link])

        response = auth_client.post(f"{BASE}/listentrylinks/delete", json=[link])

        assert response.status_code == 204
        listing = auth_client.post(
            f"{BASE}/listentries", json={"catalog_id": "main", "category_id": "electronics"}
        )
        assert "p-mower" not in [r["id"] for r in listing.json()["results"]]


class TestMove:
    """Tests for POST /api/catalog/listentries/move."""

    def test_move(self, auth_client: TestClient, seeded_store) -> None:
        """Moved products appear under their new category."""
        response = auth_client.post(
            f"{BASE}/listentries/move",
            json={
                "catalog_id": "main",
                "category_id": "garden",
                "entries": [{"id": "p-tv", "type": "product"}],
            },
        )

        assert response.status_code == 204
        listing = auth_client.post(
            f"{BASE}/listentries", json={"catalog_id": "main", "category_id": "garden"}
        )
        assert {r["id"] for r in listing.json()["results"]} == {"p-mower", "p-tv"}

    def test_virtual_catalog_rejected(self, auth_client: TestClient, seeded_store) -> None:
        """Virtual catalogs are not valid move targets."""
        response = auth_client.post(
            f"{BASE}/listentries/move",
            json={"catalog_id": "virtual-sale", "entries": [{"id": "p-tv", "type": "product"}]},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_MOVE_TARGET"

    def test_unknown_entry_not_found(self, auth_client: TestClient, seeded_store) -> None:
        """Unknown entries are reported as not found."""
        response = auth_client.post(
            f"{BASE}/listentries/move",
            json={"catalog_id": "main", "entries": [{"id": "ghost", "type": "category"}]},
        )

        assert response.status_code == 404
        assert response.json()["details"]["ids"] == ["ghost"]

    def test_read_only_key_forbidden(self, reader_client: TestClient, seeded_store) -> None:
        """Moving needs update permission."""
        response = reader_client.post(
            f"{BASE}/listentries/move",
            json={"catalog_id": "main", "entries": [{"id": "p-tv", "type": "product"}]},
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "AUTHORIZATION_DENIED"


class TestDelete:
    """Tests for POST /api/catalog/listentries/delete."""

    def test_delete_by_ids(self, auth_client: TestClient, seeded_store) -> None:
        """Named entries are deleted."""
        response = auth_client.post(
            f"{BASE}/listentries/delete", json={"object_ids": ["p-tv", "garden"]}
        )

        assert response.status_code == 204
        listing = auth_client.post(
            f"{BASE}/listentries", json={"object_ids": ["p-tv", "garden", "audio"]}
        )
        assert [r["id"] for r in listing.json()["results"]] == ["audio"]

    def test_read_only_key_forbidden(self, reader_client: TestClient, seeded_store) -> None:
        """Deleting needs delete permission."""
        response = reader_client.post(
            f"{BASE}/listentries/delete", json={"object_ids": ["p-tv"]}
        )

        assert response.status_code == 403
        assert response.json()["details"]["permission"] == "delete"


    def test_empty_object_ids_deletes_matches(
        self, auth_client: TestClient, seeded_store
    ) -> None:
        """With an empty id list, the criteria search picks the entries."""
        response = auth_client.post(
            f"{BASE}/listentries/delete",
            json={"object_ids": [], "catalog_id": "main", "keyword": "mower"},
        )

        assert response.status_code == 204
        listing = auth_client.post(f"{BASE}/listentries", json={"object_ids": ["p-mower", "p-tv"]})
        assert [r["id"] for r in listing.json()["results"]] == ["p-tv"]


class TestSlug:
    """Tests for GET /api/catalog/getslug."""

    def test_get_slug(self, auth_client: TestClient) -> None:
        """Text is turned into a slug."""
        response = auth_client.get(f"{BASE}/getslug", params={"text": "Café Crème"})

        assert response.status_code == 200
        assert response.json() == "cafe-creme"
