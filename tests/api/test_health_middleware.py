"""Tests for health endpoints and API middleware."""

from fastapi.testclient import TestClient
from structlog.testing import capture_logs


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client: TestClient) -> None:
        """Health reports the service name."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "catalog-listentries"

    def test_ready(self, client: TestClient) -> None:
        """Readiness reports the configured backends."""
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestRequestIdMiddleware:
    """Tests for request ID correlation middleware."""

    def test_generates_request_id_if_not_provided(self, client: TestClient) -> None:
        """Should generate request ID if not in request headers."""
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_uses_provided_request_id(self, client: TestClient) -> None:
        """Should use request ID from request headers."""
        response = client.get("/health", headers={"X-Request-ID": "custom-id-1"})
        assert response.headers["X-Request-ID"] == "custom-id-1"

    def test_completion_logged_with_status(self, client: TestClient) -> None:
        """The completion log carries the response status."""
        with capture_logs() as logs:
            client.post("/api/catalog/listentries", json={})

        [completed] = [e for e in logs if e["event"] == "Request completed"]
        assert completed["status_code"] == 401
        assert completed["path"] == "/api/catalog/listentries"


class TestApiKeyMiddleware:
    """Tests for API key authentication middleware."""

    def test_invalid_auth_format_rejected(self, client: TestClient) -> None:
        """Non-Bearer headers are rejected."""
        response = client.post(
            "/api/catalog/listentries", json={}, headers={"Authorization": "InvalidFormat"}
        )
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_invalid_api_key_rejected(self, client: TestClient) -> None:
        """Unknown keys are rejected."""
        response = client.post(
            "/api/catalog/listentries",
            json={},
            headers={"Authorization": "Bearer invalid-key"},
        )
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_API_KEY"

    def test_unauthorized_response_has_request_id(self, client: TestClient) -> None:
        """Rejected requests still carry the correlation header."""
        response = client.post("/api/catalog/listentries", json={})
        assert "X-Request-ID" in response.headers
