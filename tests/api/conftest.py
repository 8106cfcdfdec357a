"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from listentries.main import app

API_KEY = "dev-api-key-change-in-production"


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def auth_client() -> TestClient:
    """Create test client with valid API key authentication."""
    return TestClient(app, headers={"Authorization": f"Bearer {API_KEY}"})


@pytest.fixture(autouse=True)
def clear_overrides():
    """Drop dependency overrides after each test."""
    yield
    app.dependency_overrides.clear()
