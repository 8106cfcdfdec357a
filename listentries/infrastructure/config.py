"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Entry store ("memory" or "database")
    entry_store_backend: str = "memory"
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"

    # Indexed search (empty URL = in-memory index over the entry store)
    search_service_url: str = ""
    search_service_timeout: float = 10.0
    use_indexed_search: bool = True

    # Bulk operations
    delete_batch_size: int = 20

    # Authentication: API key -> granted permissions
    api_key_permissions: dict[str, list[str]] = {
        "dev-api-key-change-in-production": ["read", "update", "delete"],
    }
    # API key -> catalogs the key may touch (missing key = all catalogs)
    api_key_catalog_scopes: dict[str, list[str]] = {}

    # Logging
    log_level: str = "INFO"


settings = Settings()
