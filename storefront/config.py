"""Storefront configuration.

Loads settings from environment variables (``STOREFRONT_`` prefix) with
sensible defaults.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Storefront settings loaded from environment variables."""

    # Remote document store
    firestore_base_url: str = Field(
        default="https://firestore.googleapis.com/v1",
        description="Firestore REST API base URL",
    )
    firestore_project_id: str = Field(
        default="storefront-dev",
        description="Project that owns the document database",
    )
    firestore_api_key: str | None = Field(
        default=None,
        description="Optional API key sent as the 'key' query parameter",
    )
    catalog_collection: str = "Books"
    cart_collection: str = "Cart"

    # Local cache
    cache_dir: Path = Field(
        default_factory=lambda: Path.home() / ".storefront",
        description="Directory holding the local key-value slots",
    )
    catalog_cache_key: str = "books"

    # Deadlines (seconds)
    request_timeout: float = 30.0
    fetch_deadline: float | None = 30.0
    cart_write_deadline: float | None = 15.0

    # Connectivity
    connectivity_url: str = "https://clients3.google.com/generate_204"
    connectivity_timeout: float = 5.0

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "STOREFRONT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
