"""Configuration settings for Rowsift."""

from __future__ import annotations

import threading

from pydantic import Field
from pydantic_settings import BaseSettings


class RowsiftSettings(BaseSettings):
    """Configuration settings for Rowsift export and listing operations.

    Settings are organized into categories:

    Export Limits (enforced when parsing the ``limit`` query parameter):
    - default_export_limit: Row cap when no usable limit is supplied
    - min_export_limit / max_export_limit: Clamp bounds for the row cap

    Listing Pagination (filtered rows endpoint):
    - default_page_size / max_page_size

    Filtering:
    - fallback_over_fetch_factor: Multiplier applied to the store fetch window so the
      in-memory string filter has spare rows to work with (1.0 keeps the fetch window
      equal to the limit)
    - global_search_case_insensitive: Switch global search from the store's case-sensitive
      substring match to a case-insensitive one

    Rendering:
    - date_display_format: strftime pattern for date and datetime cells in CSV output
    """

    # Export limits
    default_export_limit: int = Field(
        default=10_000, description="Row cap used when limit is missing or not numeric"
    )
    min_export_limit: int = Field(default=1, description="Lowest accepted row cap")
    max_export_limit: int = Field(default=100_000, description="Highest accepted row cap")

    # Listing pagination
    default_page_size: int = Field(default=25, description="Page size for filtered row listings")
    max_page_size: int = Field(default=100, description="Largest accepted page size")

    # Filtering behaviour
    fallback_over_fetch_factor: float = Field(
        default=1.0,
        ge=1.0,
        description="Fetch window multiplier for exports with in-memory string filters (>= 1.0)",
    )
    global_search_case_insensitive: bool = Field(
        default=False, description="Match globalSearch case-insensitively"
    )

    # Rendering
    date_display_format: str = Field(
        default="%d.%m.%Y", description="strftime pattern for date cells in CSV exports"
    )

    log_level: str = Field(default="INFO", description="Log level for the rowsift loggers")

    model_config = {"env_prefix": "ROWSIFT_", "case_sensitive": False}


_settings: RowsiftSettings | None = None
_lock = threading.Lock()


def create_settings() -> RowsiftSettings:
    """Create a new Rowsift settings instance."""
    return RowsiftSettings()


def get_settings() -> RowsiftSettings:
    """Create or get the global Rowsift settings instance."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        with _lock:
            if _settings is None:
                _settings = create_settings()
    return _settings


def reset_settings() -> None:
    """Reset the global Rowsift settings instance."""
    global _settings  # noqa: PLW0603
    with _lock:
        _settings = None
