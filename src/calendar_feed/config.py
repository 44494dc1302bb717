"""Application configuration.

Configuration is loaded from environment variables using pydantic-settings.
Every variable uses the ``CALENDAR_FEED_`` prefix. The OAuth client secrets
are not part of the settings: they live in ``credentials.json`` under the
storage root, next to the persisted ``token.json``.

## Optional Environment Variables

- CALENDAR_FEED_STORAGE_ROOT: Directory holding credentials.json and token.json
- CALENDAR_FEED_MODULE_NAME: Identifier sent as the OAuth ``state`` parameter
- CALENDAR_FEED_DEFAULT_REDIRECT_URI: Redirect URI when credentials name none
- CALENDAR_FEED_LOG_LEVEL: Logging level (default: INFO)

## Example .env file

```
CALENDAR_FEED_STORAGE_ROOT=/var/lib/calendar-feed
CALENDAR_FEED_MODULE_NAME=calendar_feed
CALENDAR_FEED_PORT=8080
```
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CALENDAR_FEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Calendar Feed"
    app_version: str = "0.1.0"
    module_name: str = Field(
        default="calendar_feed",
        description="Module identifier, echoed back by Google in the state parameter",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Storage
    storage_root: Path = Field(
        default=Path("."),
        description="Directory holding the credentials and token files",
    )
    credentials_file: str = "credentials.json"
    token_file: str = "token.json"

    # Google OAuth
    default_redirect_uri: str = "http://localhost:8080"
    calendar_scope: str = "https://www.googleapis.com/auth/calendar.readonly"
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    @property
    def credentials_path(self) -> Path:
        """Full path of the static OAuth client credentials."""
        return self.storage_root / self.credentials_file

    @property
    def token_path(self) -> Path:
        """Full path of the persisted OAuth token."""
        return self.storage_root / self.token_file


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()
