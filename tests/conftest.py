"""Pytest fixtures for calendar feed tests.

This module provides test fixtures that ensure:
1. No external API calls are made (Google OAuth, Google Calendar)
2. Credentials and tokens live in a per-test temporary directory
3. Isolated test environment with controlled configuration
"""

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from calendar_feed.auth.manager import AuthorizationManager
from calendar_feed.auth.token_store import TokenStore
from calendar_feed.calendar.google_calendar import CalendarEvent
from calendar_feed.config import Settings
from calendar_feed.context import ServiceContext


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from calendar_feed.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing the storage root at a temporary directory."""
    return Settings(storage_root=tmp_path, module_name="calendar_feed_test")


@pytest.fixture
def write_credentials(settings: Settings):
    """Write a credentials.json file into the storage root."""

    def _write(data: Any) -> Path:
        path = settings.credentials_path
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def web_credentials() -> dict[str, Any]:
    """Web application client secrets."""
    return {
        "web": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",
            "redirect_uris": ["http://localhost:8080/oauth2callback"],
        }
    }


@pytest.fixture
def authorized_user_info(web_credentials: dict[str, Any]) -> dict[str, Any]:
    """token.json content in google-auth's authorized-user format."""
    client = web_credentials["web"]
    return {
        "token": "stored-token",
        "refresh_token": "stored-refresh-token",
        "token_uri": "https://oauth2.googleapis.com/token",
        "client_id": client["client_id"],
        "client_secret": client["client_secret"],
        "scopes": ["https://www.googleapis.com/auth/calendar.readonly"],
    }


@pytest.fixture
def write_token(settings: Settings):
    """Write a token.json file into the storage root."""

    def _write(data: Any) -> Path:
        path = settings.token_path
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def device_credentials() -> dict[str, Any]:
    """TV and limited input device client secrets."""
    return {
        "installed": {
            "client_id": "test-device-id.apps.googleusercontent.com",
            "client_secret": "test-device-secret",
        }
    }


@pytest.fixture
def context(settings: Settings) -> ServiceContext:
    """Fresh service context."""
    return ServiceContext(settings)


@pytest.fixture
def token_store(settings: Settings) -> TokenStore:
    """Token store rooted in the temporary directory."""
    return TokenStore.from_settings(settings)


@pytest.fixture
def calendar_client() -> MagicMock:
    """Mock Google Calendar client to prevent external calls."""
    client = MagicMock()
    client.list_upcoming_events.return_value = []
    return client


@pytest.fixture
def client_factory(calendar_client: MagicMock) -> MagicMock:
    """Factory returning the mock calendar client."""
    return MagicMock(return_value=calendar_client)


@pytest.fixture
def manager(
    context: ServiceContext,
    token_store: TokenStore,
    client_factory: MagicMock,
) -> AuthorizationManager:
    """Authorization manager wired to the mock calendar client."""
    return AuthorizationManager(context, token_store, client_factory=client_factory)


@pytest.fixture
def emitted() -> list[tuple[str, dict[str, Any]]]:
    """Outbound notifications recorded by ``emit``."""
    return []


@pytest.fixture
def emit(emitted: list[tuple[str, dict[str, Any]]]) -> AsyncMock:
    """Emitter recording every outbound notification."""

    async def _emit(notification: str, payload: dict[str, Any]) -> None:
        emitted.append((notification, payload))

    return AsyncMock(side_effect=_emit)


@pytest.fixture
def mock_httpx_client():
    """Mock httpx client to prevent any external HTTP calls."""
    with patch("httpx.AsyncClient") as mock_client:
        mock_instance = AsyncMock()
        mock_instance.get = AsyncMock()
        mock_instance.post = AsyncMock()
        mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
        mock_instance.__aexit__ = AsyncMock(return_value=None)
        mock_client.return_value = mock_instance
        yield mock_instance


def make_event(summary: str | None, event_id: str | None = None, hour: int = 9) -> CalendarEvent:
    """Build a calendar event as returned by the API."""
    data: dict[str, Any] = {
        "id": event_id or f"evt-{summary}-{hour}",
        "start": {"dateTime": f"2025-03-10T{hour:02d}:00:00Z"},
        "end": {"dateTime": f"2025-03-10T{hour:02d}:30:00Z"},
    }
    if summary is not None:
        data["summary"] = summary
    return CalendarEvent.from_api(data)


@pytest.fixture
def sample_events() -> list[CalendarEvent]:
    """Seven upcoming events, two of which are standups."""
    titles = [
        "Daily Standup",
        "Design Review",
        "Lunch",
        "OOO - Dentist",
        "Team Standup",
        "1:1 with Alex",
        "Release planning",
    ]
    return [make_event(title, hour=8 + i) for i, title in enumerate(titles)]


@pytest.fixture
def event_factory():
    """Factory building calendar events from a title."""
    return make_event
