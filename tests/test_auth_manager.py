"""Tests for the authorization state machine."""

import json
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from calendar_feed.auth.google import GoogleOAuth, GoogleTokens
from calendar_feed.auth.manager import (
    AuthorizationFailed,
    AuthorizationManager,
    AuthorizationNeeded,
    AuthState,
    ServiceReady,
)
from calendar_feed.auth.token_store import TokenStore
from calendar_feed.context import ServiceContext
from calendar_feed.exceptions import TokenExchangeError, TokenStoreError
from calendar_feed.models.config import HostConfig
from calendar_feed.models.credentials import CredentialType


@pytest.fixture
def exchanged_tokens() -> GoogleTokens:
    return GoogleTokens(
        access_token="test-access-token",
        refresh_token="test-refresh-token",
        scope="https://www.googleapis.com/auth/calendar.readonly",
    )


@pytest.fixture
def mock_exchange(exchanged_tokens):
    """Patch the code exchange so no request reaches Google."""
    with patch.object(
        GoogleOAuth, "exchange_code", AsyncMock(return_value=exchanged_tokens)
    ) as mock:
        yield mock


class TestInitialize:
    """Tests for storing host configuration."""

    def test_initialize_stores_config(self, manager, context):
        """The config and its rules land on the context."""
        manager.initialize(HostConfig.model_validate({"excludedEvents": ["standup"]}))

        assert context.config.excluded_events == ["standup"]
        assert context.filter_engine.should_exclude("Daily Standup") is True
        assert manager.state is AuthState.UNINITIALIZED


class TestEnsureAuthorized:
    """Tests for silent token reuse and consent requests."""

    @pytest.mark.asyncio
    async def test_already_authorized_is_idempotent(self, settings):
        """An existing client yields ServiceReady without any I/O."""
        context = ServiceContext(settings)
        context.calendar_client = MagicMock()
        store = MagicMock(spec=TokenStore)
        manager = AuthorizationManager(context, store)

        outcome = await manager.ensure_authorized()

        assert outcome == ServiceReady()
        store.read_credentials.assert_not_called()
        store.read_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_credentials_file(self, manager):
        """An unreadable credentials file fails the attempt."""
        outcome = await manager.ensure_authorized()

        assert outcome == AuthorizationFailed("CREDENTIALS_FILE_ERROR")
        assert manager.state is AuthState.FAILED

    @pytest.mark.asyncio
    async def test_malformed_credentials(self, manager, write_credentials):
        """Credentials without a secret fail the attempt."""
        write_credentials({"web": {"client_id": "id"}})

        outcome = await manager.ensure_authorized()

        assert outcome == AuthorizationFailed("WRONG_CREDENTIALS_FORMAT")

    @pytest.mark.asyncio
    async def test_no_token_asks_for_consent(
        self, manager, context, write_credentials, web_credentials
    ):
        """Without a token the host is sent to the consent URL."""
        write_credentials(web_credentials)

        outcome = await manager.ensure_authorized()

        assert isinstance(outcome, AuthorizationNeeded)
        assert outcome.credential_type is CredentialType.WEB
        params = parse_qs(urlparse(outcome.url).query)
        assert params["state"] == ["calendar_feed_test"]
        assert params["access_type"] == ["offline"]
        assert params["scope"] == ["https://www.googleapis.com/auth/calendar.readonly"]
        assert manager.state is AuthState.AWAITING_CONSENT
        assert context.calendar_client is None

    @pytest.mark.asyncio
    async def test_device_credentials_type(
        self, manager, write_credentials, device_credentials
    ):
        """Device clients are reported as 'tv' and use the default redirect."""
        write_credentials(device_credentials)

        outcome = await manager.ensure_authorized()

        assert isinstance(outcome, AuthorizationNeeded)
        assert outcome.credential_type is CredentialType.DEVICE
        params = parse_qs(urlparse(outcome.url).query)
        assert params["redirect_uri"] == ["http://localhost:8080"]

    @pytest.mark.asyncio
    async def test_stored_token_is_reused(
        self, manager, context, write_credentials, web_credentials, write_token,
        authorized_user_info, client_factory, calendar_client,
    ):
        """A stored token builds the client without consent."""
        write_credentials(web_credentials)
        write_token(authorized_user_info)

        outcome = await manager.ensure_authorized()

        assert outcome == ServiceReady()
        assert context.calendar_client is calendar_client
        credentials = client_factory.call_args.args[0]
        assert credentials.token == "stored-token"
        assert credentials.client_secret == "test-client-secret"
        assert manager.state is AuthState.AUTHORIZED

    @pytest.mark.asyncio
    async def test_unusable_token_asks_for_consent(
        self, manager, settings, write_credentials, web_credentials
    ):
        """A token blob google-auth cannot load is treated as absent."""
        write_credentials(web_credentials)
        settings.token_path.write_text(json.dumps({"foo": "bar"}), encoding="utf-8")

        outcome = await manager.ensure_authorized()

        assert isinstance(outcome, AuthorizationNeeded)


class TestCompleteAuthorization:
    """Tests for handling the provider redirect."""

    @pytest.mark.asyncio
    async def test_provider_error(self, manager, mock_exchange):
        """An error parameter is reported as-is and nothing else happens."""
        outcome = await manager.complete_authorization({"error": "access_denied"})

        assert outcome == AuthorizationFailed("access_denied")
        mock_exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error_query_string(self, manager, mock_exchange):
        """Query strings are parsed, leading '?' included."""
        outcome = await manager.complete_authorization("?error=access_denied&state=x")

        assert outcome == AuthorizationFailed("access_denied")

    @pytest.mark.asyncio
    async def test_replayed_redirect_when_authorized(self, settings, mock_exchange):
        """A spent code arriving after authorization is answered without I/O."""
        context = ServiceContext(settings)
        context.calendar_client = MagicMock()
        store = MagicMock(spec=TokenStore)
        manager = AuthorizationManager(context, store)

        outcome = await manager.complete_authorization("?code=spent&state=calendar_feed")

        assert outcome == ServiceReady()
        mock_exchange.assert_not_awaited()
        store.read_credentials.assert_not_called()
        store.write_token.assert_not_called()
        assert manager.state is not AuthState.FAILED

    @pytest.mark.asyncio
    async def test_missing_code(self, manager, write_credentials, web_credentials):
        """A redirect without code fails."""
        write_credentials(web_credentials)

        outcome = await manager.complete_authorization({"state": "calendar_feed_test"})

        assert outcome == AuthorizationFailed("MISSING_AUTHORIZATION_CODE")

    @pytest.mark.asyncio
    async def test_missing_credentials(self, manager, mock_exchange):
        """Credentials are re-read and their absence fails the attempt."""
        outcome = await manager.complete_authorization("code=abc")

        assert outcome == AuthorizationFailed("CREDENTIALS_FILE_ERROR")
        mock_exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_credentials(self, manager, write_credentials, mock_exchange):
        """Empty client id or secret fails before the exchange."""
        write_credentials({"web": {"client_id": "", "client_secret": ""}})

        outcome = await manager.complete_authorization("code=abc")

        assert outcome == AuthorizationFailed("WRONG_CREDENTIALS_FORMAT")
        mock_exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_successful_exchange(
        self, manager, context, settings, write_credentials, web_credentials,
        mock_exchange, calendar_client,
    ):
        """The code is exchanged, the token persisted and the client built."""
        write_credentials(web_credentials)

        outcome = await manager.complete_authorization("code=4/0Ab&scope=calendar")

        assert outcome == ServiceReady()
        mock_exchange.assert_awaited_once_with("4/0Ab")
        stored = json.loads(settings.token_path.read_text(encoding="utf-8"))
        assert stored["token"] == "test-access-token"
        assert stored["refresh_token"] == "test-refresh-token"
        assert context.calendar_client is calendar_client
        assert manager.state is AuthState.AUTHORIZED

    @pytest.mark.asyncio
    async def test_exchange_failure(self, manager, context, write_credentials, web_credentials):
        """A failed exchange is reported and no client is built."""
        write_credentials(web_credentials)

        with patch.object(
            GoogleOAuth,
            "exchange_code",
            AsyncMock(side_effect=TokenExchangeError("Token exchange failed: 400", 400)),
        ):
            outcome = await manager.complete_authorization({"code": "expired"})

        assert outcome == AuthorizationFailed("TOKEN_EXCHANGE_FAILED")
        assert context.calendar_client is None
        assert manager.state is AuthState.FAILED

    @pytest.mark.asyncio
    async def test_token_write_failure_does_not_block(
        self, context, write_credentials, web_credentials, mock_exchange, client_factory
    ):
        """A token that cannot be saved still yields a working client."""
        write_credentials(web_credentials)
        store = TokenStore.from_settings(context.settings)
        store.write_token = AsyncMock(side_effect=TokenStoreError("disk full"))
        manager = AuthorizationManager(context, store, client_factory=client_factory)

        outcome = await manager.complete_authorization({"code": "abc"})

        assert outcome == ServiceReady()
        assert context.is_authorized

    @pytest.mark.asyncio
    async def test_persisted_token_reused_after_restart(
        self, settings, write_credentials, web_credentials, mock_exchange, client_factory
    ):
        """A token saved by one process is reused by the next without consent."""
        write_credentials(web_credentials)
        first = AuthorizationManager(
            ServiceContext(settings), TokenStore.from_settings(settings), client_factory
        )
        assert await first.complete_authorization({"code": "abc"}) == ServiceReady()

        context = ServiceContext(settings)
        second = AuthorizationManager(context, TokenStore.from_settings(settings), client_factory)
        outcome = await second.ensure_authorized()

        assert outcome == ServiceReady()
        assert mock_exchange.await_count == 1
        assert client_factory.call_args.args[0].token == "test-access-token"
        assert context.is_authorized
