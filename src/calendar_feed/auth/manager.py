"""Authorization manager.

Drives the OAuth state machine that gates access to the Calendar API.

## States

```
UNINITIALIZED -> TOKEN_CHECK -> AUTHORIZED
                             -> AWAITING_CONSENT -> EXCHANGING_CODE -> AUTHORIZED
```

Any failing step moves to ``FAILED``. ``AUTHORIZED`` is re-enterable: the
host may re-drive the flow at any time and nothing is retried automatically.

## Outcomes

Every public operation returns one of ``ServiceReady``,
``AuthorizationNeeded`` or ``AuthorizationFailed``; the notification gateway
turns them into host notifications.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union
from urllib.parse import parse_qsl

from google.oauth2.credentials import Credentials

from calendar_feed.auth.google import GoogleOAuth
from calendar_feed.auth.token_store import TokenStore
from calendar_feed.calendar.google_calendar import GoogleCalendarClient
from calendar_feed.context import ServiceContext
from calendar_feed.exceptions import (
    AuthorizationDeniedError,
    AuthorizationError,
    MissingAuthorizationCodeError,
    TokenStoreError,
)
from calendar_feed.models.config import HostConfig
from calendar_feed.models.credentials import (
    ClientCredentials,
    CredentialType,
    parse_client_credentials,
)

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    """States of the authorization flow."""

    UNINITIALIZED = "uninitialized"
    TOKEN_CHECK = "token_check"
    AWAITING_CONSENT = "awaiting_consent"
    EXCHANGING_CODE = "exchanging_code"
    AUTHORIZED = "authorized"
    FAILED = "failed"


@dataclass(frozen=True)
class ServiceReady:
    """The calendar client is ready."""


@dataclass(frozen=True)
class AuthorizationNeeded:
    """The user must visit ``url`` to grant access."""

    url: str
    credential_type: CredentialType


@dataclass(frozen=True)
class AuthorizationFailed:
    """The authorization attempt ended with ``error_type``."""

    error_type: str


AuthOutcome = Union[ServiceReady, AuthorizationNeeded, AuthorizationFailed]

ClientFactory = Callable[[Credentials], GoogleCalendarClient]


class AuthorizationManager:
    """Obtains, persists and reuses the Google OAuth token.

    Example:
        ```python
        manager = AuthorizationManager(context, TokenStore.from_settings(settings))

        outcome = await manager.ensure_authorized()
        if isinstance(outcome, AuthorizationNeeded):
            ...  # send the user to outcome.url
            outcome = await manager.complete_authorization("code=4/0Ab...")
        ```
    """

    def __init__(
        self,
        context: ServiceContext,
        token_store: TokenStore,
        client_factory: ClientFactory = GoogleCalendarClient,
    ):
        """Initialize the manager.

        Args:
            context: Shared service context receiving the calendar client
            token_store: Storage for credentials and token
            client_factory: Builds the calendar client from credentials
        """
        self.context = context
        self.token_store = token_store
        self.client_factory = client_factory
        self.state = AuthState.UNINITIALIZED

    def initialize(self, config: HostConfig) -> None:
        """Store the host configuration."""
        self.context.set_config(config)
        logger.info(f"Config loaded with {len(config.excluded_events)} exclusion rules")

    def _oauth_for(self, credentials: ClientCredentials) -> GoogleOAuth:
        settings = self.context.settings
        return GoogleOAuth(
            credentials,
            redirect_uri=credentials.redirect_uri(settings.default_redirect_uri),
            scope=settings.calendar_scope,
            timeout=settings.http_timeout_seconds,
        )

    async def _load_oauth(self) -> GoogleOAuth:
        blob = await self.token_store.read_credentials()
        return self._oauth_for(parse_client_credentials(blob))

    def _authorize(self, credentials: Credentials) -> ServiceReady:
        self.context.calendar_client = self.client_factory(credentials)
        self.state = AuthState.AUTHORIZED
        logger.info("Calendar service ready")
        return ServiceReady()

    def _fail(self, error: AuthorizationError) -> AuthorizationFailed:
        self.state = AuthState.FAILED
        logger.error(f"Authorization failed ({error.error_type}): {error}")
        return AuthorizationFailed(error.error_type)

    async def ensure_authorized(self) -> AuthOutcome:
        """Reuse the stored token, or ask for consent if there is none.

        Returns immediately without I/O when already authorized.
        """
        if self.context.is_authorized:
            return ServiceReady()

        self.state = AuthState.TOKEN_CHECK
        try:
            oauth = await self._load_oauth()
        except AuthorizationError as e:
            return self._fail(e)

        stored = await self.token_store.read_token([oauth.scope])
        if stored is not None:
            return self._authorize(stored)

        self.state = AuthState.AWAITING_CONSENT
        logger.info("No token found, make sure you have authorized the app")
        return AuthorizationNeeded(
            url=oauth.get_authorization_url(state=self.context.settings.module_name),
            credential_type=oauth.credentials.kind,
        )

    async def complete_authorization(self, params: Mapping[str, str] | str) -> AuthOutcome:
        """Finish the flow with the parameters of the provider redirect.

        Args:
            params: Redirect query parameters, as a mapping or a query string

        A redirect replayed after authorization (the host reloading a URL
        that still carries the spent code) yields ``ServiceReady`` without
        any I/O.
        """
        if self.context.is_authorized:
            return ServiceReady()

        if isinstance(params, str):
            params = dict(parse_qsl(params.lstrip("?")))

        try:
            if params.get("error"):
                raise AuthorizationDeniedError(params["error"])

            code = params.get("code")
            if not code:
                raise MissingAuthorizationCodeError("Redirect carries no authorization code")

            self.state = AuthState.EXCHANGING_CODE
            oauth = await self._load_oauth()
            tokens = await oauth.exchange_code(code)
        except AuthorizationError as e:
            return self._fail(e)

        credentials = oauth.build_credentials(tokens)
        try:
            await self.token_store.write_token(credentials)
        except TokenStoreError as e:
            logger.error(f"Could not persist token: {e}")

        return self._authorize(credentials)
