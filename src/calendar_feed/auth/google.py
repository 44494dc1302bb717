"""Google OAuth 2.0 client.

Implements the authorization code flow used to reach the Calendar API.

## OAuth Endpoints

- Authorization: https://accounts.google.com/o/oauth2/v2/auth
- Token: https://oauth2.googleapis.com/token

## Scopes Used

- https://www.googleapis.com/auth/calendar.readonly: Read calendar data

The consent URL asks for offline access so Google issues a refresh token.
``google.oauth2.credentials.Credentials`` built from the stored token then
refreshes the access token on its own when it expires.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode

import httpx
from google.oauth2.credentials import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from calendar_feed.exceptions import TokenExchangeError
from calendar_feed.models.credentials import ClientCredentials

logger = logging.getLogger(__name__)

# Google OAuth endpoints
GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass
class GoogleTokens:
    """OAuth tokens from Google."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_at: datetime | None = None
    scope: str = ""

    @classmethod
    def from_token_response(cls, data: dict[str, Any]) -> GoogleTokens:
        """Create from the token endpoint's JSON response."""
        expires_at = None
        if "expires_in" in data:
            expires_at = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(
                seconds=int(data["expires_in"])
            )

        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "Bearer"),
            expires_at=expires_at,
            scope=data.get("scope", ""),
        )


class GoogleOAuth:
    """Google OAuth 2.0 client bound to one set of client credentials.

    Example:
        ```python
        oauth = GoogleOAuth(credentials, redirect_uri, scope)

        # Generate authorization URL
        auth_url = oauth.get_authorization_url(state="calendar_feed")

        # Handle callback
        tokens = await oauth.exchange_code(code)
        google_credentials = oauth.build_credentials(tokens)
        ```
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        redirect_uri: str,
        scope: str,
        timeout: float = 30.0,
    ):
        """Initialize Google OAuth client.

        Args:
            credentials: Validated OAuth client credentials
            redirect_uri: OAuth callback URL
            scope: Space separated OAuth scopes to request
            timeout: HTTP timeout in seconds for the token endpoint
        """
        self.credentials = credentials
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.timeout = timeout

    @property
    def client_id(self) -> str:
        return self.credentials.client_id

    @property
    def client_secret(self) -> str:
        return self.credentials.client_secret

    def get_authorization_url(self, state: str) -> str:
        """Generate the Google OAuth consent URL.

        Args:
            state: Identifies this module in the redirect back from Google

        Returns:
            URL to send the user to
        """
        params = {
            "scope": self.scope,
            "access_type": "offline",
            "include_granted_scopes": "true",
            "response_type": "code",
            "state": state,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
        }

        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _post_token_request(self, data: dict[str, str]) -> httpx.Response:
        """POST to the token endpoint, retrying transient transport failures."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(GOOGLE_TOKEN_URL, data=data)

    async def exchange_code(self, code: str) -> GoogleTokens:
        """Exchange authorization code for tokens.

        Args:
            code: Authorization code from callback

        Returns:
            GoogleTokens with access and refresh tokens

        Raises:
            TokenExchangeError: If token exchange fails
        """
        try:
            response = await self._post_token_request(
                {
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.redirect_uri,
                }
            )
        except httpx.HTTPError as e:
            logger.error(f"Error retrieving access token: {e}")
            raise TokenExchangeError(f"Token exchange request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.text}")
            raise TokenExchangeError(
                f"Token exchange failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return GoogleTokens.from_token_response(response.json())
        except (KeyError, ValueError) as e:
            logger.error(f"Unexpected token response: {response.text}")
            raise TokenExchangeError("Token response has no access_token") from e

    def build_credentials(self, tokens: GoogleTokens) -> Credentials:
        """Create google-auth credentials able to refresh themselves.

        google-auth compares expiry against naive UTC datetimes.
        """
        expiry = None
        if tokens.expires_at is not None:
            expiry = tokens.expires_at.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_uri=GOOGLE_TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=tokens.scope.split() or [self.scope],
            expiry=expiry,
        )
