"""Google OAuth authorization for the calendar feed.

## OAuth Flow

1. Host signals ``MODULE_READY``
2. A stored token is reused if present; otherwise the host receives
   ``AUTH_NEEDED`` with the consent URL
3. Google redirects back with an authorization code (or an error)
4. The code is exchanged for an access token and refresh token
5. The token is written to ``token.json`` and the calendar client is built

## Scopes

Only ``calendar.readonly`` is requested.
"""

from calendar_feed.auth.google import GoogleOAuth, GoogleTokens
from calendar_feed.auth.manager import (
    AuthOutcome,
    AuthState,
    AuthorizationFailed,
    AuthorizationManager,
    AuthorizationNeeded,
    ServiceReady,
)
from calendar_feed.auth.token_store import TokenStore

__all__ = [
    "GoogleOAuth",
    "GoogleTokens",
    "AuthOutcome",
    "AuthState",
    "AuthorizationFailed",
    "AuthorizationManager",
    "AuthorizationNeeded",
    "ServiceReady",
    "TokenStore",
]
