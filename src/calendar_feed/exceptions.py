"""Exceptions raised by the authorization flow and token storage.

Each authorization error carries the ``error_type`` reported to the host in
an ``AUTH_FAILED`` notification.
"""

from __future__ import annotations


class CalendarFeedError(Exception):
    """Base exception for calendar feed errors."""

    error_type: str = "UNKNOWN_ERROR"


class AuthorizationError(CalendarFeedError):
    """Base class for errors that end an authorization attempt."""

    def __init__(self, message: str, error_type: str | None = None):
        super().__init__(message)
        if error_type is not None:
            self.error_type = error_type


class CredentialFileError(AuthorizationError):
    """Raised when the client credentials file cannot be read or parsed."""

    error_type = "CREDENTIALS_FILE_ERROR"


class MalformedCredentialsError(AuthorizationError):
    """Raised when the credentials lack a client id or client secret."""

    error_type = "WRONG_CREDENTIALS_FORMAT"


class TokenExchangeError(AuthorizationError):
    """Raised when Google refuses to exchange an authorization code."""

    error_type = "TOKEN_EXCHANGE_FAILED"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthorizationDeniedError(AuthorizationError):
    """Raised when the provider redirect carries an ``error`` parameter."""

    def __init__(self, provider_error: str):
        super().__init__(
            f"Authorization denied by provider: {provider_error}",
            error_type=provider_error,
        )


class MissingAuthorizationCodeError(AuthorizationError):
    """Raised when the provider redirect carries neither code nor error."""

    error_type = "MISSING_AUTHORIZATION_CODE"


class TokenStoreError(CalendarFeedError):
    """Raised when the token file cannot be written."""

    error_type = "TOKEN_STORE_ERROR"


class NotAuthorizedError(CalendarFeedError):
    """Raised when a calendar is fetched before authorization completed."""

    error_type = "MODULE_ERROR_UNAUTHORIZED"
