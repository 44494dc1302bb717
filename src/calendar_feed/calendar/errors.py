"""Classification of calendar fetch errors.

Fetch errors are reported to the host as an ``error_type`` string:

- ``MODULE_ERROR_NO_CONNECTION``: DNS or socket level failure
- ``MODULE_ERROR_UNAUTHORIZED``: the API answered 401
- ``MODULE_ERROR_UNSPECIFIED``: anything else

An unspecified error is refined with the error code carried in the HTTP
payload, upper-cased. OAuth refresh failures carry it as a string
(``{"error": "invalid_grant"}`` becomes ``INVALID_GRANT``); Calendar API
errors carry it as ``error.status`` (``NOT_FOUND``, ``PERMISSION_DENIED``).
Only the unspecified kind is refined.
"""

from __future__ import annotations

import json
import logging
import socket
from typing import Any

import httplib2
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from calendar_feed.exceptions import NotAuthorizedError

logger = logging.getLogger(__name__)

MODULE_ERROR_NO_CONNECTION = "MODULE_ERROR_NO_CONNECTION"
MODULE_ERROR_UNAUTHORIZED = "MODULE_ERROR_UNAUTHORIZED"
MODULE_ERROR_UNSPECIFIED = "MODULE_ERROR_UNSPECIFIED"

_CONNECTION_ERRORS = (
    httplib2.ServerNotFoundError,
    socket.gaierror,
    ConnectionError,
    TimeoutError,
)


def check_fetch_error(error: BaseException) -> str:
    """Derive the primary error kind from a transport error."""
    if isinstance(error, NotAuthorizedError):
        return MODULE_ERROR_UNAUTHORIZED
    if isinstance(error, _CONNECTION_ERRORS):
        return MODULE_ERROR_NO_CONNECTION
    if isinstance(error, HttpError) and error.resp.status == 401:
        return MODULE_ERROR_UNAUTHORIZED
    return MODULE_ERROR_UNSPECIFIED


def _error_payload(error: BaseException) -> Any:
    if isinstance(error, HttpError):
        try:
            return json.loads(error.content)
        except (TypeError, ValueError):
            return None
    if isinstance(error, RefreshError) and len(error.args) > 1:
        return error.args[1]
    return None


def check_for_http_error(error: BaseException) -> str | None:
    """Extract the upper-cased error code from an HTTP error payload."""
    payload = _error_payload(error)
    if not isinstance(payload, dict):
        return None

    code = payload.get("error")
    if isinstance(code, dict):
        code = code.get("status")
    if isinstance(code, str) and code:
        return code.upper()
    return None


def classify_fetch_error(error: BaseException) -> str:
    """Classify a failed calendar fetch for the host.

    Args:
        error: Exception raised while listing events

    Returns:
        The error kind reported in ``CALENDAR_ERROR``
    """
    error_type = check_fetch_error(error)
    if error_type == MODULE_ERROR_UNSPECIFIED:
        error_type = check_for_http_error(error) or error_type
    return error_type
