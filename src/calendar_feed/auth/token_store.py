"""File storage for OAuth client credentials and tokens.

Two JSON files live under the storage root:

- ``credentials.json``: OAuth client secrets downloaded from Google Cloud
  Console (read-only)
- ``token.json``: authorized-user credentials in google-auth's own format
  (``Credentials.to_json()``), written after each successful code exchange

File access runs in a worker thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from google.oauth2.credentials import Credentials

from calendar_feed.config import Settings
from calendar_feed.exceptions import CredentialFileError, TokenStoreError

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


class TokenStore:
    """Reads credentials and reads/writes the token blob.

    Example:
        ```python
        store = TokenStore.from_settings(get_settings())

        credentials = await store.read_credentials()
        credentials = await store.read_token(scopes)  # None on first run
        await store.write_token(credentials)
        ```
    """

    def __init__(self, credentials_path: Path, token_path: Path):
        """Initialize the store.

        Args:
            credentials_path: Path of the OAuth client secrets file
            token_path: Path of the persisted token file
        """
        self.credentials_path = credentials_path
        self.token_path = token_path

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenStore:
        """Create a store using the configured storage root."""
        return cls(settings.credentials_path, settings.token_path)

    async def read_credentials(self) -> dict[str, Any]:
        """Load the OAuth client secrets.

        Raises:
            CredentialFileError: If the file is missing, unreadable or not JSON
        """
        try:
            data = await asyncio.to_thread(_read_json, self.credentials_path)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading client secret file {self.credentials_path}: {e}")
            raise CredentialFileError(
                f"Could not read credentials from {self.credentials_path}"
            ) from e

        if not isinstance(data, dict):
            raise CredentialFileError(f"{self.credentials_path} is not a JSON object")
        return data

    async def read_token(self, scopes: list[str] | None = None) -> Credentials | None:
        """Load the persisted authorized-user credentials.

        Args:
            scopes: Scopes to attach to the loaded credentials

        Returns:
            The credentials, or None if no usable token is stored
        """
        try:
            return await asyncio.to_thread(
                Credentials.from_authorized_user_file, str(self.token_path), scopes
            )
        except FileNotFoundError:
            logger.info(f"No token stored at {self.token_path}")
            return None
        # google-auth raises AttributeError or TypeError on blobs of the wrong shape
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unusable token file {self.token_path}: {e!r}")
            return None

    async def write_token(self, credentials: Credentials) -> None:
        """Persist credentials, replacing any previous token.

        Raises:
            TokenStoreError: If the file cannot be written
        """
        try:
            await asyncio.to_thread(_write_text, self.token_path, credentials.to_json())
        except OSError as e:
            raise TokenStoreError(f"Could not write token to {self.token_path}: {e}") from e

        logger.info(f"Token stored to {self.token_path}")
