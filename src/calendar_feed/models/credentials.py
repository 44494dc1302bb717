"""OAuth client credential models.

Google Cloud Console hands out ``credentials.json`` in one of two shapes:

```json
{"web": {"client_id": "...", "client_secret": "...", "redirect_uris": ["..."]}}
{"installed": {"client_id": "...", "client_secret": "...", "redirect_uris": ["..."]}}
```

The first is a Web application client (browser consent), the second a TV and
limited input device client. The shape is detected once at load time and
modelled as a tagged union so every use site handles both variants.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError

from calendar_feed.exceptions import MalformedCredentialsError


class CredentialType(str, Enum):
    """Kind of OAuth client, as reported to the host."""

    WEB = "web"
    DEVICE = "tv"


class _ClientCredentials(BaseModel):
    """Fields shared by both client shapes."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uris: list[str] = Field(default_factory=list)

    def redirect_uri(self, default: str) -> str:
        """First registered redirect URI, or ``default`` when none is listed."""
        return self.redirect_uris[0] if self.redirect_uris else default


class WebCredentials(_ClientCredentials):
    """Web application client."""

    kind: Literal[CredentialType.WEB] = CredentialType.WEB


class DeviceCredentials(_ClientCredentials):
    """TV and limited input device client (``installed`` key)."""

    kind: Literal[CredentialType.DEVICE] = CredentialType.DEVICE


ClientCredentials = Union[WebCredentials, DeviceCredentials]


def parse_client_credentials(blob: dict[str, Any]) -> ClientCredentials:
    """Detect the client shape of a credentials blob and validate it.

    A ``web`` entry wins over an ``installed`` one when both are present.

    Raises:
        MalformedCredentialsError: If neither shape is present or the client
            id or secret is empty
    """
    if not isinstance(blob, dict):
        raise MalformedCredentialsError("Credentials file is not a JSON object")

    try:
        if isinstance(blob.get("web"), dict):
            credentials: ClientCredentials = WebCredentials.model_validate(blob["web"])
        elif isinstance(blob.get("installed"), dict):
            credentials = DeviceCredentials.model_validate(blob["installed"])
        else:
            raise MalformedCredentialsError(
                "Credentials contain neither a 'web' nor an 'installed' client"
            )
    except ValidationError as e:
        raise MalformedCredentialsError(f"Invalid credentials: {e}") from e

    if not credentials.client_id or not credentials.client_secret:
        raise MalformedCredentialsError("client_id and client_secret are required")

    return credentials
