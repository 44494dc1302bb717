"""Host-provided runtime configuration (the ``INIT`` payload)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HostConfig(BaseModel):
    """Configuration sent by the host once at start-up.

    Only ``excludedEvents`` is interpreted here. Entries are kept raw so that
    one malformed rule cannot reject the whole configuration; the filter
    engine validates them individually. Unknown keys are preserved.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    excluded_events: list[Any] = Field(default_factory=list, alias="excludedEvents")
