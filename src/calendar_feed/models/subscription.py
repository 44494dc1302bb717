"""Calendar subscription model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CalendarSubscription(BaseModel):
    """One calendar registered by the host with ``ADD_CALENDAR``.

    Field aliases match the host payload:

    ```json
    {"calendarID": "primary", "fetchInterval": 300000, "maximumEntries": 10, "id": "m1"}
    ```
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    calendar_id: str = Field(..., alias="calendarID", min_length=1)
    fetch_interval_ms: int = Field(default=300_000, alias="fetchInterval", gt=0)
    maximum_entries: int = Field(default=10, alias="maximumEntries", gt=0)
    identifier: str = Field(..., alias="id")

    @field_validator("identifier", mode="before")
    @classmethod
    def coerce_identifier(cls, v: object) -> object:
        """Hosts may send numeric module identifiers."""
        if isinstance(v, int):
            return str(v)
        return v

    @property
    def fetch_interval_seconds(self) -> float:
        """Polling interval in seconds."""
        return self.fetch_interval_ms / 1000
