"""Process-wide service context.

Holds the state shared by the authorization manager, the poller and the
gateway: settings, the host configuration, the single authorized calendar
client and the ``active`` flag.

## Lifecycle

1. ``ServiceContext(settings)`` at start-up
2. ``set_config()`` when the host sends ``INIT``
3. ``calendar_client`` is set once authorization succeeds
4. ``shutdown()`` stops every polling loop from rescheduling
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from calendar_feed.config import Settings
from calendar_feed.filters.engine import FilterEngine
from calendar_feed.models.config import HostConfig

if TYPE_CHECKING:
    from calendar_feed.calendar.google_calendar import GoogleCalendarClient


@dataclass
class ServiceContext:
    """Shared state passed to every component."""

    settings: Settings
    config: HostConfig = field(default_factory=HostConfig)
    filter_engine: FilterEngine = field(default_factory=FilterEngine)
    calendar_client: GoogleCalendarClient | None = None
    active: bool = True
    _stopped: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def set_config(self, config: HostConfig) -> None:
        """Store the host configuration and compile its exclusion rules."""
        self.config = config
        self.filter_engine = FilterEngine(config.excluded_events)

    @property
    def is_authorized(self) -> bool:
        return self.calendar_client is not None

    async def sleep(self, seconds: float) -> bool:
        """Wait ``seconds`` unless the service shuts down first.

        Returns:
            True if the full delay elapsed while still active
        """
        if not self.active:
            return False
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return self.active
        return False

    def shutdown(self) -> None:
        """Stop scheduling further fetch cycles."""
        self.active = False
        self._stopped.set()
