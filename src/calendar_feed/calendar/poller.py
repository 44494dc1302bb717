"""Calendar polling loops.

Each registered calendar gets its own asyncio task running

1. fetch upcoming events (blocking API call in a worker thread)
2. filter them with the context's exclusion rules
3. hand the result to the gateway
4. wait ``fetchInterval`` and start over

The next cycle is scheduled only after the current one finishes, so fetches
for one calendar never overlap and a slow API naturally stretches the
interval. Failures are reported and the loop keeps going; only
``ServiceContext.shutdown()`` ends it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from calendar_feed.calendar.errors import classify_fetch_error
from calendar_feed.calendar.google_calendar import CalendarEvent
from calendar_feed.context import ServiceContext
from calendar_feed.exceptions import NotAuthorizedError
from calendar_feed.models.subscription import CalendarSubscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEvents:
    """Filtered events of one fetch cycle."""

    identifier: str
    calendar_id: str
    events: list[CalendarEvent] = field(default_factory=list)

    def payload_events(self) -> list[dict[str, Any]]:
        """Raw API items, in provider order."""
        return [event.raw_data for event in self.events]


@dataclass(frozen=True)
class CalendarError:
    """A failed fetch cycle."""

    identifier: str
    error_type: str


CalendarResult = Union[CalendarEvents, CalendarError]

ResultHandler = Callable[[CalendarResult], Awaitable[None]]


class CalendarPoller:
    """Runs one independent polling loop per subscription.

    Example:
        ```python
        poller = CalendarPoller(context, on_result=gateway.emit_calendar_result)
        poller.register_and_start(subscription)
        ...
        context.shutdown()
        await poller.wait_closed()
        ```
    """

    def __init__(self, context: ServiceContext, on_result: ResultHandler):
        """Initialize the poller.

        Args:
            context: Shared service context (client, rules, active flag)
            on_result: Coroutine receiving every cycle's result
        """
        self.context = context
        self.on_result = on_result
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def task_count(self) -> int:
        """Number of polling loops still running."""
        return len(self._tasks)

    def register_and_start(self, subscription: CalendarSubscription) -> asyncio.Task[None]:
        """Start polling a calendar. Must be called from the event loop."""
        task = asyncio.create_task(
            self._poll(subscription),
            name=f"poll-{subscription.identifier}-{subscription.calendar_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(
            f"Polling {subscription.calendar_id} every {subscription.fetch_interval_ms} ms"
        )
        return task

    async def _fetch(self, subscription: CalendarSubscription) -> list[CalendarEvent]:
        client = self.context.calendar_client
        if client is None:
            raise NotAuthorizedError("Calendar service is not authorized")
        return await asyncio.to_thread(
            client.list_upcoming_events,
            subscription.calendar_id,
            subscription.maximum_entries,
        )

    async def run_cycle(self, subscription: CalendarSubscription) -> CalendarResult:
        """Fetch, filter and emit once for ``subscription``."""
        calendar_id = subscription.calendar_id

        try:
            events = await self._fetch(subscription)
        except Exception as e:
            logger.error(f"Could not fetch calendar {calendar_id}: {e!r}")
            result: CalendarResult = CalendarError(
                subscription.identifier, classify_fetch_error(e)
            )
        else:
            logger.info(f"{len(events)} events loaded for {calendar_id}")
            filtered = self.context.filter_engine.filter_events(events)
            logger.info(f"{len(filtered)} events after filtering for {calendar_id}")
            result = CalendarEvents(subscription.identifier, calendar_id, filtered)

        await self.on_result(result)
        return result

    async def _poll(self, subscription: CalendarSubscription) -> None:
        while self.context.active:
            try:
                await self.run_cycle(subscription)
            except Exception:
                logger.exception(f"Error delivering result for {subscription.calendar_id}")

            if not await self.context.sleep(subscription.fetch_interval_seconds):
                break

        logger.info(f"Stopped polling {subscription.calendar_id}")

    async def wait_closed(self) -> None:
        """Wait for every polling loop to finish after shutdown."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
