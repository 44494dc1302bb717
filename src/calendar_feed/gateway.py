"""Notification gateway between the host and the calendar feed.

Inbound notifications:

| notification | payload | effect |
|---|---|---|
| ``INIT`` | host config with ``excludedEvents`` | stores config |
| ``MODULE_READY`` | ``{queryParams?}`` | completes or ensures authorization |
| ``ADD_CALENDAR`` | ``{calendarID, fetchInterval, maximumEntries, id}`` | starts polling |

Outbound notifications:

| notification | payload |
|---|---|
| ``SERVICE_READY`` | ``{}`` |
| ``AUTH_NEEDED`` | ``{url, credentialType}`` |
| ``AUTH_FAILED`` | ``{error_type}`` |
| ``CALENDAR_EVENTS`` | ``{id, calendarID, events}`` |
| ``CALENDAR_ERROR`` | ``{id, error_type}`` |
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from enum import Enum
from typing import Any, Callable

from pydantic import ValidationError

from calendar_feed.auth.manager import (
    AuthOutcome,
    AuthorizationFailed,
    AuthorizationManager,
    AuthorizationNeeded,
    ServiceReady,
)
from calendar_feed.calendar.poller import (
    CalendarError,
    CalendarEvents,
    CalendarPoller,
    CalendarResult,
)
from calendar_feed.models.config import HostConfig
from calendar_feed.models.subscription import CalendarSubscription

logger = logging.getLogger(__name__)


class Notification(str, Enum):
    """Notification names exchanged with the host."""

    # Inbound
    INIT = "INIT"
    MODULE_READY = "MODULE_READY"
    ADD_CALENDAR = "ADD_CALENDAR"

    # Outbound
    SERVICE_READY = "SERVICE_READY"
    AUTH_NEEDED = "AUTH_NEEDED"
    AUTH_FAILED = "AUTH_FAILED"
    CALENDAR_EVENTS = "CALENDAR_EVENTS"
    CALENDAR_ERROR = "CALENDAR_ERROR"


Emitter = Callable[[str, dict[str, Any]], Awaitable[None]]


class NotificationGateway:
    """Translates host notifications into component calls and back.

    Example:
        ```python
        gateway = NotificationGateway(manager, emit=websocket_broadcast)
        await gateway.handle("INIT", {"excludedEvents": ["standup"]})
        await gateway.handle("MODULE_READY", {})
        await gateway.handle("ADD_CALENDAR", {"calendarID": "primary", ...})
        ```
    """

    def __init__(
        self,
        manager: AuthorizationManager,
        emit: Emitter,
        poller: CalendarPoller | None = None,
    ):
        """Initialize the gateway.

        Args:
            manager: Authorization manager
            emit: Coroutine sending ``(notification, payload)`` to the host
            poller: Calendar poller (one reporting back here is built if omitted)
        """
        self.manager = manager
        self.emit = emit
        self.poller = poller or CalendarPoller(manager.context, self.emit_calendar_result)

    async def handle(self, notification: str, payload: Any = None) -> None:
        """Dispatch one inbound notification."""
        logger.info(f"Notification {notification}")
        payload = payload or {}

        try:
            kind = Notification(notification)
        except ValueError:
            logger.warning(f"Ignoring unknown notification {notification!r}")
            return

        if not isinstance(payload, dict):
            logger.warning(f"Ignoring {notification}: payload is not an object")
            return

        if kind is Notification.INIT:
            await self._on_init(payload)
        elif kind is Notification.MODULE_READY:
            await self._on_module_ready(payload)
        elif kind is Notification.ADD_CALENDAR:
            await self._on_add_calendar(payload)
        else:
            logger.warning(f"Ignoring outbound notification {notification} sent by host")

    async def _on_init(self, payload: dict[str, Any]) -> None:
        try:
            config = HostConfig.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Invalid INIT payload: {e}")
            return
        self.manager.initialize(config)

    async def _on_module_ready(self, payload: dict[str, Any]) -> None:
        query_params = payload.get("queryParams")
        if query_params:
            outcome = await self.manager.complete_authorization(query_params)
        else:
            outcome = await self.manager.ensure_authorized()
        await self.emit_auth_outcome(outcome)

    async def _on_add_calendar(self, payload: dict[str, Any]) -> None:
        try:
            subscription = CalendarSubscription.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Invalid ADD_CALENDAR payload: {e}")
            return
        self.poller.register_and_start(subscription)

    async def emit_auth_outcome(self, outcome: AuthOutcome) -> None:
        """Report an authorization outcome to the host."""
        if isinstance(outcome, ServiceReady):
            await self.emit(Notification.SERVICE_READY.value, {})
        elif isinstance(outcome, AuthorizationNeeded):
            await self.emit(
                Notification.AUTH_NEEDED.value,
                {"url": outcome.url, "credentialType": outcome.credential_type.value},
            )
        elif isinstance(outcome, AuthorizationFailed):
            await self.emit(Notification.AUTH_FAILED.value, {"error_type": outcome.error_type})

    async def emit_calendar_result(self, result: CalendarResult) -> None:
        """Report one fetch cycle to the host."""
        if isinstance(result, CalendarEvents):
            await self.emit(
                Notification.CALENDAR_EVENTS.value,
                {
                    "id": result.identifier,
                    "calendarID": result.calendar_id,
                    "events": result.payload_events(),
                },
            )
        elif isinstance(result, CalendarError):
            await self.emit(
                Notification.CALENDAR_ERROR.value,
                {"id": result.identifier, "error_type": result.error_type},
            )
