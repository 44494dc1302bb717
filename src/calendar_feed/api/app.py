"""FastAPI application factory.

Exposes the notification gateway to a host over a websocket.

## Usage

```python
from calendar_feed.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8080)
```

## Endpoints

- ``WS /ws``: ``{"notification": ..., "payload": ...}`` frames in both
  directions; outbound frames go to every connected socket
- ``GET /oauth2callback``: Google redirect target, relayed as
  ``MODULE_READY {queryParams}``
- ``GET /health``: health check
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect

from calendar_feed.auth.manager import AuthorizationManager, ClientFactory
from calendar_feed.auth.token_store import TokenStore
from calendar_feed.calendar.google_calendar import GoogleCalendarClient
from calendar_feed.config import Settings, get_settings
from calendar_feed.context import ServiceContext
from calendar_feed.gateway import Notification, NotificationGateway

logger = logging.getLogger(__name__)


class ConnectionHub:
    """Connected host sockets."""

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()

    async def broadcast(self, notification: str, payload: dict[str, Any]) -> None:
        """Send a notification to every connected host."""
        message = {"notification": notification, "payload": payload}
        for websocket in list(self.connections):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning(f"Dropping host connection: {e!r}")
                self.connections.discard(websocket)


def create_app(
    settings: Settings | None = None,
    client_factory: ClientFactory = GoogleCalendarClient,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (default: cached environment settings)
        client_factory: Builds the calendar client once authorized

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    hub = ConnectionHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the service on startup, stop polling on shutdown."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")

        context = ServiceContext(settings)
        manager = AuthorizationManager(
            context,
            TokenStore.from_settings(settings),
            client_factory=client_factory,
        )
        app.state.context = context
        app.state.gateway = NotificationGateway(manager, emit=hub.broadcast)

        yield

        # Shutdown
        logger.info("Shutting down")
        context.shutdown()
        await app.state.gateway.poller.wait_closed()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Google Calendar feed with exclusion rules",
        lifespan=lifespan,
    )
    app.state.hub = hub

    @app.websocket("/ws")
    async def notifications(websocket: WebSocket) -> None:
        """Exchange notifications with a host."""
        await websocket.accept()
        hub.connections.add(websocket)
        gateway: NotificationGateway = websocket.app.state.gateway
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                except ValueError as e:
                    logger.warning(f"Ignoring malformed frame: {e}")
                    continue
                if not isinstance(message, dict):
                    logger.warning("Ignoring frame that is not an object")
                    continue
                await gateway.handle(
                    str(message.get("notification", "")),
                    message.get("payload"),
                )
        except WebSocketDisconnect:
            logger.info("Host disconnected")
        finally:
            hub.connections.discard(websocket)

    @app.get("/oauth2callback", tags=["Authentication"])
    async def oauth2_callback(request: Request) -> dict[str, Any]:
        """Relay Google's redirect to the authorization manager."""
        gateway: NotificationGateway = request.app.state.gateway
        await gateway.handle(
            Notification.MODULE_READY.value,
            {"queryParams": request.url.query},
        )
        return {"authorized": request.app.state.context.is_authorized}

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        context: ServiceContext = app.state.context
        return {
            "status": "healthy",
            "version": settings.app_version,
            "authorized": context.is_authorized,
        }

    return app
