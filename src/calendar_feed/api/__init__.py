"""Host bridge for the calendar feed.

## API Structure

- /ws - Notification websocket
- /oauth2callback - Google OAuth redirect target
- /health - Health check
"""

from calendar_feed.api.app import create_app

__all__ = ["create_app"]
