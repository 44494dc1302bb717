"""Data models for the calendar feed.

All models use pydantic for validation. Field aliases follow the camelCase
keys used by the host notifications (``calendarID``, ``excludedEvents``,
``filterBy`` ...).
"""

from calendar_feed.models.config import HostConfig
from calendar_feed.models.credentials import (
    ClientCredentials,
    CredentialType,
    DeviceCredentials,
    WebCredentials,
    parse_client_credentials,
)
from calendar_feed.models.rules import ExclusionRule
from calendar_feed.models.subscription import CalendarSubscription

__all__ = [
    "HostConfig",
    "ClientCredentials",
    "CredentialType",
    "DeviceCredentials",
    "WebCredentials",
    "parse_client_credentials",
    "ExclusionRule",
    "CalendarSubscription",
]
