"""
Google Calendar integration for calsync.

Provides the Google Calendar and People APIs as a calendar provider.
"""

from calsync.integrations.google_calendar.adapter import GoogleCalendarAdapter
from calsync.integrations.google_calendar.client import GoogleCalendarClient
from calsync.integrations.google_calendar.provider import GoogleCalendarProvider

__all__ = [
    "GoogleCalendarAdapter",
    "GoogleCalendarClient",
    "GoogleCalendarProvider",
]
