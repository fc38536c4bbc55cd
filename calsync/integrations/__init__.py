"""
Calendar provider integrations for calsync.

Provides the canonical event model and the CalendarProvider interface
implemented by the Google Calendar and Microsoft Graph packages.
"""

from calsync.integrations.base import CalendarProvider, CanonicalEvent, EventPatch, ProviderTag

__all__ = ["CalendarProvider", "CanonicalEvent", "EventPatch", "ProviderTag"]
