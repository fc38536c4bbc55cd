"""
Service layer for calsync.

Provides:
- EventStore: persistence for event mirrors and logged meetings
- attempt(): best-effort wrapper for side effects
- FeedBuilder, MeetingLogger, SyncGateway (import from their modules;
  they depend on the provider integrations, which depend on this package)
"""

from calsync.services.best_effort import Outcome, attempt
from calsync.services.event_store import EventStore

__all__ = ["EventStore", "Outcome", "attempt"]
