"""
Activity logging collaborator.

Records lead activity (calendar events created, updated, deleted) in the
external activity service.
"""

import logging
from enum import Enum
from typing import Any, Optional

from calsync.clients.base import ServiceClient

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    """Activity types emitted by calendar sync."""

    CALENDAR_EVENT_CREATED = "CALENDAR_EVENT_CREATED"
    CALENDAR_EVENT_UPDATED = "CALENDAR_EVENT_UPDATED"
    CALENDAR_EVENT_DELETED = "CALENDAR_EVENT_DELETED"


class ActivityClient(ServiceClient):
    """Client for the activity logging service."""

    service_name = "Activity service"

    async def log_activity(
        self,
        lead_id: Optional[str],
        activity_type: ActivityType,
        description: str,
        performed_by: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> dict:
        """
        Record an activity against a lead.

        Args:
            lead_id: Lead the activity belongs to
            activity_type: Kind of activity
            description: Human-readable summary
            performed_by: Actor email or "system"
            metadata: Extra structured context

        Returns:
            Created activity record as returned by the service
        """
        payload = {
            "leadId": lead_id,
            "activityType": ActivityType(activity_type).value,
            "description": description,
            "performedBy": performed_by,
            "metadata": metadata or {},
        }
        record = await self._send("POST", "/activities", payload)
        logger.info(f"Logged {payload['activityType']} activity for lead {lead_id}")
        return record or {}


def activity_id_of(record: Optional[dict]) -> Optional[str]:
    """Extract the activity id from a service response."""
    if not record:
        return None
    value = record.get("_id") or record.get("id")
    return str(value) if value else None
