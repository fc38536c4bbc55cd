"""
Task creation collaborator.

Creates follow-up tasks in the external task service.
"""

import logging
from enum import Enum
from typing import Any, Optional

from calsync.clients.base import ServiceClient, ServiceClientError

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskClient(ServiceClient):
    """Client for the task service."""

    service_name = "Task service"

    async def create_task(self, payload: dict[str, Any]) -> dict:
        """
        Create a task.

        Args:
            payload: Task fields (title, leadId, status, dueDate, priority, ...)

        Returns:
            {"id": <task id>}

        Raises:
            ServiceClientError: If the service fails or returns no id
        """
        record = await self._send("POST", "/tasks", payload)
        task_id: Optional[Any] = (record or {}).get("id") or (record or {}).get("_id")
        if not task_id:
            raise ServiceClientError("Task service response did not include an id")
        logger.info(f"Created task {task_id} for lead {payload.get('leadId')}")
        return {"id": str(task_id)}
