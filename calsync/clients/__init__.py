"""
Clients for downstream services: activity logging, tasks and object storage.
"""

from calsync.clients.activity import ActivityClient, ActivityType
from calsync.clients.base import ServiceClient, ServiceClientError
from calsync.clients.storage import StorageClient
from calsync.clients.tasks import TaskClient, TaskPriority, TaskStatus

__all__ = [
    "ActivityClient",
    "ActivityType",
    "ServiceClient",
    "ServiceClientError",
    "StorageClient",
    "TaskClient",
    "TaskPriority",
    "TaskStatus",
]
