"""
FastAPI dependency injection providers.

Provides the shared transport, database-bound Event Store, downstream
clients, and the gateway and meeting logger built from them.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from calsync.clients.activity import ActivityClient
from calsync.clients.storage import StorageClient
from calsync.clients.tasks import TaskClient
from calsync.config import get_settings
from calsync.database import get_async_session
from calsync.integrations.transport import TransportClient
from calsync.services.event_store import EventStore
from calsync.services.gateway import SyncGateway
from calsync.services.meeting_logger import MeetingLogger

logger = logging.getLogger(__name__)

# Shared transport (initialized at startup)
_transport: Optional[TransportClient] = None


def init_transport() -> TransportClient:
    """Create the shared provider transport at application startup."""
    global _transport
    settings = get_settings()
    _transport = TransportClient(timeout=settings.provider_timeout_seconds)
    logger.info("Provider transport initialized")
    return _transport


async def close_transport() -> None:
    global _transport
    if _transport is not None:
        await _transport.aclose()
        _transport = None


def get_transport() -> TransportClient:
    """Dependency for the shared transport, created lazily outside the lifespan."""
    if _transport is None:
        return init_transport()
    return _transport


def get_store(session: AsyncSession = Depends(get_async_session)) -> EventStore:
    return EventStore(session)


def get_activity_client() -> Optional[ActivityClient]:
    settings = get_settings()
    if not settings.activity_client_url:
        return None
    return ActivityClient(settings.activity_client_url, settings.service_api_key)


def get_task_client() -> Optional[TaskClient]:
    settings = get_settings()
    if not settings.task_client_url:
        return None
    return TaskClient(settings.task_client_url, settings.service_api_key)


def get_storage_client() -> Optional[StorageClient]:
    settings = get_settings()
    if not settings.storage_client_url:
        return None
    return StorageClient(settings.storage_client_url, settings.service_api_key)


def get_gateway(
    store: EventStore = Depends(get_store),
    transport: TransportClient = Depends(get_transport),
    activity_client: Optional[ActivityClient] = Depends(get_activity_client),
) -> SyncGateway:
    return SyncGateway(store, transport, activity_client)


def get_meeting_logger(
    store: EventStore = Depends(get_store),
    activity_client: Optional[ActivityClient] = Depends(get_activity_client),
    task_client: Optional[TaskClient] = Depends(get_task_client),
    storage_client: Optional[StorageClient] = Depends(get_storage_client),
) -> MeetingLogger:
    return MeetingLogger(store, activity_client, task_client, storage_client)
