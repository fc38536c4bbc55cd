"""
FastAPI application for calsync.

This is the HTTP surface over the core, providing:
- Provider event endpoints (list, create, update, delete) and contacts
- Unified local feed
- Logged meeting endpoints and attachment URLs
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query
from fastapi.responses import JSONResponse

from calsync.api.dependencies import (
    close_transport,
    get_gateway,
    get_meeting_logger,
    init_transport,
)
from calsync.api.middleware import RequestLoggingMiddleware
from calsync.api.models import (
    AttachmentAccessBody,
    AttachmentUploadBody,
    CreateEventBody,
    DeleteEventResponse,
    ErrorResponse,
    HealthResponse,
    LogMeetingBody,
    LogMeetingResponse,
    UpdateEventBody,
)
from calsync.config import get_settings
from calsync.integrations.exceptions import (
    CalendarSyncError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
    UpstreamFailureError,
)
from calsync.services.feed import FeedFilters
from calsync.services.gateway import SyncGateway
from calsync.services.meeting_logger import MeetingLogger

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    logger.info("Starting calsync API")
    init_transport()

    yield

    logger.info("Shutting down calsync API")
    await close_transport()


app = FastAPI(
    title="calsync API",
    description="""
# calsync API

Normalizes Google Calendar and Microsoft Graph events into one event model,
mirrors them locally, and merges them with manually logged meetings.

## Provider selection

Provider endpoints need both headers:
- `Authorization: Bearer <access token>`
- `X-Calendar-Provider: google | microsoft`

Updating or deleting an event with neither header acts on the local mirror only.

## Error Handling

All errors return `{error_type, message, retryable}`.

- **400** - Invalid request (bad headers, time range, provider rejection)
- **401** - Missing or rejected credentials
- **404** - Local record not found
- **502** - Provider unavailable, rate limited or failing
    """,
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


def _status_for(exc: CalendarSyncError) -> int:
    if isinstance(exc, UnauthorizedError):
        return 401
    if isinstance(exc, InvalidRequestError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, UpstreamFailureError):
        return 502
    return 500


@app.exception_handler(CalendarSyncError)
async def calendar_sync_exception_handler(request, exc: CalendarSyncError):
    """Map the error taxonomy to HTTP responses."""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"{exc.error_type}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_type=exc.error_type,
            message=exc.message,
            retryable=exc.retryable,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error_type="internal_error",
            message="An unexpected error occurred",
            retryable=True,
        ).model_dump(),
    )


# =============================================================================
# Health
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(status="healthy", version=API_VERSION)


# =============================================================================
# Provider Events
# =============================================================================


@app.get("/calendar/events", tags=["Events"])
async def list_events(
    start_date: Optional[datetime] = Query(None, description="Range start (ISO-8601)"),
    end_date: Optional[datetime] = Query(None, description="Range end (ISO-8601)"),
    authorization: Optional[str] = Header(None),
    x_calendar_provider: Optional[str] = Header(None),
    gateway: SyncGateway = Depends(get_gateway),
):
    """List provider events, defaulting to today through the configured lookahead."""
    events = await gateway.list_events(authorization, x_calendar_provider, start_date, end_date)
    return [asdict(event) for event in events]


@app.post("/calendar/events", status_code=201, tags=["Events"])
async def create_event(
    body: CreateEventBody,
    authorization: Optional[str] = Header(None),
    x_calendar_provider: Optional[str] = Header(None),
    gateway: SyncGateway = Depends(get_gateway),
):
    """Create an event with the selected provider and mirror it locally."""
    event = await gateway.create_event(authorization, x_calendar_provider, body.to_domain())
    return asdict(event)


@app.patch("/calendar/events/{event_id}", tags=["Events"])
async def update_event(
    event_id: str,
    body: UpdateEventBody,
    authorization: Optional[str] = Header(None),
    x_calendar_provider: Optional[str] = Header(None),
    gateway: SyncGateway = Depends(get_gateway),
):
    """Apply a sparse update. Without provider headers only the local mirror changes."""
    event = await gateway.update_event(authorization, x_calendar_provider, event_id, body.to_patch())
    return asdict(event)


@app.delete("/calendar/events/{event_id}", response_model=DeleteEventResponse, tags=["Events"])
async def delete_event(
    event_id: str,
    authorization: Optional[str] = Header(None),
    x_calendar_provider: Optional[str] = Header(None),
    gateway: SyncGateway = Depends(get_gateway),
):
    """Delete an event. The local mirror is soft-deleted in every case."""
    result = await gateway.delete_event(authorization, x_calendar_provider, event_id)
    return DeleteEventResponse(message=result.message, event_id=result.event_id)


@app.get("/calendar/contacts", tags=["Contacts"])
async def get_contacts(
    authorization: Optional[str] = Header(None),
    x_calendar_provider: Optional[str] = Header(None),
    gateway: SyncGateway = Depends(get_gateway),
):
    contacts = await gateway.get_contacts(authorization, x_calendar_provider)
    return {"contacts": [asdict(c) for c in contacts], "total_count": len(contacts)}


# =============================================================================
# Unified Feed
# =============================================================================


@app.get("/calendar/feed", tags=["Feed"])
async def get_feed(
    provider: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    lead_id: Optional[str] = Query(None),
    authorization: Optional[str] = Header(None),
    x_calendar_provider: Optional[str] = Header(None),
    gateway: SyncGateway = Depends(get_gateway),
):
    """Merged calendar events and logged meetings, newest first."""
    items = await gateway.build_feed(
        FeedFilters(provider=provider, user_id=user_id, lead_id=lead_id),
        authorization,
        x_calendar_provider,
    )
    return [asdict(item) for item in items]


# =============================================================================
# Logged Meetings
# =============================================================================


@app.post("/calendar/meetings", response_model=LogMeetingResponse, status_code=201, tags=["Meetings"])
async def log_meeting(
    body: LogMeetingBody,
    x_organization_id: Optional[str] = Header(None),
    meeting_logger: MeetingLogger = Depends(get_meeting_logger),
):
    result = await meeting_logger.log_meeting(body.to_domain(), x_organization_id or "")
    return LogMeetingResponse(**asdict(result))


@app.get("/calendar/meetings", tags=["Meetings"])
async def list_meetings(
    lead_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    meeting_logger: MeetingLogger = Depends(get_meeting_logger),
):
    result = await meeting_logger.list_logged_meetings(lead_id, page, limit)
    return {
        "meetings": [meeting.to_dict() for meeting in result.items],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "pages": result.pages,
    }


@app.get("/calendar/meetings/{meeting_id}", tags=["Meetings"])
async def get_meeting(
    meeting_id: str,
    meeting_logger: MeetingLogger = Depends(get_meeting_logger),
):
    meeting = await meeting_logger.get_logged_meeting(meeting_id)
    return meeting.to_dict()


@app.post("/calendar/meetings/upload-attachment", tags=["Meetings"])
async def create_attachment_upload_url(
    body: AttachmentUploadBody,
    meeting_logger: MeetingLogger = Depends(get_meeting_logger),
):
    upload = await meeting_logger.create_attachment_upload_url(body.file_name, body.content_type)
    return asdict(upload)


@app.post("/calendar/meetings/view-attachment", tags=["Meetings"])
async def create_attachment_access_url(
    body: AttachmentAccessBody,
    meeting_logger: MeetingLogger = Depends(get_meeting_logger),
):
    url = await meeting_logger.create_attachment_access_url(body.file_key)
    return {"access_url": url, "file_key": body.file_key}


@app.delete("/calendar/meetings/attachment", tags=["Meetings"])
async def delete_attachment(
    file_key: str = Query(..., min_length=1),
    meeting_logger: MeetingLogger = Depends(get_meeting_logger),
):
    return await meeting_logger.delete_attachment(file_key)


def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: Optional[bool] = None,
):
    """
    Run the API server with Uvicorn.

    Arguments left as None come from Settings (api_host, api_port,
    api_reload).
    """
    import uvicorn

    settings = get_settings()
    host = host if host is not None else settings.api_host
    port = port if port is not None else settings.api_port
    reload = reload if reload is not None else settings.api_reload

    uvicorn.run(
        "calsync.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    run_server()
