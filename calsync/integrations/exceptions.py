"""
Error taxonomy for calendar sync operations.

Every provider failure is classified once into one of these kinds and
re-raised. Nothing in this package retries; `retryable` only tells the
caller whether trying again later could succeed.
"""


class CalendarSyncError(Exception):
    """Base exception for calendar sync operations."""

    error_type: str = "calendar_sync_error"
    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class UnauthorizedError(CalendarSyncError):
    """
    Missing or invalid credentials.

    Causes:
    - Authorization header missing or not a Bearer token
    - Provider rejected the token (expired, revoked)
    - Provider denied access to the calendar or contacts
    """

    error_type = "unauthorized"


class InvalidRequestError(CalendarSyncError):
    """
    The request cannot be served as given.

    Causes:
    - Missing or unknown provider header
    - Invalid time range (start not before end, longer than a day)
    - Missing required fields
    - Provider rejected the payload
    """

    error_type = "invalid_request"


class ProviderNotFoundError(InvalidRequestError):
    """Provider reports the event or calendar does not exist."""

    error_type = "not_found"


class UpstreamFailureError(CalendarSyncError):
    """Provider call failed for reasons outside the request."""

    error_type = "upstream_failure"
    retryable = True


class RateLimitError(UpstreamFailureError):
    """Provider throttled the call (429)."""

    error_type = "rate_limited"


class ConnectivityError(UpstreamFailureError):
    """
    Provider could not be reached.

    Causes:
    - Connection refused
    - Timeout
    """

    error_type = "connectivity"


class ProviderError(UpstreamFailureError):
    """Unclassified provider error carrying the provider's message."""

    error_type = "provider_error"
    retryable = False


class NotFoundError(CalendarSyncError):
    """Local record does not exist or is inactive."""

    error_type = "not_found"
