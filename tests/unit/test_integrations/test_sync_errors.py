"""Tests for the error taxonomy."""

from calsync.integrations.exceptions import (
    CalendarSyncError,
    ConnectivityError,
    InvalidRequestError,
    NotFoundError,
    ProviderError,
    ProviderNotFoundError,
    RateLimitError,
    UnauthorizedError,
    UpstreamFailureError,
)


class TestErrorTaxonomy:
    """Tests for error kinds and retry hints."""

    def test_all_errors_share_base(self):
        for cls in (
            UnauthorizedError,
            InvalidRequestError,
            ProviderNotFoundError,
            UpstreamFailureError,
            RateLimitError,
            ConnectivityError,
            ProviderError,
            NotFoundError,
        ):
            assert issubclass(cls, CalendarSyncError)

    def test_retryable_kinds(self):
        assert RateLimitError("x").retryable is True
        assert ConnectivityError("x").retryable is True
        assert ProviderError("x").retryable is False
        assert UnauthorizedError("x").retryable is False
        assert InvalidRequestError("x").retryable is False

    def test_upstream_kinds(self):
        """Rate limits, connectivity and unclassified errors surface as upstream failures."""
        for cls in (RateLimitError, ConnectivityError, ProviderError):
            assert issubclass(cls, UpstreamFailureError)

    def test_provider_not_found_is_invalid_request(self):
        assert issubclass(ProviderNotFoundError, InvalidRequestError)
        assert not issubclass(ProviderNotFoundError, NotFoundError)

    def test_original_error_kept(self):
        cause = ValueError("bad")
        error = InvalidRequestError("Invalid date format", original_error=cause)
        assert error.original_error is cause
        assert str(error) == "Invalid date format"
