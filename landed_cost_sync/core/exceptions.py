"""
Custom exception hierarchy for the landed cost sync engine.

Exceptions are categorized as:
- RetryableError: Transient errors; the unit lands in the error bucket and is
  picked up again by the next resync pass
- NonRetryableError: Permanent errors; the unit is logged and skipped

Classification outcomes ("cannot be classified", pending, classified) are
not exceptions. They are reported by the classification response itself.
"""


class LandedCostSyncException(Exception):
    """Base exception for landed cost sync."""
    pass


# ============================================
# RETRYABLE ERRORS - Retried by the next resync pass
# ============================================
class RetryableError(LandedCostSyncException):
    """
    Base class for errors that a later attempt might get past.

    - Network timeouts
    - Rate limits
    - Temporary service unavailability
    """
    pass


class ExternalAPIError(RetryableError):
    """
    Error from the classification service (5xx class).
    """
    def __init__(self, service: str, message: str, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} API error: {message}")


class RateLimitError(RetryableError):
    """
    Rate limit exceeded.
    """
    def __init__(self, service: str, retry_after: int = 60):
        self.service = service
        self.retry_after = retry_after
        super().__init__(f"{service} rate limited. Retry after {retry_after}s")


class ConnectionTimeoutError(RetryableError):
    """Connection or timeout error - typically transient."""
    pass


class DatabaseTransientError(RetryableError):
    """
    Transient database error.

    Examples: connection pool exhausted, temporary unavailability
    """
    pass


# ============================================
# NON-RETRYABLE ERRORS - Logged and skipped
# ============================================
class NonRetryableError(LandedCostSyncException):
    """
    Base class for errors that a retry won't fix.

    - Malformed or incomplete item data
    - Items the classification request cannot be built from
    """
    pass


class ValidationError(NonRetryableError):
    """Invalid item data - retrying won't help without a data fix."""
    pass
