"""
bol.com API error taxonomy

Errors are caught at the smallest unit that has a fallback
(per item → per job → per tenant). Nothing here is retried automatically.
"""
from typing import Optional


class BolApiError(Exception):
    """Base class for everything raised by the bol.com integration."""


class AuthError(BolApiError):
    """Client-credentials exchange was rejected. Fatal for the current operation."""

    def __init__(self, status_code: int, body: str, audience: str = "retailer"):
        self.status_code = status_code
        self.body = body
        self.audience = audience
        super().__init__(f"Bol.com {audience} OAuth failed ({status_code}): {body}")


class RateLimitError(BolApiError):
    """HTTP 429. The caller decides whether and when to retry."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited by bol.com, retry after {retry_after_seconds}s")


class UpstreamFailure(BolApiError):
    """bol.com reported the remote job itself as FAILURE. Terminal."""


class TransientTransportError(BolApiError):
    """Network or parse hiccup. The owning job/tenant stays retryable."""


class NotFoundError(BolApiError):
    """Referenced tenant or credential is missing."""


class BolRequestError(BolApiError):
    """A fail-hard endpoint answered with a non-2xx status."""

    def __init__(self, operation: str, status_code: int, body: Optional[object] = None):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(f"{operation} failed ({status_code}): {body}")
