"""
Rate-limited transport for the bol.com APIs

- Injects bearer auth and audience-specific default headers
- 429 → RateLimitError (never retried here)
- Other non-2xx responses are returned with ok=False so callers can choose
  fail-soft or fail-hard per endpoint
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from bolsync.core.config import settings
from bolsync.services.bol.errors import RateLimitError, TransientTransportError
from bolsync.services.bol.token_cache import Audience

logger = logging.getLogger(__name__)

RETAILER_HEADERS = {"Accept": "application/vnd.retailer.v10+json", "Content-Type": "application/json"}
ADS_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}

DEFAULT_RETRY_AFTER_SECONDS = 60


@dataclass
class BolResponse:
    ok: bool
    status: int
    body: Any


def parse_retry_after(value: Optional[str]) -> int:
    """Retry-After in seconds; 60 when absent or unparseable."""
    if value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return int(value.strip())
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


def decode_body(response: httpx.Response) -> Any:
    """JSON content types decode to data; text, CSV and anything else stay raw text."""
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            raise TransientTransportError(f"Invalid JSON from bol.com: {e}") from e
    return response.text


class BolTransport:
    """
    Thin request wrapper bound to one bol.com surface.

    Args:
        http_client: Shared async HTTP client
        base_url: Surface base URL (retailer or advertising)
        default_headers: Headers merged under caller-supplied headers
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, default_headers: Dict[str, str]):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.default_headers = dict(default_headers)

    @classmethod
    def for_audience(cls, http_client: httpx.AsyncClient, audience: Audience) -> "BolTransport":
        if audience == Audience.ADVERTISING:
            return cls(http_client, settings.bol_ads_base, ADS_HEADERS)
        return cls(http_client, settings.bol_api_base, RETAILER_HEADERS)

    async def request(
        self,
        token: str,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
        params: Optional[Any] = None
    ) -> BolResponse:
        merged = {**self.default_headers, "Authorization": f"Bearer {token}", **(headers or {})}

        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                headers=merged,
                json=json,
                params=params,
            )
        except httpx.TransportError as e:
            logger.warning(f"bol.com transport error on {method} {path}: {e}")
            raise TransientTransportError(f"{method} {path}: {e}") from e

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"⏳ bol.com rate limit on {path}, retry after {retry_after}s")
            raise RateLimitError(retry_after)

        if not response.is_success:
            logger.debug(f"bol.com {method} {path} → {response.status_code}")
            return BolResponse(ok=False, status=response.status_code, body=response.text)

        return BolResponse(ok=True, status=response.status_code, body=decode_body(response))
