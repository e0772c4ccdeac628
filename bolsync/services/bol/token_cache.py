"""
bol.com OAuth2 token cache
Client-credentials tokens, cached per audience and client id

A tenant can hold two unrelated credential pairs (Retailer API and
Advertising API), so each audience gets its own map. Entries are only ever
overwritten or outlived; nothing revokes them.
"""
import base64
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import httpx

from bolsync.core.config import settings
from bolsync.services.bol.errors import AuthError, TransientTransportError

logger = logging.getLogger(__name__)

# Seconds shaved off the issuer-declared lifetime
EXPIRY_MARGIN_SECONDS = 60


class Audience(str, Enum):
    RETAILER = "retailer"
    ADVERTISING = "advertising"


@dataclass(frozen=True)
class CachedToken:
    token: str
    expires_at: float  # epoch seconds


TokenStore = Dict[Audience, Dict[str, CachedToken]]


def new_token_store() -> TokenStore:
    return {Audience.RETAILER: {}, Audience.ADVERTISING: {}}


class TokenCache:
    """
    Per-process token cache.

    Owned by whoever creates it (see bolsync.core.dependencies.get_token_cache);
    tests build a fresh one per case.

    Args:
        http_client: Async HTTP client used for the token exchange
        token_url: OAuth2 token endpoint
        clock: Returns the current time in epoch seconds
        store: Token maps to read and write; pass one in to share tokens
               between caches bound to different event loops (worker tasks)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_url: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        store: Optional[TokenStore] = None
    ):
        self.http_client = http_client
        self.token_url = token_url or settings.bol_token_url
        self.clock = clock
        self._caches: TokenStore = store if store is not None else new_token_store()

    def peek(self, audience: Audience, client_id: str) -> Optional[CachedToken]:
        """Return the cached entry (expired or not) without touching the network."""
        return self._caches[Audience(audience)].get(client_id)

    async def get_token(self, audience: Audience, client_id: str, client_secret: str) -> str:
        """
        Return a valid bearer token for (audience, client_id).

        Raises:
            AuthError: token endpoint answered non-2xx (cache left untouched)
            TransientTransportError: network failure during the exchange
        """
        audience = Audience(audience)
        cache = self._caches[audience]

        cached = cache.get(client_id)
        if cached and self.clock() < cached.expires_at:
            return cached.token

        credentials = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()
        headers = {"Authorization": f"Basic {credentials}", "Accept": "application/json"}

        logger.debug(f"🔑 Requesting {audience.value} token for client {client_id[:6]}...")

        try:
            response = await self.http_client.post(self.token_url, headers=headers)
        except httpx.TransportError as e:
            raise TransientTransportError(f"Token exchange failed: {e}") from e

        if not response.is_success:
            logger.error(f"❌ bol.com {audience.value} OAuth failed: {response.status_code}")
            raise AuthError(response.status_code, response.text, audience=audience.value)

        try:
            data = response.json()
            access_token = data["access_token"]
            expires_in = int(data["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            raise TransientTransportError(f"Unparseable token response: {e}") from e

        cache[client_id] = CachedToken(
            token=access_token,
            expires_at=self.clock() + (expires_in - EXPIRY_MARGIN_SECONDS),
        )
        return access_token

    async def get_retailer_token(self, client_id: str, client_secret: str) -> str:
        return await self.get_token(Audience.RETAILER, client_id, client_secret)

    async def get_ads_token(self, client_id: str, client_secret: str) -> str:
        return await self.get_token(Audience.ADVERTISING, client_id, client_secret)
