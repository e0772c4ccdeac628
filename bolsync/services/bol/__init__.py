"""
bol.com API Integration
OAuth token cache, rate-limited transport, CSV decoding and pagination
"""
from bolsync.services.bol.client import BolClient, ProcessStatus
from bolsync.services.bol.csv_decoder import decode_csv, iter_records
from bolsync.services.bol.errors import (
    AuthError,
    BolApiError,
    BolRequestError,
    NotFoundError,
    RateLimitError,
    TransientTransportError,
    UpstreamFailure,
)
from bolsync.services.bol.pagination import collect_all, paginate
from bolsync.services.bol.token_cache import Audience, CachedToken, TokenCache, TokenStore, new_token_store
from bolsync.services.bol.transport import BolResponse, BolTransport

__all__ = [
    "BolClient",
    "ProcessStatus",
    "decode_csv",
    "iter_records",
    "AuthError",
    "BolApiError",
    "BolRequestError",
    "NotFoundError",
    "RateLimitError",
    "TransientTransportError",
    "UpstreamFailure",
    "collect_all",
    "paginate",
    "Audience",
    "CachedToken",
    "TokenCache",
    "TokenStore",
    "new_token_store",
    "BolResponse",
    "BolTransport",
]
