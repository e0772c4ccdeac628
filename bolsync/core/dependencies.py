"""
Dependency Injection
Provides reusable dependencies for FastAPI routes

DEPENDENCIES:
- Supabase client (tenants, jobs, snapshots + auth)
- HTTP client (bol.com Retailer + Advertising APIs)
- Token cache (one per process, shared by every sync run)
"""
import logging
from typing import Optional

import httpx
from supabase import create_client, Client

from bolsync.core.config import settings
from bolsync.services.bol.client import BolClient
from bolsync.services.bol.token_cache import TokenCache
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.database import BolRepository

logger = logging.getLogger(__name__)

# ============================================================================
# GLOBAL CLIENTS (initialized once, reused across requests)
# ============================================================================

_supabase_client: Optional[Client] = None
_http_client: Optional[httpx.AsyncClient] = None
_token_cache: Optional[TokenCache] = None


# ============================================================================
# INITIALIZATION (called on app startup)
# ============================================================================

def create_supabase_client() -> Client:
    return create_client(
        settings.supabase_url,
        settings.supabase_service_key  # Backend uses service role
    )


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.http_timeout_seconds)


async def initialize_clients():
    """
    Initialize all global clients on app startup.

    Called from main.py lifespan event.
    """
    global _supabase_client, _http_client, _token_cache

    logger.info("Initializing global clients...")

    try:
        _supabase_client = create_supabase_client()
        logger.info("✅ Supabase client initialized")
    except Exception as e:
        logger.error(f"❌ Failed to initialize Supabase: {e}")
        raise

    _http_client = create_http_client()
    _token_cache = TokenCache(_http_client)
    logger.info("✅ HTTP client + bol.com token cache initialized")

    logger.info("✅ All clients initialized successfully")


async def shutdown_clients():
    """
    Shutdown all global clients on app shutdown.

    Called from main.py lifespan event.
    """
    global _supabase_client, _http_client, _token_cache

    logger.info("Shutting down global clients...")

    if _http_client:
        try:
            await _http_client.aclose()
            logger.info("✅ HTTP client closed")
        except Exception as e:
            logger.error(f"Error closing HTTP client: {e}")

    # Supabase doesn't need explicit cleanup
    _supabase_client = None
    _http_client = None
    _token_cache = None

    logger.info("✅ All clients shutdown complete")


# ============================================================================
# DEPENDENCY FUNCTIONS (injected into routes)
# ============================================================================

def get_supabase() -> Client:
    """
    Get Supabase client for dependency injection.

    Returns:
        Supabase client (service role)
    """
    if _supabase_client is None:
        logger.error("Supabase client not initialized")
        raise RuntimeError("Supabase client not initialized. Call initialize_clients() first.")

    return _supabase_client


def get_http_client() -> httpx.AsyncClient:
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized. Call initialize_clients() first.")
    return _http_client


def get_token_cache() -> TokenCache:
    if _token_cache is None:
        raise RuntimeError("Token cache not initialized. Call initialize_clients() first.")
    return _token_cache


def build_sync_context(supabase: Client, http_client: httpx.AsyncClient, token_cache: TokenCache) -> SyncContext:
    return SyncContext(
        repository=BolRepository(supabase),
        client=BolClient(http_client),
        token_cache=token_cache,
        settings=settings,
    )


def get_sync_context() -> SyncContext:
    """
    Sync collaborators for one request.

    Usage:
        @router.post("/bol/sync/start")
        async def start(ctx: SyncContext = Depends(get_sync_context)):
            report = await run_main_sync(ctx)
    """
    return build_sync_context(get_supabase(), get_http_client(), get_token_cache())
