"""
Dramatiq Background Tasks
Runs the bol.com sync passes outside the request cycle
"""
import asyncio
import logging
from typing import Any, Dict

import dramatiq

from bolsync.models.schemas.sync import SyncType
from bolsync.services.bol.token_cache import TokenCache, new_token_store

logger = logging.getLogger(__name__)

# Each task runs on its own event loop (asyncio.run), so HTTP clients are
# per task. Tokens are plain data and live for the whole worker process.
_token_store = new_token_store()


def get_sync_dependencies():
    """
    Create fresh clients for one background task.
    Dramatiq workers run in separate processes, so we can't share the API's globals.
    """
    from bolsync.core.dependencies import create_http_client, create_supabase_client

    return create_http_client(), create_supabase_client()


async def _run_sync_with_cleanup(sync_type: SyncType) -> Dict[str, Any]:
    from bolsync.core.dependencies import build_sync_context
    from bolsync.services.sync.orchestration import run_sync

    http_client, supabase = get_sync_dependencies()
    try:
        token_cache = TokenCache(http_client, store=_token_store)
        ctx = build_sync_context(supabase, http_client, token_cache)
        report = await run_sync(ctx, sync_type)
        return report.summary()
    finally:
        # Cleanup HTTP client in the same event loop
        await http_client.aclose()


def run_sync_blocking(sync_type: SyncType) -> Dict[str, Any]:
    logger.info(f"🚀 Starting {sync_type.value} sync job")
    summary = asyncio.run(_run_sync_with_cleanup(sync_type))
    logger.info(f"✅ {sync_type.value} sync job finished: {summary}")
    return summary


@dramatiq.actor(max_retries=1, time_limit=3_600_000)
def sync_main_task():
    """Main pass for all active tenants."""
    run_sync_blocking(SyncType.MAIN)


@dramatiq.actor(max_retries=0)
def sync_complete_task():
    """Export job sweep. Not retried: the next scheduled sweep picks up the rest."""
    run_sync_blocking(SyncType.COMPLETE)


@dramatiq.actor(max_retries=1, time_limit=6 * 3_600_000)
def sync_extended_task():
    """Per-EAN enrichment for all active tenants."""
    run_sync_blocking(SyncType.EXTENDED)


SYNC_ACTORS = {
    SyncType.MAIN: sync_main_task,
    SyncType.COMPLETE: sync_complete_task,
    SyncType.EXTENDED: sync_extended_task,
}
