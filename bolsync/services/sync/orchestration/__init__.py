"""
Sync passes
main: daily pull, complete: export sweep, extended: per-EAN enrichment
"""
from typing import Optional

from bolsync.models.schemas.bol import BolCustomer
from bolsync.models.schemas.sync import RunReport, SyncType
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.orchestration.export_sync import run_complete_sync
from bolsync.services.sync.orchestration.extended_sync import run_extended_sync
from bolsync.services.sync.orchestration.main_sync import run_main_sync


async def run_sync(ctx: SyncContext, sync_type: SyncType, customer: Optional[BolCustomer] = None) -> RunReport:
    """Run one pass for all active tenants, or only for `customer`."""
    if sync_type == SyncType.COMPLETE:
        return await run_complete_sync(ctx, customer.id if customer else None)

    customers = [customer] if customer else None
    if sync_type == SyncType.EXTENDED:
        return await run_extended_sync(ctx, customers)
    return await run_main_sync(ctx, customers)


__all__ = [
    "run_sync",
    "run_main_sync",
    "run_complete_sync",
    "run_extended_sync",
]
