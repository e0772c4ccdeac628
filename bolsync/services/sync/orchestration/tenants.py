"""
Per-tenant run loop shared by the sync passes

Tenants are processed one at a time. Whatever a tenant's handler raises is
caught here and recorded as an "error" entry; the loop moves on.
"""
import logging
import time
from typing import Awaitable, Callable, List, Optional

from bolsync.models.schemas.bol import BolCustomer
from bolsync.models.schemas.sync import RunEntry, RunReport, SyncType
from bolsync.services.sync.context import SyncContext

logger = logging.getLogger(__name__)

TenantHandler = Callable[[SyncContext, BolCustomer], Awaitable[RunEntry]]


async def run_for_tenants(
    ctx: SyncContext,
    sync_type: SyncType,
    handler: TenantHandler,
    customers: Optional[List[BolCustomer]] = None
) -> RunReport:
    """
    Run handler for every tenant and aggregate a RunReport.

    Args:
        ctx: Shared sync collaborators
        sync_type: Which pass is running (for the report and log tag)
        handler: Coroutine doing one tenant's work
        customers: Tenants to process; defaults to all active tenants.
                   Loading them is the only failure that escapes.
    """
    started = time.monotonic()
    report = RunReport(sync_type=sync_type)
    tag = f"[bol-sync-{sync_type.value}]"

    if customers is None:
        customers = ctx.repository.list_active_customers()

    if not customers:
        report.message = "No active bol customers"
        logger.info(f"{tag} {report.message}")
        return report

    for customer in customers:
        label = customer.seller_name or customer.id
        try:
            entry = await handler(ctx, customer)
        except Exception as e:
            logger.error(f"❌ {tag} {label} failed: {e}")
            entry = RunEntry(id=customer.id, status="error", detail=str(e))

        entry.seller_name = customer.seller_name
        report.add(entry)

    report.duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        f"{tag} processed {report.processed} customers in {report.duration_ms}ms "
        f"({report.count('ok')} ok, {report.count('error')} error, {report.count('skipped')} skipped)"
    )
    return report
