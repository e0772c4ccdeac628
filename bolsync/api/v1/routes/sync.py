"""
Sync Routes
Scheduled + on-demand bol.com sync passes

ENDPOINTS:
- /bol/sync/start     main pass, all active tenants      (cron: daily 02:00 UTC)
- /bol/sync/complete  export job sweep, all tenants       (cron: every 5 min)
- /bol/sync/extended  per-EAN enrichment, active tenants  (cron: every 6 h)
- /bol/sync/manual    main pass for one tenant, webhook secret
- /bol/sync/trigger   one pass for one tenant, dashboard user (Supabase JWT)
- /bol/sync/enqueue   hand a pass to the Dramatiq worker

The response is always the run report. A run answers non-2xx only when it
could not start at all (tenant list unavailable).
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from bolsync.core.dependencies import get_sync_context
from bolsync.core.security import get_current_user, verify_sync_secret
from bolsync.middleware.rate_limit import limiter
from bolsync.models.schemas.bol import BolCustomer
from bolsync.models.schemas.sync import ManualSyncRequest, RunReport, SyncTriggerRequest, SyncType
from bolsync.services.bol.errors import AuthError, NotFoundError, TransientTransportError
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.orchestration import (
    run_complete_sync,
    run_extended_sync,
    run_main_sync,
    run_sync,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bol/sync", tags=["sync"])


def report_response(report: RunReport) -> Dict[str, Any]:
    body = report.model_dump(mode="json", exclude={"sync_type"})
    if not body["message"]:
        body.pop("message")
    if report.sync_type == SyncType.COMPLETE:
        body["checked"] = report.processed
        body["completed"] = report.count("completed")
        body["still_pending"] = report.count("pending")
    return body


def tenants_unavailable(e: Exception) -> JSONResponse:
    logger.error(f"❌ Could not load bol customers: {e}")
    return JSONResponse(status_code=500, content={"error": str(e)})


# ============================================================================
# SCHEDULED / MANUAL (shared secret)
# ============================================================================

@router.api_route("/start", methods=["GET", "POST"], dependencies=[Depends(verify_sync_secret)])
@limiter.limit("30/hour")
async def sync_start(request: Request, ctx: SyncContext = Depends(get_sync_context)):
    """Main pass: submit offers export, pull inventory/orders/ads/returns/performance."""
    try:
        report = await run_main_sync(ctx)
    except Exception as e:
        return tenants_unavailable(e)
    return report_response(report)


@router.api_route("/complete", methods=["GET", "POST"], dependencies=[Depends(verify_sync_secret)])
@limiter.limit("120/hour")
async def sync_complete(request: Request, ctx: SyncContext = Depends(get_sync_context)):
    """Sweep pending export jobs: complete, fail or leave pending."""
    try:
        report = await run_complete_sync(ctx)
    except Exception as e:
        logger.error(f"❌ Could not load pending export jobs: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return report_response(report)


@router.api_route("/extended", methods=["GET", "POST"], dependencies=[Depends(verify_sync_secret)])
@limiter.limit("30/hour")
async def sync_extended(request: Request, ctx: SyncContext = Depends(get_sync_context)):
    """Competitor, rank and catalog enrichment for each tenant's top EANs."""
    try:
        report = await run_extended_sync(ctx)
    except Exception as e:
        return tenants_unavailable(e)
    return report_response(report)


@router.post("/enqueue/{sync_type}", dependencies=[Depends(verify_sync_secret)])
@limiter.limit("30/hour")
async def sync_enqueue(request: Request, sync_type: SyncType):
    """Run a pass on the background worker instead of inside the request."""
    from bolsync.services.jobs.tasks import SYNC_ACTORS

    message = SYNC_ACTORS[sync_type].send()
    logger.info(f"📨 Queued {sync_type.value} sync (message {message.message_id})")
    return {"status": "queued", "sync_type": sync_type.value, "message_id": message.message_id}


# ============================================================================
# SINGLE TENANT
# ============================================================================

async def runnable_customer(ctx: SyncContext, customer_id: str, sync_type: SyncType) -> BolCustomer:
    """
    Load a tenant for a one-off pass.

    Raises:
        NotFoundError: unknown tenant (404 via the error handler)
        HTTPException 400: tenant inactive, or bol.com rejected its credentials
    """
    customer = ctx.repository.get_customer(customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    if not customer.active:
        raise HTTPException(status_code=400, detail="Customer is inactive")

    if sync_type != SyncType.COMPLETE:
        try:
            await ctx.token_cache.get_retailer_token(customer.bol_client_id, customer.bol_client_secret)
        except (AuthError, TransientTransportError) as e:
            raise HTTPException(status_code=400, detail=f"Bol.com auth failed: {e}")

    return customer


async def run_for_customer(ctx: SyncContext, customer: BolCustomer, sync_type: SyncType) -> Dict[str, Any]:
    report = await run_sync(ctx, sync_type, customer)
    body = report_response(report)
    body["customer_id"] = customer.id
    body["seller_name"] = customer.seller_name
    return body


@router.post("/manual", dependencies=[Depends(verify_sync_secret)])
@limiter.limit("20/hour")
async def sync_manual(request: Request, body: ManualSyncRequest, ctx: SyncContext = Depends(get_sync_context)):
    """Main pass for one tenant, for operators holding the webhook secret."""
    logger.info(f"Manual main sync requested for {body.customer_id}")
    customer = await runnable_customer(ctx, body.customer_id, SyncType.MAIN)
    return await run_for_customer(ctx, customer, SyncType.MAIN)


# ============================================================================
# DASHBOARD (Supabase JWT)
# ============================================================================

@router.post("/trigger")
@limiter.limit("20/hour")
async def sync_trigger(
    request: Request,
    body: SyncTriggerRequest,
    user: Dict[str, str] = Depends(get_current_user),
    ctx: SyncContext = Depends(get_sync_context)
):
    """
    Run one pass for a single tenant.

    - 404 when the tenant does not exist
    - 400 when it is inactive or its bol.com credentials are rejected
    """
    logger.info(f"Dashboard {body.sync_type.value} sync requested by {user['email']} for {body.customer_id}")

    customer = await runnable_customer(ctx, body.customer_id, body.sync_type)
    return await run_for_customer(ctx, customer, body.sync_type)
