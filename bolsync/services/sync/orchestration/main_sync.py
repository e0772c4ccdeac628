"""
Main sync pass
Daily per-tenant pull: offers export submit, inventory, orders, advertising,
returns and seller performance

Each block is independent. A failing block is reported as
{"status": "failed", "error": ...} inside the tenant entry and the next
block still runs. Only a failed token exchange fails the whole tenant.
"""
import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from bolsync.models.schemas.bol import BolCustomer
from bolsync.models.schemas.sync import RunEntry, RunReport, SyncType
from bolsync.services.analysis import (
    analyze_advertising,
    analyze_inventory,
    analyze_orders,
    analyze_performance,
    analyze_returns,
)
from bolsync.services.bol.client import PERFORMANCE_INDICATORS
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.export_jobs import ExportJobMachine
from bolsync.services.sync.orchestration.tenants import run_for_tenants

logger = logging.getLogger(__name__)

# Campaigns whose ad groups are fetched per run
MAX_AD_CAMPAIGNS = 20
ADS_REPORT_DAYS = 30

Block = Dict[str, Any]


def _failed(e: Exception) -> Block:
    return {"status": "failed", "error": str(e)}


# ============================================================================
# BLOCKS
# ============================================================================

async def submit_offers_export(ctx: SyncContext, customer: BolCustomer, token: str) -> Block:
    try:
        job = await ExportJobMachine(ctx).submit(customer, token)
        return {"status": "job_submitted", "process_status_id": job.process_status_id}
    except Exception as e:
        logger.warning(f"⚠️  Offers export submit failed for {customer.id}: {e}")
        return _failed(e)


async def sync_inventory(ctx: SyncContext, customer: BolCustomer, token: str) -> Block:
    try:
        inventory = await ctx.client.get_inventory(token)
        analysis = analyze_inventory(inventory)
        snapshot_id = ctx.repository.insert_snapshot(
            customer.id, "inventory", {"items": inventory},
            record_count=len(inventory),
            quality_score=1.0 if inventory else 0.5,
        )
        ctx.repository.insert_analysis(customer.id, "inventory", analysis, snapshot_id=snapshot_id)
        return {"status": "ok", "items": len(inventory), "score": analysis.score}
    except Exception as e:
        return _failed(e)


async def sync_orders(ctx: SyncContext, customer: BolCustomer, token: str) -> Block:
    try:
        orders = await ctx.client.get_orders(token)
        analysis = analyze_orders(orders)
        snapshot_id = ctx.repository.insert_snapshot(
            customer.id, "orders", {"orders": orders}, record_count=len(orders)
        )
        ctx.repository.insert_analysis(customer.id, "orders", analysis, snapshot_id=snapshot_id)
        return {"status": "ok", "count": len(orders), "score": analysis.score}
    except Exception as e:
        return _failed(e)


async def sync_advertising(ctx: SyncContext, customer: BolCustomer) -> Block:
    if not customer.has_ads_credentials:
        return {"status": "skipped", "note": "No ads credentials"}

    try:
        ads_token = await ctx.token_cache.get_ads_token(customer.ads_client_id, customer.ads_client_secret)
        campaigns = await ctx.client.get_ads_campaigns(ads_token)

        ad_groups: List[Dict[str, Any]] = []
        for campaign in campaigns[:MAX_AD_CAMPAIGNS]:
            campaign_id = campaign.get("campaignId")
            if not campaign_id:
                continue
            ad_groups.extend(await ctx.client.get_ads_ad_groups(ads_token, campaign_id))
            await ctx.sleep(ctx.settings.ads_delay_seconds)

        date_to = date.today()
        date_from = date_to - timedelta(days=ADS_REPORT_DAYS)
        performance = await ctx.client.get_ads_performance(ads_token, date_from.isoformat(), date_to.isoformat())

        analysis = analyze_advertising(campaigns, ad_groups, performance)
        snapshot_id = ctx.repository.insert_snapshot(
            customer.id, "advertising",
            {"campaigns": campaigns, "adGroups": ad_groups, "performance": performance},
            record_count=len(campaigns),
        )
        ctx.repository.insert_analysis(customer.id, "advertising", analysis, snapshot_id=snapshot_id)
        return {"status": "ok", "campaigns": len(campaigns), "score": analysis.score}
    except Exception as e:
        return _failed(e)


async def sync_returns(ctx: SyncContext, customer: BolCustomer, token: str) -> Block:
    try:
        open_returns, handled_returns = await asyncio.gather(
            ctx.client.get_returns(token, handled=False),
            ctx.client.get_returns(token, handled=True),
        )
        analysis = analyze_returns(open_returns, handled_returns)
        ctx.repository.insert_analysis(customer.id, "returns", analysis)
        return {
            "status": "ok",
            "open": len(open_returns),
            "handled": len(handled_returns),
            "score": analysis.score,
        }
    except Exception as e:
        return _failed(e)


async def sync_performance(ctx: SyncContext, customer: BolCustomer, token: str) -> Block:
    try:
        raw = await asyncio.gather(
            *(ctx.client.get_performance_indicator(token, name) for name in PERFORMANCE_INDICATORS)
        )
        indicators = [i for i in raw if i]
        analysis = analyze_performance(indicators)
        ctx.repository.insert_analysis(customer.id, "performance", analysis)

        if not indicators:
            return {"status": "no_data", "note": "Placeholder stored so dashboard can render"}
        return {"status": "ok", "indicators": len(indicators), "score": analysis.score}
    except Exception as e:
        return _failed(e)


# ============================================================================
# PASS
# ============================================================================

async def sync_customer_main(ctx: SyncContext, customer: BolCustomer) -> RunEntry:
    """Main pass for one tenant. AuthError on the retailer token propagates."""
    logger.info(f"🚀 Starting main bol.com sync for {customer.seller_name or customer.id}")

    token = await ctx.token_cache.get_retailer_token(customer.bol_client_id, customer.bol_client_secret)

    detail: Dict[str, Any] = {
        "offers_export": await submit_offers_export(ctx, customer, token),
        "inventory": await sync_inventory(ctx, customer, token),
        "orders": await sync_orders(ctx, customer, token),
        "advertising": await sync_advertising(ctx, customer),
        "returns": await sync_returns(ctx, customer, token),
        "performance": await sync_performance(ctx, customer, token),
    }

    ctx.repository.mark_synced(customer.id)
    logger.info(f"✅ Main sync finished for {customer.seller_name or customer.id}")
    return RunEntry(id=customer.id, status="ok", detail=detail)


async def run_main_sync(ctx: SyncContext, customers: Optional[List[BolCustomer]] = None) -> RunReport:
    return await run_for_tenants(ctx, SyncType.MAIN, sync_customer_main, customers)
