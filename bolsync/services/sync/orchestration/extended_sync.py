"""
Extended sync pass
Slow per-EAN enrichment, run every few hours on top of the main pass

For the tenant's top EANs (taken from the latest offers export):
1. Competing offers + product ratings  → bol_competitor_snapshots
2. SEARCH + BROWSE product ranks       → bol_keyword_rankings
3. Catalog product + sales forecast    → listings snapshot (top EANs only)

Items are processed one at a time with a fixed pause after each. An item
that fails is skipped; the rest of the tenant's pass carries on.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from bolsync.models.schemas.bol import BolCustomer
from bolsync.models.schemas.sync import RunEntry, RunReport, SyncType
from bolsync.services.bol.csv_decoder import Record
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.orchestration.tenants import run_for_tenants

logger = logging.getLogger(__name__)

RANK_TYPES = ("SEARCH", "BROWSE")


def select_eans(offers: List[Record], limit: int) -> Tuple[List[str], Dict[str, str]]:
    """
    First `limit` unique EANs in export order.

    Returns:
        (eans, ean -> our offer id)
    """
    eans: List[str] = []
    offer_ids: Dict[str, str] = {}
    for offer in offers:
        ean = offer.get("EAN") or offer.get("ean") or ""
        if ean and ean not in offer_ids:
            eans.append(ean)
            offer_ids[ean] = offer.get("Offer Id") or offer.get("offer_id") or ""
        if len(eans) >= limit:
            break
    return eans, offer_ids


def build_competitor_row(
    customer_id: str,
    ean: str,
    our_offer_id: Optional[str],
    competing_offers: List[Dict[str, Any]],
    ratings: Optional[Dict[str, float]]
) -> Dict[str, Any]:
    our_price = None
    lowest_price = None
    buy_box_winner = False

    for offer in competing_offers:
        price = (offer.get("price") or {}).get("listPrice")
        if price is None:
            continue
        if lowest_price is None or price < lowest_price:
            lowest_price = price
        if our_offer_id and offer.get("offerId") == our_offer_id:
            our_price = price
            buy_box_winner = bool(offer.get("isBuyBoxWinner"))

    return {
        "bol_customer_id": customer_id,
        "ean": ean,
        "offer_id": our_offer_id or None,
        "our_price": our_price,
        "lowest_competing_price": lowest_price,
        "buy_box_winner": buy_box_winner,
        "competitor_count": len(competing_offers),
        "competitor_prices": [
            {
                "offerId": offer.get("offerId"),
                "sellerId": offer.get("sellerId"),
                "price": (offer.get("price") or {}).get("listPrice"),
                "condition": offer.get("condition"),
                "isBuyBoxWinner": offer.get("isBuyBoxWinner"),
            }
            for offer in competing_offers
        ],
        "rating_score": ratings.get("score") if ratings else None,
        "rating_count": ratings.get("count") if ratings else None,
    }


# ============================================================================
# BLOCKS
# ============================================================================

async def sync_competitors(
    ctx: SyncContext, customer: BolCustomer, token: str, eans: List[str], offer_ids: Dict[str, str]
) -> str:
    updated = 0
    for ean in eans:
        try:
            competing, ratings = await asyncio.gather(
                ctx.client.get_competing_offers(token, ean),
                ctx.client.get_product_ratings(token, ean),
            )
            ctx.repository.insert_competitor_snapshot(
                build_competitor_row(customer.id, ean, offer_ids.get(ean), competing, ratings)
            )
            updated += 1
        except Exception as e:
            logger.debug(f"Competitor lookup for {ean} skipped: {e}")
        await ctx.sleep(ctx.settings.competitor_delay_seconds)
    return f"{updated}/{len(eans)} EANs updated"


async def sync_rankings(ctx: SyncContext, customer: BolCustomer, token: str, eans: List[str]) -> str:
    ranked = 0
    for ean in eans:
        try:
            results = await asyncio.gather(*(ctx.client.get_product_ranks(token, ean, t) for t in RANK_TYPES))
            rows = [
                {
                    "bol_customer_id": customer.id,
                    "ean": ean,
                    "search_type": search_type,
                    "rank": rank.get("rank"),
                    "impressions": rank.get("impressions"),
                    "week_of": rank.get("weekStartDate"),
                }
                for search_type, ranks in zip(RANK_TYPES, results)
                for rank in ranks
            ]
            if rows:
                ctx.repository.insert_keyword_rankings(rows)
                ranked += 1
        except Exception as e:
            logger.debug(f"Rank lookup for {ean} skipped: {e}")
        await ctx.sleep(ctx.settings.rank_delay_seconds)
    return f"{ranked}/{len(eans)} EANs ranked"


async def sync_catalog(
    ctx: SyncContext, customer: BolCustomer, token: str, eans: List[str], offer_ids: Dict[str, str]
) -> str:
    catalog: Dict[str, Any] = {}
    forecast: Dict[str, Any] = {}

    for ean in eans:
        try:
            product = await ctx.client.get_catalog_product(token, ean)
            if product:
                catalog[ean] = product
        except Exception as e:
            logger.debug(f"Catalog lookup for {ean} skipped: {e}")
        await ctx.sleep(ctx.settings.catalog_delay_seconds)

    for ean in eans:
        offer_id = offer_ids.get(ean)
        if not offer_id:
            continue
        try:
            periods = await ctx.client.get_sales_forecast(token, offer_id, weeks_ahead=4)
            if periods:
                forecast[offer_id] = periods
        except Exception as e:
            logger.debug(f"Sales forecast for {offer_id} skipped: {e}")
        await ctx.sleep(ctx.settings.catalog_delay_seconds)

    if catalog or forecast:
        ctx.repository.insert_snapshot(
            customer.id, "listings", {"catalog": catalog, "forecast": forecast}, record_count=len(catalog)
        )
    return f"{len(catalog)} catalog items, {len(forecast)} forecasts"


# ============================================================================
# PASS
# ============================================================================

async def sync_customer_extended(ctx: SyncContext, customer: BolCustomer) -> RunEntry:
    token = await ctx.token_cache.get_retailer_token(customer.bol_client_id, customer.bol_client_secret)

    offers = ctx.repository.latest_offers(customer.id)
    if not offers:
        return RunEntry(
            id=customer.id,
            status="skipped",
            detail={"note": "No offers snapshot found, skipping extended sync"},
        )

    eans, offer_ids = select_eans(offers, ctx.settings.enrichment_max_eans)
    logger.info(f"🔎 Extended sync for {customer.seller_name or customer.id}: {len(eans)} EANs")

    detail = {
        "competitors": await sync_competitors(ctx, customer, token, eans, offer_ids),
        "rankings": await sync_rankings(ctx, customer, token, eans),
        "catalog": await sync_catalog(ctx, customer, token, eans[:ctx.settings.enrichment_top_eans], offer_ids),
    }
    return RunEntry(id=customer.id, status="ok", detail=detail)


async def run_extended_sync(ctx: SyncContext, customers: Optional[List[BolCustomer]] = None) -> RunReport:
    return await run_for_tenants(ctx, SyncType.EXTENDED, sync_customer_extended, customers)
