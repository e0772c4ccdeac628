"""
bol.com Retailer API v10 + Advertising API client

Endpoint wrappers on top of BolTransport. Which endpoints fail hard (raise
BolRequestError) and which fail soft (return empty) follows how the sync
passes use them: the export pair and campaign list are required, the
enrichment lookups are best-effort.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx

from bolsync.services.bol.csv_decoder import Record, decode_csv
from bolsync.services.bol.errors import BolRequestError
from bolsync.services.bol.pagination import collect_all
from bolsync.services.bol.token_cache import Audience
from bolsync.services.bol.transport import BolTransport

logger = logging.getLogger(__name__)

# /retailer/insights/offer accepts at most 20 offer ids per call
OFFER_INSIGHTS_BATCH = 20

PERFORMANCE_INDICATORS = ("CANCELLATION_RATE", "FULFILMENT_RATE", "REVIEW_SCORE")


@dataclass
class ProcessStatus:
    status: str
    entity_id: Optional[str]


class BolClient:
    """
    Args:
        http_client: Shared async HTTP client
        retailer: Optional pre-built retailer transport (tests)
        advertising: Optional pre-built advertising transport (tests)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        retailer: Optional[BolTransport] = None,
        advertising: Optional[BolTransport] = None
    ):
        self.retailer = retailer or BolTransport.for_audience(http_client, Audience.RETAILER)
        self.advertising = advertising or BolTransport.for_audience(http_client, Audience.ADVERTISING)

    # ========================================================================
    # ASYNC OFFERS EXPORT
    # ========================================================================

    async def start_offers_export(self, token: str) -> str:
        """Submit an offers export job; returns its processStatusId."""
        res = await self.retailer.request(token, "/retailer/offers/export", method="POST", json={"format": "CSV"})
        if not res.ok:
            raise BolRequestError("start_offers_export", res.status, res.body)

        process_status_id = res.body.get("processStatusId") if isinstance(res.body, dict) else None
        if not process_status_id:
            raise BolRequestError("start_offers_export", res.status, "No processStatusId in export response")
        return str(process_status_id)

    async def check_process_status(self, token: str, process_status_id: str) -> ProcessStatus:
        res = await self.retailer.request(token, f"/shared/process-status/{process_status_id}")
        if not res.ok:
            raise BolRequestError("check_process_status", res.status, res.body)

        body = res.body if isinstance(res.body, dict) else {}
        entity_id = body.get("entityId")
        return ProcessStatus(
            status=str(body.get("status", "UNKNOWN")),
            entity_id=str(entity_id) if entity_id else None,
        )

    async def download_offers_export(self, token: str, entity_id: str) -> List[Record]:
        """Download the finished CSV and decode it into records."""
        res = await self.retailer.request(
            token,
            f"/retailer/offers/export/{entity_id}",
            headers={"Accept": "application/vnd.retailer.v10+csv"},
        )
        if not res.ok:
            raise BolRequestError("download_offers_export", res.status)

        text = res.body if isinstance(res.body, str) else ""
        return decode_csv(text)

    # ========================================================================
    # PAGINATED LISTS
    # ========================================================================

    async def get_inventory(self, token: str) -> List[Any]:
        return await collect_all(
            self.retailer, token, lambda page: f"/retailer/inventory?page={page}", "inventory"
        )

    async def get_orders(self, token: str) -> List[Any]:
        return await collect_all(
            self.retailer, token,
            lambda page: f"/retailer/orders?fulfilment-method=FBR&status=ALL&page={page}",
            "orders",
        )

    async def get_returns(self, token: str, handled: bool) -> List[Any]:
        flag = "true" if handled else "false"
        return await collect_all(
            self.retailer, token, lambda page: f"/retailer/returns?handled={flag}&page={page}", "returns"
        )

    # ========================================================================
    # INSIGHTS
    # ========================================================================

    async def get_offer_insights(self, token: str, offer_ids: List[str]) -> List[Dict[str, Any]]:
        """Monthly visit/impression/click/conversion insights for up to 20 offers."""
        if not offer_ids:
            return []

        params = [("offer-id", offer_id) for offer_id in offer_ids[:OFFER_INSIGHTS_BATCH]]
        params += [("period", "MONTH"), ("number-of-periods", "1")]
        params += [
            ("name", name)
            for name in ("PRODUCT_VISITS", "BUY_BOX_PERCENTAGE", "IMPRESSIONS", "CLICKS", "CONVERSIONS")
        ]

        res = await self.retailer.request(token, "/retailer/insights/offer", params=params)
        if not res.ok or not isinstance(res.body, dict):
            return []
        return res.body.get("offerInsights") or []

    async def get_performance_indicator(self, token: str, name: str) -> Optional[Dict[str, Any]]:
        """
        Seller KPI for the last completed ISO week.

        Returns:
            {"name", "score", "norm", "status"} or None when bol.com has no data
        """
        year, week, _ = (date.today() - timedelta(days=7)).isocalendar()
        res = await self.retailer.request(
            token,
            "/retailer/insights/performance/indicator",
            params={"name": name, "year": year, "week": week},
        )
        if not res.ok or not isinstance(res.body, dict):
            return None

        indicators = res.body.get("performanceIndicators") or []
        if not indicators:
            return None

        details = indicators[0].get("details") or {}
        score = details.get("score") or {}
        norm = details.get("norm") or {}
        return {
            "name": indicators[0].get("name", name),
            "score": score.get("value"),
            "norm": norm.get("value"),
            "status": score.get("qualified") or "UNKNOWN",
        }

    async def get_product_ranks(self, token: str, ean: str, search_type: str) -> List[Dict[str, Any]]:
        """SEARCH or BROWSE rank history for yesterday's week."""
        res = await self.retailer.request(
            token,
            "/retailer/insights/product-ranks",
            params={
                "ean": ean,
                "date": (date.today() - timedelta(days=1)).isoformat(),
                "type": search_type,
                "page": 1,
            },
        )
        if not res.ok or not isinstance(res.body, dict):
            return []
        return res.body.get("ranks") or []

    async def get_sales_forecast(self, token: str, offer_id: str, weeks_ahead: int = 4) -> List[Dict[str, Any]]:
        res = await self.retailer.request(
            token,
            "/retailer/insights/sales-forecast",
            params={"offer-id": offer_id, "weeks-ahead": weeks_ahead},
        )
        if not res.ok or not isinstance(res.body, dict):
            return []
        return res.body.get("periods") or []

    # ========================================================================
    # PRODUCTS / COMPETITION
    # ========================================================================

    async def get_competing_offers(self, token: str, ean: str) -> List[Dict[str, Any]]:
        res = await self.retailer.request(token, f"/retailer/products/{ean}/offers")
        if res.status == 404:
            return []
        if not res.ok:
            raise BolRequestError("get_competing_offers", res.status, res.body)
        return (res.body.get("offers") if isinstance(res.body, dict) else None) or []

    async def get_product_ratings(self, token: str, ean: str) -> Optional[Dict[str, float]]:
        """Weighted average star rating and total rating count, or None."""
        res = await self.retailer.request(token, f"/retailer/products/{ean}/ratings")
        if not res.ok or not isinstance(res.body, dict):
            return None

        ratings = res.body.get("ratings") or []
        total = sum(int(r.get("count", 0)) for r in ratings)
        if total == 0:
            return None
        weighted = sum(float(r.get("rating", 0)) * int(r.get("count", 0)) for r in ratings)
        return {"score": round(weighted / total, 2), "count": total}

    async def get_catalog_product(self, token: str, ean: str) -> Optional[Dict[str, Any]]:
        res = await self.retailer.request(token, f"/retailer/content/catalog-products/{ean}")
        if not res.ok or not isinstance(res.body, dict):
            return None
        return res.body

    # ========================================================================
    # ADVERTISING API
    # ========================================================================

    async def get_ads_campaigns(self, ads_token: str) -> List[Dict[str, Any]]:
        res = await self.advertising.request(ads_token, "/api/v1/campaigns")
        if not res.ok:
            raise BolRequestError("get_ads_campaigns", res.status, res.body)
        return (res.body.get("campaigns") if isinstance(res.body, dict) else None) or []

    async def get_ads_ad_groups(self, ads_token: str, campaign_id: str) -> List[Dict[str, Any]]:
        res = await self.advertising.request(ads_token, f"/api/v1/campaigns/{campaign_id}/ad-groups")
        if not res.ok or not isinstance(res.body, dict):
            return []
        return res.body.get("adGroups") or []

    async def get_ads_performance(self, ads_token: str, date_from: str, date_to: str) -> List[Dict[str, Any]]:
        """Campaign-level performance report; dates are yyyy-MM-dd."""
        res = await self.advertising.request(
            ads_token,
            "/api/v1/sponsored-products/performance-report",
            params={"dateFrom": date_from, "dateTo": date_to, "groupBy": "CAMPAIGN"},
        )
        if not res.ok or not isinstance(res.body, dict):
            return []
        return res.body.get("performanceReport") or []
