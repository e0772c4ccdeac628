"""
Marketplace Analysis
Heuristic 0-100 scoring of fetched bol.com data against best-practice thresholds

Pure functions: a batch of records in, score + findings + recommendations out.
The sync passes store the result verbatim and never look inside.
"""
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Recommendation(BaseModel):
    priority: Literal["high", "medium", "low"]
    title: str
    action: str
    impact: str


class AnalysisResult(BaseModel):
    score: int
    findings: Dict[str, Any] = {}
    recommendations: List[Recommendation] = []


# Offer id → {buy_box_pct, visits, impressions, clicks, conversions}
OfferInsightsMap = Dict[str, Dict[str, Optional[float]]]

FORBIDDEN_KEYWORDS = (
    "milieuvriendelijk", "eco", "duurzaam", "biologisch afbreekbaar", "co2-neutraal", "klimaatneutraal",
)


def _avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _field(record: Dict[str, str], *names: str) -> str:
    for name in names:
        if record.get(name):
            return record[name]
    return ""


# ============================================================================
# CONTENT (offers export CSV)
# ============================================================================

def title_score(title: str) -> int:
    """150-175 chars scores 100; too long 80; too short 65; missing 0."""
    length = len(title)
    if 150 <= length <= 175:
        return 100
    if length > 175:
        return 80
    if length > 0:
        return 65
    return 0


def analyze_content(offers: List[Dict[str, str]], insights: Optional[OfferInsightsMap] = None) -> AnalysisResult:
    if not offers:
        return AnalysisResult(score=0, findings={"message": "No offers found", "offers_count": 0})

    titles = [_field(o, "title", "Title") for o in offers]
    scores = [title_score(t) for t in titles]

    priced = 0
    for offer in offers:
        try:
            priced += float(_field(offer, "price", "Price") or 0) > 0
        except ValueError:
            pass
    price_set_pct = priced / len(offers)
    avg_title = _avg(scores)
    score = round(avg_title * 0.7 + price_set_pct * 100 * 0.3)

    missing = scores.count(0)
    short = scores.count(65)
    recs: List[Recommendation] = []
    if missing:
        recs.append(Recommendation(
            priority="high", title="Missing product titles",
            action=f"{missing} offer(s) have no title. Add a Dutch title of 150-175 chars starting with the brand name.",
            impact="15-25% CTR improvement"))
    if short:
        recs.append(Recommendation(
            priority="high", title="Short product titles",
            action=f"{short} offer(s) have titles under 150 chars. Expand to 150-175 chars with relevant keywords.",
            impact="10-20% CTR improvement"))
    if price_set_pct < 1:
        recs.append(Recommendation(
            priority="medium", title="Offers missing price",
            action=f"{len(offers) - priced} offer(s) have no price set. This disables the Buy Box.",
            impact="Direct sales recovery"))

    findings: Dict[str, Any] = {
        "offers_count": len(offers),
        "avg_title_score": round(avg_title),
        "titles_in_range": scores.count(100),
        "titles_short": short,
        "titles_missing": missing,
        "price_set_pct": round(price_set_pct * 100),
        "forbidden_keyword_warning": any(kw in t.lower() for t in titles for kw in FORBIDDEN_KEYWORDS),
    }

    if insights is not None:
        matched = [insights[oid] for oid in (_field(o, "Offer Id", "offer_id") for o in offers) if oid in insights]
        buy_box = [m["buy_box_pct"] for m in matched if m.get("buy_box_pct") is not None]
        avg_buy_box = round(_avg(buy_box)) if buy_box else None
        for key in ("visits", "impressions", "clicks", "conversions"):
            findings[f"total_{key}"] = sum(m.get(key) or 0 for m in matched)
        findings["avg_buy_box_pct"] = avg_buy_box
        if avg_buy_box is not None and avg_buy_box < 50:
            recs.append(Recommendation(
                priority="medium", title="Low Buy Box win rate",
                action=f"Your average Buy Box win rate is {avg_buy_box}%. Optimise pricing and fulfilment.",
                impact="20-40% revenue increase"))

    return AnalysisResult(score=score, findings=findings, recommendations=recs)


# ============================================================================
# INVENTORY
# ============================================================================

def analyze_inventory(inventory: List[Dict[str, Any]]) -> AnalysisResult:
    if not inventory:
        return AnalysisResult(score=50, findings={"message": "No inventory data returned", "items_count": 0})

    def method(item):
        return (item.get("offer") or {}).get("fulfilmentMethod")

    def stock(item):
        return (item.get("stock") or {}).get("actualStock") or 0

    fbb = [i for i in inventory if method(i) == "FBB"]
    fbr = [i for i in inventory if method(i) == "FBR"]

    if not fbb and (fbr or all(stock(i) == 0 for i in inventory)):
        return AnalysisResult(
            score=75,
            findings={
                "items_count": len(inventory),
                "fulfilment_model": "FBR",
                "message": "FBR seller, stock managed in own warehouse, not tracked by bol.com",
            },
            recommendations=[Recommendation(
                priority="medium", title="Consider FBB for best-sellers",
                action="Migrate high-volume products to Fulfilled by Bol (FBB) for faster delivery.",
                impact="15-25% sales lift for FBB products")],
        )

    levels = [stock(i) for i in (fbb or inventory)]
    out_of_stock = sum(1 for s in levels if s == 0)
    critical = sum(1 for s in levels if 0 < s <= 7)
    score = round((len(levels) - out_of_stock - critical) / len(levels) * 100)

    recs: List[Recommendation] = []
    if out_of_stock:
        recs.append(Recommendation(
            priority="high", title=f"{out_of_stock} FBB product(s) out of stock",
            action="Replenish FBB stock immediately. Out-of-stock FBB products lose the Buy Box.",
            impact="Prevent lost sales from stockouts"))
    if critical:
        recs.append(Recommendation(
            priority="high", title=f"{critical} FBB product(s) critically low",
            action="Place replenishment order now before stockout.",
            impact="Prevent imminent revenue loss"))

    return AnalysisResult(
        score=score,
        findings={
            "items_count": len(inventory),
            "fulfilment_model": "MIXED" if fbr and fbb else "FBB",
            "fbb_items": len(fbb),
            "fbr_items": len(fbr),
            "fbb_out_of_stock": out_of_stock,
            "fbb_critical_low": critical,
            "avg_fbb_stock": round(_avg(levels)),
        },
        recommendations=recs,
    )


# ============================================================================
# ORDERS
# ============================================================================

def analyze_orders(orders: List[Dict[str, Any]]) -> AnalysisResult:
    if not orders:
        return AnalysisResult(score=75, findings={"message": "No orders in the selected period", "orders_count": 0})

    cancellations = fbb = fbr = 0
    for order in orders:
        for item in order.get("orderItems") or []:
            if (item.get("cancellation") or {}).get("reasonCode"):
                cancellations += 1
            if (item.get("fulfilment") or {}).get("method") == "FBB":
                fbb += 1
            else:
                fbr += 1

    total = len(orders)
    cancel_rate = cancellations / total
    fbb_rate = fbb / (fbb + fbr) if fbb + fbr else 0.0

    score = 100
    if cancel_rate > 0.05:
        score -= 30
    elif cancel_rate > 0.02:
        score -= 15
    if fbb_rate == 0 and total > 10:
        score -= 10

    recs: List[Recommendation] = []
    if cancel_rate > 0.02:
        recs.append(Recommendation(
            priority="high" if cancel_rate > 0.05 else "medium",
            title=f"High cancellation rate ({round(cancel_rate * 100)}%)",
            action="Review cancellation reasons: stock issues, fulfilment delays, pricing errors.",
            impact="15-25% reduction in cancellations"))

    return AnalysisResult(
        score=max(0, score),
        findings={
            "orders_count": total,
            "cancellations": cancellations,
            "cancel_rate_pct": round(cancel_rate * 100),
            "fbb_orders": fbb,
            "fbr_orders": fbr,
            "fbb_rate_pct": round(fbb_rate * 100),
        },
        recommendations=recs,
    )


# ============================================================================
# ADVERTISING
# ============================================================================

def analyze_advertising(
    campaigns: List[Dict[str, Any]],
    ad_groups: List[Dict[str, Any]],
    performance: List[Dict[str, Any]]
) -> AnalysisResult:
    if not campaigns and not performance:
        return AnalysisResult(score=0, findings={"message": "No advertising data", "campaigns_count": 0})

    spend = sum(row.get("spend") or 0 for row in performance)
    impressions = sum(row.get("impressions") or 0 for row in performance)
    clicks = sum(row.get("clicks") or 0 for row in performance)
    # Advertising API v1 reports "orders"; older versions "conversions"
    conversions = sum(row.get("conversions") or row.get("orders") or 0 for row in performance)
    revenue = sum(row.get("revenue") or 0 for row in performance)

    roas = round(revenue / spend, 2) if spend else 0.0
    ctr = round(clicks / impressions * 100, 2) if impressions else 0.0

    score = 70
    if roas >= 5:
        score += 20
    elif roas >= 3:
        score += 10
    elif roas < 1 and spend > 0:
        score -= 20

    recs: List[Recommendation] = []
    if roas < 3 and spend > 0:
        recs.append(Recommendation(
            priority="high", title=f"Low overall ROAS ({roas}x)",
            action="Review keyword bids and match types. Pause high-spend / low-conversion keywords.",
            impact="Improve ad profitability by 30-50%"))
    if clicks > 100 and conversions == 0:
        recs.append(Recommendation(
            priority="high", title="No conversions despite clicks",
            action="Check that advertised products are in stock, competitively priced and winning the Buy Box.",
            impact="Direct revenue impact"))

    return AnalysisResult(
        score=max(0, min(100, score)),
        findings={
            "campaigns_count": len(campaigns),
            "active_campaigns": sum(1 for c in campaigns if c.get("status") == "ACTIVE"),
            "ad_groups_count": len(ad_groups),
            "total_spend": round(spend, 2),
            "total_impressions": impressions,
            "total_clicks": clicks,
            "total_conversions": conversions,
            "ctr_pct": ctr,
            "roas": roas,
        },
        recommendations=recs,
    )


# ============================================================================
# RETURNS
# ============================================================================

def analyze_returns(open_returns: List[Dict[str, Any]], handled_returns: List[Dict[str, Any]]) -> AnalysisResult:
    reasons: Dict[str, int] = {}
    for ret in open_returns + handled_returns:
        reason = (ret.get("returnReason") or {}).get("mainReason") or "Unknown"
        reasons[reason] = reasons.get(reason, 0) + (ret.get("quantity") or 1)
    top = sorted(reasons.items(), key=lambda kv: kv[1], reverse=True)[:5]

    open_count = len(open_returns)
    score = 90
    if open_count > 50:
        score -= 20
    elif open_count > 20:
        score -= 10

    recs: List[Recommendation] = []
    if open_count > 20:
        recs.append(Recommendation(
            priority="high" if open_count > 50 else "medium",
            title=f"{open_count} unhandled return(s)",
            action="Process open returns promptly. bol.com monitors return handling speed.",
            impact="Avoid performance penalties"))
    if top and top[0][1] >= 3:
        recs.append(Recommendation(
            priority="medium", title=f'Top return reason: "{top[0][0]}"',
            action=f"{top[0][1]} returns cite this reason. Investigate description mismatch or quality issues.",
            impact="15-30% reduction in return rate"))

    return AnalysisResult(
        score=max(0, score),
        findings={
            "open_count": open_count,
            "handled_count": len(handled_returns),
            "top_reasons": [{"reason": r, "count": c} for r, c in top],
        },
        recommendations=recs,
    )


# ============================================================================
# SELLER PERFORMANCE
# ============================================================================

AT_RISK_STATUSES = {"AT_RISK", "POOR"}
NEEDS_IMPROVEMENT_STATUSES = {"NEEDS_IMPROVEMENT", "FAIR"}


def analyze_performance(indicators: List[Dict[str, Any]]) -> AnalysisResult:
    if not indicators:
        # Placeholder so the dashboard has something to render
        return AnalysisResult(
            score=100,
            findings={
                "indicators_count": 0,
                "at_risk_count": 0,
                "needs_improvement": 0,
                "indicators": [],
                "message": "No performance data available for current week",
            },
        )

    at_risk = [i for i in indicators if i.get("status") in AT_RISK_STATUSES]
    needs_work = [i for i in indicators if i.get("status") in NEEDS_IMPROVEMENT_STATUSES]

    recs = [
        Recommendation(
            priority="high", title=f"{i['name']} is AT RISK",
            action=f"Your {i['name']} ({i.get('score')}) is below the required threshold ({i.get('norm')}).",
            impact="Avoid seller suspension")
        for i in at_risk
    ] + [
        Recommendation(
            priority="medium", title=f"{i['name']} needs improvement",
            action=f"Your {i['name']} ({i.get('score')}) is below the target of {i.get('norm')}.",
            impact="Maintain seller account standing")
        for i in needs_work
    ]

    return AnalysisResult(
        score=max(0, 100 - len(needs_work) * 15 - len(at_risk) * 25),
        findings={
            "indicators_count": len(indicators),
            "at_risk_count": len(at_risk),
            "needs_improvement": len(needs_work),
            "indicators": indicators,
        },
        recommendations=recs,
    )
