"""
Unit tests for the heuristic marketplace analyses.
"""
import pytest

from bolsync.services.analysis import (
    analyze_advertising,
    analyze_content,
    analyze_inventory,
    analyze_orders,
    analyze_performance,
    analyze_returns,
    title_score,
)


class TestContent:

    @pytest.mark.parametrize("length,expected", [(0, 0), (40, 65), (160, 100), (200, 80)])
    def test_title_score(self, length, expected):
        assert title_score("x" * length) == expected

    def test_no_offers(self):
        assert analyze_content([]).score == 0

    def test_ideal_offers_score_full_marks(self):
        offers = [{"Title": "x" * 160, "Price": "19.99"}]

        result = analyze_content(offers)

        assert result.score == 100
        assert result.recommendations == []

    def test_missing_price_is_flagged(self):
        result = analyze_content([{"Title": "x" * 160, "Price": ""}])

        assert result.findings["price_set_pct"] == 0
        assert any(r.title == "Offers missing price" for r in result.recommendations)

    def test_insights_add_totals(self):
        offers = [{"Offer Id": "o-1", "Title": "x" * 160, "Price": "5"}]
        insights = {"o-1": {"buy_box_pct": 30.0, "visits": 9, "impressions": 0, "clicks": 2, "conversions": 1}}

        result = analyze_content(offers, insights)

        assert result.findings["total_visits"] == 9
        assert result.findings["avg_buy_box_pct"] == 30
        assert any(r.title == "Low Buy Box win rate" for r in result.recommendations)


class TestInventoryAndOrders:

    def test_empty_inventory(self):
        assert analyze_inventory([]).score == 50

    def test_fbb_stockout(self):
        inventory = [
            {"offer": {"fulfilmentMethod": "FBB"}, "stock": {"actualStock": 0}},
            {"offer": {"fulfilmentMethod": "FBB"}, "stock": {"actualStock": 40}},
        ]

        result = analyze_inventory(inventory)

        assert result.score == 50
        assert result.findings["fbb_out_of_stock"] == 1

    def test_fbr_seller(self):
        result = analyze_inventory([{"offer": {"fulfilmentMethod": "FBR"}, "stock": {"actualStock": 0}}])

        assert result.findings["fulfilment_model"] == "FBR"

    def test_high_cancellation_rate(self):
        orders = [{"orderItems": [{"cancellation": {"reasonCode": "OUT_OF_STOCK"}}]}] + [
            {"orderItems": [{"fulfilment": {"method": "FBB"}}]} for _ in range(9)
        ]

        result = analyze_orders(orders)

        assert result.findings["cancel_rate_pct"] == 10
        assert result.score == 70


class TestAdvertisingReturnsPerformance:

    def test_no_advertising_data(self):
        assert analyze_advertising([], [], []).findings["campaigns_count"] == 0

    def test_roas(self):
        result = analyze_advertising(
            [{"campaignId": "c", "status": "ACTIVE"}], [],
            [{"spend": 10, "revenue": 60, "impressions": 1000, "clicks": 50, "orders": 3}],
        )

        assert result.findings["roas"] == 6.0
        assert result.findings["total_conversions"] == 3
        assert result.score == 90

    def test_many_open_returns(self):
        result = analyze_returns([{"returnReason": {"mainReason": "Defect"}}] * 25, [])

        assert result.score == 80
        assert result.findings["top_reasons"][0] == {"reason": "Defect", "count": 25}

    def test_performance_placeholder(self):
        result = analyze_performance([])

        assert result.score == 100
        assert result.findings["indicators_count"] == 0

    def test_performance_at_risk(self):
        result = analyze_performance([
            {"name": "CANCELLATION_RATE", "score": 4, "norm": 2, "status": "AT_RISK"},
            {"name": "REVIEW_SCORE", "score": 7, "norm": 8, "status": "NEEDS_IMPROVEMENT"},
        ])

        assert result.score == 60
        assert result.recommendations[0].priority == "high"
