"""
Tests for the extended (per-EAN enrichment) pass.
"""
import pytest

from bolsync.services.bol.errors import BolRequestError
from bolsync.services.sync.orchestration.extended_sync import (
    build_competitor_row,
    run_extended_sync,
    select_eans,
)


def offers_for(count: int):
    return [{"Offer Id": f"o-{i}", "EAN": f"871{i:04d}", "Title": "t"} for i in range(count)]


@pytest.fixture
def enrich_bol(bol_client):
    bol_client.get_competing_offers.return_value = [
        {"offerId": "o-0", "sellerId": "me", "price": {"listPrice": 19.99}, "isBuyBoxWinner": True},
        {"offerId": "x-1", "sellerId": "them", "price": {"listPrice": 17.5}, "isBuyBoxWinner": False},
    ]
    bol_client.get_product_ratings.return_value = {"score": 4.2, "count": 10}
    bol_client.get_product_ranks.return_value = [{"rank": 3, "impressions": 100, "weekStartDate": "2026-02-23"}]
    bol_client.get_catalog_product.return_value = {"gtin": "871"}
    bol_client.get_sales_forecast.return_value = [{"weeksAhead": 1, "mean": 4}]
    return bol_client


class TestSelectEans:

    def test_unique_in_export_order(self):
        offers = [
            {"EAN": "1", "Offer Id": "a"},
            {"ean": "2", "offer_id": "b"},
            {"EAN": "1", "Offer Id": "c"},
            {"EAN": "", "Offer Id": "d"},
        ]

        eans, offer_ids = select_eans(offers, limit=50)

        assert eans == ["1", "2"]
        assert offer_ids == {"1": "a", "2": "b"}

    def test_limit(self):
        eans, _ = select_eans(offers_for(60), limit=50)

        assert len(eans) == 50


class TestCompetitorRow:

    def test_our_price_and_lowest(self):
        row = build_competitor_row(
            "c1", "871", "o-0",
            [
                {"offerId": "o-0", "price": {"listPrice": 20.0}, "isBuyBoxWinner": True},
                {"offerId": "x", "price": {"listPrice": 18.0}},
                {"offerId": "y", "price": {}},
            ],
            {"score": 4.5, "count": 2},
        )

        assert row["our_price"] == 20.0
        assert row["lowest_competing_price"] == 18.0
        assert row["buy_box_winner"] is True
        assert row["competitor_count"] == 3
        assert row["rating_score"] == 4.5

    def test_without_ratings(self):
        row = build_competitor_row("c1", "871", None, [], None)

        assert row["offer_id"] is None
        assert row["rating_count"] is None
        assert row["lowest_competing_price"] is None


class TestExtendedPass:

    async def test_skipped_without_offers_snapshot(self, ctx, repo, enrich_bol):
        repo.add_customer("c1")

        report = await run_extended_sync(ctx)

        assert report.results[0].status == "skipped"
        enrich_bol.get_competing_offers.assert_not_awaited()

    async def test_uses_newest_snapshot_that_has_offers(self, ctx, repo, enrich_bol):
        repo.add_customer("c1")
        repo.insert_snapshot("c1", "listings", {"offers": offers_for(2)}, record_count=2)
        repo.insert_snapshot("c1", "listings", {"catalog": {}, "forecast": {}}, record_count=0)

        report = await run_extended_sync(ctx)

        assert report.results[0].status == "ok"
        assert enrich_bol.get_competing_offers.await_count == 2

    async def test_enriches_each_ean_with_pauses(self, ctx, repo, enrich_bol, sleep):
        repo.add_customer("c1")
        repo.insert_snapshot("c1", "listings", {"offers": offers_for(3)}, record_count=3)

        report = await run_extended_sync(ctx)

        detail = report.results[0].detail
        assert detail["competitors"] == "3/3 EANs updated"
        assert detail["rankings"] == "3/3 EANs ranked"
        assert detail["catalog"] == "3 catalog items, 3 forecasts"
        assert len(repo.competitor_rows) == 3
        # SEARCH + BROWSE per EAN
        assert len(repo.keyword_rows) == 6
        assert {r["search_type"] for r in repo.keyword_rows} == {"SEARCH", "BROWSE"}
        # competitors, ranks, catalog, forecast: one pause per EAN each
        assert sleep.await_count == 12
        delays = [call.args[0] for call in sleep.await_args_list]
        assert delays[:3] == [0.15, 0.15, 0.15]
        assert delays[3:6] == [0.1, 0.1, 0.1]
        catalog = [s for s in repo.snapshots if "catalog" in s["raw_data"]]
        assert catalog[0]["data_type"] == "listings"

    async def test_failing_ean_is_skipped(self, ctx, repo, enrich_bol):
        repo.add_customer("c1")
        repo.insert_snapshot("c1", "listings", {"offers": offers_for(3)}, record_count=3)
        enrich_bol.get_competing_offers.side_effect = [
            [],
            BolRequestError("get_competing_offers", 500),
            [],
        ]

        report = await run_extended_sync(ctx)

        assert report.results[0].status == "ok"
        assert report.results[0].detail["competitors"] == "2/3 EANs updated"
        assert [r["ean"] for r in repo.competitor_rows] == ["8710000", "8710002"]

    async def test_catalog_and_forecast_limited_to_top_eans(self, ctx, repo, enrich_bol):
        repo.add_customer("c1")
        repo.insert_snapshot("c1", "listings", {"offers": offers_for(30)}, record_count=30)

        await run_extended_sync(ctx)

        assert enrich_bol.get_competing_offers.await_count == 30
        assert enrich_bol.get_catalog_product.await_count == 20
        assert enrich_bol.get_sales_forecast.await_count == 20

    async def test_no_ranks_means_no_rows(self, ctx, repo, enrich_bol):
        repo.add_customer("c1")
        repo.insert_snapshot("c1", "listings", {"offers": offers_for(1)}, record_count=1)
        enrich_bol.get_product_ranks.return_value = []

        report = await run_extended_sync(ctx)

        assert report.results[0].detail["rankings"] == "0/1 EANs ranked"
        assert repo.keyword_rows == []
