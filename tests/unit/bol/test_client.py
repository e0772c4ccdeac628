"""
Tests for BolClient endpoint wrappers (fail-hard vs fail-soft behaviour).
"""
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from bolsync.services.bol.client import BolClient
from bolsync.services.bol.errors import BolRequestError
from bolsync.services.bol.transport import ADS_HEADERS, RETAILER_HEADERS, BolTransport


def make_client(mock_http, handler) -> BolClient:
    http = mock_http(handler)
    return BolClient(
        http,
        retailer=BolTransport(http, "https://api.bol.test", RETAILER_HEADERS),
        advertising=BolTransport(http, "https://ads.bol.test", ADS_HEADERS),
    )


class TestOffersExport:

    async def test_start_returns_process_status_id(self, mock_http):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202, json={"processStatusId": 1234, "status": "PENDING"})

        process_status_id = await make_client(mock_http, handler).start_offers_export("tok")

        assert process_status_id == "1234"
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/retailer/offers/export"

    async def test_start_without_process_status_id_raises(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(202, json={}))

        with pytest.raises(BolRequestError):
            await client.start_offers_export("tok")

    async def test_start_rejected_raises(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(400, text="bad format"))

        with pytest.raises(BolRequestError) as exc_info:
            await client.start_offers_export("tok")
        assert exc_info.value.status_code == 400

    async def test_process_status_without_entity_id(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(200, json={"status": "SUCCESS"}))

        status = await client.check_process_status("tok", "1234")

        assert status.status == "SUCCESS"
        assert status.entity_id is None

    async def test_download_decodes_csv(self, mock_http):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                content=b"Offer Id,EAN,Title\no-1,871,Shoe\n",
                headers={"content-type": "application/vnd.retailer.v10+csv"},
            )

        offers = await make_client(mock_http, handler).download_offers_export("tok", "ent-9")

        assert offers == [{"Offer Id": "o-1", "EAN": "871", "Title": "Shoe"}]
        assert seen[0].headers["Accept"] == "application/vnd.retailer.v10+csv"


class TestEnrichment:

    async def test_competing_offers_404_is_empty(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(404, text="Not Found"))

        assert await client.get_competing_offers("tok", "871") == []

    async def test_competing_offers_other_errors_raise(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(BolRequestError):
            await client.get_competing_offers("tok", "871")

    async def test_ratings_weighted_average(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(200, json={
            "ratings": [{"rating": 5, "count": 3}, {"rating": 1, "count": 1}]
        }))

        assert await client.get_product_ratings("tok", "871") == {"score": 4.0, "count": 4}

    async def test_ratings_without_votes_is_none(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(200, json={"ratings": []}))

        assert await client.get_product_ratings("tok", "871") is None

    async def test_offer_insights_repeats_offer_id_param(self, mock_http):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"offerInsights": [{"offerId": "o-1"}]})

        ids = [f"o-{i}" for i in range(25)]
        result = await make_client(mock_http, handler).get_offer_insights("tok", ids)

        query = parse_qs(urlparse(str(seen[0].url)).query)
        assert len(query["offer-id"]) == 20
        assert result == [{"offerId": "o-1"}]

    async def test_performance_indicator_missing_is_none(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(200, json={"performanceIndicators": []}))

        assert await client.get_performance_indicator("tok", "CANCELLATION_RATE") is None


class TestAdvertising:

    async def test_campaigns_use_advertising_surface(self, mock_http):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"campaigns": [{"campaignId": "c-1"}]})

        campaigns = await make_client(mock_http, handler).get_ads_campaigns("ads-tok")

        assert campaigns == [{"campaignId": "c-1"}]
        assert seen[0].url.host == "ads.bol.test"
        assert seen[0].headers["Authorization"] == "Bearer ads-tok"

    async def test_campaigns_failure_raises(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(403, text="forbidden"))

        with pytest.raises(BolRequestError):
            await client.get_ads_campaigns("ads-tok")

    async def test_ad_groups_failure_is_empty(self, mock_http):
        client = make_client(mock_http, lambda r: httpx.Response(500, text="boom"))

        assert await client.get_ads_ad_groups("ads-tok", "c-1") == []
