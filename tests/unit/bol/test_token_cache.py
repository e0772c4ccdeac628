"""
Tests for the bol.com OAuth token cache.

The token endpoint is served by httpx.MockTransport; a mutable clock drives
expiry.
"""
import base64

import httpx
import pytest

from bolsync.services.bol.errors import AuthError, TransientTransportError
from bolsync.services.bol.token_cache import Audience, TokenCache, new_token_store


class Clock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def token_server():
    """Issues tok-1, tok-2, ... with a 299s lifetime and records each call."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"access_token": f"tok-{len(calls)}", "expires_in": 299})

    handler.calls = calls
    return handler


class TestTokenReuse:

    async def test_second_call_within_lifetime_reuses_token(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        first = await cache.get_token(Audience.RETAILER, "client-a", "secret-a")
        clock.now += 200
        second = await cache.get_token(Audience.RETAILER, "client-a", "secret-a")

        assert first == second == "tok-1"
        assert len(token_server.calls) == 1

    async def test_call_after_expiry_exchanges_again(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        await cache.get_token(Audience.RETAILER, "client-a", "secret-a")
        # 299s lifetime minus the 60s margin
        clock.now += 239
        token = await cache.get_token(Audience.RETAILER, "client-a", "secret-a")

        assert token == "tok-2"
        assert len(token_server.calls) == 2

    async def test_expiry_stored_with_safety_margin(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        await cache.get_retailer_token("client-a", "secret-a")

        assert cache.peek(Audience.RETAILER, "client-a").expires_at == clock.now + 239

    async def test_sends_basic_credentials(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        await cache.get_retailer_token("client-a", "secret-a")

        request = token_server.calls[0]
        expected = base64.b64encode(b"client-a:secret-a").decode()
        assert request.method == "POST"
        assert request.headers["Authorization"] == f"Basic {expected}"


class TestAudienceIsolation:

    async def test_retailer_token_does_not_satisfy_advertising(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        retailer = await cache.get_retailer_token("same-id", "secret")
        ads = await cache.get_ads_token("same-id", "secret")

        assert retailer == "tok-1"
        assert ads == "tok-2"
        assert len(token_server.calls) == 2

    async def test_plain_string_audience_shares_the_enum_entry(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        by_string = await cache.get_token("retailer", "client-a", "secret-a")
        by_enum = await cache.get_token(Audience.RETAILER, "client-a", "secret-a")

        assert by_string == by_enum == "tok-1"
        assert len(token_server.calls) == 1

    async def test_different_clients_get_different_tokens(self, mock_http, token_server, clock):
        cache = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock)

        assert await cache.get_retailer_token("a", "s") != await cache.get_retailer_token("b", "s")

    async def test_shared_store_survives_new_cache_instance(self, mock_http, token_server, clock):
        store = new_token_store()
        first = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock, store=store)
        second = TokenCache(mock_http(token_server), token_url="https://login.test/token", clock=clock, store=store)

        await first.get_retailer_token("client-a", "secret-a")
        token = await second.get_retailer_token("client-a", "secret-a")

        assert token == "tok-1"
        assert len(token_server.calls) == 1


class TestExchangeFailures:

    async def test_rejected_exchange_raises_auth_error(self, mock_http, clock):
        client = mock_http(lambda request: httpx.Response(401, text="invalid_client"))
        cache = TokenCache(client, token_url="https://login.test/token", clock=clock)

        with pytest.raises(AuthError) as exc_info:
            await cache.get_retailer_token("client-a", "bad-secret")

        assert exc_info.value.status_code == 401
        assert "invalid_client" in exc_info.value.body

    async def test_rejected_exchange_leaves_cache_untouched(self, mock_http, clock):
        responses = iter([
            httpx.Response(200, json={"access_token": "tok-1", "expires_in": 299}),
            httpx.Response(500, text="boom"),
        ])
        cache = TokenCache(mock_http(lambda request: next(responses)), token_url="https://login.test/token", clock=clock)

        await cache.get_retailer_token("client-a", "secret-a")
        before = cache.peek(Audience.RETAILER, "client-a")
        clock.now += 1000

        with pytest.raises(AuthError):
            await cache.get_retailer_token("client-a", "secret-a")

        assert cache.peek(Audience.RETAILER, "client-a") == before

    async def test_network_failure_is_transient(self, mock_http, clock):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        cache = TokenCache(mock_http(handler), token_url="https://login.test/token", clock=clock)

        with pytest.raises(TransientTransportError):
            await cache.get_retailer_token("client-a", "secret-a")
        assert cache.peek(Audience.RETAILER, "client-a") is None

    async def test_rejected_exchange_with_string_audience_names_it(self, mock_http, clock):
        client = mock_http(lambda request: httpx.Response(401, text="invalid_client"))
        cache = TokenCache(client, token_url="https://login.test/token", clock=clock)

        with pytest.raises(AuthError) as exc_info:
            await cache.get_token("advertising", "client-a", "bad-secret")

        assert exc_info.value.audience == "advertising"
