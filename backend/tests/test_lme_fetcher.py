from datetime import date

import httpx
import pytest

from ibrac.core.config import settings
from ibrac.services.lme_fetcher import LMEFetchError, fetch_lme_quote, parse_quote

TODAY = date(2024, 3, 5)

USD_PAYLOAD = {"metals": {"copper": 9000.0, "aluminum": 2200.0, "zinc": 2500.0, "nickel": 0}}
BRL_PAYLOAD = {"metals": {"copper": 45000.0}}


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "METALS_API_KEY", "test-key")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_parse_quote_derives_exchange_rate():
    quote = parse_quote(USD_PAYLOAD, BRL_PAYLOAD, TODAY)

    assert quote.data == TODAY
    assert quote.dolar_brl == pytest.approx(5.0)
    assert quote.cobre_brl_kg == pytest.approx(45.0)
    assert quote.aluminio_brl_kg == pytest.approx(11.0)
    assert quote.niquel_usd_t is None
    assert quote.as_record()["is_media_semanal"] is False


def test_parse_quote_uses_default_rate_without_brl():
    quote = parse_quote(USD_PAYLOAD, None, TODAY)

    assert quote.dolar_brl == settings.DEFAULT_USD_BRL
    assert quote.cobre_brl_kg == pytest.approx(9000 * settings.DEFAULT_USD_BRL / 1000)


async def test_fetch_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "METALS_API_KEY", None)
    with pytest.raises(LMEFetchError):
        await fetch_lme_quote(today=TODAY)


async def test_fetch_quote(api_key):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        currency = request.url.params["currency"]
        calls.append(currency)
        assert request.url.params["api_key"] == "test-key"
        return httpx.Response(200, json=USD_PAYLOAD if currency == "USD" else BRL_PAYLOAD)

    async with _client(handler) as client:
        quote = await fetch_lme_quote(client=client, today=TODAY)

    assert calls == ["USD", "BRL"]
    assert quote.cobre_brl_kg == pytest.approx(45.0)


async def test_fetch_quote_without_brl_response(api_key):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["currency"] == "BRL":
            return httpx.Response(500)
        return httpx.Response(200, json=USD_PAYLOAD)

    async with _client(handler) as client:
        quote = await fetch_lme_quote(client=client, today=TODAY)

    assert quote.dolar_brl == settings.DEFAULT_USD_BRL


async def test_fetch_raises_on_http_error(api_key):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid key")

    async with _client(handler) as client:
        with pytest.raises(LMEFetchError, match="401"):
            await fetch_lme_quote(client=client, today=TODAY)


async def test_fetch_raises_on_connection_error(api_key):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("sem rede", request=request)

    async with _client(handler) as client:
        with pytest.raises(LMEFetchError, match="conexão"):
            await fetch_lme_quote(client=client, today=TODAY)
