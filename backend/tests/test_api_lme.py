from datetime import date

import pytest

from ibrac.api.api_v1.endpoints import lme as lme_endpoints
from ibrac.services.lme_fetcher import LMEFetchError, LMEQuote

API = "/api/v1/lme"


async def test_price_upsert_converts_and_replaces(client):
    resp = await client.post(f"{API}/prices", json={
        "data": "2024-03-01", "cobre_usd_t": 9000, "dolar_brl": 5.0,
    })
    assert resp.status_code == 200, resp.text
    assert resp.json()["cobre_brl_kg"] == pytest.approx(45.0)

    resp = await client.post(f"{API}/prices", json={
        "data": "2024-03-01", "cobre_usd_t": 9200, "dolar_brl": 5.0,
    })
    assert resp.json()["cobre_brl_kg"] == pytest.approx(46.0)

    prices = (await client.get(f"{API}/prices")).json()
    assert len(prices) == 1
    assert prices[0]["cobre_usd_t"] == pytest.approx(9200)


async def test_lookup_uses_last_known_quote(client):
    await client.post(f"{API}/prices", json={"data": "2024-03-01", "cobre_brl_kg": 45.0})
    await client.post(f"{API}/prices", json={"data": "2024-03-05", "cobre_brl_kg": 47.0})

    found = (await client.get(f"{API}/lookup", params={"data": "2024-03-04"})).json()
    assert found["cobre_brl_kg"] == pytest.approx(45.0)
    assert found["encontrado"] is True

    found = (await client.get(f"{API}/lookup", params={"data": "2024-03-05"})).json()
    assert found["cobre_brl_kg"] == pytest.approx(47.0)

    # Antes da primeira cotação vale a mais recente
    found = (await client.get(f"{API}/lookup", params={"data": "2024-01-01"})).json()
    assert found["cobre_brl_kg"] == pytest.approx(47.0)


async def test_lookup_without_history(client):
    found = (await client.get(f"{API}/lookup", params={"data": "2024-03-04"})).json()
    assert found["cobre_brl_kg"] == 0
    assert found["encontrado"] is False


async def test_week_config_crud(client):
    payload = {
        "ano": 2024,
        "semana": 10,
        "data_inicio": "2024-03-04",
        "data_fim": "2024-03-08",
        "lme_cobre_usd_t": 9000,
        "dolar_brl": 5.0,
        "icms_pct": 18,
        "pis_cofins_pct": 9.25,
    }
    resp = await client.post(f"{API}/weeks", json=payload)
    assert resp.status_code == 200, resp.text
    week = resp.json()
    assert week["lme_base_brl_kg"] == pytest.approx(45.0)
    assert week["fator_total"] == pytest.approx(1.18 * 1.0925, rel=1e-5)
    assert week["lme_final_brl_kg"] == pytest.approx(45.0 * 1.18 * 1.0925, rel=1e-4)

    resp = await client.post(f"{API}/weeks", json=payload)
    assert resp.status_code == 400

    resp = await client.put(f"{API}/weeks/{week['id']}", json={**payload, "icms_pct": 0, "pis_cofins_pct": 0})
    assert resp.status_code == 200
    assert resp.json()["lme_final_brl_kg"] == pytest.approx(45.0)

    resp = await client.post(f"{API}/weeks", json={**payload, "semana": 11, "data_fim": "2024-03-01"})
    assert resp.status_code == 422

    assert (await client.delete(f"{API}/weeks/{week['id']}")).status_code == 200
    assert (await client.delete(f"{API}/weeks/{week['id']}")).status_code == 404
    assert (await client.get(f"{API}/weeks")).json() == []


async def test_simulate_with_latest_quote(client):
    await client.post(f"{API}/prices", json={"data": "2024-03-01", "cobre_brl_kg": 50.0})

    result = (await client.post(f"{API}/simulate", json={
        "preco_sucata_kg": 40,
        "peso_sucata_kg": 1000,
        "perda_processo_pct": 5,
        "custo_frete_coleta": 500,
        "custo_frete_laminacao": 500,
        "custo_mo_kg": 2,
    })).json()

    assert result["preco_lme_kg"] == pytest.approx(50.0)
    assert result["peso_vergalhao_kg"] == pytest.approx(950)
    assert result["custo_total"] == pytest.approx(40000 + 1000 + 1900)
    assert result["custo_kg"] == pytest.approx(42900 / 950)
    assert result["vale_a_pena"] is True


async def test_fetch_stores_quote(client, monkeypatch):
    async def fake_fetch():
        return LMEQuote(
            data=date(2024, 3, 5),
            cobre_usd_t=9000.0,
            aluminio_usd_t=2200.0,
            zinco_usd_t=None,
            chumbo_usd_t=None,
            estanho_usd_t=None,
            niquel_usd_t=None,
            dolar_brl=5.0,
            cobre_brl_kg=45.0,
            aluminio_brl_kg=11.0,
        )

    monkeypatch.setattr(lme_endpoints, "fetch_lme_quote", fake_fetch)

    resp = await client.post(f"{API}/fetch")
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["fonte"] == "api"
    assert data["cobre_brl_kg"] == pytest.approx(45.0)

    logs = (await client.get("/api/v1/audit-logs/", params={"action": "fetch"})).json()
    assert logs["total"] == 1
    assert logs["data"][0]["table_name"] == "historico_lme"


async def test_fetch_failure_returns_bad_gateway(client, monkeypatch):
    async def failing_fetch():
        raise LMEFetchError("API key não configurada")

    monkeypatch.setattr(lme_endpoints, "fetch_lme_quote", failing_fetch)

    resp = await client.post(f"{API}/fetch")
    assert resp.status_code == 502
    assert resp.json()["detail"] == "API key não configurada"


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
