"""
Busca de cotações na API metals.dev e gravação no histórico LME

A API devolve US$/t; o câmbio é obtido comparando o preço do cobre em BRL
e em USD. Sem resposta em BRL usa-se DEFAULT_USD_BRL.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.core.config import settings
from ibrac.models.lme import LMEPrice
from ibrac.services.lme import LMEPoint, convert_usd_t_to_brl_kg
from ibrac.services.records import lme_point, to_decimal

logger = logging.getLogger(__name__)

# Precisão das colunas de historico_lme
PRICE_PLACES = {
    "cobre_usd_t": "0.01",
    "aluminio_usd_t": "0.01",
    "zinco_usd_t": "0.01",
    "chumbo_usd_t": "0.01",
    "estanho_usd_t": "0.01",
    "niquel_usd_t": "0.01",
    "dolar_brl": "0.0001",
    "cobre_brl_kg": "0.0001",
    "aluminio_brl_kg": "0.0001",
}


class LMEFetchError(Exception):
    """Falha ao obter cotações"""


@dataclass
class LMEQuote:
    data: date
    cobre_usd_t: Optional[float]
    aluminio_usd_t: Optional[float]
    zinco_usd_t: Optional[float]
    chumbo_usd_t: Optional[float]
    estanho_usd_t: Optional[float]
    niquel_usd_t: Optional[float]
    dolar_brl: float
    cobre_brl_kg: Optional[float]
    aluminio_brl_kg: Optional[float]
    fonte: str = "api"

    def as_record(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "cobre_usd_t": self.cobre_usd_t,
            "aluminio_usd_t": self.aluminio_usd_t,
            "zinco_usd_t": self.zinco_usd_t,
            "chumbo_usd_t": self.chumbo_usd_t,
            "estanho_usd_t": self.estanho_usd_t,
            "niquel_usd_t": self.niquel_usd_t,
            "dolar_brl": self.dolar_brl,
            "cobre_brl_kg": self.cobre_brl_kg,
            "aluminio_brl_kg": self.aluminio_brl_kg,
            "is_media_semanal": False,
            "fonte": self.fonte,
        }


def parse_quote(usd_payload: Dict[str, Any], brl_payload: Optional[Dict[str, Any]], today: date) -> LMEQuote:
    """Monta a cotação a partir das respostas em USD e (opcional) BRL"""
    metals = usd_payload.get("metals") or {}
    cobre = metals.get("copper") or None

    dolar_brl = settings.DEFAULT_USD_BRL
    brl_metals = (brl_payload or {}).get("metals") or {}
    if brl_metals.get("copper") and cobre:
        dolar_brl = brl_metals["copper"] / cobre

    aluminio = metals.get("aluminum") or None
    return LMEQuote(
        data=today,
        cobre_usd_t=cobre,
        aluminio_usd_t=aluminio,
        zinco_usd_t=metals.get("zinc") or None,
        chumbo_usd_t=metals.get("lead") or None,
        estanho_usd_t=metals.get("tin") or None,
        niquel_usd_t=metals.get("nickel") or None,
        dolar_brl=dolar_brl,
        cobre_brl_kg=convert_usd_t_to_brl_kg(cobre, dolar_brl),
        aluminio_brl_kg=convert_usd_t_to_brl_kg(aluminio, dolar_brl),
    )


async def fetch_lme_quote(
    client: Optional[httpx.AsyncClient] = None,
    today: Optional[date] = None,
) -> LMEQuote:
    """Busca as cotações do dia"""
    api_key = settings.METALS_API_KEY
    if not api_key:
        raise LMEFetchError("API key não configurada")

    today = today or date.today()
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)

    try:
        logger.info("Buscando cotações LME na API...")
        try:
            resp = await client.get(
                settings.METALS_API_URL,
                params={"api_key": api_key, "currency": "USD", "unit": "mt"},
            )
        except httpx.HTTPError as e:
            raise LMEFetchError(f"Erro de conexão com a API: {e}") from e

        if resp.status_code != 200:
            logger.error(f"Erro na API: {resp.status_code} {resp.text[:200]}")
            raise LMEFetchError(f"Erro na API: {resp.status_code}")

        usd_payload = resp.json()

        brl_payload = None
        try:
            brl_resp = await client.get(
                settings.METALS_API_URL,
                params={"api_key": api_key, "currency": "BRL", "unit": "mt"},
            )
            if brl_resp.status_code == 200:
                brl_payload = brl_resp.json()
        except httpx.HTTPError as e:
            logger.warning(f"Câmbio BRL indisponível, usando padrão {settings.DEFAULT_USD_BRL}: {e}")

        return parse_quote(usd_payload, brl_payload, today)
    finally:
        if owns_client:
            await client.aclose()


async def upsert_lme_price(db: AsyncSession, data: Dict[str, Any]) -> LMEPrice:
    """Grava a cotação do dia, substituindo a existente na mesma data

    O R$/kg do cobre é calculado a partir de US$/t e câmbio quando ausente.
    Não faz commit.
    """
    values = dict(data)
    if values.get("cobre_brl_kg") is None:
        values["cobre_brl_kg"] = convert_usd_t_to_brl_kg(values.get("cobre_usd_t"), values.get("dolar_brl"))
    if values.get("aluminio_brl_kg") is None:
        values["aluminio_brl_kg"] = convert_usd_t_to_brl_kg(values.get("aluminio_usd_t"), values.get("dolar_brl"))

    for field, places in PRICE_PLACES.items():
        if field in values:
            values[field] = to_decimal(values[field], places)

    is_media = bool(values.get("is_media_semanal", False))
    result = await db.execute(
        select(LMEPrice).where(
            and_(LMEPrice.data == values["data"], LMEPrice.is_media_semanal == is_media)
        )
    )
    price = result.scalars().first()
    if price:
        for field, value in values.items():
            setattr(price, field, value)
        logger.info(f"Cotação LME de {price.data} atualizada")
    else:
        price = LMEPrice(**values)
        db.add(price)
        logger.info(f"Cotação LME de {values['data']} registrada")
    await db.flush()
    return price


async def load_daily_history(db: AsyncSession) -> List[LMEPoint]:
    """Histórico diário em ordem decrescente de data, pronto para get_lme_for_date"""
    result = await db.execute(
        select(LMEPrice)
        .where(LMEPrice.is_media_semanal == False)  # noqa: E712
        .order_by(LMEPrice.data.desc())
    )
    return [lme_point(p) for p in result.scalars().all()]
