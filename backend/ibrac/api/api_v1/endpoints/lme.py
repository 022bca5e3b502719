"""Cotações LME API - histórico, semana, busca automática e simulador"""

from dataclasses import asdict
from typing import Any, List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.core.deps import get_db
from ibrac.core.logging_config import get_logger
from ibrac.models.lme import LMEPrice, LMEWeekConfig
from ibrac.schemas.lme import (
    LMEPriceCreate, LMEPriceResponse, LMELookupResponse,
    LMEWeekConfigCreate, LMEWeekConfigResponse,
    SimulationRequest, SimulationResponse, LMEFetchResponse
)
from ibrac.services.audit import record_audit
from ibrac.services.lme import get_lme_for_date, calculate_week_price, simulate_processing
from ibrac.services.lme_fetcher import (
    LMEFetchError, fetch_lme_quote, load_daily_history, upsert_lme_price
)
from ibrac.services.records import to_decimal

logger = get_logger(__name__)

router = APIRouter()


# ==================== Histórico ====================

@router.get("/prices", response_model=List[LMEPriceResponse])
async def list_prices(
    *,
    db: AsyncSession = Depends(get_db),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
    semanal: Optional[bool] = Query(None, description="Somente médias semanais"),
    limit: int = Query(60, ge=1, le=500),
) -> Any:
    """Histórico de cotações (mais recente primeiro)"""
    query = select(LMEPrice)
    conditions = []
    if data_inicio:
        conditions.append(LMEPrice.data >= data_inicio)
    if data_fim:
        conditions.append(LMEPrice.data <= data_fim)
    if semanal is not None:
        conditions.append(LMEPrice.is_media_semanal == semanal)
    if conditions:
        query = query.where(and_(*conditions))

    query = query.order_by(LMEPrice.data.desc()).limit(limit)
    result = await db.execute(query)
    return [LMEPriceResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/prices", response_model=LMEPriceResponse)
async def save_price(
    *,
    db: AsyncSession = Depends(get_db),
    price_in: LMEPriceCreate,
) -> Any:
    """Registrar cotação do dia (substitui a existente)"""
    price = await upsert_lme_price(db, price_in.model_dump())
    record_audit(db, "update", price)
    await db.commit()
    await db.refresh(price)
    return LMEPriceResponse.model_validate(price)


@router.get("/lookup", response_model=LMELookupResponse)
async def lookup_price(
    *,
    db: AsyncSession = Depends(get_db),
    data: date = Query(..., description="Data de referência"),
) -> Any:
    """LME vigente na data (última cotação conhecida até a data)"""
    history = await load_daily_history(db)
    return LMELookupResponse(
        data=data,
        cobre_brl_kg=get_lme_for_date(history, data),
        encontrado=bool(history),
    )


@router.post("/fetch", response_model=LMEFetchResponse)
async def fetch_prices(
    *,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Buscar cotações do dia na API"""
    try:
        quote = await fetch_lme_quote()
    except LMEFetchError as e:
        logger.error(f"❌ Busca LME falhou: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    price = await upsert_lme_price(db, quote.as_record())
    record_audit(db, "fetch", price)
    await db.commit()
    await db.refresh(price)

    return LMEFetchResponse(
        message=f"Cotação de {price.data} importada",
        data=LMEPriceResponse.model_validate(price),
    )


# ==================== Semana LME ====================

def apply_week_price(config: LMEWeekConfig) -> None:
    """Recalcula base, fator e preço final"""
    week = calculate_week_price(
        float(config.lme_cobre_usd_t),
        float(config.dolar_brl),
        float(config.icms_pct or 0),
        float(config.pis_cofins_pct or 0),
        float(config.taxa_financeira_pct or 0),
    )
    config.lme_base_brl_kg = to_decimal(week.lme_base_brl_kg, "0.0001")
    config.fator_total = to_decimal(week.fator_total, "0.000001")
    config.lme_final_brl_kg = to_decimal(week.lme_final_brl_kg, "0.0001")


def week_values(week_in: LMEWeekConfigCreate) -> dict:
    data = week_in.model_dump()
    data["lme_cobre_usd_t"] = to_decimal(data["lme_cobre_usd_t"])
    data["dolar_brl"] = to_decimal(data["dolar_brl"], "0.0001")
    for field in ("icms_pct", "pis_cofins_pct", "taxa_financeira_pct"):
        data[field] = to_decimal(data[field])
    return data


@router.get("/weeks", response_model=List[LMEWeekConfigResponse])
async def list_weeks(
    *,
    db: AsyncSession = Depends(get_db),
    ano: Optional[int] = Query(None),
) -> Any:
    """Configurações semanais"""
    query = select(LMEWeekConfig)
    if ano:
        query = query.where(LMEWeekConfig.ano == ano)
    query = query.order_by(LMEWeekConfig.ano.desc(), LMEWeekConfig.semana.desc())
    result = await db.execute(query)
    return [LMEWeekConfigResponse.model_validate(w) for w in result.scalars().all()]


@router.post("/weeks", response_model=LMEWeekConfigResponse)
async def create_week(
    *,
    db: AsyncSession = Depends(get_db),
    week_in: LMEWeekConfigCreate,
) -> Any:
    """Configurar semana"""
    existing = (await db.execute(
        select(func.count(LMEWeekConfig.id)).where(
            and_(LMEWeekConfig.ano == week_in.ano, LMEWeekConfig.semana == week_in.semana)
        )
    )).scalar() or 0
    if existing:
        raise HTTPException(status_code=400, detail=f"Semana {week_in.semana}/{week_in.ano} já configurada")

    config = LMEWeekConfig(**week_values(week_in))
    apply_week_price(config)
    db.add(config)
    await db.flush()
    record_audit(db, "create", config)
    await db.commit()
    await db.refresh(config)
    return LMEWeekConfigResponse.model_validate(config)


@router.put("/weeks/{week_id}", response_model=LMEWeekConfigResponse)
async def update_week(
    *,
    db: AsyncSession = Depends(get_db),
    week_id: int,
    week_in: LMEWeekConfigCreate,
) -> Any:
    """Alterar semana"""
    config = await db.get(LMEWeekConfig, week_id)
    if not config:
        raise HTTPException(status_code=404, detail="Semana não encontrada")

    for field, value in week_values(week_in).items():
        setattr(config, field, value)
    apply_week_price(config)

    record_audit(db, "update", config)
    await db.commit()
    await db.refresh(config)
    return LMEWeekConfigResponse.model_validate(config)


@router.delete("/weeks/{week_id}")
async def delete_week(
    *,
    db: AsyncSession = Depends(get_db),
    week_id: int,
) -> Any:
    """Excluir semana"""
    config = await db.get(LMEWeekConfig, week_id)
    if not config:
        raise HTTPException(status_code=404, detail="Semana não encontrada")

    record_audit(db, "delete", config)
    await db.delete(config)
    await db.commit()
    return {"message": "Semana excluída"}


# ==================== Simulador ====================

@router.post("/simulate", response_model=SimulationResponse)
async def simulate(
    *,
    db: AsyncSession = Depends(get_db),
    sim_in: SimulationRequest,
) -> Any:
    """Simular compra de sucata + beneficiamento contra o vergalhão pelo LME"""
    preco_lme = sim_in.preco_lme_kg
    if preco_lme is None:
        preco_lme = get_lme_for_date(await load_daily_history(db), date.today())

    result = simulate_processing(
        preco_sucata_kg=sim_in.preco_sucata_kg,
        peso_sucata_kg=sim_in.peso_sucata_kg,
        perda_processo_pct=sim_in.perda_processo_pct,
        custo_frete_coleta=sim_in.custo_frete_coleta,
        custo_frete_laminacao=sim_in.custo_frete_laminacao,
        custo_mo_kg=sim_in.custo_mo_kg,
        preco_lme_kg=preco_lme,
    )
    return SimulationResponse(preco_lme_kg=preco_lme, **asdict(result))
