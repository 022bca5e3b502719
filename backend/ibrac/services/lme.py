"""
Preços LME
- busca do preço vigente numa data (último valor conhecido)
- preço semanal com impostos
- simulador de beneficiamento
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence, Union

DateLike = Union[date, datetime, str, None]


@dataclass
class LMEPoint:
    """Ponto do histórico LME (R$/kg de cobre)"""
    data: DateLike
    cobre_brl_kg: Optional[float] = None


def parse_date(value: DateLike) -> Optional[date]:
    """Converte str ISO / datetime / date em date; None se inválido."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError:
        return None


def get_lme_for_date(
    history: Optional[Sequence[LMEPoint]],
    target_date: DateLike,
    fallback: float = 0.0,
) -> float:
    """Preço LME vigente em `target_date`.

    `history` deve estar em ordem decrescente de data. Retorna o primeiro
    ponto com data <= alvo; sem nenhum, o ponto mais recente; com histórico
    vazio, `fallback`.
    """
    if not history:
        return fallback

    def price_of(point: LMEPoint) -> float:
        return point.cobre_brl_kg if point.cobre_brl_kg is not None else fallback

    target = parse_date(target_date)
    if target is None:
        return price_of(history[0])

    for point in history:
        point_date = parse_date(point.data)
        if point_date is not None and point_date <= target:
            return price_of(point)

    return price_of(history[0])


def convert_usd_t_to_brl_kg(usd_t: Optional[float], usd_brl: Optional[float]) -> Optional[float]:
    """US$/t -> R$/kg"""
    if not usd_t or not usd_brl:
        return None
    return usd_t * usd_brl / 1000


# ==================== Semana LME ====================

@dataclass
class WeekPrice:
    lme_base_brl_kg: float
    fator_total: float
    lme_final_brl_kg: float


def calculate_week_price(
    lme_cobre_usd_t: float,
    dolar_brl: float,
    icms_pct: float = 0.0,
    pis_cofins_pct: float = 0.0,
    taxa_financeira_pct: float = 0.0,
) -> WeekPrice:
    """Preço final da semana: base convertida × fator de impostos e taxa financeira"""
    base = (lme_cobre_usd_t or 0) * (dolar_brl or 0) / 1000
    fator = (
        (1 + (icms_pct or 0) / 100)
        * (1 + (pis_cofins_pct or 0) / 100)
        * (1 + (taxa_financeira_pct or 0) / 100)
    )
    return WeekPrice(lme_base_brl_kg=base, fator_total=fator, lme_final_brl_kg=base * fator)


# ==================== Simulador ====================

@dataclass
class SimulationResult:
    peso_vergalhao_kg: float
    custo_sucata_total: float
    custo_frete_total: float
    custo_mo_total: float
    custo_total: float
    custo_kg: float
    diferenca_kg: float
    economia_pct: float
    vale_a_pena: bool


def simulate_processing(
    preco_sucata_kg: float,
    peso_sucata_kg: float,
    perda_processo_pct: float,
    custo_frete_coleta: float,
    custo_frete_laminacao: float,
    custo_mo_kg: float,
    preco_lme_kg: float,
) -> SimulationResult:
    """Compra de sucata + beneficiamento comparado a comprar vergalhão pelo LME"""
    peso_vergalhao = (peso_sucata_kg or 0) * (1 - (perda_processo_pct or 0) / 100)
    custo_sucata = (preco_sucata_kg or 0) * (peso_sucata_kg or 0)
    custo_frete = (custo_frete_coleta or 0) + (custo_frete_laminacao or 0)
    custo_mo = (custo_mo_kg or 0) * peso_vergalhao
    custo_total = custo_sucata + custo_frete + custo_mo
    custo_kg = custo_total / peso_vergalhao if peso_vergalhao > 0 else 0.0
    diferenca = (preco_lme_kg or 0) - custo_kg
    economia_pct = diferenca / preco_lme_kg * 100 if preco_lme_kg and preco_lme_kg > 0 else 0.0
    return SimulationResult(
        peso_vergalhao_kg=peso_vergalhao,
        custo_sucata_total=custo_sucata,
        custo_frete_total=custo_frete,
        custo_mo_total=custo_mo,
        custo_total=custo_total,
        custo_kg=custo_kg,
        diferenca_kg=diferenca,
        economia_pct=economia_pct,
        vale_a_pena=peso_vergalhao > 0 and diferenca > 0,
    )
