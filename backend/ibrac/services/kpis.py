"""
Cálculos centralizados de custos e KPIs

Funções puras sobre registros já carregados do banco. Valores ausentes
contam como zero; nenhuma função levanta exceção por falta de dados.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ibrac.services.lme import DateLike, LMEPoint, get_lme_for_date
from ibrac.services.scenarios import Scenario, detect_scenario


# ==================== Registros de entrada ====================

@dataclass
class BatchData:
    """Beneficiamento"""
    id: object
    codigo: str = ""
    peso_entrada_kg: Optional[float] = None
    peso_saida_kg: Optional[float] = None
    perda_real_pct: Optional[float] = None
    perda_cobrada_pct: Optional[float] = None
    custo_mo_terceiro: Optional[float] = None
    custo_mo_ibrac: Optional[float] = None
    custo_frete_ida: Optional[float] = None
    custo_frete_volta: Optional[float] = None
    lme_referencia_kg: Optional[float] = None
    data_inicio: DateLike = None
    status: Optional[str] = None


@dataclass
class SublotRef:
    """Sublote consumido, com o dono e a entrada de origem"""
    owner_id: Optional[object] = None
    owner_is_company: bool = False
    owner_name: str = ""
    custo_unitario_total: Optional[float] = None
    entry_id: Optional[object] = None
    entry_valor_total: Optional[float] = None
    generates_cost: Optional[bool] = None
    # Saída de um beneficiamento anterior: o custo vem do próprio sublote
    from_batch: bool = False


@dataclass
class InputItemData:
    """Item de entrada de um beneficiamento"""
    batch_id: object
    peso_kg: float = 0.0
    sublot: Optional[SublotRef] = None


@dataclass
class DocumentLink:
    """Documento de entrada vinculado ao beneficiamento"""
    batch_id: object
    valor_documento: Optional[float] = 0.0
    taxa_financeira_valor: Optional[float] = None


@dataclass
class SublotStock:
    id: object = None
    peso_kg: Optional[float] = 0.0
    custo_unitario_total: Optional[float] = None
    status: Optional[str] = None
    product_name: Optional[str] = None
    product_code: Optional[str] = None


@dataclass
class SettlementData:
    tipo: str
    valor: Optional[float] = 0.0
    status: Optional[str] = None
    owner_id: Optional[object] = None


# ==================== Resultados ====================

@dataclass
class BatchCosts:
    custo_aquisicao: float = 0.0
    custo_mo: float = 0.0
    custo_frete: float = 0.0
    custo_financeiro: float = 0.0
    custo_total: float = 0.0
    custo_kg: float = 0.0


@dataclass
class BatchEconomy:
    codigo: str
    peso_entrada: float
    peso_saida: float
    custo_aquisicao: float
    custo_mo: float
    custo_frete: float
    custo_financeiro: float
    custo_total: float
    custo_kg: float
    lme_kg: float
    economia_kg: float
    economia_total: float
    cenario: Scenario


@dataclass
class ScenarioTotals:
    peso: float = 0.0
    count: int = 0
    economia: float = 0.0
    receita: float = 0.0
    comissao: float = 0.0


@dataclass
class ConsolidatedKPIs:
    economia_total: float = 0.0
    economia_positiva: bool = True
    custo_medio_vergalhao: float = 0.0
    custo_total_processado: float = 0.0
    peso_processado: float = 0.0
    saldo_vergalhao: float = 0.0
    lucro_perda_total: float = 0.0
    lucro_mo_total: float = 0.0
    lucro_comissao_total: float = 0.0
    lucro_total_ibrac: float = 0.0
    repasses_pendentes: float = 0.0
    cenarios: Dict[Scenario, ScenarioTotals] = field(
        default_factory=lambda: {s: ScenarioTotals() for s in Scenario}
    )


# ==================== Cálculos ====================

def calculate_batch_costs(
    batch: BatchData,
    input_items: Sequence[InputItemData],
    documents: Sequence[DocumentLink],
) -> BatchCosts:
    """Custos de um beneficiamento.

    Aquisição = soma dos documentos vinculados; sem documentos, soma o
    valor total de cada entrada de origem dos itens consumidos, contando
    cada entrada uma única vez. Sublotes gerados por beneficiamento entram
    sempre pelo custo unitário × peso consumido.
    """
    batch_docs = [d for d in documents if d.batch_id == batch.id]
    valor_documentos = sum(d.valor_documento or 0 for d in batch_docs)
    custo_financeiro = sum(d.taxa_financeira_valor or 0 for d in batch_docs)

    custo_mo = (batch.custo_mo_terceiro or 0) + (batch.custo_mo_ibrac or 0)
    custo_frete = (batch.custo_frete_ida or 0) + (batch.custo_frete_volta or 0)

    processed = [i for i in input_items if i.sublot is not None and i.sublot.from_batch]
    custo_processados = sum(
        (i.sublot.custo_unitario_total or 0) * (i.peso_kg or 0) for i in processed
    )

    custo_aquisicao = valor_documentos
    if custo_aquisicao == 0 and input_items:
        seen_entries = set()
        for item in input_items:
            sublot = item.sublot
            if sublot is None or sublot.from_batch or sublot.entry_id is None:
                continue
            if sublot.entry_id in seen_entries:
                continue
            seen_entries.add(sublot.entry_id)
            custo_aquisicao += sublot.entry_valor_total or 0
    custo_aquisicao += custo_processados

    custo_total = custo_aquisicao + custo_financeiro + custo_mo + custo_frete
    peso_saida = batch.peso_saida_kg or 0
    custo_kg = custo_total / peso_saida if peso_saida > 0 else 0.0

    return BatchCosts(
        custo_aquisicao=custo_aquisicao,
        custo_mo=custo_mo,
        custo_frete=custo_frete,
        custo_financeiro=custo_financeiro,
        custo_total=custo_total,
        custo_kg=custo_kg,
    )


def calculate_loss_profit(
    entry_kg: float,
    charged_pct: float,
    real_pct: float,
    lme_kg: float,
) -> float:
    """Lucro quando a perda cobrada supera a perda real"""
    charged_pct = charged_pct or 0
    real_pct = real_pct or 0
    lme_kg = lme_kg or 0
    if charged_pct <= real_pct or lme_kg <= 0:
        return 0.0
    diff_kg = (entry_kg or 0) * ((charged_pct - real_pct) / 100)
    return diff_kg * lme_kg


def calculate_economy_vs_lme(
    output_kg: float,
    cost_kg: float,
    lme_kg: float,
) -> Tuple[float, float]:
    """(economia por kg, economia total) frente ao LME"""
    output_kg = output_kg or 0
    lme_kg = lme_kg or 0
    if lme_kg <= 0 or output_kg <= 0:
        return 0.0, 0.0
    economy_kg = lme_kg - (cost_kg or 0)
    return economy_kg, economy_kg * output_kg


def economy_vs_lme(weight_kg: float, total_cost: float, lme_kg: float) -> float:
    """Forma direta: custo do mesmo peso a preço LME menos o custo real"""
    if not lme_kg or lme_kg <= 0 or not weight_kg or weight_kg <= 0:
        return 0.0
    return weight_kg * lme_kg - (total_cost or 0)


def weighted_average_cost(sublots: Optional[Sequence[SublotStock]]) -> float:
    """Custo médio ponderado pelo peso"""
    if not sublots:
        return 0.0
    total_peso = 0.0
    total_custo = 0.0
    for s in sublots:
        peso = s.peso_kg or 0
        total_peso += peso
        total_custo += (s.custo_unitario_total or 0) * peso
    return total_custo / total_peso if total_peso > 0 else 0.0


def available_weighted_average_cost(sublots: Optional[Sequence[SublotStock]]) -> float:
    """Custo médio ponderado apenas dos sublotes disponíveis"""
    if not sublots:
        return 0.0
    return weighted_average_cost([s for s in sublots if s.status == "disponivel"])


def is_rebar(product_name: Optional[str], product_code: Optional[str] = None) -> bool:
    """Vergalhão é identificado pelo nome ou código do tipo de produto"""
    nome = (product_name or "").lower()
    codigo = (product_code or "").lower()
    return "vergalhão" in nome or "verg" in codigo


def calculate_consolidated_kpis(
    batches: Optional[Sequence[BatchData]],
    input_items: Optional[Sequence[InputItemData]],
    documents: Optional[Sequence[DocumentLink]],
    lme_history: Optional[Sequence[LMEPoint]],
    rebar_sublots: Optional[Sequence[SublotStock]],
    settlements: Optional[Sequence[SettlementData]],
    owner_id: Optional[object] = None,
) -> Tuple[ConsolidatedKPIs, List[BatchEconomy]]:
    """KPIs consolidados de um conjunto de beneficiamentos"""
    kpis = ConsolidatedKPIs()
    details: List[BatchEconomy] = []

    batches = batches or []
    input_items = input_items or []
    documents = documents or []

    custo_total_vergalhao = 0.0
    peso_total_saida = 0.0

    for batch in batches:
        batch_items = [i for i in input_items if i.batch_id == batch.id]
        first = batch_items[0].sublot if batch_items else None

        generates_cost = first.generates_cost if first and first.generates_cost is not None else True
        batch_owner = first.owner_id if first else None
        cenario = detect_scenario(
            generates_cost=generates_cost,
            owner_id=batch_owner,
            owner_is_company=first.owner_is_company if first else False,
        )

        if owner_id is not None and batch_owner != owner_id:
            continue

        peso_entrada = batch.peso_entrada_kg or 0
        peso_saida = batch.peso_saida_kg or 0
        kpis.peso_processado += peso_entrada
        kpis.cenarios[cenario].peso += peso_entrada
        kpis.cenarios[cenario].count += 1

        custos = calculate_batch_costs(batch, batch_items, documents)
        custo_total_vergalhao += custos.custo_total
        peso_total_saida += peso_saida
        kpis.custo_total_processado += custos.custo_total

        if batch.lme_referencia_kg:
            lme_kg = float(batch.lme_referencia_kg)
        else:
            lme_kg = get_lme_for_date(lme_history, batch.data_inicio)

        kpis.lucro_perda_total += calculate_loss_profit(
            peso_entrada,
            batch.perda_cobrada_pct or 0,
            batch.perda_real_pct or 0,
            lme_kg,
        )

        if cenario == Scenario.INDUSTRIALIZACAO:
            receita_servico = custos.custo_mo + custos.custo_frete
            kpis.lucro_mo_total += receita_servico
            kpis.cenarios[Scenario.INDUSTRIALIZACAO].receita += receita_servico

        if lme_kg > 0 and peso_saida > 0:
            economia_kg, economia_total = calculate_economy_vs_lme(peso_saida, custos.custo_kg, lme_kg)
            kpis.economia_total += economia_total
            details.append(BatchEconomy(
                codigo=batch.codigo,
                peso_entrada=peso_entrada,
                peso_saida=peso_saida,
                custo_aquisicao=custos.custo_aquisicao,
                custo_mo=custos.custo_mo,
                custo_frete=custos.custo_frete,
                custo_financeiro=custos.custo_financeiro,
                custo_total=custos.custo_total,
                custo_kg=custos.custo_kg,
                lme_kg=lme_kg,
                economia_kg=economia_kg,
                economia_total=economia_total,
                cenario=cenario,
            ))
            if cenario == Scenario.PROPRIO:
                kpis.cenarios[Scenario.PROPRIO].economia += economia_total

    kpis.custo_medio_vergalhao = custo_total_vergalhao / peso_total_saida if peso_total_saida > 0 else 0.0
    kpis.economia_positiva = kpis.economia_total >= 0

    kpis.saldo_vergalhao = sum(
        s.peso_kg or 0
        for s in (rebar_sublots or [])
        if s.status == "disponivel" and is_rebar(s.product_name, s.product_code)
    )

    # Acertos do dono filtrado; o período é aplicado por quem carrega os acertos
    settlements = [
        a for a in (settlements or [])
        if owner_id is None or a.owner_id == owner_id
    ]

    kpis.repasses_pendentes = sum(
        a.valor or 0
        for a in settlements
        if a.tipo == "repasse" and a.owner_id is not None and a.status == "pendente"
    )

    # Comissões de operação terceiro ficam registradas como acertos de receita
    kpis.lucro_comissao_total = sum(
        a.valor or 0
        for a in settlements
        if a.tipo == "receita" and a.status != "cancelado"
    )
    kpis.cenarios[Scenario.OPERACAO_TERCEIRO].comissao = kpis.lucro_comissao_total

    kpis.lucro_total_ibrac = kpis.lucro_perda_total + kpis.lucro_mo_total + kpis.lucro_comissao_total

    return kpis, details
