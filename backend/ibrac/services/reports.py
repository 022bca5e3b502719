"""
Relatórios
- demonstrativo de operação por dono
- repasses pendentes agrupados por dono
- rastreabilidade de custo de um sublote
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ibrac.services.kpis import BatchData, DocumentLink, InputItemData
from ibrac.services.scenarios import Scenario, detect_scenario

NO_OWNER_KEY = "sem_dono"


@dataclass
class OwnerData:
    id: object
    nome: str
    is_ibrac: bool = False
    taxa_operacao_pct: float = 0.0


@dataclass
class EntryData:
    owner_id: Optional[object]
    peso_liquido_kg: float = 0.0
    valor_total: Optional[float] = None
    generates_cost: Optional[bool] = None


@dataclass
class BatchOwnerData:
    """Beneficiamento atribuído ao dono do primeiro item consumido"""
    owner_id: Optional[object]
    custo_frete_ida: Optional[float] = None
    custo_frete_volta: Optional[float] = None
    custo_mo_terceiro: Optional[float] = None
    custo_mo_ibrac: Optional[float] = None
    lucro_perda_valor: Optional[float] = None


@dataclass
class ExitData:
    owner_id: Optional[object]
    owner_is_company: bool = False
    generates_cost: Optional[bool] = None
    peso_total_kg: float = 0.0
    valor_total: Optional[float] = None
    custos_cobrados: Optional[float] = None
    comissao_ibrac: Optional[float] = None
    valor_repasse_dono: Optional[float] = None


@dataclass
class OwnerStatement:
    dono_id: object
    dono_nome: str
    is_ibrac: bool
    taxa_operacao_pct: float
    total_entradas: int = 0
    peso_entrada_kg: float = 0.0
    valor_compras: float = 0.0
    total_beneficiamentos: int = 0
    custo_frete: float = 0.0
    custo_mo: float = 0.0
    custo_total_benef: float = 0.0
    lucro_perda_valor: float = 0.0
    total_saidas: int = 0
    peso_saida_kg: float = 0.0
    receita_bruta: float = 0.0
    custos_cobrados: float = 0.0
    comissao_ibrac: float = 0.0
    repasse_dono: float = 0.0
    resultado_liquido: float = 0.0
    cenario_predominante: Optional[Scenario] = None

    @property
    def has_activity(self) -> bool:
        return self.total_entradas > 0 or self.total_saidas > 0 or self.total_beneficiamentos > 0


@dataclass
class StatementTotals:
    peso_entrada: float = 0.0
    peso_saida: float = 0.0
    valor_compras: float = 0.0
    custo_benef: float = 0.0
    receita_bruta: float = 0.0
    lucro_perda: float = 0.0
    comissao_ibrac: float = 0.0
    repasse_dono: float = 0.0
    resultado: float = 0.0


def build_owner_statement(
    owners: Sequence[OwnerData],
    entries: Sequence[EntryData],
    batches: Sequence[BatchOwnerData],
    exits: Sequence[ExitData],
    owner_filter: Optional[object] = None,
) -> List[OwnerStatement]:
    """Demonstrativo por dono.

    Beneficiamentos e saídas são atribuídos ao dono do primeiro sublote;
    registros sem dono cadastrado ficam fora do demonstrativo.
    """
    result: Dict[object, OwnerStatement] = {
        o.id: OwnerStatement(
            dono_id=o.id,
            dono_nome=o.nome,
            is_ibrac=bool(o.is_ibrac),
            taxa_operacao_pct=o.taxa_operacao_pct or 0,
        )
        for o in owners
    }

    for entry in entries:
        row = result.get(entry.owner_id)
        if row is None:
            continue
        row.total_entradas += 1
        row.peso_entrada_kg += entry.peso_liquido_kg or 0
        if entry.generates_cost:
            row.valor_compras += entry.valor_total or 0

    for batch in batches:
        row = result.get(batch.owner_id)
        if row is None:
            continue
        frete = (batch.custo_frete_ida or 0) + (batch.custo_frete_volta or 0)
        mo = (batch.custo_mo_terceiro or 0) + (batch.custo_mo_ibrac or 0)
        row.total_beneficiamentos += 1
        row.custo_frete += frete
        row.custo_mo += mo
        row.custo_total_benef += frete + mo
        row.lucro_perda_valor += batch.lucro_perda_valor or 0

    for saida in exits:
        row = result.get(saida.owner_id)
        if row is None:
            continue
        row.total_saidas += 1
        row.peso_saida_kg += saida.peso_total_kg or 0
        row.receita_bruta += saida.valor_total or 0
        row.custos_cobrados += saida.custos_cobrados or 0
        row.comissao_ibrac += saida.comissao_ibrac or 0
        row.repasse_dono += saida.valor_repasse_dono or 0
        row.cenario_predominante = detect_scenario(
            generates_cost=saida.generates_cost,
            owner_id=saida.owner_id,
            owner_is_company=saida.owner_is_company,
        )

    for row in result.values():
        if row.is_ibrac:
            row.resultado_liquido = row.lucro_perda_valor + row.comissao_ibrac + row.custos_cobrados
        else:
            row.resultado_liquido = (
                row.receita_bruta - row.valor_compras - row.custo_total_benef - row.comissao_ibrac
            )

    return [
        row for row in result.values()
        if row.has_activity and (owner_filter is None or row.dono_id == owner_filter)
    ]


def statement_totals(rows: Sequence[OwnerStatement]) -> StatementTotals:
    totals = StatementTotals()
    for row in rows:
        totals.peso_entrada += row.peso_entrada_kg
        totals.peso_saida += row.peso_saida_kg
        totals.valor_compras += row.valor_compras
        totals.custo_benef += row.custo_total_benef
        totals.receita_bruta += row.receita_bruta
        totals.lucro_perda += row.lucro_perda_valor
        totals.comissao_ibrac += row.comissao_ibrac
        totals.repasse_dono += row.repasse_dono
        totals.resultado += row.resultado_liquido
    return totals


# ==================== Repasses pendentes ====================

@dataclass
class PendingSettlement:
    id: object
    tipo: str
    valor: Optional[float]
    owner_id: Optional[object] = None
    owner_name: Optional[str] = None
    partner_name: Optional[str] = None


@dataclass
class PayoutGroup:
    dono_id: str
    dono_nome: str
    total: float = 0.0
    acertos: List[PendingSettlement] = field(default_factory=list)


def group_pending_payouts(settlements: Sequence[PendingSettlement]) -> List[PayoutGroup]:
    """Agrupa acertos pendentes por dono, na ordem em que aparecem"""
    groups: Dict[str, PayoutGroup] = {}
    for s in settlements:
        key = str(s.owner_id) if s.owner_id is not None else NO_OWNER_KEY
        if key not in groups:
            groups[key] = PayoutGroup(
                dono_id=key,
                dono_nome=s.owner_name or s.partner_name or "Sem dono",
            )
        groups[key].total += s.valor or 0
        groups[key].acertos.append(s)
    return list(groups.values())


# ==================== Rastreabilidade de custo ====================

@dataclass
class CostTrace:
    valor_documentos: float = 0.0
    custo_frete_ida: float = 0.0
    custo_frete_volta: float = 0.0
    custo_mo_ibrac: float = 0.0
    custo_mo_terceiro: float = 0.0
    custo_financeiro: float = 0.0
    custos_adicionais: float = 0.0
    custo_total: float = 0.0
    custo_original_insumos: float = 0.0
    peso_saida_kg: float = 0.0
    custo_kg: float = 0.0
    custo_adicional_kg: float = 0.0


def build_cost_trace(
    batch: Optional[BatchData],
    documents: Sequence[DocumentLink],
    input_items: Sequence[InputItemData],
) -> CostTrace:
    """Decomposição do custo de um beneficiamento.

    Sem beneficiamento (sublote vindo direto de uma entrada) devolve zeros.
    """
    if batch is None:
        return CostTrace()

    docs = [d for d in documents if d.batch_id == batch.id]
    items = [i for i in input_items if i.batch_id == batch.id]

    trace = CostTrace(
        valor_documentos=sum(d.valor_documento or 0 for d in docs),
        custo_frete_ida=batch.custo_frete_ida or 0,
        custo_frete_volta=batch.custo_frete_volta or 0,
        custo_mo_ibrac=batch.custo_mo_ibrac or 0,
        custo_mo_terceiro=batch.custo_mo_terceiro or 0,
        custo_financeiro=sum(d.taxa_financeira_valor or 0 for d in docs),
        custo_original_insumos=sum(
            ((i.sublot.custo_unitario_total or 0) if i.sublot else 0) * (i.peso_kg or 0)
            for i in items
        ),
        peso_saida_kg=batch.peso_saida_kg or 0,
    )
    trace.custos_adicionais = (
        trace.custo_frete_ida + trace.custo_frete_volta
        + trace.custo_mo_ibrac + trace.custo_mo_terceiro
        + trace.custo_financeiro
    )
    trace.custo_total = trace.valor_documentos + trace.custos_adicionais
    if trace.peso_saida_kg > 0:
        trace.custo_kg = trace.custo_total / trace.peso_saida_kg
        trace.custo_adicional_kg = trace.custos_adicionais / trace.peso_saida_kg
    return trace
