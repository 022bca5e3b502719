"""
Cenários de operação

Cenário 1 - Material Próprio: gera custo, sem dono ou dono é a própria IBRAC
Cenário 2 - Industrialização: entrada não gera custo (remessa do cliente)
Cenário 3 - Operação Terceiro: gera custo, dono é terceiro
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class Scenario(str, Enum):
    PROPRIO = "proprio"
    INDUSTRIALIZACAO = "industrializacao"
    OPERACAO_TERCEIRO = "operacao_terceiro"


@dataclass(frozen=True)
class ScenarioInfo:
    tipo: Scenario
    label: str
    descricao: str
    reconhece_custo: str  # ibrac | operacao | nenhum
    reconhece_lucro: str  # ibrac | dono | ambos
    gera_custo_material: bool
    cobra_custos: bool


SCENARIO_CONFIG = {
    Scenario.PROPRIO: ScenarioInfo(
        tipo=Scenario.PROPRIO,
        label="Material Próprio",
        descricao="IBRAC compra, beneficia e consome/vende",
        reconhece_custo="ibrac",
        reconhece_lucro="ibrac",
        gera_custo_material=True,
        cobra_custos=False,
    ),
    Scenario.INDUSTRIALIZACAO: ScenarioInfo(
        tipo=Scenario.INDUSTRIALIZACAO,
        label="Industrialização",
        descricao="Cliente envia material para beneficiar, IBRAC presta serviço",
        reconhece_custo="ibrac",  # apenas MO/frete como custo do serviço
        reconhece_lucro="ibrac",
        gera_custo_material=False,
        cobra_custos=True,
    ),
    Scenario.OPERACAO_TERCEIRO: ScenarioInfo(
        tipo=Scenario.OPERACAO_TERCEIRO,
        label="Operação Terceiro",
        descricao="IBRAC compra em nome do dono, beneficia e vende, cobra comissão",
        reconhece_custo="operacao",  # custos abatidos do resultado do dono
        reconhece_lucro="ambos",
        gera_custo_material=True,
        cobra_custos=True,
    ),
}


def scenario_label(scenario: Scenario) -> str:
    info = SCENARIO_CONFIG.get(scenario)
    return info.label if info else str(scenario)


def detect_scenario(
    generates_cost: Optional[bool],
    owner_id: Optional[object] = None,
    owner_is_company: Optional[bool] = False,
) -> Scenario:
    """Detecta o cenário a partir das características do material.

    `generates_cost` ausente conta como verdadeiro (tipo de entrada
    desconhecido é tratado como compra).
    """
    if generates_cost is None:
        generates_cost = True

    # Remessa para industrialização
    if not generates_cost:
        return Scenario.INDUSTRIALIZACAO

    if owner_id is None or owner_is_company:
        return Scenario.PROPRIO

    return Scenario.OPERACAO_TERCEIRO


def detect_sublot_scenario(sublot) -> Scenario:
    """Cenário de um sublote (`SublotRef` ou objeto com os mesmos atributos)."""
    return detect_scenario(
        generates_cost=getattr(sublot, "generates_cost", None),
        owner_id=getattr(sublot, "owner_id", None),
        owner_is_company=getattr(sublot, "owner_is_company", False) or False,
    )


def detect_predominant_scenario(sublots: Iterable) -> Optional[Scenario]:
    """Cenário predominante de uma lista de sublotes.

    Listas mistas usam o cenário do primeiro sublote.
    """
    scenarios = [detect_sublot_scenario(s) for s in sublots]
    if not scenarios:
        return None
    return scenarios[0]


# ==================== Cálculos de saída ====================

@dataclass
class ExitParams:
    scenario: Scenario
    weight_kg: float
    unit_price: float
    labor_cost: float = 0.0
    loss_cost: float = 0.0
    additional_costs: float = 0.0
    commission_pct: float = 0.0  # taxa de comissão IBRAC (operação terceiro)


@dataclass
class ExitResult:
    gross_value: float = 0.0
    total_costs: float = 0.0
    company_commission: float = 0.0
    owner_payout: float = 0.0
    owner_net_result: float = 0.0
    company_profit: float = 0.0


def calculate_exit(params: ExitParams) -> ExitResult:
    """Valores de uma saída conforme o cenário"""
    gross = (params.weight_kg or 0) * (params.unit_price or 0)
    costs = (params.labor_cost or 0) + (params.loss_cost or 0) + (params.additional_costs or 0)

    if params.scenario == Scenario.PROPRIO:
        # Consumo/venda própria: todo o valor é da IBRAC
        return ExitResult(gross_value=gross, company_profit=gross)

    if params.scenario == Scenario.INDUSTRIALIZACAO:
        # Cobra apenas o serviço
        return ExitResult(gross_value=costs, total_costs=costs, company_profit=costs)

    if params.scenario == Scenario.OPERACAO_TERCEIRO:
        commission = gross * ((params.commission_pct or 0) / 100)
        net = gross - costs - commission
        return ExitResult(
            gross_value=gross,
            total_costs=costs,
            company_commission=commission,
            owner_payout=net,
            owner_net_result=net,
            company_profit=commission,
        )

    return ExitResult()


# ==================== Lucro na perda (prévia) ====================

@dataclass
class LossProfitDetail:
    diff_pct: float
    diff_kg: float
    value: float
    has_profit: bool


def calculate_loss_profit_detail(
    entry_kg: float,
    charged_pct: float,
    real_pct: float,
    lme_kg: float,
) -> LossProfitDetail:
    """Prévia da diferença entre perda cobrada e perda real.

    Diferente de `kpis.calculate_loss_profit`, não zera diferenças
    negativas: a prévia mostra também o prejuízo.
    """
    diff_pct = (charged_pct or 0) - (real_pct or 0)
    diff_kg = (entry_kg or 0) * (diff_pct / 100)
    return LossProfitDetail(
        diff_pct=diff_pct,
        diff_kg=diff_kg,
        value=diff_kg * (lme_kg or 0),
        has_profit=diff_pct > 0,
    )
