"""Relatórios Schema"""
from typing import Optional, List, Dict
from pydantic import BaseModel


class ScenarioTotalsResponse(BaseModel):
    peso: float = 0.0
    count: int = 0
    economia: float = 0.0
    receita: float = 0.0
    comissao: float = 0.0

    class Config:
        from_attributes = True


class BatchEconomyResponse(BaseModel):
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
    cenario: str

    class Config:
        from_attributes = True


class KPIResponse(BaseModel):
    """KPIs consolidados"""
    economia_total: float
    economia_positiva: bool
    custo_medio_vergalhao: float
    custo_total_processado: float
    peso_processado: float
    saldo_vergalhao: float
    lucro_perda_total: float
    lucro_mo_total: float
    lucro_comissao_total: float
    lucro_total_ibrac: float
    repasses_pendentes: float
    cenarios: Dict[str, ScenarioTotalsResponse]
    detalhes: List[BatchEconomyResponse] = []


class OwnerStatementRow(BaseModel):
    dono_id: int
    dono_nome: str
    is_ibrac: bool
    taxa_operacao_pct: float
    total_entradas: int
    peso_entrada_kg: float
    valor_compras: float
    total_beneficiamentos: int
    custo_frete: float
    custo_mo: float
    custo_total_benef: float
    lucro_perda_valor: float
    total_saidas: int
    peso_saida_kg: float
    receita_bruta: float
    custos_cobrados: float
    comissao_ibrac: float
    repasse_dono: float
    resultado_liquido: float
    cenario_predominante: Optional[str] = None

    class Config:
        from_attributes = True


class StatementTotalsResponse(BaseModel):
    peso_entrada: float = 0.0
    peso_saida: float = 0.0
    valor_compras: float = 0.0
    custo_benef: float = 0.0
    receita_bruta: float = 0.0
    lucro_perda: float = 0.0
    comissao_ibrac: float = 0.0
    repasse_dono: float = 0.0
    resultado: float = 0.0

    class Config:
        from_attributes = True


class OwnerStatementResponse(BaseModel):
    data: List[OwnerStatementRow]
    totais: StatementTotalsResponse
