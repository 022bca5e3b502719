"""Saída Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import date, datetime


class ExitItemCreate(BaseModel):
    sublote_id: int = Field(..., description="Sublote")


class ExitCreate(BaseModel):
    """Criar saída; valores calculados conforme o cenário dos sublotes"""
    data_saida: date = Field(..., description="Data de saída")
    tipo_saida: str = Field(default="venda", description="venda/consumo/devolucao")
    cliente: Optional[str] = Field(None, max_length=150)
    nota_fiscal: Optional[str] = Field(None, max_length=50)
    placa_veiculo: Optional[str] = None
    motorista: Optional[str] = None
    valor_unitario: float = Field(default=0, ge=0, description="Preço (R$/kg)")
    custo_mo: float = Field(default=0, ge=0, description="MO cobrada")
    custo_perda: float = Field(default=0, ge=0, description="Perda cobrada (R$)")
    custos_adicionais: float = Field(default=0, ge=0, description="Outros custos cobrados")
    observacoes: Optional[str] = None
    itens: List[ExitItemCreate] = Field(..., min_length=1)


class ExitItemResponse(BaseModel):
    id: int
    sublote_id: Optional[int] = None
    sublote_codigo: str = ""
    peso_kg: float


class ExitResponse(BaseModel):
    id: int
    codigo: str
    data_saida: date
    tipo_saida: str
    cliente: Optional[str] = None
    nota_fiscal: Optional[str] = None
    peso_total_kg: float
    valor_unitario: Optional[float] = None
    cenario_operacao: Optional[str] = None
    cenario_label: str = ""
    valor_total: Optional[float] = None
    custos_cobrados: Optional[float] = None
    comissao_ibrac: Optional[float] = None
    valor_repasse_dono: Optional[float] = None
    resultado_liquido_dono: Optional[float] = None
    status: str
    observacoes: Optional[str] = None
    created_at: datetime
    itens: List[ExitItemResponse] = []


class ExitListResponse(BaseModel):
    data: List[ExitResponse]
    total: int
    page: int
    limit: int
