"""Beneficiamento Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import date, datetime


class BatchDocumentCreate(BaseModel):
    """Documento de entrada vinculado"""
    entrada_id: Optional[int] = Field(None, description="Entrada de origem")
    valor_documento: float = Field(..., ge=0, description="Valor do documento")
    taxa_financeira_pct: Optional[float] = Field(None, ge=0, description="Taxa financeira (%)")
    taxa_financeira_valor: Optional[float] = Field(None, ge=0, description="Vazio = valor × taxa")


class BatchDocumentResponse(BaseModel):
    id: int
    entrada_id: Optional[int] = None
    entrada_codigo: str = ""
    valor_documento: float
    taxa_financeira_pct: Optional[float] = None
    taxa_financeira_valor: Optional[float] = None


class BatchInputItemCreate(BaseModel):
    sublote_id: int = Field(..., description="Sublote consumido por inteiro")


class BatchInputItemResponse(BaseModel):
    id: int
    sublote_id: Optional[int] = None
    sublote_codigo: str = ""
    dono_id: Optional[int] = None
    dono_nome: str = ""
    peso_kg: float
    custo_unitario: Optional[float] = None


class BatchOutputItemResponse(BaseModel):
    id: int
    sublote_gerado_id: Optional[int] = None
    sublote_codigo: str = ""
    peso_kg: float
    custo_unitario_calculado: Optional[float] = None


class BatchCreate(BaseModel):
    """Criar beneficiamento"""
    tipo_beneficiamento: Optional[str] = Field(None, max_length=50)
    fornecedor_terceiro: Optional[str] = Field(None, max_length=150)
    data_inicio: date = Field(..., description="Data de início")
    perda_cobrada_pct: Optional[float] = Field(None, ge=0, le=100)
    custo_mo_terceiro: float = Field(default=0, ge=0)
    custo_mo_ibrac: float = Field(default=0, ge=0)
    custo_frete_ida: float = Field(default=0, ge=0)
    custo_frete_volta: float = Field(default=0, ge=0)
    taxa_financeira_pct: Optional[float] = Field(None, ge=0)
    lme_referencia_kg: Optional[float] = Field(None, ge=0, description="Vazio = LME da data de início")
    placa_veiculo: Optional[str] = None
    motorista: Optional[str] = None
    observacoes: Optional[str] = None

    itens: List[BatchInputItemCreate] = Field(..., min_length=1, description="Sublotes consumidos")
    documentos: List[BatchDocumentCreate] = Field(default_factory=list)


class BatchUpdate(BaseModel):
    """Alterar custos de um beneficiamento em andamento"""
    tipo_beneficiamento: Optional[str] = None
    fornecedor_terceiro: Optional[str] = None
    perda_cobrada_pct: Optional[float] = Field(None, ge=0, le=100)
    custo_mo_terceiro: Optional[float] = Field(None, ge=0)
    custo_mo_ibrac: Optional[float] = Field(None, ge=0)
    custo_frete_ida: Optional[float] = Field(None, ge=0)
    custo_frete_volta: Optional[float] = Field(None, ge=0)
    lme_referencia_kg: Optional[float] = Field(None, ge=0)
    observacoes: Optional[str] = None


class BatchFinalize(BaseModel):
    """Finalizar beneficiamento"""
    peso_saida_kg: float = Field(..., gt=0, description="Peso de saída")
    perda_real_pct: Optional[float] = Field(None, ge=0, le=100, description="Vazio = calculada pelos pesos")
    data_fim: Optional[date] = None
    tipo_produto_saida_id: Optional[int] = Field(None, description="Produto gerado (vazio = mesmo da entrada)")


class BatchCostsResponse(BaseModel):
    custo_aquisicao: float = 0.0
    custo_mo: float = 0.0
    custo_frete: float = 0.0
    custo_financeiro: float = 0.0
    custo_total: float = 0.0
    custo_kg: float = 0.0

    class Config:
        from_attributes = True


class BatchResponse(BaseModel):
    id: int
    codigo: str
    tipo_beneficiamento: Optional[str] = None
    fornecedor_terceiro: Optional[str] = None
    data_inicio: Optional[date] = None
    data_fim: Optional[date] = None
    peso_entrada_kg: Optional[float] = None
    peso_saida_kg: Optional[float] = None
    perda_real_pct: Optional[float] = None
    perda_cobrada_pct: Optional[float] = None
    custo_mo_terceiro: Optional[float] = None
    custo_mo_ibrac: Optional[float] = None
    custo_frete_ida: Optional[float] = None
    custo_frete_volta: Optional[float] = None
    lme_referencia_kg: Optional[float] = None
    lucro_perda_kg: Optional[float] = None
    lucro_perda_valor: Optional[float] = None
    custo_total: Optional[float] = None
    custo_kg: Optional[float] = None
    economia_vs_lme: Optional[float] = Field(None, description="Peso de saída a preço LME menos o custo total")
    status: str
    status_display: str = ""
    observacoes: Optional[str] = None
    created_at: datetime

    cenario: Optional[str] = None
    cenario_label: str = ""
    custos: Optional[BatchCostsResponse] = None
    itens_entrada: List[BatchInputItemResponse] = []
    itens_saida: List[BatchOutputItemResponse] = []
    documentos: List[BatchDocumentResponse] = []


class BatchListResponse(BaseModel):
    data: List[BatchResponse]
    total: int
    page: int
    limit: int


class LossPreviewResponse(BaseModel):
    """Prévia do lucro/prejuízo na perda"""
    perda_cobrada_pct: float
    perda_real_pct: float
    lme_kg: float
    diferenca_pct: float
    diferenca_kg: float
    valor: float
    tem_lucro: bool
