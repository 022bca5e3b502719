"""Sublote Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import date, datetime


class SublotResponse(BaseModel):
    id: int
    codigo: str
    entrada_id: Optional[int] = None
    lote_pai_id: Optional[int] = None
    tipo_produto_id: Optional[int] = None
    dono_id: Optional[int] = None
    peso_kg: float
    custo_unitario_total: Optional[float] = None
    custo_total: float = 0.0
    teor_cobre: Optional[float] = None
    status: str
    status_display: str = ""
    observacoes: Optional[str] = None
    created_at: datetime

    tipo_produto_nome: str = ""
    dono_nome: str = ""
    entrada_codigo: str = ""
    cenario: Optional[str] = None
    cenario_label: str = ""


class SublotListResponse(BaseModel):
    data: List[SublotResponse]
    total: int
    page: int
    limit: int
    peso_total_kg: float = 0.0
    custo_medio_ponderado: float = 0.0
    custo_medio_disponivel: float = 0.0


class OwnerTransferCreate(BaseModel):
    """Transferir titularidade"""
    dono_destino_id: Optional[int] = Field(None, description="Novo dono (vazio = IBRAC)")
    valor_acrescimo: float = Field(default=0, ge=0, description="Acréscimo rateado no custo")
    observacoes: Optional[str] = None


class OwnerTransferResponse(BaseModel):
    id: int
    sublote_id: int
    dono_origem_id: Optional[int] = None
    dono_destino_id: Optional[int] = None
    peso_kg: float
    valor_acrescimo: float
    data_transferencia: Optional[date] = None
    observacoes: Optional[str] = None
    custo_unitario_anterior: float = 0.0
    custo_unitario_novo: float = 0.0


class CostTraceResponse(BaseModel):
    """Rastreabilidade de custo de um sublote"""
    sublote_id: int
    sublote_codigo: str
    origem: str  # beneficiamento | entrada
    beneficiamento_codigo: str = ""
    entrada_codigo: str = ""
    entrada_valor_total: Optional[float] = None
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
    custo_unitario_atual: float = 0.0
