"""Acerto financeiro Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime


class SettlementCreate(BaseModel):
    tipo: str = Field(..., description="repasse/divida/receita")
    valor: float = Field(..., gt=0)
    dono_id: Optional[int] = None
    parceiro: Optional[str] = Field(None, max_length=150)
    data_acerto: Optional[date] = None
    observacoes: Optional[str] = None

    @field_validator("tipo")
    @classmethod
    def check_type(cls, v: str) -> str:
        if v not in ("repasse", "divida", "receita"):
            raise ValueError("Tipo de acerto inválido")
        return v


class SettlementResponse(BaseModel):
    id: int
    tipo: str
    type_display: str = ""
    valor: float
    dono_id: Optional[int] = None
    dono_nome: str = ""
    parceiro: Optional[str] = None
    referencia_tipo: Optional[str] = None
    referencia_id: Optional[int] = None
    status: str
    status_display: str = ""
    data_acerto: Optional[date] = None
    data_pagamento: Optional[date] = None
    observacoes: Optional[str] = None
    created_at: datetime


class SettlementListResponse(BaseModel):
    data: List[SettlementResponse]
    total: int
    page: int
    limit: int


class PayoutGroupResponse(BaseModel):
    """Repasses pendentes de um dono"""
    dono_id: str
    dono_nome: str
    total: float
    acertos: List[SettlementResponse]


class PendingPayoutsResponse(BaseModel):
    grupos: List[PayoutGroupResponse]
    total_geral: float


class ReconcileRequest(BaseModel):
    data_pagamento: Optional[date] = Field(None, description="Vazio = hoje")
