"""Dono de material Schema"""
from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator
from datetime import datetime


class OwnerBase(BaseModel):
    nome: str = Field(..., min_length=1, max_length=150, description="Nome")
    documento: Optional[str] = Field(None, max_length=30, description="CPF/CNPJ")
    email: Optional[str] = Field(None, max_length=150)
    telefone: Optional[str] = Field(None, max_length=30)
    is_ibrac: bool = Field(default=False, description="Representa a própria IBRAC")
    taxa_operacao_pct: float = Field(default=0, ge=0, le=100, description="Comissão em operação de terceiro (%)")
    ativo: bool = True
    observacoes: Optional[str] = None

    @field_validator("taxa_operacao_pct", mode="before")
    @classmethod
    def fix_null_rate(cls, v: Any) -> float:
        """NULL do banco vira 0"""
        return float(v) if v is not None else 0.0


class OwnerCreate(OwnerBase):
    pass


class OwnerUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=150)
    documento: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    is_ibrac: Optional[bool] = None
    taxa_operacao_pct: Optional[float] = Field(None, ge=0, le=100)
    ativo: Optional[bool] = None
    observacoes: Optional[str] = None


class OwnerResponse(OwnerBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OwnerListResponse(BaseModel):
    data: List[OwnerResponse]
    total: int
    page: int
    limit: int
