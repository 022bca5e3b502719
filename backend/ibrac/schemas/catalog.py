"""Cadastros de apoio Schema"""
from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class EntryTypeCreate(BaseModel):
    nome: str = Field(..., min_length=1, max_length=100)
    descricao: Optional[str] = None
    gera_custo: bool = Field(default=True, description="Falso para remessa de industrialização")
    ativo: bool = True


class EntryTypeResponse(EntryTypeCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class ProductTypeCreate(BaseModel):
    nome: str = Field(..., min_length=1, max_length=100)
    codigo: Optional[str] = Field(None, max_length=30)
    descricao: Optional[str] = None
    ncm: Optional[str] = Field(None, max_length=20)
    perda_beneficiamento_pct: Optional[float] = Field(None, ge=0, le=100)
    icms_pct: Optional[float] = Field(None, ge=0)
    pis_cofins_pct: Optional[float] = Field(None, ge=0)
    ativo: bool = True


class ProductTypeResponse(ProductTypeCreate):
    id: int
    is_vergalhao: bool = False
    created_at: datetime

    class Config:
        from_attributes = True
