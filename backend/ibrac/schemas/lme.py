"""LME Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime


class LMEPriceCreate(BaseModel):
    """Cotação do dia (substitui a existente na mesma data)"""
    data: date
    cobre_usd_t: Optional[float] = Field(None, ge=0)
    aluminio_usd_t: Optional[float] = Field(None, ge=0)
    zinco_usd_t: Optional[float] = Field(None, ge=0)
    chumbo_usd_t: Optional[float] = Field(None, ge=0)
    estanho_usd_t: Optional[float] = Field(None, ge=0)
    niquel_usd_t: Optional[float] = Field(None, ge=0)
    dolar_brl: Optional[float] = Field(None, gt=0)
    cobre_brl_kg: Optional[float] = Field(None, ge=0, description="Vazio = cobre US$/t × câmbio / 1000")
    aluminio_brl_kg: Optional[float] = Field(None, ge=0)
    is_media_semanal: bool = False
    semana_numero: Optional[int] = None
    fonte: str = "manual"


class LMEPriceResponse(LMEPriceCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class LMELookupResponse(BaseModel):
    data: date
    cobre_brl_kg: float
    encontrado: bool


class LMEWeekConfigCreate(BaseModel):
    ano: int = Field(..., ge=2000, le=2100)
    semana: int = Field(..., ge=1, le=53)
    data_inicio: date
    data_fim: date
    lme_cobre_usd_t: float = Field(..., gt=0)
    dolar_brl: float = Field(..., gt=0)
    icms_pct: float = Field(default=0, ge=0)
    pis_cofins_pct: float = Field(default=0, ge=0)
    taxa_financeira_pct: float = Field(default=0, ge=0)
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.data_fim < self.data_inicio:
            raise ValueError("Data final anterior à inicial")
        return self


class LMEWeekConfigResponse(LMEWeekConfigCreate):
    id: int
    lme_base_brl_kg: Optional[float] = None
    fator_total: Optional[float] = None
    lme_final_brl_kg: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SimulationRequest(BaseModel):
    """Simulador: sucata + beneficiamento × vergalhão pelo LME"""
    preco_sucata_kg: float = Field(..., ge=0)
    peso_sucata_kg: float = Field(..., ge=0)
    perda_processo_pct: float = Field(default=0, ge=0, le=100)
    custo_frete_coleta: float = Field(default=0, ge=0)
    custo_frete_laminacao: float = Field(default=0, ge=0)
    custo_mo_kg: float = Field(default=0, ge=0)
    preco_lme_kg: Optional[float] = Field(None, ge=0, description="Vazio = LME mais recente")


class SimulationResponse(BaseModel):
    preco_lme_kg: float
    peso_vergalhao_kg: float
    custo_sucata_total: float
    custo_frete_total: float
    custo_mo_total: float
    custo_total: float
    custo_kg: float
    diferenca_kg: float
    economia_pct: float
    vale_a_pena: bool


class LMEFetchResponse(BaseModel):
    message: str
    data: LMEPriceResponse
