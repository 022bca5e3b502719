"""Entrada Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime


class EntryCreate(BaseModel):
    """Criar entrada (gera o sublote automaticamente)"""
    data_entrada: date = Field(..., description="Data de entrada")
    tipo_entrada_id: Optional[int] = Field(None, description="Tipo de entrada")
    tipo_produto_id: Optional[int] = Field(None, description="Tipo de produto")
    dono_id: Optional[int] = Field(None, description="Dono (vazio = IBRAC)")
    tipo_material: str = Field(default="cobre", description="cobre/aluminio")
    nota_fiscal: Optional[str] = Field(None, max_length=50)
    parceiro: Optional[str] = Field(None, max_length=150)
    placa_veiculo: Optional[str] = Field(None, max_length=20)
    motorista: Optional[str] = Field(None, max_length=100)

    peso_bruto_kg: float = Field(..., gt=0, description="Peso bruto")
    peso_liquido_kg: float = Field(..., gt=0, description="Peso líquido")
    peso_nf_kg: Optional[float] = Field(None, ge=0)
    teor_cobre: Optional[float] = Field(None, ge=0, le=100)

    valor_unitario: Optional[float] = Field(None, ge=0, description="R$/kg")
    valor_total: Optional[float] = Field(None, ge=0, description="Valor do documento")
    taxa_financeira_pct: Optional[float] = Field(None, ge=0)
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def check_weights(self):
        if self.peso_liquido_kg > self.peso_bruto_kg:
            raise ValueError("Peso líquido maior que o peso bruto")
        return self


class EntryResponse(BaseModel):
    id: int
    codigo: str
    data_entrada: date
    tipo_entrada_id: Optional[int] = None
    tipo_produto_id: Optional[int] = None
    dono_id: Optional[int] = None
    tipo_material: str
    nota_fiscal: Optional[str] = None
    parceiro: Optional[str] = None
    peso_bruto_kg: float
    peso_liquido_kg: float
    teor_cobre: Optional[float] = None
    valor_unitario: Optional[float] = None
    valor_total: Optional[float] = None
    taxa_financeira_pct: Optional[float] = None
    status: str
    observacoes: Optional[str] = None
    created_at: datetime

    # Relacionados
    tipo_entrada_nome: str = ""
    gera_custo: bool = True
    tipo_produto_nome: str = ""
    dono_nome: str = ""
    sublote_id: Optional[int] = None
    sublote_codigo: str = ""


class EntryListResponse(BaseModel):
    data: List[EntryResponse]
    total: int
    page: int
    limit: int
