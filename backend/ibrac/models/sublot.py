"""
Sublotes - quantidade rastreável de material
Origem: uma entrada (entrada_id) ou a saída de um beneficiamento (lote_pai_id
aponta para o primeiro sublote consumido). Dono e custo seguem a linhagem.
"""

from datetime import datetime, date
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from ibrac.db.base import Base

SUBLOT_STATUS = {
    "disponivel": "Disponível",
    "em_beneficiamento": "Em beneficiamento",
    "consumido": "Consumido",
    "vendido": "Vendido",
}


class Sublot(Base):
    """Sublote"""
    __tablename__ = "sublotes"

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(String(50), unique=True, nullable=False, index=True, comment="Código")

    entrada_id = Column(Integer, ForeignKey("entradas.id"), index=True, comment="Entrada de origem")
    lote_pai_id = Column(Integer, ForeignKey("sublotes.id"), index=True, comment="Sublote de origem")
    tipo_produto_id = Column(Integer, ForeignKey("tipos_produto.id"), index=True, comment="Tipo de produto")
    # NULL = material da própria IBRAC sem dono cadastrado
    dono_id = Column(Integer, ForeignKey("donos_material.id"), index=True, comment="Dono")
    # Copiado da entrada de origem; sublotes de beneficiamento herdam do primeiro insumo
    gera_custo_origem = Column(Boolean, comment="Entrada de origem gera custo")

    peso_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso atual")
    custo_unitario_total = Column(DECIMAL(12, 4), comment="Custo unitário (R$/kg)")
    teor_cobre = Column(DECIMAL(6, 2), comment="Teor de cobre (%)")
    numero_volume = Column(Integer, comment="Número do volume")

    status = Column(String(30), default="disponivel", index=True, comment="Status")
    observacoes = Column(Text, comment="Observações")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    entrada = relationship("Entry", back_populates="sublotes")
    tipo_produto = relationship("ProductType")
    dono = relationship("MaterialOwner")
    lote_pai = relationship("Sublot", remote_side=[id])

    def __repr__(self):
        return f"<Sublot {self.codigo}: {self.peso_kg} kg ({self.status})>"

    @property
    def status_display(self) -> str:
        return SUBLOT_STATUS.get(self.status, self.status)

    @property
    def is_available(self) -> bool:
        return self.status == "disponivel" and (self.peso_kg or Decimal("0")) > 0

    @property
    def total_cost(self) -> Decimal:
        """Custo do saldo = peso × custo unitário"""
        return (self.peso_kg or Decimal("0")) * (self.custo_unitario_total or Decimal("0"))


class OwnerTransfer(Base):
    """Transferência de titularidade de um sublote"""
    __tablename__ = "transferencias_dono"

    id = Column(Integer, primary_key=True, index=True)
    sublote_id = Column(Integer, ForeignKey("sublotes.id"), nullable=False, index=True)
    dono_origem_id = Column(Integer, ForeignKey("donos_material.id"), comment="Dono anterior")
    dono_destino_id = Column(Integer, ForeignKey("donos_material.id"), comment="Novo dono (NULL = IBRAC)")

    peso_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso transferido")
    # Valor acrescido ao custo do sublote (rateado pelo peso)
    valor_acrescimo = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Acréscimo")
    data_transferencia = Column(Date, default=date.today, comment="Data")
    observacoes = Column(Text, comment="Observações")

    created_by = Column(String(100), comment="Usuário")
    created_at = Column(DateTime, default=datetime.utcnow)

    sublote = relationship("Sublot")
    dono_origem = relationship("MaterialOwner", foreign_keys=[dono_origem_id])
    dono_destino = relationship("MaterialOwner", foreign_keys=[dono_destino_id])

    def __repr__(self):
        return f"<OwnerTransfer sublote:{self.sublote_id} {self.dono_origem_id}->{self.dono_destino_id}>"
