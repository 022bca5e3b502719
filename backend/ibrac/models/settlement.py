"""
Acertos financeiros entre a IBRAC e os donos de material

Tipos:
- repasse: valor líquido a pagar ao dono (operação de terceiro)
- divida: valor que o dono deve à IBRAC
- receita: comissão/serviço reconhecido pela IBRAC
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from ibrac.db.base import Base

SETTLEMENT_TYPES = {
    "repasse": "Repasse ao dono",
    "divida": "Dívida do dono",
    "receita": "Receita IBRAC",
}

SETTLEMENT_STATUS = {
    "pendente": "Pendente",
    "pago": "Pago",
    "cancelado": "Cancelado",
}


class FinancialSettlement(Base):
    """Acerto financeiro"""
    __tablename__ = "acertos_financeiros"

    id = Column(Integer, primary_key=True, index=True)
    tipo = Column(String(20), nullable=False, index=True, comment="Tipo")
    valor = Column(DECIMAL(14, 2), nullable=False, comment="Valor")

    dono_id = Column(Integer, ForeignKey("donos_material.id"), index=True, comment="Dono")
    parceiro = Column(String(150), comment="Parceiro (quando não há dono)")

    # Origem do acerto, ex. ("saida", 12)
    referencia_tipo = Column(String(30), comment="Tipo de origem")
    referencia_id = Column(Integer, comment="ID de origem")

    status = Column(String(20), default="pendente", index=True, comment="Status")
    data_acerto = Column(Date, comment="Data do acerto")
    data_pagamento = Column(Date, comment="Data de pagamento")
    observacoes = Column(Text, comment="Observações")

    created_by = Column(String(100), comment="Usuário")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    dono = relationship("MaterialOwner")

    def __repr__(self):
        return f"<FinancialSettlement {self.tipo}: R${self.valor} ({self.status})>"

    @property
    def type_display(self) -> str:
        return SETTLEMENT_TYPES.get(self.tipo, self.tipo)

    @property
    def status_display(self) -> str:
        return SETTLEMENT_STATUS.get(self.status, self.status)
