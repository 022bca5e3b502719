"""
Donos de material - quem detém a titularidade do material em processo
A própria IBRAC é cadastrada como dono com is_ibrac = True
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, DECIMAL
from ibrac.db.base import Base


class MaterialOwner(Base):
    """Dono de material"""
    __tablename__ = "donos_material"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(150), nullable=False, index=True, comment="Nome")
    documento = Column(String(30), comment="CPF/CNPJ")
    email = Column(String(150), comment="E-mail")
    telefone = Column(String(30), comment="Telefone")

    # Dono que representa a própria empresa
    is_ibrac = Column(Boolean, default=False, comment="É a IBRAC")
    # Comissão cobrada em operações de terceiro (%)
    taxa_operacao_pct = Column(DECIMAL(6, 2), default=Decimal("0.00"), comment="Taxa de operação (%)")

    ativo = Column(Boolean, default=True, comment="Ativo")
    observacoes = Column(Text, comment="Observações")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<MaterialOwner {self.id}: {self.nome}{' (IBRAC)' if self.is_ibrac else ''}>"
