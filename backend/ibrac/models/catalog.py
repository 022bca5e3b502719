"""
Cadastros de apoio
- tipos de entrada (compra, remessa para industrialização...)
- tipos de produto (sucata, vergalhão...)
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, DECIMAL
from ibrac.db.base import Base
from ibrac.services.kpis import is_rebar


class EntryType(Base):
    """Tipo de entrada"""
    __tablename__ = "tipos_entrada"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(100), nullable=False, unique=True, comment="Nome")
    descricao = Column(Text, comment="Descrição")

    # Remessa para industrialização não gera custo de material
    gera_custo = Column(Boolean, default=True, comment="Gera custo")

    ativo = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<EntryType {self.nome} gera_custo={self.gera_custo}>"


class ProductType(Base):
    """Tipo de produto"""
    __tablename__ = "tipos_produto"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(100), nullable=False, comment="Nome")
    codigo = Column(String(30), index=True, comment="Código")
    descricao = Column(Text, comment="Descrição")
    ncm = Column(String(20), comment="NCM")

    perda_beneficiamento_pct = Column(DECIMAL(6, 2), default=Decimal("0.00"), comment="Perda padrão (%)")
    icms_pct = Column(DECIMAL(6, 2), comment="ICMS (%)")
    pis_cofins_pct = Column(DECIMAL(6, 2), comment="PIS/COFINS (%)")

    ativo = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ProductType {self.codigo}: {self.nome}>"

    @property
    def is_vergalhao(self) -> bool:
        return is_rebar(self.nome, self.codigo)
