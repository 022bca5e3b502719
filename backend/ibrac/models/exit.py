"""
Saídas de material (venda, consumo interno, devolução ao cliente)
Os valores dependem do cenário do material: próprio, industrialização ou
operação de terceiro
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from ibrac.db.base import Base


class Exit(Base):
    """Saída"""
    __tablename__ = "saidas"

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(String(50), unique=True, nullable=False, index=True, comment="Código")
    data_saida = Column(Date, nullable=False, index=True, comment="Data de saída")

    # venda, consumo, devolucao
    tipo_saida = Column(String(30), nullable=False, default="venda", comment="Tipo de saída")
    cliente = Column(String(150), comment="Cliente/destino")
    nota_fiscal = Column(String(50), comment="Nota fiscal")
    placa_veiculo = Column(String(20), comment="Placa")
    motorista = Column(String(100), comment="Motorista")

    peso_total_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso total")
    valor_unitario = Column(DECIMAL(12, 4), comment="Preço (R$/kg)")

    # Resultado por cenário
    cenario_operacao = Column(String(30), index=True, comment="Cenário")
    valor_total = Column(DECIMAL(14, 2), comment="Valor bruto")
    custos_cobrados = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Custos cobrados")
    comissao_ibrac = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Comissão IBRAC")
    valor_repasse_dono = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Repasse ao dono")
    resultado_liquido_dono = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Resultado líquido do dono")

    status = Column(String(20), default="concluida", index=True, comment="Status")
    observacoes = Column(Text, comment="Observações")

    created_by = Column(String(100), comment="Usuário")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    itens = relationship("ExitItem", back_populates="saida", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Exit {self.codigo}: {self.peso_total_kg} kg ({self.cenario_operacao})>"


class ExitItem(Base):
    """Sublote que saiu"""
    __tablename__ = "saida_itens"

    id = Column(Integer, primary_key=True, index=True)
    saida_id = Column(Integer, ForeignKey("saidas.id"), nullable=False, index=True)
    sublote_id = Column(Integer, ForeignKey("sublotes.id"), index=True)
    peso_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso")

    created_at = Column(DateTime, default=datetime.utcnow)

    saida = relationship("Exit", back_populates="itens")
    sublote = relationship("Sublot")

    def __repr__(self):
        return f"<ExitItem saida:{self.saida_id} sublote:{self.sublote_id} {self.peso_kg} kg>"
