"""
Entradas de material (romaneio de entrada)
Cada entrada gera um sublote com o peso líquido, dono e custo unitário
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from ibrac.db.base import Base


class Entry(Base):
    """Entrada de material"""
    __tablename__ = "entradas"

    id = Column(Integer, primary_key=True, index=True)

    # Código: ENT + data + sequência, ex. ENT20250604-001
    codigo = Column(String(50), unique=True, nullable=False, index=True, comment="Código")
    data_entrada = Column(Date, nullable=False, index=True, comment="Data de entrada")

    tipo_entrada_id = Column(Integer, ForeignKey("tipos_entrada.id"), index=True, comment="Tipo de entrada")
    tipo_produto_id = Column(Integer, ForeignKey("tipos_produto.id"), index=True, comment="Tipo de produto")
    dono_id = Column(Integer, ForeignKey("donos_material.id"), index=True, comment="Dono do material")

    tipo_material = Column(String(30), nullable=False, default="cobre", comment="cobre/aluminio")
    nota_fiscal = Column(String(50), comment="Nota fiscal")
    parceiro = Column(String(150), comment="Fornecedor/remetente")
    placa_veiculo = Column(String(20), comment="Placa")
    motorista = Column(String(100), comment="Motorista")

    # Pesos
    peso_bruto_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso bruto")
    peso_liquido_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso líquido")
    peso_nf_kg = Column(DECIMAL(12, 2), comment="Peso na nota")
    teor_cobre = Column(DECIMAL(6, 2), comment="Teor de cobre (%)")

    # Valores
    valor_unitario = Column(DECIMAL(12, 4), comment="Valor unitário (R$/kg)")
    valor_total = Column(DECIMAL(14, 2), comment="Valor total do documento")
    taxa_financeira_pct = Column(DECIMAL(6, 2), comment="Taxa financeira (%)")

    status = Column(String(20), default="recebida", index=True, comment="Status")
    observacoes = Column(Text, comment="Observações")

    created_by = Column(String(100), comment="Usuário")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tipo_entrada = relationship("EntryType")
    tipo_produto = relationship("ProductType")
    dono = relationship("MaterialOwner")
    sublotes = relationship("Sublot", back_populates="entrada")

    def __repr__(self):
        return f"<Entry {self.codigo}: {self.peso_liquido_kg} kg>"

    @property
    def gera_custo(self) -> bool:
        """Tipo de entrada desconhecido conta como compra"""
        if self.tipo_entrada is None or self.tipo_entrada.gera_custo is None:
            return True
        return bool(self.tipo_entrada.gera_custo)
