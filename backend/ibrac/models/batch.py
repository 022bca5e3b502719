"""
Beneficiamento - processamento que converte sucata em produto
- itens de entrada: sublotes consumidos e o peso de cada um
- documentos vinculados: entradas cujo valor compõe o custo de aquisição
- itens de saída: sublotes gerados
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from ibrac.db.base import Base

BATCH_STATUS = {
    "em_andamento": "Em andamento",
    "finalizado": "Finalizado",
    "cancelado": "Cancelado",
}


class ProcessingBatch(Base):
    """Beneficiamento"""
    __tablename__ = "beneficiamentos"

    id = Column(Integer, primary_key=True, index=True)
    # BEN + data + sequência
    codigo = Column(String(50), unique=True, nullable=False, index=True, comment="Código")
    tipo_beneficiamento = Column(String(50), comment="Processo (moagem, laminação...)")
    fornecedor_terceiro = Column(String(150), comment="Beneficiador terceiro")

    data_inicio = Column(Date, index=True, comment="Início")
    data_fim = Column(Date, comment="Fim")

    # Pesos
    peso_entrada_kg = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Peso de entrada")
    peso_saida_kg = Column(DECIMAL(12, 2), comment="Peso de saída")

    # Perdas (%)
    perda_real_pct = Column(DECIMAL(6, 2), comment="Perda real (%)")
    perda_cobrada_pct = Column(DECIMAL(6, 2), comment="Perda cobrada (%)")

    # Custos operacionais (R$ totais)
    custo_mo_terceiro = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="MO terceiro")
    custo_mo_ibrac = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="MO IBRAC")
    custo_frete_ida = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Frete ida")
    custo_frete_volta = Column(DECIMAL(14, 2), default=Decimal("0.00"), comment="Frete volta")
    taxa_financeira_pct = Column(DECIMAL(6, 2), comment="Taxa financeira padrão dos documentos (%)")

    # LME de referência (R$/kg); vazio = histórico na data de início
    lme_referencia_kg = Column(DECIMAL(12, 4), comment="LME referência")
    lucro_perda_kg = Column(DECIMAL(12, 2), comment="Lucro na perda (kg)")
    lucro_perda_valor = Column(DECIMAL(14, 2), comment="Lucro na perda (R$)")

    # Resultado gravado na finalização
    custo_total = Column(DECIMAL(14, 2), comment="Custo total")
    custo_kg = Column(DECIMAL(12, 4), comment="Custo por kg")

    placa_veiculo = Column(String(20), comment="Placa")
    motorista = Column(String(100), comment="Motorista")
    status = Column(String(20), default="em_andamento", index=True, comment="Status")
    observacoes = Column(Text, comment="Observações")

    created_by = Column(String(100), comment="Usuário")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    itens_entrada = relationship("BatchInputItem", back_populates="beneficiamento", cascade="all, delete-orphan")
    itens_saida = relationship("BatchOutputItem", back_populates="beneficiamento", cascade="all, delete-orphan")
    documentos = relationship("BatchDocument", back_populates="beneficiamento", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ProcessingBatch {self.codigo}: {self.peso_entrada_kg} -> {self.peso_saida_kg} kg>"

    @property
    def status_display(self) -> str:
        return BATCH_STATUS.get(self.status, self.status)

    @property
    def is_finished(self) -> bool:
        return self.status == "finalizado"


class BatchDocument(Base):
    """Documento de entrada vinculado ao beneficiamento"""
    __tablename__ = "beneficiamento_entradas"

    id = Column(Integer, primary_key=True, index=True)
    beneficiamento_id = Column(Integer, ForeignKey("beneficiamentos.id"), nullable=False, index=True)
    entrada_id = Column(Integer, ForeignKey("entradas.id"), index=True)

    valor_documento = Column(DECIMAL(14, 2), nullable=False, comment="Valor do documento")
    taxa_financeira_pct = Column(DECIMAL(6, 2), comment="Taxa financeira (%)")
    taxa_financeira_valor = Column(DECIMAL(14, 2), comment="Custo financeiro (R$)")

    created_at = Column(DateTime, default=datetime.utcnow)

    beneficiamento = relationship("ProcessingBatch", back_populates="documentos")
    entrada = relationship("Entry")

    def __repr__(self):
        return f"<BatchDocument benef:{self.beneficiamento_id} entrada:{self.entrada_id} R${self.valor_documento}>"

    def calculate_fee(self):
        """Custo financeiro = valor × taxa, quando não informado"""
        if self.taxa_financeira_valor is None and self.taxa_financeira_pct:
            self.taxa_financeira_valor = (
                Decimal(self.valor_documento or 0) * Decimal(self.taxa_financeira_pct) / Decimal("100")
            ).quantize(Decimal("0.01"))


class BatchInputItem(Base):
    """Sublote consumido pelo beneficiamento"""
    __tablename__ = "beneficiamento_itens_entrada"

    id = Column(Integer, primary_key=True, index=True)
    beneficiamento_id = Column(Integer, ForeignKey("beneficiamentos.id"), nullable=False, index=True)
    sublote_id = Column(Integer, ForeignKey("sublotes.id"), index=True)
    tipo_produto_id = Column(Integer, ForeignKey("tipos_produto.id"))

    peso_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso consumido")
    custo_unitario = Column(DECIMAL(12, 4), comment="Custo unitário do sublote no consumo")

    created_at = Column(DateTime, default=datetime.utcnow)

    beneficiamento = relationship("ProcessingBatch", back_populates="itens_entrada")
    sublote = relationship("Sublot")
    tipo_produto = relationship("ProductType")

    def __repr__(self):
        return f"<BatchInputItem benef:{self.beneficiamento_id} sublote:{self.sublote_id} {self.peso_kg} kg>"


class BatchOutputItem(Base):
    """Sublote gerado pelo beneficiamento"""
    __tablename__ = "beneficiamento_itens_saida"

    id = Column(Integer, primary_key=True, index=True)
    beneficiamento_id = Column(Integer, ForeignKey("beneficiamentos.id"), nullable=False, index=True)
    sublote_gerado_id = Column(Integer, ForeignKey("sublotes.id"), index=True)
    tipo_produto_id = Column(Integer, ForeignKey("tipos_produto.id"))

    peso_kg = Column(DECIMAL(12, 2), nullable=False, comment="Peso gerado")
    custo_unitario_calculado = Column(DECIMAL(12, 4), comment="Custo unitário calculado")

    created_at = Column(DateTime, default=datetime.utcnow)

    beneficiamento = relationship("ProcessingBatch", back_populates="itens_saida")
    sublote_gerado = relationship("Sublot")
    tipo_produto = relationship("ProductType")

    def __repr__(self):
        return f"<BatchOutputItem benef:{self.beneficiamento_id} sublote:{self.sublote_gerado_id}>"
