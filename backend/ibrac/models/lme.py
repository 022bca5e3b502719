"""
Histórico de cotações LME e configuração semanal
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, DECIMAL, UniqueConstraint
from ibrac.db.base import Base


class LMEPrice(Base):
    """Cotação LME de um dia (ou média semanal)"""
    __tablename__ = "historico_lme"
    __table_args__ = (
        UniqueConstraint("data", "is_media_semanal", name="uq_historico_lme_data"),
    )

    id = Column(Integer, primary_key=True, index=True)
    data = Column(Date, nullable=False, index=True, comment="Data")

    # US$/t
    cobre_usd_t = Column(DECIMAL(12, 2), comment="Cobre (US$/t)")
    aluminio_usd_t = Column(DECIMAL(12, 2), comment="Alumínio (US$/t)")
    zinco_usd_t = Column(DECIMAL(12, 2), comment="Zinco (US$/t)")
    chumbo_usd_t = Column(DECIMAL(12, 2), comment="Chumbo (US$/t)")
    estanho_usd_t = Column(DECIMAL(12, 2), comment="Estanho (US$/t)")
    niquel_usd_t = Column(DECIMAL(12, 2), comment="Níquel (US$/t)")

    dolar_brl = Column(DECIMAL(10, 4), comment="Câmbio US$/R$")

    # R$/kg
    cobre_brl_kg = Column(DECIMAL(12, 4), comment="Cobre (R$/kg)")
    aluminio_brl_kg = Column(DECIMAL(12, 4), comment="Alumínio (R$/kg)")

    is_media_semanal = Column(Boolean, default=False, comment="Média semanal")
    semana_numero = Column(Integer, comment="Semana do ano")
    fonte = Column(String(20), default="manual", comment="api/manual/planilha")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<LMEPrice {self.data}: cobre R${self.cobre_brl_kg}/kg>"


class LMEWeekConfig(Base):
    """LME da semana com impostos e taxa financeira"""
    __tablename__ = "lme_semana_config"
    __table_args__ = (
        UniqueConstraint("ano", "semana", name="uq_lme_semana"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ano = Column(Integer, nullable=False, comment="Ano")
    semana = Column(Integer, nullable=False, comment="Semana")
    data_inicio = Column(Date, nullable=False, comment="Início")
    data_fim = Column(Date, nullable=False, comment="Fim")

    lme_cobre_usd_t = Column(DECIMAL(12, 2), nullable=False, comment="LME cobre (US$/t)")
    dolar_brl = Column(DECIMAL(10, 4), nullable=False, comment="Câmbio")
    icms_pct = Column(DECIMAL(6, 2), default=Decimal("0.00"), comment="ICMS (%)")
    pis_cofins_pct = Column(DECIMAL(6, 2), default=Decimal("0.00"), comment="PIS/COFINS (%)")
    taxa_financeira_pct = Column(DECIMAL(6, 2), default=Decimal("0.00"), comment="Taxa financeira (%)")

    # Calculados
    lme_base_brl_kg = Column(DECIMAL(12, 4), comment="Base (R$/kg)")
    fator_total = Column(DECIMAL(10, 6), comment="Fator")
    lme_final_brl_kg = Column(DECIMAL(12, 4), comment="Final (R$/kg)")

    observacoes = Column(Text, comment="Observações")
    created_by = Column(String(100), comment="Usuário")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<LMEWeekConfig {self.ano}-S{self.semana}: R${self.lme_final_brl_kg}/kg>"
