"""
Conversão de linhas do banco para os registros dos cálculos

Os relacionamentos usados aqui precisam ter sido carregados com
selectinload (sessão assíncrona não faz lazy load).
"""

from decimal import Decimal
from typing import Optional, Union

from ibrac.models.batch import BatchDocument, BatchInputItem, ProcessingBatch
from ibrac.models.lme import LMEPrice
from ibrac.models.settlement import FinancialSettlement
from ibrac.models.sublot import Sublot
from ibrac.services.kpis import (
    BatchData, DocumentLink, InputItemData, SettlementData, SublotRef, SublotStock
)
from ibrac.services.lme import LMEPoint


def to_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def to_decimal(value: Union[float, Decimal, None], places: str = "0.01") -> Optional[Decimal]:
    """float -> Decimal arredondado para a precisão da coluna"""
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal(places))


def batch_record(batch: ProcessingBatch) -> BatchData:
    return BatchData(
        id=batch.id,
        codigo=batch.codigo,
        peso_entrada_kg=to_float(batch.peso_entrada_kg),
        peso_saida_kg=to_float(batch.peso_saida_kg),
        perda_real_pct=to_float(batch.perda_real_pct),
        perda_cobrada_pct=to_float(batch.perda_cobrada_pct),
        custo_mo_terceiro=to_float(batch.custo_mo_terceiro),
        custo_mo_ibrac=to_float(batch.custo_mo_ibrac),
        custo_frete_ida=to_float(batch.custo_frete_ida),
        custo_frete_volta=to_float(batch.custo_frete_volta),
        lme_referencia_kg=to_float(batch.lme_referencia_kg),
        data_inicio=batch.data_inicio,
        status=batch.status,
    )


def sublot_ref(sublot: Optional[Sublot]) -> Optional[SublotRef]:
    """Sublote com dono e entrada de origem (precisa de dono e entrada.tipo_entrada carregados)

    Sublote gerado por beneficiamento não tem entrada: o cenário vem de
    gera_custo_origem, herdado ao longo de lote_pai_id.
    """
    if sublot is None:
        return None
    entrada = sublot.entrada
    return SublotRef(
        owner_id=sublot.dono_id,
        owner_is_company=bool(sublot.dono.is_ibrac) if sublot.dono else False,
        owner_name=sublot.dono.nome if sublot.dono else "",
        custo_unitario_total=to_float(sublot.custo_unitario_total),
        entry_id=entrada.id if entrada else None,
        entry_valor_total=to_float(entrada.valor_total) if entrada else None,
        generates_cost=entrada.gera_custo if entrada else sublot.gera_custo_origem,
        from_batch=entrada is None and sublot.lote_pai_id is not None,
    )


def input_item_record(item: BatchInputItem) -> InputItemData:
    return InputItemData(
        batch_id=item.beneficiamento_id,
        peso_kg=float(item.peso_kg or 0),
        sublot=sublot_ref(item.sublote),
    )


def document_record(doc: BatchDocument) -> DocumentLink:
    return DocumentLink(
        batch_id=doc.beneficiamento_id,
        valor_documento=to_float(doc.valor_documento),
        taxa_financeira_valor=to_float(doc.taxa_financeira_valor),
    )


def lme_point(price: LMEPrice) -> LMEPoint:
    return LMEPoint(data=price.data, cobre_brl_kg=to_float(price.cobre_brl_kg))


def sublot_stock(sublot: Sublot) -> SublotStock:
    return SublotStock(
        id=sublot.id,
        peso_kg=to_float(sublot.peso_kg),
        custo_unitario_total=to_float(sublot.custo_unitario_total),
        status=sublot.status,
        product_name=sublot.tipo_produto.nome if sublot.tipo_produto else None,
        product_code=sublot.tipo_produto.codigo if sublot.tipo_produto else None,
    )


def settlement_record(settlement: FinancialSettlement) -> SettlementData:
    return SettlementData(
        tipo=settlement.tipo,
        valor=to_float(settlement.valor),
        status=settlement.status,
        owner_id=settlement.dono_id,
    )
