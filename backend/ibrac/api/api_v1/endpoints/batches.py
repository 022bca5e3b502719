"""Beneficiamentos API

Fluxo: criar (consome sublotes) -> vincular documentos -> finalizar (gera o
sublote de saída com o custo calculado)
"""

from typing import Any, List, Optional
from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ibrac.core.deps import get_db
from ibrac.core.logging_config import get_logger
from ibrac.models.entry import Entry
from ibrac.models.sublot import Sublot
from ibrac.models.batch import ProcessingBatch, BatchDocument, BatchInputItem, BatchOutputItem
from ibrac.schemas.batch import (
    BatchCreate, BatchUpdate, BatchFinalize, BatchDocumentCreate,
    BatchResponse, BatchListResponse, BatchCostsResponse,
    BatchDocumentResponse, BatchInputItemResponse, BatchOutputItemResponse,
    LossPreviewResponse
)
from ibrac.services.audit import record_audit
from ibrac.services.codes import generate_code
from ibrac.services.kpis import calculate_batch_costs, calculate_loss_profit, economy_vs_lme
from ibrac.services.lme import get_lme_for_date
from ibrac.services.lme_fetcher import load_daily_history
from ibrac.services.records import (
    to_float, to_decimal, batch_record, document_record, input_item_record
)
from ibrac.services.scenarios import (
    calculate_loss_profit_detail, detect_predominant_scenario, scenario_label
)

logger = get_logger(__name__)

router = APIRouter()


def batch_options():
    """Itens com sublote, dono e tipo de entrada para custos e cenário"""
    input_sublot = selectinload(ProcessingBatch.itens_entrada).selectinload(BatchInputItem.sublote)
    return (
        input_sublot.selectinload(Sublot.dono),
        selectinload(ProcessingBatch.itens_entrada)
        .selectinload(BatchInputItem.sublote)
        .selectinload(Sublot.entrada).selectinload(Entry.tipo_entrada),
        selectinload(ProcessingBatch.itens_saida).selectinload(BatchOutputItem.sublote_gerado),
        selectinload(ProcessingBatch.documentos).selectinload(BatchDocument.entrada),
    )


async def get_batch_or_404(db: AsyncSession, batch_id: int) -> ProcessingBatch:
    result = await db.execute(
        select(ProcessingBatch)
        .options(*batch_options())
        .where(ProcessingBatch.id == batch_id)
        .execution_options(populate_existing=True)
    )
    batch = result.scalars().first()
    if not batch:
        raise HTTPException(status_code=404, detail="Beneficiamento não encontrado")
    return batch


def build_batch_response(batch: ProcessingBatch, with_costs: bool = True) -> BatchResponse:
    """Montar resposta do beneficiamento"""
    items = [input_item_record(i) for i in batch.itens_entrada]
    cenario = detect_predominant_scenario([i.sublot for i in items if i.sublot])

    custos = None
    if with_costs:
        costs = calculate_batch_costs(
            batch_record(batch), items, [document_record(d) for d in batch.documentos]
        )
        custos = BatchCostsResponse.model_validate(costs)

    economia = None
    if batch.status == "finalizado" and batch.lme_referencia_kg is not None:
        economia = round(economy_vs_lme(
            to_float(batch.peso_saida_kg), to_float(batch.custo_total), to_float(batch.lme_referencia_kg)
        ), 2)

    return BatchResponse(
        id=batch.id,
        codigo=batch.codigo,
        tipo_beneficiamento=batch.tipo_beneficiamento,
        fornecedor_terceiro=batch.fornecedor_terceiro,
        data_inicio=batch.data_inicio,
        data_fim=batch.data_fim,
        peso_entrada_kg=to_float(batch.peso_entrada_kg),
        peso_saida_kg=to_float(batch.peso_saida_kg),
        perda_real_pct=to_float(batch.perda_real_pct),
        perda_cobrada_pct=to_float(batch.perda_cobrada_pct),
        custo_mo_terceiro=to_float(batch.custo_mo_terceiro),
        custo_mo_ibrac=to_float(batch.custo_mo_ibrac),
        custo_frete_ida=to_float(batch.custo_frete_ida),
        custo_frete_volta=to_float(batch.custo_frete_volta),
        lme_referencia_kg=to_float(batch.lme_referencia_kg),
        lucro_perda_kg=to_float(batch.lucro_perda_kg),
        lucro_perda_valor=to_float(batch.lucro_perda_valor),
        custo_total=to_float(batch.custo_total),
        custo_kg=to_float(batch.custo_kg),
        economia_vs_lme=economia,
        status=batch.status,
        status_display=batch.status_display,
        observacoes=batch.observacoes,
        created_at=batch.created_at,

        cenario=cenario.value if cenario else None,
        cenario_label=scenario_label(cenario) if cenario else "",
        custos=custos,
        itens_entrada=[
            BatchInputItemResponse(
                id=i.id,
                sublote_id=i.sublote_id,
                sublote_codigo=i.sublote.codigo if i.sublote else "",
                dono_id=i.sublote.dono_id if i.sublote else None,
                dono_nome=i.sublote.dono.nome if i.sublote and i.sublote.dono else "",
                peso_kg=float(i.peso_kg),
                custo_unitario=to_float(i.custo_unitario),
            )
            for i in batch.itens_entrada
        ],
        itens_saida=[
            BatchOutputItemResponse(
                id=o.id,
                sublote_gerado_id=o.sublote_gerado_id,
                sublote_codigo=o.sublote_gerado.codigo if o.sublote_gerado else "",
                peso_kg=float(o.peso_kg),
                custo_unitario_calculado=to_float(o.custo_unitario_calculado),
            )
            for o in batch.itens_saida
        ],
        documentos=[
            BatchDocumentResponse(
                id=d.id,
                entrada_id=d.entrada_id,
                entrada_codigo=d.entrada.codigo if d.entrada else "",
                valor_documento=float(d.valor_documento),
                taxa_financeira_pct=to_float(d.taxa_financeira_pct),
                taxa_financeira_valor=to_float(d.taxa_financeira_valor),
            )
            for d in batch.documentos
        ],
    )


async def add_document(
    db: AsyncSession,
    batch: ProcessingBatch,
    doc_in: BatchDocumentCreate,
) -> BatchDocument:
    """Vincular documento; a taxa padrão vem da entrada ou do beneficiamento"""
    taxa_pct = doc_in.taxa_financeira_pct
    if doc_in.entrada_id is not None:
        entry = await db.get(Entry, doc_in.entrada_id)
        if not entry:
            raise HTTPException(status_code=404, detail=f"Entrada {doc_in.entrada_id} não encontrada")
        if taxa_pct is None and entry.taxa_financeira_pct is not None:
            taxa_pct = float(entry.taxa_financeira_pct)
    if taxa_pct is None and batch.taxa_financeira_pct is not None:
        taxa_pct = float(batch.taxa_financeira_pct)

    doc = BatchDocument(
        beneficiamento_id=batch.id,
        entrada_id=doc_in.entrada_id,
        valor_documento=to_decimal(doc_in.valor_documento),
        taxa_financeira_pct=to_decimal(taxa_pct),
        taxa_financeira_valor=to_decimal(doc_in.taxa_financeira_valor),
    )
    doc.calculate_fee()
    db.add(doc)
    return doc


@router.get("/", response_model=BatchListResponse)
async def list_batches(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, description="em_andamento/finalizado/cancelado"),
    data_inicio: Optional[date] = Query(None, description="A partir de"),
    data_fim: Optional[date] = Query(None, description="Até"),
) -> Any:
    """Listar beneficiamentos"""
    query = select(ProcessingBatch).options(*batch_options())
    conditions = []

    if status:
        conditions.append(ProcessingBatch.status == status)
    if data_inicio:
        conditions.append(ProcessingBatch.data_inicio >= data_inicio)
    if data_fim:
        conditions.append(ProcessingBatch.data_inicio <= data_fim)

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(ProcessingBatch.data_inicio.desc(), ProcessingBatch.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    batches = (await db.execute(query)).scalars().unique().all()

    return BatchListResponse(
        data=[build_batch_response(b, with_costs=False) for b in batches],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=BatchResponse)
async def create_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_in: BatchCreate,
) -> Any:
    """Criar beneficiamento

    Cada sublote é consumido por inteiro e passa para em_beneficiamento.
    """
    sublot_ids = [item.sublote_id for item in batch_in.itens]
    if len(set(sublot_ids)) != len(sublot_ids):
        raise HTTPException(status_code=400, detail="Sublote repetido nos itens")

    result = await db.execute(select(Sublot).where(Sublot.id.in_(sublot_ids)))
    sublots = {s.id: s for s in result.scalars().all()}

    batch = ProcessingBatch(
        codigo=await generate_code(db, ProcessingBatch, "BEN"),
        tipo_beneficiamento=batch_in.tipo_beneficiamento,
        fornecedor_terceiro=batch_in.fornecedor_terceiro,
        data_inicio=batch_in.data_inicio,
        perda_cobrada_pct=to_decimal(batch_in.perda_cobrada_pct),
        custo_mo_terceiro=to_decimal(batch_in.custo_mo_terceiro),
        custo_mo_ibrac=to_decimal(batch_in.custo_mo_ibrac),
        custo_frete_ida=to_decimal(batch_in.custo_frete_ida),
        custo_frete_volta=to_decimal(batch_in.custo_frete_volta),
        taxa_financeira_pct=to_decimal(batch_in.taxa_financeira_pct),
        lme_referencia_kg=to_decimal(batch_in.lme_referencia_kg, "0.0001"),
        placa_veiculo=batch_in.placa_veiculo,
        motorista=batch_in.motorista,
        observacoes=batch_in.observacoes,
        status="em_andamento",
    )
    db.add(batch)
    await db.flush()

    peso_entrada = Decimal("0")
    for item_in in batch_in.itens:
        sublot = sublots.get(item_in.sublote_id)
        if not sublot:
            raise HTTPException(status_code=404, detail=f"Sublote {item_in.sublote_id} não encontrado")
        if sublot.status != "disponivel":
            raise HTTPException(
                status_code=400,
                detail=f"Sublote {sublot.codigo} {sublot.status_display}, não pode ser consumido",
            )

        db.add(BatchInputItem(
            beneficiamento_id=batch.id,
            sublote_id=sublot.id,
            tipo_produto_id=sublot.tipo_produto_id,
            peso_kg=sublot.peso_kg,
            custo_unitario=sublot.custo_unitario_total,
        ))
        sublot.status = "em_beneficiamento"
        peso_entrada += sublot.peso_kg

    batch.peso_entrada_kg = peso_entrada

    for doc_in in batch_in.documentos:
        await add_document(db, batch, doc_in)

    await db.flush()
    record_audit(db, "create", batch)
    await db.commit()

    logger.info(f"🏭 Beneficiamento {batch.codigo} criado: {peso_entrada} kg em {len(batch_in.itens)} sublotes")
    batch = await get_batch_or_404(db, batch.id)
    return build_batch_response(batch)


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
) -> Any:
    """Detalhe do beneficiamento com custos"""
    batch = await get_batch_or_404(db, batch_id)
    return build_batch_response(batch)


@router.put("/{batch_id}", response_model=BatchResponse)
async def update_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
    batch_in: BatchUpdate,
) -> Any:
    """Alterar custos de um beneficiamento em andamento"""
    batch = await get_batch_or_404(db, batch_id)
    if batch.status != "em_andamento":
        raise HTTPException(status_code=400, detail=f"Beneficiamento {batch.status_display}, não pode ser alterado")

    update_data = batch_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if isinstance(value, float):
            value = to_decimal(value, "0.0001" if field == "lme_referencia_kg" else "0.01")
        setattr(batch, field, value)

    record_audit(db, "update", batch)
    await db.commit()

    batch = await get_batch_or_404(db, batch_id)
    return build_batch_response(batch)


@router.get("/{batch_id}/documents", response_model=List[BatchDocumentResponse])
async def list_documents(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
) -> Any:
    """Documentos vinculados"""
    batch = await get_batch_or_404(db, batch_id)
    return build_batch_response(batch, with_costs=False).documentos


@router.post("/{batch_id}/documents", response_model=BatchResponse)
async def create_document(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
    doc_in: BatchDocumentCreate,
) -> Any:
    """Vincular documento de entrada"""
    batch = await get_batch_or_404(db, batch_id)
    if batch.status != "em_andamento":
        raise HTTPException(status_code=400, detail=f"Beneficiamento {batch.status_display}, não aceita documentos")

    doc = await add_document(db, batch, doc_in)
    await db.flush()
    record_audit(db, "create", doc)
    await db.commit()

    batch = await get_batch_or_404(db, batch_id)
    return build_batch_response(batch)


@router.get("/{batch_id}/loss-preview", response_model=LossPreviewResponse)
async def preview_loss(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
    perda_real_pct: float = Query(..., ge=0, le=100, description="Perda real estimada (%)"),
) -> Any:
    """Prévia do lucro/prejuízo na perda antes de finalizar"""
    batch = await get_batch_or_404(db, batch_id)

    lme_kg = to_float(batch.lme_referencia_kg)
    if not lme_kg:
        lme_kg = get_lme_for_date(await load_daily_history(db), batch.data_inicio)

    cobrada = to_float(batch.perda_cobrada_pct) or 0.0
    detail = calculate_loss_profit_detail(
        to_float(batch.peso_entrada_kg) or 0.0, cobrada, perda_real_pct, lme_kg
    )
    return LossPreviewResponse(
        perda_cobrada_pct=cobrada,
        perda_real_pct=perda_real_pct,
        lme_kg=lme_kg,
        diferenca_pct=detail.diff_pct,
        diferenca_kg=detail.diff_kg,
        valor=detail.value,
        tem_lucro=detail.has_profit,
    )


@router.post("/{batch_id}/finalize", response_model=BatchResponse)
async def finalize_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
    finalize_in: BatchFinalize,
) -> Any:
    """Finalizar beneficiamento

    Calcula custos, LME de referência e lucro na perda; gera o sublote de
    saída (dono do primeiro sublote consumido, custo unitário = custo/kg)
    e marca os sublotes consumidos.
    """
    batch = await get_batch_or_404(db, batch_id)
    if batch.status == "finalizado":
        raise HTTPException(status_code=400, detail="Beneficiamento já finalizado")
    if batch.status != "em_andamento":
        raise HTTPException(status_code=400, detail=f"Beneficiamento {batch.status_display}, não pode ser finalizado")
    if not batch.itens_entrada:
        raise HTTPException(status_code=400, detail="Beneficiamento sem itens de entrada")

    peso_entrada = to_float(batch.peso_entrada_kg) or 0.0
    peso_saida = finalize_in.peso_saida_kg
    if peso_saida > peso_entrada:
        raise HTTPException(status_code=400, detail="Peso de saída maior que o peso de entrada")

    perda_real = finalize_in.perda_real_pct
    if perda_real is None:
        perda_real = (peso_entrada - peso_saida) / peso_entrada * 100 if peso_entrada > 0 else 0.0

    batch.peso_saida_kg = to_decimal(peso_saida)
    batch.perda_real_pct = to_decimal(perda_real)
    batch.data_fim = finalize_in.data_fim or date.today()

    items = [input_item_record(i) for i in batch.itens_entrada]
    costs = calculate_batch_costs(
        batch_record(batch), items, [document_record(d) for d in batch.documentos]
    )

    lme_kg = to_float(batch.lme_referencia_kg)
    if not lme_kg:
        lme_kg = get_lme_for_date(await load_daily_history(db), batch.data_inicio)
        if lme_kg > 0:
            batch.lme_referencia_kg = to_decimal(lme_kg, "0.0001")

    cobrada = to_float(batch.perda_cobrada_pct) or 0.0
    lucro_valor = calculate_loss_profit(peso_entrada, cobrada, perda_real, lme_kg)
    lucro_kg = peso_entrada * (cobrada - perda_real) / 100 if cobrada > perda_real else 0.0
    batch.lucro_perda_kg = to_decimal(lucro_kg)
    batch.lucro_perda_valor = to_decimal(lucro_valor)
    batch.custo_total = to_decimal(costs.custo_total)
    batch.custo_kg = to_decimal(costs.custo_kg, "0.0001")

    first = batch.itens_entrada[0].sublote
    first_ref = items[0].sublot
    output = Sublot(
        codigo=await generate_code(db, Sublot, "SUB"),
        # Sem entrada: o custo é o do beneficiamento e o cenário segue lote_pai_id
        lote_pai_id=first.id if first else None,
        gera_custo_origem=first_ref.generates_cost if first_ref else None,
        tipo_produto_id=finalize_in.tipo_produto_saida_id or (first.tipo_produto_id if first else None),
        dono_id=first.dono_id if first else None,
        peso_kg=batch.peso_saida_kg,
        custo_unitario_total=batch.custo_kg,
        teor_cobre=first.teor_cobre if first else None,
        status="disponivel",
    )
    db.add(output)
    await db.flush()

    db.add(BatchOutputItem(
        beneficiamento_id=batch.id,
        sublote_gerado_id=output.id,
        tipo_produto_id=output.tipo_produto_id,
        peso_kg=output.peso_kg,
        custo_unitario_calculado=batch.custo_kg,
    ))

    for item in batch.itens_entrada:
        if item.sublote and item.sublote.status == "em_beneficiamento":
            item.sublote.status = "consumido"

    batch.status = "finalizado"
    record_audit(db, "finalize", batch, extra={"sublote_gerado": output.codigo})
    await db.commit()

    logger.info(
        f"✅ Beneficiamento {batch.codigo} finalizado: {peso_saida} kg a R$ {costs.custo_kg:.4f}/kg "
        f"-> sublote {output.codigo}"
    )
    batch = await get_batch_or_404(db, batch_id)
    return build_batch_response(batch)


@router.post("/{batch_id}/cancel", response_model=BatchResponse)
async def cancel_batch(
    *,
    db: AsyncSession = Depends(get_db),
    batch_id: int,
) -> Any:
    """Cancelar beneficiamento em andamento e liberar os sublotes consumidos"""
    batch = await get_batch_or_404(db, batch_id)
    if batch.status != "em_andamento":
        raise HTTPException(status_code=400, detail=f"Beneficiamento {batch.status_display}, não pode ser cancelado")

    for item in batch.itens_entrada:
        sublot = item.sublote
        # Consumo é sempre do sublote inteiro: em_beneficiamento só por este beneficiamento
        if sublot is not None and sublot.status == "em_beneficiamento":
            sublot.status = "disponivel"

    batch.status = "cancelado"
    record_audit(db, "update", batch)
    await db.commit()

    logger.info(f"🚫 Beneficiamento {batch.codigo} cancelado")
    batch = await get_batch_or_404(db, batch_id)
    return build_batch_response(batch)
