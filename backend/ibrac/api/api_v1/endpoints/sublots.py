"""Sublotes API - saldo, transferência de titularidade e rastreabilidade de custo"""

from dataclasses import asdict
from typing import Any, List, Optional
from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ibrac.core.deps import get_db
from ibrac.models.owner import MaterialOwner
from ibrac.models.entry import Entry
from ibrac.models.sublot import Sublot, OwnerTransfer
from ibrac.models.batch import ProcessingBatch, BatchInputItem, BatchOutputItem
from ibrac.schemas.sublot import (
    SublotResponse, SublotListResponse,
    OwnerTransferCreate, OwnerTransferResponse, CostTraceResponse
)
from ibrac.services.audit import record_audit
from ibrac.services.kpis import available_weighted_average_cost, weighted_average_cost
from ibrac.services.records import (
    to_float, to_decimal, sublot_ref, sublot_stock,
    batch_record, document_record, input_item_record
)
from ibrac.services.reports import build_cost_trace
from ibrac.services.scenarios import detect_sublot_scenario, scenario_label

router = APIRouter()


def sublot_options():
    """Relacionamentos usados em build_sublot_response"""
    return (
        selectinload(Sublot.tipo_produto),
        selectinload(Sublot.dono),
        selectinload(Sublot.entrada).selectinload(Entry.tipo_entrada),
    )


async def get_sublot_or_404(db: AsyncSession, sublot_id: int) -> Sublot:
    result = await db.execute(
        select(Sublot)
        .options(*sublot_options())
        .where(Sublot.id == sublot_id)
        .execution_options(populate_existing=True)
    )
    sublot = result.scalars().first()
    if not sublot:
        raise HTTPException(status_code=404, detail="Sublote não encontrado")
    return sublot


def build_sublot_response(sublot: Sublot) -> SublotResponse:
    """Montar resposta do sublote"""
    cenario = detect_sublot_scenario(sublot_ref(sublot))
    return SublotResponse(
        id=sublot.id,
        codigo=sublot.codigo,
        entrada_id=sublot.entrada_id,
        lote_pai_id=sublot.lote_pai_id,
        tipo_produto_id=sublot.tipo_produto_id,
        dono_id=sublot.dono_id,
        peso_kg=to_float(sublot.peso_kg) or 0.0,
        custo_unitario_total=to_float(sublot.custo_unitario_total),
        custo_total=float(sublot.total_cost),
        teor_cobre=to_float(sublot.teor_cobre),
        status=sublot.status,
        status_display=sublot.status_display,
        observacoes=sublot.observacoes,
        created_at=sublot.created_at,

        tipo_produto_nome=sublot.tipo_produto.nome if sublot.tipo_produto else "",
        dono_nome=sublot.dono.nome if sublot.dono else "",
        entrada_codigo=sublot.entrada.codigo if sublot.entrada else "",
        cenario=cenario.value,
        cenario_label=scenario_label(cenario),
    )


@router.get("/", response_model=SublotListResponse)
async def list_sublots(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    status: Optional[str] = Query(None, description="disponivel/em_beneficiamento/consumido/vendido"),
    dono_id: Optional[int] = Query(None, description="Dono"),
    tipo_produto_id: Optional[int] = Query(None, description="Tipo de produto"),
    search: Optional[str] = Query(None, description="Código"),
) -> Any:
    """Listar sublotes com peso total e custo médio ponderado do filtro"""
    conditions = []
    if status:
        conditions.append(Sublot.status == status)
    if dono_id:
        conditions.append(Sublot.dono_id == dono_id)
    if tipo_produto_id:
        conditions.append(Sublot.tipo_produto_id == tipo_produto_id)
    if search:
        conditions.append(Sublot.codigo.ilike(f"%{search}%"))

    query = select(Sublot).options(*sublot_options())
    if conditions:
        query = query.where(and_(*conditions))

    # Totais sobre todo o filtro, não só a página
    all_rows = (await db.execute(query)).scalars().all()
    stock = [sublot_stock(s) for s in all_rows]

    query = query.order_by(Sublot.created_at.desc(), Sublot.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    sublots = (await db.execute(query)).scalars().all()

    return SublotListResponse(
        data=[build_sublot_response(s) for s in sublots],
        total=len(all_rows),
        page=page,
        limit=limit,
        peso_total_kg=sum(s.peso_kg or 0 for s in stock),
        custo_medio_ponderado=weighted_average_cost(stock),
        custo_medio_disponivel=available_weighted_average_cost(stock),
    )


@router.get("/{sublot_id}", response_model=SublotResponse)
async def get_sublot(
    *,
    db: AsyncSession = Depends(get_db),
    sublot_id: int,
) -> Any:
    """Detalhe do sublote"""
    sublot = await get_sublot_or_404(db, sublot_id)
    return build_sublot_response(sublot)


@router.post("/{sublot_id}/transfer", response_model=OwnerTransferResponse)
async def transfer_owner(
    *,
    db: AsyncSession = Depends(get_db),
    sublot_id: int,
    transfer_in: OwnerTransferCreate,
) -> Any:
    """Transferir a titularidade de um sublote

    O acréscimo é rateado pelo peso e somado ao custo unitário.
    """
    sublot = await get_sublot_or_404(db, sublot_id)
    if sublot.status != "disponivel":
        raise HTTPException(status_code=400, detail=f"Sublote {sublot.status_display}, não pode ser transferido")

    if transfer_in.dono_destino_id is not None:
        destino = await db.get(MaterialOwner, transfer_in.dono_destino_id)
        if not destino:
            raise HTTPException(status_code=404, detail="Dono de destino não encontrado")

    if transfer_in.dono_destino_id == sublot.dono_id:
        raise HTTPException(status_code=400, detail="Sublote já pertence a este dono")

    peso = sublot.peso_kg or Decimal("0")
    if peso <= 0:
        raise HTTPException(status_code=400, detail="Sublote sem saldo")

    custo_anterior = sublot.custo_unitario_total or Decimal("0")
    acrescimo = to_decimal(transfer_in.valor_acrescimo)
    custo_novo = (custo_anterior + acrescimo / peso).quantize(Decimal("0.0001"))

    transfer = OwnerTransfer(
        sublote_id=sublot.id,
        dono_origem_id=sublot.dono_id,
        dono_destino_id=transfer_in.dono_destino_id,
        peso_kg=peso,
        valor_acrescimo=acrescimo,
        data_transferencia=date.today(),
        observacoes=transfer_in.observacoes,
    )
    db.add(transfer)

    sublot.dono_id = transfer_in.dono_destino_id
    sublot.custo_unitario_total = custo_novo

    await db.flush()
    record_audit(db, "transfer", transfer, extra={
        "custo_unitario_anterior": custo_anterior,
        "custo_unitario_novo": custo_novo,
    })
    await db.commit()

    return OwnerTransferResponse(
        id=transfer.id,
        sublote_id=transfer.sublote_id,
        dono_origem_id=transfer.dono_origem_id,
        dono_destino_id=transfer.dono_destino_id,
        peso_kg=float(transfer.peso_kg),
        valor_acrescimo=float(transfer.valor_acrescimo or 0),
        data_transferencia=transfer.data_transferencia,
        observacoes=transfer.observacoes,
        custo_unitario_anterior=float(custo_anterior),
        custo_unitario_novo=float(custo_novo),
    )


@router.get("/{sublot_id}/transfers", response_model=List[OwnerTransferResponse])
async def list_transfers(
    *,
    db: AsyncSession = Depends(get_db),
    sublot_id: int,
) -> Any:
    """Histórico de transferências do sublote"""
    await get_sublot_or_404(db, sublot_id)
    result = await db.execute(
        select(OwnerTransfer)
        .where(OwnerTransfer.sublote_id == sublot_id)
        .order_by(OwnerTransfer.created_at.desc(), OwnerTransfer.id.desc())
    )
    return [
        OwnerTransferResponse(
            id=t.id,
            sublote_id=t.sublote_id,
            dono_origem_id=t.dono_origem_id,
            dono_destino_id=t.dono_destino_id,
            peso_kg=float(t.peso_kg),
            valor_acrescimo=float(t.valor_acrescimo or 0),
            data_transferencia=t.data_transferencia,
            observacoes=t.observacoes,
        )
        for t in result.scalars().all()
    ]


@router.get("/{sublot_id}/cost-trace", response_model=CostTraceResponse)
async def get_cost_trace(
    *,
    db: AsyncSession = Depends(get_db),
    sublot_id: int,
) -> Any:
    """Rastreabilidade de custo

    Sublote gerado por beneficiamento mostra a composição do custo do
    beneficiamento; sublote de entrada mostra o valor do documento.
    """
    sublot = await get_sublot_or_404(db, sublot_id)

    output_item = (await db.execute(
        select(BatchOutputItem).where(BatchOutputItem.sublote_gerado_id == sublot_id)
    )).scalars().first()

    batch = None
    if output_item:
        batch = (await db.execute(
            select(ProcessingBatch)
            .options(
                selectinload(ProcessingBatch.documentos),
                selectinload(ProcessingBatch.itens_entrada)
                .selectinload(BatchInputItem.sublote).selectinload(Sublot.dono),
                selectinload(ProcessingBatch.itens_entrada)
                .selectinload(BatchInputItem.sublote)
                .selectinload(Sublot.entrada).selectinload(Entry.tipo_entrada),
            )
            .where(ProcessingBatch.id == output_item.beneficiamento_id)
        )).scalars().first()

    if batch:
        trace = build_cost_trace(
            batch_record(batch),
            [document_record(d) for d in batch.documentos],
            [input_item_record(i) for i in batch.itens_entrada],
        )
    else:
        trace = build_cost_trace(None, [], [])

    return CostTraceResponse(
        sublote_id=sublot.id,
        sublote_codigo=sublot.codigo,
        origem="beneficiamento" if batch else "entrada",
        beneficiamento_codigo=batch.codigo if batch else "",
        entrada_codigo=sublot.entrada.codigo if sublot.entrada else "",
        entrada_valor_total=to_float(sublot.entrada.valor_total) if sublot.entrada else None,
        custo_unitario_atual=to_float(sublot.custo_unitario_total) or 0.0,
        **asdict(trace),
    )
