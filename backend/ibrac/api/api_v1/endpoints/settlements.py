"""Acertos financeiros API - repasses, dívidas e receitas"""

from typing import Any, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ibrac.core.deps import get_db
from ibrac.core.logging_config import get_logger
from ibrac.models.owner import MaterialOwner
from ibrac.models.settlement import FinancialSettlement
from ibrac.schemas.settlement import (
    SettlementCreate, SettlementResponse, SettlementListResponse,
    PayoutGroupResponse, PendingPayoutsResponse, ReconcileRequest
)
from ibrac.services.audit import record_audit
from ibrac.services.records import to_decimal
from ibrac.services.reports import PendingSettlement, group_pending_payouts

logger = get_logger(__name__)

router = APIRouter()


async def get_settlement_or_404(db: AsyncSession, settlement_id: int) -> FinancialSettlement:
    result = await db.execute(
        select(FinancialSettlement)
        .options(selectinload(FinancialSettlement.dono))
        .where(FinancialSettlement.id == settlement_id)
        .execution_options(populate_existing=True)
    )
    settlement = result.scalars().first()
    if not settlement:
        raise HTTPException(status_code=404, detail="Acerto não encontrado")
    return settlement


def build_settlement_response(s: FinancialSettlement) -> SettlementResponse:
    """Montar resposta do acerto"""
    return SettlementResponse(
        id=s.id,
        tipo=s.tipo,
        type_display=s.type_display,
        valor=float(s.valor),
        dono_id=s.dono_id,
        dono_nome=s.dono.nome if s.dono else "",
        parceiro=s.parceiro,
        referencia_tipo=s.referencia_tipo,
        referencia_id=s.referencia_id,
        status=s.status,
        status_display=s.status_display,
        data_acerto=s.data_acerto,
        data_pagamento=s.data_pagamento,
        observacoes=s.observacoes,
        created_at=s.created_at,
    )


@router.get("/", response_model=SettlementListResponse)
async def list_settlements(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tipo: Optional[str] = Query(None, description="repasse/divida/receita"),
    status: Optional[str] = Query(None, description="pendente/pago/cancelado"),
    dono_id: Optional[int] = Query(None),
) -> Any:
    """Listar acertos"""
    query = select(FinancialSettlement).options(selectinload(FinancialSettlement.dono))
    conditions = []

    if tipo:
        conditions.append(FinancialSettlement.tipo == tipo)
    if status:
        conditions.append(FinancialSettlement.status == status)
    if dono_id:
        conditions.append(FinancialSettlement.dono_id == dono_id)

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(FinancialSettlement.created_at.desc(), FinancialSettlement.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    settlements = (await db.execute(query)).scalars().all()

    return SettlementListResponse(
        data=[build_settlement_response(s) for s in settlements],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=SettlementResponse)
async def create_settlement(
    *,
    db: AsyncSession = Depends(get_db),
    settlement_in: SettlementCreate,
) -> Any:
    """Lançar acerto manual"""
    if settlement_in.dono_id and not await db.get(MaterialOwner, settlement_in.dono_id):
        raise HTTPException(status_code=404, detail="Dono não encontrado")

    data = settlement_in.model_dump()
    data["valor"] = to_decimal(data["valor"])
    data["data_acerto"] = data["data_acerto"] or date.today()
    settlement = FinancialSettlement(**data, referencia_tipo="manual", status="pendente")
    db.add(settlement)
    await db.flush()
    record_audit(db, "create", settlement)
    await db.commit()

    settlement = await get_settlement_or_404(db, settlement.id)
    return build_settlement_response(settlement)


@router.get("/pending", response_model=PendingPayoutsResponse)
async def pending_payouts(
    *,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Repasses e dívidas pendentes agrupados por dono"""
    result = await db.execute(
        select(FinancialSettlement)
        .options(selectinload(FinancialSettlement.dono))
        .where(
            and_(
                FinancialSettlement.tipo.in_(["repasse", "divida"]),
                FinancialSettlement.status == "pendente",
            )
        )
        .order_by(FinancialSettlement.created_at.desc(), FinancialSettlement.id.desc())
    )
    settlements = result.scalars().all()
    by_id = {s.id: s for s in settlements}

    groups = group_pending_payouts([
        PendingSettlement(
            id=s.id,
            tipo=s.tipo,
            valor=float(s.valor),
            owner_id=s.dono_id,
            owner_name=s.dono.nome if s.dono else None,
            partner_name=s.parceiro,
        )
        for s in settlements
    ])

    return PendingPayoutsResponse(
        grupos=[
            PayoutGroupResponse(
                dono_id=g.dono_id,
                dono_nome=g.dono_nome,
                total=g.total,
                acertos=[build_settlement_response(by_id[a.id]) for a in g.acertos],
            )
            for g in groups
        ],
        total_geral=sum(g.total for g in groups),
    )


@router.post("/{settlement_id}/reconcile", response_model=SettlementResponse)
async def reconcile_settlement(
    *,
    db: AsyncSession = Depends(get_db),
    settlement_id: int,
    reconcile_in: Optional[ReconcileRequest] = None,
) -> Any:
    """Conciliar (marcar como pago)"""
    settlement = await get_settlement_or_404(db, settlement_id)
    if settlement.status != "pendente":
        raise HTTPException(status_code=400, detail=f"Acerto {settlement.status_display}, não pode ser conciliado")

    settlement.status = "pago"
    settlement.data_pagamento = (reconcile_in.data_pagamento if reconcile_in else None) or date.today()

    record_audit(db, "reconcile", settlement)
    await db.commit()

    logger.info(f"💰 Acerto {settlement.id} ({settlement.tipo}) conciliado: R$ {settlement.valor}")
    settlement = await get_settlement_or_404(db, settlement_id)
    return build_settlement_response(settlement)


@router.post("/{settlement_id}/cancel", response_model=SettlementResponse)
async def cancel_settlement(
    *,
    db: AsyncSession = Depends(get_db),
    settlement_id: int,
) -> Any:
    """Cancelar acerto pendente"""
    settlement = await get_settlement_or_404(db, settlement_id)
    if settlement.status != "pendente":
        raise HTTPException(status_code=400, detail=f"Acerto {settlement.status_display}, não pode ser cancelado")

    settlement.status = "cancelado"
    record_audit(db, "update", settlement)
    await db.commit()

    settlement = await get_settlement_or_404(db, settlement_id)
    return build_settlement_response(settlement)
