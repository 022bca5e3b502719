"""Saídas de material API"""

from typing import Any, Optional
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
from ibrac.models.exit import Exit, ExitItem
from ibrac.models.settlement import FinancialSettlement
from ibrac.schemas.exit import ExitCreate, ExitResponse, ExitListResponse, ExitItemResponse
from ibrac.services.audit import record_audit
from ibrac.services.codes import generate_code
from ibrac.services.records import to_float, to_decimal, sublot_ref
from ibrac.services.scenarios import (
    ExitParams, Scenario, calculate_exit, detect_predominant_scenario, scenario_label
)

logger = get_logger(__name__)

router = APIRouter()


async def get_exit_or_404(db: AsyncSession, exit_id: int) -> Exit:
    result = await db.execute(
        select(Exit)
        .options(selectinload(Exit.itens).selectinload(ExitItem.sublote))
        .where(Exit.id == exit_id)
        .execution_options(populate_existing=True)
    )
    saida = result.scalars().first()
    if not saida:
        raise HTTPException(status_code=404, detail="Saída não encontrada")
    return saida


def build_exit_response(saida: Exit) -> ExitResponse:
    """Montar resposta da saída"""
    cenario_label = ""
    if saida.cenario_operacao:
        cenario_label = scenario_label(Scenario(saida.cenario_operacao))
    return ExitResponse(
        id=saida.id,
        codigo=saida.codigo,
        data_saida=saida.data_saida,
        tipo_saida=saida.tipo_saida,
        cliente=saida.cliente,
        nota_fiscal=saida.nota_fiscal,
        peso_total_kg=float(saida.peso_total_kg),
        valor_unitario=to_float(saida.valor_unitario),
        cenario_operacao=saida.cenario_operacao,
        cenario_label=cenario_label,
        valor_total=to_float(saida.valor_total),
        custos_cobrados=to_float(saida.custos_cobrados),
        comissao_ibrac=to_float(saida.comissao_ibrac),
        valor_repasse_dono=to_float(saida.valor_repasse_dono),
        resultado_liquido_dono=to_float(saida.resultado_liquido_dono),
        status=saida.status,
        observacoes=saida.observacoes,
        created_at=saida.created_at,
        itens=[
            ExitItemResponse(
                id=i.id,
                sublote_id=i.sublote_id,
                sublote_codigo=i.sublote.codigo if i.sublote else "",
                peso_kg=float(i.peso_kg),
            )
            for i in saida.itens
        ],
    )


@router.get("/", response_model=ExitListResponse)
async def list_exits(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    cenario: Optional[str] = Query(None, description="proprio/industrializacao/operacao_terceiro"),
    tipo_saida: Optional[str] = Query(None, description="venda/consumo/devolucao"),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
) -> Any:
    """Listar saídas"""
    query = select(Exit).options(selectinload(Exit.itens).selectinload(ExitItem.sublote))
    conditions = []

    if cenario:
        conditions.append(Exit.cenario_operacao == cenario)
    if tipo_saida:
        conditions.append(Exit.tipo_saida == tipo_saida)
    if data_inicio:
        conditions.append(Exit.data_saida >= data_inicio)
    if data_fim:
        conditions.append(Exit.data_saida <= data_fim)

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Exit.data_saida.desc(), Exit.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    exits = (await db.execute(query)).scalars().unique().all()

    return ExitListResponse(
        data=[build_exit_response(e) for e in exits],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=ExitResponse)
async def create_exit(
    *,
    db: AsyncSession = Depends(get_db),
    exit_in: ExitCreate,
) -> Any:
    """Registrar saída

    O cenário vem dos sublotes; em operação de terceiro gera o repasse
    pendente ao dono e a comissão da IBRAC como receita.
    """
    sublot_ids = [i.sublote_id for i in exit_in.itens]
    if len(set(sublot_ids)) != len(sublot_ids):
        raise HTTPException(status_code=400, detail="Sublote repetido nos itens")

    result = await db.execute(
        select(Sublot)
        .options(
            selectinload(Sublot.dono),
            selectinload(Sublot.entrada).selectinload(Entry.tipo_entrada),
        )
        .where(Sublot.id.in_(sublot_ids))
    )
    by_id = {s.id: s for s in result.scalars().all()}

    sublots = []
    for sublot_id in sublot_ids:
        sublot = by_id.get(sublot_id)
        if not sublot:
            raise HTTPException(status_code=404, detail=f"Sublote {sublot_id} não encontrado")
        if sublot.status != "disponivel":
            raise HTTPException(
                status_code=400,
                detail=f"Sublote {sublot.codigo} {sublot.status_display}, não pode sair",
            )
        sublots.append(sublot)

    cenario = detect_predominant_scenario([sublot_ref(s) for s in sublots])
    first = sublots[0]
    peso_total = sum((s.peso_kg for s in sublots), Decimal("0"))
    taxa = float(first.dono.taxa_operacao_pct or 0) if first.dono else 0.0

    calc = calculate_exit(ExitParams(
        scenario=cenario,
        weight_kg=float(peso_total),
        unit_price=exit_in.valor_unitario,
        labor_cost=exit_in.custo_mo,
        loss_cost=exit_in.custo_perda,
        additional_costs=exit_in.custos_adicionais,
        commission_pct=taxa,
    ))

    saida = Exit(
        codigo=await generate_code(db, Exit, "SAI"),
        data_saida=exit_in.data_saida,
        tipo_saida=exit_in.tipo_saida,
        cliente=exit_in.cliente,
        nota_fiscal=exit_in.nota_fiscal,
        placa_veiculo=exit_in.placa_veiculo,
        motorista=exit_in.motorista,
        peso_total_kg=peso_total,
        valor_unitario=to_decimal(exit_in.valor_unitario, "0.0001"),
        cenario_operacao=cenario.value,
        valor_total=to_decimal(calc.gross_value),
        custos_cobrados=to_decimal(calc.total_costs),
        comissao_ibrac=to_decimal(calc.company_commission),
        valor_repasse_dono=to_decimal(calc.owner_payout),
        resultado_liquido_dono=to_decimal(calc.owner_net_result),
        status="concluida",
        observacoes=exit_in.observacoes,
    )
    db.add(saida)
    await db.flush()

    for sublot in sublots:
        db.add(ExitItem(saida_id=saida.id, sublote_id=sublot.id, peso_kg=sublot.peso_kg))
        sublot.status = "vendido"

    if cenario == Scenario.OPERACAO_TERCEIRO:
        if calc.owner_payout != 0:
            # Resultado negativo: o dono passa a dever à IBRAC
            db.add(FinancialSettlement(
                tipo="repasse" if calc.owner_payout > 0 else "divida",
                valor=to_decimal(abs(calc.owner_payout)),
                dono_id=first.dono_id,
                referencia_tipo="saida",
                referencia_id=saida.id,
                status="pendente",
                data_acerto=exit_in.data_saida,
                observacoes=f"Saída {saida.codigo}",
            ))
        if calc.company_commission > 0:
            # Comissão retida na própria venda
            db.add(FinancialSettlement(
                tipo="receita",
                valor=to_decimal(calc.company_commission),
                dono_id=first.dono_id,
                referencia_tipo="saida",
                referencia_id=saida.id,
                status="pago",
                data_acerto=exit_in.data_saida,
                data_pagamento=exit_in.data_saida,
                observacoes=f"Comissão da saída {saida.codigo}",
            ))

    record_audit(db, "create", saida)
    await db.commit()

    logger.info(f"📤 Saída {saida.codigo}: {peso_total} kg, cenário {cenario.value}, valor R$ {calc.gross_value:.2f}")
    saida = await get_exit_or_404(db, saida.id)
    return build_exit_response(saida)


@router.get("/{exit_id}", response_model=ExitResponse)
async def get_exit(
    *,
    db: AsyncSession = Depends(get_db),
    exit_id: int,
) -> Any:
    """Detalhe da saída"""
    saida = await get_exit_or_404(db, exit_id)
    return build_exit_response(saida)
