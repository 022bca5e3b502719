"""Relatórios API - KPIs consolidados e demonstrativo por dono"""

from dataclasses import asdict
from typing import Any, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ibrac.core.deps import get_db
from ibrac.models.owner import MaterialOwner
from ibrac.models.entry import Entry
from ibrac.models.sublot import Sublot
from ibrac.models.batch import ProcessingBatch, BatchInputItem
from ibrac.models.exit import Exit, ExitItem
from ibrac.models.settlement import FinancialSettlement
from ibrac.schemas.report import (
    KPIResponse, ScenarioTotalsResponse, BatchEconomyResponse,
    OwnerStatementResponse, OwnerStatementRow, StatementTotalsResponse
)
from ibrac.services.kpis import calculate_consolidated_kpis
from ibrac.services.lme_fetcher import load_daily_history
from ibrac.services.records import (
    to_float, batch_record, document_record, input_item_record,
    settlement_record, sublot_ref, sublot_stock
)
from ibrac.services.reports import (
    OwnerData, EntryData, BatchOwnerData, ExitData,
    build_owner_statement, statement_totals
)

router = APIRouter()


def input_sublot_options():
    """Itens de entrada com o sublote, o dono e o tipo de entrada"""
    return (
        selectinload(ProcessingBatch.itens_entrada)
        .selectinload(BatchInputItem.sublote).selectinload(Sublot.dono),
        selectinload(ProcessingBatch.itens_entrada)
        .selectinload(BatchInputItem.sublote)
        .selectinload(Sublot.entrada).selectinload(Entry.tipo_entrada),
    )


@router.get("/kpis", response_model=KPIResponse)
async def get_kpis(
    *,
    db: AsyncSession = Depends(get_db),
    data_inicio: Optional[date] = Query(None, description="Beneficiamentos a partir de"),
    data_fim: Optional[date] = Query(None, description="Beneficiamentos até"),
    dono_id: Optional[int] = Query(None, description="Somente beneficiamentos deste dono"),
) -> Any:
    """KPIs consolidados dos beneficiamentos"""
    conditions = [ProcessingBatch.status != "cancelado"]
    if data_inicio:
        conditions.append(ProcessingBatch.data_inicio >= data_inicio)
    if data_fim:
        conditions.append(ProcessingBatch.data_inicio <= data_fim)

    result = await db.execute(
        select(ProcessingBatch)
        .options(*input_sublot_options(), selectinload(ProcessingBatch.documentos))
        .where(and_(*conditions))
        .order_by(ProcessingBatch.data_inicio.desc(), ProcessingBatch.id.desc())
    )
    batches = result.scalars().unique().all()

    items = [input_item_record(i) for b in batches for i in b.itens_entrada]
    documents = [document_record(d) for b in batches for d in b.documentos]

    sublots = (await db.execute(
        select(Sublot)
        .options(selectinload(Sublot.tipo_produto))
        .where(Sublot.status == "disponivel")
    )).scalars().all()

    settlement_query = select(FinancialSettlement)
    if data_inicio:
        settlement_query = settlement_query.where(FinancialSettlement.data_acerto >= data_inicio)
    if data_fim:
        settlement_query = settlement_query.where(FinancialSettlement.data_acerto <= data_fim)
    settlements = (await db.execute(settlement_query)).scalars().all()

    kpis, details = calculate_consolidated_kpis(
        [batch_record(b) for b in batches],
        items,
        documents,
        await load_daily_history(db),
        [sublot_stock(s) for s in sublots],
        [settlement_record(s) for s in settlements],
        owner_id=dono_id,
    )

    data = asdict(kpis)
    data["cenarios"] = {
        cenario.value: ScenarioTotalsResponse.model_validate(totals)
        for cenario, totals in kpis.cenarios.items()
    }
    data["detalhes"] = [
        BatchEconomyResponse(**{**asdict(d), "cenario": d.cenario.value}) for d in details
    ]
    return KPIResponse(**data)


@router.get("/owner-statement", response_model=OwnerStatementResponse)
async def owner_statement(
    *,
    db: AsyncSession = Depends(get_db),
    dono_id: Optional[int] = Query(None, description="Somente este dono"),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
) -> Any:
    """Demonstrativo de operação por dono"""
    owners = (await db.execute(
        select(MaterialOwner).where(MaterialOwner.ativo == True).order_by(MaterialOwner.nome)  # noqa: E712
    )).scalars().all()

    entry_query = select(Entry).options(selectinload(Entry.tipo_entrada))
    # Todos os beneficiamentos do período, inclusive em andamento
    batch_query = select(ProcessingBatch).options(*input_sublot_options())
    exit_query = select(Exit).options(
        selectinload(Exit.itens).selectinload(ExitItem.sublote).selectinload(Sublot.dono),
        selectinload(Exit.itens).selectinload(ExitItem.sublote)
        .selectinload(Sublot.entrada).selectinload(Entry.tipo_entrada),
    )
    if data_inicio:
        entry_query = entry_query.where(Entry.data_entrada >= data_inicio)
        batch_query = batch_query.where(ProcessingBatch.data_inicio >= data_inicio)
        exit_query = exit_query.where(Exit.data_saida >= data_inicio)
    if data_fim:
        entry_query = entry_query.where(Entry.data_entrada <= data_fim)
        batch_query = batch_query.where(ProcessingBatch.data_inicio <= data_fim)
        exit_query = exit_query.where(Exit.data_saida <= data_fim)

    entries = (await db.execute(entry_query)).scalars().all()
    batches = (await db.execute(batch_query)).scalars().unique().all()
    exits = (await db.execute(exit_query)).scalars().unique().all()

    batch_rows = []
    for b in batches:
        first = b.itens_entrada[0].sublote if b.itens_entrada else None
        batch_rows.append(BatchOwnerData(
            owner_id=first.dono_id if first else None,
            custo_frete_ida=to_float(b.custo_frete_ida),
            custo_frete_volta=to_float(b.custo_frete_volta),
            custo_mo_terceiro=to_float(b.custo_mo_terceiro),
            custo_mo_ibrac=to_float(b.custo_mo_ibrac),
            lucro_perda_valor=to_float(b.lucro_perda_valor),
        ))

    exit_rows = []
    for s in exits:
        ref = sublot_ref(s.itens[0].sublote) if s.itens else None
        exit_rows.append(ExitData(
            owner_id=ref.owner_id if ref else None,
            owner_is_company=ref.owner_is_company if ref else False,
            generates_cost=ref.generates_cost if ref else None,
            peso_total_kg=to_float(s.peso_total_kg) or 0.0,
            valor_total=to_float(s.valor_total),
            custos_cobrados=to_float(s.custos_cobrados),
            comissao_ibrac=to_float(s.comissao_ibrac),
            valor_repasse_dono=to_float(s.valor_repasse_dono),
        ))

    rows = build_owner_statement(
        [
            OwnerData(
                id=o.id,
                nome=o.nome,
                is_ibrac=bool(o.is_ibrac),
                taxa_operacao_pct=to_float(o.taxa_operacao_pct) or 0.0,
            )
            for o in owners
        ],
        [
            EntryData(
                owner_id=e.dono_id,
                peso_liquido_kg=to_float(e.peso_liquido_kg) or 0.0,
                valor_total=to_float(e.valor_total),
                # Sem tipo de entrada a operação não conta como compra
                generates_cost=bool(e.tipo_entrada and e.tipo_entrada.gera_custo),
            )
            for e in entries
        ],
        batch_rows,
        exit_rows,
        owner_filter=dono_id,
    )

    return OwnerStatementResponse(
        data=[
            OwnerStatementRow(**{
                **asdict(r),
                "cenario_predominante": r.cenario_predominante.value if r.cenario_predominante else None,
            })
            for r in rows
        ],
        totais=StatementTotalsResponse.model_validate(statement_totals(rows)),
    )
