"""Entradas de material API"""

from typing import Any, Optional
from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ibrac.core.deps import get_db
from ibrac.core.logging_config import get_logger
from ibrac.models.owner import MaterialOwner
from ibrac.models.catalog import EntryType, ProductType
from ibrac.models.entry import Entry
from ibrac.models.sublot import Sublot
from ibrac.schemas.entry import EntryCreate, EntryResponse, EntryListResponse
from ibrac.services.audit import record_audit
from ibrac.services.codes import generate_code
from ibrac.services.records import to_float, to_decimal

logger = get_logger(__name__)

router = APIRouter()


def entry_options():
    return (
        selectinload(Entry.tipo_entrada),
        selectinload(Entry.tipo_produto),
        selectinload(Entry.dono),
        selectinload(Entry.sublotes),
    )


async def get_entry_or_404(db: AsyncSession, entry_id: int) -> Entry:
    result = await db.execute(
        select(Entry)
        .options(*entry_options())
        .where(Entry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    entry = result.scalars().first()
    if not entry:
        raise HTTPException(status_code=404, detail="Entrada não encontrada")
    return entry


def entry_unit_cost(entry: Entry) -> Optional[Decimal]:
    """Custo unitário do sublote: valor do documento / peso líquido, ou o valor unitário informado"""
    if entry.valor_total and entry.peso_liquido_kg:
        return (Decimal(entry.valor_total) / Decimal(entry.peso_liquido_kg)).quantize(Decimal("0.0001"))
    if entry.valor_unitario is not None:
        return Decimal(entry.valor_unitario)
    return None


def build_entry_response(entry: Entry) -> EntryResponse:
    """Montar resposta da entrada"""
    sublot = entry.sublotes[0] if entry.sublotes else None
    return EntryResponse(
        id=entry.id,
        codigo=entry.codigo,
        data_entrada=entry.data_entrada,
        tipo_entrada_id=entry.tipo_entrada_id,
        tipo_produto_id=entry.tipo_produto_id,
        dono_id=entry.dono_id,
        tipo_material=entry.tipo_material,
        nota_fiscal=entry.nota_fiscal,
        parceiro=entry.parceiro,
        peso_bruto_kg=float(entry.peso_bruto_kg),
        peso_liquido_kg=float(entry.peso_liquido_kg),
        teor_cobre=to_float(entry.teor_cobre),
        valor_unitario=to_float(entry.valor_unitario),
        valor_total=to_float(entry.valor_total),
        taxa_financeira_pct=to_float(entry.taxa_financeira_pct),
        status=entry.status,
        observacoes=entry.observacoes,
        created_at=entry.created_at,

        tipo_entrada_nome=entry.tipo_entrada.nome if entry.tipo_entrada else "",
        gera_custo=entry.gera_custo,
        tipo_produto_nome=entry.tipo_produto.nome if entry.tipo_produto else "",
        dono_nome=entry.dono.nome if entry.dono else "",
        sublote_id=sublot.id if sublot else None,
        sublote_codigo=sublot.codigo if sublot else "",
    )


@router.get("/", response_model=EntryListResponse)
async def list_entries(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    dono_id: Optional[int] = Query(None, description="Dono"),
    tipo_entrada_id: Optional[int] = Query(None, description="Tipo de entrada"),
    data_inicio: Optional[date] = Query(None, description="A partir de"),
    data_fim: Optional[date] = Query(None, description="Até"),
    search: Optional[str] = Query(None, description="Código, nota fiscal ou parceiro"),
) -> Any:
    """Listar entradas"""
    query = select(Entry).options(*entry_options())
    conditions = []

    if dono_id:
        conditions.append(Entry.dono_id == dono_id)
    if tipo_entrada_id:
        conditions.append(Entry.tipo_entrada_id == tipo_entrada_id)
    if data_inicio:
        conditions.append(Entry.data_entrada >= data_inicio)
    if data_fim:
        conditions.append(Entry.data_entrada <= data_fim)
    if search:
        conditions.append(
            or_(
                Entry.codigo.ilike(f"%{search}%"),
                Entry.nota_fiscal.ilike(f"%{search}%"),
                Entry.parceiro.ilike(f"%{search}%"),
            )
        )

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Entry.data_entrada.desc(), Entry.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    entries = (await db.execute(query)).scalars().unique().all()

    return EntryListResponse(
        data=[build_entry_response(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=EntryResponse)
async def create_entry(
    *,
    db: AsyncSession = Depends(get_db),
    entry_in: EntryCreate,
) -> Any:
    """Registrar entrada

    Gera um sublote com o peso líquido, o dono e o custo unitário da entrada.
    """
    tipo_entrada = await db.get(EntryType, entry_in.tipo_entrada_id) if entry_in.tipo_entrada_id else None
    if entry_in.tipo_entrada_id and not tipo_entrada:
        raise HTTPException(status_code=404, detail="Tipo de entrada não encontrado")
    if entry_in.tipo_produto_id and not await db.get(ProductType, entry_in.tipo_produto_id):
        raise HTTPException(status_code=404, detail="Tipo de produto não encontrado")
    if entry_in.dono_id and not await db.get(MaterialOwner, entry_in.dono_id):
        raise HTTPException(status_code=404, detail="Dono não encontrado")

    data = entry_in.model_dump()
    for field in ("peso_bruto_kg", "peso_liquido_kg", "peso_nf_kg", "teor_cobre",
                  "valor_total", "taxa_financeira_pct"):
        data[field] = to_decimal(data[field])
    data["valor_unitario"] = to_decimal(data["valor_unitario"], "0.0001")

    entry = Entry(**data, codigo=await generate_code(db, Entry, "ENT"))
    db.add(entry)
    await db.flush()

    sublot = Sublot(
        codigo=await generate_code(db, Sublot, "SUB"),
        entrada_id=entry.id,
        tipo_produto_id=entry.tipo_produto_id,
        dono_id=entry.dono_id,
        gera_custo_origem=tipo_entrada.gera_custo if tipo_entrada else None,
        peso_kg=entry.peso_liquido_kg,
        custo_unitario_total=entry_unit_cost(entry),
        teor_cobre=entry.teor_cobre,
        status="disponivel",
    )
    db.add(sublot)
    await db.flush()

    record_audit(db, "create", entry, extra={"sublote_codigo": sublot.codigo})
    await db.commit()

    logger.info(f"📥 Entrada {entry.codigo}: {entry.peso_liquido_kg} kg -> sublote {sublot.codigo}")
    entry = await get_entry_or_404(db, entry.id)
    return build_entry_response(entry)


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    *,
    db: AsyncSession = Depends(get_db),
    entry_id: int,
) -> Any:
    """Detalhe da entrada"""
    entry = await get_entry_or_404(db, entry_id)
    return build_entry_response(entry)


@router.delete("/{entry_id}")
async def delete_entry(
    *,
    db: AsyncSession = Depends(get_db),
    entry_id: int,
) -> Any:
    """Excluir entrada cujo sublote ainda não foi movimentado"""
    entry = await get_entry_or_404(db, entry_id)

    for sublot in entry.sublotes:
        if sublot.status != "disponivel" or sublot.peso_kg != entry.peso_liquido_kg:
            raise HTTPException(
                status_code=400,
                detail=f"Sublote {sublot.codigo} já movimentado, a entrada não pode ser excluída",
            )

    record_audit(db, "delete", entry)
    for sublot in entry.sublotes:
        await db.delete(sublot)
    await db.delete(entry)
    await db.commit()
    return {"message": "Entrada excluída"}
