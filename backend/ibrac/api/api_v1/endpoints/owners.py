"""Donos de material API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.core.deps import get_db
from ibrac.models.owner import MaterialOwner
from ibrac.models.entry import Entry
from ibrac.models.sublot import Sublot
from ibrac.schemas.owner import OwnerCreate, OwnerUpdate, OwnerResponse, OwnerListResponse
from ibrac.services.audit import record_audit

router = APIRouter()


@router.get("/", response_model=OwnerListResponse)
async def list_owners(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    ativo: Optional[bool] = Query(None, description="Filtrar por ativo"),
    search: Optional[str] = Query(None, description="Nome ou documento"),
) -> Any:
    """Listar donos de material"""
    query = select(MaterialOwner)
    conditions = []

    if ativo is not None:
        conditions.append(MaterialOwner.ativo == ativo)
    if search:
        conditions.append(
            or_(
                MaterialOwner.nome.ilike(f"%{search}%"),
                MaterialOwner.documento.ilike(f"%{search}%"),
            )
        )

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(MaterialOwner.nome)
    query = query.offset((page - 1) * limit).limit(limit)
    owners = (await db.execute(query)).scalars().all()

    return OwnerListResponse(
        data=[OwnerResponse.model_validate(o) for o in owners],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=OwnerResponse)
async def create_owner(
    *,
    db: AsyncSession = Depends(get_db),
    owner_in: OwnerCreate,
) -> Any:
    """Cadastrar dono"""
    if owner_in.is_ibrac:
        existing = (await db.execute(
            select(MaterialOwner).where(MaterialOwner.is_ibrac == True)  # noqa: E712
        )).scalars().first()
        if existing:
            raise HTTPException(status_code=400, detail=f"Já existe um dono IBRAC: {existing.nome}")

    owner = MaterialOwner(**owner_in.model_dump())
    db.add(owner)
    await db.flush()
    record_audit(db, "create", owner)
    await db.commit()
    await db.refresh(owner)
    return OwnerResponse.model_validate(owner)


@router.get("/{owner_id}", response_model=OwnerResponse)
async def get_owner(
    *,
    db: AsyncSession = Depends(get_db),
    owner_id: int,
) -> Any:
    """Detalhe do dono"""
    owner = await db.get(MaterialOwner, owner_id)
    if not owner:
        raise HTTPException(status_code=404, detail="Dono não encontrado")
    return OwnerResponse.model_validate(owner)


@router.put("/{owner_id}", response_model=OwnerResponse)
async def update_owner(
    *,
    db: AsyncSession = Depends(get_db),
    owner_id: int,
    owner_in: OwnerUpdate,
) -> Any:
    """Alterar dono"""
    owner = await db.get(MaterialOwner, owner_id)
    if not owner:
        raise HTTPException(status_code=404, detail="Dono não encontrado")

    update_data = owner_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(owner, field, value)

    record_audit(db, "update", owner)
    await db.commit()
    await db.refresh(owner)
    return OwnerResponse.model_validate(owner)


@router.delete("/{owner_id}")
async def delete_owner(
    *,
    db: AsyncSession = Depends(get_db),
    owner_id: int,
) -> Any:
    """Excluir dono sem movimentação"""
    owner = await db.get(MaterialOwner, owner_id)
    if not owner:
        raise HTTPException(status_code=404, detail="Dono não encontrado")

    entries_count = (await db.execute(
        select(func.count(Entry.id)).where(Entry.dono_id == owner_id)
    )).scalar() or 0
    sublots_count = (await db.execute(
        select(func.count(Sublot.id)).where(Sublot.dono_id == owner_id)
    )).scalar() or 0

    if entries_count or sublots_count:
        raise HTTPException(
            status_code=400,
            detail=f"Dono possui {entries_count} entradas e {sublots_count} sublotes, desative em vez de excluir",
        )

    record_audit(db, "delete", owner)
    await db.delete(owner)
    await db.commit()
    return {"message": "Dono excluído"}
