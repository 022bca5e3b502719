"""Cadastros de apoio API - tipos de entrada e tipos de produto"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.core.deps import get_db
from ibrac.models.catalog import EntryType, ProductType
from ibrac.schemas.catalog import (
    EntryTypeCreate, EntryTypeResponse, ProductTypeCreate, ProductTypeResponse
)

router = APIRouter()


# ==================== Tipos de entrada ====================

@router.get("/entry-types", response_model=List[EntryTypeResponse])
async def list_entry_types(
    *,
    db: AsyncSession = Depends(get_db),
    ativo: Optional[bool] = Query(None),
) -> Any:
    """Listar tipos de entrada"""
    query = select(EntryType).order_by(EntryType.nome)
    if ativo is not None:
        query = query.where(EntryType.ativo == ativo)
    result = await db.execute(query)
    return [EntryTypeResponse.model_validate(t) for t in result.scalars().all()]


@router.post("/entry-types", response_model=EntryTypeResponse)
async def create_entry_type(
    *,
    db: AsyncSession = Depends(get_db),
    type_in: EntryTypeCreate,
) -> Any:
    """Cadastrar tipo de entrada"""
    existing = (await db.execute(
        select(EntryType).where(EntryType.nome == type_in.nome)
    )).scalars().first()
    if existing:
        raise HTTPException(status_code=400, detail="Tipo de entrada já cadastrado")

    entry_type = EntryType(**type_in.model_dump())
    db.add(entry_type)
    await db.commit()
    await db.refresh(entry_type)
    return EntryTypeResponse.model_validate(entry_type)


@router.put("/entry-types/{type_id}", response_model=EntryTypeResponse)
async def update_entry_type(
    *,
    db: AsyncSession = Depends(get_db),
    type_id: int,
    type_in: EntryTypeCreate,
) -> Any:
    """Alterar tipo de entrada"""
    entry_type = await db.get(EntryType, type_id)
    if not entry_type:
        raise HTTPException(status_code=404, detail="Tipo de entrada não encontrado")

    for field, value in type_in.model_dump().items():
        setattr(entry_type, field, value)
    await db.commit()
    await db.refresh(entry_type)
    return EntryTypeResponse.model_validate(entry_type)


# ==================== Tipos de produto ====================

@router.get("/product-types", response_model=List[ProductTypeResponse])
async def list_product_types(
    *,
    db: AsyncSession = Depends(get_db),
    ativo: Optional[bool] = Query(None),
) -> Any:
    """Listar tipos de produto"""
    query = select(ProductType).order_by(ProductType.nome)
    if ativo is not None:
        query = query.where(ProductType.ativo == ativo)
    result = await db.execute(query)
    return [ProductTypeResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/product-types", response_model=ProductTypeResponse)
async def create_product_type(
    *,
    db: AsyncSession = Depends(get_db),
    product_in: ProductTypeCreate,
) -> Any:
    """Cadastrar tipo de produto"""
    product = ProductType(**product_in.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return ProductTypeResponse.model_validate(product)


@router.put("/product-types/{product_id}", response_model=ProductTypeResponse)
async def update_product_type(
    *,
    db: AsyncSession = Depends(get_db),
    product_id: int,
    product_in: ProductTypeCreate,
) -> Any:
    """Alterar tipo de produto"""
    product = await db.get(ProductType, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Tipo de produto não encontrado")

    for field, value in product_in.model_dump().items():
        setattr(product, field, value)
    await db.commit()
    await db.refresh(product)
    return ProductTypeResponse.model_validate(product)
