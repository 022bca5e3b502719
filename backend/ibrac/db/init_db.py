import asyncio
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.db.session import engine, SessionLocal
from ibrac.db.base import Base

# Importa todos os modelos para que as tabelas sejam registradas
import ibrac.models  # noqa: F401
from ibrac.models.catalog import EntryType, ProductType

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_TYPES = [
    {"nome": "Compra", "descricao": "Compra de material", "gera_custo": True},
    {"nome": "Remessa para industrialização", "descricao": "Material do cliente para beneficiar", "gera_custo": False},
    {"nome": "Compra para terceiro", "descricao": "Compra em nome do dono do material", "gera_custo": True},
]

DEFAULT_PRODUCT_TYPES = [
    {"nome": "Sucata de cobre", "codigo": "SUC-CU"},
    {"nome": "Vergalhão de cobre", "codigo": "VERG-CU"},
]


async def ensure_tables_exist() -> None:
    """
    Garante que as tabelas existem (chamado na inicialização da aplicação)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_defaults(db: AsyncSession) -> int:
    """Cadastra tipos de entrada e de produto padrão em banco vazio"""
    created = 0

    if not (await db.execute(select(func.count(EntryType.id)))).scalar():
        for data in DEFAULT_ENTRY_TYPES:
            db.add(EntryType(**data))
            created += 1

    if not (await db.execute(select(func.count(ProductType.id)))).scalar():
        for data in DEFAULT_PRODUCT_TYPES:
            db.add(ProductType(**data))
            created += 1

    if created:
        await db.commit()
        logger.info(f"📦 {created} cadastros padrão criados")
    return created


async def init_db() -> None:
    await ensure_tables_exist()
    async with SessionLocal() as db:
        await seed_defaults(db)


if __name__ == "__main__":
    asyncio.run(init_db())
