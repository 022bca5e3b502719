"""Injeção de dependências"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Sessão de banco por requisição
    """
    async with SessionLocal() as session:
        yield session
