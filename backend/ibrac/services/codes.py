"""Geração de códigos sequenciais por dia"""

from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession


async def generate_code(db: AsyncSession, model, prefix: str) -> str:
    """Prefixo + data + sequência, ex. ENT20250604-001

    Registros adicionados na mesma transação precisam de flush antes da
    próxima chamada.
    """
    today = datetime.utcnow().strftime("%Y%m%d")
    full_prefix = f"{prefix}{today}"

    result = await db.execute(
        select(func.count(model.id)).where(model.codigo.like(f"{full_prefix}%"))
    )
    count = result.scalar() or 0

    return f"{full_prefix}-{count + 1:03d}"
