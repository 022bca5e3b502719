import os
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from ibrac.core.config import settings


def async_database_uri(uri: str) -> str:
    """sqlite:/// -> sqlite+aiosqlite:///"""
    if uri.startswith("sqlite:///"):
        return uri.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return uri


# SQL só é impresso quando SQL_DEBUG=true
engine = create_async_engine(
    async_database_uri(settings.SQLITE_DATABASE_URI),
    echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
    future=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
