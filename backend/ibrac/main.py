from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from ibrac.api.api_v1.api import api_router
from ibrac.core.config import settings
from ibrac.core.logging_config import setup_logging, get_logger
from ibrac.db.init_db import init_db
from ibrac.services.scheduler import init_scheduler, shutdown_scheduler, get_scheduler_status

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tabelas e cadastros padrão, depois o agendador das cotações LME"""
    logger.info(f"🚀 Iniciando {settings.PROJECT_NAME}...")

    try:
        await init_db()
        logger.info("📊 Banco de dados pronto")
    except SQLAlchemyError as e:
        # A API sobe mesmo assim; os endpoints devolvem o erro do banco
        logger.warning(f"Aviso na inicialização do banco: {e}")

    init_scheduler()
    yield
    shutdown_scheduler()
    logger.info("🛑 Aplicação encerrada")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Beneficiamento de cobre: custos por cenário, estoque de sublotes e cotações LME",
    lifespan=lifespan,
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
logger.info(f"Rotas registradas em {settings.API_V1_STR}, CORS: {settings.BACKEND_CORS_ORIGINS}")


@app.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} - API", "docs": "/docs"}


@app.get("/health")
async def health():
    """Verificação de saúde, com o estado da busca agendada de cotações"""
    return {"status": "ok", "scheduler": get_scheduler_status()}
