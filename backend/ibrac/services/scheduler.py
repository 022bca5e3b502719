"""
Agendador de tarefas
APScheduler com a busca diária das cotações LME
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import SQLAlchemyError

from ibrac.core.config import settings
from ibrac.db.session import SessionLocal
from ibrac.services.audit import record_audit
from ibrac.services.lme_fetcher import LMEFetchError, fetch_lme_quote, upsert_lme_price

logger = logging.getLogger(__name__)

# Instância global do agendador
scheduler: Optional[AsyncIOScheduler] = None


async def fetch_lme_job() -> None:
    """Busca as cotações do dia e grava no histórico"""
    try:
        quote = await fetch_lme_quote()
    except LMEFetchError as e:
        logger.warning(f"⚠️ Busca automática LME não realizada: {e}")
        return

    try:
        async with SessionLocal() as db:
            price = await upsert_lme_price(db, quote.as_record())
            record_audit(db, "fetch", price, user_id="scheduler")
            await db.commit()
    except SQLAlchemyError as e:
        logger.error(f"❌ Falha ao gravar cotação LME: {e}")
        return

    logger.info(f"✅ Cotação LME de {quote.data} importada: cobre R$ {quote.cobre_brl_kg}/kg")


def init_scheduler() -> None:
    """Inicializa e inicia o agendador"""
    global scheduler

    if not settings.LME_FETCH_ENABLED:
        logger.info("📈 Busca automática LME desativada")
        return
    if not settings.METALS_API_KEY:
        logger.info("📈 METALS_API_KEY não configurada, busca automática LME desativada")
        return

    scheduler = AsyncIOScheduler()

    # Dias úteis, após o fechamento da LME
    scheduler.add_job(
        fetch_lme_job,
        trigger=CronTrigger(
            day_of_week="mon-fri",
            hour=settings.LME_FETCH_HOUR,
            minute=settings.LME_FETCH_MINUTE,
        ),
        id="fetch_lme",
        name="Busca diária de cotações LME",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"⏰ Agendador iniciado - busca LME: dias úteis às "
        f"{settings.LME_FETCH_HOUR:02d}:{settings.LME_FETCH_MINUTE:02d}"
    )


def shutdown_scheduler() -> None:
    """Encerra o agendador"""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Agendador encerrado")


def get_scheduler_status() -> dict:
    """Estado do agendador e próximas execuções"""
    if not scheduler:
        return {
            "enabled": False,
            "running": False,
            "jobs": [],
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        })

    return {
        "enabled": settings.LME_FETCH_ENABLED,
        "running": scheduler.running,
        "jobs": jobs,
    }
