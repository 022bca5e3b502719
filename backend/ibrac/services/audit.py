"""Registro de auditoria"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def snapshot(obj: Any) -> Dict[str, Any]:
    """Colunas de uma linha em formato JSON"""
    mapper = inspect(obj).mapper
    return {col.key: _json_value(getattr(obj, col.key)) for col in mapper.column_attrs}


def record_audit(
    db: AsyncSession,
    action: str,
    obj: Any,
    user_id: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Adiciona o log à sessão; o commit fica com quem chamou"""
    data = snapshot(obj)
    if extra:
        data.update({k: _json_value(v) for k, v in extra.items()})
    log = AuditLog(
        action=action,
        table_name=obj.__tablename__,
        record_id=getattr(obj, "id", None),
        record_data=data,
        user_id=user_id,
    )
    db.add(log)
    logger.debug(f"Auditoria: {action} {obj.__tablename__}:{log.record_id}")
    return log
