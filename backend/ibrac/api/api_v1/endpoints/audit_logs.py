"""Log de auditoria API"""

from typing import Any, Optional
from datetime import date, datetime, time
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ibrac.core.deps import get_db
from ibrac.models.audit_log import AuditLog
from ibrac.schemas.audit_log import AuditLogResponse, AuditLogListResponse

router = APIRouter()


@router.get("/", response_model=AuditLogListResponse)
async def list_logs(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None),
    table_name: Optional[str] = Query(None),
    record_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> Any:
    """Listar registros de auditoria"""
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if table_name:
        conditions.append(AuditLog.table_name == table_name)
    if record_id:
        conditions.append(AuditLog.record_id == record_id)
    if start_date:
        conditions.append(AuditLog.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        conditions.append(AuditLog.created_at <= datetime.combine(end_date, time.max))

    query = select(AuditLog)
    count_query = select(func.count(AuditLog.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    logs = (await db.execute(query)).scalars().all()

    return AuditLogListResponse(
        data=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        limit=limit,
    )
