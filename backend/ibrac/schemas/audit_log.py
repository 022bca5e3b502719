"""Log de auditoria Schema"""
from typing import Optional, List, Any, Dict
from pydantic import BaseModel
from datetime import datetime


class AuditLogResponse(BaseModel):
    id: int
    action: str
    action_display: str = ""
    table_name: str
    record_id: Optional[int] = None
    record_data: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    data: List[AuditLogResponse]
    total: int
    page: int
    limit: int
