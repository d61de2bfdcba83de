"""操作日志 Schema"""
from datetime import datetime
from typing import Optional, List, Any
from pydantic import BaseModel

from fleet_erp.schemas.common import PageMeta


class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    action_display: str = ""
    resource_type: str
    resource_id: Optional[int] = None
    description: Optional[str] = None
    new_value: Optional[Any] = None
    created_at: datetime


class AuditLogListResponse(PageMeta):
    data: List[AuditLogResponse]
