"""
操作日志API（只读）
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.deps import Operator, get_db, require_permission
from fleet_erp.models import AuditLog
from fleet_erp.schemas.audit_log import AuditLogResponse, AuditLogListResponse
from fleet_erp.schemas.common import count_pages
from fleet_erp.api.api_v1.endpoints.common import paginate

router = APIRouter()


@router.get("/", response_model=AuditLogListResponse)
async def list_audit_logs(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("audit.view")),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100)) -> Any:
    """获取操作日志（最新在前）"""
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if resource_type:
        conditions.append(AuditLog.resource_type == resource_type)
    if resource_id is not None:
        conditions.append(AuditLog.resource_id == resource_id)
    if user_id is not None:
        conditions.append(AuditLog.user_id == user_id)
    if start_date:
        conditions.append(AuditLog.created_at >= start_date)
    if end_date:
        conditions.append(AuditLog.created_at <= end_date)

    query = select(AuditLog).where(*conditions).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    count_query = select(func.count(AuditLog.id)).where(*conditions)
    logs, total = await paginate(db, query, count_query, page, limit)

    return AuditLogListResponse(
        data=[
            AuditLogResponse(
                id=log.id,
                user_id=log.user_id,
                action=log.action,
                action_display=log.action_display,
                resource_type=log.resource_type,
                resource_id=log.resource_id,
                description=log.description,
                new_value=log.new_value,
                created_at=log.created_at)
            for log in logs
        ],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))
