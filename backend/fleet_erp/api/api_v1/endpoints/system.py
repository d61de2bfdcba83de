"""
系统API - 定时任务状态与手动触发
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.deps import Operator, get_db, require_admin
from fleet_erp.services.scheduler import get_scheduler_status, sync_vacation_statuses

router = APIRouter()


@router.get("/scheduler")
async def scheduler_status(
    *,
    operator: Optional[Operator] = Depends(require_admin)) -> Any:
    """定时任务调度器状态"""
    return get_scheduler_status()


@router.post("/vacations/sync")
async def trigger_vacation_sync(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_admin)) -> Any:
    """立即执行一次假期状态同步"""
    return await sync_vacation_statuses(db)
