"""
定时任务调度器服务
使用 APScheduler 每天推进假期状态
"""

import logging
from datetime import date
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.db.session import SessionLocal
from fleet_erp.models import Vacation

logger = logging.getLogger(__name__)

# 全局调度器实例
scheduler: Optional[AsyncIOScheduler] = None


async def sync_vacation_statuses(db: AsyncSession, today: Optional[date] = None) -> dict:
    """
    推进假期状态

    - PLANNED 且开始日期已到 → IN_PROGRESS
    - PLANNED/IN_PROGRESS 且结束日期已过 → COMPLETED
    """
    today = today or date.today()
    result = await db.execute(
        select(Vacation).where(
            Vacation.deleted_at.is_(None),
            Vacation.status.in_(("PLANNED", "IN_PROGRESS")),
        )
    )
    started = 0
    completed = 0
    for vacation in result.scalars().all():
        if vacation.end_date < today:
            vacation.status = "COMPLETED"
            completed += 1
        elif vacation.status == "PLANNED" and vacation.start_date <= today:
            vacation.status = "IN_PROGRESS"
            started += 1

    await db.commit()
    return {"started": started, "completed": completed}


async def run_vacation_sync():
    """定时任务入口"""
    try:
        async with SessionLocal() as db:
            counts = await sync_vacation_statuses(db)
        logger.info(f"✅ 假期状态同步完成: 开始 {counts['started']} 条, 结束 {counts['completed']} 条")
    except Exception:
        logger.exception("❌ 假期状态同步失败")


def init_scheduler():
    """初始化并启动调度器"""
    global scheduler

    if not settings.VACATION_SYNC_ENABLED:
        logger.info("🏖️ 假期状态同步已禁用")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_vacation_sync,
        trigger=CronTrigger(
            hour=settings.VACATION_SYNC_HOUR,
            minute=settings.VACATION_SYNC_MINUTE
        ),
        id="vacation_status_sync",
        name="假期状态同步",
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"⏰ 定时任务调度器已启动 - 假期状态同步时间: 每天 "
        f"{settings.VACATION_SYNC_HOUR:02d}:{settings.VACATION_SYNC_MINUTE:02d}"
    )


def shutdown_scheduler():
    """关闭调度器"""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ 定时任务调度器已关闭")


def get_scheduler_status() -> dict:
    """获取调度器状态"""
    if not scheduler:
        return {
            "enabled": settings.VACATION_SYNC_ENABLED,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.VACATION_SYNC_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
