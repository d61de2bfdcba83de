"""
端点公共查询：存在性检查、分页
"""
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.models import Branch, Employee, Vehicle, VehicleStatusHistory


async def get_branch_or_404(db: AsyncSession, branch_id: int) -> Branch:
    """分支必须存在且属于默认公司"""
    branch = await db.get(Branch, branch_id)
    if (
        not branch
        or branch.deleted_at is not None
        or branch.company_id != settings.DEFAULT_COMPANY_ID
    ):
        raise HTTPException(status_code=404, detail="分支不存在")
    return branch


async def get_vehicle_or_404(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(
        select(Vehicle)
        .where(
            Vehicle.id == vehicle_id,
            Vehicle.company_id == settings.DEFAULT_COMPANY_ID,
            Vehicle.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    vehicle = result.unique().scalar_one_or_none()
    if not vehicle:
        raise HTTPException(status_code=404, detail="车辆不存在")
    return vehicle


async def get_employee_in_branch(
    db: AsyncSession, employee_id: int, branch_id: int, active_only: bool = False
) -> Employee:
    """员工必须存在且属于指定分支"""
    query = select(Employee).where(
        Employee.id == employee_id,
        Employee.branch_id == branch_id,
        Employee.company_id == settings.DEFAULT_COMPANY_ID,
        Employee.deleted_at.is_(None),
    )
    if active_only:
        query = query.where(Employee.active == True)  # noqa: E712
    result = await db.execute(query)
    employee = result.unique().scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="员工不存在或不属于该分支")
    return employee


async def paginate(db: AsyncSession, query, count_query, page: int, limit: int) -> Tuple[list, int]:
    """执行分页查询，返回 (当前页数据, 总数)"""
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.unique().scalars().all()), total


def apply_update(entity, update_data: dict) -> None:
    """写入更新字段；非空列收到 null 时保留原值"""
    columns = entity.__table__.columns
    for field, value in update_data.items():
        if value is None and field in columns and not columns[field].nullable:
            continue
        setattr(entity, field, value)


def strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def add_status_history(
    db: AsyncSession,
    vehicle: Vehicle,
    notes: Optional[str] = None,
    km: Optional[int] = None,
    status: Optional[str] = None,
    maintenance_order_id: Optional[int] = None,
    created_by: Optional[int] = None,
) -> VehicleStatusHistory:
    """写一条车辆状态/里程历史（随调用方事务提交）"""
    history = VehicleStatusHistory(
        vehicle_id=vehicle.id,
        status=status or vehicle.status,
        km=km if km is not None else vehicle.current_km,
        notes=notes,
        maintenance_order_id=maintenance_order_id,
        created_by=created_by,
    )
    db.add(history)
    return history
