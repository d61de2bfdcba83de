"""
维修单状态变更：开始、暂停、完成、取消

完成时按时间线计算作业时长，按服务项和用料计算费用，
车辆恢复运行，有费用时生成一笔待付账款
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import Operator, get_db, require_permission, validate_branch_access
from fleet_erp.models import AccountPayable, MaintenanceOrder
from fleet_erp.schemas.maintenance import MaintenanceAction, MaintenanceOrderResponse
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.maintenance_order import calculate_total_minutes
from fleet_erp.api.api_v1.endpoints.common import add_status_history
from .core import add_timeline, build_order_response, ensure_open, load_order, order_cost

logger = logging.getLogger(__name__)

router = APIRouter()


def release_vehicle(
    db: AsyncSession, order: MaintenanceOrder, notes: str, user_id: Optional[int]
) -> None:
    """车辆恢复运行并记录历史"""
    vehicle = order.vehicle
    vehicle.status = "ACTIVE"
    if order.km_at_entry is not None:
        vehicle.current_km = order.km_at_entry
    add_status_history(
        db, vehicle, notes=notes, status="ACTIVE",
        maintenance_order_id=order.id, created_by=user_id,
    )


@router.post("/{order_id}/start", response_model=MaintenanceOrderResponse)
async def start_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.update")),
    order_id: int,
    action_in: Optional[MaintenanceAction] = None) -> Any:
    """开始（或恢复）作业"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)
    notes = action_in.notes if action_in else None
    if order.status not in ("OPEN", "PAUSED"):
        raise HTTPException(status_code=400, detail="只有待开始或已暂停的维修单可以开始作业")

    event = "RESUMED" if order.status == "PAUSED" else "STARTED"
    order.status = "IN_PROGRESS"
    add_timeline(order, event, notes, operator.user_id if operator else None)
    await db.commit()
    return build_order_response(await load_order(db, order_id))


@router.post("/{order_id}/pause", response_model=MaintenanceOrderResponse)
async def pause_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.update")),
    order_id: int,
    action_in: Optional[MaintenanceAction] = None) -> Any:
    """暂停作业"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)
    notes = action_in.notes if action_in else None
    if order.status != "IN_PROGRESS":
        raise HTTPException(status_code=400, detail="只有进行中的维修单可以暂停")

    order.status = "PAUSED"
    add_timeline(order, "PAUSED", notes, operator.user_id if operator else None)
    await db.commit()
    return build_order_response(await load_order(db, order_id))


@router.post("/{order_id}/complete", response_model=MaintenanceOrderResponse)
async def complete_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.complete")),
    order_id: int,
    action_in: Optional[MaintenanceAction] = None) -> Any:
    """完成维修单"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)
    notes = action_in.notes if action_in else None
    ensure_open(order)

    user_id = operator.user_id if operator else None
    now = datetime.utcnow()
    add_timeline(order, "COMPLETED", notes, user_id, at=now)
    order.total_time_minutes = calculate_total_minutes(
        [(entry.event, entry.created_at) for entry in order.timeline], now=now
    )
    order.total_cost = order_cost(order)
    order.status = "COMPLETED"

    release_vehicle(db, order, f"维修单 {order.order_number} 已完成", user_id)

    if order.total_cost > 0:
        plate = order.vehicle.primary_plate or "车辆"
        db.add(AccountPayable(
            company_id=settings.DEFAULT_COMPANY_ID,
            branch_id=order.branch_id,
            description=f"维修单 {order.order_number} - {plate}",
            amount=order.total_cost,
            due_date=now,
            status="PENDING",
            origin_type="MAINTENANCE",
            origin_id=order.id,
            document_number=order.order_number,
            created_by=user_id,
        ))

    create_audit_log(
        db, action="complete", resource_type="maintenance_order", resource_id=order.id,
        description=f"完成维修单 {order.order_number}",
        new_value={
            "total_cost": float(order.total_cost),
            "total_time_minutes": order.total_time_minutes,
        },
        user_id=user_id,
    )
    await db.commit()

    logger.info(
        f"✅ 维修单已完成: {order.order_number}, 费用 {order.total_cost}, "
        f"作业 {order.total_time_minutes} 分钟"
    )
    return build_order_response(await load_order(db, order_id))


@router.post("/{order_id}/cancel", response_model=MaintenanceOrderResponse)
async def cancel_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.cancel")),
    order_id: int,
    action_in: Optional[MaintenanceAction] = None) -> Any:
    """取消维修单"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)
    notes = action_in.notes if action_in else None
    ensure_open(order)

    user_id = operator.user_id if operator else None
    now = datetime.utcnow()
    add_timeline(order, "CANCELLED", notes, user_id, at=now)
    order.total_time_minutes = calculate_total_minutes(
        [(entry.event, entry.created_at) for entry in order.timeline], now=now
    )
    order.status = "CANCELLED"

    release_vehicle(db, order, f"维修单 {order.order_number} 已取消", user_id)

    create_audit_log(
        db, action="cancel", resource_type="maintenance_order", resource_id=order.id,
        description=f"取消维修单 {order.order_number}",
        user_id=user_id,
    )
    await db.commit()

    logger.info(f"🚫 维修单已取消: {order.order_number}")
    return build_order_response(await load_order(db, order_id))
