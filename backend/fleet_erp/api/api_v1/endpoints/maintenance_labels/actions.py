"""
路边更换登记

在路上更换了配件后补登记：登记的里程成为这些更换项的"上次更换里程"，
同时生成一张已完成的预防性维修单，有费用时生成一笔待付账款
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import Operator, get_db, require_permission, validate_branch_access
from fleet_erp.models import (
    AccountPayable, MaintenanceLabel, MaintenanceLabelItem, MaintenanceOrder
)
from fleet_erp.schemas.maintenance import RegisterProductChange, RegisterProductChangeResponse
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.finance import round_currency
from fleet_erp.api.api_v1.endpoints.common import (
    add_status_history, get_branch_or_404, get_vehicle_or_404
)
from fleet_erp.api.api_v1.endpoints.maintenance_orders.core import generate_order_number

logger = logging.getLogger(__name__)

router = APIRouter()


def total_change_cost(costs) -> Decimal:
    """合计费用：逐项保留两位小数，负数按 0 计"""
    total = Decimal("0.00")
    for cost in costs:
        if cost is None:
            continue
        total += max(Decimal("0.00"), round_currency(cost))
    return round_currency(total)


@router.post("/register-change", response_model=RegisterProductChangeResponse)
async def register_product_change(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance-labels.register-change")),
    change_in: RegisterProductChange) -> Any:
    """登记路边更换"""
    validate_branch_access(operator, requested_branch_id=change_in.branch_id)
    vehicle = await get_vehicle_or_404(db, change_in.vehicle_id)

    items_by_id = {item.id: item for item in vehicle.replacement_items}
    requested_ids = [item.replacement_item_id for item in change_in.items]
    if len(set(requested_ids)) != len(requested_ids) or any(
        item_id not in items_by_id for item_id in requested_ids
    ):
        raise HTTPException(
            status_code=400,
            detail="部分更换项未在该车辆上配置，请先在车辆编辑中添加",
        )

    await get_branch_or_404(db, change_in.branch_id)

    total_cost = total_change_cost(item.cost for item in change_in.items)
    names = ", ".join(items_by_id[item_id].name for item_id in requested_ids)
    if len(requested_ids) == 1:
        observations = f"{names} 路边更换（里程 {change_in.change_km}）"
    else:
        observations = f"{len(requested_ids)} 项路边更换（里程 {change_in.change_km}）: {names}"

    user_id = operator.user_id if operator else None

    label = MaintenanceLabel(
        vehicle_id=vehicle.id,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=change_in.branch_id,
        created_by=user_id,
        items=[
            MaintenanceLabelItem(replacement_item_id=item_id, last_change_km=change_in.change_km)
            for item_id in requested_ids
        ],
    )
    db.add(label)

    vehicle.current_km = change_in.change_km

    order_number = await generate_order_number(db, change_in.branch_id)
    order = MaintenanceOrder(
        order_number=order_number,
        vehicle_id=vehicle.id,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=change_in.branch_id,
        type="PREVENTIVE",
        status="COMPLETED",
        km_at_entry=change_in.change_km,
        service_date=change_in.service_date,
        description="路边更换",
        observations=observations,
        total_cost=total_cost,
        created_by=user_id,
    )
    db.add(order)
    await db.flush()

    add_status_history(
        db, vehicle, notes=observations, km=change_in.change_km,
        maintenance_order_id=order.id, created_by=user_id,
    )

    if total_cost > 0:
        plate = vehicle.primary_plate or "车辆"
        db.add(AccountPayable(
            company_id=settings.DEFAULT_COMPANY_ID,
            branch_id=change_in.branch_id,
            description=f"路边更换 - {plate} ({names})",
            amount=total_cost,
            due_date=change_in.service_date or datetime.utcnow(),
            status="PENDING",
            origin_type="MAINTENANCE",
            origin_id=order.id,
            document_number=order_number,
            created_by=user_id,
        ))

    create_audit_log(
        db, action="create", resource_type="maintenance_order", resource_id=order.id,
        description=f"路边更换登记，维修单 {order_number}",
        new_value={"total_cost": float(total_cost), "items": requested_ids},
        user_id=user_id,
    )
    await db.commit()

    logger.info(
        f"🔧 路边更换登记完成: 车辆 {vehicle.id}, 维修单 {order_number}, 费用 {total_cost}"
    )
    return RegisterProductChangeResponse(order_id=order.id)
