"""
维修单的创建、查询、更新、删除
"""
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission, resolve_branch_id, scope_branch_filter,
    validate_branch_access,
)
from fleet_erp.models import MaintenanceLabel, MaintenanceLabelItem, MaintenanceOrder
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.maintenance import (
    MaintenanceOrderCreate,
    MaintenanceOrderUpdate,
    MaintenanceOrderResponse,
    MaintenanceOrderListResponse)
from fleet_erp.services.audit import create_audit_log
from fleet_erp.api.api_v1.endpoints.common import (
    add_status_history, apply_update, get_branch_or_404, get_vehicle_or_404, paginate,
)
from .core import (
    add_timeline, build_materials, build_order_response, build_services, build_workers,
    ensure_open, generate_order_number, load_order, order_cost,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=MaintenanceOrderListResponse)
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.view")),
    branch_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取维修单列表"""
    conditions = [
        MaintenanceOrder.company_id == settings.DEFAULT_COMPANY_ID,
        MaintenanceOrder.deleted_at.is_(None),
    ]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(MaintenanceOrder.branch_id == branch_id)
    if vehicle_id:
        conditions.append(MaintenanceOrder.vehicle_id == vehicle_id)
    if status:
        conditions.append(MaintenanceOrder.status == status)

    query = (
        select(MaintenanceOrder)
        .where(*conditions)
        .order_by(MaintenanceOrder.created_at.desc(), MaintenanceOrder.id.desc())
    )
    count_query = select(func.count(MaintenanceOrder.id)).where(*conditions)
    orders, total = await paginate(db, query, count_query, page, limit)

    return MaintenanceOrderListResponse(
        data=[build_order_response(o) for o in orders],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.post("/", response_model=MaintenanceOrderResponse)
async def create_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.create")),
    order_in: MaintenanceOrderCreate) -> Any:
    """
    新建维修单

    车辆进入维修状态；本次更换的更换项同时生成一张保养标签
    """
    branch_id = resolve_branch_id(order_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    vehicle = await get_vehicle_or_404(db, order_in.vehicle_id)
    if vehicle.branch_id != branch_id:
        raise HTTPException(status_code=404, detail="车辆不存在")

    vehicle_item_ids = {item.id for item in vehicle.replacement_items}
    changed_ids = list(dict.fromkeys(order_in.replacement_items_changed))
    if any(item_id not in vehicle_item_ids for item_id in changed_ids):
        raise HTTPException(status_code=400, detail="部分更换项未在该车辆上配置")

    user_id = operator.user_id if operator else None
    workers = await build_workers(db, branch_id, order_in.workers, user_id)
    services = build_services(order_in.services, user_id)
    materials = await build_materials(db, branch_id, vehicle_item_ids, order_in.materials, user_id)

    order_number = await generate_order_number(db, branch_id)
    order = MaintenanceOrder(
        order_number=order_number,
        vehicle_id=vehicle.id,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        type=order_in.type,
        status="OPEN",
        km_at_entry=order_in.km_at_entry,
        service_date=order_in.service_date,
        description=order_in.description,
        observations=order_in.observations,
        total_time_minutes=0,
        created_by=user_id,
        workers=workers,
        services=services,
        materials=materials,
    )
    order.total_cost = order_cost(order)
    add_timeline(order, "STARTED", "维修单已创建", user_id)
    db.add(order)

    vehicle.status = "MAINTENANCE"
    if order_in.km_at_entry is not None:
        vehicle.current_km = order_in.km_at_entry
    await db.flush()

    add_status_history(
        db, vehicle, notes=f"维修单 {order_number} 已开启", status="MAINTENANCE",
        maintenance_order_id=order.id, created_by=user_id,
    )

    if changed_ids:
        label_km = order_in.km_at_entry if order_in.km_at_entry is not None else vehicle.current_km or 0
        db.add(MaintenanceLabel(
            vehicle_id=vehicle.id,
            company_id=settings.DEFAULT_COMPANY_ID,
            branch_id=branch_id,
            created_by=user_id,
            items=[
                MaintenanceLabelItem(replacement_item_id=item_id, last_change_km=label_km)
                for item_id in changed_ids
            ],
        ))

    create_audit_log(
        db, action="create", resource_type="maintenance_order", resource_id=order.id,
        description=f"新建维修单 {order_number}",
        new_value={"vehicle_id": vehicle.id, "type": order.type, "total_cost": float(order.total_cost)},
        user_id=user_id,
    )
    await db.commit()

    logger.info(f"🔧 维修单已创建: {order_number}, 车辆 {vehicle.id}")
    return build_order_response(await load_order(db, order.id))


@router.get("/{order_id}", response_model=MaintenanceOrderResponse)
async def get_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.view")),
    order_id: int) -> Any:
    """获取维修单详情"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)
    return build_order_response(order)


@router.put("/{order_id}", response_model=MaintenanceOrderResponse)
async def update_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.update")),
    order_id: int,
    order_in: MaintenanceOrderUpdate) -> Any:
    """更新维修单"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)
    ensure_open(order)

    user_id = operator.user_id if operator else None
    update_data = order_in.model_dump(
        exclude_unset=True, exclude={"workers", "services", "materials"}
    )
    apply_update(order, update_data)

    if order_in.workers is not None:
        order.workers = await build_workers(db, order.branch_id, order_in.workers, user_id)
    if order_in.services is not None:
        order.services = build_services(order_in.services, user_id)
    if order_in.materials is not None:
        vehicle_item_ids = {item.id for item in order.vehicle.replacement_items}
        order.materials = await build_materials(
            db, order.branch_id, vehicle_item_ids, order_in.materials, user_id
        )
    order.total_cost = order_cost(order)

    create_audit_log(
        db, action="update", resource_type="maintenance_order", resource_id=order.id,
        description=f"更新维修单 {order.order_number}",
        new_value={"total_cost": float(order.total_cost)},
        user_id=user_id,
    )
    await db.commit()
    return build_order_response(await load_order(db, order_id))


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance.delete")),
    order_id: int) -> Any:
    """删除维修单（软删除）"""
    order = await load_order(db, order_id)
    validate_branch_access(operator, entity_branch_id=order.branch_id)

    order.deleted_at = datetime.utcnow()
    create_audit_log(
        db, action="delete", resource_type="maintenance_order", resource_id=order.id,
        description=f"删除维修单 {order.order_number}",
        user_id=operator.user_id if operator else None,
    )
    await db.commit()

    return {"message": "维修单已删除"}
