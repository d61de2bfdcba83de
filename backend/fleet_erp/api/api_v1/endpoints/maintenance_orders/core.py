"""
维修单核心：单号生成、明细校验、响应构建
"""
from datetime import datetime
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.models import (
    MaintenanceMaterial, MaintenanceOrder, MaintenanceServiceItem, MaintenanceTimeline,
    MaintenanceWorker, Product,
)
from fleet_erp.schemas.maintenance import (
    MaintenanceMaterialIn, MaintenanceMaterialOut, MaintenanceOrderResponse,
    MaintenanceServiceIn, MaintenanceServiceOut, MaintenanceTimelineOut,
    MaintenanceWorkerIn, MaintenanceWorkerOut,
)
from fleet_erp.services.finance import round_currency
from fleet_erp.services.maintenance_order import (
    calculate_order_cost, material_total, round_quantity
)
from fleet_erp.api.api_v1.endpoints.common import get_employee_in_branch

STATUS_DISPLAY = {
    "OPEN": "待开始",
    "IN_PROGRESS": "进行中",
    "PAUSED": "已暂停",
    "COMPLETED": "已完成",
    "CANCELLED": "已取消",
}

CLOSED_STATUSES = ("COMPLETED", "CANCELLED")


async def generate_order_number(db: AsyncSession, branch_id: int) -> str:
    """维修单号：OM-年份-三位序号，按分支和年份递增"""
    prefix = f"OM-{datetime.now().year}"
    result = await db.execute(
        select(MaintenanceOrder.order_number).where(
            MaintenanceOrder.company_id == settings.DEFAULT_COMPANY_ID,
            MaintenanceOrder.branch_id == branch_id,
            MaintenanceOrder.order_number.like(f"{prefix}-%"),
            MaintenanceOrder.deleted_at.is_(None),
        )
    )
    sequence = 0
    for number in result.scalars().all():
        tail = number.rsplit("-", 1)[-1]
        if tail.isdigit():
            sequence = max(sequence, int(tail))
    return f"{prefix}-{sequence + 1:03d}"


async def load_order(db: AsyncSession, order_id: int) -> MaintenanceOrder:
    """按公司范围加载维修单（含明细与时间线）"""
    result = await db.execute(
        select(MaintenanceOrder)
        .where(
            MaintenanceOrder.id == order_id,
            MaintenanceOrder.company_id == settings.DEFAULT_COMPANY_ID,
            MaintenanceOrder.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    order = result.unique().scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="维修单不存在")
    return order


def ensure_open(order: MaintenanceOrder) -> None:
    if order.status in CLOSED_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"维修单已{STATUS_DISPLAY[order.status]}，不能再修改",
        )


def add_timeline(
    order: MaintenanceOrder, event: str, notes: Optional[str] = None,
    user_id: Optional[int] = None, at: Optional[datetime] = None,
) -> MaintenanceTimeline:
    entry = MaintenanceTimeline(
        event=event, notes=notes, created_by=user_id, created_at=at or datetime.utcnow()
    )
    order.timeline.append(entry)
    return entry


async def build_workers(
    db: AsyncSession, branch_id: int, workers_in: Iterable[MaintenanceWorkerIn],
    user_id: Optional[int] = None,
) -> List[MaintenanceWorker]:
    """作业人员必须是该分支在职员工"""
    workers = []
    seen = set()
    for worker_in in workers_in:
        if worker_in.employee_id in seen:
            raise HTTPException(status_code=400, detail="作业人员重复")
        seen.add(worker_in.employee_id)
        await get_employee_in_branch(db, worker_in.employee_id, branch_id, active_only=True)
        workers.append(MaintenanceWorker(
            employee_id=worker_in.employee_id,
            is_responsible=worker_in.is_responsible,
            created_by=user_id,
        ))
    return workers


def build_services(
    services_in: Iterable[MaintenanceServiceIn], user_id: Optional[int] = None
) -> List[MaintenanceServiceItem]:
    return [
        MaintenanceServiceItem(
            description=service_in.description.strip(),
            cost=round_currency(service_in.cost),
            created_by=user_id,
        )
        for service_in in services_in
    ]


async def build_materials(
    db: AsyncSession, branch_id: int, vehicle_item_ids: set,
    materials_in: Iterable[MaintenanceMaterialIn], user_id: Optional[int] = None,
) -> List[MaintenanceMaterial]:
    """用料按给定单价计价，未给出时取商品单价"""
    materials = []
    for material_in in materials_in:
        result = await db.execute(
            select(Product).where(
                Product.id == material_in.product_id,
                Product.branch_id == branch_id,
                Product.company_id == settings.DEFAULT_COMPANY_ID,
                Product.deleted_at.is_(None),
            )
        )
        product = result.unique().scalar_one_or_none()
        if not product:
            raise HTTPException(status_code=404, detail=f"商品 {material_in.product_id} 不存在")

        item_id = material_in.vehicle_replacement_item_id
        if item_id is not None and item_id not in vehicle_item_ids:
            raise HTTPException(status_code=400, detail="用料关联的更换项不属于该车辆")

        unit_cost = material_in.unit_cost
        if unit_cost is None:
            unit_cost = product.unit_price or 0
        materials.append(MaintenanceMaterial(
            product_id=product.id,
            vehicle_replacement_item_id=item_id,
            quantity=round_quantity(material_in.quantity),
            unit_cost=round_currency(unit_cost),
            total_cost=material_total(material_in.quantity, unit_cost),
            created_by=user_id,
        ))
    return materials


def order_cost(order: MaintenanceOrder):
    return calculate_order_cost(
        [service.cost for service in order.services],
        [material.total_cost for material in order.materials],
        order.total_cost,
    )


def build_order_response(order: MaintenanceOrder) -> MaintenanceOrderResponse:
    """构建维修单响应"""
    return MaintenanceOrderResponse(
        id=order.id,
        order_number=order.order_number,
        vehicle_id=order.vehicle_id,
        vehicle_plate=order.vehicle.primary_plate if order.vehicle else "",
        branch_id=order.branch_id,
        branch_name=order.branch.name if order.branch else "",
        type=order.type,
        status=order.status,
        status_display=STATUS_DISPLAY.get(order.status, order.status),
        km_at_entry=order.km_at_entry,
        service_date=order.service_date,
        description=order.description,
        observations=order.observations,
        total_cost=float(order.total_cost or 0),
        total_time_minutes=order.total_time_minutes or 0,
        workers=[
            MaintenanceWorkerOut(
                id=w.id,
                employee_id=w.employee_id,
                employee_name=w.employee.name if w.employee else "",
                is_responsible=w.is_responsible,
            )
            for w in order.workers
        ],
        services=[
            MaintenanceServiceOut(id=s.id, description=s.description, cost=float(s.cost))
            for s in order.services
        ],
        materials=[
            MaintenanceMaterialOut(
                id=m.id,
                product_id=m.product_id,
                product_name=m.product.name if m.product else "",
                vehicle_replacement_item_id=m.vehicle_replacement_item_id,
                quantity=float(m.quantity),
                unit_cost=float(m.unit_cost),
                total_cost=float(m.total_cost),
            )
            for m in order.materials
        ],
        timeline=[
            MaintenanceTimelineOut(id=t.id, event=t.event, notes=t.notes, created_at=t.created_at)
            for t in order.timeline
        ],
        created_at=order.created_at)
