"""
保养标签核心：里程查询、响应构建
"""
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.models import (
    MaintenanceLabel, MaintenanceLabelItem, Vehicle, VehicleMarking
)
from fleet_erp.schemas.maintenance import MaintenanceLabelResponse, MaintenanceLabelItemResponse
from fleet_erp.services.maintenance_due import next_change_km


async def get_last_marking_km(
    db: AsyncSession, vehicle_id: int, branch_id: Optional[int] = None
) -> Optional[int]:
    """最近一次到站登记的里程"""
    query = select(VehicleMarking.km).where(
        VehicleMarking.vehicle_id == vehicle_id,
        VehicleMarking.company_id == settings.DEFAULT_COMPANY_ID,
    )
    if branch_id:
        query = query.where(VehicleMarking.branch_id == branch_id)
    query = query.order_by(VehicleMarking.created_at.desc(), VehicleMarking.id.desc()).limit(1)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_last_change_km(
    db: AsyncSession, vehicle_id: int, replacement_item_id: int
) -> Optional[int]:
    """该更换项在该车辆上最近一次标签记录的里程"""
    result = await db.execute(
        select(MaintenanceLabelItem.last_change_km)
        .join(MaintenanceLabel, MaintenanceLabel.id == MaintenanceLabelItem.label_id)
        .where(
            MaintenanceLabelItem.replacement_item_id == replacement_item_id,
            MaintenanceLabel.vehicle_id == vehicle_id,
        )
        .order_by(MaintenanceLabelItem.created_at.desc(), MaintenanceLabelItem.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def load_label(db: AsyncSession, label_id: int) -> MaintenanceLabel:
    result = await db.execute(
        select(MaintenanceLabel)
        .where(
            MaintenanceLabel.id == label_id,
            MaintenanceLabel.company_id == settings.DEFAULT_COMPANY_ID,
        )
        .execution_options(populate_existing=True)
    )
    label = result.unique().scalar_one_or_none()
    if not label:
        raise HTTPException(status_code=404, detail="保养标签不存在")
    return label


def build_label_response(label: MaintenanceLabel) -> MaintenanceLabelResponse:
    """构建标签响应"""
    vehicle: Vehicle = label.vehicle
    items = []
    for item in label.items:
        replacement = item.replacement_item
        every = replacement.replace_every_km if replacement else 0
        items.append(MaintenanceLabelItemResponse(
            id=item.id,
            replacement_item_id=item.replacement_item_id,
            name=replacement.name if replacement else "",
            replace_every_km=every,
            last_change_km=item.last_change_km,
            next_change_km=next_change_km(item.last_change_km, every),
        ))

    return MaintenanceLabelResponse(
        id=label.id,
        vehicle_id=label.vehicle_id,
        vehicle_plate=vehicle.primary_plate if vehicle else "",
        branch_id=label.branch_id,
        branch_name=label.branch.name if label.branch else "",
        items=items,
        created_at=label.created_at)
