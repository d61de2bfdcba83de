"""
保养标签的创建、查询、删除与到期计算
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import MaintenanceLabel, MaintenanceLabelItem
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.maintenance import (
    MaintenanceLabelCreate,
    MaintenanceLabelResponse,
    MaintenanceLabelListResponse,
    MaintenanceDueResponse,
    MaintenanceDueItem)
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.maintenance_due import (
    build_due_items, resolve_last_change_km, resolve_reference_km
)
from fleet_erp.api.api_v1.endpoints.common import get_branch_or_404, get_vehicle_or_404, paginate
from .core import build_label_response, get_last_change_km, get_last_marking_km, load_label

router = APIRouter()


@router.get("/due/{vehicle_id}", response_model=MaintenanceDueResponse)
async def get_maintenance_due(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance-labels.view")),
    vehicle_id: int,
    branch_id: Optional[int] = Query(None, description="仅参考该分支的到站登记")) -> Any:
    """
    按车辆计算各更换项的状态

    参考里程取最近一次到站登记（可按分支过滤），没有则取车辆当前里程
    """
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)

    marking_km = await get_last_marking_km(db, vehicle_id, branch_id)
    reference_km = resolve_reference_km(marking_km, vehicle.current_km)

    rows = []
    for item in vehicle.replacement_items:
        label_km = await get_last_change_km(db, vehicle_id, item.id)
        last_km = resolve_last_change_km(label_km, marking_km, vehicle.current_km)
        rows.append((item.id, item.name, item.replace_every_km, last_km))

    return MaintenanceDueResponse(
        reference_km=reference_km,
        items=[
            MaintenanceDueItem(
                id=d.id,
                product_id=d.id,
                product_name=d.name,
                replace_every_km=d.replace_every_km,
                last_change_km=d.last_change_km,
                next_change_km=d.next_change_km,
                status=d.status,
            )
            for d in build_due_items(reference_km, rows)
        ],
    )


@router.get("/", response_model=MaintenanceLabelListResponse)
async def list_labels(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance-labels.view")),
    branch_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取标签列表（最新在前）"""
    conditions = [MaintenanceLabel.company_id == settings.DEFAULT_COMPANY_ID]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(MaintenanceLabel.branch_id == branch_id)
    if vehicle_id:
        conditions.append(MaintenanceLabel.vehicle_id == vehicle_id)

    query = (
        select(MaintenanceLabel)
        .where(*conditions)
        .order_by(MaintenanceLabel.created_at.desc(), MaintenanceLabel.id.desc())
    )
    count_query = select(func.count(MaintenanceLabel.id)).where(*conditions)
    labels, total = await paginate(db, query, count_query, page, limit)

    return MaintenanceLabelListResponse(
        data=[build_label_response(label) for label in labels],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{label_id}", response_model=MaintenanceLabelResponse)
async def get_label(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance-labels.view")),
    label_id: int) -> Any:
    """获取标签详情"""
    label = await load_label(db, label_id)
    validate_branch_access(operator, entity_branch_id=label.branch_id)
    return build_label_response(label)


@router.post("/", response_model=MaintenanceLabelResponse)
async def create_label(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance-labels.create")),
    label_in: MaintenanceLabelCreate) -> Any:
    """
    创建保养标签

    product_ids 为空时使用车辆配置的全部更换项；每个标签项记录当前的上次更换里程
    """
    validate_branch_access(operator, requested_branch_id=label_in.branch_id)
    vehicle = await get_vehicle_or_404(db, label_in.vehicle_id)
    await get_branch_or_404(db, label_in.branch_id)

    all_item_ids = [item.id for item in vehicle.replacement_items]
    item_ids = label_in.product_ids or all_item_ids
    if not item_ids:
        raise HTTPException(
            status_code=400,
            detail="该车辆没有配置按公里更换项，请先在车辆编辑中添加",
        )
    invalid = [item_id for item_id in item_ids if item_id not in all_item_ids]
    if invalid:
        raise HTTPException(
            status_code=400,
            detail="部分更换项未在该车辆上配置，请先在车辆编辑中添加",
        )

    marking_km = await get_last_marking_km(db, vehicle.id)
    user_id = operator.user_id if operator else None
    label = MaintenanceLabel(
        vehicle_id=vehicle.id,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=label_in.branch_id,
        created_by=user_id,
    )
    for item_id in dict.fromkeys(item_ids):
        label_km = await get_last_change_km(db, vehicle.id, item_id)
        label.items.append(MaintenanceLabelItem(
            replacement_item_id=item_id,
            last_change_km=resolve_last_change_km(label_km, marking_km, vehicle.current_km),
        ))
    db.add(label)
    await db.flush()

    create_audit_log(
        db, action="create", resource_type="maintenance_label", resource_id=label.id,
        description=f"创建保养标签，车辆 {vehicle.primary_plate}", user_id=user_id,
    )
    await db.commit()

    return build_label_response(await load_label(db, label.id))


@router.delete("/{label_id}", response_model=MessageResponse)
async def delete_label(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("maintenance-labels.delete")),
    label_id: int) -> Any:
    """删除标签（连同标签项）"""
    label = await load_label(db, label_id)
    validate_branch_access(operator, entity_branch_id=label.branch_id)
    await db.delete(label)
    await db.commit()
    return {"message": "保养标签已删除"}
