"""
到站登记API
登记车辆到达分支时的里程，同时更新车辆当前里程
"""
from datetime import date, datetime, timedelta
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import VehicleMarking
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.vehicle_marking import (
    VehicleMarkingCreate, VehicleMarkingResponse, VehicleMarkingListResponse
)
from fleet_erp.api.api_v1.endpoints.common import (
    add_status_history, get_branch_or_404, get_vehicle_or_404, paginate
)

router = APIRouter()


def build_marking_response(marking: VehicleMarking) -> VehicleMarkingResponse:
    return VehicleMarkingResponse(
        id=marking.id,
        vehicle_id=marking.vehicle_id,
        vehicle_plate=marking.vehicle.primary_plate if marking.vehicle else "",
        branch_id=marking.branch_id,
        branch_name=marking.branch.name if marking.branch else "",
        km=marking.km,
        created_at=marking.created_at)


async def _get_marking(db: AsyncSession, marking_id: int) -> VehicleMarking:
    result = await db.execute(
        select(VehicleMarking)
        .where(
            VehicleMarking.id == marking_id,
            VehicleMarking.company_id == settings.DEFAULT_COMPANY_ID,
        )
        .execution_options(populate_existing=True)
    )
    marking = result.unique().scalar_one_or_none()
    if not marking:
        raise HTTPException(status_code=404, detail="到站登记不存在")
    return marking


@router.get("/", response_model=VehicleMarkingListResponse)
async def list_markings(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicle-markings.view")),
    branch_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None, description="开始日期"),
    end_date: Optional[date] = Query(None, description="结束日期（含当天）"),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取到站登记列表"""
    conditions = [VehicleMarking.company_id == settings.DEFAULT_COMPANY_ID]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(VehicleMarking.branch_id == branch_id)
    if vehicle_id:
        conditions.append(VehicleMarking.vehicle_id == vehicle_id)
    if start_date:
        conditions.append(VehicleMarking.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        conditions.append(
            VehicleMarking.created_at < datetime.combine(end_date + timedelta(days=1), datetime.min.time())
        )

    query = (
        select(VehicleMarking)
        .where(*conditions)
        .order_by(VehicleMarking.created_at.desc(), VehicleMarking.id.desc())
    )
    count_query = select(func.count(VehicleMarking.id)).where(*conditions)
    markings, total = await paginate(db, query, count_query, page, limit)

    return VehicleMarkingListResponse(
        data=[build_marking_response(m) for m in markings],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{marking_id}", response_model=VehicleMarkingResponse)
async def get_marking(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicle-markings.view")),
    marking_id: int) -> Any:
    """获取到站登记详情"""
    marking = await _get_marking(db, marking_id)
    validate_branch_access(operator, entity_branch_id=marking.branch_id)
    return build_marking_response(marking)


@router.post("/", response_model=VehicleMarkingResponse)
async def create_marking(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicle-markings.create")),
    marking_in: VehicleMarkingCreate) -> Any:
    """登记到站里程：写登记、更新车辆里程、记录历史（同一事务）"""
    branch_id = resolve_branch_id(marking_in.branch_id, operator)
    vehicle = await get_vehicle_or_404(db, marking_in.vehicle_id)
    await get_branch_or_404(db, branch_id)

    user_id = operator.user_id if operator else None
    marking = VehicleMarking(
        vehicle_id=vehicle.id,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        km=marking_in.km,
        created_by=user_id,
    )
    db.add(marking)

    vehicle.current_km = marking_in.km
    add_status_history(
        db, vehicle, notes=f"到站登记，里程 {marking_in.km}",
        km=marking_in.km, created_by=user_id,
    )
    await db.commit()

    return build_marking_response(await _get_marking(db, marking.id))


@router.delete("/{marking_id}", response_model=MessageResponse)
async def delete_marking(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicle-markings.delete")),
    marking_id: int) -> Any:
    """删除到站登记"""
    marking = await _get_marking(db, marking_id)
    validate_branch_access(operator, entity_branch_id=marking.branch_id)
    await db.delete(marking)
    await db.commit()
    return {"message": "到站登记已删除"}
