"""
车辆管理API

- 车牌：至少一块，同一车辆内类型不重复，同一分支内车牌号不重复
- 里程只能增加，每次变更写入状态历史
"""
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import (
    Vehicle, VehiclePlate, VehicleReplacementItem, VehicleStatusHistory,
    MaintenanceLabelItem,
)
from fleet_erp.models.vehicle import PLATE_TYPES, VEHICLE_STATUSES, STATUS_DISPLAY
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.vehicle import (
    VehicleCreate,
    VehicleUpdate,
    VehicleResponse,
    VehicleListResponse,
    VehiclePlateIn,
    VehiclePlateOut,
    ReplacementItemIn,
    ReplacementItemOut,
    VehicleKmUpdate,
    VehicleStatusUpdate,
    VehicleStatusHistoryResponse)
from fleet_erp.api.api_v1.endpoints.common import (
    add_status_history, apply_update, get_branch_or_404, get_vehicle_or_404, paginate
)

router = APIRouter()


def build_vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    """构建车辆响应"""
    return VehicleResponse(
        id=vehicle.id,
        branch_id=vehicle.branch_id,
        branch_name=vehicle.branch.name if vehicle.branch else "",
        plate=vehicle.primary_plate,
        plates=[VehiclePlateOut(id=p.id, type=p.type, plate=p.plate) for p in vehicle.plates],
        replacement_items=[
            ReplacementItemOut(id=r.id, name=r.name, replace_every_km=r.replace_every_km)
            for r in vehicle.replacement_items
        ],
        brand=vehicle.brand,
        model=vehicle.model,
        year=vehicle.year,
        color=vehicle.color,
        chassis=vehicle.chassis,
        renavam=vehicle.renavam,
        current_km=vehicle.current_km or 0,
        status=vehicle.status,
        status_display=vehicle.status_display,
        active=vehicle.active,
        created_at=vehicle.created_at,
        updated_at=vehicle.updated_at)


def normalize_plate(plate: str) -> str:
    return plate.strip().upper().replace(" ", "")


async def validate_plates(
    db: AsyncSession,
    plates: List[VehiclePlateIn],
    branch_id: int,
    exclude_vehicle_id: Optional[int] = None,
) -> List[VehiclePlateIn]:
    """校验车牌并返回规范化后的列表"""
    if not plates:
        raise HTTPException(status_code=400, detail="至少需要一块车牌")

    seen_types = set()
    seen_plates = set()
    normalized = []
    for item in plates:
        if item.type not in PLATE_TYPES:
            raise HTTPException(status_code=400, detail=f"无效的车牌类型: {item.type}")
        if item.type in seen_types:
            raise HTTPException(status_code=400, detail=f"车牌类型 {item.type} 重复")
        plate = normalize_plate(item.plate)
        if not plate:
            raise HTTPException(status_code=400, detail="车牌号不能为空")
        if plate in seen_plates:
            raise HTTPException(status_code=400, detail=f"车牌 {plate} 重复")
        seen_types.add(item.type)
        seen_plates.add(plate)
        normalized.append(VehiclePlateIn(type=item.type, plate=plate))

    # 同一分支内车牌号唯一
    query = (
        select(VehiclePlate.plate)
        .join(Vehicle, Vehicle.id == VehiclePlate.vehicle_id)
        .where(
            VehiclePlate.plate.in_(seen_plates),
            Vehicle.branch_id == branch_id,
            Vehicle.deleted_at.is_(None),
        )
    )
    if exclude_vehicle_id is not None:
        query = query.where(Vehicle.id != exclude_vehicle_id)
    existing = (await db.execute(query)).scalars().first()
    if existing:
        raise HTTPException(status_code=409, detail=f"车牌 {existing} 已被其他车辆使用")

    return normalized


async def sync_replacement_items(
    db: AsyncSession, vehicle: Vehicle, items_in: List[ReplacementItemIn]
) -> None:
    """按 id 匹配更新更换项：带 id 的更新，不带的新建，未出现的删除"""
    current = {item.id: item for item in vehicle.replacement_items}
    kept = []
    for item_in in items_in:
        if item_in.id is not None:
            item = current.get(item_in.id)
            if item is None:
                raise HTTPException(status_code=400, detail=f"更换项 {item_in.id} 不属于该车辆")
            item.name = item_in.name.strip()
            item.replace_every_km = item_in.replace_every_km
            kept.append(item)
        else:
            kept.append(VehicleReplacementItem(
                name=item_in.name.strip(), replace_every_km=item_in.replace_every_km
            ))

    kept_ids = {item.id for item in kept if item.id is not None}
    removed_ids = [item_id for item_id in current if item_id not in kept_ids]
    if removed_ids:
        await db.execute(
            delete(MaintenanceLabelItem).where(
                MaintenanceLabelItem.replacement_item_id.in_(removed_ids)
            )
        )
    vehicle.replacement_items = kept


@router.get("/", response_model=VehicleListResponse)
async def list_vehicles(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.view")),
    branch_id: Optional[int] = Query(None, description="按分支筛选"),
    status: Optional[str] = Query(None, description="按状态筛选"),
    plate: Optional[str] = Query(None, description="按车牌搜索"),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取车辆列表"""
    conditions = [
        Vehicle.company_id == settings.DEFAULT_COMPANY_ID,
        Vehicle.deleted_at.is_(None),
    ]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(Vehicle.branch_id == branch_id)
    if status:
        conditions.append(Vehicle.status == status)
    if plate:
        conditions.append(Vehicle.plates.any(VehiclePlate.plate.ilike(f"%{normalize_plate(plate)}%")))

    query = select(Vehicle).where(*conditions).order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
    count_query = select(func.count(Vehicle.id)).where(*conditions)
    vehicles, total = await paginate(db, query, count_query, page, limit)

    return VehicleListResponse(
        data=[build_vehicle_response(v) for v in vehicles],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.view")),
    vehicle_id: int) -> Any:
    """获取单个车辆详情"""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)
    return build_vehicle_response(vehicle)


@router.post("/", response_model=VehicleResponse)
async def create_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.create")),
    vehicle_in: VehicleCreate) -> Any:
    """创建车辆"""
    branch_id = resolve_branch_id(vehicle_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    if vehicle_in.status is not None and vehicle_in.status not in VEHICLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"无效的车辆状态: {vehicle_in.status}")

    plates = await validate_plates(db, vehicle_in.plates, branch_id)

    vehicle = Vehicle(
        **vehicle_in.model_dump(
            exclude={"branch_id", "plates", "replacement_items", "current_km", "status"}
        ),
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        current_km=vehicle_in.current_km or 0,
        status=vehicle_in.status or "ACTIVE",
        plates=[VehiclePlate(type=p.type, plate=p.plate) for p in plates],
        replacement_items=[
            VehicleReplacementItem(name=r.name.strip(), replace_every_km=r.replace_every_km)
            for r in vehicle_in.replacement_items
        ],
    )
    db.add(vehicle)
    await db.flush()

    if vehicle_in.status is not None or vehicle_in.current_km is not None:
        add_status_history(
            db, vehicle, notes="车辆登记",
            created_by=operator.user_id if operator else None,
        )

    await db.commit()
    return build_vehicle_response(await get_vehicle_or_404(db, vehicle.id))


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.update")),
    vehicle_id: int,
    vehicle_in: VehicleUpdate) -> Any:
    """更新车辆"""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)

    update_data = vehicle_in.model_dump(
        exclude_unset=True, exclude={"plates", "replacement_items"}
    )
    target_branch_id = update_data.get("branch_id") or vehicle.branch_id
    if target_branch_id != vehicle.branch_id:
        validate_branch_access(operator, requested_branch_id=target_branch_id)
        await get_branch_or_404(db, target_branch_id)
    update_data.pop("branch_id", None)

    if vehicle_in.plates is not None:
        plates = await validate_plates(
            db, vehicle_in.plates, target_branch_id, exclude_vehicle_id=vehicle_id
        )
        vehicle.plates = [VehiclePlate(type=p.type, plate=p.plate) for p in plates]
    elif target_branch_id != vehicle.branch_id:
        # 换分支时现有车牌也要在新分支内唯一
        await validate_plates(
            db,
            [VehiclePlateIn(type=p.type, plate=p.plate) for p in vehicle.plates],
            target_branch_id,
            exclude_vehicle_id=vehicle_id,
        )

    if vehicle_in.replacement_items is not None:
        await sync_replacement_items(db, vehicle, vehicle_in.replacement_items)

    apply_update(vehicle, update_data)
    vehicle.branch_id = target_branch_id

    await db.commit()
    return build_vehicle_response(await get_vehicle_or_404(db, vehicle_id))


@router.delete("/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.delete")),
    vehicle_id: int) -> Any:
    """删除车辆（软删除）"""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)

    vehicle.deleted_at = datetime.utcnow()
    vehicle.active = False
    await db.commit()

    return {"message": "车辆已删除"}


@router.patch("/{vehicle_id}/km", response_model=VehicleResponse)
async def update_vehicle_km(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.update-km")),
    vehicle_id: int,
    km_in: VehicleKmUpdate) -> Any:
    """更新里程（只能增加）"""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)

    current_km = vehicle.current_km or 0
    if km_in.km < current_km:
        raise HTTPException(
            status_code=400,
            detail=f"新里程 {km_in.km} 不能小于当前里程 {current_km}",
        )

    vehicle.current_km = km_in.km
    add_status_history(
        db, vehicle, notes=km_in.notes or f"里程更新: {current_km} → {km_in.km}",
        km=km_in.km, created_by=operator.user_id if operator else None,
    )
    await db.commit()
    return build_vehicle_response(await get_vehicle_or_404(db, vehicle_id))


@router.patch("/{vehicle_id}/status", response_model=VehicleResponse)
async def update_vehicle_status(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.update-status")),
    vehicle_id: int,
    status_in: VehicleStatusUpdate) -> Any:
    """变更车辆状态"""
    if status_in.status not in VEHICLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"无效的车辆状态: {status_in.status}")

    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)

    if status_in.km is not None:
        if status_in.km < (vehicle.current_km or 0):
            raise HTTPException(status_code=400, detail="里程不能小于当前里程")
        vehicle.current_km = status_in.km

    old_status = vehicle.status
    vehicle.status = status_in.status
    notes = status_in.notes or (
        f"状态变更: {STATUS_DISPLAY.get(old_status, old_status)} → "
        f"{STATUS_DISPLAY.get(status_in.status, status_in.status)}"
    )
    add_status_history(
        db, vehicle, notes=notes, created_by=operator.user_id if operator else None
    )
    await db.commit()
    return build_vehicle_response(await get_vehicle_or_404(db, vehicle_id))


@router.get("/{vehicle_id}/status-history", response_model=List[VehicleStatusHistoryResponse])
async def get_vehicle_status_history(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vehicles.view")),
    vehicle_id: int) -> Any:
    """获取状态历史（最新在前）"""
    vehicle = await get_vehicle_or_404(db, vehicle_id)
    validate_branch_access(operator, entity_branch_id=vehicle.branch_id)

    result = await db.execute(
        select(VehicleStatusHistory)
        .where(VehicleStatusHistory.vehicle_id == vehicle_id)
        .order_by(VehicleStatusHistory.created_at.desc(), VehicleStatusHistory.id.desc())
    )
    return result.scalars().all()
