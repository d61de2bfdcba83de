"""
计量单位管理API
"""
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.deps import get_db, require_permission
from fleet_erp.models import UnitOfMeasurement, Product
from fleet_erp.schemas.common import MessageResponse
from fleet_erp.schemas.unit import UnitCreate, UnitUpdate, UnitResponse
from fleet_erp.api.api_v1.endpoints.common import apply_update

router = APIRouter()


async def _get_unit(db: AsyncSession, unit_id: int) -> UnitOfMeasurement:
    unit = await db.get(UnitOfMeasurement, unit_id)
    if not unit:
        raise HTTPException(status_code=404, detail="计量单位不存在")
    return unit


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int = None) -> None:
    query = select(UnitOfMeasurement.id).where(UnitOfMeasurement.code == code)
    if exclude_id is not None:
        query = query.where(UnitOfMeasurement.id != exclude_id)
    existing = await db.execute(query)
    if existing.first():
        raise HTTPException(status_code=409, detail=f"单位编码 {code} 已存在")


@router.get("/", response_model=List[UnitResponse],
            dependencies=[Depends(require_permission("units.view"))])
async def list_units(
    *,
    db: AsyncSession = Depends(get_db),
    include_inactive: bool = Query(False, description="是否包含停用单位")) -> Any:
    """获取计量单位列表"""
    query = select(UnitOfMeasurement)
    if not include_inactive:
        query = query.where(UnitOfMeasurement.active == True)  # noqa: E712
    result = await db.execute(query.order_by(UnitOfMeasurement.code))
    return result.scalars().all()


@router.get("/{unit_id}", response_model=UnitResponse,
            dependencies=[Depends(require_permission("units.view"))])
async def get_unit(*, db: AsyncSession = Depends(get_db), unit_id: int) -> Any:
    """获取单位详情"""
    return await _get_unit(db, unit_id)


@router.post("/", response_model=UnitResponse,
             dependencies=[Depends(require_permission("units.create"))])
async def create_unit(*, db: AsyncSession = Depends(get_db), unit_in: UnitCreate) -> Any:
    """创建计量单位"""
    code = unit_in.code.strip().upper()
    await _ensure_code_free(db, code)

    unit = UnitOfMeasurement(
        code=code,
        name=unit_in.name.strip(),
        description=unit_in.description,
        active=True,
    )
    db.add(unit)
    await db.flush()
    await db.refresh(unit)
    await db.commit()
    return unit


@router.put("/{unit_id}", response_model=UnitResponse,
            dependencies=[Depends(require_permission("units.update"))])
async def update_unit(
    *,
    db: AsyncSession = Depends(get_db),
    unit_id: int,
    unit_in: UnitUpdate) -> Any:
    """更新计量单位"""
    unit = await _get_unit(db, unit_id)

    update_data = unit_in.model_dump(exclude_unset=True)
    if update_data.get("code"):
        update_data["code"] = update_data["code"].strip().upper()
        if update_data["code"] != unit.code:
            await _ensure_code_free(db, update_data["code"], exclude_id=unit_id)

    apply_update(unit, update_data)
    await db.commit()
    await db.refresh(unit)
    return unit


@router.delete("/{unit_id}", response_model=MessageResponse, dependencies=[Depends(require_permission("units.delete"))])
async def delete_unit(*, db: AsyncSession = Depends(get_db), unit_id: int) -> Any:
    """删除计量单位（被商品使用时不可删除）"""
    unit = await _get_unit(db, unit_id)

    used = await db.execute(
        select(func.count(Product.id)).where(
            Product.unit_of_measurement_id == unit_id,
            Product.deleted_at.is_(None),
        )
    )
    if (used.scalar() or 0) > 0:
        raise HTTPException(status_code=409, detail="该单位已被商品使用，无法删除")

    await db.delete(unit)
    await db.commit()
    return {"message": "计量单位已删除"}
