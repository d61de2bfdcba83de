"""
假期管理API

校验规则：
- 开始日期必须早于结束日期，天数等于含首尾的自然日数
- 折现天数不超过上限且不超过假期天数
- 同一员工的未取消假期不能重叠
"""
from datetime import date, datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import Vacation
from fleet_erp.models.vacation import FINANCIAL_FIELDS
from fleet_erp.schemas.common import MessageResponse
from fleet_erp.schemas.vacation import VacationCreate, VacationUpdate, VacationResponse
from fleet_erp.services.finance import round_currency
from fleet_erp.api.api_v1.endpoints.common import (
    apply_update, get_branch_or_404, get_employee_in_branch
)

router = APIRouter()

LOCKED_FOR_EDIT = ("COMPLETED", "CANCELLED")
LOCKED_FOR_DELETE = ("IN_PROGRESS", "COMPLETED")


def build_vacation_response(vacation: Vacation) -> VacationResponse:
    financials = {
        name: float(getattr(vacation, name)) if getattr(vacation, name) is not None else None
        for name in FINANCIAL_FIELDS
    }
    return VacationResponse(
        id=vacation.id,
        employee_id=vacation.employee_id,
        employee_name=vacation.employee.name if vacation.employee else "",
        branch_id=vacation.branch_id,
        start_date=vacation.start_date,
        end_date=vacation.end_date,
        days=vacation.days,
        sold_days=vacation.sold_days,
        advance_13th=vacation.advance_13th,
        status=vacation.status,
        observations=vacation.observations,
        created_at=vacation.created_at,
        **financials)


def validate_vacation_period(start_date: date, end_date: date, days: int, sold_days: int) -> None:
    """日期、天数与折现天数校验"""
    if start_date >= end_date:
        raise HTTPException(status_code=400, detail="开始日期必须早于结束日期")
    expected = (end_date - start_date).days + 1
    if days != expected:
        raise HTTPException(
            status_code=400,
            detail=f"天数与日期不一致：{start_date} 至 {end_date} 共 {expected} 天",
        )
    if sold_days > settings.MAX_SOLD_VACATION_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"折现天数不能超过 {settings.MAX_SOLD_VACATION_DAYS} 天",
        )
    if sold_days > days:
        raise HTTPException(status_code=400, detail="折现天数不能超过假期天数")


async def ensure_no_overlap(
    db: AsyncSession,
    employee_id: int,
    start_date: date,
    end_date: date,
    exclude_id: Optional[int] = None,
) -> None:
    """同一员工未取消的假期不能有交叉"""
    query = select(Vacation.id).where(
        Vacation.employee_id == employee_id,
        Vacation.deleted_at.is_(None),
        Vacation.status != "CANCELLED",
        Vacation.start_date <= end_date,
        Vacation.end_date >= start_date,
    )
    if exclude_id is not None:
        query = query.where(Vacation.id != exclude_id)
    existing = await db.execute(query.limit(1))
    if existing.first():
        raise HTTPException(status_code=400, detail="该员工在此期间已有假期安排")


def _money_fields(data: dict) -> dict:
    for name in FINANCIAL_FIELDS:
        if data.get(name) is not None:
            data[name] = round_currency(data[name])
    return data


async def _get_vacation(db: AsyncSession, vacation_id: int) -> Vacation:
    result = await db.execute(
        select(Vacation)
        .where(
            Vacation.id == vacation_id,
            Vacation.company_id == settings.DEFAULT_COMPANY_ID,
            Vacation.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    vacation = result.unique().scalar_one_or_none()
    if not vacation:
        raise HTTPException(status_code=404, detail="假期记录不存在")
    return vacation


@router.get("/", response_model=List[VacationResponse])
async def list_vacations(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vacations.view")),
    branch_id: Optional[int] = Query(None),
    employee_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None)) -> Any:
    """获取假期列表（开始日期最近的在前）"""
    query = select(Vacation).where(
        Vacation.company_id == settings.DEFAULT_COMPANY_ID,
        Vacation.deleted_at.is_(None),
    )
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        query = query.where(Vacation.branch_id == branch_id)
    if employee_id:
        query = query.where(Vacation.employee_id == employee_id)
    if status:
        query = query.where(Vacation.status == status)

    result = await db.execute(query.order_by(Vacation.start_date.desc(), Vacation.id.desc()))
    return [build_vacation_response(v) for v in result.unique().scalars().all()]


@router.get("/{vacation_id}", response_model=VacationResponse)
async def get_vacation(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vacations.view")),
    vacation_id: int) -> Any:
    """获取假期详情"""
    vacation = await _get_vacation(db, vacation_id)
    validate_branch_access(operator, entity_branch_id=vacation.branch_id)
    return build_vacation_response(vacation)


@router.post("/", response_model=VacationResponse)
async def create_vacation(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vacations.create")),
    vacation_in: VacationCreate) -> Any:
    """新建假期"""
    branch_id = resolve_branch_id(vacation_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)
    employee = await get_employee_in_branch(db, vacation_in.employee_id, branch_id)

    validate_vacation_period(
        vacation_in.start_date, vacation_in.end_date, vacation_in.days, vacation_in.sold_days
    )
    await ensure_no_overlap(db, employee.id, vacation_in.start_date, vacation_in.end_date)

    data = _money_fields(vacation_in.model_dump(exclude={"branch_id"}))
    vacation = Vacation(
        **data,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        status="PLANNED",
        created_by=operator.user_id if operator else None,
    )
    db.add(vacation)
    await db.commit()
    return build_vacation_response(await _get_vacation(db, vacation.id))


@router.put("/{vacation_id}", response_model=VacationResponse)
async def update_vacation(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vacations.update")),
    vacation_id: int,
    vacation_in: VacationUpdate) -> Any:
    """更新假期（已完成、已取消的不可修改）"""
    vacation = await _get_vacation(db, vacation_id)
    validate_branch_access(operator, entity_branch_id=vacation.branch_id)
    if vacation.status in LOCKED_FOR_EDIT:
        raise HTTPException(status_code=400, detail="已完成或已取消的假期不能修改")

    update_data = _money_fields(vacation_in.model_dump(exclude_unset=True))
    start_date = update_data.get("start_date") or vacation.start_date
    end_date = update_data.get("end_date") or vacation.end_date
    days = update_data.get("days") or vacation.days
    sold_days = update_data.get("sold_days")
    if sold_days is None:
        sold_days = vacation.sold_days

    period_touched = any(k in update_data for k in ("start_date", "end_date", "days", "sold_days"))
    if period_touched:
        validate_vacation_period(start_date, end_date, days, sold_days)
        if update_data.get("status", vacation.status) != "CANCELLED":
            await ensure_no_overlap(db, vacation.employee_id, start_date, end_date, exclude_id=vacation_id)

    apply_update(vacation, update_data)
    await db.commit()
    return build_vacation_response(await _get_vacation(db, vacation_id))


@router.delete("/{vacation_id}", response_model=MessageResponse)
async def delete_vacation(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("vacations.delete")),
    vacation_id: int) -> Any:
    """删除假期（进行中、已完成的不可删除）"""
    vacation = await _get_vacation(db, vacation_id)
    validate_branch_access(operator, entity_branch_id=vacation.branch_id)
    if vacation.status in LOCKED_FOR_DELETE:
        raise HTTPException(status_code=400, detail="进行中或已完成的假期不能删除")

    vacation.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "假期记录已删除"}
