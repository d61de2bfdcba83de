"""
员工管理API
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, get_operator, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import Employee
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.employee import (
    EmployeeCreate, EmployeeUpdate, EmployeeResponse, EmployeeListResponse
)
from fleet_erp.services.finance import round_currency
from fleet_erp.api.api_v1.endpoints.common import apply_update, get_branch_or_404, paginate

router = APIRouter()


def build_employee_response(employee: Employee) -> EmployeeResponse:
    """构建员工响应"""
    return EmployeeResponse(
        id=employee.id,
        branch_id=employee.branch_id,
        branch_name=employee.branch.name if employee.branch else "",
        name=employee.name,
        cpf=employee.cpf,
        email=employee.email,
        phone=employee.phone,
        position=employee.position,
        department=employee.department,
        hire_date=employee.hire_date,
        monthly_salary=float(employee.monthly_salary or 0),
        active=employee.active,
        created_at=employee.created_at,
        updated_at=employee.updated_at)


async def _get_employee(db: AsyncSession, employee_id: int) -> Employee:
    result = await db.execute(
        select(Employee)
        .where(
            Employee.id == employee_id,
            Employee.company_id == settings.DEFAULT_COMPANY_ID,
            Employee.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    employee = result.unique().scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="员工不存在")
    return employee


@router.get("/", response_model=EmployeeListResponse)
async def list_employees(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("employees.view")),
    branch_id: Optional[int] = Query(None, description="按分支筛选"),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="按姓名搜索"),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取员工列表"""
    conditions = [
        Employee.company_id == settings.DEFAULT_COMPANY_ID,
        Employee.deleted_at.is_(None),
    ]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(Employee.branch_id == branch_id)
    if active is not None:
        conditions.append(Employee.active == active)
    if search:
        conditions.append(Employee.name.ilike(f"%{search}%"))

    query = select(Employee).where(*conditions).order_by(Employee.name)
    count_query = select(func.count(Employee.id)).where(*conditions)
    employees, total = await paginate(db, query, count_query, page, limit)

    return EmployeeListResponse(
        data=[build_employee_response(e) for e in employees],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("employees.view")),
    employee_id: int) -> Any:
    """获取员工详情"""
    employee = await _get_employee(db, employee_id)
    validate_branch_access(operator, entity_branch_id=employee.branch_id)
    return build_employee_response(employee)


@router.post("/", response_model=EmployeeResponse)
async def create_employee(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("employees.create")),
    employee_in: EmployeeCreate) -> Any:
    """创建员工"""
    branch_id = resolve_branch_id(employee_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    data = employee_in.model_dump(exclude={"branch_id", "monthly_salary"})
    employee = Employee(
        **data,
        branch_id=branch_id,
        company_id=settings.DEFAULT_COMPANY_ID,
        monthly_salary=round_currency(employee_in.monthly_salary),
    )
    db.add(employee)
    await db.commit()

    return build_employee_response(await _get_employee(db, employee.id))


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("employees.update")),
    employee_id: int,
    employee_in: EmployeeUpdate) -> Any:
    """更新员工"""
    employee = await _get_employee(db, employee_id)
    validate_branch_access(operator, entity_branch_id=employee.branch_id)

    update_data = employee_in.model_dump(exclude_unset=True)
    if update_data.get("branch_id") and update_data["branch_id"] != employee.branch_id:
        validate_branch_access(operator, requested_branch_id=update_data["branch_id"])
        await get_branch_or_404(db, update_data["branch_id"])
    if update_data.get("monthly_salary") is not None:
        update_data["monthly_salary"] = round_currency(update_data["monthly_salary"])

    apply_update(employee, update_data)
    await db.commit()

    return build_employee_response(await _get_employee(db, employee_id))


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete_employee(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("employees.delete")),
    employee_id: int) -> Any:
    """删除员工（软删除）"""
    employee = await _get_employee(db, employee_id)
    validate_branch_access(operator, entity_branch_id=employee.branch_id)
    employee.deleted_at = datetime.utcnow()
    employee.active = False
    await db.commit()
    return {"message": "员工已删除"}
