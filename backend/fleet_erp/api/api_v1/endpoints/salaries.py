"""
工资管理API

- 参考月份只能是当前月或上一个月
- 已支付的工资不可修改、删除
- 批量处理：为分支内所有在职员工生成当月工资
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import Employee, Salary
from fleet_erp.schemas.common import MessageResponse
from fleet_erp.schemas.salary import (
    SalaryCreate,
    SalaryUpdate,
    SalaryPay,
    SalaryResponse,
    ProcessSalaries,
    ProcessSalariesResponse,
    ProcessSalaryDetail)
from fleet_erp.services import payroll
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.finance import create_transaction, round_currency
from fleet_erp.api.api_v1.endpoints.common import get_branch_or_404, get_employee_in_branch

logger = logging.getLogger(__name__)

router = APIRouter()


def build_salary_response(salary: Salary) -> SalaryResponse:
    """构建工资响应"""
    return SalaryResponse(
        id=salary.id,
        employee_id=salary.employee_id,
        employee_name=salary.employee.name if salary.employee else "",
        branch_id=salary.branch_id,
        amount=float(salary.amount or 0),
        reference_month=salary.reference_month,
        reference_year=salary.reference_year,
        payment_date=salary.payment_date,
        description=salary.description,
        financial_transaction_id=salary.financial_transaction_id,
        is_paid=salary.is_paid,
        created_at=salary.created_at)


async def _get_salary(db: AsyncSession, salary_id: int) -> Salary:
    result = await db.execute(
        select(Salary)
        .where(
            Salary.id == salary_id,
            Salary.company_id == settings.DEFAULT_COMPANY_ID,
            Salary.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    salary = result.unique().scalar_one_or_none()
    if not salary:
        raise HTTPException(status_code=404, detail="工资记录不存在")
    return salary


async def find_period_salary(
    db: AsyncSession,
    employee_id: int,
    branch_id: int,
    month: int,
    year: int,
    exclude_id: Optional[int] = None,
) -> Optional[Salary]:
    """查找员工在某个参考月份的工资记录"""
    query = select(Salary).where(
        Salary.employee_id == employee_id,
        Salary.branch_id == branch_id,
        Salary.reference_month == month,
        Salary.reference_year == year,
        Salary.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.where(Salary.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.unique().scalar_one_or_none()


@router.get("/", response_model=List[SalaryResponse])
async def list_salaries(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.view")),
    branch_id: Optional[int] = Query(None),
    employee_id: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000)) -> Any:
    """获取工资列表（最近的月份在前）"""
    query = select(Salary).where(
        Salary.company_id == settings.DEFAULT_COMPANY_ID,
        Salary.deleted_at.is_(None),
    )
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        query = query.where(Salary.branch_id == branch_id)
    if employee_id:
        query = query.where(Salary.employee_id == employee_id)
    if month:
        query = query.where(Salary.reference_month == month)
    if year:
        query = query.where(Salary.reference_year == year)

    query = query.order_by(
        Salary.reference_year.desc(), Salary.reference_month.desc(), Salary.id.desc()
    )
    result = await db.execute(query)
    return [build_salary_response(s) for s in result.unique().scalars().all()]


@router.get("/{salary_id}", response_model=SalaryResponse)
async def get_salary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.view")),
    salary_id: int) -> Any:
    """获取工资详情"""
    salary = await _get_salary(db, salary_id)
    validate_branch_access(operator, entity_branch_id=salary.branch_id)
    return build_salary_response(salary)


@router.post("/", response_model=SalaryResponse)
async def create_salary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.process")),
    salary_in: SalaryCreate) -> Any:
    """新建工资记录，金额不填时取员工月薪"""
    payroll.validate_reference_period(salary_in.reference_month, salary_in.reference_year)
    branch_id = resolve_branch_id(salary_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)
    employee = await get_employee_in_branch(db, salary_in.employee_id, branch_id, active_only=True)

    if await find_period_salary(
        db, employee.id, branch_id, salary_in.reference_month, salary_in.reference_year
    ):
        raise HTTPException(status_code=409, detail="该员工在此参考月份已有工资记录")

    amount = salary_in.amount if salary_in.amount is not None else employee.monthly_salary
    user_id = operator.user_id if operator else None
    salary = Salary(
        employee_id=employee.id,
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        amount=round_currency(amount or 0),
        reference_month=salary_in.reference_month,
        reference_year=salary_in.reference_year,
        description=salary_in.description,
        created_by=user_id,
    )
    db.add(salary)
    await db.flush()
    create_audit_log(
        db, action="create", resource_type="salary", resource_id=salary.id,
        description=f"新建工资 {employee.name} {salary.reference_month:02d}/{salary.reference_year}",
        user_id=user_id,
    )
    await db.commit()
    return build_salary_response(await _get_salary(db, salary.id))


@router.put("/{salary_id}", response_model=SalaryResponse)
async def update_salary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.process")),
    salary_id: int,
    salary_in: SalaryUpdate) -> Any:
    """更新工资（已支付的不可修改）"""
    salary = await _get_salary(db, salary_id)
    validate_branch_access(operator, entity_branch_id=salary.branch_id)
    if salary.is_paid:
        raise HTTPException(status_code=400, detail="已支付的工资不能修改")

    update_data = salary_in.model_dump(exclude_unset=True)
    month = update_data.get("reference_month") or salary.reference_month
    year = update_data.get("reference_year") or salary.reference_year
    if month != salary.reference_month or year != salary.reference_year:
        payroll.validate_reference_period(month, year)

    employee_id = update_data.get("employee_id") or salary.employee_id
    if employee_id != salary.employee_id:
        await get_employee_in_branch(db, employee_id, salary.branch_id, active_only=True)

    if await find_period_salary(db, employee_id, salary.branch_id, month, year, exclude_id=salary_id):
        raise HTTPException(status_code=409, detail="该员工在此参考月份已有工资记录")

    if update_data.get("amount") is not None:
        update_data["amount"] = round_currency(update_data["amount"])
    for field, value in update_data.items():
        if value is not None or field == "description":
            setattr(salary, field, value)
    await db.commit()
    return build_salary_response(await _get_salary(db, salary_id))


@router.post("/{salary_id}/pay", response_model=SalaryResponse)
async def pay_salary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.process")),
    salary_id: int,
    pay_in: Optional[SalaryPay] = None) -> Any:
    """支付工资：生成支出流水并关联"""
    salary = await _get_salary(db, salary_id)
    validate_branch_access(operator, entity_branch_id=salary.branch_id)
    if salary.is_paid:
        raise HTTPException(status_code=400, detail="该工资已支付")

    paid_at = (pay_in.payment_date if pay_in else None) or datetime.utcnow()
    user_id = operator.user_id if operator else None
    employee_name = salary.employee.name if salary.employee else ""
    transaction = create_transaction(
        db,
        branch_id=salary.branch_id,
        type="EXPENSE",
        amount=salary.amount,
        description=(
            f"工资 - {employee_name} "
            f"{salary.reference_month:02d}/{salary.reference_year}"
        ),
        origin_type="HR",
        origin_id=salary.id,
        document_number=payroll.salary_document_number(
            salary.reference_month, salary.reference_year
        ),
        transaction_date=paid_at,
        created_by=user_id,
    )
    await db.flush()

    salary.payment_date = paid_at
    salary.financial_transaction_id = transaction.id
    create_audit_log(
        db, action="payment", resource_type="salary", resource_id=salary.id,
        description=f"支付工资 {employee_name}", new_value={"amount": float(salary.amount)},
        user_id=user_id,
    )
    await db.commit()
    return build_salary_response(await _get_salary(db, salary_id))


@router.delete("/{salary_id}", response_model=MessageResponse)
async def delete_salary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.process")),
    salary_id: int) -> Any:
    """删除工资（软删除，已支付的不可删除）"""
    salary = await _get_salary(db, salary_id)
    validate_branch_access(operator, entity_branch_id=salary.branch_id)
    if salary.is_paid:
        raise HTTPException(status_code=400, detail="已支付的工资不能删除")

    salary.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "工资记录已删除"}


@router.post("/process", response_model=ProcessSalariesResponse)
async def process_salaries(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("payroll.process")),
    process_in: ProcessSalaries) -> Any:
    """
    批量处理工资

    遍历分支内在职员工（按姓名），已有记录的按是否支付归类，
    没有记录的按月薪新建，月薪为 0 的跳过
    """
    month, year = process_in.reference_month, process_in.reference_year
    payroll.validate_reference_period(month, year)
    branch_id = resolve_branch_id(process_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    result = await db.execute(
        select(Employee)
        .where(
            Employee.company_id == settings.DEFAULT_COMPANY_ID,
            Employee.branch_id == branch_id,
            Employee.active == True,  # noqa: E712
            Employee.deleted_at.is_(None),
        )
        .order_by(Employee.name)
    )
    employees = result.unique().scalars().all()

    user_id = operator.user_id if operator else None
    counts = {
        payroll.CREATED: 0,
        payroll.ALREADY_PENDING: 0,
        payroll.ALREADY_PAID: 0,
        payroll.SKIPPED_NO_SALARY: 0,
    }
    details = []
    for employee in employees:
        existing = await find_period_salary(db, employee.id, branch_id, month, year)
        status = payroll.classify_employee(existing, employee.monthly_salary)
        counts[status] += 1

        if status == payroll.CREATED:
            salary = Salary(
                employee_id=employee.id,
                company_id=settings.DEFAULT_COMPANY_ID,
                branch_id=branch_id,
                amount=round_currency(employee.monthly_salary),
                reference_month=month,
                reference_year=year,
                description=payroll.auto_description(month, year),
                created_by=user_id,
            )
            db.add(salary)
            await db.flush()
            details.append(ProcessSalaryDetail(
                employee_id=employee.id, employee_name=employee.name, status=status,
                salary_id=salary.id, amount=float(salary.amount),
            ))
        elif existing is not None:
            details.append(ProcessSalaryDetail(
                employee_id=employee.id, employee_name=employee.name, status=status,
                salary_id=existing.id, amount=float(existing.amount or 0),
            ))
        else:
            details.append(ProcessSalaryDetail(
                employee_id=employee.id, employee_name=employee.name, status=status,
            ))

    summary = ProcessSalariesResponse(
        total_employees=len(employees),
        created=counts[payroll.CREATED],
        already_pending=counts[payroll.ALREADY_PENDING],
        already_paid=counts[payroll.ALREADY_PAID],
        skipped_no_salary=counts[payroll.SKIPPED_NO_SALARY],
        details=details,
    )
    create_audit_log(
        db, action="process", resource_type="salary",
        description=f"批量处理工资 {month:02d}/{year}，分支 {branch_id}",
        new_value=summary.model_dump(exclude={"details"}),
        user_id=user_id,
    )
    await db.commit()

    logger.info(
        f"💰 工资处理完成 {month:02d}/{year} 分支 {branch_id}: "
        f"新建 {summary.created}, 待付 {summary.already_pending}, "
        f"已付 {summary.already_paid}, 跳过 {summary.skipped_no_salary}"
    )
    return summary
