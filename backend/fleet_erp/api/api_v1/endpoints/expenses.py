"""
费用管理API

登记费用即生成一笔支出流水（来源 HR），分支钱包不扣减；
已生成流水的费用不可修改、删除
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import Expense
from fleet_erp.models.expense import TYPE_DISPLAY
from fleet_erp.schemas.common import MessageResponse
from fleet_erp.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.finance import create_transaction, round_currency
from fleet_erp.api.api_v1.endpoints.common import (
    apply_update, get_branch_or_404, get_employee_in_branch, strip_or_none,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def build_expense_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        branch_id=expense.branch_id,
        branch_name=expense.branch.name if expense.branch else "",
        employee_id=expense.employee_id,
        employee_name=expense.employee.name if expense.employee else None,
        type=expense.type,
        type_display=TYPE_DISPLAY.get(expense.type, expense.type),
        amount=float(expense.amount),
        description=expense.description,
        expense_date=expense.expense_date,
        document_number=expense.document_number,
        financial_transaction_id=expense.financial_transaction_id,
        created_at=expense.created_at)


async def _get_expense(db: AsyncSession, expense_id: int) -> Expense:
    result = await db.execute(
        select(Expense)
        .where(
            Expense.id == expense_id,
            Expense.company_id == settings.DEFAULT_COMPANY_ID,
            Expense.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    expense = result.unique().scalar_one_or_none()
    if not expense:
        raise HTTPException(status_code=404, detail="费用不存在")
    return expense


def _ensure_unposted(expense: Expense) -> None:
    if expense.financial_transaction_id:
        raise HTTPException(status_code=400, detail="费用已生成财务流水，不能修改或删除")


@router.get("/", response_model=List[ExpenseResponse])
async def list_expenses(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("expenses.view")),
    branch_id: Optional[int] = Query(None),
    employee_id: Optional[int] = Query(None),
    type: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="开始日期"),
    end_date: Optional[date] = Query(None, description="结束日期（含当天）")) -> Any:
    """获取费用列表（按费用日期倒序）"""
    conditions = [
        Expense.company_id == settings.DEFAULT_COMPANY_ID,
        Expense.deleted_at.is_(None),
    ]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(Expense.branch_id == branch_id)
    if employee_id:
        conditions.append(Expense.employee_id == employee_id)
    if type:
        conditions.append(Expense.type == type)
    if start_date:
        conditions.append(Expense.expense_date >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        conditions.append(
            Expense.expense_date < datetime.combine(end_date + timedelta(days=1), datetime.min.time())
        )

    result = await db.execute(
        select(Expense)
        .where(*conditions)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
    )
    return [build_expense_response(e) for e in result.unique().scalars().all()]


@router.post("/", response_model=ExpenseResponse)
async def create_expense(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("expenses.create")),
    expense_in: ExpenseCreate) -> Any:
    """登记费用并生成支出流水"""
    branch_id = resolve_branch_id(expense_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    employee = None
    if expense_in.employee_id:
        employee = await get_employee_in_branch(
            db, expense_in.employee_id, branch_id, active_only=True
        )

    user_id = operator.user_id if operator else None
    amount = round_currency(expense_in.amount)
    document_number = strip_or_none(expense_in.document_number)
    expense = Expense(
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        employee_id=employee.id if employee else None,
        type=expense_in.type,
        amount=amount,
        description=expense_in.description.strip(),
        expense_date=expense_in.expense_date,
        document_number=document_number,
        created_by=user_id,
    )
    db.add(expense)
    await db.flush()

    notes = f"费用 {TYPE_DISPLAY[expense.type]}"
    if employee:
        notes += f" - 员工: {employee.name}"
    transaction = create_transaction(
        db,
        branch_id=branch_id,
        type="EXPENSE",
        amount=amount,
        description=expense.description,
        origin_type="HR",
        origin_id=expense.id,
        document_number=document_number,
        notes=notes,
        transaction_date=expense.expense_date,
        created_by=user_id,
    )
    await db.flush()
    expense.financial_transaction_id = transaction.id

    create_audit_log(
        db, action="create", resource_type="expense", resource_id=expense.id,
        description=f"登记费用 {expense.description}",
        new_value={"type": expense.type, "amount": float(amount)},
        user_id=user_id,
    )
    await db.commit()

    logger.info(f"💸 费用已登记: {expense.id}, 分支 {branch_id}, 金额 {amount}")
    return build_expense_response(await _get_expense(db, expense.id))


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("expenses.view")),
    expense_id: int) -> Any:
    """获取费用详情"""
    expense = await _get_expense(db, expense_id)
    validate_branch_access(operator, entity_branch_id=expense.branch_id)
    return build_expense_response(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("expenses.update")),
    expense_id: int,
    expense_in: ExpenseUpdate) -> Any:
    """更新费用"""
    expense = await _get_expense(db, expense_id)
    validate_branch_access(operator, entity_branch_id=expense.branch_id)
    _ensure_unposted(expense)

    update_data = expense_in.model_dump(exclude_unset=True)
    if update_data.get("employee_id"):
        await get_employee_in_branch(db, update_data["employee_id"], expense.branch_id, active_only=True)
    if update_data.get("amount") is not None:
        update_data["amount"] = round_currency(update_data["amount"])
    apply_update(expense, update_data)

    await db.commit()
    return build_expense_response(await _get_expense(db, expense_id))


@router.delete("/{expense_id}", response_model=MessageResponse)
async def delete_expense(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("expenses.delete")),
    expense_id: int) -> Any:
    """删除费用（软删除）"""
    expense = await _get_expense(db, expense_id)
    validate_branch_access(operator, entity_branch_id=expense.branch_id)
    _ensure_unposted(expense)

    expense.deleted_at = datetime.utcnow()
    create_audit_log(
        db, action="delete", resource_type="expense", resource_id=expense.id,
        description=f"删除费用 {expense.description}",
        user_id=operator.user_id if operator else None,
    )
    await db.commit()
    return {"message": "费用已删除"}
