"""
应付账款API

支付时检查分支余额，生成支出流水并扣减余额；已支付的账款不可取消或删除
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, get_db, require_permission,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import AccountPayable
from fleet_erp.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountSettle,
    AccountPayableResponse,
    AccountPayableListResponse,
    AccountSummaryResponse,
    SummaryBucket)
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.finance import (
    check_sufficient_balance, create_transaction, round_currency, update_balance
)
from fleet_erp.api.api_v1.endpoints.common import apply_update, get_branch_or_404, paginate

router = APIRouter()

STATUS_DISPLAY = {"PENDING": "待支付", "PAID": "已支付", "CANCELLED": "已取消"}


def build_payable_response(account: AccountPayable) -> AccountPayableResponse:
    """构建应付账款响应"""
    return AccountPayableResponse(
        id=account.id,
        branch_id=account.branch_id,
        branch_name=account.branch.name if account.branch else "",
        description=account.description,
        amount=float(account.amount or 0),
        due_date=account.due_date,
        status=account.status,
        status_display=STATUS_DISPLAY.get(account.status, account.status),
        payment_date=account.payment_date,
        origin_type=account.origin_type,
        origin_id=account.origin_id,
        document_number=account.document_number,
        notes=account.notes,
        financial_transaction_id=account.financial_transaction_id,
        is_overdue=account.status == "PENDING" and account.due_date < datetime.utcnow(),
        created_at=account.created_at)


async def _get_payable(db: AsyncSession, account_id: int) -> AccountPayable:
    result = await db.execute(
        select(AccountPayable)
        .where(
            AccountPayable.id == account_id,
            AccountPayable.company_id == settings.DEFAULT_COMPANY_ID,
            AccountPayable.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    account = result.unique().scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=404, detail="应付账款不存在")
    return account


@router.get("/summary", response_model=AccountSummaryResponse)
async def get_payable_summary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.view-summary")),
    branch_id: Optional[int] = Query(None)) -> Any:
    """应付汇总：待付、逾期、已付、已取消"""
    now = datetime.utcnow()
    overdue = (AccountPayable.status == "PENDING") & (AccountPayable.due_date < now)
    query = select(
        AccountPayable.status,
        func.count(AccountPayable.id),
        func.coalesce(func.sum(AccountPayable.amount), 0),
        func.sum(case((overdue, 1), else_=0)),
        func.coalesce(func.sum(case((overdue, AccountPayable.amount), else_=0)), 0),
    ).where(
        AccountPayable.company_id == settings.DEFAULT_COMPANY_ID,
        AccountPayable.deleted_at.is_(None),
    )
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        query = query.where(AccountPayable.branch_id == branch_id)

    buckets = {key: SummaryBucket() for key in ("pending", "overdue", "settled", "cancelled")}
    result = await db.execute(query.group_by(AccountPayable.status))
    for status, count, amount, overdue_count, overdue_amount in result.all():
        key = {"PENDING": "pending", "PAID": "settled", "CANCELLED": "cancelled"}.get(status)
        if key is None:
            continue
        buckets[key] = SummaryBucket(count=count, amount=float(amount or 0))
        if status == "PENDING":
            buckets["overdue"] = SummaryBucket(
                count=int(overdue_count or 0), amount=float(overdue_amount or 0)
            )

    return AccountSummaryResponse(**buckets)


@router.get("/", response_model=AccountPayableListResponse)
async def list_payables(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.view")),
    branch_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="PENDING / PAID / CANCELLED"),
    origin_type: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, description="到期日起"),
    end_date: Optional[datetime] = Query(None, description="到期日止"),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取应付账款列表（按到期日）"""
    conditions = [
        AccountPayable.company_id == settings.DEFAULT_COMPANY_ID,
        AccountPayable.deleted_at.is_(None),
    ]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(AccountPayable.branch_id == branch_id)
    if status:
        conditions.append(AccountPayable.status == status)
    if origin_type:
        conditions.append(AccountPayable.origin_type == origin_type)
    if start_date:
        conditions.append(AccountPayable.due_date >= start_date)
    if end_date:
        conditions.append(AccountPayable.due_date <= end_date)

    query = select(AccountPayable).where(*conditions).order_by(
        AccountPayable.due_date.asc(), AccountPayable.id.asc()
    )
    count_query = select(func.count(AccountPayable.id)).where(*conditions)
    accounts, total = await paginate(db, query, count_query, page, limit)

    return AccountPayableListResponse(
        data=[build_payable_response(a) for a in accounts],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{account_id}", response_model=AccountPayableResponse)
async def get_payable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.view")),
    account_id: int) -> Any:
    """获取应付账款详情"""
    account = await _get_payable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    return build_payable_response(account)


@router.post("/", response_model=AccountPayableResponse)
async def create_payable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.create")),
    account_in: AccountCreate) -> Any:
    """新建应付账款"""
    branch_id = resolve_branch_id(account_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    user_id = operator.user_id if operator else None
    account = AccountPayable(
        **account_in.model_dump(exclude={"branch_id", "amount"}),
        amount=round_currency(account_in.amount),
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        status="PENDING",
        created_by=user_id,
    )
    db.add(account)
    await db.flush()
    create_audit_log(
        db, action="create", resource_type="account_payable", resource_id=account.id,
        description=f"新建应付账款 {account.description}", user_id=user_id,
    )
    await db.commit()
    return build_payable_response(await _get_payable(db, account.id))


@router.put("/{account_id}", response_model=AccountPayableResponse)
async def update_payable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.update")),
    account_id: int,
    account_in: AccountUpdate) -> Any:
    """更新应付账款（已支付的不可修改）"""
    account = await _get_payable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "PAID":
        raise HTTPException(status_code=400, detail="已支付的账款不能修改")
    if account.status == "CANCELLED":
        raise HTTPException(status_code=400, detail="已取消的账款不能修改")

    update_data = account_in.model_dump(exclude_unset=True)
    if update_data.get("amount") is not None:
        update_data["amount"] = round_currency(update_data["amount"])
    apply_update(account, update_data)
    await db.commit()
    return build_payable_response(await _get_payable(db, account_id))


@router.post("/{account_id}/pay", response_model=AccountPayableResponse)
async def pay_payable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.pay")),
    account_id: int,
    settle_in: Optional[AccountSettle] = None) -> Any:
    """支付应付账款"""
    account = await _get_payable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "PAID":
        raise HTTPException(status_code=400, detail="该账款已支付")
    if account.status == "CANCELLED":
        raise HTTPException(status_code=400, detail="已取消的账款不能支付")

    amount = Decimal(account.amount)
    await check_sufficient_balance(db, account.branch_id, amount)

    paid_at = (settle_in.settled_at if settle_in else None) or datetime.utcnow()
    user_id = operator.user_id if operator else None
    transaction = create_transaction(
        db,
        branch_id=account.branch_id,
        type="EXPENSE",
        amount=amount,
        description=account.description,
        origin_type=account.origin_type or "OTHER",
        origin_id=account.origin_id,
        document_number=account.document_number,
        notes=settle_in.notes if settle_in else None,
        transaction_date=paid_at,
        created_by=user_id,
    )
    await db.flush()

    account.status = "PAID"
    account.payment_date = paid_at
    account.financial_transaction_id = transaction.id
    await update_balance(db, account.branch_id, amount, is_income=False)

    create_audit_log(
        db, action="payment", resource_type="account_payable", resource_id=account.id,
        description=f"支付应付账款 {account.description}",
        new_value={"amount": float(amount)}, user_id=user_id,
    )
    await db.commit()
    return build_payable_response(await _get_payable(db, account_id))


@router.post("/{account_id}/cancel", response_model=AccountPayableResponse)
async def cancel_payable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.update")),
    account_id: int) -> Any:
    """取消应付账款"""
    account = await _get_payable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "PAID":
        raise HTTPException(status_code=400, detail="已支付的账款无法取消")
    if account.status == "CANCELLED":
        raise HTTPException(status_code=400, detail="该账款已取消")

    account.status = "CANCELLED"
    create_audit_log(
        db, action="cancel", resource_type="account_payable", resource_id=account.id,
        description=f"取消应付账款 {account.description}",
        user_id=operator.user_id if operator else None,
    )
    await db.commit()
    return build_payable_response(await _get_payable(db, account_id))


@router.delete("/{account_id}", response_model=MessageResponse)
async def delete_payable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-payable.delete")),
    account_id: int) -> Any:
    """删除应付账款（软删除，已支付的不可删除）"""
    account = await _get_payable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "PAID":
        raise HTTPException(status_code=400, detail="已支付的账款不能删除")

    account.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "应付账款已删除"}
