"""
应收账款API

收款时生成收入流水并增加分支余额
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
from fleet_erp.models import AccountReceivable
from fleet_erp.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountSettle,
    AccountReceivableResponse,
    AccountReceivableListResponse,
    AccountSummaryResponse,
    SummaryBucket)
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.finance import create_transaction, round_currency, update_balance
from fleet_erp.api.api_v1.endpoints.common import apply_update, get_branch_or_404, paginate

router = APIRouter()

STATUS_DISPLAY = {"PENDING": "待收款", "RECEIVED": "已收款", "CANCELLED": "已取消"}


def build_receivable_response(account: AccountReceivable) -> AccountReceivableResponse:
    return AccountReceivableResponse(
        id=account.id,
        branch_id=account.branch_id,
        branch_name=account.branch.name if account.branch else "",
        description=account.description,
        amount=float(account.amount or 0),
        due_date=account.due_date,
        status=account.status,
        status_display=STATUS_DISPLAY.get(account.status, account.status),
        received_date=account.received_date,
        origin_type=account.origin_type,
        origin_id=account.origin_id,
        document_number=account.document_number,
        notes=account.notes,
        financial_transaction_id=account.financial_transaction_id,
        is_overdue=account.status == "PENDING" and account.due_date < datetime.utcnow(),
        created_at=account.created_at)


async def _get_receivable(db: AsyncSession, account_id: int) -> AccountReceivable:
    result = await db.execute(
        select(AccountReceivable)
        .where(
            AccountReceivable.id == account_id,
            AccountReceivable.company_id == settings.DEFAULT_COMPANY_ID,
            AccountReceivable.deleted_at.is_(None),
        )
        .execution_options(populate_existing=True)
    )
    account = result.unique().scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=404, detail="应收账款不存在")
    return account


@router.get("/summary", response_model=AccountSummaryResponse)
async def get_receivable_summary(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.view")),
    branch_id: Optional[int] = Query(None)) -> Any:
    """应收汇总"""
    now = datetime.utcnow()
    overdue = (AccountReceivable.status == "PENDING") & (AccountReceivable.due_date < now)
    query = select(
        AccountReceivable.status,
        func.count(AccountReceivable.id),
        func.coalesce(func.sum(AccountReceivable.amount), 0),
        func.sum(case((overdue, 1), else_=0)),
        func.coalesce(func.sum(case((overdue, AccountReceivable.amount), else_=0)), 0),
    ).where(
        AccountReceivable.company_id == settings.DEFAULT_COMPANY_ID,
        AccountReceivable.deleted_at.is_(None),
    )
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        query = query.where(AccountReceivable.branch_id == branch_id)

    buckets = {key: SummaryBucket() for key in ("pending", "overdue", "settled", "cancelled")}
    result = await db.execute(query.group_by(AccountReceivable.status))
    for status, count, amount, overdue_count, overdue_amount in result.all():
        key = {"PENDING": "pending", "RECEIVED": "settled", "CANCELLED": "cancelled"}.get(status)
        if key is None:
            continue
        buckets[key] = SummaryBucket(count=count, amount=float(amount or 0))
        if status == "PENDING":
            buckets["overdue"] = SummaryBucket(
                count=int(overdue_count or 0), amount=float(overdue_amount or 0)
            )

    return AccountSummaryResponse(**buckets)


@router.get("/", response_model=AccountReceivableListResponse)
async def list_receivables(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.view")),
    branch_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="PENDING / RECEIVED / CANCELLED"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取应收账款列表"""
    conditions = [
        AccountReceivable.company_id == settings.DEFAULT_COMPANY_ID,
        AccountReceivable.deleted_at.is_(None),
    ]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(AccountReceivable.branch_id == branch_id)
    if status:
        conditions.append(AccountReceivable.status == status)
    if start_date:
        conditions.append(AccountReceivable.due_date >= start_date)
    if end_date:
        conditions.append(AccountReceivable.due_date <= end_date)

    query = select(AccountReceivable).where(*conditions).order_by(
        AccountReceivable.due_date.asc(), AccountReceivable.id.asc()
    )
    count_query = select(func.count(AccountReceivable.id)).where(*conditions)
    accounts, total = await paginate(db, query, count_query, page, limit)

    return AccountReceivableListResponse(
        data=[build_receivable_response(a) for a in accounts],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{account_id}", response_model=AccountReceivableResponse)
async def get_receivable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.view")),
    account_id: int) -> Any:
    account = await _get_receivable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    return build_receivable_response(account)


@router.post("/", response_model=AccountReceivableResponse)
async def create_receivable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.create")),
    account_in: AccountCreate) -> Any:
    """新建应收账款"""
    branch_id = resolve_branch_id(account_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)

    account = AccountReceivable(
        **account_in.model_dump(exclude={"branch_id", "amount"}),
        amount=round_currency(account_in.amount),
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        status="PENDING",
        created_by=operator.user_id if operator else None,
    )
    db.add(account)
    await db.commit()
    return build_receivable_response(await _get_receivable(db, account.id))


@router.put("/{account_id}", response_model=AccountReceivableResponse)
async def update_receivable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.update")),
    account_id: int,
    account_in: AccountUpdate) -> Any:
    account = await _get_receivable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status != "PENDING":
        raise HTTPException(status_code=400, detail="只有待收款的账款可以修改")

    update_data = account_in.model_dump(exclude_unset=True)
    if update_data.get("amount") is not None:
        update_data["amount"] = round_currency(update_data["amount"])
    apply_update(account, update_data)
    await db.commit()
    return build_receivable_response(await _get_receivable(db, account_id))


@router.post("/{account_id}/receive", response_model=AccountReceivableResponse)
async def receive_receivable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.receive")),
    account_id: int,
    settle_in: Optional[AccountSettle] = None) -> Any:
    """收款：生成收入流水并增加余额"""
    account = await _get_receivable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "RECEIVED":
        raise HTTPException(status_code=400, detail="该账款已收款")
    if account.status == "CANCELLED":
        raise HTTPException(status_code=400, detail="已取消的账款不能收款")

    amount = Decimal(account.amount)
    received_at = (settle_in.settled_at if settle_in else None) or datetime.utcnow()
    user_id = operator.user_id if operator else None
    transaction = create_transaction(
        db,
        branch_id=account.branch_id,
        type="INCOME",
        amount=amount,
        description=account.description,
        origin_type=account.origin_type or "OTHER",
        origin_id=account.origin_id,
        document_number=account.document_number,
        notes=settle_in.notes if settle_in else None,
        transaction_date=received_at,
        created_by=user_id,
    )
    await db.flush()

    account.status = "RECEIVED"
    account.received_date = received_at
    account.financial_transaction_id = transaction.id
    await update_balance(db, account.branch_id, amount, is_income=True)

    create_audit_log(
        db, action="payment", resource_type="account_receivable", resource_id=account.id,
        description=f"收取应收账款 {account.description}",
        new_value={"amount": float(amount)}, user_id=user_id,
    )
    await db.commit()
    return build_receivable_response(await _get_receivable(db, account_id))


@router.post("/{account_id}/cancel", response_model=AccountReceivableResponse)
async def cancel_receivable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.update")),
    account_id: int) -> Any:
    account = await _get_receivable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "RECEIVED":
        raise HTTPException(status_code=400, detail="已收款的账款无法取消")
    if account.status == "CANCELLED":
        raise HTTPException(status_code=400, detail="该账款已取消")

    account.status = "CANCELLED"
    create_audit_log(
        db, action="cancel", resource_type="account_receivable", resource_id=account.id,
        description=f"取消应收账款 {account.description}",
        user_id=operator.user_id if operator else None,
    )
    await db.commit()
    return build_receivable_response(await _get_receivable(db, account_id))


@router.delete("/{account_id}", response_model=MessageResponse)
async def delete_receivable(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("accounts-receivable.delete")),
    account_id: int) -> Any:
    """删除应收账款（软删除，已收款的不可删除）"""
    account = await _get_receivable(db, account_id)
    validate_branch_access(operator, entity_branch_id=account.branch_id)
    if account.status == "RECEIVED":
        raise HTTPException(status_code=400, detail="已收款的账款不能删除")

    account.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "应收账款已删除"}
