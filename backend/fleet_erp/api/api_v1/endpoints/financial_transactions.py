"""
财务流水API（只读）
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import Operator, get_db, require_permission, scope_branch_filter, validate_branch_access
from fleet_erp.models import FinancialTransaction
from fleet_erp.schemas.common import count_pages
from fleet_erp.schemas.financial import FinancialTransactionResponse, FinancialTransactionListResponse
from fleet_erp.api.api_v1.endpoints.common import paginate

router = APIRouter()


def build_transaction_response(transaction: FinancialTransaction) -> FinancialTransactionResponse:
    return FinancialTransactionResponse(
        id=transaction.id,
        branch_id=transaction.branch_id,
        type=transaction.type,
        amount=float(transaction.amount or 0),
        description=transaction.description,
        transaction_date=transaction.transaction_date,
        origin_type=transaction.origin_type,
        origin_id=transaction.origin_id,
        document_number=transaction.document_number,
        notes=transaction.notes,
        created_at=transaction.created_at)


@router.get("/", response_model=FinancialTransactionListResponse)
async def list_transactions(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("wallet.view-history")),
    branch_id: Optional[int] = Query(None),
    type: Optional[str] = Query(None, pattern="^(INCOME|EXPENSE)$"),
    origin_type: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取财务流水列表（按交易时间倒序）"""
    conditions = [FinancialTransaction.company_id == settings.DEFAULT_COMPANY_ID]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(FinancialTransaction.branch_id == branch_id)
    if type:
        conditions.append(FinancialTransaction.type == type)
    if origin_type:
        conditions.append(FinancialTransaction.origin_type == origin_type)
    if start_date:
        conditions.append(FinancialTransaction.transaction_date >= start_date)
    if end_date:
        conditions.append(FinancialTransaction.transaction_date <= end_date)

    query = select(FinancialTransaction).where(*conditions).order_by(
        FinancialTransaction.transaction_date.desc(), FinancialTransaction.id.desc()
    )
    count_query = select(func.count(FinancialTransaction.id)).where(*conditions)
    transactions, total = await paginate(db, query, count_query, page, limit)

    return FinancialTransactionListResponse(
        data=[build_transaction_response(t) for t in transactions],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{transaction_id}", response_model=FinancialTransactionResponse)
async def get_transaction(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("wallet.view-history")),
    transaction_id: int) -> Any:
    transaction = await db.get(FinancialTransaction, transaction_id)
    if not transaction or transaction.company_id != settings.DEFAULT_COMPANY_ID:
        raise HTTPException(status_code=404, detail="财务流水不存在")
    validate_branch_access(operator, entity_branch_id=transaction.branch_id)
    return build_transaction_response(transaction)
