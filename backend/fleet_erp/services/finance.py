"""
资金相关的公共操作：金额取整、分支余额增减、财务流水记账
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.models import Branch, BranchBalance, FinancialTransaction

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def round_currency(value: Union[int, float, Decimal, None]) -> Decimal:
    """金额保留两位小数（四舍五入）"""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


async def get_or_create_branch_balance(db: AsyncSession, branch_id: int) -> BranchBalance:
    """获取分支余额，不存在则以 0 初始化"""
    result = await db.execute(
        select(BranchBalance).where(BranchBalance.branch_id == branch_id)
    )
    balance = result.scalar_one_or_none()
    if balance:
        return balance

    branch = await db.get(Branch, branch_id)
    if not branch or branch.deleted_at is not None:
        raise HTTPException(status_code=404, detail="分支不存在")

    balance = BranchBalance(
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        balance=Decimal("0.00"),
    )
    db.add(balance)
    await db.flush()
    return balance


async def check_sufficient_balance(db: AsyncSession, branch_id: int, amount: Decimal) -> None:
    """余额不足时抛出 400，提示当前余额与缺口"""
    balance = await get_or_create_branch_balance(db, branch_id)
    current = Decimal(balance.balance or 0)
    amount = round_currency(amount)
    if current < amount:
        raise HTTPException(
            status_code=400,
            detail=(
                f"余额不足：当前余额 {current:.2f}，需要 {amount:.2f}，"
                f"缺少 {amount - current:.2f}"
            ),
        )


async def update_balance(
    db: AsyncSession, branch_id: int, amount: Decimal, is_income: bool
) -> BranchBalance:
    """收入增加余额，支出扣减余额"""
    balance = await get_or_create_branch_balance(db, branch_id)
    amount = round_currency(amount)
    current = Decimal(balance.balance or 0)
    balance.balance = current + amount if is_income else current - amount
    logger.debug(f"分支 {branch_id} 余额 {current} → {balance.balance}")
    return balance


def create_transaction(
    db: AsyncSession,
    *,
    branch_id: int,
    type: str,
    amount: Decimal,
    description: str,
    origin_type: Optional[str] = None,
    origin_id: Optional[int] = None,
    document_number: Optional[str] = None,
    notes: Optional[str] = None,
    transaction_date: Optional[datetime] = None,
    created_by: Optional[int] = None,
) -> FinancialTransaction:
    """登记一条财务流水（调用方负责 flush/commit）"""
    transaction = FinancialTransaction(
        company_id=settings.DEFAULT_COMPANY_ID,
        branch_id=branch_id,
        type=type,
        amount=round_currency(amount),
        description=description,
        origin_type=origin_type,
        origin_id=origin_id,
        document_number=document_number,
        notes=notes,
        transaction_date=transaction_date or datetime.utcnow(),
        created_by=created_by,
    )
    db.add(transaction)
    return transaction
