"""
分支钱包API

余额查询、余额检查、管理员手工调整及调整记录
"""
import logging
from decimal import Decimal
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.deps import (
    Operator, get_db, require_admin, require_permission, resolve_branch_id,
)
from fleet_erp.models import BalanceAdjustment
from fleet_erp.schemas.financial import (
    BalanceAdjust,
    BalanceAdjustmentResponse,
    BalanceCheckResponse,
    BranchBalanceResponse)
from fleet_erp.services.audit import create_audit_log
from fleet_erp.services.finance import get_or_create_branch_balance, round_currency
from fleet_erp.api.api_v1.endpoints.common import get_branch_or_404

router = APIRouter()
logger = logging.getLogger(__name__)


async def _balance_response(db: AsyncSession, branch_id: int) -> BranchBalanceResponse:
    branch = await get_branch_or_404(db, branch_id)
    balance = await get_or_create_branch_balance(db, branch_id)
    await db.commit()
    return BranchBalanceResponse(
        branch_id=branch_id,
        branch_name=branch.name,
        balance=float(balance.balance or 0),
        updated_at=balance.updated_at)


@router.get("/", response_model=BranchBalanceResponse)
async def get_wallet(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("wallet.view")),
    branch_id: Optional[int] = Query(None)) -> Any:
    """获取分支余额（未指定时使用操作人所属分支）"""
    return await _balance_response(db, resolve_branch_id(branch_id, operator))


@router.get("/check", response_model=BalanceCheckResponse)
async def check_balance(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("wallet.view")),
    amount: float = Query(..., gt=0),
    branch_id: Optional[int] = Query(None)) -> Any:
    """检查余额是否足够支付指定金额"""
    branch_id = resolve_branch_id(branch_id, operator)
    await get_branch_or_404(db, branch_id)
    balance = await get_or_create_branch_balance(db, branch_id)
    await db.commit()
    current = Decimal(balance.balance or 0)
    return BalanceCheckResponse(
        branch_id=branch_id,
        balance=float(current),
        amount=float(round_currency(amount)),
        sufficient=current >= round_currency(amount))


@router.get("/adjustments", response_model=List[BalanceAdjustmentResponse])
async def list_adjustments(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("wallet.view-history")),
    branch_id: Optional[int] = Query(None)) -> Any:
    """余额调整记录（最新在前）"""
    branch_id = resolve_branch_id(branch_id, operator)
    await get_branch_or_404(db, branch_id)
    balance = await get_or_create_branch_balance(db, branch_id)
    result = await db.execute(
        select(BalanceAdjustment)
        .where(BalanceAdjustment.branch_balance_id == balance.id)
        .order_by(BalanceAdjustment.created_at.desc(), BalanceAdjustment.id.desc())
    )
    adjustments = result.scalars().all()
    await db.commit()
    return [
        BalanceAdjustmentResponse(
            id=a.id,
            previous_balance=float(a.previous_balance),
            new_balance=float(a.new_balance),
            adjustment_type=a.adjustment_type,
            reason=a.reason,
            created_at=a.created_at)
        for a in adjustments
    ]


@router.get("/{branch_id}", response_model=BranchBalanceResponse)
async def get_branch_wallet(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("wallet.view")),
    branch_id: int) -> Any:
    return await _balance_response(db, resolve_branch_id(branch_id, operator))


@router.post("/adjust", response_model=BranchBalanceResponse)
async def adjust_balance(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_admin),
    adjust_in: BalanceAdjust) -> Any:
    """
    手工调整余额（仅管理员）

    直接把余额设为 new_balance，并记录调整前后的值
    """
    branch_id = resolve_branch_id(adjust_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)
    balance = await get_or_create_branch_balance(db, branch_id)

    previous = Decimal(balance.balance or 0)
    new_balance = round_currency(adjust_in.new_balance)
    user_id = operator.user_id if operator else None
    db.add(BalanceAdjustment(
        branch_balance_id=balance.id,
        previous_balance=previous,
        new_balance=new_balance,
        adjustment_type=adjust_in.adjustment_type,
        reason=adjust_in.reason,
        created_by=user_id,
    ))
    balance.balance = new_balance
    create_audit_log(
        db, action="adjust", resource_type="wallet", resource_id=branch_id,
        description=f"余额调整 {previous:.2f} → {new_balance:.2f}",
        new_value={"previous_balance": float(previous), "new_balance": float(new_balance)},
        user_id=user_id,
    )
    await db.commit()
    logger.info(f"💰 分支 {branch_id} 余额调整: {previous:.2f} → {new_balance:.2f}")
    return await _balance_response(db, branch_id)
