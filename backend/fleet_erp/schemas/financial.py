"""财务流水与钱包 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from fleet_erp.schemas.common import PageMeta


class FinancialTransactionResponse(BaseModel):
    id: int
    branch_id: int
    type: str
    amount: float
    description: str
    transaction_date: datetime
    origin_type: Optional[str] = None
    origin_id: Optional[int] = None
    document_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class FinancialTransactionListResponse(PageMeta):
    data: List[FinancialTransactionResponse]


class BranchBalanceResponse(BaseModel):
    branch_id: int
    branch_name: str = ""
    balance: float
    updated_at: Optional[datetime] = None


class BalanceAdjust(BaseModel):
    """手工调整余额（直接设为新余额）"""
    branch_id: Optional[int] = None
    new_balance: float
    adjustment_type: str = Field("CORRECTION", pattern="^(CORRECTION|INITIAL|OTHER)$")
    reason: Optional[str] = Field(None, max_length=500)


class BalanceAdjustmentResponse(BaseModel):
    id: int
    previous_balance: float
    new_balance: float
    adjustment_type: str
    reason: Optional[str] = None
    created_at: datetime


class BalanceCheckResponse(BaseModel):
    branch_id: int
    balance: float
    amount: float
    sufficient: bool
