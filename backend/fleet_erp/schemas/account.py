"""应付/应收账款 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from fleet_erp.schemas.common import PageMeta

ORIGIN_PATTERN = "^(MAINTENANCE|HR|STOCK|EXPENSE|OTHER)$"


class AccountCreate(BaseModel):
    """创建账款"""
    branch_id: Optional[int] = None
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., gt=0)
    due_date: datetime
    origin_type: Optional[str] = Field(None, pattern=ORIGIN_PATTERN)
    origin_id: Optional[int] = None
    document_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class AccountUpdate(BaseModel):
    """更新账款"""
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = Field(None, gt=0)
    due_date: Optional[datetime] = None
    document_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class AccountSettle(BaseModel):
    """支付/收款"""
    settled_at: Optional[datetime] = Field(None, description="实际收付时间，默认当前时间")
    notes: Optional[str] = None


class AccountPayableResponse(BaseModel):
    id: int
    branch_id: int
    branch_name: str = ""
    description: str
    amount: float
    due_date: datetime
    status: str
    status_display: str = ""
    payment_date: Optional[datetime] = None
    origin_type: Optional[str] = None
    origin_id: Optional[int] = None
    document_number: Optional[str] = None
    notes: Optional[str] = None
    financial_transaction_id: Optional[int] = None
    is_overdue: bool = False
    created_at: datetime


class AccountPayableListResponse(PageMeta):
    data: List[AccountPayableResponse]


class AccountReceivableResponse(BaseModel):
    id: int
    branch_id: int
    branch_name: str = ""
    description: str
    amount: float
    due_date: datetime
    status: str
    status_display: str = ""
    received_date: Optional[datetime] = None
    origin_type: Optional[str] = None
    origin_id: Optional[int] = None
    document_number: Optional[str] = None
    notes: Optional[str] = None
    financial_transaction_id: Optional[int] = None
    is_overdue: bool = False
    created_at: datetime


class AccountReceivableListResponse(PageMeta):
    data: List[AccountReceivableResponse]


class SummaryBucket(BaseModel):
    count: int = 0
    amount: float = 0


class AccountSummaryResponse(BaseModel):
    pending: SummaryBucket
    overdue: SummaryBucket
    settled: SummaryBucket
    cancelled: SummaryBucket
