"""费用 Schema"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

EXPENSE_TYPE_PATTERN = "^(TRANSPORT|MEAL|ACCOMMODATION|OTHER)$"


class ExpenseCreate(BaseModel):
    branch_id: Optional[int] = None
    employee_id: Optional[int] = None
    type: str = Field(..., pattern=EXPENSE_TYPE_PATTERN)
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=500)
    expense_date: datetime
    document_number: Optional[str] = Field(None, max_length=50)


class ExpenseUpdate(BaseModel):
    employee_id: Optional[int] = None
    type: Optional[str] = Field(None, pattern=EXPENSE_TYPE_PATTERN)
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    expense_date: Optional[datetime] = None
    document_number: Optional[str] = Field(None, max_length=50)


class ExpenseResponse(BaseModel):
    id: int
    branch_id: int
    branch_name: str = ""
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None
    type: str
    type_display: str = ""
    amount: float
    description: str
    expense_date: datetime
    document_number: Optional[str] = None
    financial_transaction_id: Optional[int] = None
    created_at: datetime
