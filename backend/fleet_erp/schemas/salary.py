"""工资 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class SalaryCreate(BaseModel):
    employee_id: int
    branch_id: Optional[int] = None
    reference_month: int = Field(..., ge=1, le=12)
    reference_year: int = Field(..., ge=2000)
    amount: Optional[float] = Field(None, ge=0, description="不填则取员工月薪")
    description: Optional[str] = Field(None, max_length=300)


class SalaryUpdate(BaseModel):
    employee_id: Optional[int] = None
    reference_month: Optional[int] = Field(None, ge=1, le=12)
    reference_year: Optional[int] = Field(None, ge=2000)
    amount: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=300)


class SalaryPay(BaseModel):
    payment_date: Optional[datetime] = None


class SalaryResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: str = ""
    branch_id: int
    amount: float
    reference_month: int
    reference_year: int
    payment_date: Optional[datetime] = None
    description: Optional[str] = None
    financial_transaction_id: Optional[int] = None
    is_paid: bool
    created_at: datetime


class ProcessSalaries(BaseModel):
    """批量处理某个月份的工资"""
    branch_id: Optional[int] = None
    reference_month: int = Field(..., ge=1, le=12)
    reference_year: int = Field(..., ge=2000)


class ProcessSalaryDetail(BaseModel):
    employee_id: int
    employee_name: str
    status: str
    salary_id: Optional[int] = None
    amount: Optional[float] = None


class ProcessSalariesResponse(BaseModel):
    total_employees: int
    created: int
    already_pending: int
    already_paid: int
    skipped_no_salary: int
    details: List[ProcessSalaryDetail]
