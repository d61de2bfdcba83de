"""假期 Schema"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class VacationFinancials(BaseModel):
    """财务快照"""
    monthly_salary: Optional[float] = None
    vacation_base: Optional[float] = None
    vacation_third: Optional[float] = None
    vacation_total: Optional[float] = None
    sold_days_value: Optional[float] = None
    sold_days_third: Optional[float] = None
    sold_days_total: Optional[float] = None
    advance_13th_value: Optional[float] = None
    gross_total: Optional[float] = None
    inss: Optional[float] = None
    irrf: Optional[float] = None
    total_deductions: Optional[float] = None
    net_total: Optional[float] = None
    fgts: Optional[float] = None
    employer_cost: Optional[float] = None


class VacationCreate(VacationFinancials):
    employee_id: int
    branch_id: Optional[int] = None
    start_date: date
    end_date: date
    days: int = Field(..., gt=0, description="天数（含首尾）")
    sold_days: int = Field(0, ge=0, description="折现天数")
    advance_13th: bool = False
    observations: Optional[str] = None


class VacationUpdate(VacationFinancials):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days: Optional[int] = Field(None, gt=0)
    sold_days: Optional[int] = Field(None, ge=0)
    advance_13th: Optional[bool] = None
    status: Optional[str] = Field(None, pattern="^(PLANNED|IN_PROGRESS|COMPLETED|CANCELLED)$")
    observations: Optional[str] = None


class VacationResponse(VacationFinancials):
    id: int
    employee_id: int
    employee_name: str = ""
    branch_id: int
    start_date: date
    end_date: date
    days: int
    sold_days: int
    advance_13th: bool
    status: str
    observations: Optional[str] = None
    created_at: datetime
