"""员工 Schema"""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from fleet_erp.schemas.common import PageMeta


class EmployeeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="姓名")
    cpf: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    position: Optional[str] = Field(None, max_length=100, description="岗位")
    department: Optional[str] = Field(None, max_length=100, description="部门")
    hire_date: Optional[date] = None
    monthly_salary: float = Field(0, ge=0, description="月薪")


class EmployeeCreate(EmployeeBase):
    branch_id: Optional[int] = Field(None, description="所属分支，非管理员默认自己的分支")


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    cpf: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    hire_date: Optional[date] = None
    monthly_salary: Optional[float] = Field(None, ge=0)
    branch_id: Optional[int] = None
    active: Optional[bool] = None


class EmployeeResponse(EmployeeBase):
    id: int
    branch_id: int
    branch_name: str = ""
    email: Optional[str] = None
    active: bool
    created_at: datetime
    updated_at: datetime


class EmployeeListResponse(PageMeta):
    data: List[EmployeeResponse]
