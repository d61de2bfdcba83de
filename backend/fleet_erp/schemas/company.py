"""公司与分支 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from fleet_erp.schemas.common import PageMeta


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="公司名称")
    cnpj: str = Field(..., min_length=1, max_length=20, description="企业税号")
    trade_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    cnpj: Optional[str] = Field(None, min_length=1, max_length=20)
    trade_name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    active: Optional[bool] = None


class CompanyResponse(CompanyBase):
    id: int
    email: Optional[str] = None
    active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BranchBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="分支名称")
    code: Optional[str] = Field(None, max_length=50, description="分支编码")
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)


class BranchCreate(BranchBase):
    company_id: Optional[int] = Field(None, description="所属公司，默认单租户公司")


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    active: Optional[bool] = None


class BranchResponse(BranchBase):
    id: int
    company_id: int
    company_name: str = ""
    email: Optional[str] = None
    active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


class BranchListResponse(PageMeta):
    data: List[BranchResponse]
