"""商品 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from fleet_erp.schemas.common import PageMeta


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="商品名称")
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    unit_of_measurement_id: Optional[int] = None
    unit_price: float = Field(0, ge=0)
    min_quantity: float = Field(0, ge=0)


class ProductCreate(ProductBase):
    branch_id: Optional[int] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    unit_of_measurement_id: Optional[int] = None
    unit_price: Optional[float] = Field(None, ge=0)
    min_quantity: Optional[float] = Field(None, ge=0)
    active: Optional[bool] = None


class ProductResponse(ProductBase):
    id: int
    branch_id: int
    unit_code: str = ""
    active: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(PageMeta):
    data: List[ProductResponse]
