"""计量单位 Schema"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UnitBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=20, description="单位编码")
    name: str = Field(..., min_length=1, max_length=50, description="单位名称")
    description: Optional[str] = Field(None, max_length=200)


class UnitCreate(UnitBase):
    pass


class UnitUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    active: Optional[bool] = None


class UnitResponse(UnitBase):
    id: int
    active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
