"""
车辆相关的Pydantic模式
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from fleet_erp.schemas.common import PageMeta


class VehiclePlateIn(BaseModel):
    """车牌"""
    type: str = Field(..., description="CAVALO / PRIMEIRA_CARRETA / DOLLY / SEGUNDA_CARRETA")
    plate: str = Field(..., min_length=1, max_length=20, description="车牌号")


class VehiclePlateOut(VehiclePlateIn):
    id: int


class ReplacementItemIn(BaseModel):
    """按公里更换项；更新时带上 id 以保留历史"""
    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=200)
    replace_every_km: int = Field(..., gt=0, description="更换周期（公里）")


class ReplacementItemOut(BaseModel):
    id: int
    name: str
    replace_every_km: int


class VehicleBase(BaseModel):
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    chassis: Optional[str] = Field(None, max_length=50)
    renavam: Optional[str] = Field(None, max_length=50)


class VehicleCreate(VehicleBase):
    """创建车辆"""
    branch_id: Optional[int] = None
    plates: List[VehiclePlateIn] = Field(..., description="至少一块车牌")
    replacement_items: List[ReplacementItemIn] = Field(default_factory=list)
    current_km: Optional[int] = Field(None, ge=0)
    status: Optional[str] = None


class VehicleUpdate(VehicleBase):
    """更新车辆，plates / replacement_items 传入时整体替换"""
    branch_id: Optional[int] = None
    plates: Optional[List[VehiclePlateIn]] = None
    replacement_items: Optional[List[ReplacementItemIn]] = None
    active: Optional[bool] = None


class VehicleResponse(VehicleBase):
    """车辆响应"""
    id: int
    branch_id: int
    branch_name: str = ""
    plate: str = Field(default="", description="主车牌")
    plates: List[VehiclePlateOut]
    replacement_items: List[ReplacementItemOut]
    current_km: int
    status: str
    status_display: str = ""
    active: bool
    created_at: datetime
    updated_at: datetime


class VehicleListResponse(PageMeta):
    data: List[VehicleResponse]


class VehicleKmUpdate(BaseModel):
    km: int = Field(..., ge=0)
    notes: Optional[str] = None


class VehicleStatusUpdate(BaseModel):
    status: str
    km: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class VehicleStatusHistoryResponse(BaseModel):
    id: int
    vehicle_id: int
    status: str
    km: Optional[int] = None
    notes: Optional[str] = None
    maintenance_order_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
