"""保养标签与维修单 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from fleet_erp.schemas.common import PageMeta


class MaintenanceLabelCreate(BaseModel):
    """创建保养标签；product_ids 为空时使用车辆全部更换项"""
    vehicle_id: int
    branch_id: int
    product_ids: Optional[List[int]] = Field(None, description="车辆更换项ID")


class MaintenanceLabelItemResponse(BaseModel):
    id: int
    replacement_item_id: int
    name: str
    replace_every_km: int
    last_change_km: int
    next_change_km: int


class MaintenanceLabelResponse(BaseModel):
    id: int
    vehicle_id: int
    vehicle_plate: str = ""
    branch_id: int
    branch_name: str = ""
    items: List[MaintenanceLabelItemResponse]
    created_at: datetime


class MaintenanceLabelListResponse(PageMeta):
    data: List[MaintenanceLabelResponse]


class MaintenanceDueItem(BaseModel):
    id: int
    product_id: int
    product_name: str
    replace_every_km: int
    last_change_km: int
    next_change_km: int
    status: str = Field(..., description="ok / warning / due")


class MaintenanceDueResponse(BaseModel):
    reference_km: int
    items: List[MaintenanceDueItem]


class ProductChangeItem(BaseModel):
    replacement_item_id: int
    cost: Optional[float] = Field(None, description="费用，负数按 0 处理")


class RegisterProductChange(BaseModel):
    """路边更换登记"""
    vehicle_id: int
    branch_id: int
    change_km: int = Field(..., ge=0)
    items: List[ProductChangeItem] = Field(..., min_length=1)
    service_date: Optional[datetime] = None


class RegisterProductChangeResponse(BaseModel):
    order_id: int


ORDER_TYPE_PATTERN = "^(PREVENTIVE|CORRECTIVE)$"


class MaintenanceWorkerIn(BaseModel):
    employee_id: int
    is_responsible: bool = False


class MaintenanceServiceIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    cost: float = Field(0, ge=0)


class MaintenanceMaterialIn(BaseModel):
    product_id: int
    vehicle_replacement_item_id: Optional[int] = None
    quantity: float = Field(..., gt=0)
    unit_cost: Optional[float] = Field(None, ge=0, description="为空时取商品单价")


class MaintenanceOrderCreate(BaseModel):
    """新建维修单"""
    vehicle_id: int
    branch_id: Optional[int] = None
    type: str = Field(..., pattern=ORDER_TYPE_PATTERN)
    km_at_entry: Optional[int] = Field(None, ge=0)
    service_date: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=500)
    observations: Optional[str] = None
    workers: List[MaintenanceWorkerIn] = Field(default_factory=list)
    services: List[MaintenanceServiceIn] = Field(default_factory=list)
    materials: List[MaintenanceMaterialIn] = Field(default_factory=list)
    replacement_items_changed: List[int] = Field(
        default_factory=list, description="本次更换的车辆更换项ID"
    )


class MaintenanceOrderUpdate(BaseModel):
    """更新维修单，workers / services / materials 传入时整体替换"""
    description: Optional[str] = Field(None, max_length=500)
    observations: Optional[str] = None
    workers: Optional[List[MaintenanceWorkerIn]] = None
    services: Optional[List[MaintenanceServiceIn]] = None
    materials: Optional[List[MaintenanceMaterialIn]] = None


class MaintenanceAction(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class MaintenanceWorkerOut(BaseModel):
    id: int
    employee_id: int
    employee_name: str = ""
    is_responsible: bool


class MaintenanceServiceOut(BaseModel):
    id: int
    description: str
    cost: float


class MaintenanceMaterialOut(BaseModel):
    id: int
    product_id: int
    product_name: str = ""
    vehicle_replacement_item_id: Optional[int] = None
    quantity: float
    unit_cost: float
    total_cost: float


class MaintenanceTimelineOut(BaseModel):
    id: int
    event: str
    notes: Optional[str] = None
    created_at: datetime


class MaintenanceOrderResponse(BaseModel):
    id: int
    order_number: str
    vehicle_id: int
    vehicle_plate: str = ""
    branch_id: int
    branch_name: str = ""
    type: str
    status: str
    status_display: str = ""
    km_at_entry: Optional[int] = None
    service_date: Optional[datetime] = None
    description: Optional[str] = None
    observations: Optional[str] = None
    total_cost: float
    total_time_minutes: int = 0
    workers: List[MaintenanceWorkerOut] = []
    services: List[MaintenanceServiceOut] = []
    materials: List[MaintenanceMaterialOut] = []
    timeline: List[MaintenanceTimelineOut] = []
    created_at: datetime


class MaintenanceOrderListResponse(PageMeta):
    data: List[MaintenanceOrderResponse]
