"""到站登记 Schema"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from fleet_erp.schemas.common import PageMeta


class VehicleMarkingCreate(BaseModel):
    vehicle_id: int
    branch_id: Optional[int] = None
    km: int = Field(..., ge=0, description="到站里程")


class VehicleMarkingResponse(BaseModel):
    id: int
    vehicle_id: int
    vehicle_plate: str = ""
    branch_id: int
    branch_name: str = ""
    km: int
    created_at: datetime


class VehicleMarkingListResponse(PageMeta):
    data: List[VehicleMarkingResponse]
