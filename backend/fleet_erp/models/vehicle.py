"""
车辆模型

结构说明：
- 分支（Branch）
  └── 车辆（Vehicle）
      ├── 车牌（VehiclePlate）：牵引车/第一挂车/拖台/第二挂车，每种类型最多一块
      ├── 按公里更换项（VehicleReplacementItem）：如机油每 10000 km 更换
      └── 状态历史（VehicleStatusHistory）：状态、里程变化的流水
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base

# 车牌类型
PLATE_TYPES = ("CAVALO", "PRIMEIRA_CARRETA", "DOLLY", "SEGUNDA_CARRETA")
PRIMARY_PLATE_TYPE = "CAVALO"

# 车辆状态
VEHICLE_STATUSES = ("ACTIVE", "MAINTENANCE", "STOPPED")

STATUS_DISPLAY = {
    "ACTIVE": "运行中",
    "MAINTENANCE": "维修中",
    "STOPPED": "停运",
}


class Vehicle(Base):
    """车辆模型 - 属于某个分支"""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    brand = Column(String(100), comment="品牌")
    model = Column(String(100), comment="型号")
    year = Column(Integer, comment="年份")
    color = Column(String(50))
    chassis = Column(String(50), comment="车架号")
    renavam = Column(String(50), comment="登记号")

    current_km = Column(Integer, default=0, nullable=False, comment="当前里程")
    status = Column(String(20), default="ACTIVE", nullable=False, index=True, comment="状态")
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    branch = relationship("Branch", lazy="joined")
    plates = relationship(
        "VehiclePlate", back_populates="vehicle", lazy="selectin",
        cascade="all, delete-orphan", order_by="VehiclePlate.id",
    )
    replacement_items = relationship(
        "VehicleReplacementItem", back_populates="vehicle", lazy="selectin",
        cascade="all, delete-orphan", order_by="VehicleReplacementItem.id",
    )

    @property
    def primary_plate(self) -> str:
        """主车牌：优先牵引车车牌，否则第一块车牌"""
        if not self.plates:
            return ""
        for plate in self.plates:
            if plate.type == PRIMARY_PLATE_TYPE:
                return plate.plate
        return self.plates[0].plate

    @property
    def status_display(self) -> str:
        return STATUS_DISPLAY.get(self.status, self.status)


class VehiclePlate(Base):
    """车牌"""
    __tablename__ = "vehicle_plates"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False, comment="车牌类型")
    plate = Column(String(20), nullable=False, index=True, comment="车牌号")

    vehicle = relationship("Vehicle", back_populates="plates")


class VehicleReplacementItem(Base):
    """按公里更换的配件/耗材"""
    __tablename__ = "vehicle_replacement_items"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False, comment="名称，如：机油、滤芯")
    replace_every_km = Column(Integer, nullable=False, comment="更换周期（公里）")

    created_at = Column(DateTime, default=datetime.utcnow)

    vehicle = relationship("Vehicle", back_populates="replacement_items")


class VehicleStatusHistory(Base):
    """车辆状态/里程历史"""
    __tablename__ = "vehicle_status_history"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    km = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    maintenance_order_id = Column(Integer, ForeignKey("maintenance_orders.id"), nullable=True)
    created_by = Column(Integer, nullable=True, comment="操作人ID")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
