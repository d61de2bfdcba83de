"""
保养标签与维修单模型

保养标签（MaintenanceLabel）记录某次为车辆打印/登记的更换项，
每个标签项保存该更换项"上次更换里程"，下次更换里程 = 上次 + 周期

维修单（MaintenanceOrder）状态流转：
OPEN → IN_PROGRESS ⇄ PAUSED → COMPLETED，未完成前可随时 CANCELLED
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base

ORDER_TYPES = ("PREVENTIVE", "CORRECTIVE")
ORDER_STATUSES = ("OPEN", "IN_PROGRESS", "PAUSED", "COMPLETED", "CANCELLED")
TIMELINE_EVENTS = ("STARTED", "PAUSED", "RESUMED", "COMPLETED", "CANCELLED")


class MaintenanceLabel(Base):
    """保养标签"""
    __tablename__ = "maintenance_labels"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    vehicle = relationship("Vehicle", lazy="joined")
    branch = relationship("Branch", lazy="joined")
    items = relationship(
        "MaintenanceLabelItem", back_populates="label", lazy="selectin",
        cascade="all, delete-orphan", order_by="MaintenanceLabelItem.id",
    )


class MaintenanceLabelItem(Base):
    """标签项 - 某个更换项在该标签上的上次更换里程"""
    __tablename__ = "maintenance_label_items"

    id = Column(Integer, primary_key=True, index=True)
    label_id = Column(Integer, ForeignKey("maintenance_labels.id"), nullable=False, index=True)
    replacement_item_id = Column(
        Integer, ForeignKey("vehicle_replacement_items.id"), nullable=False, index=True
    )
    last_change_km = Column(Integer, nullable=False, comment="上次更换里程")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    label = relationship("MaintenanceLabel", back_populates="items")
    replacement_item = relationship("VehicleReplacementItem", lazy="joined")


class MaintenanceOrder(Base):
    """维修单"""
    __tablename__ = "maintenance_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(30), nullable=False, index=True, comment="单号 OM-年份-序号")
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    type = Column(String(20), nullable=False, default="PREVENTIVE", comment="维修类型")
    status = Column(String(20), nullable=False, default="OPEN", index=True, comment="状态")
    km_at_entry = Column(Integer, nullable=True, comment="进厂里程")
    service_date = Column(DateTime, nullable=True)
    description = Column(String(500))
    observations = Column(Text)
    total_cost = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False)
    total_time_minutes = Column(Integer, default=0, nullable=False, comment="实际作业分钟数")
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    vehicle = relationship("Vehicle", lazy="joined")
    branch = relationship("Branch", lazy="joined")
    workers = relationship(
        "MaintenanceWorker", back_populates="order", lazy="selectin",
        cascade="all, delete-orphan", order_by="MaintenanceWorker.id",
    )
    services = relationship(
        "MaintenanceServiceItem", back_populates="order", lazy="selectin",
        cascade="all, delete-orphan", order_by="MaintenanceServiceItem.id",
    )
    materials = relationship(
        "MaintenanceMaterial", back_populates="order", lazy="selectin",
        cascade="all, delete-orphan", order_by="MaintenanceMaterial.id",
    )
    timeline = relationship(
        "MaintenanceTimeline", back_populates="order", lazy="selectin",
        cascade="all, delete-orphan", order_by="MaintenanceTimeline.id",
    )


class MaintenanceWorker(Base):
    """维修单作业人员"""
    __tablename__ = "maintenance_workers"

    id = Column(Integer, primary_key=True, index=True)
    maintenance_order_id = Column(
        Integer, ForeignKey("maintenance_orders.id"), nullable=False, index=True
    )
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    is_responsible = Column(Boolean, default=False, nullable=False, comment="负责人")
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("MaintenanceOrder", back_populates="workers")
    employee = relationship("Employee", lazy="joined")


class MaintenanceServiceItem(Base):
    """维修单服务项（人工、外协等）"""
    __tablename__ = "maintenance_services"

    id = Column(Integer, primary_key=True, index=True)
    maintenance_order_id = Column(
        Integer, ForeignKey("maintenance_orders.id"), nullable=False, index=True
    )
    description = Column(String(500), nullable=False)
    cost = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False)
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("MaintenanceOrder", back_populates="services")


class MaintenanceMaterial(Base):
    """维修单用料"""
    __tablename__ = "maintenance_materials"

    id = Column(Integer, primary_key=True, index=True)
    maintenance_order_id = Column(
        Integer, ForeignKey("maintenance_orders.id"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    vehicle_replacement_item_id = Column(
        Integer, ForeignKey("vehicle_replacement_items.id"), nullable=True
    )
    quantity = Column(DECIMAL(12, 3), nullable=False, comment="数量")
    unit_cost = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False, comment="单价")
    total_cost = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False, comment="小计")
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("MaintenanceOrder", back_populates="materials")
    product = relationship("Product", lazy="joined")


class MaintenanceTimeline(Base):
    """维修单作业时间线（开始、暂停、恢复、完成、取消）"""
    __tablename__ = "maintenance_timeline"

    id = Column(Integer, primary_key=True, index=True)
    maintenance_order_id = Column(
        Integer, ForeignKey("maintenance_orders.id"), nullable=False, index=True
    )
    event = Column(String(20), nullable=False)
    notes = Column(String(500))
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    order = relationship("MaintenanceOrder", back_populates="timeline")
