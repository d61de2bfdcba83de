"""商品模型（车辆配件、油品等）"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False, comment="商品名称")
    code = Column(String(50), comment="商品编码")
    description = Column(String(500))
    unit_of_measurement_id = Column(
        Integer, ForeignKey("units_of_measurement.id"), nullable=True, index=True
    )
    unit_price = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="单价")
    min_quantity = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="最低库存")
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    unit = relationship("UnitOfMeasurement", lazy="joined")
    branch = relationship("Branch", lazy="joined")
