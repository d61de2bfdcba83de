"""到站登记 - 记录车辆到达分支时的里程"""
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base


class VehicleMarking(Base):
    __tablename__ = "vehicle_markings"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    km = Column(Integer, nullable=False, comment="到站里程")
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    vehicle = relationship("Vehicle", lazy="joined")
    branch = relationship("Branch", lazy="joined")
