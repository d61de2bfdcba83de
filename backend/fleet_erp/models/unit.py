"""计量单位模型"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from fleet_erp.db.base import Base


class UnitOfMeasurement(Base):
    """计量单位

    如：UN（个）、L（升）、KG（千克），编码全局唯一
    """
    __tablename__ = "units_of_measurement"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True, comment="单位编码")
    name = Column(String(50), nullable=False, comment="单位名称")
    description = Column(String(200), nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
