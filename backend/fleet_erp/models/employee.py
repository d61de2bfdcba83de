"""员工模型"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base


class Employee(Base):
    """员工 - 属于某个分支，月薪用于自动生成工资"""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False, comment="姓名")
    cpf = Column(String(20), comment="个人税号")
    email = Column(String(100))
    phone = Column(String(30))
    position = Column(String(100), comment="岗位")
    department = Column(String(100), comment="部门")
    hire_date = Column(Date, comment="入职日期")
    monthly_salary = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False, comment="月薪")
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    branch = relationship("Branch", lazy="joined")

    def __repr__(self):
        return f"<Employee {self.id}: {self.name}>"
