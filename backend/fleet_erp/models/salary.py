"""
工资模型

每个员工每个参考月份（月/年）在分支内只有一条工资记录；
支付后关联一条财务流水，之后不可修改或删除
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base


class Salary(Base):
    __tablename__ = "salaries"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    amount = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False, comment="金额")
    reference_month = Column(Integer, nullable=False, comment="参考月份")
    reference_year = Column(Integer, nullable=False, comment="参考年份")
    payment_date = Column(DateTime, nullable=True, comment="支付时间")
    description = Column(String(300))
    financial_transaction_id = Column(
        Integer, ForeignKey("financial_transactions.id"), nullable=True
    )
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    employee = relationship("Employee", lazy="joined")

    @property
    def is_paid(self) -> bool:
        return self.payment_date is not None or self.financial_transaction_id is not None
