"""费用报销模型（差旅、餐费、住宿等）"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base

EXPENSE_TYPES = ("TRANSPORT", "MEAL", "ACCOMMODATION", "OTHER")

TYPE_DISPLAY = {
    "TRANSPORT": "交通",
    "MEAL": "餐费",
    "ACCOMMODATION": "住宿",
    "OTHER": "其他",
}


class Expense(Base):
    """费用 - 登记即生成一笔支出流水"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)

    type = Column(String(20), nullable=False, comment="费用类型")
    amount = Column(DECIMAL(12, 2), nullable=False)
    description = Column(String(500), nullable=False)
    expense_date = Column(DateTime, nullable=False, index=True)
    document_number = Column(String(50), comment="票据号")
    financial_transaction_id = Column(
        Integer, ForeignKey("financial_transactions.id"), nullable=True
    )
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    employee = relationship("Employee", lazy="joined")
    branch = relationship("Branch", lazy="joined")
