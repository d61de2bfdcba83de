"""
应付/应收账款模型

应付：维修、工资、采购等产生，支付时检查分支余额并扣减
应收：收款时增加分支余额
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base

PAYABLE_STATUSES = ("PENDING", "PAID", "CANCELLED")
RECEIVABLE_STATUSES = ("PENDING", "RECEIVED", "CANCELLED")

# 账款来源
ORIGIN_TYPES = ("MAINTENANCE", "HR", "STOCK", "EXPENSE", "OTHER")


class AccountPayable(Base):
    """应付账款"""
    __tablename__ = "accounts_payable"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    description = Column(String(500), nullable=False)
    amount = Column(DECIMAL(12, 2), nullable=False, comment="金额")
    due_date = Column(DateTime, nullable=False, index=True, comment="到期日")
    status = Column(String(20), default="PENDING", nullable=False, index=True)
    payment_date = Column(DateTime, nullable=True)
    origin_type = Column(String(20), nullable=True, comment="来源类型")
    origin_id = Column(Integer, nullable=True, comment="来源单据ID")
    document_number = Column(String(50))
    notes = Column(Text)
    financial_transaction_id = Column(
        Integer, ForeignKey("financial_transactions.id"), nullable=True
    )
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    branch = relationship("Branch", lazy="joined")


class AccountReceivable(Base):
    """应收账款"""
    __tablename__ = "accounts_receivable"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    description = Column(String(500), nullable=False)
    amount = Column(DECIMAL(12, 2), nullable=False)
    due_date = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default="PENDING", nullable=False, index=True)
    received_date = Column(DateTime, nullable=True)
    origin_type = Column(String(20), nullable=True)
    origin_id = Column(Integer, nullable=True)
    document_number = Column(String(50))
    notes = Column(Text)
    financial_transaction_id = Column(
        Integer, ForeignKey("financial_transactions.id"), nullable=True
    )
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    branch = relationship("Branch", lazy="joined")
