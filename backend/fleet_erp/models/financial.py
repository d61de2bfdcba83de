"""
财务流水与分支余额模型
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, DECIMAL
from fleet_erp.db.base import Base

TRANSACTION_TYPES = ("INCOME", "EXPENSE")
ADJUSTMENT_TYPES = ("CORRECTION", "INITIAL", "OTHER")


class FinancialTransaction(Base):
    """财务流水 - 每一次实际收付款"""
    __tablename__ = "financial_transactions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    type = Column(String(10), nullable=False, index=True, comment="INCOME/EXPENSE")
    amount = Column(DECIMAL(12, 2), nullable=False)
    description = Column(String(500), nullable=False)
    transaction_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    origin_type = Column(String(20), nullable=True)
    origin_id = Column(Integer, nullable=True)
    document_number = Column(String(50))
    notes = Column(Text)
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)


class BranchBalance(Base):
    """分支余额（钱包）"""
    __tablename__ = "branch_balances"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, unique=True)
    balance = Column(DECIMAL(12, 2), default=Decimal("0.00"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BalanceAdjustment(Base):
    """余额手工调整记录"""
    __tablename__ = "balance_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    branch_balance_id = Column(Integer, ForeignKey("branch_balances.id"), nullable=False, index=True)
    previous_balance = Column(DECIMAL(12, 2), nullable=False)
    new_balance = Column(DECIMAL(12, 2), nullable=False)
    adjustment_type = Column(String(20), nullable=False)
    reason = Column(String(500))
    created_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
