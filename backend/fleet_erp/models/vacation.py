"""
假期模型

状态流转：PLANNED → IN_PROGRESS → COMPLETED，任意未完成状态可取消（CANCELLED）
PLANNED/IN_PROGRESS 的自动推进由定时任务完成
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Text, DECIMAL
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base

VACATION_STATUSES = ("PLANNED", "IN_PROGRESS", "COMPLETED", "CANCELLED")

# 财务快照字段（由前端计算后提交，后端原样保存）
FINANCIAL_FIELDS = (
    "monthly_salary", "vacation_base", "vacation_third", "vacation_total",
    "sold_days_value", "sold_days_third", "sold_days_total", "advance_13th_value",
    "gross_total", "inss", "irrf", "total_deductions", "net_total", "fgts",
    "employer_cost",
)


class Vacation(Base):
    __tablename__ = "vacations"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    start_date = Column(Date, nullable=False, comment="开始日期")
    end_date = Column(Date, nullable=False, comment="结束日期")
    days = Column(Integer, nullable=False, comment="天数（含首尾）")
    sold_days = Column(Integer, default=0, nullable=False, comment="折现天数")
    advance_13th = Column(Boolean, default=False, nullable=False, comment="预支第十三薪")
    status = Column(String(20), default="PLANNED", nullable=False, index=True)
    observations = Column(Text)

    monthly_salary = Column(DECIMAL(12, 2))
    vacation_base = Column(DECIMAL(12, 2))
    vacation_third = Column(DECIMAL(12, 2))
    vacation_total = Column(DECIMAL(12, 2))
    sold_days_value = Column(DECIMAL(12, 2))
    sold_days_third = Column(DECIMAL(12, 2))
    sold_days_total = Column(DECIMAL(12, 2))
    advance_13th_value = Column(DECIMAL(12, 2))
    gross_total = Column(DECIMAL(12, 2))
    inss = Column(DECIMAL(12, 2))
    irrf = Column(DECIMAL(12, 2))
    total_deductions = Column(DECIMAL(12, 2))
    net_total = Column(DECIMAL(12, 2))
    fgts = Column(DECIMAL(12, 2))
    employer_cost = Column(DECIMAL(12, 2))

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    employee = relationship("Employee", lazy="joined")
