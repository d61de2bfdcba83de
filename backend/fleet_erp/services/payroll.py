"""
工资处理规则

参考月份只能是当前月或往前 PAYROLL_MAX_MONTHS_BACK 个月；
批量处理时对每个在职员工归类：
- already_paid：已有记录且已支付
- already_pending：已有记录但未支付
- skipped_no_salary：无记录且月薪为 0
- created：按月薪新建
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException

from fleet_erp.core.config import settings

CREATED = "created"
ALREADY_PENDING = "already_pending"
ALREADY_PAID = "already_paid"
SKIPPED_NO_SALARY = "skipped_no_salary"


def months_between(current: date, month: int, year: int) -> int:
    """当前月份与参考月份相差的月数（参考月份在未来时为负数）"""
    return (current.year * 12 + current.month) - (year * 12 + month)


def earliest_allowed_period(current: date, max_months_back: int) -> tuple:
    """允许处理的最早月份 (month, year)"""
    index = current.year * 12 + (current.month - 1) - max_months_back
    return index % 12 + 1, index // 12


def validate_reference_period(
    month: int,
    year: int,
    today: Optional[date] = None,
    max_months_back: Optional[int] = None,
) -> None:
    """校验参考月份，不允许未来月份，也不允许超过回溯范围"""
    today = today or date.today()
    if max_months_back is None:
        max_months_back = settings.PAYROLL_MAX_MONTHS_BACK

    diff = months_between(today, month, year)
    if diff < 0:
        raise HTTPException(status_code=400, detail="不允许处理未来月份的工资")
    if diff > max_months_back:
        min_month, min_year = earliest_allowed_period(today, max_months_back)
        raise HTTPException(
            status_code=400,
            detail=f"参考月份超出范围，只能处理 {min_month:02d}/{min_year} 及之后的工资",
        )


def classify_employee(existing, monthly_salary: Optional[Decimal]) -> str:
    """
    对单个员工归类

    Args:
        existing: 该员工当期已有的工资记录（没有则为 None）
        monthly_salary: 员工月薪
    """
    if existing is not None:
        if existing.payment_date is not None or existing.financial_transaction_id is not None:
            return ALREADY_PAID
        return ALREADY_PENDING
    if monthly_salary is None or Decimal(monthly_salary) <= 0:
        return SKIPPED_NO_SALARY
    return CREATED


def auto_description(month: int, year: int) -> str:
    return f"自动生成工资 - {month:02d}/{year}"


def salary_document_number(month: int, year: int) -> str:
    return f"SAL-{month:02d}-{year}"
