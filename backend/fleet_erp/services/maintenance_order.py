"""
维修单计算规则

作业时长：STARTED/RESUMED 开始一段作业，PAUSED/COMPLETED/CANCELLED 结束，
每段按整分钟向下取整后累加；仍在作业中的一段计算到当前时间
费用：有服务项或用料时取两者合计，否则沿用已保存的总额（路边更换生成的维修单）
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from fleet_erp.services.finance import round_currency

SESSION_OPEN = ("STARTED", "RESUMED")
SESSION_CLOSE = ("PAUSED", "COMPLETED", "CANCELLED")

QUANTITY_STEP = Decimal("0.001")


def round_quantity(value) -> Decimal:
    """数量保留三位小数"""
    return Decimal(str(value)).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def material_total(quantity, unit_cost) -> Decimal:
    return round_currency(round_quantity(quantity) * round_currency(unit_cost))


def _minutes(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() // 60))


def calculate_total_minutes(
    events: Iterable[Tuple[str, datetime]], now: Optional[datetime] = None
) -> int:
    """
    按时间线计算作业分钟数

    Args:
        events: (事件, 发生时间)，按发生顺序
        now: 仍在作业时的截止时间，默认当前 UTC 时间
    """
    total = 0
    session_start: Optional[datetime] = None
    for event, happened_at in events:
        if event in SESSION_OPEN:
            if session_start is not None:
                total += _minutes(session_start, happened_at)
            session_start = happened_at
        elif event in SESSION_CLOSE:
            if session_start is not None:
                total += _minutes(session_start, happened_at)
            session_start = None

    if session_start is not None:
        total += _minutes(session_start, now or datetime.utcnow())
    return total


def calculate_order_cost(
    service_costs: Iterable, material_totals: Iterable, stored_total=None
) -> Decimal:
    """服务费 + 用料小计；两者都没有时返回已保存的总额"""
    service_costs = list(service_costs)
    material_totals = list(material_totals)
    if not service_costs and not material_totals:
        return round_currency(stored_total)

    total = Decimal("0.00")
    for cost in service_costs + material_totals:
        total += round_currency(cost)
    return round_currency(total)
