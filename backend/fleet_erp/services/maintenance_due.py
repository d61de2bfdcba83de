"""
保养到期计算

对车辆的每个按公里更换项：
    下次更换里程 = 上次更换里程 + 更换周期
    参考里程 >= 下次更换里程                      → due（已到期）
    参考里程 >= 下次更换里程 - 周期 × 预警比例    → warning（临近）
    其他                                           → ok
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from fleet_erp.core.config import settings

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_DUE = "due"


@dataclass
class DueItem:
    id: int
    name: str
    replace_every_km: int
    last_change_km: int
    next_change_km: int
    status: str


def next_change_km(last_change_km: int, replace_every_km: int) -> int:
    return last_change_km + replace_every_km


def calculate_due_status(
    reference_km: float,
    last_change_km: float,
    replace_every_km: float,
    warning_ratio: Optional[float] = None,
) -> str:
    """计算单个更换项的状态"""
    if warning_ratio is None:
        warning_ratio = settings.MAINTENANCE_WARNING_RATIO
    next_km = last_change_km + replace_every_km
    if reference_km >= next_km:
        return STATUS_DUE
    if reference_km >= next_km - replace_every_km * warning_ratio:
        return STATUS_WARNING
    return STATUS_OK


def resolve_reference_km(last_marking_km: Optional[int], current_km: Optional[int]) -> int:
    """参考里程：最近一次到站登记里程，否则车辆当前里程，否则 0"""
    if last_marking_km is not None:
        return last_marking_km
    if current_km is not None:
        return current_km
    return 0


def resolve_last_change_km(
    label_item_km: Optional[int],
    last_marking_km: Optional[int],
    current_km: Optional[int],
) -> int:
    """上次更换里程：最近的标签记录，否则到站登记里程，否则当前里程，否则 0"""
    if label_item_km is not None:
        return label_item_km
    return resolve_reference_km(last_marking_km, current_km)


def build_due_items(
    reference_km: int,
    items: Iterable[tuple],
    warning_ratio: Optional[float] = None,
) -> List[DueItem]:
    """
    批量计算

    Args:
        reference_km: 参考里程
        items: (id, name, replace_every_km, last_change_km) 元组
    """
    result = []
    for item_id, name, replace_every_km, last_change_km in items:
        result.append(DueItem(
            id=item_id,
            name=name,
            replace_every_km=replace_every_km,
            last_change_km=last_change_km,
            next_change_km=next_change_km(last_change_km, replace_every_km),
            status=calculate_due_status(
                reference_km, last_change_km, replace_every_km, warning_ratio
            ),
        ))
    return result
