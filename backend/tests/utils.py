"""测试辅助函数"""
from datetime import date

ADMIN_HEADERS = {"X-User-Id": "1", "X-User-Role": "ADMIN"}


def operator_headers(branch_id: int, *permissions: str, user_id: int = 2) -> dict:
    """普通操作员请求头"""
    return {
        "X-User-Id": str(user_id),
        "X-User-Role": "OPERATOR",
        "X-Branch-Id": str(branch_id),
        "X-User-Permissions": ",".join(permissions),
    }


def shift_month(current: date, months: int) -> tuple:
    """当前月份前后平移，返回 (month, year)"""
    index = current.year * 12 + (current.month - 1) + months
    return index % 12 + 1, index // 12
