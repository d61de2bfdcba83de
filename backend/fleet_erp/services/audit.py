"""操作日志记录工具"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.models import AuditLog


def create_audit_log(
    db: AsyncSession,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    description: Optional[str] = None,
    new_value: Optional[dict] = None,
    user_id: Optional[int] = None,
) -> AuditLog:
    """创建审计日志（随调用方的事务一起提交）"""
    log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        description=description,
        new_value=new_value,
    )
    db.add(log)
    return log
