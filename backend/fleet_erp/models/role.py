"""
角色模型
RBAC权限管理的核心
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.dialects.sqlite import JSON
from fleet_erp.db.base import Base


class Role(Base):
    """角色模型"""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)

    # 基本信息
    name = Column(String(50), nullable=False, unique=True, comment="角色名称")
    description = Column(String(200), comment="角色描述")

    # 权限列表（JSON数组，存储权限代码）
    # 如：["vehicles.view", "payroll.process"]
    permissions = Column(JSON, nullable=False, default=[], comment="权限列表")

    # 是否是系统预置角色（不可删除）
    is_system = Column(Boolean, default=False, comment="是否系统角色")

    # 是否启用
    active = Column(Boolean, default=True, comment="是否启用")

    # 审计字段
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系：无，操作员通过请求头携带角色与权限

    def __repr__(self):
        return f"<Role {self.name}>"

    def has_permission(self, permission: str) -> bool:
        """检查角色是否有某个权限"""
        return permission in (self.permissions or [])
