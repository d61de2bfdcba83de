"""
操作日志模型 - 记录系统中的重要操作
用于审计追踪和问题排查
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.dialects.sqlite import JSON
from fleet_erp.db.base import Base


class AuditLog(Base):
    """操作日志

    记录以下类型的操作：
    - 工资生成与支付
    - 应付/应收的收付款与取消
    - 保养标签与路边更换
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # 操作人（单机模式下可能为空）
    user_id = Column(Integer, nullable=True, index=True)

    # create / update / delete / payment / cancel / process / adjust
    action = Column(String(20), nullable=False, index=True, comment="操作类型")

    # salary / account_payable / account_receivable / maintenance_label / wallet ...
    resource_type = Column(String(50), nullable=False, index=True, comment="资源类型")
    resource_id = Column(Integer, index=True, comment="资源ID")
    description = Column(String(500), comment="操作描述")
    new_value = Column(JSON, comment="操作结果")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"

    @property
    def action_display(self) -> str:
        """操作类型显示名称"""
        action_map = {
            "create": "创建",
            "update": "更新",
            "delete": "删除",
            "payment": "收付款",
            "cancel": "取消",
            "complete": "完成",
            "process": "批量处理",
            "adjust": "调整",
        }
        return action_map.get(self.action, self.action)
