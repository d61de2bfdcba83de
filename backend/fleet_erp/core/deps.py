"""依赖注入 - 单机版（无认证，操作人信息来自请求头）"""
from dataclasses import dataclass, field
from typing import AsyncGenerator, FrozenSet, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.db.session import SessionLocal

ADMIN_ROLE = "ADMIN"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话依赖
    """
    async with SessionLocal() as session:
        yield session


@dataclass(frozen=True)
class Operator:
    """当前操作人"""
    user_id: Optional[int] = None
    role: Optional[str] = None
    branch_id: Optional[int] = None
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").upper() == ADMIN_ROLE


async def get_operator(
    x_user_id: Optional[int] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_branch_id: Optional[int] = Header(None),
    x_user_permissions: Optional[str] = Header(None),
) -> Optional[Operator]:
    """
    从请求头解析操作人

    未携带任何身份头时返回 None，视为单机模式（不做权限限制）
    """
    if x_user_id is None and x_user_role is None and x_branch_id is None and x_user_permissions is None:
        return None
    permissions = frozenset(
        p.strip() for p in (x_user_permissions or "").split(",") if p.strip()
    )
    return Operator(
        user_id=x_user_id,
        role=x_user_role,
        branch_id=x_branch_id,
        permissions=permissions,
    )


def require_permission(code: str):
    """权限守卫：管理员直接放行，其他角色必须拥有指定权限"""

    async def checker(operator: Optional[Operator] = Depends(get_operator)) -> Optional[Operator]:
        if operator is None or operator.is_admin:
            return operator
        if code not in operator.permissions:
            raise HTTPException(status_code=403, detail=f"没有权限执行该操作，需要权限: {code}")
        return operator

    return checker


def require_admin(operator: Optional[Operator] = Depends(get_operator)) -> Optional[Operator]:
    """仅管理员（或单机模式）可用"""
    if operator is not None and not operator.is_admin:
        raise HTTPException(status_code=403, detail="仅管理员可以执行该操作")
    return operator


def validate_branch_access(
    operator: Optional[Operator],
    requested_branch_id: Optional[int] = None,
    entity_branch_id: Optional[int] = None,
) -> None:
    """
    分支访问校验

    管理员不受限制；其他用户必须归属某个分支，且请求的分支、
    数据所属的分支都必须与之一致
    """
    if operator is None or operator.is_admin:
        return
    if operator.branch_id is None:
        raise HTTPException(status_code=403, detail="当前用户未分配分支，无法访问")
    if requested_branch_id is not None and requested_branch_id != operator.branch_id:
        raise HTTPException(status_code=403, detail="无权访问其他分支的数据")
    if entity_branch_id is not None and entity_branch_id != operator.branch_id:
        raise HTTPException(status_code=403, detail="无权访问其他分支的数据")


def resolve_branch_id(requested_branch_id: Optional[int], operator: Optional[Operator]) -> int:
    """确定本次操作使用的分支：非管理员只能使用自己的分支"""
    if operator is not None and not operator.is_admin:
        validate_branch_access(operator, requested_branch_id)
        return operator.branch_id
    branch_id = requested_branch_id
    if branch_id is None and operator is not None:
        branch_id = operator.branch_id
    if branch_id is None:
        raise HTTPException(status_code=400, detail="必须指定分支")
    return branch_id


def scope_branch_filter(requested_branch_id: Optional[int], operator: Optional[Operator]) -> Optional[int]:
    """列表查询的分支过滤：非管理员强制限定为自己的分支"""
    if operator is not None and not operator.is_admin:
        validate_branch_access(operator, requested_branch_id)
        return operator.branch_id
    return requested_branch_id
