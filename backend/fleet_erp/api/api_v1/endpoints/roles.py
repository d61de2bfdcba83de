"""
角色管理API
权限代码必须来自权限目录；系统角色与 ADMIN 不可删除
"""
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.deps import ADMIN_ROLE, get_db, require_permission
from fleet_erp.core.permissions import PERMISSIONS, find_unknown_permissions
from fleet_erp.models import Role
from fleet_erp.api.api_v1.endpoints.common import apply_update
from fleet_erp.schemas.common import MessageResponse
from fleet_erp.schemas.role import (
    RoleCreate, RoleUpdate, RoleResponse, PermissionCatalogResponse
)

router = APIRouter()


def _check_permissions(codes: List[str]) -> List[str]:
    unknown = find_unknown_permissions(codes)
    if unknown:
        raise HTTPException(status_code=400, detail=f"无效的权限代码: {', '.join(unknown)}")
    # 去重并保持顺序
    return list(dict.fromkeys(codes))


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: int = None) -> None:
    query = select(Role.id).where(func.lower(Role.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Role.id != exclude_id)
    existing = await db.execute(query)
    if existing.first():
        raise HTTPException(status_code=409, detail=f"角色名称 {name} 已存在")


async def _get_role(db: AsyncSession, role_id: int) -> Role:
    role = await db.get(Role, role_id)
    if not role:
        raise HTTPException(status_code=404, detail="角色不存在")
    return role


@router.get("/permissions", response_model=PermissionCatalogResponse,
            dependencies=[Depends(require_permission("roles.view"))])
async def list_permissions() -> Any:
    """获取权限目录（按模块分组）"""
    return PermissionCatalogResponse(modules=PERMISSIONS)


@router.get("/", response_model=List[RoleResponse],
            dependencies=[Depends(require_permission("roles.view"))])
async def list_roles(
    *,
    db: AsyncSession = Depends(get_db),
    include_inactive: bool = Query(False)) -> Any:
    """获取角色列表"""
    query = select(Role)
    if not include_inactive:
        query = query.where(Role.active == True)  # noqa: E712
    result = await db.execute(query.order_by(Role.name))
    return result.scalars().all()


@router.get("/{role_id}", response_model=RoleResponse,
            dependencies=[Depends(require_permission("roles.view"))])
async def get_role(*, db: AsyncSession = Depends(get_db), role_id: int) -> Any:
    """获取角色详情"""
    return await _get_role(db, role_id)


@router.post("/", response_model=RoleResponse,
             dependencies=[Depends(require_permission("roles.create"))])
async def create_role(*, db: AsyncSession = Depends(get_db), role_in: RoleCreate) -> Any:
    """创建角色"""
    name = role_in.name.strip()
    await _ensure_name_free(db, name)
    permissions = _check_permissions(role_in.permissions)

    role = Role(
        name=name,
        description=role_in.description,
        permissions=permissions,
        is_system=False,
        active=True,
    )
    db.add(role)
    await db.commit()
    await db.refresh(role)
    return role


@router.put("/{role_id}", response_model=RoleResponse,
            dependencies=[Depends(require_permission("roles.update"))])
async def update_role(
    *,
    db: AsyncSession = Depends(get_db),
    role_id: int,
    role_in: RoleUpdate) -> Any:
    """更新角色"""
    role = await _get_role(db, role_id)

    update_data = role_in.model_dump(exclude_unset=True)
    if update_data.get("name"):
        update_data["name"] = update_data["name"].strip()
        if update_data["name"] != role.name:
            await _ensure_name_free(db, update_data["name"], exclude_id=role_id)
    if update_data.get("permissions") is not None:
        update_data["permissions"] = _check_permissions(update_data["permissions"])

    apply_update(role, update_data)
    await db.commit()
    await db.refresh(role)
    return role


@router.delete("/{role_id}", response_model=MessageResponse, dependencies=[Depends(require_permission("roles.delete"))])
async def delete_role(*, db: AsyncSession = Depends(get_db), role_id: int) -> Any:
    """删除角色"""
    role = await _get_role(db, role_id)
    if role.is_system or role.name.upper() == ADMIN_ROLE:
        raise HTTPException(status_code=409, detail="系统角色不可删除")

    await db.delete(role)
    await db.commit()
    return {"message": "角色已删除"}
