"""角色 Schema"""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    """创建角色"""
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    permissions: List[str] = Field(default_factory=list, description="权限代码列表")


class RoleUpdate(BaseModel):
    """更新角色，permissions 传入时整体替换"""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    permissions: Optional[List[str]] = None
    active: Optional[bool] = None


class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    permissions: List[str]
    is_system: bool
    active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PermissionItem(BaseModel):
    code: str
    description: str


class PermissionCatalogResponse(BaseModel):
    """按模块分组的权限目录"""
    modules: Dict[str, List[PermissionItem]]
