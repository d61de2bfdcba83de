"""
维修单API模块

按功能拆分为多个子模块：
- core: 单号生成、明细校验、响应构建
- crud: 创建、读取、更新、删除
- actions: 状态变更（开始、暂停、完成、取消）
"""

from fastapi import APIRouter
from .crud import router as crud_router
from .actions import router as actions_router

router = APIRouter()

# 合并所有路由
router.include_router(crud_router)
router.include_router(actions_router)
