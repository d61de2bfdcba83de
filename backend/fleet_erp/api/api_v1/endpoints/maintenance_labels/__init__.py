"""
保养标签API模块

按功能拆分为多个子模块：
- core: 里程查询、响应构建
- crud: 标签的创建、读取、删除，以及到期计算
- actions: 路边更换登记（生成标签、维修单、应付账款）
"""

from fastapi import APIRouter
from .crud import router as crud_router
from .actions import router as actions_router

router = APIRouter()

router.include_router(actions_router)
router.include_router(crud_router)
