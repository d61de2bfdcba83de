"""
分支管理API
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import get_db, require_permission
from fleet_erp.models import Branch, Company
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.company import BranchCreate, BranchUpdate, BranchResponse, BranchListResponse
from fleet_erp.api.api_v1.endpoints.common import apply_update, get_branch_or_404, paginate, strip_or_none

router = APIRouter()


def build_branch_response(branch: Branch) -> BranchResponse:
    """构建分支响应"""
    return BranchResponse(
        id=branch.id,
        company_id=branch.company_id,
        company_name=branch.company.name if branch.company else "",
        name=branch.name,
        code=branch.code,
        email=branch.email,
        phone=branch.phone,
        address=branch.address,
        city=branch.city,
        state=branch.state,
        zip_code=branch.zip_code,
        active=branch.active,
        created_at=branch.created_at,
        updated_at=branch.updated_at,
        deleted_at=branch.deleted_at)


async def _ensure_code_free(
    db: AsyncSession, company_id: int, code: Optional[str], exclude_id: int = None
) -> None:
    if not code:
        return
    query = select(Branch.id).where(
        Branch.company_id == company_id,
        Branch.code == code,
        Branch.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.where(Branch.id != exclude_id)
    existing = await db.execute(query)
    if existing.first():
        raise HTTPException(status_code=409, detail="该分支编码已存在")


async def _load_branch(db: AsyncSession, branch_id: int) -> Branch:
    result = await db.execute(
        select(Branch).where(Branch.id == branch_id).execution_options(populate_existing=True)
    )
    return result.unique().scalar_one()


@router.get("/", response_model=BranchListResponse,
            dependencies=[Depends(require_permission("branches.view"))])
async def list_branches(
    *,
    db: AsyncSession = Depends(get_db),
    include_deleted: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取分支列表"""
    query = select(Branch).where(Branch.company_id == settings.DEFAULT_COMPANY_ID)
    count_query = select(func.count(Branch.id)).where(Branch.company_id == settings.DEFAULT_COMPANY_ID)
    if not include_deleted:
        query = query.where(Branch.deleted_at.is_(None))
        count_query = count_query.where(Branch.deleted_at.is_(None))

    branches, total = await paginate(db, query.order_by(Branch.name), count_query, page, limit)
    return BranchListResponse(
        data=[build_branch_response(b) for b in branches],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{branch_id}", response_model=BranchResponse,
            dependencies=[Depends(require_permission("branches.view"))])
async def get_branch(*, db: AsyncSession = Depends(get_db), branch_id: int) -> Any:
    """获取分支详情"""
    return build_branch_response(await get_branch_or_404(db, branch_id))


@router.post("/", response_model=BranchResponse,
             dependencies=[Depends(require_permission("branches.create"))])
async def create_branch(*, db: AsyncSession = Depends(get_db), branch_in: BranchCreate) -> Any:
    """创建分支"""
    company_id = branch_in.company_id or settings.DEFAULT_COMPANY_ID
    company = await db.get(Company, company_id)
    if not company or company.deleted_at is not None:
        raise HTTPException(status_code=404, detail="公司不存在")

    code = strip_or_none(branch_in.code)
    await _ensure_code_free(db, company_id, code)

    data = branch_in.model_dump(exclude={"company_id", "code"})
    branch = Branch(**data, company_id=company_id, code=code)
    db.add(branch)
    await db.commit()

    return build_branch_response(await _load_branch(db, branch.id))


@router.put("/{branch_id}", response_model=BranchResponse,
            dependencies=[Depends(require_permission("branches.update"))])
async def update_branch(
    *,
    db: AsyncSession = Depends(get_db),
    branch_id: int,
    branch_in: BranchUpdate) -> Any:
    """更新分支"""
    branch = await get_branch_or_404(db, branch_id)

    update_data = branch_in.model_dump(exclude_unset=True)
    if "code" in update_data:
        update_data["code"] = strip_or_none(update_data["code"])
        if update_data["code"] != branch.code:
            await _ensure_code_free(db, branch.company_id, update_data["code"], exclude_id=branch_id)

    apply_update(branch, update_data)
    await db.commit()

    return build_branch_response(await _load_branch(db, branch_id))


@router.delete("/{branch_id}", response_model=MessageResponse, dependencies=[Depends(require_permission("branches.delete"))])
async def delete_branch(*, db: AsyncSession = Depends(get_db), branch_id: int) -> Any:
    """删除分支（软删除）"""
    branch = await get_branch_or_404(db, branch_id)
    branch.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "分支已删除"}
