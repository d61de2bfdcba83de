"""
公司管理API
单租户部署下通常只有一家公司，保留完整的增删改查便于初始化
"""
from datetime import datetime
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.deps import get_db, require_permission
from fleet_erp.models import Company
from fleet_erp.schemas.common import MessageResponse
from fleet_erp.schemas.company import CompanyCreate, CompanyUpdate, CompanyResponse
from fleet_erp.api.api_v1.endpoints.common import apply_update

router = APIRouter()


async def _get_company(db: AsyncSession, company_id: int) -> Company:
    company = await db.get(Company, company_id)
    if not company or company.deleted_at is not None:
        raise HTTPException(status_code=404, detail="公司不存在")
    return company


async def _ensure_cnpj_free(db: AsyncSession, cnpj: str, exclude_id: int = None) -> None:
    query = select(Company.id).where(Company.cnpj == cnpj, Company.deleted_at.is_(None))
    if exclude_id is not None:
        query = query.where(Company.id != exclude_id)
    existing = await db.execute(query)
    if existing.first():
        raise HTTPException(status_code=409, detail="该企业税号已登记")


@router.get("/", response_model=List[CompanyResponse],
            dependencies=[Depends(require_permission("companies.view"))])
async def list_companies(
    *,
    db: AsyncSession = Depends(get_db),
    include_deleted: bool = Query(False, description="是否包含已删除")) -> Any:
    """获取公司列表"""
    query = select(Company)
    if not include_deleted:
        query = query.where(Company.deleted_at.is_(None))
    result = await db.execute(query.order_by(Company.name))
    return result.unique().scalars().all()


@router.get("/{company_id}", response_model=CompanyResponse,
            dependencies=[Depends(require_permission("companies.view"))])
async def get_company(*, db: AsyncSession = Depends(get_db), company_id: int) -> Any:
    """获取公司详情"""
    return await _get_company(db, company_id)


@router.post("/", response_model=CompanyResponse,
             dependencies=[Depends(require_permission("companies.manage"))])
async def create_company(*, db: AsyncSession = Depends(get_db), company_in: CompanyCreate) -> Any:
    """创建公司"""
    await _ensure_cnpj_free(db, company_in.cnpj)
    company = Company(**company_in.model_dump())
    db.add(company)
    await db.commit()
    await db.refresh(company)
    return company


@router.put("/{company_id}", response_model=CompanyResponse,
            dependencies=[Depends(require_permission("companies.manage"))])
async def update_company(
    *,
    db: AsyncSession = Depends(get_db),
    company_id: int,
    company_in: CompanyUpdate) -> Any:
    """更新公司"""
    company = await _get_company(db, company_id)
    if company_in.cnpj and company_in.cnpj != company.cnpj:
        await _ensure_cnpj_free(db, company_in.cnpj, exclude_id=company_id)

    apply_update(company, company_in.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(company)
    return company


@router.delete("/{company_id}", response_model=MessageResponse, dependencies=[Depends(require_permission("companies.manage"))])
async def delete_company(*, db: AsyncSession = Depends(get_db), company_id: int) -> Any:
    """删除公司（软删除）"""
    company = await _get_company(db, company_id)
    company.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "公司已删除"}
