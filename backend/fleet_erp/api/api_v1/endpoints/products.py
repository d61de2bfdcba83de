"""
商品管理API（配件、耗材）
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_erp.core.config import settings
from fleet_erp.core.deps import (
    Operator, require_permission, get_db,
    resolve_branch_id, scope_branch_filter, validate_branch_access,
)
from fleet_erp.models import Product, UnitOfMeasurement
from fleet_erp.schemas.common import MessageResponse, count_pages
from fleet_erp.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse
)
from fleet_erp.services.finance import round_currency
from fleet_erp.api.api_v1.endpoints.common import apply_update, get_branch_or_404, paginate

router = APIRouter()


def build_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        branch_id=product.branch_id,
        name=product.name,
        code=product.code,
        description=product.description,
        unit_of_measurement_id=product.unit_of_measurement_id,
        unit_code=product.unit.code if product.unit else "",
        unit_price=float(product.unit_price or 0),
        min_quantity=float(product.min_quantity or 0),
        active=product.active,
        created_at=product.created_at,
        updated_at=product.updated_at)


async def _get_product(db: AsyncSession, product_id: int) -> Product:
    result = await db.execute(
        select(Product)
        .where(Product.id == product_id, Product.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    product = result.unique().scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="商品不存在")
    return product


async def _check_unit(db: AsyncSession, unit_id: Optional[int]) -> None:
    if unit_id is None:
        return
    unit = await db.get(UnitOfMeasurement, unit_id)
    if not unit:
        raise HTTPException(status_code=404, detail="计量单位不存在")


@router.get("/", response_model=ProductListResponse)
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("products.view")),
    branch_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="按名称或编码搜索"),
    page: int = Query(1, ge=1),
    limit: int = Query(15, ge=1, le=100)) -> Any:
    """获取商品列表"""
    conditions = [Product.deleted_at.is_(None)]
    branch_id = scope_branch_filter(branch_id, operator)
    if branch_id:
        conditions.append(Product.branch_id == branch_id)
    if search:
        conditions.append(Product.name.ilike(f"%{search}%") | Product.code.ilike(f"%{search}%"))

    query = select(Product).where(*conditions).order_by(Product.name)
    count_query = select(func.count(Product.id)).where(*conditions)
    products, total = await paginate(db, query, count_query, page, limit)

    return ProductListResponse(
        data=[build_product_response(p) for p in products],
        total=total,
        page=page,
        limit=limit,
        total_pages=count_pages(total, limit))


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("products.view")),
    product_id: int) -> Any:
    """获取商品详情"""
    product = await _get_product(db, product_id)
    validate_branch_access(operator, entity_branch_id=product.branch_id)
    return build_product_response(product)


@router.post("/", response_model=ProductResponse)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("products.create")),
    product_in: ProductCreate) -> Any:
    """创建商品"""
    branch_id = resolve_branch_id(product_in.branch_id, operator)
    await get_branch_or_404(db, branch_id)
    await _check_unit(db, product_in.unit_of_measurement_id)

    product = Product(
        **product_in.model_dump(exclude={"branch_id", "unit_price", "min_quantity"}),
        unit_price=round_currency(product_in.unit_price),
        min_quantity=round_currency(product_in.min_quantity),
        branch_id=branch_id,
        company_id=settings.DEFAULT_COMPANY_ID,
    )
    db.add(product)
    await db.commit()
    return build_product_response(await _get_product(db, product.id))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("products.update")),
    product_id: int,
    product_in: ProductUpdate) -> Any:
    """更新商品"""
    product = await _get_product(db, product_id)
    validate_branch_access(operator, entity_branch_id=product.branch_id)

    update_data = product_in.model_dump(exclude_unset=True)
    if "unit_of_measurement_id" in update_data:
        await _check_unit(db, update_data["unit_of_measurement_id"])
    for money_field in ("unit_price", "min_quantity"):
        if update_data.get(money_field) is not None:
            update_data[money_field] = round_currency(update_data[money_field])

    apply_update(product, update_data)
    await db.commit()
    return build_product_response(await _get_product(db, product_id))


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    operator: Optional[Operator] = Depends(require_permission("products.delete")),
    product_id: int) -> Any:
    """删除商品（软删除）"""
    product = await _get_product(db, product_id)
    validate_branch_access(operator, entity_branch_id=product.branch_id)
    product.deleted_at = datetime.utcnow()
    await db.commit()
    return {"message": "商品已删除"}
