"""
Category API Endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import ResourceNotFoundError
from finance_backend.app.core.guards import require_admin, require_any_user
from finance_backend.app.db.session import get_db
from finance_backend.app.models.category import Category
from finance_backend.app.models.finance_enums import CategoryType
from finance_backend.app.schemas.master_data import CategoryCreate, CategoryResponse, CategoryUpdate

logger = logging.getLogger("finance.categories")

router = APIRouter(prefix="/categories", tags=["Categories"])


async def _get_category(db: AsyncSession, category_id: int) -> Category:
    result = await db.execute(select(Category).where(Category.id == category_id))
    category = result.scalar_one_or_none()
    if not category:
        raise ResourceNotFoundError("Category", category_id)
    return category


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    type: Optional[CategoryType] = Query(None, description="INCOME or EXPENSE"),
    company_id: Optional[int] = Query(None, description="Company scope"),
    current_user: dict = Depends(require_any_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List categories.

    With a company filter, categories scoped to that company are returned
    together with the shared ones (no company).
    """
    query = select(Category)
    if type is not None:
        query = query.where(Category.type == type)
    if company_id is not None:
        query = query.where(or_(Category.company_id == company_id, Category.company_id.is_(None)))

    result = await db.execute(query.order_by(Category.name))
    return [CategoryResponse.model_validate(c) for c in result.scalars().all()]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    category = Category(
        name=category_data.name,
        type=category_data.type,
        company_id=category_data.company_id
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)

    logger.info("Category created", extra={"category_id": category.id, "type": category.type.value})
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    category = await _get_category(db, category_id)
    for field, value in category_data.model_dump(exclude_unset=True).items():
        setattr(category, field, value)

    await db.commit()
    await db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    category = await _get_category(db, category_id)
    await db.delete(category)
    await db.commit()
    logger.info("Category deleted", extra={"category_id": category_id})
