"""
Company API Endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import ResourceConflictError, ResourceNotFoundError
from finance_backend.app.core.guards import require_admin, require_any_user
from finance_backend.app.db.session import get_db
from finance_backend.app.models.company import Company
from finance_backend.app.schemas.master_data import CompanyCreate, CompanyResponse

logger = logging.getLogger("finance.companies")

router = APIRouter(prefix="/companies", tags=["Companies"])


async def _get_company(db: AsyncSession, company_id: int) -> Company:
    result = await db.execute(select(Company).where(Company.id == company_id))
    company = result.scalar_one_or_none()
    if not company:
        raise ResourceNotFoundError("Company", company_id)
    return company


async def _commit_or_conflict(db: AsyncSession, name: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ResourceConflictError("Company", message=f"Company '{name}' already exists")


@router.get("", response_model=List[CompanyResponse])
async def list_companies(
    current_user: dict = Depends(require_any_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Company).order_by(Company.name))
    return [CompanyResponse.model_validate(c) for c in result.scalars().all()]


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    company_data: CompanyCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    company = Company(name=company_data.name)
    db.add(company)
    await _commit_or_conflict(db, company_data.name)
    await db.refresh(company)

    logger.info("Company created", extra={"company_id": company.id})
    return CompanyResponse.model_validate(company)


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: int,
    company_data: CompanyCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    company = await _get_company(db, company_id)
    company.name = company_data.name
    await _commit_or_conflict(db, company_data.name)
    await db.refresh(company)
    return CompanyResponse.model_validate(company)


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a company (admin-only).

    Refused with 409 while transactions or reimbursements are booked on it.
    """
    company = await _get_company(db, company_id)
    await db.delete(company)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ResourceConflictError(
            "Company", company_id, message=f"Company {company_id} is still referenced by ledger entries"
        )

    logger.info("Company deleted", extra={"company_id": company_id})
