"""
Reimbursement API Endpoints.

Employees submit and follow their own requests; admins see every request
and move it through PENDING -> PROSES -> BERHASIL / DITOLAK. Approving
(BERHASIL) posts the request into the transaction ledger in the same
database transaction as the status change.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import ResourceConflictError, ResourceNotFoundError
from finance_backend.app.core.guards import require_admin, require_any_user
from finance_backend.app.db.session import get_db
from finance_backend.app.domain.reimbursement.reimbursement_service import ReimbursementService
from finance_backend.app.models.employee import Employee
from finance_backend.app.models.enums import UserRole
from finance_backend.app.models.reimbursement import Reimbursement
from finance_backend.app.schemas.reimbursement import (
    ReimbursementCreate,
    ReimbursementDetails,
    ReimbursementResponse,
    ReimbursementStatusResponse,
    ReimbursementStatusUpdate,
)

logger = logging.getLogger("finance.reimbursement")

router = APIRouter(prefix="/reimbursements", tags=["Reimbursements"])


async def _requestor_scope(db: AsyncSession, current_user: dict) -> Optional[str]:
    """
    Requestor name an EMPLOYEE is restricted to; None for admins.
    """
    if current_user.get("role") == UserRole.ADMIN.value:
        return None

    employee_id = current_user.get("employee_id")
    employee = None
    if employee_id is not None:
        result = await db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalar_one_or_none()
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Login is not linked to an employee"
        )
    return employee.name


async def _get_visible(db: AsyncSession, reimbursement_id: str, requestor: Optional[str]) -> Reimbursement:
    reimbursement = await ReimbursementService.get(db, reimbursement_id)
    # Other employees' requests are reported as missing
    if requestor is not None and reimbursement.requestor_name != requestor:
        raise ResourceNotFoundError("Reimbursement", reimbursement_id)
    return reimbursement


@router.get("", response_model=List[ReimbursementResponse])
async def list_reimbursements(
    current_user: dict = Depends(require_any_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List reimbursements, newest first, with their items.

    Admins see every request; employees only their own.
    """
    requestor = await _requestor_scope(db, current_user)

    query = select(Reimbursement)
    if requestor is not None:
        query = query.where(Reimbursement.requestor_name == requestor)

    result = await db.execute(query.order_by(Reimbursement.date.desc(), Reimbursement.created_at.desc()))
    return [ReimbursementResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{reimbursement_id}", response_model=ReimbursementResponse)
async def get_reimbursement(
    reimbursement_id: str,
    current_user: dict = Depends(require_any_user),
    db: AsyncSession = Depends(get_db)
):
    requestor = await _requestor_scope(db, current_user)
    return ReimbursementResponse.model_validate(await _get_visible(db, reimbursement_id, requestor))


@router.post("", response_model=ReimbursementResponse, status_code=status.HTTP_201_CREATED)
async def create_reimbursement(
    reimbursement_data: ReimbursementCreate,
    current_user: dict = Depends(require_any_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a reimbursement request.

    The request always starts at PENDING. Employees submit under their own
    name whatever the payload says.
    """
    requestor = await _requestor_scope(db, current_user)
    if requestor is not None:
        reimbursement_data = reimbursement_data.model_copy(update={"requestor_name": requestor})

    existing = await db.execute(select(Reimbursement.id).where(Reimbursement.id == reimbursement_data.id))
    if existing.scalar_one_or_none() is not None:
        raise ResourceConflictError("Reimbursement", reimbursement_data.id)

    reimbursement = ReimbursementService.create(db, reimbursement_data)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ResourceConflictError(
            "Reimbursement", reimbursement_data.id,
            message=f"Reimbursement {reimbursement_data.id} or one of its item ids already exists"
        )
    await db.refresh(reimbursement)

    logger.info(
        "Reimbursement submitted",
        extra={
            "reimbursement_id": reimbursement.id,
            "requestor_name": reimbursement.requestor_name,
            "grand_total": str(reimbursement.grand_total),
        },
    )
    return ReimbursementResponse.model_validate(reimbursement)


@router.put("/{reimbursement_id}/details", response_model=ReimbursementResponse)
async def update_reimbursement_details(
    reimbursement_id: str,
    details: ReimbursementDetails,
    current_user: dict = Depends(require_any_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Replace the header and items of a reimbursement.

    Status, transfer proof and rejection reason are left alone, and so is a
    ledger entry that was already posted from it.
    """
    requestor = await _requestor_scope(db, current_user)
    reimbursement = await _get_visible(db, reimbursement_id, requestor)
    if requestor is not None:
        details = details.model_copy(update={"requestor_name": requestor})

    await ReimbursementService.replace_details(db, reimbursement, details)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ResourceConflictError(
            "ReimbursementItem", reimbursement_id,
            message=f"An item id of reimbursement {reimbursement_id} is already in use"
        )
    await db.refresh(reimbursement)

    logger.info("Reimbursement details updated", extra={"reimbursement_id": reimbursement_id})
    return ReimbursementResponse.model_validate(reimbursement)


@router.put("/{reimbursement_id}/status", response_model=ReimbursementStatusResponse)
async def update_reimbursement_status(
    reimbursement_id: str,
    status_update: ReimbursementStatusUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Change the status of a reimbursement (admin-only).

    BERHASIL posts the reimbursement into the ledger atomically with the
    status change; `posting` reports POSTED or ALREADY_POSTED. If posting
    fails nothing is changed and 500 ERR_POSTING_001 is returned.
    """
    reimbursement, outcome = await ReimbursementService.update_status(
        db,
        reimbursement_id,
        status_update.status,
        rejection_reason=status_update.rejection_reason,
        transfer_proof_url=status_update.transfer_proof_url,
    )
    await db.refresh(reimbursement)

    response = ReimbursementStatusResponse.model_validate(reimbursement)
    response.posting = outcome.value if outcome else None
    return response


@router.delete("/{reimbursement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reimbursement(
    reimbursement_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a reimbursement (admin-only).

    A ledger entry already posted from it stays in place.
    """
    reimbursement = await ReimbursementService.get(db, reimbursement_id)
    await db.delete(reimbursement)
    await db.commit()
    logger.info("Reimbursement deleted", extra={"reimbursement_id": reimbursement_id})
