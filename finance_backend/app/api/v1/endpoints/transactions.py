"""
Transaction (ledger) API Endpoints.

Manual income and expense entries. Reimbursement entries are written by the
posting engine when a reimbursement is approved, never through POST here;
deleting one does not touch the reimbursement it came from.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import ResourceConflictError, ResourceNotFoundError
from finance_backend.app.core.guards import require_admin
from finance_backend.app.db.session import get_db
from finance_backend.app.models.finance_enums import ExpenseType, TransactionType
from finance_backend.app.models.reimbursement import Reimbursement
from finance_backend.app.models.transaction import Transaction, TransactionItem
from finance_backend.app.schemas.common import ItemDetail
from finance_backend.app.schemas.transaction import TransactionCreate, TransactionResponse, TransactionUpdate

logger = logging.getLogger("finance.transactions")

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def _build_items(items: List[ItemDetail]) -> List[TransactionItem]:
    return [
        TransactionItem(
            id=item.id,
            position=position,
            name=item.name,
            qty=item.qty,
            price=item.price,
            total=item.total,
            file_url=item.file_url,
        )
        for position, item in enumerate(items)
    ]


async def _get_transaction(db: AsyncSession, transaction_id: str) -> Transaction:
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    transaction = result.scalar_one_or_none()
    if not transaction:
        raise ResourceNotFoundError("Transaction", transaction_id)
    return transaction


async def _commit_or_conflict(db: AsyncSession, transaction_id: str) -> None:
    # Item ids are global, so a clash there is a conflict as well
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ResourceConflictError(
            "Transaction", transaction_id,
            message=f"Transaction {transaction_id} or one of its item ids already exists"
        )


@router.get("", response_model=List[TransactionResponse])
async def list_transactions(
    type: Optional[TransactionType] = Query(None, description="PEMASUKAN or PENGELUARAN"),
    expense_type: Optional[ExpenseType] = Query(None, description="NORMAL or REIMBURSE"),
    company_id: Optional[int] = Query(None),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List ledger entries, newest first, with their items (admin-only)."""
    query = select(Transaction)
    if type is not None:
        query = query.where(Transaction.type == type)
    if expense_type is not None:
        query = query.where(Transaction.expense_type == expense_type)
    if company_id is not None:
        query = query.where(Transaction.company_id == company_id)

    result = await db.execute(query.order_by(Transaction.date.desc(), Transaction.created_at.desc()))
    return [TransactionResponse.model_validate(t) for t in result.scalars().all()]


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return TransactionResponse.model_validate(await _get_transaction(db, transaction_id))


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a ledger entry (admin-only).

    The id is supplied by the client. An id already used by a ledger entry or
    by a reimbursement is rejected with 409, since a reimbursement id is
    reserved for its ledger entry.
    """
    existing = await db.execute(select(Transaction.id).where(Transaction.id == transaction_data.id))
    if existing.scalar_one_or_none() is not None:
        raise ResourceConflictError("Transaction", transaction_data.id)

    reserved = await db.execute(select(Reimbursement.id).where(Reimbursement.id == transaction_data.id))
    if reserved.scalar_one_or_none() is not None:
        raise ResourceConflictError(
            "Transaction", transaction_data.id,
            message=f"Id {transaction_data.id} belongs to a reimbursement"
        )

    transaction = Transaction(
        id=transaction_data.id,
        date=transaction_data.date,
        type=transaction_data.type,
        expense_type=transaction_data.expense_type,
        category=transaction_data.category,
        company_id=transaction_data.company_id,
        activity_name=transaction_data.activity_name,
        description=transaction_data.description,
        grand_total=transaction_data.grand_total,
        items=_build_items(transaction_data.items),
    )
    db.add(transaction)
    await _commit_or_conflict(db, transaction_data.id)
    await db.refresh(transaction)

    logger.info(
        "Transaction created",
        extra={"transaction_id": transaction.id, "type": transaction.type.value, "grand_total": str(transaction.grand_total)},
    )
    return TransactionResponse.model_validate(transaction)


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    transaction_data: TransactionUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Replace the header and items of a ledger entry (admin-only).

    An entry posted from a reimbursement stays a PENGELUARAN / REIMBURSE
    expense; asking for another type is rejected with 409. A manual entry
    cannot be turned into a REIMBURSE expense.
    """
    transaction = await _get_transaction(db, transaction_id)

    if transaction.expense_type == ExpenseType.REIMBURSE:
        if transaction_data.type != TransactionType.PENGELUARAN:
            raise ResourceConflictError(
                "Transaction", transaction_id,
                message=f"Transaction {transaction_id} was posted from a reimbursement and must stay an expense"
            )
    else:
        if transaction_data.expense_type == ExpenseType.REIMBURSE:
            raise ResourceConflictError(
                "Transaction", transaction_id,
                message="expenseType REIMBURSE is reserved for approved reimbursements"
            )
        transaction.type = transaction_data.type
        transaction.expense_type = transaction_data.expense_type

    transaction.date = transaction_data.date
    transaction.category = transaction_data.category
    transaction.company_id = transaction_data.company_id
    transaction.activity_name = transaction_data.activity_name
    transaction.description = transaction_data.description
    transaction.grand_total = transaction_data.grand_total

    # Old rows go first so item ids can be reused
    transaction.items.clear()
    await db.flush()
    transaction.items.extend(_build_items(transaction_data.items))

    await _commit_or_conflict(db, transaction_id)
    await db.refresh(transaction)

    logger.info("Transaction updated", extra={"transaction_id": transaction_id})
    return TransactionResponse.model_validate(transaction)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a ledger entry (admin-only).

    A reimbursement that was posted under this id keeps its status; the next
    approval or reconciliation run will post it again.
    """
    transaction = await _get_transaction(db, transaction_id)
    await db.delete(transaction)
    await db.commit()
    logger.info("Transaction deleted", extra={"transaction_id": transaction_id})
