"""
Posting Engine (Domain Logic).

Copies an approved reimbursement into the transaction ledger exactly once.
The engine only flushes; the caller owns the surrounding database
transaction and commits or rolls back the whole unit.
"""

import enum
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import DuplicatePostingError, ResourceNotFoundError
from finance_backend.app.models.finance_enums import ExpenseType, TransactionType
from finance_backend.app.models.reimbursement import Reimbursement
from finance_backend.app.models.transaction import Transaction, TransactionItem

logger = logging.getLogger("finance.ledger")

DESCRIPTION_TEMPLATE = "Reimburse oleh: {requestor_name} - {description}"


class PostingOutcome(str, enum.Enum):
    POSTED = "POSTED"
    ALREADY_POSTED = "ALREADY_POSTED"


def build_ledger_description(requestor_name: str, description: str) -> str:
    return DESCRIPTION_TEMPLATE.format(requestor_name=requestor_name, description=description)


class PostingEngine:

    @staticmethod
    async def is_posted(db: AsyncSession, reimbursement_id: str) -> bool:
        """A reimbursement is posted when a ledger entry carries its id."""
        result = await db.execute(
            select(Transaction.id).where(Transaction.id == reimbursement_id)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def post(db: AsyncSession, reimbursement_id: str) -> PostingOutcome:
        """
        Post one reimbursement to the ledger.

        Flow:
        1. Idempotency check (ledger entry with the same id)
        2. Load header and ordered items
        3. Build the ledger description
        4. Insert the Transaction header (same id, PENGELUARAN / REIMBURSE)
        5. Insert one TransactionItem per reimbursement item

        Raises:
            ResourceNotFoundError: unknown reimbursement id
            DuplicatePostingError: the header insert hit the primary key,
                i.e. another unit posted it first
        """
        # 1. Idempotency Check
        if await PostingEngine.is_posted(db, reimbursement_id):
            logger.info("Reimbursement already posted", extra={"reimbursement_id": reimbursement_id})
            return PostingOutcome.ALREADY_POSTED

        # 2. Fetch header + items, fresh from the database
        result = await db.execute(
            select(Reimbursement)
            .where(Reimbursement.id == reimbursement_id)
            .execution_options(populate_existing=True)
        )
        reimbursement = result.scalar_one_or_none()
        if reimbursement is None:
            raise ResourceNotFoundError("Reimbursement", reimbursement_id)

        # 3-4. Header
        entry = Transaction(
            id=reimbursement.id,
            date=reimbursement.date,
            type=TransactionType.PENGELUARAN,
            expense_type=ExpenseType.REIMBURSE,
            category=reimbursement.category,
            company_id=reimbursement.company_id,
            activity_name=reimbursement.activity_name,
            description=build_ledger_description(reimbursement.requestor_name, reimbursement.description),
            grand_total=reimbursement.grand_total,
            # Keep the request's place in the ledger's chronology
            created_at=reimbursement.created_at,
        )
        db.add(entry)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicatePostingError(reimbursement_id) from exc

        # 5. Items
        PostingEngine._copy_items(db, entry, reimbursement)
        await db.flush()

        logger.info(
            "Reimbursement posted to ledger",
            extra={
                "reimbursement_id": reimbursement_id,
                "grand_total": str(reimbursement.grand_total),
                "items": len(reimbursement.items),
            },
        )
        return PostingOutcome.POSTED

    @staticmethod
    def _copy_items(db: AsyncSession, entry: Transaction, reimbursement: Reimbursement) -> None:
        for item in reimbursement.items:
            db.add(TransactionItem(
                id=item.id,
                transaction_id=entry.id,
                position=item.position,
                name=item.name,
                qty=item.qty,
                price=item.price,
                total=item.total,
                file_url=item.file_url,
            ))
