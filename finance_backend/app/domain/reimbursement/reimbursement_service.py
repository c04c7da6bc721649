"""
Reimbursement Service (Domain Logic).

Applies status changes and, on approval, posts the reimbursement to the
ledger inside the same database transaction. Either both the status change
and the posting are committed, or neither is.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_backend.app.core.exceptions import (
    AppException,
    DuplicatePostingError,
    PostingError,
    ResourceNotFoundError,
    StorageUnavailableError,
)
from finance_backend.app.db.session import STORAGE_ERRORS
from finance_backend.app.domain.ledger.posting_engine import PostingEngine, PostingOutcome
from finance_backend.app.domain.reimbursement.status_machine import triggers_posting, validate_transition
from finance_backend.app.models.finance_enums import ReimbursementStatus
from finance_backend.app.models.reimbursement import Reimbursement, ReimbursementItem
from finance_backend.app.schemas.common import ItemDetail
from finance_backend.app.schemas.reimbursement import ReimbursementCreate, ReimbursementDetails

logger = logging.getLogger("finance.reimbursement")


def build_items(items: List[ItemDetail]) -> List[ReimbursementItem]:
    return [
        ReimbursementItem(
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


class ReimbursementService:

    @staticmethod
    async def get(db: AsyncSession, reimbursement_id: str) -> Reimbursement:
        result = await db.execute(select(Reimbursement).where(Reimbursement.id == reimbursement_id))
        reimbursement = result.scalar_one_or_none()
        if reimbursement is None:
            raise ResourceNotFoundError("Reimbursement", reimbursement_id)
        return reimbursement

    @staticmethod
    def create(db: AsyncSession, data: ReimbursementCreate) -> Reimbursement:
        """Stage a new PENDING reimbursement; the caller commits."""
        reimbursement = Reimbursement(
            id=data.id,
            date=data.date,
            requestor_name=data.requestor_name,
            category=data.category,
            company_id=data.company_id,
            activity_name=data.activity_name,
            description=data.description,
            grand_total=data.grand_total,
            status=ReimbursementStatus.PENDING,
            items=build_items(data.items),
        )
        db.add(reimbursement)
        return reimbursement

    @staticmethod
    async def replace_details(
        db: AsyncSession, reimbursement: Reimbursement, data: ReimbursementDetails
    ) -> Reimbursement:
        """
        Overwrite header fields and items. Status, proof and rejection reason
        are left alone; an already posted ledger entry is not touched.
        """
        reimbursement.date = data.date
        reimbursement.requestor_name = data.requestor_name
        reimbursement.category = data.category
        reimbursement.company_id = data.company_id
        reimbursement.activity_name = data.activity_name
        reimbursement.description = data.description
        reimbursement.grand_total = data.grand_total

        # Old rows are flushed out first so item ids can be reused
        reimbursement.items.clear()
        await db.flush()
        reimbursement.items.extend(build_items(data.items))
        return reimbursement

    @staticmethod
    async def update_status(
        db: AsyncSession,
        reimbursement_id: str,
        status: ReimbursementStatus,
        rejection_reason: Optional[str] = None,
        transfer_proof_url: Optional[str] = None,
    ) -> Tuple[Reimbursement, Optional[PostingOutcome]]:
        """
        Apply a status change and commit it.

        For BERHASIL the ledger posting runs in the same transaction. Losing a
        posting race to another approval or a reconciliation run is reported
        as ALREADY_POSTED, not as an error.

        Returns:
            The updated reimbursement and the posting outcome (None unless
            the new status is BERHASIL)

        Raises:
            ResourceNotFoundError: unknown id, nothing changed
            StorageUnavailableError: database unreachable, nothing changed
            PostingError: ledger write failed, nothing changed
        """
        args = (db, reimbursement_id, status, rejection_reason, transfer_proof_url)
        try:
            try:
                reimbursement, outcome = await ReimbursementService._apply_status(*args)
                await db.commit()
            except DuplicatePostingError:
                await db.rollback()
                if not await PostingEngine.is_posted(db, reimbursement_id):
                    raise PostingError(reimbursement_id, "ledger rejected the entry")
                logger.info(
                    "Concurrent posting detected, re-applying status",
                    extra={"reimbursement_id": reimbursement_id},
                )
                reimbursement, outcome = await ReimbursementService._apply_status(*args)
                await db.commit()
        except AppException:
            await db.rollback()
            raise
        except STORAGE_ERRORS as exc:
            logger.error(
                "Storage unavailable during status update",
                extra={"reimbursement_id": reimbursement_id, "error": str(exc)},
            )
            await db.rollback()
            raise StorageUnavailableError() from exc
        except Exception as exc:
            logger.exception(
                "Status update rolled back",
                extra={"reimbursement_id": reimbursement_id, "status": status.value},
            )
            await db.rollback()
            raise PostingError(reimbursement_id, str(exc)) from exc

        return reimbursement, outcome

    @staticmethod
    async def _apply_status(
        db: AsyncSession,
        reimbursement_id: str,
        status: ReimbursementStatus,
        rejection_reason: Optional[str],
        transfer_proof_url: Optional[str],
    ) -> Tuple[Reimbursement, Optional[PostingOutcome]]:
        reimbursement = await ReimbursementService.get(db, reimbursement_id)
        previous = reimbursement.status

        validate_transition(previous, status)

        reimbursement.status = status
        # Rejection reason only lives alongside DITOLAK
        reimbursement.rejection_reason = rejection_reason if status == ReimbursementStatus.DITOLAK else None
        if transfer_proof_url is not None:
            reimbursement.transfer_proof_url = transfer_proof_url
        await db.flush()

        outcome = None
        if triggers_posting(status):
            outcome = await PostingEngine.post(db, reimbursement_id)

        logger.info(
            "Reimbursement status updated",
            extra={
                "reimbursement_id": reimbursement_id,
                "from_status": previous.value,
                "to_status": status.value,
                "posting": outcome.value if outcome else None,
            },
        )
        return reimbursement, outcome
