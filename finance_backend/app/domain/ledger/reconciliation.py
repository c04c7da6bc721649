"""
Reconciliation Job.

Finds every approved (BERHASIL) reimbursement and posts the ones missing
from the ledger. Each reimbursement gets its own session and database
transaction, so one failure never aborts the batch. Safe to run repeatedly
and alongside live approvals: posting is guarded by the same existence check
and the ledger primary key.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from sqlalchemy import select

from finance_backend.app.core.exceptions import DuplicatePostingError
from finance_backend.app.db.session import Database
from finance_backend.app.domain.ledger.posting_engine import PostingEngine, PostingOutcome
from finance_backend.app.models.finance_enums import ReimbursementStatus
from finance_backend.app.models.reimbursement import Reimbursement

logger = logging.getLogger("finance.reconciliation")


@dataclass
class ReconciliationFailure:
    id: str
    message: str


@dataclass
class ReconciliationReport:
    total_approved: int = 0
    already_posted: int = 0
    newly_posted: int = 0
    failures: List[ReconciliationFailure] = field(default_factory=list)

    @property
    def errors(self) -> int:
        return len(self.failures)

    def record(self, outcome: PostingOutcome) -> None:
        if outcome == PostingOutcome.POSTED:
            self.newly_posted += 1
        else:
            self.already_posted += 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_approved": self.total_approved,
            "already_posted": self.already_posted,
            "newly_posted": self.newly_posted,
            "errors": self.errors,
            "failures": [{"id": f.id, "message": f.message} for f in self.failures],
        }


class ReconciliationJob:

    def __init__(self, database: Database):
        self.database = database

    async def run(self) -> ReconciliationReport:
        async with self.database.session() as db:
            result = await db.execute(
                select(Reimbursement.id)
                .where(Reimbursement.status == ReimbursementStatus.BERHASIL)
                .order_by(Reimbursement.created_at, Reimbursement.id)
            )
            approved_ids = list(result.scalars().all())

        report = ReconciliationReport(total_approved=len(approved_ids))
        logger.info("Starting reconciliation", extra={"total_approved": len(approved_ids)})

        for reimbursement_id in approved_ids:
            await self._reconcile_one(reimbursement_id, report)

        logger.info(
            "Reconciliation complete",
            extra={
                "total_approved": report.total_approved,
                "already_posted": report.already_posted,
                "newly_posted": report.newly_posted,
                "errors": report.errors,
            },
        )
        return report

    async def _reconcile_one(self, reimbursement_id: str, report: ReconciliationReport) -> None:
        async with self.database.session() as db:
            lost_race = False
            try:
                outcome = await PostingEngine.post(db, reimbursement_id)
                await db.commit()
            except DuplicatePostingError:
                # A live approval posted it between our check and insert
                await db.rollback()
                lost_race = True
            except Exception as exc:
                await db.rollback()
                self._fail(report, reimbursement_id, str(exc) or type(exc).__name__)
                return

            if lost_race:
                try:
                    posted = await PostingEngine.is_posted(db, reimbursement_id)
                except Exception as exc:
                    await db.rollback()
                    self._fail(report, reimbursement_id, str(exc) or type(exc).__name__)
                    return
                if not posted:
                    self._fail(report, reimbursement_id, "ledger rejected the entry")
                    return
                outcome = PostingOutcome.ALREADY_POSTED

        if outcome == PostingOutcome.POSTED:
            logger.info("Posted reimbursement", extra={"reimbursement_id": reimbursement_id})
        report.record(outcome)

    @staticmethod
    def _fail(report: ReconciliationReport, reimbursement_id: str, message: str) -> None:
        logger.error(
            "Failed to post reimbursement",
            extra={"reimbursement_id": reimbursement_id, "error": message},
        )
        report.failures.append(ReconciliationFailure(id=reimbursement_id, message=message))
