"""
Admin Operations API Endpoints.

Maintenance actions that repair state in bulk.
"""

import logging

from fastapi import APIRouter, Depends, Request

from finance_backend.app.core.guards import require_admin
from finance_backend.app.domain.ledger.reconciliation import ReconciliationJob
from finance_backend.app.schemas.reconciliation import ReconciliationReportResponse

logger = logging.getLogger("finance.reconciliation")

router = APIRouter(prefix="/admin/ops", tags=["Admin - Ops"])


@router.post("/reconcile-reimbursements", response_model=ReconciliationReportResponse)
async def reconcile_reimbursements(
    request: Request,
    admin: dict = Depends(require_admin)
):
    """
    Post every approved reimbursement that is missing from the ledger.

    Each reimbursement is handled in its own database transaction; failures
    are listed in the report and do not stop the run. Safe to repeat.
    """
    logger.info("Reconciliation triggered", extra={"triggered_by": admin["user_id"]})
    report = await ReconciliationJob(request.app.state.database).run()
    return ReconciliationReportResponse.model_validate(report.as_dict())
