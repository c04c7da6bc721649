"""
Reconciliation report schema.
"""

from typing import List

from finance_backend.app.schemas.common import CamelModel


class ReconciliationFailure(CamelModel):
    id: str
    message: str


class ReconciliationReportResponse(CamelModel):
    total_approved: int
    already_posted: int
    newly_posted: int
    errors: int
    failures: List[ReconciliationFailure]
