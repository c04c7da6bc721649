"""
Reimbursement Pydantic schemas.
"""

import datetime as dt
from typing import List, Optional

from pydantic import Field, model_validator

from finance_backend.app.models.finance_enums import ReimbursementStatus
from finance_backend.app.schemas.common import CamelModel, ItemDetail, Money


class ReimbursementDetails(CamelModel):
    """Editable header and items of a reimbursement."""
    date: dt.date
    requestor_name: str = Field(..., min_length=1, max_length=150)
    category: str = Field(..., min_length=1, max_length=100)
    company_id: int
    activity_name: str = Field("", max_length=255)
    description: str = ""
    grand_total: Money
    items: List[ItemDetail] = Field(default_factory=list)


class ReimbursementCreate(ReimbursementDetails):
    """Schema for submitting a reimbursement. Always starts at PENDING."""
    id: str = Field(..., min_length=1, max_length=64)


class ReimbursementStatusUpdate(CamelModel):
    """
    Status change request.

    transferProofUrl is applied only when supplied; rejectionReason is
    mandatory for DITOLAK.
    """
    status: ReimbursementStatus
    rejection_reason: Optional[str] = None
    transfer_proof_url: Optional[str] = Field(None, max_length=1024)

    @model_validator(mode="after")
    def check_rejection_reason(self):
        if self.status == ReimbursementStatus.DITOLAK and not (self.rejection_reason or "").strip():
            raise ValueError("rejectionReason is required when status is DITOLAK")
        return self


class ReimbursementResponse(CamelModel):
    id: str
    date: dt.date
    requestor_name: str
    category: str
    company_id: int
    activity_name: str
    description: str
    grand_total: Money
    status: ReimbursementStatus
    transfer_proof_url: Optional[str] = None
    rejection_reason: Optional[str] = None
    items: List[ItemDetail]
    created_at: dt.datetime
    updated_at: dt.datetime


class ReimbursementStatusResponse(ReimbursementResponse):
    """Updated reimbursement plus the ledger posting outcome (BERHASIL only)."""
    posting: Optional[str] = None
