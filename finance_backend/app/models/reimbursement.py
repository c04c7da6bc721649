"""
Reimbursement database models.

Follows the approval workflow PENDING -> PROSES -> BERHASIL / DITOLAK.
Reaching BERHASIL posts the reimbursement into the transaction ledger.
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from finance_backend.app.db.session import Base, utcnow
from finance_backend.app.models.finance_enums import ReimbursementStatus


class Reimbursement(Base):
    """
    Reimbursement request (aggregate root).

    `id` is generated by the client and becomes the id of the ledger entry
    once the request is approved.
    """
    __tablename__ = "reimbursements"

    id = Column(String(64), primary_key=True)

    date = Column(Date, nullable=False, index=True)
    requestor_name = Column(String(150), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    activity_name = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")

    grand_total = Column(Numeric(15, 2), nullable=False)

    # Status
    status = Column(Enum(ReimbursementStatus), default=ReimbursementStatus.PENDING, nullable=False, index=True)
    transfer_proof_url = Column(String(1024), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    items = relationship(
        "ReimbursementItem",
        back_populates="reimbursement",
        order_by="ReimbursementItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Timestamps (created_at is reused by the posted ledger entry)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Reimbursement(id='{self.id}', status='{self.status.value}', total={self.grand_total})>"


class ReimbursementItem(Base):
    __tablename__ = "reimbursement_items"

    id = Column(String(64), primary_key=True)
    reimbursement_id = Column(
        String(64), ForeignKey("reimbursements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(255), nullable=False)
    qty = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)
    file_url = Column(String(1024), nullable=True)

    reimbursement = relationship("Reimbursement", back_populates="items")

    def __repr__(self):
        return f"<ReimbursementItem(id='{self.id}', reimbursement_id='{self.reimbursement_id}')>"
