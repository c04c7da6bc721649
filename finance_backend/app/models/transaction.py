"""
Transaction (ledger) database models.

A Transaction is one journal entry with its ordered line items. Entries
posted from a reimbursement reuse the reimbursement's id, which makes the
primary key the guard against double posting.
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from finance_backend.app.db.session import Base, utcnow
from finance_backend.app.models.finance_enums import TransactionType, ExpenseType


class Transaction(Base):
    """
    Ledger entry.

    Append-mostly: rows are edited or deleted only through explicit CRUD calls.
    """
    __tablename__ = "transactions"

    id = Column(String(64), primary_key=True)

    date = Column(Date, nullable=False, index=True)
    type = Column(Enum(TransactionType), nullable=False, index=True)
    expense_type = Column(Enum(ExpenseType), nullable=True, index=True)

    category = Column(String(100), nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    activity_name = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")

    grand_total = Column(Numeric(15, 2), nullable=False)

    items = relationship(
        "TransactionItem",
        back_populates="transaction",
        order_by="TransactionItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Copied from the source reimbursement when posted
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Transaction(id='{self.id}', type='{self.type.value}', total={self.grand_total})>"


class TransactionItem(Base):
    __tablename__ = "transaction_items"

    id = Column(String(64), primary_key=True)
    transaction_id = Column(
        String(64), ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    name = Column(String(255), nullable=False)
    qty = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)
    file_url = Column(String(1024), nullable=True)

    transaction = relationship("Transaction", back_populates="items")

    def __repr__(self):
        return f"<TransactionItem(id='{self.id}', transaction_id='{self.transaction_id}', total={self.total})>"
