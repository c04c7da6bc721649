"""
Transaction (ledger) Pydantic schemas.
"""

import datetime as dt
from typing import List, Optional

from pydantic import Field, model_validator

from finance_backend.app.models.finance_enums import ExpenseType, TransactionType
from finance_backend.app.schemas.common import CamelModel, ItemDetail, Money


class TransactionBase(CamelModel):
    date: dt.date
    type: TransactionType
    expense_type: Optional[ExpenseType] = None
    category: str = Field(..., min_length=1, max_length=100)
    company_id: int
    activity_name: str = Field("", max_length=255)
    description: str = ""
    grand_total: Money
    items: List[ItemDetail] = Field(default_factory=list)

    @model_validator(mode="after")
    def normalize_expense_type(self):
        # expenseType only applies to expenses
        if self.type == TransactionType.PEMASUKAN:
            self.expense_type = None
        elif self.expense_type is None:
            self.expense_type = ExpenseType.NORMAL
        return self


class TransactionCreate(TransactionBase):
    id: str = Field(..., min_length=1, max_length=64)

    @model_validator(mode="after")
    def reject_reimburse_expense(self):
        # REIMBURSE entries only come from approved reimbursements
        if self.type == TransactionType.PENGELUARAN and self.expense_type == ExpenseType.REIMBURSE:
            raise ValueError("expenseType REIMBURSE is reserved for approved reimbursements")
        return self


class TransactionUpdate(TransactionBase):
    """Full replacement of header and items."""


class TransactionResponse(CamelModel):
    id: str
    date: dt.date
    type: TransactionType
    expense_type: Optional[ExpenseType] = None
    category: str
    company_id: int
    activity_name: str
    description: str
    grand_total: Money
    items: List[ItemDetail]
    created_at: dt.datetime
