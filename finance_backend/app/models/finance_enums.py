"""
Ledger and reimbursement enumerations.
"""

import enum


class TransactionType(str, enum.Enum):
    """Direction of a ledger entry."""
    PEMASUKAN = "PEMASUKAN"  # Income
    PENGELUARAN = "PENGELUARAN"  # Expense


class ExpenseType(str, enum.Enum):
    """Origin of an expense entry."""
    NORMAL = "NORMAL"  # Entered directly in the journal
    REIMBURSE = "REIMBURSE"  # Posted from an approved reimbursement


class ReimbursementStatus(str, enum.Enum):
    """Reimbursement status enumeration."""
    PENDING = "PENDING"  # Submitted by the requester
    PROSES = "PROSES"  # Being processed by finance
    BERHASIL = "BERHASIL"  # Approved and paid out, posted to the ledger
    DITOLAK = "DITOLAK"  # Rejected, carries a rejection reason


class CategoryType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
