"""
User roles enumeration.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Finance staff; manages the ledger and approves reimbursements
        EMPLOYEE: Submits and tracks own reimbursement requests
    """
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"
