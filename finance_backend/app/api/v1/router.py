"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from finance_backend.app.api.v1.endpoints import (
    auth, users, employees, companies, categories,
    transactions, reimbursements, admin_ops
)

router = APIRouter()

# Authentication and logins
router.include_router(auth.router)
router.include_router(users.router)

# Master data
router.include_router(employees.router)
router.include_router(companies.router)
router.include_router(categories.router)

# Ledger and reimbursement workflow
router.include_router(transactions.router)
router.include_router(reimbursements.router)

# Maintenance
router.include_router(admin_ops.router)
