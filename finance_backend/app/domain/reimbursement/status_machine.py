"""
Reimbursement status state machine.

The workflow is PENDING -> PROSES -> BERHASIL / DITOLAK, with BERHASIL and
DITOLAK terminal by convention. Transitions are currently permissive: every
status may be set from every other one, including leaving a terminal
status. ALLOWED_TRANSITIONS is the single place to tighten that.
"""

import logging
from typing import Dict, FrozenSet

from fastapi import status as http_status

from finance_backend.app.core.exceptions import AppException
from finance_backend.app.models.finance_enums import ReimbursementStatus

logger = logging.getLogger("finance.reimbursement")

TERMINAL_STATUSES: FrozenSet[ReimbursementStatus] = frozenset(
    {ReimbursementStatus.BERHASIL, ReimbursementStatus.DITOLAK}
)

ALLOWED_TRANSITIONS: Dict[ReimbursementStatus, FrozenSet[ReimbursementStatus]] = {
    current: frozenset(ReimbursementStatus) for current in ReimbursementStatus
}


class InvalidTransitionError(AppException):
    """Raised when a status change is not in ALLOWED_TRANSITIONS."""

    def __init__(self, current: ReimbursementStatus, requested: ReimbursementStatus):
        super().__init__(
            message=f"Cannot move reimbursement from {current.value} to {requested.value}",
            error_code="ERR_TRANSITION_001",
            status_code=http_status.HTTP_409_CONFLICT,
            details={"current": current.value, "requested": requested.value},
        )


def validate_transition(current: ReimbursementStatus, requested: ReimbursementStatus) -> None:
    """Raise InvalidTransitionError if `requested` is not reachable from `current`."""
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current, requested)

    if current in TERMINAL_STATUSES and requested != current:
        logger.warning(
            "Reimbursement leaving terminal status",
            extra={"current": current.value, "requested": requested.value},
        )


def triggers_posting(requested: ReimbursementStatus) -> bool:
    """Only the approved terminal status writes to the ledger."""
    return requested == ReimbursementStatus.BERHASIL
