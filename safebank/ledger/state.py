"""
Transaction status state machine.

Manual transitions:
- APPROVED  <- REQUIRES_APPROVAL, FLAGGED
- REJECTED  <- PENDING, FLAGGED, REQUIRES_APPROVAL, REJECTED (no-op)

APPROVED is final.
"""

from safebank.errors import InvalidTransactionStateError
from safebank.models.transaction import TransactionStatus

# target status -> statuses it may be reached from
ALLOWED_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.APPROVED: frozenset({
        TransactionStatus.REQUIRES_APPROVAL,
        TransactionStatus.FLAGGED,
    }),
    TransactionStatus.REJECTED: frozenset({
        TransactionStatus.PENDING,
        TransactionStatus.FLAGGED,
        TransactionStatus.REQUIRES_APPROVAL,
        TransactionStatus.REJECTED,
    }),
}


def can_transition(current: TransactionStatus, target: TransactionStatus) -> bool:
    return current in ALLOWED_TRANSITIONS.get(target, frozenset())


def transition(current: TransactionStatus, target: TransactionStatus) -> TransactionStatus:
    """
    Validate a status change and return the new status.

    Raises:
        InvalidTransactionStateError: If target is not reachable from current
    """
    if not can_transition(current, target):
        raise InvalidTransactionStateError(
            current.value,
            f"Cannot move transaction from {current.value} to {target.value}",
        )
    return target
