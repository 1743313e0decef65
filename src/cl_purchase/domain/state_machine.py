"""Purchase status transitions.

    pending → approved → shipped → delivered → completed
    pending | approved → rejected | cancelled

completed, rejected and cancelled are terminal.
"""

from src.cl_common.enums import PurchaseStatus
from src.cl_common.errors import InvalidPurchaseTransitionError

_P = PurchaseStatus

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    _P.PENDING.value: frozenset({_P.APPROVED.value, _P.REJECTED.value, _P.CANCELLED.value}),
    _P.APPROVED.value: frozenset({_P.SHIPPED.value, _P.REJECTED.value, _P.CANCELLED.value}),
    _P.SHIPPED.value: frozenset({_P.DELIVERED.value}),
    _P.DELIVERED.value: frozenset({_P.COMPLETED.value}),
    _P.COMPLETED.value: frozenset(),
    _P.REJECTED.value: frozenset(),
    _P.CANCELLED.value: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(purchase_id: str, current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidPurchaseTransitionError(purchase_id, current, target)
