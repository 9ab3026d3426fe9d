# commission_engine/core/revenue_status.py
from __future__ import annotations

import enum

from commission_engine.core.errors import InvalidTransitionError


class RevenueStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


# refunded / disputed are terminal: a won dispute is not reversed here.
ALLOWED_TRANSITIONS: dict[RevenueStatus, frozenset[RevenueStatus]] = {
    RevenueStatus.PENDING: frozenset(
        {
            RevenueStatus.SUCCEEDED,
            RevenueStatus.PARTIALLY_REFUNDED,
            RevenueStatus.REFUNDED,
            RevenueStatus.DISPUTED,
        }
    ),
    RevenueStatus.SUCCEEDED: frozenset(
        {
            RevenueStatus.SUCCEEDED,
            RevenueStatus.PARTIALLY_REFUNDED,
            RevenueStatus.REFUNDED,
            RevenueStatus.DISPUTED,
        }
    ),
    RevenueStatus.PARTIALLY_REFUNDED: frozenset(
        {
            RevenueStatus.PARTIALLY_REFUNDED,
            RevenueStatus.REFUNDED,
            RevenueStatus.DISPUTED,
        }
    ),
    RevenueStatus.REFUNDED: frozenset(),
    RevenueStatus.DISPUTED: frozenset(),
}


def status_to_enum(value: str | RevenueStatus) -> RevenueStatus:
    if isinstance(value, RevenueStatus):
        return value
    return RevenueStatus((value or "").strip().lower())


def can_transition(current: str | RevenueStatus, target: str | RevenueStatus) -> bool:
    return status_to_enum(target) in ALLOWED_TRANSITIONS[status_to_enum(current)]


def ensure_transition(current: str | RevenueStatus, target: str | RevenueStatus) -> RevenueStatus:
    """
    Returns the target status, or raises InvalidTransitionError when the
    ledger record must not move from `current` to `target`.
    """
    cur = status_to_enum(current)
    tgt = status_to_enum(target)
    if tgt not in ALLOWED_TRANSITIONS[cur]:
        raise InvalidTransitionError(
            f"Revenue status cannot change from {cur.value} to {tgt.value}",
            current=cur.value,
            target=tgt.value,
        )
    return tgt
