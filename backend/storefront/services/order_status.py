# Overview: Order status state machine.

from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    PLACED = "Placed"
    ACCEPTED = "Accepted"
    READY = "Ready"
    PICKED_UP = "Picked Up"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class InvalidTransitionError(Exception):
    """Raised when a status change is not an edge of the order state machine."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def parse_status(value: str) -> OrderStatus:
    """Accept the display value ("Picked Up") or the member name ("PICKED_UP")."""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        for status in OrderStatus:
            if value == status.value or value.upper() == status.name:
                return status
    raise InvalidTransitionError(f"Unknown order status: {value!r}")


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    return parse_status(target) in ALLOWED_TRANSITIONS[parse_status(current)]


def validate_transition(current: OrderStatus | str, target: OrderStatus | str) -> OrderStatus:
    """Return the target status, or raise InvalidTransitionError."""
    src, dst = parse_status(current), parse_status(target)
    if dst not in ALLOWED_TRANSITIONS[src]:
        raise InvalidTransitionError(
            f"Cannot move order from {src.value} to {dst.value}",
            details={
                "from": src.value,
                "to": dst.value,
                "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[src]),
            },
        )
    return dst
