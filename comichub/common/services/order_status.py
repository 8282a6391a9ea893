"""Order status machine.

The single owner of the order status set and of the legal transitions between
statuses. Every write path (mock confirmation, payment webhooks, admin API and
admin console) goes through :class:`OrderStatusMachine`.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Tuple, Union

from .errors import InvalidTransition, UnknownStatus
from .logging import log_event

if TYPE_CHECKING:  # pragma: no cover
    from .order_store import OrderRecord, OrderStore


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    IN_PRODUCTION = "In Production"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    def __str__(self) -> str:
        return self.value


INITIAL_STATUS = OrderStatus.PENDING

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.IN_PRODUCTION, OrderStatus.FAILED, OrderStatus.CANCELLED}),
    # retry after a failed payment
    OrderStatus.FAILED: frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED}),
    OrderStatus.IN_PRODUCTION: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(s for s, dests in TRANSITIONS.items() if not dests)


def parse_status(value: Union[str, OrderStatus, None]) -> OrderStatus:
    """Accept a wire value ("In Production"), a member name ("IN_PRODUCTION") or a member."""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            return OrderStatus(raw)
        except ValueError:
            pass
        member = OrderStatus.__members__.get(raw.upper().replace(" ", "_"))
        if member is not None:
            return member
    raise UnknownStatus(f"Unrecognized order status: {value!r}", requested=value)


def allowed_transitions(current: Union[str, OrderStatus]) -> Tuple[OrderStatus, ...]:
    """Destinations reachable from ``current``, in declaration order."""
    dests = TRANSITIONS[parse_status(current)]
    return tuple(s for s in OrderStatus if s in dests)


def can_transition(current: Union[str, OrderStatus], requested: Union[str, OrderStatus]) -> bool:
    try:
        return parse_status(requested) in TRANSITIONS[parse_status(current)]
    except UnknownStatus:
        return False


def check_transition(current: Union[str, OrderStatus], requested: Union[str, OrderStatus]) -> OrderStatus:
    """Return the parsed target status or raise; depends on nothing but the two arguments."""
    source = parse_status(current)
    target = parse_status(requested)
    if target not in TRANSITIONS[source]:
        raise InvalidTransition(
            f"Cannot change order status from {source.value} to {target.value}",
            current=source,
            requested=target,
        )
    return target


class OrderStatusMachine:
    """Validates a requested status against the table and persists it."""

    def __init__(self, store: "OrderStore") -> None:
        self._store = store

    def apply_transition(self, order: "OrderRecord", requested: Union[str, OrderStatus]) -> "OrderRecord":
        try:
            target = check_transition(order.status, requested)
        except InvalidTransition as exc:
            log_event(
                "warning",
                "order.transition_rejected",
                order_id=order.id,
                current=str(order.status),
                requested=str(requested),
                reason=exc.message,
            )
            raise
        updated = self._store.update_status(order.id, target)
        log_event("info", "order.status_changed", order_id=order.id, previous=str(order.status), status=target.value)
        return updated
