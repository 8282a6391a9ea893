from decimal import Decimal
from typing import Any, List, Optional, Sequence, Union

from ..utils.validators import CENT, MAX_AMOUNT, ensure_id, ensure_money, ensure_text, parse_order_item
from .errors import OrderNotFound, ValidationError
from .logging import log_event
from .order_status import OrderStatus, OrderStatusMachine
from .order_store import OrderRecord, OrderStore


class OrderService:
    """Order creation, lookup and status changes over an OrderStore."""

    def __init__(self, store: OrderStore, status_machine: Optional[OrderStatusMachine] = None):
        self._store = store
        self._machine = status_machine or OrderStatusMachine(store)

    @property
    def status_machine(self) -> OrderStatusMachine:
        return self._machine

    def create_order(
        self,
        *,
        user_id: Any,
        customer_name: Any,
        items: Sequence[Any],
        total_price: Any = None,
    ) -> OrderRecord:
        """Validate and persist a Pending order with its item snapshot.

        ``total_price`` is the caller's snapshot of sum(price * quantity); it is
        computed when omitted and must match the items to the cent otherwise.
        """
        uid = ensure_id(user_id, "userId")
        name = ensure_text(customer_name, "customerName")
        if not isinstance(items, (list, tuple)) or not items:
            raise ValidationError("items must be a non-empty array")
        parsed = [parse_order_item(raw, idx) for idx, raw in enumerate(items)]
        computed = sum((it.price * it.quantity for it in parsed), Decimal("0"))
        if computed > MAX_AMOUNT:
            raise ValidationError(f"Order total must be at most {MAX_AMOUNT}")
        computed = computed.quantize(CENT)
        if total_price is None:
            total = computed
        else:
            total = ensure_money(total_price, "totalPrice")
            if total != computed:
                raise ValidationError(f"totalPrice {total} does not match item total {computed}")

        order = self._store.create(user_id=uid, customer_name=name, items=parsed, total_price=total)
        log_event(
            "info",
            "order.created",
            order_id=order.id,
            user_id=uid,
            items=len(parsed),
            total=str(total),
            custom=order.has_custom_items,
        )
        return order

    def get_order(self, order_id: Any) -> OrderRecord:
        oid = ensure_id(order_id, "orderId")
        order = self._store.get(oid)
        if order is None:
            raise OrderNotFound(oid)
        return order

    def list_orders(self, *, user_id: Any = None, custom_only: bool = False) -> List[OrderRecord]:
        uid = ensure_id(user_id, "userId") if user_id not in (None, "") else None
        return self._store.list(user_id=uid, custom_only=bool(custom_only))

    def request_status_change(self, order_id: Any, new_status: Union[str, OrderStatus]) -> OrderRecord:
        order = self.get_order(order_id)
        return self._machine.apply_transition(order, new_status)

    def record_payment_reference(self, order_id: Any, reference: str) -> OrderRecord:
        """Remember the provider's checkout session id; status is untouched."""
        order = self.get_order(order_id)
        return self._store.set_payment_reference(order.id, reference)
