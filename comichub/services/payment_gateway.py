"""Payment confirmation adapter.

One ``PaymentGateway`` is built at startup from configuration; routes never
branch on the provider. Subclasses differ in how a checkout session is opened
and how a browser-return confirmation is checked. Signed webhook events are
handled here for every gateway.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import stripe

from ..common.services.errors import InvalidTransition, MalformedEvent, OrderNotFound, SignatureInvalid
from ..common.services.logging import log_event
from ..common.services.order_service import OrderService
from ..common.services.order_status import OrderStatus
from ..common.services.order_store import OrderRecord
from ..common.utils.validators import MAX_ID


# event type -> fixed outcome; None means "read payment_status from the session"
HANDLED_EVENTS: Dict[str, Optional[OrderStatus]] = {
    "checkout.session.completed": None,
    "checkout.session.async_payment_succeeded": OrderStatus.PAID,
    "checkout.session.async_payment_failed": OrderStatus.FAILED,
    "payment_intent.payment_failed": OrderStatus.FAILED,
}

PAID_SESSION_STATES = {"paid", "no_payment_required"}
FAILED_SESSION_STATES = {"failed"}


def field_of(obj: Any, key: str) -> Any:
    """Read ``key`` from a dict or a stripe object."""
    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError, IndexError):
        return getattr(obj, key, None)


def parse_order_reference(value: Any) -> int:
    text = str(value).strip() if value is not None else ""
    if not text.isdecimal() or not 0 < int(text) <= MAX_ID:
        raise MalformedEvent(f"Event metadata carries no usable orderId: {value!r}")
    return int(text)


class PaymentGateway(ABC):
    name = "base"

    def __init__(
        self,
        orders: OrderService,
        *,
        base_url: str,
        webhook_secret: str = "",
        currency: str = "usd",
        webhook_tolerance: int = 300,
    ) -> None:
        self._orders = orders
        self._base_url = base_url.rstrip("/")
        self._webhook_secret = webhook_secret
        self._currency = currency
        self._webhook_tolerance = webhook_tolerance
        self.logger = logging.getLogger(__name__)

    def success_url(self, order_id: int) -> str:
        return f"{self._base_url}/payment-success?order_id={order_id}"

    def cancel_url(self) -> str:
        return f"{self._base_url}/checkout"

    def _pending_order(self, order_id: Any) -> OrderRecord:
        order = self._orders.get_order(order_id)
        if order.status is not OrderStatus.PENDING:
            raise InvalidTransition(
                f"Order {order.id} is {order.status.value}, only Pending orders can be paid",
                current=order.status,
                requested=OrderStatus.PAID,
            )
        return order

    @abstractmethod
    def create_checkout_session(self, order_id: Any) -> Dict[str, Any]:
        """Return {orderId, checkoutUrl, sessionId} for a Pending order."""

    @abstractmethod
    def confirm_payment(self, order_id: Any, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Return {orderId, status} after confirming the payment outcome."""

    # ------------------------------------------------------------------
    # webhooks
    # ------------------------------------------------------------------
    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a signed provider event and apply its outcome.

        Signature and payload problems raise and are never retried. Business
        rejections are logged and acknowledged. StoreUnavailable propagates
        so the provider redelivers.
        """
        event = self.verify_event(payload, signature)
        return self.process_event(event)

    def verify_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not self._webhook_secret:
            log_event("error", "webhook.rejected", reason="webhook secret not configured")
            raise SignatureInvalid("Webhook secret is not configured")
        if not signature:
            log_event("warning", "webhook.rejected", reason="missing signature")
            raise SignatureInvalid("Missing payment provider signature header")
        try:
            text = payload.decode("utf-8") if isinstance(payload, bytes) else str(payload)
        except UnicodeDecodeError as exc:
            raise MalformedEvent("Webhook payload is not UTF-8") from exc
        try:
            stripe.WebhookSignature.verify_header(text, signature, self._webhook_secret, self._webhook_tolerance)
        except stripe.SignatureVerificationError as exc:
            log_event("warning", "webhook.rejected", reason="bad signature")
            raise SignatureInvalid(f"Webhook signature verification failed: {exc}") from exc
        try:
            event = json.loads(text)
        except ValueError as exc:
            log_event("warning", "webhook.rejected", reason="payload is not JSON")
            raise MalformedEvent("Webhook payload is not valid JSON") from exc
        if not isinstance(event, dict):
            raise MalformedEvent("Webhook payload must be a JSON object")
        return event

    def process_event(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        event_type = str(event.get("type") or "")
        event_id = event.get("id")
        log_event("info", "webhook.received", event_id=event_id, event_type=event_type, gateway=self.name)
        if event_type not in HANDLED_EVENTS:
            log_event("info", "webhook.ignored", event_id=event_id, event_type=event_type)
            return {"received": True, "applied": False}

        obj = field_of(field_of(event, "data"), "object")
        if obj is None:
            raise MalformedEvent("Webhook event has no data.object")
        order_id = parse_order_reference(field_of(field_of(obj, "metadata"), "orderId"))

        target = HANDLED_EVENTS[event_type]
        if target is None:
            payment_status = str(field_of(obj, "payment_status") or "").lower()
            if payment_status in PAID_SESSION_STATES:
                target = OrderStatus.PAID
            elif payment_status in FAILED_SESSION_STATES:
                target = OrderStatus.FAILED
            else:
                # async payment methods settle later via async_payment_* events
                log_event("info", "webhook.awaiting_payment", event_id=event_id, order_id=order_id, payment_status=payment_status)
                return {"received": True, "applied": False, "orderId": order_id}
        return self.settle(order_id, target, event_id=event_id)

    def settle(self, order_id: int, target: OrderStatus, *, event_id: Any = None) -> Dict[str, Any]:
        """Move a Pending order to Paid or Failed; anything else is a no-op."""
        try:
            order = self._orders.get_order(order_id)
        except OrderNotFound:
            log_event("warning", "webhook.rejected", event_id=event_id, order_id=order_id, reason="order not found")
            return {"received": True, "applied": False, "orderId": order_id}

        if order.status is not OrderStatus.PENDING:
            log_event(
                "info",
                "webhook.duplicate",
                event_id=event_id,
                order_id=order_id,
                status=order.status.value,
                requested=target.value,
            )
            return {"received": True, "applied": False, "orderId": order_id, "status": order.status.value}

        try:
            updated = self._orders.status_machine.apply_transition(order, target)
        except InvalidTransition as exc:
            log_event("warning", "webhook.rejected", event_id=event_id, order_id=order_id, reason=exc.message)
            return {"received": True, "applied": False, "orderId": order_id, "status": order.status.value}

        log_event("info", "payment.confirmed", order_id=order_id, status=updated.status.value, gateway=self.name)
        return {"received": True, "applied": True, "orderId": order_id, "status": updated.status.value}
