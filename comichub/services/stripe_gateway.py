from typing import Any, Dict, List, Optional

import stripe

from ..common.services.errors import PaymentProviderError, ValidationError
from ..common.services.logging import log_event
from ..common.services.order_status import OrderStatus
from ..common.services.order_store import OrderRecord
from .payment_gateway import PAID_SESSION_STATES, PaymentGateway, field_of, parse_order_reference


class StripePaymentGateway(PaymentGateway):
    """Stripe hosted checkout. Webhooks are the authoritative confirmation path."""

    name = "stripe"

    def __init__(self, orders, *, api_key: str, **kwargs) -> None:
        if not api_key:
            raise ValueError("STRIPE_SECRET_KEY is required when PAYMENT_PROVIDER=stripe")
        super().__init__(orders, **kwargs)
        self._api_key = api_key

    def _line_items(self, order: OrderRecord) -> List[Dict[str, Any]]:
        line_items = []
        for item in order.items:
            product_data: Dict[str, Any] = {"name": item.title}
            if item.image_url:
                product_data["images"] = [item.image_url]
            line_items.append(
                {
                    "price_data": {
                        "currency": self._currency,
                        "product_data": product_data,
                        # cents
                        "unit_amount": int((item.price * 100).to_integral_value()),
                    },
                    "quantity": item.quantity,
                }
            )
        return line_items

    def create_checkout_session(self, order_id: Any) -> Dict[str, Any]:
        order = self._pending_order(order_id)
        metadata = {"orderId": str(order.id)}
        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                mode="payment",
                line_items=self._line_items(order),
                success_url=f"{self.success_url(order.id)}&session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=self.cancel_url(),
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
                client_reference_id=str(order.id),
            )
        except stripe.StripeError as exc:
            self.logger.exception("Stripe checkout session creation failed for order %s", order.id)
            raise PaymentProviderError(f"Stripe error: {exc.user_message or exc}") from exc

        session_id = field_of(session, "id")
        self._orders.record_payment_reference(order.id, session_id)
        log_event("info", "payment.checkout_created", order_id=order.id, gateway=self.name, session_id=session_id)
        return {"orderId": order.id, "checkoutUrl": field_of(session, "url"), "sessionId": session_id}

    def confirm_payment(self, order_id: Any, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Check a checkout session on browser return.

        Redundant with the webhook; whichever arrives first moves the order and
        the other finds it already Paid.
        """
        order = self._orders.get_order(order_id)
        if not session_id:
            raise ValidationError("session_id is required to confirm a Stripe payment")
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self._api_key)
        except stripe.StripeError as exc:
            self.logger.exception("Stripe checkout session lookup failed: %s", session_id)
            raise PaymentProviderError(f"Stripe error: {exc.user_message or exc}") from exc

        session_order = parse_order_reference(field_of(field_of(session, "metadata"), "orderId"))
        if session_order != order.id:
            raise ValidationError(f"Checkout session {session_id} does not belong to order {order.id}")

        payment_status = str(field_of(session, "payment_status") or "").lower()
        if payment_status in PAID_SESSION_STATES and order.status is OrderStatus.PENDING:
            result = self.settle(order.id, OrderStatus.PAID, event_id=session_id)
            return {"orderId": order.id, "status": result.get("status", order.status.value)}
        return {"orderId": order.id, "status": order.status.value}
