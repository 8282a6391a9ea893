from typing import Any, Dict, Optional

from ..common.services.logging import log_event
from ..common.services.order_status import OrderStatus
from .payment_gateway import PaymentGateway


class MockPaymentGateway(PaymentGateway):
    """Local gateway: checkout redirects straight back and confirmation is synchronous."""

    name = "mock"

    def create_checkout_session(self, order_id: Any) -> Dict[str, Any]:
        order = self._pending_order(order_id)
        session_id = f"mock_cs_{order.id}"
        self._orders.record_payment_reference(order.id, session_id)
        checkout_url = f"{self.success_url(order.id)}&mock=true"
        log_event("info", "payment.checkout_created", order_id=order.id, gateway=self.name, session_id=session_id)
        return {"orderId": order.id, "checkoutUrl": checkout_url, "sessionId": session_id}

    def confirm_payment(self, order_id: Any, session_id: Optional[str] = None) -> Dict[str, Any]:
        order = self._orders.get_order(order_id)
        updated = self._orders.status_machine.apply_transition(order, OrderStatus.PAID)
        log_event("info", "payment.confirmed", order_id=updated.id, status=updated.status.value, gateway=self.name)
        return {"orderId": updated.id, "status": updated.status.value}
