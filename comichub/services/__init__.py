"""Payment gateway selection."""

from .mock_gateway import MockPaymentGateway
from .payment_gateway import PaymentGateway
from .stripe_gateway import StripePaymentGateway


def build_payment_gateway(config, orders) -> PaymentGateway:
    """Pick the gateway named by ``config.payment_provider``."""
    common = {
        "base_url": config.app_base_url,
        "webhook_secret": config.webhook_secret,
        "currency": config.currency,
    }
    if config.payment_provider == "stripe":
        return StripePaymentGateway(orders, api_key=config.stripe_secret_key, **common)
    return MockPaymentGateway(orders, **common)


__all__ = [
    "PaymentGateway",
    "MockPaymentGateway",
    "StripePaymentGateway",
    "build_payment_gateway",
]
