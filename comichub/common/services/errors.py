"""Error taxonomy shared by services and HTTP handlers.

Every error carries a machine-checkable ``kind`` and the HTTP status the API
answers with. Routes let these propagate; ``comichub.app`` renders them.
"""

from typing import Any, Dict


class ComicHubError(Exception):
    kind = "Error"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(ComicHubError, ValueError):
    kind = "ValidationError"
    http_status = 400


class NotFoundError(ComicHubError, LookupError):
    kind = "NotFound"
    http_status = 404


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: Any) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class DanglingReferenceError(ComicHubError):
    """A referenced row (user) does not exist."""

    kind = "ReferenceError"
    http_status = 400


class InvalidTransition(ComicHubError):
    kind = "InvalidTransition"
    http_status = 409

    def __init__(self, message: str, *, current: Any = None, requested: Any = None) -> None:
        super().__init__(message)
        self.current = current
        self.requested = requested


class UnknownStatus(InvalidTransition):
    http_status = 400


class SignatureInvalid(ComicHubError):
    kind = "SignatureInvalid"
    http_status = 400


class MalformedEvent(ComicHubError):
    kind = "MalformedEvent"
    http_status = 400


class StoreUnavailable(ComicHubError):
    kind = "StoreUnavailable"
    http_status = 503


class PaymentProviderError(ComicHubError):
    kind = "PaymentProviderError"
    http_status = 502
