from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from ..services.errors import ValidationError
from ..services.order_store import NewOrderItem


CENT = Decimal("0.01")
# largest value an INTEGER column holds
MAX_ID = 2**63 - 1
# Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def ensure_id(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer id")
    if isinstance(value, int):
        ident = value
    elif isinstance(value, str) and value.strip().isdecimal():
        ident = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer id")
    if ident <= 0:
        raise ValidationError(f"{field} must be a positive integer id")
    if ident > MAX_ID:
        raise ValidationError(f"{field} is out of range")
    return ident


def ensure_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a positive integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    if value > MAX_ID:
        raise ValidationError(f"{field} is out of range")
    return value


def ensure_money(value: Any, field: str) -> Decimal:
    """Parse a non-negative amount rounded half-up to the cent.

    Clients add prices in floating point, so 3.3000000000000003 is 3.30.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} must be at most {MAX_AMOUNT}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_text(value: Any, field: str, *, required: bool = True, max_length: int = 255) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def parse_order_item(raw: Any, index: int) -> NewOrderItem:
    """Build a NewOrderItem from a camelCase or snake_case mapping."""
    where = f"items[{index}]"
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{where} must be an object")
    product_id = _pick(raw, "productId", "product_id")
    return NewOrderItem(
        title=ensure_text(_pick(raw, "title"), f"{where}.title"),
        price=ensure_money(_pick(raw, "price"), f"{where}.price"),
        quantity=ensure_positive_int(_pick(raw, "quantity"), f"{where}.quantity"),
        product_id=ensure_id(product_id, f"{where}.productId") if product_id is not None else None,
        image_url=ensure_text(_pick(raw, "imageUrl", "image_url"), f"{where}.imageUrl", required=False, max_length=1024),
        is_custom=parse_flag(_pick(raw, "isCustom", "is_custom")),
        notes=ensure_text(_pick(raw, "notes"), f"{where}.notes", required=False, max_length=4000),
    )


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
