from typing import Any, Dict, Optional

from ..services.order_status import allowed_transitions
from ..services.order_store import OrderItemRecord, OrderRecord


def _money(value: Any) -> float:
    return float(value or 0)


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() + "Z" if value is not None else None


def to_product_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "title": getattr(row, "title", None),
        "description": getattr(row, "description", None),
        "price": _money(getattr(row, "price", 0)),
        "imageUrl": getattr(row, "image_url", None),
        "type": getattr(row, "type", None),
    }


def to_order_item_dto(item: OrderItemRecord) -> Dict:
    return {
        "id": item.id,
        "productId": item.product_id,
        "title": item.title,
        "price": _money(item.price),
        "quantity": item.quantity,
        "imageUrl": item.image_url,
        "isCustom": item.is_custom,
        "notes": item.notes,
    }


def to_order_dto(order: OrderRecord) -> Dict:
    return {
        "id": order.id,
        "userId": order.user_id,
        "customerName": order.customer_name,
        "items": [to_order_item_dto(it) for it in order.items],
        "totalPrice": _money(order.total_price),
        "status": order.status.value,
        "allowedTransitions": [s.value for s in allowed_transitions(order.status)],
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
        "customImageUrl": order.custom_image_url,
        "notes": order.notes,
    }
