"""Order API routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..common.services.errors import ValidationError
from ..common.services.order_status import OrderStatus, allowed_transitions
from ..common.utils.dto import to_order_dto
from ..common.utils.validators import parse_flag
from . import components


orders_bp = Blueprint("comichub_orders", __name__, url_prefix="/api")


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@orders_bp.post("/orders")
def create_order():
    payload = _json_body()
    order = components()["orders"].create_order(
        user_id=payload.get("userId"),
        customer_name=payload.get("customerName"),
        items=payload.get("items"),
        total_price=payload.get("totalPrice"),
    )
    return jsonify(to_order_dto(order)), 201


@orders_bp.get("/orders")
def list_orders():
    orders = components()["orders"].list_orders(
        user_id=request.args.get("userId"),
        custom_only=parse_flag(request.args.get("custom")),
    )
    return jsonify([to_order_dto(o) for o in orders])


@orders_bp.get("/orders/<order_id>")
def get_order(order_id: str):
    return jsonify(to_order_dto(components()["orders"].get_order(order_id)))


@orders_bp.patch("/orders/<order_id>/status")
def update_order_status(order_id: str):
    payload = _json_body()
    order = components()["orders"].request_status_change(order_id, payload.get("status"))
    return jsonify(to_order_dto(order))


@orders_bp.get("/order-statuses")
def order_statuses():
    return jsonify(
        {
            "statuses": [s.value for s in OrderStatus],
            "transitions": {s.value: [d.value for d in allowed_transitions(s)] for s in OrderStatus},
        }
    )
