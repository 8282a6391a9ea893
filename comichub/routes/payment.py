"""Checkout session and browser-return confirmation routes."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..common.services.errors import ValidationError
from . import components


payment_bp = Blueprint("comichub_payment", __name__, url_prefix="/api/payment")


@payment_bp.post("/create-session")
def create_session():
    payload = request.get_json(silent=True) or {}
    order_id = payload.get("orderId")
    if order_id is None:
        raise ValidationError("orderId is required")
    return jsonify(components()["payments"].create_checkout_session(order_id))


@payment_bp.post("/confirm")
def confirm_payment():
    order_id = request.args.get("order_id")
    if not order_id:
        raise ValidationError("Missing order_id parameter")
    result = components()["payments"].confirm_payment(order_id, session_id=request.args.get("session_id"))
    return jsonify(result)
