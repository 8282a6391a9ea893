"""Payment provider webhook receiver."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from . import components


webhooks_bp = Blueprint("comichub_webhooks", __name__, url_prefix="/api/webhooks")


@webhooks_bp.post("/payment")
def payment_webhook():
    # raw bytes: the signature covers the exact body
    payload = request.get_data(cache=False)
    signature = request.headers.get("Stripe-Signature")
    return jsonify(components()["payments"].handle_webhook(payload, signature))
