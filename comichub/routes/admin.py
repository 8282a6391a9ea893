"""Admin order status console."""

from __future__ import annotations

from flask import (
    Blueprint,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from ..common.services.errors import ComicHubError, StoreUnavailable
from ..common.utils.dto import to_order_dto
from ..common.utils.validators import parse_flag
from . import components, config


admin_bp = Blueprint("comichub_admin", __name__, url_prefix="/admin")

SESSION_KEY = "comichub_admin"


def _is_authenticated() -> bool:
    return bool(session.get(SESSION_KEY))


def _require_login():
    if _is_authenticated():
        return None
    return redirect(url_for("comichub_admin.login_form"))


@admin_bp.before_request
def guard_private_routes():
    if request.endpoint and request.endpoint.startswith("comichub_admin."):
        public = {
            "comichub_admin.login_form",
            "comichub_admin.login_submit",
        }
        if request.endpoint not in public:
            redirect_response = _require_login()
            if redirect_response is not None:
                return redirect_response
    return None


@admin_bp.get("/login")
def login_form():
    return render_template("admin/login.html")


@admin_bp.post("/login")
def login_submit():
    username = request.form.get("username", "").strip()
    password = request.form.get("password", "").strip()
    cfg = config()
    if username == cfg.admin_username and password == cfg.admin_password:
        session[SESSION_KEY] = True
        return redirect(url_for("comichub_admin.orders_page"))
    return render_template("admin/login.html", error_message="Invalid username or password."), 401


@admin_bp.get("/logout")
def logout():
    session.pop(SESSION_KEY, None)
    return redirect(url_for("comichub_admin.login_form"))


@admin_bp.get("/")
def dashboard():
    return redirect(url_for("comichub_admin.orders_page"))


@admin_bp.get("/orders")
def orders_page():
    custom_only = parse_flag(request.args.get("custom"))
    orders = [to_order_dto(o) for o in components()["orders"].list_orders(custom_only=custom_only)]
    return render_template(
        "admin/orders.html",
        orders=orders,
        custom_only=custom_only,
    )


@admin_bp.post("/orders/<order_id>/status")
def change_status(order_id: str):
    requested = request.form.get("status", "")
    try:
        order = components()["orders"].request_status_change(order_id, requested)
    except StoreUnavailable:
        raise
    except ComicHubError as exc:
        flash(exc.message, "error")
        return redirect(url_for("comichub_admin.orders_page"), code=303)
    flash(f"Order #{order.id} is now {order.status.value}.", "success")
    return redirect(url_for("comichub_admin.orders_page"), code=303)
