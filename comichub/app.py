"""ComicHub order backend Flask application."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from .common.db.seed import seed_demo_data
from .common.db.session import build_engine, init_db, make_session_factory
from .common.services import logging as event_log
from .common.services.catalog_service import CatalogService
from .common.services.errors import ComicHubError
from .common.services.order_service import OrderService
from .common.services.order_store import OrderStore, SqlAlchemyOrderStore
from .config import ComicHubConfig
from .routes import admin, orders, payment, products, webhooks
from .services import build_payment_gateway


def _handle_error(exc: ComicHubError):
    return jsonify({"error": exc.to_dict()}), exc.http_status


def create_app(config: Optional[ComicHubConfig] = None, store: Optional[OrderStore] = None) -> Flask:
    """Build the app; pass ``store`` to run against a different OrderStore."""
    config = config or ComicHubConfig.load()
    event_log.configure(config.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["COMICHUB_CONFIG"] = config

    engine = build_engine(config.database_url)
    init_db(engine)
    session_factory = make_session_factory(engine)
    if config.seed_demo_data:
        seed_demo_data(session_factory)

    order_service = OrderService(store or SqlAlchemyOrderStore(session_factory))
    components = {
        "engine": engine,
        "session_factory": session_factory,
        "orders": order_service,
        "catalog": CatalogService(session_factory),
        "payments": build_payment_gateway(config, order_service),
    }
    app.extensions["comichub_components"] = components

    app.register_error_handler(ComicHubError, _handle_error)
    app.register_blueprint(orders.orders_bp)
    app.register_blueprint(payment.payment_bp)
    app.register_blueprint(webhooks.webhooks_bp)
    app.register_blueprint(products.products_bp)
    app.register_blueprint(admin.admin_bp)

    @app.get("/healthz")
    def healthz():
        return jsonify({"status": "ok", "paymentProvider": config.payment_provider})

    event_log.log_event("info", "app.started", payment_provider=config.payment_provider)
    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=9002, debug=False)


if __name__ == "__main__":
    main()
