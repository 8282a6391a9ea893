import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest

from comichub.app import create_app
from comichub.common.db.session import build_engine, init_db, make_session_factory
from comichub.common.models import Product, User
from comichub.common.services.order_service import OrderService
from comichub.common.services.order_store import InMemoryOrderStore, SqlAlchemyOrderStore
from comichub.config import ComicHubConfig


WEBHOOK_SECRET = "whsec_test_secret"

COMIC_A = {"title": "Comic A", "price": 4.99, "quantity": 2, "isCustom": False}
CUSTOM_ITEM = {
    "title": "My Custom Hero",
    "price": 25.00,
    "quantity": 1,
    "isCustom": True,
    "imageUrl": "https://example.com/custom.png",
    "notes": "Make the cape red",
}


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Build a Stripe-Signature header for ``payload``."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def checkout_event(order_id, *, event_type="checkout.session.completed", payment_status="paid", event_id="evt_1"):
    obj = {"id": "cs_test_1", "object": "checkout.session", "payment_status": payment_status}
    if order_id is not None:
        obj["metadata"] = {"orderId": str(order_id)}
    return json.dumps({"id": event_id, "object": "event", "type": event_type, "data": {"object": obj}}).encode("utf-8")


@pytest.fixture
def config():
    return ComicHubConfig(
        database_url="sqlite://",
        secret_key="test-secret",
        log_level="WARNING",
        webhook_secret=WEBHOOK_SECRET,
        app_base_url="http://shop.test",
        admin_username="admin",
        admin_password="pw",
    )


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_factory(app):
    return app.extensions["comichub_components"]["session_factory"]


@pytest.fixture
def user_id(session_factory):
    with session_factory() as session:
        user = User(name="Test User", email="test@example.com")
        session.add(user)
        session.flush()
        return user.id


@pytest.fixture
def product_id(session_factory):
    with session_factory() as session:
        product = Product(title="Comic A", price=Decimal("4.99"), type="sample")
        session.add(product)
        session.flush()
        return product.id


@pytest.fixture
def sql_store():
    engine = build_engine("sqlite://")
    init_db(engine)
    factory = make_session_factory(engine)
    with factory() as session:
        session.add(User(id=1, name="Test User", email="test@example.com"))
    return SqlAlchemyOrderStore(factory)


@pytest.fixture
def memory_store():
    return InMemoryOrderStore(users={1})


@pytest.fixture(params=["memory", "sql"])
def store(request, memory_store, sql_store):
    return memory_store if request.param == "memory" else sql_store


@pytest.fixture
def order_service(store):
    return OrderService(store)
