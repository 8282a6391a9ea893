from decimal import Decimal

import pytest

from comichub.common.services.errors import (
    DanglingReferenceError,
    InvalidTransition,
    OrderNotFound,
    UnknownStatus,
    ValidationError,
)
from comichub.common.services.order_status import OrderStatus

from .conftest import COMIC_A, CUSTOM_ITEM


def test_create_order_starts_pending(order_service):
    order = order_service.create_order(user_id=1, customer_name="Test User", items=[COMIC_A], total_price=9.98)

    assert order.status is OrderStatus.PENDING
    assert order.total_price == Decimal("9.98")
    assert order.user_id == 1
    assert len(order.items) == 1
    assert order.custom_image_url is None
    assert order.notes is None


def test_round_trip_preserves_items_and_total(order_service):
    items = [
        {"productId": 7, "title": "Comic A", "price": 4.99, "quantity": 2, "isCustom": False},
        CUSTOM_ITEM,
        {"title": "Comic C", "price": "3.50", "quantity": 3, "isCustom": False, "imageUrl": "https://example.com/c.png"},
    ]
    created = order_service.create_order(user_id=1, customer_name="Test User", items=items, total_price="45.48")

    fetched = order_service.get_order(created.id)

    assert [it.title for it in fetched.items] == ["Comic A", "My Custom Hero", "Comic C"]
    assert [it.price for it in fetched.items] == [Decimal("4.99"), Decimal("25.00"), Decimal("3.50")]
    assert [it.quantity for it in fetched.items] == [2, 1, 3]
    assert fetched.items[0].product_id == 7
    assert fetched.items[1].product_id is None
    assert fetched.items[1].is_custom is True
    assert fetched.items[2].image_url == "https://example.com/c.png"
    assert fetched.total_price == Decimal("45.48")


def test_custom_fields_copied_from_first_custom_item(order_service):
    second_custom = dict(CUSTOM_ITEM, title="Another", imageUrl="https://example.com/other.png", notes="other")
    order = order_service.create_order(
        user_id=1,
        customer_name="Test User",
        items=[COMIC_A, CUSTOM_ITEM, second_custom],
    )

    assert order.custom_image_url == "https://example.com/custom.png"
    assert order.notes == "Make the cape red"


def test_total_is_computed_when_omitted(order_service):
    order = order_service.create_order(user_id=1, customer_name="Test User", items=[COMIC_A, CUSTOM_ITEM])
    assert order.total_price == Decimal("34.98")


def test_snake_case_items_are_accepted(order_service):
    order = order_service.create_order(
        user_id="1",
        customer_name="Test User",
        items=[{"product_id": 3, "title": "Comic", "price": 1, "quantity": 1, "is_custom": True, "image_url": "x"}],
    )
    assert order.items[0].product_id == 3
    assert order.items[0].is_custom is True
    assert order.custom_image_url == "x"


def test_empty_items_rejected_and_nothing_persisted(order_service):
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=1, customer_name="Test User", items=[], total_price=0)
    assert order_service.list_orders() == []


@pytest.mark.parametrize("item", [
    dict(COMIC_A, quantity=0),
    dict(COMIC_A, quantity=-1),
    dict(COMIC_A, quantity=1.5),
    dict(COMIC_A, quantity=True),
    dict(COMIC_A, price=-0.01),
    dict(COMIC_A, price="abc"),
    dict(COMIC_A, price=None),
    dict(COMIC_A, price=10**11),
    dict(COMIC_A, price="NaN"),
    dict(COMIC_A, quantity=2**63),
    dict(COMIC_A, title=""),
    "not an object",
])
def test_invalid_items_rejected(order_service, item):
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=1, customer_name="Test User", items=[item])
    assert order_service.list_orders() == []


def test_bad_item_late_in_list_persists_nothing(order_service):
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=1, customer_name="Test User", items=[COMIC_A, dict(COMIC_A, quantity=0)])
    assert order_service.list_orders() == []


def test_total_mismatch_rejected(order_service):
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=1, customer_name="Test User", items=[COMIC_A], total_price=10)


def test_float_artifact_total_is_rounded_to_cents(order_service):
    order = order_service.create_order(
        user_id=1,
        customer_name="Test User",
        items=[{"title": "Comic B", "price": 1.1, "quantity": 3}],
        total_price=1.1 * 3,
    )

    assert order.total_price == Decimal("3.30")
    assert order_service.get_order(order.id).total_price == Decimal("3.30")


def test_item_price_rounds_half_up_to_cents(order_service):
    order = order_service.create_order(
        user_id=1,
        customer_name="Test User",
        items=[{"title": "Comic B", "price": "2.345", "quantity": 2}],
    )

    assert order.items[0].price == Decimal("2.35")
    assert order.total_price == Decimal("4.70")


def test_order_total_above_column_limit_rejected(order_service):
    item = {"title": "Graded Issue #1", "price": "9999999999.99", "quantity": 2}
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=1, customer_name="Test User", items=[item])
    assert order_service.list_orders() == []


@pytest.mark.parametrize("flag", ["false", "0", "no", "", 0, False])
def test_falsy_custom_flags_are_not_custom(order_service, flag):
    order = order_service.create_order(
        user_id=1, customer_name="Test User", items=[dict(COMIC_A, isCustom=flag)]
    )

    assert order.items[0].is_custom is False
    assert order.has_custom_items is False
    assert order_service.list_orders(custom_only=True) == []


@pytest.mark.parametrize("flag", ["true", "1", "yes", 1, True])
def test_truthy_custom_flags_are_custom(order_service, flag):
    order = order_service.create_order(
        user_id=1, customer_name="Test User", items=[dict(COMIC_A, isCustom=flag)]
    )

    assert order.items[0].is_custom is True


def test_out_of_range_order_id_is_validation_error(order_service):
    with pytest.raises(ValidationError):
        order_service.get_order(2**63)


@pytest.mark.parametrize("name", ["", "   ", None])
def test_customer_name_required(order_service, name):
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=1, customer_name=name, items=[COMIC_A])


def test_unknown_user_is_reference_error(order_service):
    with pytest.raises(DanglingReferenceError):
        order_service.create_order(user_id=99, customer_name="Ghost", items=[COMIC_A], total_price=9.98)
    assert order_service.list_orders() == []


@pytest.mark.parametrize("user_id", [None, "abc", 0, -3, True, 2**63, "99999999999999999999", "\u00b2"])
def test_malformed_user_id_is_validation_error(order_service, user_id):
    with pytest.raises(ValidationError):
        order_service.create_order(user_id=user_id, customer_name="X", items=[COMIC_A])


def test_get_missing_order(order_service):
    with pytest.raises(OrderNotFound):
        order_service.get_order(404)


def test_list_newest_first_and_filters(order_service):
    first = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A])
    second = order_service.create_order(user_id=1, customer_name="A", items=[CUSTOM_ITEM])
    third = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A, CUSTOM_ITEM])

    assert [o.id for o in order_service.list_orders()] == [third.id, second.id, first.id]
    assert [o.id for o in order_service.list_orders(custom_only=True)] == [third.id, second.id]
    assert [o.id for o in order_service.list_orders(user_id=1)] == [third.id, second.id, first.id]
    assert order_service.list_orders(user_id=2) == []


def test_request_status_change_rejects_pending_to_completed(order_service):
    order = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A], total_price=9.98)

    with pytest.raises(InvalidTransition):
        order_service.request_status_change(order.id, "Completed")

    assert order_service.get_order(order.id).status is OrderStatus.PENDING


def test_fulfilment_path_then_terminal(order_service):
    order = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A], total_price=9.98)
    order_service.request_status_change(order.id, "Paid")
    order_service.request_status_change(order.id, "In Production")
    done = order_service.request_status_change(order.id, "Completed")
    assert done.status is OrderStatus.COMPLETED

    for target in OrderStatus:
        with pytest.raises(InvalidTransition):
            order_service.request_status_change(order.id, target)
    assert order_service.get_order(order.id).status is OrderStatus.COMPLETED


def test_failed_order_can_retry(order_service):
    order = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A])
    order_service.request_status_change(order.id, "Failed")
    assert order_service.request_status_change(order.id, "Pending").status is OrderStatus.PENDING


def test_status_change_on_missing_order(order_service):
    with pytest.raises(OrderNotFound):
        order_service.request_status_change(12345, "Paid")


def test_status_change_with_unknown_value(order_service):
    order = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A])
    with pytest.raises(UnknownStatus):
        order_service.request_status_change(order.id, "Shipped")


def test_payment_reference_does_not_touch_status(order_service):
    order = order_service.create_order(user_id=1, customer_name="A", items=[COMIC_A])
    updated = order_service.record_payment_reference(order.id, "cs_test_1")
    assert updated.payment_reference == "cs_test_1"
    assert updated.status is OrderStatus.PENDING
