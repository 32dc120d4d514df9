from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest

from ordering.db import models, schemas
from ordering.errors import (
    InvalidTransition,
    MinimumOrderNotMet,
    PromotionExpired,
    RestaurantClosed,
    ValidationFailed,
)
from ordering.services import cart_service, order_service, promotion_rules
from ordering.services.order_number import next_order_number

from tests.conftest import ALL_DAY, MONDAY_NOON


def _checkout(db_session, customer, cart, **payload):
    notifier = mock.Mock()
    order = order_service.create_from_cart(
        db_session, customer, cart, schemas.OrderCreate(**payload), moment=MONDAY_NOON, notifier=notifier
    )
    return order, notifier


@pytest.fixture
def shop(restaurant_factory, category_factory, product_factory, customer_factory, cart_factory):
    """Customer with a one line cart at an always-open restaurant."""
    restaurant = restaurant_factory()
    product = product_factory(category_factory(), price="35.00", name="Italiano")
    customer = customer_factory()
    cart = cart_factory(customer, restaurant, [(product, None, 2)])
    return customer, restaurant, product, cart


def test_checkout_creates_order_and_converts_cart(db_session, shop):
    customer, restaurant, _product, cart = shop
    order, notifier = _checkout(db_session, customer, cart, notes="Sin hielo")

    assert order.order_number == "ORD-20261019-0001"
    assert order.status == "pending"
    assert order.service_type == "pickup"
    assert order.restaurant_id == restaurant.id
    assert order.total == Decimal("70.00")
    assert order.notes == "Sin hielo"
    assert [item.product_snapshot["name"] for item in order.items] == ["Italiano"]
    assert [(h.previous_status, h.new_status) for h in order.status_history] == [(None, "pending")]
    db_session.refresh(cart)
    assert cart.status == "converted"
    notifier.order_created.assert_called_once_with(order)


def test_order_numbers_increase_per_restaurant_and_day(db_session, shop, restaurant_factory):
    _customer, restaurant, _product, _cart = shop
    other = restaurant_factory()
    assert next_order_number(db_session, restaurant, MONDAY_NOON) == "ORD-20261019-0001"
    assert next_order_number(db_session, restaurant, MONDAY_NOON) == "ORD-20261019-0002"
    assert next_order_number(db_session, other, MONDAY_NOON) == "ORD-20261019-0001"
    assert next_order_number(db_session, restaurant, MONDAY_NOON + timedelta(days=1)) == "ORD-20261020-0001"


def test_second_checkout_takes_next_number(db_session, shop, cart_factory):
    customer, restaurant, product, cart = shop
    _checkout(db_session, customer, cart)
    again = cart_factory(customer, restaurant, [(product, None, 1)])
    order, _ = _checkout(db_session, customer, again)
    assert order.order_number == "ORD-20261019-0002"


def test_checkout_rejects_empty_cart(db_session, customer_factory):
    customer = customer_factory()
    cart = cart_service.get_or_create_cart(db_session, customer)
    with pytest.raises(ValidationFailed) as excinfo:
        _checkout(db_session, customer, cart)
    assert excinfo.value.messages == ["The cart is empty"]


def test_checkout_enforces_minimum_order(db_session, shop):
    customer, restaurant, _product, cart = shop
    restaurant.minimum_order_amount = Decimal("100")
    db_session.commit()
    with pytest.raises(MinimumOrderNotMet):
        _checkout(db_session, customer, cart)


def test_checkout_rejects_closed_restaurant(db_session, shop):
    customer, restaurant, _product, cart = shop
    schedule = dict(ALL_DAY)
    schedule["monday"] = {"is_open": False, "open": "00:00", "close": "23:59"}
    restaurant.schedule = schedule
    db_session.commit()
    with pytest.raises(RestaurantClosed):
        _checkout(db_session, customer, cart)


def test_checkout_rejects_past_schedule(db_session, shop):
    customer, _restaurant, _product, cart = shop
    with pytest.raises(ValidationFailed):
        _checkout(db_session, customer, cart, scheduled_for=MONDAY_NOON - timedelta(minutes=10))
    # within the grace window
    order, _ = _checkout(db_session, customer, cart, scheduled_for=MONDAY_NOON - timedelta(minutes=1))
    assert order.order_number.endswith("0001")


def test_delivery_checkout_needs_address(db_session, shop):
    customer, _restaurant, _product, cart = shop
    cart_service.update_service_type(db_session, cart, "delivery")
    with pytest.raises(ValidationFailed):
        _checkout(db_session, customer, cart)


def test_expired_promotion_aborts_checkout(monkeypatch, db_session, shop, promotion_factory):
    customer, _restaurant, product, cart = shop
    promotion_factory("percentage_discount", items=[{"product_id": product.id, "discount_percentage": 10}])
    monkeypatch.setattr(promotion_rules, "is_bundle_valid_now", lambda promotion, moment=None: False)

    with pytest.raises(PromotionExpired):
        _checkout(db_session, customer, cart)

    db_session.refresh(cart)
    assert cart.status == "active"
    assert db_session.query(models.Order).count() == 0


def test_checkout_records_promotions(db_session, shop, promotion_factory):
    customer, _restaurant, product, cart = shop
    promotion_factory(
        "percentage_discount",
        name="Lunes",
        items=[{"product_id": product.id, "discount_percentage": 10}],
    )
    order, _ = _checkout(db_session, customer, cart)

    assert order.discount_total == Decimal("7.00")
    assert order.total == Decimal("63.00")
    (promotion,) = order.promotions
    assert promotion.promotion_name == "Lunes"
    assert promotion.discount_amount == Decimal("7.00")
    assert order.items[0].promotion_snapshot["value"] == "10%"


def test_status_pipeline_and_points(db_session, restaurant_factory, category_factory, product_factory,
                                    customer_factory, cart_factory):
    product = product_factory(category_factory(), price="127.00")
    customer = customer_factory()
    cart = cart_factory(customer, restaurant_factory(), [(product, None, 1)])
    order, _ = _checkout(db_session, customer, cart)
    assert order.points_earned == 13

    with pytest.raises(InvalidTransition):
        order_service.update_status(db_session, order, "completed", notifier=mock.Mock())
    with pytest.raises(InvalidTransition):
        order_service.update_status(db_session, order, "out_for_delivery", notifier=mock.Mock())

    notifier = mock.Mock()
    for minutes, status in enumerate(("preparing", "ready", "completed"), start=1):
        order_service.update_status(
            db_session, order, status, moment=MONDAY_NOON + timedelta(minutes=minutes), notifier=notifier
        )

    assert notifier.status_changed.call_count == 3
    assert order.ready_at is not None
    db_session.refresh(customer)
    assert customer.points == 13
    assert customer.last_purchase_at is not None
    assert [h.new_status for h in order.status_history] == ["pending", "preparing", "ready", "completed"]
    with pytest.raises(InvalidTransition):
        order_service.update_status(db_session, order, "cancelled", notifier=mock.Mock())


def test_delivery_pipeline_uses_delivery_states():
    assert order_service.allowed_transitions("ready", "delivery") == ("out_for_delivery", "cancelled")
    assert order_service.allowed_transitions("ready", "pickup") == ("completed", "cancelled")
    assert order_service.can_transition("delivered", "completed", "delivery")
    assert not order_service.can_transition("delivered", "completed", "pickup")


def test_cancel_only_early_orders(db_session, shop):
    customer, _restaurant, _product, cart = shop
    order, _ = _checkout(db_session, customer, cart)
    order_service.cancel(db_session, order, "Cambié de opinión", notifier=mock.Mock())
    assert order.status == "cancelled"
    assert order.cancellation_reason == "Cambié de opinión"
    assert order.cancelled_at is not None


def test_cancel_rejected_once_ready(db_session, shop):
    customer, _restaurant, _product, cart = shop
    order, _ = _checkout(db_session, customer, cart)
    for status in ("preparing", "ready"):
        order_service.update_status(db_session, order, status, notifier=mock.Mock())
    with pytest.raises(InvalidTransition):
        order_service.cancel(db_session, order, "Tarde", notifier=mock.Mock())


def test_reorder_skips_unavailable_lines(db_session, restaurant_factory, category_factory, product_factory,
                                         customer_factory, cart_factory):
    category = category_factory()
    kept = product_factory(category, price="35.00", name="Italiano")
    gone = product_factory(category, price="20.00", name="Galleta")
    customer = customer_factory()
    cart = cart_factory(customer, restaurant_factory(), [(kept, None, 2), (gone, None, 1)])
    order, _ = _checkout(db_session, customer, cart)

    gone.is_active = False
    db_session.commit()

    result = order_service.reorder(db_session, customer, order)
    assert result["items_added"] == 1
    assert len(result["skipped"]) == 1
    assert "Galleta" in result["skipped"][0]
    new_cart = result["cart"]
    assert new_cart.id != cart.id
    assert new_cart.restaurant_id == order.restaurant_id
    assert [(item.product_id, item.quantity) for item in new_cart.items] == [(kept.id, 2)]
