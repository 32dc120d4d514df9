import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from ordering.db import crud, models, schemas
from ordering.errors import NotFoundError, ValidationFailed
from ordering.services import cart_service

from tests.conftest import MONDAY_NOON


def _address(db_session, customer):
    return crud.create_address(db_session, customer.id, schemas.AddressCreate(
        label="Casa",
        address_line="5a avenida 10-20, zona 1",
        latitude=Decimal("14.6349"),
        longitude=Decimal("-90.5069"),
    ))


def test_get_or_create_cart_reuses_active_cart(db_session, customer_factory):
    customer = customer_factory()
    cart = cart_service.get_or_create_cart(db_session, customer)
    assert cart.service_type == "pickup"
    assert cart.zone == "capital"
    assert cart_service.get_or_create_cart(db_session, customer).id == cart.id

    cart.status = "converted"
    db_session.commit()
    assert cart_service.get_or_create_cart(db_session, customer).id != cart.id


def test_expired_cart_is_replaced(db_session, customer_factory):
    customer = customer_factory()
    cart = cart_service.get_or_create_cart(db_session, customer)
    cart.expires_at = models.now_utc() - timedelta(minutes=1)
    db_session.commit()
    assert cart_service.get_or_create_cart(db_session, customer).id != cart.id


def test_restaurant_zone_and_service_reprice_items(db_session, restaurant_factory, category_factory,
                                                  product_factory, customer_factory, item_payload):
    customer = customer_factory()
    product = product_factory(category_factory(), price="35.00")
    cart = cart_service.get_or_create_cart(db_session, customer)
    item = cart_service.add_item(db_session, cart, item_payload(product, quantity=2))
    assert item.unit_price == Decimal("35.00")
    assert item.subtotal == Decimal("70.00")

    cart_service.update_restaurant(db_session, cart, restaurant_factory(price_location="interior"))
    assert cart.zone == "interior"
    assert cart.items[0].unit_price == Decimal("38.00")

    cart_service.update_service_type(db_session, cart, "delivery")
    assert cart.items[0].unit_price == Decimal("43.00")
    assert cart.items[0].subtotal == Decimal("86.00")


def test_delivery_address_switches_to_delivery(db_session, restaurant_factory, category_factory, product_factory,
                                              customer_factory, cart_factory):
    customer = customer_factory()
    product = product_factory(category_factory(), price="35.00")
    cart = cart_factory(customer, restaurant_factory(), [(product, None, 1)])
    address = _address(db_session, customer)

    cart_service.update_delivery_address(db_session, cart, address.id)
    assert cart.service_type == "delivery"
    assert cart.delivery_address_id == address.id
    assert cart.items[0].unit_price == Decimal("40.00")

    stranger = customer_factory()
    with pytest.raises(NotFoundError):
        cart_service.update_delivery_address(db_session, cart, _address(db_session, stranger).id)


def test_add_item_rejects_bad_lines(db_session, category_factory, product_factory, variant_factory,
                                    customer_factory, item_payload):
    cart = cart_service.get_or_create_cart(db_session, customer_factory())
    category = category_factory(uses_variants=True)
    product = product_factory(category, price=None)
    other = product_factory(category, price=None)
    foreign_variant = variant_factory(other)

    with pytest.raises(ValidationFailed):
        cart_service.add_item(db_session, cart, item_payload(product, foreign_variant))

    with pytest.raises(NotFoundError):
        cart_service.add_item(db_session, cart, schemas.CartItemAdd(product_id=uuid.uuid4()))

    product.is_active = False
    db_session.commit()
    with pytest.raises(ValidationFailed):
        cart_service.add_item(db_session, cart, item_payload(product))


def test_item_payload_needs_exactly_one_target():
    with pytest.raises(ValueError):
        schemas.CartItemAdd(product_id=uuid.uuid4(), combo_id=uuid.uuid4())
    with pytest.raises(ValueError):
        schemas.CartItemAdd()


def test_options_are_snapshotted_and_bundled(db_session, restaurant_factory, category_factory, product_factory,
                                            section_factory, customer_factory, item_payload):
    section = section_factory(
        [("Tocino", "10", True), ("Pan blanco", "0", False)],
        bundle_discount_enabled=True,
        bundle_size=2,
        bundle_discount_amount=Decimal("5"),
    )
    bacon, bread = section.options
    product = product_factory(category_factory(), price="35.00")
    cart = cart_service.get_or_create_cart(db_session, customer_factory())
    cart_service.update_restaurant(db_session, cart, restaurant_factory())

    item = cart_service.add_item(db_session, cart, item_payload(product, options=[bacon, bacon, bread]))
    assert [opt["name"] for opt in item.selected_options] == ["Tocino", "Tocino", "Pan blanco"]
    assert item.selected_options[0]["price"] == "10.00"

    summary = cart_service.get_cart_summary(db_session, cart, MONDAY_NOON)
    # 35 base + two bacon at 10 minus the 5 bundle discount
    assert summary["subtotal"] == Decimal("50.00")
    assert summary["total"] == Decimal("50.00")


def test_update_remove_and_clear(db_session, category_factory, product_factory, customer_factory, item_payload):
    category = category_factory()
    first = product_factory(category, price="35.00")
    second = product_factory(category, price="20.00")
    cart = cart_service.get_or_create_cart(db_session, customer_factory())
    item = cart_service.add_item(db_session, cart, item_payload(first))
    cart_service.add_item(db_session, cart, item_payload(second))

    cart_service.update_item(db_session, item, schemas.CartItemUpdate(quantity=3, notes="sin cebolla"))
    assert item.subtotal == Decimal("105.00")
    assert item.notes == "sin cebolla"

    cart_service.remove_item(db_session, item)
    db_session.refresh(cart)
    assert len(cart.items) == 1

    with pytest.raises(NotFoundError):
        cart_service.get_item_owned(db_session, cart, item.id)

    cart_service.clear_cart(db_session, cart)
    assert cart.is_empty


def test_validate_cart_reports_problems(db_session, restaurant_factory, category_factory, product_factory,
                                        customer_factory, cart_factory):
    customer = customer_factory()
    cart = cart_service.get_or_create_cart(db_session, customer)
    assert cart_service.validate_cart(db_session, cart) == {"valid": False, "messages": ["The cart is empty"]}

    product = product_factory(category_factory(), price="35.00", name="Italiano")
    cart = cart_factory(customer, restaurant_factory(), [(product, None, 1)])
    assert cart_service.validate_cart(db_session, cart)["valid"] is True

    product.is_active = False
    db_session.commit()
    result = cart_service.validate_cart(db_session, cart)
    assert result["valid"] is False
    assert result["messages"] == ["The product 'Italiano' is no longer available"]
