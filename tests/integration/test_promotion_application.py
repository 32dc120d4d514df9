from datetime import datetime, timezone
from decimal import Decimal

from ordering.services import promotion_application
from ordering.utils.feature_flags import refresh_feature_flag_cache

from tests.conftest import MONDAY_NOON


def _only_discount(summary):
    (entry,) = summary["item_discounts"].values()
    return entry


def test_percentage_discount(db_session, restaurant_factory, category_factory, product_factory,
                             promotion_factory, customer_factory, cart_factory):
    category = category_factory()
    product = product_factory(category, price="35.00")
    promotion_factory(
        "percentage_discount",
        name="Martes loco",
        items=[{"product_id": product.id, "discount_percentage": 20}],
    )
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, None, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    assert summary["subtotal"] == Decimal("35.00")
    assert summary["discounts"] == Decimal("7.00")
    assert summary["total"] == Decimal("28.00")
    entry = _only_discount(summary)
    assert entry["applied_promotion"]["value"] == "20%"
    assert entry["applied_promotion"]["name_display"] == "Martes loco -20%"
    assert [p["type"] for p in summary["promotions_applied"]] == ["percentage_discount"]


def test_daily_special_is_not_stacked_with_percentage(db_session, restaurant_factory, category_factory,
                                                     product_factory, variant_factory, promotion_factory,
                                                     customer_factory, cart_factory):
    category = category_factory(uses_variants=True)
    product = product_factory(category, price=None, has_variants=True)
    variant = variant_factory(product, price="35.00", special="22.00", days=[1])
    promotion_factory("percentage_discount", items=[{"product_id": product.id, "discount_percentage": 20}])
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, variant, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    entry = _only_discount(summary)
    assert entry["is_daily_special"] is True
    assert entry["discount_amount"] == Decimal("13.00")
    assert entry["final_price"] == Decimal("22.00")
    assert entry["applied_promotion"]["name"] == "Sub del Día"
    assert entry["applied_promotion"]["percentage_value"] == 37
    assert summary["total"] == Decimal("22.00")


def test_daily_special_only_on_listed_days(db_session, restaurant_factory, category_factory, product_factory,
                                          variant_factory, customer_factory, cart_factory):
    category = category_factory(uses_variants=True)
    product = product_factory(category, price=None)
    variant = variant_factory(product, price="35.00", special="22.00", days=[3])
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, variant, 2)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    assert summary["discounts"] == Decimal("0.00")
    assert summary["total"] == Decimal("70.00")


def test_two_for_one_keeps_daily_special_on_leftover(db_session, restaurant_factory, category_factory,
                                                    product_factory, variant_factory, promotion_factory,
                                                    customer_factory, cart_factory):
    category = category_factory(uses_variants=True)
    product = product_factory(category, price=None)
    variant = variant_factory(product, price="35.00", special="22.00")
    promotion_factory("two_for_one", name="2x1 Subs", items=[{"variant_id": variant.id}])
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, variant, 3)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    entry = _only_discount(summary)
    assert summary["subtotal"] == Decimal("105.00")
    assert entry["discount_amount"] == Decimal("48.00")
    assert entry["final_price"] == Decimal("57.00")
    assert entry["applied_promotion"]["value"] == "2x1 + Sub del Día"
    assert summary["total"] == Decimal("57.00")


def test_two_for_one_across_lines_frees_cheapest(db_session, restaurant_factory, category_factory,
                                                product_factory, promotion_factory, customer_factory,
                                                cart_factory):
    category = category_factory()
    cheap = product_factory(category, price="30.00")
    pricey = product_factory(category, price="45.00")
    promotion_factory("two_for_one", items=[{"category_id": category.id}])
    cart = cart_factory(customer_factory(), restaurant_factory(), [(pricey, None, 1), (cheap, None, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    assert summary["discounts"] == Decimal("30.00")
    assert summary["total"] == Decimal("45.00")


def test_bundle_special_splits_discount(db_session, restaurant_factory, category_factory, product_factory,
                                       promotion_factory, customer_factory, cart_factory):
    category = category_factory()
    sub = product_factory(category, price="50.00")
    drink = product_factory(category, price="30.00")
    promotion_factory(
        "bundle_special",
        name="Combinado",
        special_bundle_price_capital=Decimal("60.00"),
        items=[{"product_id": sub.id}, {"product_id": drink.id}],
    )
    cart = cart_factory(customer_factory(), restaurant_factory(), [(sub, None, 1), (drink, None, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    assert summary["discounts"] == Decimal("20.00")
    assert summary["total"] == Decimal("60.00")
    by_item = {item.product_id: summary["item_discounts"][str(item.id)] for item in cart.items}
    assert by_item[sub.id]["discount_amount"] == Decimal("12.50")
    assert by_item[drink.id]["discount_amount"] == Decimal("7.50")


def test_newest_matching_promotion_wins(db_session, restaurant_factory, category_factory, product_factory,
                                       promotion_factory, customer_factory, cart_factory):
    category = category_factory()
    product = product_factory(category, price="35.00")
    promotion_factory(
        "percentage_discount",
        items=[{"product_id": product.id, "discount_percentage": 10}],
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    promotion_factory(
        "percentage_discount",
        items=[{"product_id": product.id, "discount_percentage": 30}],
        created_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
    )
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, None, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    assert summary["discounts"] == Decimal("10.50")


def test_promotion_scoped_to_other_service_or_day(db_session, restaurant_factory, category_factory,
                                                 product_factory, promotion_factory, customer_factory,
                                                 cart_factory):
    category = category_factory()
    product = product_factory(category, price="35.00")
    promotion_factory(
        "percentage_discount",
        items=[{"product_id": product.id, "discount_percentage": 20, "service_type": "delivery"}],
    )
    promotion_factory(
        "percentage_discount",
        items=[{"product_id": product.id, "discount_percentage": 50, "weekdays": [2]}],
    )
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, None, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    assert summary["discounts"] == Decimal("0.00")


def test_promotions_flag_off_charges_full_price(monkeypatch, db_session, restaurant_factory, category_factory,
                                               product_factory, variant_factory, promotion_factory,
                                               customer_factory, cart_factory):
    monkeypatch.setenv("PROMOTIONS_ENABLED", "false")
    refresh_feature_flag_cache()
    category = category_factory(uses_variants=True)
    product = product_factory(category, price=None)
    variant = variant_factory(product, price="35.00", special="22.00")
    promotion_factory("percentage_discount", items=[{"product_id": product.id, "discount_percentage": 20}])
    cart = cart_factory(customer_factory(), restaurant_factory(), [(product, variant, 1)])

    summary = promotion_application.cart_summary(db_session, cart, MONDAY_NOON)
    entry = _only_discount(summary)
    assert entry["discount_amount"] == Decimal("0.00")
    assert entry["is_daily_special"] is False
    assert summary["total"] == Decimal("35.00")
