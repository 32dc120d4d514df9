import uuid
from decimal import Decimal

from ordering.db import models
from ordering.services import pricing


def test_price_field_mapping():
    assert pricing.price_field("capital", "pickup") == "precio_pickup_capital"
    assert pricing.price_field("capital", "delivery") == "precio_domicilio_capital"
    assert pricing.price_field("interior", "pickup") == "precio_pickup_interior"
    assert pricing.price_field("interior", "delivery") == "precio_domicilio_interior"
    assert pricing.price_field(None, "boat") == "precio_pickup_capital"
    assert pricing.daily_special_field("interior", "delivery") == "daily_special_precio_domicilio_interior"


def _section(bundle=False, size=2, amount="5"):
    section = models.Section(
        title="Extras",
        bundle_discount_enabled=bundle,
        bundle_size=size,
        bundle_discount_amount=Decimal(amount),
    )
    bacon = models.SectionOption(id=uuid.uuid4(), name="Tocino", price_modifier=Decimal("10"), is_extra=True)
    cheese = models.SectionOption(id=uuid.uuid4(), name="Queso", price_modifier=Decimal("6"), is_extra=True)
    bread = models.SectionOption(id=uuid.uuid4(), name="Pan blanco", price_modifier=Decimal("0"), is_extra=False)
    section.options = [bacon, cheese, bread]
    return section, bacon, cheese, bread


def test_options_price_without_bundle():
    section, bacon, cheese, bread = _section()
    result = pricing.calculate_options_price(section, [bacon.id, cheese.id, bread.id])
    assert result == {"total": Decimal("16.00"), "savings": Decimal("0.00")}


def test_options_price_bundles_same_priced_extras():
    section, bacon, cheese, _bread = _section(bundle=True)
    # three bacon make one bundle of two plus a single
    result = pricing.calculate_options_price(section, [bacon.id, bacon.id, bacon.id, cheese.id])
    assert result["savings"] == Decimal("5.00")
    assert result["total"] == Decimal("31.00")


def test_options_price_below_bundle_size():
    section, bacon, cheese, _bread = _section(bundle=True, size=3)
    result = pricing.calculate_options_price(section, [bacon.id, cheese.id])
    assert result == {"total": Decimal("16.00"), "savings": Decimal("0.00")}


def test_options_price_ignores_unknown_options():
    section, bacon, _cheese, _bread = _section()
    assert pricing.calculate_options_price(section, [bacon.id, uuid.uuid4()])["total"] == Decimal("10.00")


def test_two_for_one_frees_cheapest_units():
    lines = [
        {"name": "a", "unit_price": Decimal("40"), "quantity": 2, "subtotal": Decimal("80")},
        {"name": "b", "unit_price": Decimal("30"), "quantity": 1, "subtotal": Decimal("30")},
    ]
    result = {line["name"]: line for line in pricing.apply_two_for_one_to_cart(lines)}
    assert result["b"]["discount"] == Decimal("30.00")
    assert result["b"]["final_subtotal"] == Decimal("0.00")
    assert result["a"]["discount"] == Decimal("0.00")
    assert result["a"]["final_subtotal"] == Decimal("80.00")

    totals = pricing.calculate_cart_total(list(result.values()))
    assert totals == {
        "subtotal": Decimal("110.00"),
        "total_discount": Decimal("30.00"),
        "total": Decimal("80.00"),
        "items_count": 2,
    }


def test_two_for_one_needs_two_units():
    lines = [{"unit_price": Decimal("40"), "quantity": 1, "subtotal": Decimal("40")}]
    assert pricing.apply_two_for_one_to_cart(lines)[0]["discount"] == Decimal("0.00")
