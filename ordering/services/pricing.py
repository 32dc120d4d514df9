"""
Price calculation for menu items.

Picks the zone/service price column, applies the daily special ("Sub del Día")
and option modifiers, and attaches a percentage promotion when one matches.
A daily special never stacks with a percentage promotion.
"""
from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ordering.db import models
from ordering.db.repositories import menu as menu_repo
from ordering.errors import NotFoundError, ValidationFailed
from ordering.services import promotion_rules
from ordering.utils.choices import (
    PROMO_PERCENTAGE,
    SERVICE_DELIVERY,
    SERVICE_PICKUP,
    ZONE_CAPITAL,
    ZONE_INTERIOR,
)
from ordering.utils.feature_flags import promotions_enabled
from ordering.utils.money import ZERO, floor_int, money, to_decimal
from ordering.utils.runtime import to_local

_PRICE_FIELDS = {
    (ZONE_CAPITAL, SERVICE_PICKUP): "precio_pickup_capital",
    (ZONE_CAPITAL, SERVICE_DELIVERY): "precio_domicilio_capital",
    (ZONE_INTERIOR, SERVICE_PICKUP): "precio_pickup_interior",
    (ZONE_INTERIOR, SERVICE_DELIVERY): "precio_domicilio_interior",
}
DEFAULT_PRICE_FIELD = "precio_pickup_capital"


def price_field(zone: Optional[str], service_type: Optional[str]) -> str:
    """Price column for a zone and service type; unknown input maps to pickup capital."""
    return _PRICE_FIELDS.get((zone, service_type), DEFAULT_PRICE_FIELD)


def daily_special_field(zone: Optional[str], service_type: Optional[str]) -> str:
    return f"daily_special_{price_field(zone, service_type)}"


def is_daily_special_today(variant: Optional[models.ProductVariant], moment: Optional[datetime] = None) -> bool:
    if variant is None:
        return False
    return variant.is_daily_special_on(to_local(moment).isoweekday())


def variant_price_for(
    variant: models.ProductVariant,
    zone: Optional[str],
    service_type: Optional[str],
    moment: Optional[datetime] = None,
) -> Optional[Decimal]:
    """Daily-special price when it applies today and is set, else the normal price."""
    normal = variant.get_price(price_field(zone, service_type))
    if is_daily_special_today(variant, moment):
        special = variant.get_price(daily_special_field(zone, service_type))
        if special is not None:
            return to_decimal(special)
    return to_decimal(normal) if normal is not None else None


def calculate_options_price(section: models.Section, option_ids: Iterable[uuid.UUID]) -> Dict[str, Decimal]:
    """Total and bundle savings for options picked from ``section``.

    Duplicate ids count once per occurrence (the same extra picked in two subs
    of a combo). With bundle pricing on, extras are grouped by price and each
    full bundle of ``bundle_size`` saves ``bundle_discount_amount``.
    """
    counts = Counter(option_ids)
    options = {opt.id: opt for opt in section.options}

    non_extras_total = ZERO
    extras: List[Decimal] = []
    for option_id, count in counts.items():
        option = options.get(option_id)
        if option is None:
            continue
        price = to_decimal(option.price_modifier)
        if option.is_extra:
            extras.extend([price] * count)
        else:
            non_extras_total += price * count

    bundle_size = section.bundle_size or 2
    if not section.bundle_discount_enabled or len(extras) < bundle_size:
        return {"total": money(sum(extras, ZERO) + non_extras_total), "savings": ZERO}

    discount = to_decimal(section.bundle_discount_amount)
    total = ZERO
    savings = ZERO
    for price, count in Counter(extras).items():
        bundles = count // bundle_size
        group_savings = discount * bundles
        total += price * count - group_savings
        savings += group_savings
    return {"total": money(total + non_extras_total), "savings": money(savings)}


def options_modifier(db: Session, option_ids: Iterable[uuid.UUID]) -> Decimal:
    """Sum of ``price_modifier`` over selected extras; repeated ids count each time."""
    ids = list(option_ids or [])
    if not ids:
        return ZERO
    options = {opt.id: opt for opt in menu_repo.get_section_options(db, ids)}
    total = ZERO
    for option_id in ids:
        option = options.get(option_id)
        if option is not None and option.is_extra:
            total += to_decimal(option.price_modifier)
    return money(total)


def _promotion_payload(promotion: models.Promotion, discount_value) -> Dict[str, Any]:
    return {
        "id": promotion.id,
        "name": promotion.name,
        "type": promotion.type,
        "discount_value": discount_value,
    }


def _percentage_for(db: Session, product: models.Product, variant, service_type, moment):
    promotion = promotion_rules.find_active_promotion(
        db, product=product, variant=variant, moment=moment, service_type=service_type
    )
    if promotion is None:
        return None, None
    promo_item = promotion_rules.promotion_item_for(
        promotion,
        product_id=product.id,
        variant_id=variant.id if variant is not None else None,
        category_id=product.category_id,
        service_type=service_type,
        moment=moment,
    )
    pct = promo_item.discount_percentage if promo_item is not None else None
    return promotion, pct


def calculate_price(
    db: Session,
    *,
    product: models.Product,
    category_id: uuid.UUID,
    variant_id: Optional[uuid.UUID] = None,
    zone: str = ZONE_CAPITAL,
    service_type: str = SERVICE_PICKUP,
    quantity: int = 1,
    option_ids: Optional[List[uuid.UUID]] = None,
    moment: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Price one menu line.

    Categories that use variants take the variant's price (daily special
    included while promotions are enabled); other categories take the
    product's own zone price and require the product to be listed in the
    category. With promotions off no discount is quoted.
    """
    moment = to_local(moment)
    quantity = max(1, int(quantity))
    category = menu_repo.get_category(db, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    if not product.is_active:
        raise ValidationFailed(f"{product.name} is not available")

    variant = None
    daily_special = False
    if category.uses_variants:
        if variant_id is None:
            raise ValidationFailed("variant_id is required for products with variants")
        variant = menu_repo.get_variant(db, variant_id)
        if variant is None:
            raise NotFoundError("Variant not found")
        if variant.product_id != product.id:
            raise ValidationFailed("The variant does not belong to the product")
        if not variant.is_active:
            raise ValidationFailed(f"{variant.name} is not available")
        daily_special = promotions_enabled() and is_daily_special_today(variant, moment) and (
            variant.get_price(daily_special_field(zone, service_type)) is not None
        )
        if daily_special:
            base = variant_price_for(variant, zone, service_type, moment)
        else:
            raw = variant.get_price(price_field(zone, service_type))
            base = to_decimal(raw) if raw is not None else None
    else:
        if not menu_repo.product_in_category(db, product.id, category.id):
            raise ValidationFailed("The product is not listed in this category")
        raw = product.get_price(price_field(zone, service_type))
        base = to_decimal(raw) if raw is not None else None

    if base is None:
        raise ValidationFailed("No price configured for this zone and service type")

    modifier = options_modifier(db, option_ids or [])
    unit_price = money(base + modifier)
    original_subtotal = money(unit_price * quantity)
    subtotal = original_subtotal
    applied = None

    if not daily_special and promotions_enabled():
        promotion, pct = _percentage_for(db, product, variant, service_type, moment)
        if promotion is not None:
            applied = _promotion_payload(promotion, pct)
            if promotion.type == PROMO_PERCENTAGE and pct:
                subtotal = money(subtotal - subtotal * Decimal(pct) / Decimal(100))

    return {
        "unit_price": unit_price,
        "quantity": quantity,
        "subtotal": subtotal,
        "original_subtotal": original_subtotal,
        "discount": money(original_subtotal - subtotal),
        "is_daily_special": daily_special,
        "options_modifier": modifier,
        "promotion": applied,
    }


def apply_two_for_one_to_cart(lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Make the cheapest half of the units free.

    Each line needs ``unit_price``, ``quantity`` and ``subtotal``; every
    returned line carries ``discount`` and ``final_subtotal``.
    """
    total_qty = sum(int(line["quantity"]) for line in lines)
    result = []
    free_units = floor_int(Decimal(total_qty) / 2) if total_qty >= 2 else 0
    given = 0
    for line in sorted(lines, key=lambda ln: to_decimal(ln["unit_price"])):
        discount = ZERO
        if given < free_units:
            take = min(int(line["quantity"]), free_units - given)
            discount = money(to_decimal(line["unit_price"]) * take)
            given += take
        subtotal = to_decimal(line["subtotal"])
        result.append({**line, "discount": discount, "final_subtotal": money(subtotal - discount)})
    return result


def calculate_cart_total(lines: List[Dict[str, Any]]) -> Dict[str, Any]:
    subtotal = sum((to_decimal(ln.get("original_subtotal", ln.get("subtotal"))) for ln in lines), ZERO)
    discount = sum((to_decimal(ln.get("discount")) for ln in lines), ZERO)
    return {
        "subtotal": money(subtotal),
        "total_discount": money(discount),
        "total": money(subtotal - discount),
        "items_count": len(lines),
    }


def _as_uuid(value) -> Optional[uuid.UUID]:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def collect_selected_options(item) -> List[Dict[str, Any]]:
    """Options picked on a cart/order line, including those nested in combo selections."""
    collected = list(item.selected_options or [])
    for selection in item.combo_selections or []:
        collected.extend(selection.get("selected_options") or [])
    return collected


def item_options_total(db: Session, item) -> Dict[str, Decimal]:
    """Per-unit options total and savings for a line, with section bundle pricing."""
    by_section: Dict[Optional[uuid.UUID], List[uuid.UUID]] = {}
    for option in collect_selected_options(item):
        option_id = _as_uuid(option.get("option_id"))
        if option_id is None:
            continue
        by_section.setdefault(_as_uuid(option.get("section_id")), []).append(option_id)
    if not by_section:
        return {"total": ZERO, "savings": ZERO}

    total = ZERO
    savings = ZERO
    for section_id, ids in by_section.items():
        section = menu_repo.get_section(db, section_id) if section_id else None
        if section is None:
            options = {opt.id: opt for opt in menu_repo.get_section_options(db, ids)}
            total += sum((to_decimal(options[i].price_modifier) for i in ids if i in options), ZERO)
            continue
        result = calculate_options_price(section, ids)
        total += result["total"]
        savings += result["savings"]
    return {"total": money(total), "savings": money(savings)}


def item_line_total(db: Session, item) -> Decimal:
    """subtotal + options total × quantity."""
    return money(to_decimal(item.subtotal) + item_options_total(db, item)["total"] * int(item.quantity))
