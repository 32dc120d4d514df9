"""
Cart discount calculation.

Discounts only ever touch the base price of a line; extras (section options)
are always charged in full. The calculation runs in three passes:

1. every line starts at full price and daily-special variants get their
   "Sub del Día" price,
2. product lines are grouped under the promotion that matches them,
3. each group is handed to the strategy for its promotion type.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ordering.db import models
from ordering.services import pricing, promotion_rules
from ordering.utils.choices import (
    PROMO_BUNDLE,
    PROMO_DAILY_SPECIAL,
    PROMO_PERCENTAGE,
    PROMO_TWO_FOR_ONE,
    SERVICE_PICKUP,
    ZONE_CAPITAL,
)
from ordering.utils.feature_flags import promotions_enabled
from ordering.utils.money import ZERO, format_quetzales, money, round_int, to_decimal
from ordering.utils.runtime import to_local

logger = logging.getLogger(__name__)

DAILY_SPECIAL_NAME = "Sub del Día"
_DS_KEY = "_daily_special"


@dataclass
class DiscountContext:
    db: Session
    cart: models.Cart
    moment: datetime
    discounts: Dict[Any, Dict[str, Any]]

    @property
    def zone(self) -> str:
        return self.cart.zone or ZONE_CAPITAL

    @property
    def service_type(self) -> str:
        return self.cart.service_type or SERVICE_PICKUP


def _extras_total(db: Session, item: models.CartItem) -> Decimal:
    return money(pricing.item_options_total(db, item)["total"] * int(item.quantity))


def _first_active_daily_special_id(db: Session):
    row = (
        db.query(models.Promotion.id)
        .filter(
            models.Promotion.type == PROMO_DAILY_SPECIAL,
            models.Promotion.is_active.is_(True),
            models.Promotion.deleted_at.is_(None),
        )
        .order_by(models.Promotion.created_at)
        .first()
    )
    return row[0] if row else None


def apply_daily_special(ctx: DiscountContext, item: models.CartItem, extras: Decimal) -> None:
    """Price a daily-special variant line at its special price when that is cheaper."""
    variant = item.variant
    normal = to_decimal(variant.get_price(pricing.price_field(ctx.zone, ctx.service_type)))
    special_raw = variant.get_price(pricing.daily_special_field(ctx.zone, ctx.service_type))
    special = to_decimal(special_raw) if special_raw is not None else normal
    if special >= normal:
        return

    qty = int(item.quantity)
    per_unit = normal - special
    pct = round_int(per_unit / normal * 100)
    entry = ctx.discounts[item.id]
    entry["discount_amount"] = money(per_unit * qty)
    entry["original_price"] = money(normal * qty + extras)
    entry["final_price"] = money(special * qty + extras)
    entry["is_daily_special"] = True
    entry["applied_promotion"] = {
        "id": _first_active_daily_special_id(ctx.db),
        "name": DAILY_SPECIAL_NAME,
        "name_display": f"{DAILY_SPECIAL_NAME} -{pct}%",
        "type": PROMO_DAILY_SPECIAL,
        "value": format_quetzales(special),
        "per_unit_amount": -money(per_unit),
        "percentage_value": pct,
    }
    entry[_DS_KEY] = {"normal_price": normal, "special_price": special, "discount_per_unit": per_unit}


def _reset_full_price(entry: Dict[str, Any], base: Decimal, extras: Decimal) -> None:
    entry["discount_amount"] = ZERO
    entry["original_price"] = money(base + extras)
    entry["final_price"] = money(base + extras)


def _apply_percentage(ctx: DiscountContext, item: models.CartItem, promotion: models.Promotion) -> bool:
    promo_item = promotion_rules.promotion_item_for(
        promotion,
        product_id=item.product_id,
        variant_id=item.variant_id,
        category_id=item.product.category_id if item.product else None,
        service_type=ctx.service_type,
        moment=ctx.moment,
    )
    pct = promo_item.discount_percentage if promo_item is not None else None
    if not pct:
        return False
    base = to_decimal(item.subtotal)
    extras = _extras_total(ctx.db, item)
    discount = money(base * Decimal(pct) / Decimal(100))
    entry = ctx.discounts[item.id]
    entry["discount_amount"] = discount
    entry["original_price"] = money(base + extras)
    entry["final_price"] = money(base - discount + extras)
    entry["is_daily_special"] = False
    entry["applied_promotion"] = {
        "id": promotion.id,
        "name": promotion.name,
        "name_display": f"{promotion.name} -{pct}%",
        "type": PROMO_PERCENTAGE,
        "value": f"{pct}%",
        "per_unit_amount": -money(discount / int(item.quantity)),
        "percentage_value": int(pct),
    }
    return True


class PromotionStrategy:
    promotion_type: str = ""

    def apply(self, ctx: DiscountContext, items: List[models.CartItem], promotion: models.Promotion) -> None:
        raise NotImplementedError


class TwoForOneStrategy(PromotionStrategy):
    """Cheapest units go free; units left over keep their daily special."""

    promotion_type = PROMO_TWO_FOR_ONE

    def apply(self, ctx, items, promotion):
        total_qty = sum(int(i.quantity) for i in items)
        if total_qty < 2:
            return
        free_units = total_qty // 2
        units_for_2x1 = free_units * 2
        freed = 0
        processed = 0

        for item in sorted(items, key=lambda i: to_decimal(i.unit_price)):
            entry = ctx.discounts[item.id]
            qty = int(item.quantity)
            unit_price = to_decimal(item.unit_price)
            base = to_decimal(item.subtotal)
            extras = _extras_total(ctx.db, item)
            ds = entry.get(_DS_KEY)

            in_2x1 = min(qty, units_for_2x1 - processed)
            leftover = qty - in_2x1

            if in_2x1 > 0:
                processed += in_2x1
                to_free = min(in_2x1, free_units - freed)
                discount_2x1 = unit_price * to_free
                freed += to_free

                leftover_price = ZERO
                leftover_discount = ZERO
                if leftover > 0 and ds:
                    leftover_price = ds["special_price"] * leftover
                    leftover_discount = ds["discount_per_unit"] * leftover
                elif leftover > 0:
                    leftover_price = unit_price * leftover

                entry["discount_amount"] = money(discount_2x1 + leftover_discount)
                entry["original_price"] = money(base + extras)
                entry["final_price"] = money(unit_price * in_2x1 - discount_2x1 + leftover_price + extras)
                entry["is_daily_special"] = False
                combined = leftover > 0 and ds is not None
                entry["applied_promotion"] = {
                    "id": promotion.id,
                    "name": promotion.name,
                    "name_display": f"{promotion.name} 2x1 + {DAILY_SPECIAL_NAME}" if combined else f"{promotion.name} 2x1",
                    "type": PROMO_TWO_FOR_ONE,
                    "value": f"2x1 + {DAILY_SPECIAL_NAME}" if combined else "2x1",
                    "per_unit_amount": None,
                    "percentage_value": None,
                }
                continue

            # Whole line falls outside the 2x1
            if ds:
                continue
            percentage = promotion_rules.find_active_promotion(
                ctx.db,
                product=item.product,
                variant=item.variant,
                moment=ctx.moment,
                promotion_type=PROMO_PERCENTAGE,
                service_type=ctx.service_type,
            )
            if percentage is None or not _apply_percentage(ctx, item, percentage):
                _reset_full_price(entry, base, extras)


class PercentageDiscountStrategy(PromotionStrategy):
    promotion_type = PROMO_PERCENTAGE

    def apply(self, ctx, items, promotion):
        for item in items:
            if ctx.discounts[item.id].get(_DS_KEY):
                continue
            _apply_percentage(ctx, item, promotion)


class BundleSpecialStrategy(PromotionStrategy):
    """Fixed bundle price across the grouped lines when cheaper than their sum."""

    promotion_type = PROMO_BUNDLE

    def apply(self, ctx, items, promotion):
        price = promotion_rules.bundle_price(promotion, ctx.zone)
        if price is None:
            return
        price = to_decimal(price)
        bases = [to_decimal(i.subtotal) for i in items]
        normal = sum(bases, ZERO)
        if normal <= 0 or price >= normal:
            return
        total_discount = money(normal - price)
        remaining = total_discount
        for index, item in enumerate(items):
            if index == len(items) - 1:
                share = remaining
            else:
                share = money(total_discount * bases[index] / normal)
                remaining -= share
            extras = _extras_total(ctx.db, item)
            entry = ctx.discounts[item.id]
            entry["discount_amount"] = share
            entry["original_price"] = money(bases[index] + extras)
            entry["final_price"] = money(bases[index] - share + extras)
            entry["is_daily_special"] = False
            entry.pop(_DS_KEY, None)
            entry["applied_promotion"] = {
                "id": promotion.id,
                "name": promotion.name,
                "name_display": promotion.name,
                "type": PROMO_BUNDLE,
                "value": format_quetzales(price),
                "per_unit_amount": None,
                "percentage_value": None,
            }


class DailySpecialStrategy(PromotionStrategy):
    promotion_type = PROMO_DAILY_SPECIAL

    def apply(self, ctx, items, promotion):
        weekday = ctx.moment.isoweekday()
        for item in items:
            if item.variant is None or not item.variant.is_daily_special_on(weekday):
                continue
            apply_daily_special(ctx, item, _extras_total(ctx.db, item))


STRATEGIES: Dict[str, PromotionStrategy] = {
    strategy.promotion_type: strategy
    for strategy in (TwoForOneStrategy(), PercentageDiscountStrategy(), BundleSpecialStrategy(), DailySpecialStrategy())
}


def _initialise(ctx: DiscountContext, items: List[models.CartItem]) -> None:
    weekday = ctx.moment.isoweekday()
    for item in items:
        extras = _extras_total(ctx.db, item)
        base = to_decimal(item.subtotal)
        ctx.discounts[item.id] = {
            "discount_amount": ZERO,
            "original_price": money(base + extras),
            "final_price": money(base + extras),
            "is_daily_special": False,
            "applied_promotion": None,
        }
        if item.is_combo or item.is_combinado:
            continue
        if item.variant is not None and item.variant.is_daily_special_on(weekday):
            apply_daily_special(ctx, item, extras)


def _promotions_map(ctx: DiscountContext, items: List[models.CartItem]):
    grouped: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
    for item in items:
        promotion = promotion_rules.find_active_promotion_for_line(
            ctx.db, item, moment=ctx.moment, service_type=ctx.service_type
        )
        if promotion is None:
            continue
        grouped.setdefault(promotion.id, {"promotion": promotion, "items": []})["items"].append(item)
    return grouped


def calculate_item_discounts(
    db: Session,
    cart: models.Cart,
    moment: Optional[datetime] = None,
) -> Dict[Any, Dict[str, Any]]:
    """Return ``{cart_item_id: ItemDiscount}`` for every line of ``cart``."""
    items = list(cart.items)
    ctx = DiscountContext(db=db, cart=cart, moment=to_local(moment), discounts={})
    if not items:
        return {}
    _initialise(ctx, items)
    if promotions_enabled():
        for group in _promotions_map(ctx, items).values():
            strategy = STRATEGIES.get(group["promotion"].type)
            if strategy is None:
                logger.warning("No discount strategy for promotion type %s", group["promotion"].type)
                continue
            strategy.apply(ctx, group["items"], group["promotion"])
    else:
        # Daily specials are promotions too; with promotions off every line pays full price
        for item in items:
            entry = ctx.discounts[item.id]
            _reset_full_price(entry, to_decimal(item.subtotal), _extras_total(db, item))
            entry["is_daily_special"] = False
            entry["applied_promotion"] = None
    for entry in ctx.discounts.values():
        entry.pop(_DS_KEY, None)
    return ctx.discounts


def cart_summary(db: Session, cart: models.Cart, moment: Optional[datetime] = None) -> Dict[str, Any]:
    item_discounts = calculate_item_discounts(db, cart, moment)
    subtotal = sum((pricing.item_line_total(db, item) for item in cart.items), ZERO)
    discounts = sum((d["discount_amount"] for d in item_discounts.values()), ZERO)

    applied: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
    for item_id, data in item_discounts.items():
        promo = data.get("applied_promotion")
        if not promo or data["discount_amount"] <= 0:
            continue
        key = (promo.get("id"), promo["type"], promo["name"])
        group = applied.setdefault(key, {
            "id": promo.get("id"),
            "name": promo["name"],
            "type": promo["type"],
            "discount_amount": ZERO,
            "item_ids": [],
        })
        group["discount_amount"] = money(group["discount_amount"] + data["discount_amount"])
        group["item_ids"].append(item_id)

    return {
        "subtotal": money(subtotal),
        "discounts": money(discounts),
        "delivery_fee": ZERO,
        "total": money(max(ZERO, subtotal - discounts)),
        "items_count": len(cart.items),
        "promotions_applied": list(applied.values()),
        "item_discounts": {str(k): v for k, v in item_discounts.items()},
    }
