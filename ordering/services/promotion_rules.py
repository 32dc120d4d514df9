"""
Promotion matching rules.

A promotion applies to a cart line when it is active, its own window is open,
and one of its items targets the line's variant, product or category with an
open window of its own. Candidates are scanned newest first and the first
match wins. All checks run against restaurant-local time.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ordering.db import models
from ordering.db.repositories import promotions as promotions_repo
from ordering.utils.choices import (
    VALIDITY_DATE_RANGE,
    VALIDITY_DATE_TIME_RANGE,
    VALIDITY_PERMANENT,
    VALIDITY_TIME_RANGE,
    VALIDITY_WEEKDAYS,
    ZONE_CAPITAL,
)
from ordering.utils.runtime import to_local

logger = logging.getLogger(__name__)


def _weekday_ok(weekdays, moment: datetime) -> bool:
    if not weekdays:
        return True
    return moment.isoweekday() in {int(d) for d in weekdays}


def window_open(obj, moment: Optional[datetime] = None) -> bool:
    """True when every window bound set on ``obj`` (weekdays, dates, times) holds."""
    moment = to_local(moment)
    today = moment.date()
    now_time = moment.time().replace(tzinfo=None)
    if not _weekday_ok(getattr(obj, "weekdays", None), moment):
        return False
    if obj.valid_from is not None and today < obj.valid_from:
        return False
    if obj.valid_until is not None and today > obj.valid_until:
        return False
    if obj.time_from is not None and now_time < obj.time_from:
        return False
    if obj.time_until is not None and now_time > obj.time_until:
        return False
    return True


def item_is_valid_today(item: models.PromotionItem, moment: Optional[datetime] = None) -> bool:
    """Validity of a single promotion item according to its ``validity_type``."""
    moment = to_local(moment)
    if not _weekday_ok(item.weekdays, moment):
        return False

    today = moment.date()
    now_time = moment.time().replace(tzinfo=None)

    def in_dates() -> bool:
        if item.valid_from is None or item.valid_until is None:
            return False
        return item.valid_from <= today <= item.valid_until

    def in_times() -> bool:
        if item.time_from is None or item.time_until is None:
            return False
        return item.time_from <= now_time <= item.time_until

    validity = item.validity_type or VALIDITY_PERMANENT
    if validity in (VALIDITY_PERMANENT, VALIDITY_WEEKDAYS):
        return True
    if validity == VALIDITY_DATE_RANGE:
        return in_dates()
    if validity == VALIDITY_TIME_RANGE:
        return in_times()
    if validity == VALIDITY_DATE_TIME_RANGE:
        return in_dates() and in_times()
    logger.warning("Unknown validity_type %s on promotion item %s", validity, item.id)
    return False


def promotion_is_valid_now(promotion: models.Promotion, moment: Optional[datetime] = None) -> bool:
    if not promotion.is_active or promotion.deleted_at is not None:
        return False
    return any(item_is_valid_today(item, moment) for item in promotion.items)


def is_bundle_valid_now(promotion: models.Promotion, moment: Optional[datetime] = None) -> bool:
    if not promotion.is_active or promotion.deleted_at is not None:
        return False
    return window_open(promotion, moment)


def item_matches_scope(
    promo_item: models.PromotionItem,
    *,
    product_id,
    variant_id,
    category_id,
) -> bool:
    if variant_id is not None and promo_item.variant_id == variant_id:
        return True
    if product_id is not None and promo_item.product_id == product_id:
        return True
    if category_id is not None and promo_item.category_id == category_id:
        return True
    return False


def promotion_item_for(
    promotion: models.Promotion,
    *,
    product_id,
    variant_id,
    category_id,
    service_type: Optional[str] = None,
    moment: Optional[datetime] = None,
) -> Optional[models.PromotionItem]:
    """First item of ``promotion`` scoped to the line whose own window is open."""
    for promo_item in promotion.items:
        if not item_matches_scope(promo_item, product_id=product_id, variant_id=variant_id, category_id=category_id):
            continue
        if promo_item.service_type and service_type and promo_item.service_type != service_type:
            continue
        if window_open(promo_item, moment):
            return promo_item
    return None


def find_active_promotion(
    db: Session,
    *,
    product: Optional[models.Product],
    variant: Optional[models.ProductVariant] = None,
    moment: Optional[datetime] = None,
    promotion_type: Optional[str] = None,
    service_type: Optional[str] = None,
) -> Optional[models.Promotion]:
    """Newest active promotion matching a product/variant line, or None."""
    if product is None and variant is not None:
        product = variant.product
    if product is None:
        return None
    moment = to_local(moment)
    product_id = product.id
    variant_id = variant.id if variant is not None else None
    category_id = product.category_id
    for promotion in promotions_repo.candidate_promotions(
        db,
        product_id=product_id,
        variant_id=variant_id,
        category_id=category_id,
        promotion_type=promotion_type,
    ):
        if not window_open(promotion, moment):
            continue
        if promotion_item_for(
            promotion,
            product_id=product_id,
            variant_id=variant_id,
            category_id=category_id,
            service_type=service_type,
            moment=moment,
        ):
            return promotion
    return None


def find_active_promotion_for_line(db: Session, line: models.CartItem, moment=None, promotion_type=None, service_type=None):
    """Promotion lookup for a cart line; combos and bundle specials never match."""
    if line.is_combo or line.is_combinado:
        return None
    return find_active_promotion(
        db,
        product=line.product,
        variant=line.variant,
        moment=moment,
        promotion_type=promotion_type,
        service_type=service_type,
    )


def bundle_price(promotion: models.Promotion, zone: str) -> Optional[Decimal]:
    if zone == ZONE_CAPITAL:
        return promotion.special_bundle_price_capital
    return promotion.special_bundle_price_interior
