import uuid
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from ordering.db import models
from ordering.services import promotion_rules

GT = ZoneInfo("America/Guatemala")
MONDAY_NOON = datetime(2026, 10, 19, 12, 0, tzinfo=GT)


def _item(**fields):
    return models.PromotionItem(**fields)


def test_window_open_without_bounds():
    assert promotion_rules.window_open(_item(), MONDAY_NOON)


def test_window_weekdays():
    assert promotion_rules.window_open(_item(weekdays=[1, 3]), MONDAY_NOON)
    assert not promotion_rules.window_open(_item(weekdays=[2]), MONDAY_NOON)


def test_window_dates_are_inclusive():
    assert promotion_rules.window_open(
        _item(valid_from=date(2026, 10, 19), valid_until=date(2026, 10, 19)), MONDAY_NOON
    )
    assert not promotion_rules.window_open(_item(valid_from=date(2026, 10, 20)), MONDAY_NOON)
    assert not promotion_rules.window_open(_item(valid_until=date(2026, 10, 18)), MONDAY_NOON)


def test_window_times():
    lunch = _item(time_from=time(11, 0), time_until=time(13, 0))
    assert promotion_rules.window_open(lunch, MONDAY_NOON)
    assert not promotion_rules.window_open(lunch, MONDAY_NOON.replace(hour=14))


def test_item_validity_types():
    today = date(2026, 10, 19)
    assert promotion_rules.item_is_valid_today(_item(validity_type="permanent"), MONDAY_NOON)
    assert promotion_rules.item_is_valid_today(_item(validity_type="weekdays", weekdays=[1]), MONDAY_NOON)
    assert not promotion_rules.item_is_valid_today(_item(validity_type="weekdays", weekdays=[5]), MONDAY_NOON)
    # date ranges need both bounds
    assert not promotion_rules.item_is_valid_today(
        _item(validity_type="date_range", valid_from=today), MONDAY_NOON
    )
    assert promotion_rules.item_is_valid_today(
        _item(validity_type="date_range", valid_from=today, valid_until=today), MONDAY_NOON
    )
    assert not promotion_rules.item_is_valid_today(
        _item(validity_type="time_range", time_from=time(6, 0), time_until=time(11, 0)), MONDAY_NOON
    )
    assert promotion_rules.item_is_valid_today(
        _item(
            validity_type="date_time_range",
            valid_from=today,
            valid_until=today,
            time_from=time(11, 0),
            time_until=time(13, 0),
        ),
        MONDAY_NOON,
    )
    assert not promotion_rules.item_is_valid_today(_item(validity_type="someday"), MONDAY_NOON)


def test_item_matches_scope():
    product_id, variant_id, category_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    scope = dict(product_id=product_id, variant_id=variant_id, category_id=category_id)
    assert promotion_rules.item_matches_scope(_item(variant_id=variant_id), **scope)
    assert promotion_rules.item_matches_scope(_item(product_id=product_id), **scope)
    assert promotion_rules.item_matches_scope(_item(category_id=category_id), **scope)
    assert not promotion_rules.item_matches_scope(_item(product_id=uuid.uuid4()), **scope)


def test_promotion_item_for_honours_service_type():
    product_id = uuid.uuid4()
    promotion = models.Promotion(name="Domicilio", type="percentage_discount")
    promotion.items.append(_item(product_id=product_id, service_type="delivery", discount_percentage=10))
    kwargs = dict(product_id=product_id, variant_id=None, category_id=None, moment=MONDAY_NOON)
    assert promotion_rules.promotion_item_for(promotion, service_type="pickup", **kwargs) is None
    assert promotion_rules.promotion_item_for(promotion, service_type="delivery", **kwargs) is not None


def test_bundle_validity_uses_promotion_window():
    promotion = models.Promotion(name="Combinado", type="bundle_special", is_active=True, weekdays=[1])
    assert promotion_rules.is_bundle_valid_now(promotion, MONDAY_NOON)
    promotion.weekdays = [6, 7]
    assert not promotion_rules.is_bundle_valid_now(promotion, MONDAY_NOON)
    promotion.weekdays = None
    promotion.is_active = False
    assert not promotion_rules.is_bundle_valid_now(promotion, MONDAY_NOON)
