from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from ordering.db import models

GT = ZoneInfo("America/Guatemala")


def _restaurant(**overrides):
    data = {
        "name": "Zona 10",
        "is_active": True,
        "pickup_active": True,
        "delivery_active": True,
        "estimated_pickup_time": 20,
        "schedule": {
            "monday": {"is_open": True, "open": "08:00", "close": "21:00"},
            "tuesday": {"is_open": False, "open": "08:00", "close": "21:00"},
        },
    }
    data.update(overrides)
    return models.Restaurant(**data)


def test_open_during_schedule():
    restaurant = _restaurant()
    assert restaurant.is_open_now(datetime(2026, 10, 19, 12, 0, tzinfo=GT))
    assert not restaurant.is_open_now(datetime(2026, 10, 19, 7, 59, tzinfo=GT))
    assert not restaurant.is_open_now(datetime(2026, 10, 19, 21, 1, tzinfo=GT))


def test_closed_days_and_missing_days():
    restaurant = _restaurant()
    assert not restaurant.is_open_now(datetime(2026, 10, 20, 12, 0, tzinfo=GT))
    assert not restaurant.is_open_now(datetime(2026, 10, 21, 12, 0, tzinfo=GT))
    assert restaurant.last_order_time("pickup", datetime(2026, 10, 20, 12, 0, tzinfo=GT)) is None


def test_utc_moments_are_read_in_local_time():
    restaurant = _restaurant()
    # 14:30 UTC is 08:30 in Guatemala
    assert restaurant.is_open_now(datetime(2026, 10, 19, 14, 30, tzinfo=timezone.utc))
    # 13:30 UTC is 07:30 in Guatemala
    assert not restaurant.is_open_now(datetime(2026, 10, 19, 13, 30, tzinfo=timezone.utc))


def test_last_order_time_by_service():
    restaurant = _restaurant()
    monday = datetime(2026, 10, 19, 12, 0, tzinfo=GT)
    assert restaurant.last_order_time("pickup", monday) == "20:40"
    assert restaurant.last_order_time("delivery", monday) == "21:00"


def test_last_order_time_defaults_and_zero_preparation():
    monday = datetime(2026, 10, 19, 12, 0, tzinfo=GT)
    assert _restaurant(estimated_pickup_time=None).last_order_time("pickup", monday) == "20:45"
    assert _restaurant(estimated_pickup_time=0).last_order_time("pickup", monday) == "21:00"


def test_can_accept_orders_now_per_service():
    restaurant = _restaurant()
    late = datetime(2026, 10, 19, 20, 50, tzinfo=GT)
    assert not restaurant.can_accept_orders_now("pickup", late)
    assert restaurant.can_accept_orders_now("delivery", late)


def test_disabled_services_and_inactive_restaurant():
    noon = datetime(2026, 10, 19, 12, 0, tzinfo=GT)
    assert not _restaurant(pickup_active=False).can_accept_orders_now("pickup", noon)
    assert _restaurant(pickup_active=False).can_accept_orders_now("delivery", noon)
    assert not _restaurant(delivery_active=False).can_accept_orders_now("delivery", noon)
    inactive = _restaurant(is_active=False)
    assert not inactive.is_open_now(noon)
    assert not inactive.can_accept_orders_now("pickup", noon)
