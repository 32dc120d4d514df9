from datetime import date, timedelta, timezone
from decimal import Decimal
import uuid

import pytest

from ordering.db import models

from tests.conftest import MONDAY_NOON

UTC_NOON = MONDAY_NOON.astimezone(timezone.utc)


@pytest.fixture
def order_factory(db_session):
    def _create(customer, restaurant, status="pending", service_type="pickup", **overrides):
        data = {
            "order_number": f"ORD-20261019-{uuid.uuid4().hex[:4].upper()}",
            "customer_id": customer.id,
            "restaurant_id": restaurant.id,
            "service_type": service_type,
            "zone": "capital",
            "subtotal": Decimal("35.00"),
            "discount_total": Decimal("0"),
            "delivery_fee": Decimal("0"),
            "total": Decimal("35.00"),
            "status": status,
        }
        data.update(overrides)
        order = models.Order(**data)
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order

    return _create


@pytest.fixture
def driver_factory(db_session):
    def _create(restaurant=None, email=None, **overrides):
        fields = dict(
            email=email or f"moto-{uuid.uuid4().hex[:6]}@example.com",
            display_name="Carlos",
            is_driver=True,
            restaurant_id=restaurant.id if restaurant is not None else None,
        )
        fields.update(overrides)
        driver = models.User(**fields)
        db_session.add(driver)
        db_session.commit()
        db_session.refresh(driver)
        return driver

    return _create


def test_assign_driver_to_ready_delivery_order(client, db_session, admin_headers, customer_factory,
                                               restaurant_factory, order_factory, driver_factory):
    restaurant = restaurant_factory()
    order = order_factory(customer_factory(), restaurant, status="ready", service_type="delivery")
    driver = driver_factory(restaurant)

    response = client.put(f"/admin/orders/{order.id}/assign-driver", json={"driver_id": str(driver.id)},
                          headers=admin_headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["driver_id"] == str(driver.id)
    assert body["status"] == "ready"
    assert body["status_history"][-1]["notes"] == "Motorista asignado: Carlos"
    assert db_session.query(models.AuditLog).filter_by(action_type="order_assign_driver").count() == 1

    drivers = client.get("/admin/orders/drivers", headers=admin_headers).json()
    assert [d["id"] for d in drivers] == [str(driver.id)]


@pytest.mark.parametrize(
    ("status", "service_type", "expected"),
    [
        ("ready", "pickup", 422),
        ("preparing", "delivery", 409),
    ],
)
def test_assign_driver_rejects_orders_not_ready_for_delivery(client, admin_headers, customer_factory,
                                                             restaurant_factory, order_factory, driver_factory,
                                                             status, service_type, expected):
    restaurant = restaurant_factory()
    order = order_factory(customer_factory(), restaurant, status=status, service_type=service_type)
    driver = driver_factory(restaurant)

    response = client.put(f"/admin/orders/{order.id}/assign-driver", json={"driver_id": str(driver.id)},
                          headers=admin_headers)
    assert response.status_code == expected
    assert client.get(f"/admin/orders/{order.id}", headers=admin_headers).json()["driver_id"] is None


def test_assign_driver_checks_the_driver(client, admin_headers, customer_factory, restaurant_factory,
                                         order_factory, driver_factory):
    restaurant = restaurant_factory()
    order = order_factory(customer_factory(), restaurant, status="ready", service_type="delivery")
    elsewhere = driver_factory(restaurant_factory())
    not_a_driver = driver_factory(restaurant, is_driver=False)

    url = f"/admin/orders/{order.id}/assign-driver"
    other = client.put(url, json={"driver_id": str(elsewhere.id)}, headers=admin_headers)
    assert other.status_code == 422
    assert other.json() == {"detail": "The driver works for another restaurant"}
    assert client.put(url, json={"driver_id": str(not_a_driver.id)}, headers=admin_headers).status_code == 404


def test_list_orders_search_and_filters(client, admin_headers, customer_factory, restaurant_factory, order_factory):
    restaurant = restaurant_factory()
    ana = customer_factory()
    luis = customer_factory(first_name="Luis", last_name="Pérez")
    today = order_factory(ana, restaurant, status="ready", created_at=UTC_NOON)
    earlier = order_factory(luis, restaurant, status="completed", created_at=UTC_NOON - timedelta(days=3))

    def ids(**params):
        listing = client.get("/admin/orders", params=params, headers=admin_headers).json()
        return [o["id"] for o in listing["items"]]

    assert ids() == [str(today.id), str(earlier.id)]
    assert ids(search="Ana López") == [str(today.id)]
    assert ids(search="pérez") == [str(earlier.id)]
    assert ids(search=earlier.order_number.lower()) == [str(earlier.id)]
    assert ids(status="ready") == [str(today.id)]
    assert ids(date_from=date(2026, 10, 19).isoformat()) == [str(today.id)]
    assert ids(date_to=date(2026, 10, 17).isoformat()) == [str(earlier.id)]
    assert ids(search="nadie") == []


def test_order_statistics(client, admin_headers, customer_factory, restaurant_factory, order_factory):
    restaurant = restaurant_factory()
    customer = customer_factory()
    order_factory(customer, restaurant, status="pending")
    order_factory(customer, restaurant, status="completed")
    order_factory(customer, restaurant, status="completed", updated_at=models.now_utc() - timedelta(days=3))
    order_factory(customer, restaurant_factory(), status="cancelled")

    stats = client.get("/admin/orders/statistics", headers=admin_headers).json()
    assert stats["total"] == 4
    assert stats["by_status"]["completed"] == 2
    assert stats["by_status"]["cancelled"] == 1
    assert stats["completed_today"] == 1

    scoped = client.get("/admin/orders/statistics", params={"restaurant_id": str(restaurant.id)},
                        headers=admin_headers).json()
    assert scoped["total"] == 3
    assert scoped["by_status"]["cancelled"] == 0
