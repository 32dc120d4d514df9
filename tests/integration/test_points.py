from datetime import timedelta, timezone
from decimal import Decimal

import pytest

from ordering.db import models
from ordering.db.repositories import customers as customers_repo
from ordering.errors import NotFoundError, ValidationFailed
from ordering.services import points_service
from ordering.utils.feature_flags import refresh_feature_flag_cache

from tests.conftest import MONDAY_NOON


def _customer_type(db_session, name, points_required, multiplier="1.00"):
    row = models.CustomerType(name=name, points_required=points_required, multiplier=Decimal(multiplier))
    db_session.add(row)
    db_session.commit()
    return row


def _order(db_session, customer, restaurant_factory, total, number="ORD-20261019-0001"):
    order = models.Order(
        order_number=number,
        customer_id=customer.id,
        restaurant_id=restaurant_factory().id,
        service_type="pickup",
        zone="capital",
        subtotal=Decimal(total),
        discount_total=Decimal("0"),
        delivery_fee=Decimal("0"),
        total=Decimal(total),
        status="completed",
        payment_method="cash",
        payment_status="pending",
    )
    db_session.add(order)
    db_session.commit()
    return order


def test_settings_row_is_created_with_defaults(db_session):
    settings = customers_repo.get_points_settings(db_session)
    assert settings.quetzales_per_point == 10
    assert float(settings.rounding_threshold) == pytest.approx(0.7)
    assert settings.expiration_months == 6
    assert customers_repo.get_points_settings(db_session).id == settings.id


@pytest.mark.parametrize(
    ("total", "multiplier", "expected"),
    [
        ("127.00", "1.00", 13),
        ("127.00", "1.50", 19),
        ("127.00", "1.60", 21),
        ("9.00", "2.00", 0),
        ("17.00", "1.00", 2),
    ],
)
def test_calculate_points_with_multiplier(db_session, customer_factory, total, multiplier, expected):
    tier = _customer_type(db_session, "Tier", 0, multiplier)
    customer = customer_factory(customer_type_id=tier.id)
    assert points_service.calculate_points(db_session, Decimal(total), customer) == expected


def test_calculate_points_disabled(monkeypatch, db_session, customer_factory):
    monkeypatch.setenv("LOYALTY_POINTS_ENABLED", "false")
    refresh_feature_flag_cache()
    assert points_service.calculate_points(db_session, Decimal("500"), customer_factory()) == 0


def test_credit_points_is_idempotent_and_upgrades(db_session, customer_factory, restaurant_factory):
    _customer_type(db_session, "Regular", 0)
    gold = _customer_type(db_session, "Oro", 10, "1.00")
    customer = customer_factory()
    order = _order(db_session, customer, restaurant_factory, "127.00")

    assert points_service.credit_points(db_session, customer, order, MONDAY_NOON) == 13
    db_session.commit()
    assert points_service.credit_points(db_session, customer, order, MONDAY_NOON) == 0
    db_session.commit()

    db_session.refresh(customer)
    assert customer.points == 13
    assert customer.customer_type_id == gold.id
    (tx,) = db_session.query(models.PointsTransaction).all()
    assert tx.type == "earned"
    assert tx.description == "Puntos ganados en orden #ORD-20261019-0001"
    assert tx.expires_at is not None


def test_expire_points_debits_without_going_negative(db_session, customer_factory):
    regular = _customer_type(db_session, "Regular", 0)
    gold = _customer_type(db_session, "Oro", 5)
    customer = customer_factory(points=5, customer_type_id=gold.id)
    past = MONDAY_NOON - timedelta(days=1)
    db_session.add_all([
        models.PointsTransaction(customer_id=customer.id, points=8, type="earned", expires_at=past),
        models.PointsTransaction(
            customer_id=customer.id, points=3, type="earned", expires_at=MONDAY_NOON + timedelta(days=30)
        ),
    ])
    db_session.commit()

    result = points_service.expire_points(db_session, MONDAY_NOON)
    assert result == {"expired": 1, "points_debited": 5}
    db_session.refresh(customer)
    assert customer.points == 0
    assert customer.customer_type_id == regular.id
    debit = db_session.query(models.PointsTransaction).filter_by(type="expired").one()
    assert debit.points == -5

    assert points_service.expire_points(db_session, MONDAY_NOON) == {"expired": 0, "points_debited": 0}


def test_total_expiry_wipes_inactive_balances(db_session, customer_factory):
    regular = _customer_type(db_session, "Regular", 0)
    gold = _customer_type(db_session, "Oro", 5)
    settings = customers_repo.get_points_settings(db_session)
    settings.expiration_method = "total"
    db_session.commit()

    utc_noon = MONDAY_NOON.astimezone(timezone.utc)
    idle = customer_factory(points=12, customer_type_id=gold.id, last_activity_at=utc_noon - timedelta(days=200))
    active = customer_factory(points=9, customer_type_id=gold.id, last_activity_at=utc_noon - timedelta(days=10))
    db_session.add_all([
        models.PointsTransaction(customer_id=idle.id, points=12, type="earned"),
        models.PointsTransaction(customer_id=active.id, points=9, type="earned"),
    ])
    db_session.commit()

    assert points_service.expire_points(db_session, MONDAY_NOON) == {"expired": 1, "points_debited": 12}
    db_session.refresh(idle)
    db_session.refresh(active)
    assert idle.points == 0
    assert idle.customer_type_id == regular.id
    assert active.points == 9
    assert active.customer_type_id == gold.id

    earned = db_session.query(models.PointsTransaction).filter_by(customer_id=idle.id, type="earned").one()
    assert earned.is_expired is True
    debit = db_session.query(models.PointsTransaction).filter_by(customer_id=idle.id, type="expired").one()
    assert debit.points == -12
    assert debit.description == "Puntos expirados por 6 meses de inactividad"


def test_redeem_points_debits_and_recalculates_tier(db_session, customer_factory, restaurant_factory):
    regular = _customer_type(db_session, "Regular", 0)
    gold = _customer_type(db_session, "Oro", 10)
    customer = customer_factory(points=15, customer_type_id=gold.id)
    order = _order(db_session, customer, restaurant_factory, "50.00")

    tx = points_service.redeem_points(db_session, customer, order_id=order.id, points=8, moment=MONDAY_NOON)
    assert tx.type == "redeemed"
    assert tx.points == -8
    assert tx.description == "Redimidos 8 puntos en orden #ORD-20261019-0001"
    db_session.refresh(customer)
    assert customer.points == 7
    assert customer.customer_type_id == regular.id


def test_redeem_rejects_short_balance_and_foreign_orders(db_session, customer_factory, restaurant_factory):
    customer = customer_factory(points=3)
    order = _order(db_session, customer, restaurant_factory, "50.00")
    with pytest.raises(ValidationFailed, match="Not enough points"):
        points_service.redeem_points(db_session, customer, order_id=order.id, points=4)

    stranger = customer_factory(points=50)
    with pytest.raises(NotFoundError):
        points_service.redeem_points(db_session, stranger, order_id=order.id, points=4)
    assert db_session.query(models.PointsTransaction).count() == 0


def test_list_rewards_orders_by_cost(db_session, category_factory, product_factory):
    category = category_factory()
    product_factory(category, name="Galleta", is_redeemable=True, points_cost=20)
    product_factory(category, name="Bebida", is_redeemable=True, points_cost=10)
    product_factory(category, name="Sin costo", is_redeemable=True, points_cost=None)
    product_factory(category, name="No canjeable", points_cost=5)
    product_factory(category, name="Inactivo", is_redeemable=True, points_cost=1, is_active=False)

    rewards = points_service.list_rewards(db_session)
    assert [(r["name"], r["points_cost"], r["type"]) for r in rewards] == [
        ("Bebida", 10, "product"),
        ("Galleta", 20, "product"),
    ]


def test_balance_lists_recent_transactions(db_session, customer_factory):
    customer = customer_factory(points=4)
    db_session.add(models.PointsTransaction(customer_id=customer.id, points=4, type="earned"))
    db_session.commit()
    result = points_service.balance(db_session, customer)
    assert result["points"] == 4
    assert [tx.points for tx in result["transactions"]] == [4]
