"""
Loyalty points: earning on completed orders, redemption, tiers and expiry.

Customers earn one point per ``quetzales_per_point`` spent. Fractions round up
only once the customer already has a whole point and the decimal part reaches
``rounding_threshold``, so small purchases never earn a point by rounding.

Every balance change re-evaluates the customer type. Expiry runs in one of two
modes: ``fifo`` expires each earned batch on its own date, ``total`` wipes the
balance of customers inactive for ``expiration_months``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ordering.db import models
from ordering.db.repositories import customers as customers_repo
from ordering.db.repositories import orders as orders_repo
from ordering.errors import NotFoundError, ValidationFailed
from ordering.utils.choices import (
    EXPIRATION_TOTAL,
    ITEM_COMBO,
    ITEM_PRODUCT,
    ITEM_VARIANT,
    POINTS_EARNED,
    POINTS_EXPIRED,
    POINTS_REDEEMED,
)
from ordering.utils.feature_flags import loyalty_points_enabled
from ordering.utils.money import CENT, floor_int, to_decimal
from ordering.utils.runtime import ensure_utc

logger = logging.getLogger(__name__)


def round_with_threshold(value: Any, threshold: Any) -> int:
    value = to_decimal(value)
    int_part = floor_int(value)
    threshold = to_decimal(threshold)
    if threshold <= 0:
        return int_part
    decimal_part = (value - int_part).quantize(CENT)
    if int_part >= 1 and decimal_part >= threshold:
        return int_part + 1
    return int_part


def _multiplier(customer: Optional[models.Customer]) -> Decimal:
    if customer is None or customer.customer_type is None:
        return Decimal(1)
    multiplier = to_decimal(customer.customer_type.multiplier)
    return multiplier if multiplier > 0 else Decimal(1)


def calculate_points(db: Session, total: Any, customer: Optional[models.Customer] = None) -> int:
    """Points a purchase of ``total`` earns, including the customer type multiplier."""
    if not loyalty_points_enabled():
        return 0
    settings = customers_repo.get_points_settings(db)
    per_point = to_decimal(settings.quetzales_per_point)
    if per_point <= 0:
        return 0
    threshold = settings.rounding_threshold
    base = round_with_threshold(to_decimal(total) / per_point, threshold)
    multiplier = _multiplier(customer)
    if multiplier > 1:
        return round_with_threshold(Decimal(base) * multiplier, threshold)
    return base


def credit_points(db: Session, customer: models.Customer, order: models.Order, moment: Optional[datetime] = None) -> int:
    """Credit points for a completed order once; returns the points credited.

    Runs inside the caller's transaction and only flushes.
    """
    if not loyalty_points_enabled():
        return 0
    already = (
        db.query(models.PointsTransaction.id)
        .filter(
            models.PointsTransaction.order_id == order.id,
            models.PointsTransaction.type == POINTS_EARNED,
        )
        .first()
    )
    if already is not None:
        logger.info("Points for order %s were already credited", order.order_number)
        return 0

    points = calculate_points(db, order.total, customer)
    if points <= 0:
        return 0

    now = moment or models.now_utc()
    settings = customers_repo.get_points_settings(db)
    db.add(models.PointsTransaction(
        customer_id=customer.id,
        order_id=order.id,
        points=points,
        type=POINTS_EARNED,
        description=f"Puntos ganados en orden #{order.order_number}",
        expires_at=now + relativedelta(months=int(settings.expiration_months or 0)),
        created_at=now,
    ))
    customer.points = (customer.points or 0) + points
    customer.points_updated_at = now
    customer.last_activity_at = now
    order.points_earned = points

    sync_customer_type(db, customer)
    db.flush()
    return points


def _lowest_active_type(db: Session) -> Optional[models.CustomerType]:
    return (
        db.query(models.CustomerType)
        .filter(models.CustomerType.is_active.is_(True))
        .order_by(models.CustomerType.points_required.asc())
        .first()
    )


def sync_customer_type(db: Session, customer: models.Customer) -> Optional[models.CustomerType]:
    """Move the customer to the tier their current balance qualifies for, up or down."""
    new_type = models.CustomerType.for_points(db, int(customer.points or 0)) or _lowest_active_type(db)
    if new_type is not None and customer.customer_type_id != new_type.id:
        logger.info("Customer %s moved to type %s", customer.id, new_type.name)
        customer.customer_type_id = new_type.id
        customer.customer_type = new_type
    return new_type


def expire_points(db: Session, moment: Optional[datetime] = None) -> Dict[str, int]:
    """Run point expiry with the configured method and commit."""
    now = ensure_utc(moment) or models.now_utc()
    settings = customers_repo.get_points_settings(db)
    if settings.expiration_method == EXPIRATION_TOTAL:
        result = _expire_total(db, settings, now)
    else:
        result = _expire_fifo(db, now)
    db.commit()
    if result["expired"]:
        logger.info(
            "Expired points (%s): %s entries, %s points debited",
            settings.expiration_method, result["expired"], result["points_debited"],
        )
    return result


def _expire_fifo(db: Session, now: datetime) -> Dict[str, int]:
    """Expire earned transactions past ``expires_at`` and debit balances (never below 0)."""
    candidates = (
        db.query(models.PointsTransaction)
        .filter(
            models.PointsTransaction.type == POINTS_EARNED,
            models.PointsTransaction.is_expired.is_(False),
            models.PointsTransaction.expires_at.isnot(None),
        )
        .order_by(models.PointsTransaction.created_at.asc())
        .all()
    )
    expired = 0
    debited = 0
    touched: Dict[Any, models.Customer] = {}
    for tx in candidates:
        if ensure_utc(tx.expires_at) > now:
            continue
        tx.is_expired = True
        customer = db.get(models.Customer, tx.customer_id)
        if customer is None:
            continue
        debit = min(int(tx.points), int(customer.points or 0))
        customer.points = (customer.points or 0) - debit
        customer.points_updated_at = now
        if debit:
            db.add(models.PointsTransaction(
                customer_id=customer.id,
                points=-debit,
                type=POINTS_EXPIRED,
                description="Puntos vencidos",
                is_expired=True,
                created_at=now,
            ))
        touched[customer.id] = customer
        expired += 1
        debited += debit
    for customer in touched.values():
        sync_customer_type(db, customer)
    return {"expired": expired, "points_debited": debited}


def _expire_total(db: Session, settings: models.PointsSetting, now: datetime) -> Dict[str, int]:
    """Wipe the whole balance of customers inactive for ``expiration_months``."""
    months = int(settings.expiration_months or 0)
    cutoff = now - relativedelta(months=months)
    customers = (
        db.query(models.Customer)
        .filter(
            models.Customer.points > 0,
            models.Customer.deleted_at.is_(None),
            or_(models.Customer.last_activity_at.is_(None), models.Customer.last_activity_at < cutoff),
        )
        .all()
    )
    debited = 0
    for customer in customers:
        amount = int(customer.points or 0)
        db.add(models.PointsTransaction(
            customer_id=customer.id,
            points=-amount,
            type=POINTS_EXPIRED,
            description=f"Puntos expirados por {months} meses de inactividad",
            expires_at=now,
            is_expired=True,
            created_at=now,
        ))
        (
            db.query(models.PointsTransaction)
            .filter(
                models.PointsTransaction.customer_id == customer.id,
                models.PointsTransaction.type == POINTS_EARNED,
                models.PointsTransaction.is_expired.is_(False),
            )
            .update({models.PointsTransaction.is_expired: True}, synchronize_session="fetch")
        )
        customer.points = 0
        customer.points_updated_at = now
        sync_customer_type(db, customer)
        debited += amount
    return {"expired": len(customers), "points_debited": debited}


def list_rewards(db: Session) -> List[Dict[str, Any]]:
    """Active products, variants and combos redeemable for points, cheapest first."""
    rewards: List[Dict[str, Any]] = []
    for kind, model in ((ITEM_PRODUCT, models.Product), (ITEM_VARIANT, models.ProductVariant), (ITEM_COMBO, models.Combo)):
        rows = (
            db.query(model)
            .filter(model.is_redeemable.is_(True), model.points_cost.isnot(None), model.is_active.is_(True))
            .all()
        )
        for row in rows:
            rewards.append({
                "type": kind,
                "id": row.id,
                "name": row.name,
                "points_cost": int(row.points_cost),
                "description": getattr(row, "description", None),
                "image": getattr(row, "image", None),
            })
    rewards.sort(key=lambda r: (r["points_cost"], r["name"]))
    return rewards


def redeem_points(
    db: Session,
    customer: models.Customer,
    *,
    order_id: uuid.UUID,
    points: int,
    moment: Optional[datetime] = None,
) -> models.PointsTransaction:
    """Debit ``points`` against one of the customer's orders and commit."""
    if not loyalty_points_enabled():
        raise ValidationFailed("Loyalty points are disabled")
    order = orders_repo.get_order_owned(db, order_id=order_id, customer_id=customer.id)
    if order is None:
        raise NotFoundError("Order not found")
    if points <= 0:
        raise ValidationFailed("points_to_redeem must be positive")
    if int(customer.points or 0) < points:
        raise ValidationFailed("Not enough points available")

    now = ensure_utc(moment) or models.now_utc()
    tx = models.PointsTransaction(
        customer_id=customer.id,
        order_id=order.id,
        points=-points,
        type=POINTS_REDEEMED,
        description=f"Redimidos {points} puntos en orden #{order.order_number}",
        created_at=now,
    )
    db.add(tx)
    customer.points = int(customer.points or 0) - points
    customer.points_updated_at = now
    customer.last_activity_at = now
    sync_customer_type(db, customer)
    db.commit()
    db.refresh(tx)
    logger.info("Customer %s redeemed %s points on order %s", customer.id, points, order.order_number)
    return tx


def balance(db: Session, customer: models.Customer, *, limit: int = 20) -> Dict[str, Any]:
    transactions = (
        db.query(models.PointsTransaction)
        .filter(models.PointsTransaction.customer_id == customer.id)
        .order_by(models.PointsTransaction.created_at.desc())
        .limit(limit)
        .all()
    )
    return {
        "points": customer.points or 0,
        "customer_type": customer.customer_type,
        "transactions": transactions,
    }
