"""
Order query functions.

Lifecycle changes live in `ordering.services.order_service`; this module only
reads orders for customers and the management panel.
"""
from __future__ import annotations

import math
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from ordering.db import models
from ordering.utils.choices import ACTIVE_ORDER_STATUSES, ALL_ORDER_STATUSES, ORDER_COMPLETED
from ordering.utils.runtime import app_timezone, local_now


def _with_children(query):
    return query.options(
        selectinload(models.Order.items),
        selectinload(models.Order.promotions),
    )


def get_order(db: Session, order_id: uuid.UUID) -> Optional[models.Order]:
    return (
        _with_children(db.query(models.Order))
        .options(selectinload(models.Order.status_history))
        .filter(models.Order.id == order_id)
        .first()
    )


def get_order_owned(db: Session, *, order_id: uuid.UUID, customer_id: uuid.UUID) -> Optional[models.Order]:
    order = get_order(db, order_id)
    if order is None or order.customer_id != customer_id:
        return None
    return order


def get_active_orders(db: Session, customer_id: uuid.UUID) -> List[models.Order]:
    return (
        _with_children(db.query(models.Order))
        .filter(models.Order.customer_id == customer_id, models.Order.status.in_(ACTIVE_ORDER_STATUSES))
        .order_by(models.Order.created_at.desc())
        .all()
    )


def paginate(query, page: int, per_page: int) -> Tuple[list, int, int]:
    page = max(1, page)
    per_page = max(1, min(per_page, 100))
    total = query.count()
    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    last_page = max(1, math.ceil(total / per_page)) if total else 1
    return rows, total, last_page


def get_history(db: Session, customer_id: uuid.UUID, *, page: int = 1, per_page: int = 15):
    query = (
        _with_children(db.query(models.Order))
        .filter(models.Order.customer_id == customer_id)
        .order_by(models.Order.created_at.desc())
    )
    return paginate(query, page, per_page)


def _local_day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=app_timezone()).astimezone(timezone.utc)
    return start, start + timedelta(days=1)


def list_orders(
    db: Session,
    *,
    restaurant_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    service_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 20,
):
    query = _with_children(db.query(models.Order))
    if restaurant_id:
        query = query.filter(models.Order.restaurant_id == restaurant_id)
    if status:
        query = query.filter(models.Order.status == status)
    if service_type:
        query = query.filter(models.Order.service_type == service_type)
    if date_from:
        query = query.filter(models.Order.created_at >= _local_day_bounds(date_from)[0])
    if date_to:
        query = query.filter(models.Order.created_at < _local_day_bounds(date_to)[1])
    if search:
        like = f"%{search.strip().lower()}%"
        query = query.join(models.Customer, models.Customer.id == models.Order.customer_id).filter(
            or_(
                func.lower(models.Order.order_number).like(like),
                func.lower(models.Customer.email).like(like),
                func.lower(models.Customer.first_name).like(like),
                func.lower(models.Customer.last_name).like(like),
                func.lower(models.Customer.first_name + " " + models.Customer.last_name).like(like),
            )
        )
    query = query.order_by(models.Order.created_at.desc())
    return paginate(query, page, per_page)


def order_statistics(db: Session, *, restaurant_id: Optional[uuid.UUID] = None) -> Dict[str, object]:
    query = db.query(models.Order.status, func.count(models.Order.id))
    if restaurant_id:
        query = query.filter(models.Order.restaurant_id == restaurant_id)
    counts = {status: 0 for status in ALL_ORDER_STATUSES}
    for status, count in query.group_by(models.Order.status).all():
        counts[status] = count

    start, end = _local_day_bounds(local_now().date())
    completed_today = db.query(func.count(models.Order.id)).filter(
        models.Order.status == ORDER_COMPLETED,
        models.Order.updated_at >= start,
        models.Order.updated_at < end,
    )
    if restaurant_id:
        completed_today = completed_today.filter(models.Order.restaurant_id == restaurant_id)
    return {
        "by_status": counts,
        "total": sum(counts.values()),
        "completed_today": completed_today.scalar() or 0,
    }
