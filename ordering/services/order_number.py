"""
Human readable order numbers: ``<PREFIX>-<YYYYMMDD>-<NNNN>``.

The counter row for (restaurant, local date) is locked with
``SELECT ... FOR UPDATE`` so concurrent checkouts at the same restaurant get
distinct, increasing numbers. Everything happens inside the caller's
transaction; a rolled back checkout releases the lock without reusing the
value for anyone who already read it.
"""
from __future__ import annotations

import logging
import os
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ordering.db import models
from ordering.utils.runtime import to_local

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "ORD"


def order_number_prefix() -> str:
    return (os.getenv("ORDER_NUMBER_PREFIX") or DEFAULT_PREFIX).strip() or DEFAULT_PREFIX


def format_order_number(sequence_date: date, value: int, prefix: Optional[str] = None) -> str:
    return f"{prefix or order_number_prefix()}-{sequence_date.strftime('%Y%m%d')}-{value:04d}"


def _locked_counter(db: Session, restaurant_id, sequence_date: date) -> Optional[models.OrderNumberSequence]:
    return (
        db.query(models.OrderNumberSequence)
        .filter(
            models.OrderNumberSequence.restaurant_id == restaurant_id,
            models.OrderNumberSequence.sequence_date == sequence_date,
        )
        .with_for_update()
        .first()
    )


def _create_counter(db: Session, restaurant_id, sequence_date: date) -> Optional[models.OrderNumberSequence]:
    """Insert the day's counter in a savepoint; None when another transaction won the race."""
    counter = models.OrderNumberSequence(restaurant_id=restaurant_id, sequence_date=sequence_date, last_value=0)
    savepoint = db.begin_nested()
    try:
        db.add(counter)
        db.flush()
    except IntegrityError:
        savepoint.rollback()
        logger.info("Order number counter for %s on %s created concurrently; retrying", restaurant_id, sequence_date)
        return None
    savepoint.commit()
    return counter


def next_order_number(db: Session, restaurant: models.Restaurant, moment: Optional[datetime] = None) -> str:
    sequence_date = to_local(moment).date()
    counter = _locked_counter(db, restaurant.id, sequence_date)
    if counter is None:
        counter = _create_counter(db, restaurant.id, sequence_date)
        if counter is None:
            counter = _locked_counter(db, restaurant.id, sequence_date)
        if counter is None:
            raise RuntimeError("Could not obtain an order number counter")
    counter.last_value = (counter.last_value or 0) + 1
    db.flush()
    return format_order_number(sequence_date, counter.last_value)
