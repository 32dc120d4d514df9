"""Restaurant repository functions."""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from ordering.db import models, schemas


def _dump(payload) -> dict:
    data = payload.model_dump(exclude_unset=True)
    if data.get("price_location") is not None:
        data["price_location"] = getattr(data["price_location"], "value", data["price_location"])
    return data


def create_restaurant(db: Session, payload: schemas.RestaurantCreate) -> models.Restaurant:
    data = payload.model_dump()
    data["price_location"] = payload.price_location.value
    restaurant = models.Restaurant(**data)
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


def get_restaurant(db: Session, restaurant_id: uuid.UUID) -> Optional[models.Restaurant]:
    return db.query(models.Restaurant).filter(models.Restaurant.id == restaurant_id).first()


def list_restaurants(db: Session, *, active_only: bool = False) -> List[models.Restaurant]:
    query = db.query(models.Restaurant)
    if active_only:
        query = query.filter(models.Restaurant.is_active.is_(True))
    return query.order_by(models.Restaurant.sort_order, models.Restaurant.name).all()


def update_restaurant(db: Session, restaurant_id: uuid.UUID, payload: schemas.RestaurantUpdate) -> Optional[models.Restaurant]:
    restaurant = get_restaurant(db, restaurant_id)
    if not restaurant:
        return None
    for key, value in _dump(payload).items():
        setattr(restaurant, key, value)
    db.commit()
    db.refresh(restaurant)
    return restaurant


def delete_restaurant(db: Session, restaurant_id: uuid.UUID) -> bool:
    restaurant = get_restaurant(db, restaurant_id)
    if not restaurant:
        return False
    db.delete(restaurant)
    db.commit()
    return True
