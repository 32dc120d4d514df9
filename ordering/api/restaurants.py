"""Public restaurant listing with live open/closed state."""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ordering.db import crud, models, schemas
from ordering.db.database import get_db

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def restaurant_read(restaurant: models.Restaurant) -> schemas.Restaurant:
    data = schemas.Restaurant.model_validate(restaurant)
    return data.model_copy(update={"open_now": restaurant.is_open_now()})


@router.get("", response_model=List[schemas.Restaurant])
def list_restaurants(db: Session = Depends(get_db)):
    return [restaurant_read(r) for r in crud.list_restaurants(db, active_only=True)]


@router.get("/{restaurant_id}", response_model=schemas.Restaurant)
def get_restaurant(restaurant_id: uuid.UUID, db: Session = Depends(get_db)):
    restaurant = crud.get_restaurant(db, restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant_read(restaurant)
