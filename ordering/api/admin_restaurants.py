"""Restaurant administration."""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ordering import audit
from ordering.api.deps import require_permission
from ordering.api.restaurants import restaurant_read
from ordering.db import crud, models, schemas
from ordering.db.database import get_db

router = APIRouter(prefix="/admin/restaurants", tags=["admin-restaurants"])


def _log(db: Session, user: models.User, restaurant_id: uuid.UUID, action: audit.AuditAction, name=None):
    audit.safe_log(
        db,
        action=action,
        target_type="restaurant",
        target_id=restaurant_id,
        actor_user_id=user.id,
        metadata={"name": name} if name else None,
    )


@router.get("", response_model=List[schemas.Restaurant])
def list_restaurants(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("restaurants.view")),
):
    return [restaurant_read(r) for r in crud.list_restaurants(db)]


@router.post("", response_model=schemas.Restaurant, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    payload: schemas.RestaurantCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("restaurants.create")),
):
    restaurant = crud.create_restaurant(db, payload)
    _log(db, user, restaurant.id, audit.AuditAction.RESTAURANT_CREATE, restaurant.name)
    return restaurant_read(restaurant)


@router.put("/{restaurant_id}", response_model=schemas.Restaurant)
def update_restaurant(
    restaurant_id: uuid.UUID,
    payload: schemas.RestaurantUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("restaurants.edit")),
):
    restaurant = crud.update_restaurant(db, restaurant_id, payload)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    _log(db, user, restaurant.id, audit.AuditAction.RESTAURANT_UPDATE, restaurant.name)
    return restaurant_read(restaurant)


@router.delete("/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_restaurant(
    restaurant_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("restaurants.delete")),
):
    if not crud.delete_restaurant(db, restaurant_id):
        raise HTTPException(status_code=404, detail="Restaurant not found")
    _log(db, user, restaurant_id, audit.AuditAction.RESTAURANT_DELETE)
    return None
