"""
Order management for restaurant staff.

Staff bound to a restaurant only ever see and change that restaurant's
orders; superadmins and unbound staff see all of them.
"""
from datetime import date
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ordering.api.deps import require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http
from ordering.services import order_management
from ordering.utils.choices import OrderStatusEnum, ServiceTypeEnum

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def _visible_order(db: Session, order_id: uuid.UUID, user: models.User) -> models.Order:
    order = crud.get_order(db, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    try:
        order_management.ensure_restaurant_access(user, order)
    except OrderingError as exc:
        raise to_http(exc)
    return order


@router.get("", response_model=schemas.PaginatedOrders)
def list_orders(
    restaurant_id: Optional[uuid.UUID] = None,
    status: Optional[OrderStatusEnum] = None,
    service_type: Optional[ServiceTypeEnum] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("orders.view")),
):
    return order_management.list_orders(
        db,
        user=user,
        restaurant_id=restaurant_id,
        status=status.value if status is not None else None,
        service_type=service_type.value if service_type is not None else None,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        per_page=per_page,
    )


@router.get("/statistics", response_model=schemas.OrderStatistics)
def order_statistics(
    restaurant_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("orders.view")),
):
    return order_management.statistics(db, user=user, restaurant_id=restaurant_id)


@router.get("/drivers", response_model=List[schemas.User])
def list_drivers(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("drivers.view")),
):
    restaurant_id = None if user.is_superadmin else user.restaurant_id
    return crud.list_users(db, drivers_only=True, restaurant_id=restaurant_id)


@router.get("/{order_id}", response_model=schemas.OrderDetail)
def get_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("orders.view")),
):
    return _visible_order(db, order_id, user)


@router.put("/{order_id}/status", response_model=schemas.OrderDetail)
def update_status(
    order_id: uuid.UUID,
    payload: schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("orders.edit")),
):
    order = _visible_order(db, order_id, user)
    try:
        order_management.update_order_status(db, order, payload.status.value, user=user, notes=payload.notes)
    except OrderingError as exc:
        raise to_http(exc)
    return crud.get_order(db, order_id)


@router.put("/{order_id}/assign-driver", response_model=schemas.OrderDetail)
def assign_driver(
    order_id: uuid.UUID,
    payload: schemas.AssignDriver,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("orders.edit")),
):
    order = _visible_order(db, order_id, user)
    try:
        order_management.assign_driver(db, order, payload.driver_id, user=user)
    except OrderingError as exc:
        raise to_http(exc)
    return crud.get_order(db, order_id)
