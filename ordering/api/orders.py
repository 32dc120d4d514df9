"""
Customer order endpoints: checkout, history, cancellation and reorder.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ordering.api.deps import get_current_customer
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http
from ordering.services import cart_service, order_service

router = APIRouter(prefix="/orders", tags=["orders"])


def _owned_order(db: Session, order_id: uuid.UUID, customer: models.Customer) -> models.Order:
    order = crud.get_order_owned(db, order_id=order_id, customer_id=customer.id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("", response_model=schemas.OrderDetail, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: schemas.OrderCreate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    cart = cart_service.get_or_create_cart(db, customer)
    try:
        order = order_service.create_from_cart(db, customer, cart, payload)
    except OrderingError as exc:
        raise to_http(exc)
    return crud.get_order(db, order.id)


@router.get("", response_model=schemas.PaginatedOrders)
def order_history(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=15, ge=1, le=100),
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    rows, total, last_page = order_service.get_history(db, customer, page=page, per_page=per_page)
    return {"items": rows, "total": total, "page": page, "per_page": per_page, "last_page": last_page}


@router.get("/active", response_model=List[schemas.Order])
def active_orders(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return order_service.get_active_orders(db, customer)


@router.get("/{order_id}", response_model=schemas.OrderDetail)
def get_order(order_id: uuid.UUID, db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return _owned_order(db, order_id, customer)


@router.post("/{order_id}/cancel", response_model=schemas.OrderDetail)
def cancel_order(
    order_id: uuid.UUID,
    payload: schemas.OrderCancel,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    order = _owned_order(db, order_id, customer)
    try:
        order_service.cancel(db, order, payload.reason)
    except OrderingError as exc:
        raise to_http(exc)
    return crud.get_order(db, order.id)


@router.post("/{order_id}/reorder", response_model=schemas.ReorderResult)
def reorder(order_id: uuid.UUID, db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    order = _owned_order(db, order_id, customer)
    result = order_service.reorder(db, customer, order)
    return schemas.ReorderResult(
        cart_id=result["cart"].id,
        items_added=result["items_added"],
        skipped=result["skipped"],
    )
