"""
Customer cart endpoints.

Every response carries the cart plus a freshly computed summary so clients
never show stale discounts.
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ordering.api.deps import get_current_customer
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http
from ordering.services import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


def _with_summary(db: Session, cart: models.Cart) -> schemas.CartWithSummary:
    db.refresh(cart)
    return schemas.CartWithSummary(
        cart=schemas.Cart.model_validate(cart),
        summary=schemas.CartSummary.model_validate(cart_service.get_cart_summary(db, cart)),
    )


@router.get("", response_model=schemas.CartWithSummary)
def get_cart(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    cart = cart_service.get_or_create_cart(db, customer)
    return _with_summary(db, cart)


@router.delete("", response_model=schemas.CartWithSummary)
def clear_cart(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    cart = cart_service.get_or_create_cart(db, customer)
    cart_service.clear_cart(db, cart)
    return _with_summary(db, cart)


@router.post("/items", response_model=schemas.CartWithSummary, status_code=status.HTTP_201_CREATED)
def add_item(
    payload: schemas.CartItemAdd,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    cart = cart_service.get_or_create_cart(db, customer)
    try:
        cart_service.add_item(db, cart, payload)
    except OrderingError as exc:
        raise to_http(exc)
    return _with_summary(db, cart)


@router.patch("/items/{item_id}", response_model=schemas.CartWithSummary)
def update_item(
    item_id: uuid.UUID,
    payload: schemas.CartItemUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    cart = cart_service.get_or_create_cart(db, customer)
    try:
        item = cart_service.get_item_owned(db, cart, item_id)
        cart_service.update_item(db, item, payload)
    except OrderingError as exc:
        raise to_http(exc)
    return _with_summary(db, cart)


@router.delete("/items/{item_id}", response_model=schemas.CartWithSummary)
def remove_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    cart = cart_service.get_or_create_cart(db, customer)
    try:
        item = cart_service.get_item_owned(db, cart, item_id)
    except OrderingError as exc:
        raise to_http(exc)
    cart_service.remove_item(db, item)
    return _with_summary(db, cart)


@router.put("/restaurant", response_model=schemas.CartWithSummary)
def set_restaurant(
    payload: schemas.CartRestaurantUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    restaurant = crud.get_restaurant(db, payload.restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    cart = cart_service.get_or_create_cart(db, customer)
    cart_service.update_restaurant(db, cart, restaurant)
    return _with_summary(db, cart)


@router.put("/service-type", response_model=schemas.CartWithSummary)
def set_service_type(
    payload: schemas.CartServiceTypeUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    cart = cart_service.get_or_create_cart(db, customer)
    zone = payload.zone.value if payload.zone is not None else None
    cart_service.update_service_type(db, cart, payload.service_type.value, zone)
    return _with_summary(db, cart)


@router.put("/delivery-address", response_model=schemas.CartWithSummary)
def set_delivery_address(
    payload: schemas.CartDeliveryAddressUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    cart = cart_service.get_or_create_cart(db, customer)
    try:
        cart_service.update_delivery_address(db, cart, payload.delivery_address_id)
    except OrderingError as exc:
        raise to_http(exc)
    return _with_summary(db, cart)


@router.get("/validate", response_model=schemas.CartValidation)
def validate(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    cart = cart_service.get_or_create_cart(db, customer)
    return cart_service.validate_cart(db, cart)
