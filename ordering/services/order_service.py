"""
Order lifecycle for customers: checkout from the cart, status transitions,
cancellation, reorder and order queries.

Checkout runs in one database transaction: the order number counter row is
locked, the cart summary is recomputed, applied promotions are re-checked and
the order with its items, promotions and first history entry is written
before the cart is marked as converted. Push notifications go out after the
commit and never fail the request.
"""
from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ordering.db import models, schemas
from ordering.db.repositories import customers as customers_repo
from ordering.db.repositories import orders as orders_repo
from ordering.db.repositories import promotions as promotions_repo
from ordering.db.repositories import restaurants as restaurants_repo
from ordering.errors import (
    InvalidTransition,
    MinimumOrderNotMet,
    NotFoundError,
    OrderingError,
    PromotionExpired,
    RestaurantClosed,
    ValidationFailed,
)
from ordering.services import cart_service, points_service, pricing, promotion_rules
from ordering.services.order_notifier import OrderNotifier
from ordering.services.order_number import next_order_number
from ordering.utils.choices import (
    CART_CONVERTED,
    CHANGED_BY_CUSTOMER,
    CHANGED_BY_SYSTEM,
    ORDER_CANCELLED,
    ORDER_COMPLETED,
    ORDER_DELIVERED,
    ORDER_OUT_FOR_DELIVERY,
    ORDER_PENDING,
    ORDER_PREPARING,
    ORDER_READY,
    ORDER_REFUNDED,
    PAYMENT_PENDING,
    PROMO_BUNDLE,
    PROMO_DAILY_SPECIAL,
    PROMO_PERCENTAGE,
    PROMO_TWO_FOR_ONE,
    SERVICE_DELIVERY,
    SERVICE_PICKUP,
)
from ordering.utils.money import ZERO, money, to_decimal
from ordering.utils.runtime import ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_PICKUP_MINUTES = 30
DEFAULT_DELIVERY_MINUTES = 45
SCHEDULE_GRACE = timedelta(minutes=2)

_BASE_TRANSITIONS: Dict[str, tuple] = {
    ORDER_PENDING: (ORDER_PREPARING, ORDER_CANCELLED),
    ORDER_PREPARING: (ORDER_READY, ORDER_CANCELLED),
    ORDER_COMPLETED: (),
    ORDER_CANCELLED: (),
    ORDER_REFUNDED: (),
}
_PICKUP_TRANSITIONS = {
    ORDER_READY: (ORDER_COMPLETED, ORDER_CANCELLED),
}
_DELIVERY_TRANSITIONS = {
    ORDER_READY: (ORDER_OUT_FOR_DELIVERY, ORDER_CANCELLED),
    ORDER_OUT_FOR_DELIVERY: (ORDER_DELIVERED, ORDER_CANCELLED),
    ORDER_DELIVERED: (ORDER_COMPLETED,),
}


def allowed_transitions(current: str, service_type: str) -> tuple:
    transitions = dict(_BASE_TRANSITIONS)
    transitions.update(_PICKUP_TRANSITIONS if service_type == SERVICE_PICKUP else _DELIVERY_TRANSITIONS)
    return transitions.get(current, ())


def can_transition(current: str, new: str, service_type: str) -> bool:
    return new in allowed_transitions(current, service_type)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

def _address_snapshot(address: models.CustomerAddress) -> Dict[str, Any]:
    return {
        "id": str(address.id),
        "label": address.label,
        "address_line": address.address_line,
        "latitude": str(address.latitude),
        "longitude": str(address.longitude),
        "delivery_notes": address.delivery_notes,
    }


def _product_snapshot(item: models.CartItem) -> Optional[Dict[str, Any]]:
    if item.is_combinado and item.combinado is not None:
        return {
            "combinado_id": str(item.combinado_id),
            "name": item.combinado.name,
            "description": item.combinado.description,
        }
    if item.is_combo and item.combo is not None:
        return {
            "combo_id": str(item.combo_id),
            "name": item.combo.name,
            "description": item.combo.description,
            "items": [
                {
                    "product_id": str(ci.product_id) if ci.product_id else None,
                    "product_name": ci.product.name if ci.product else None,
                    "variant_id": str(ci.variant_id) if ci.variant_id else None,
                    "variant_name": ci.variant.name if ci.variant else None,
                    "is_choice_group": ci.is_choice_group,
                    "choice_label": ci.choice_label,
                    "quantity": ci.quantity,
                }
                for ci in item.combo.items
            ],
        }
    if item.product is not None:
        product = item.product
        return {
            "product_id": str(product.id),
            "name": product.name,
            "description": product.description,
            "category_id": str(product.category_id) if product.category_id else None,
            "category": product.category.name if product.category else None,
            "variant_id": str(item.variant_id) if item.variant_id else None,
            "variant": item.variant.name if item.variant else None,
        }
    return None


def _check_applied_promotions(db: Session, item_discounts: Dict[str, Dict[str, Any]], moment: datetime) -> None:
    checked = set()
    for discount in item_discounts.values():
        promo = discount.get("applied_promotion")
        if not promo or discount["discount_amount"] <= 0:
            continue
        promotion_id = promo.get("id")
        if promotion_id is None or promotion_id in checked:
            continue
        promotion = promotions_repo.get_promotion(db, promotion_id)
        if promotion is None or not promotion_rules.is_bundle_valid_now(promotion, moment):
            raise PromotionExpired(f"The promotion '{promo['name']}' is no longer valid")
        checked.add(promotion_id)


def _promotion_description(promo: Dict[str, Any], count: int) -> str:
    if promo["type"] == PROMO_TWO_FOR_ONE:
        return f"2x1 aplicado a {count} item(s)"
    if promo["type"] == PROMO_PERCENTAGE:
        return f"{promo.get('value')} de descuento en {count} item(s)"
    if promo["type"] == PROMO_BUNDLE:
        return f"Combinado {promo['name']}"
    if promo["type"] == PROMO_DAILY_SPECIAL:
        return f"Sub del Día en {count} item(s)"
    return f"Descuento en {count} item(s)"


def _order_promotions(item_discounts: Dict[str, Dict[str, Any]]) -> List[models.OrderPromotion]:
    grouped: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
    for discount in item_discounts.values():
        promo = discount.get("applied_promotion")
        if not promo or discount["discount_amount"] <= 0:
            continue
        key = (promo.get("id"), promo["type"])
        group = grouped.setdefault(key, {"promo": promo, "amount": ZERO, "count": 0})
        group["amount"] += discount["discount_amount"]
        group["count"] += 1
    return [
        models.OrderPromotion(
            promotion_id=group["promo"].get("id"),
            promotion_type=group["promo"]["type"],
            promotion_name=group["promo"]["name"],
            discount_amount=money(group["amount"]),
            description=_promotion_description(group["promo"], group["count"]),
        )
        for group in grouped.values()
    ]


def _promotion_snapshot(discount: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    promo = discount.get("applied_promotion")
    if not promo:
        return None
    return {
        "id": str(promo["id"]) if promo.get("id") else None,
        "name": promo["name"],
        "type": promo["type"],
        "value": promo.get("value"),
        "discount_amount": str(discount["discount_amount"]),
        "original_price": str(discount["original_price"]),
        "final_price": str(discount["final_price"]),
        "is_daily_special": bool(discount.get("is_daily_special")),
    }


def _scheduled_time(value: Optional[datetime], now: datetime, default_minutes: int) -> datetime:
    if value is None:
        return now + timedelta(minutes=default_minutes)
    scheduled = ensure_utc(value)
    if scheduled < now - SCHEDULE_GRACE:
        raise ValidationFailed("The selected time is no longer available. Please choose a new time.")
    return scheduled


def create_from_cart(
    db: Session,
    customer: models.Customer,
    cart: models.Cart,
    payload: schemas.OrderCreate,
    moment: Optional[datetime] = None,
    notifier: Optional[OrderNotifier] = None,
) -> models.Order:
    now = ensure_utc(moment) or models.now_utc()

    validation = cart_service.validate_cart(db, cart)
    if not validation["valid"]:
        raise ValidationFailed("The cart is not valid", validation["messages"])

    restaurant = restaurants_repo.get_restaurant(db, cart.restaurant_id) if cart.restaurant_id else None
    if restaurant is None:
        raise ValidationFailed("Select a restaurant before placing the order")

    service_type = cart.service_type or SERVICE_PICKUP
    summary = cart_service.get_cart_summary(db, cart, now)
    minimum = to_decimal(restaurant.minimum_order_amount)
    if minimum > 0 and summary["total"] < minimum:
        raise MinimumOrderNotMet(
            f"The minimum order at {restaurant.name} is Q{money(minimum):.2f}; the order total is Q{summary['total']:.2f}"
        )

    if not restaurant.can_accept_orders_now(service_type, now):
        last = restaurant.last_order_time(service_type, now)
        detail = f"{restaurant.name} is not accepting {service_type} orders right now"
        if last:
            detail += f" (last order at {last})"
        raise RestaurantClosed(detail)

    pickup_minutes = restaurant.estimated_pickup_time or DEFAULT_PICKUP_MINUTES
    delivery_minutes = restaurant.estimated_delivery_time or DEFAULT_DELIVERY_MINUTES
    estimated_minutes = pickup_minutes if service_type == SERVICE_PICKUP else delivery_minutes
    scheduled_for = _scheduled_time(payload.scheduled_for, now, estimated_minutes)

    address = None
    if service_type == SERVICE_DELIVERY:
        address_id = payload.delivery_address_id or cart.delivery_address_id
        if address_id is None:
            raise ValidationFailed("A delivery address is required for delivery orders")
        address = customers_repo.get_address_owned(db, address_id=address_id, customer_id=customer.id)
        if address is None:
            raise NotFoundError("Address not found")

    if payload.nit_id is not None and customers_repo.get_nit_owned(db, nit_id=payload.nit_id, customer_id=customer.id) is None:
        raise NotFoundError("NIT not found")

    try:
        order_number = next_order_number(db, restaurant, now)
        summary = cart_service.get_cart_summary(db, cart, now)
        item_discounts = summary["item_discounts"]
        _check_applied_promotions(db, item_discounts, now)

        order = models.Order(
            order_number=order_number,
            customer_id=customer.id,
            restaurant_id=restaurant.id,
            service_type=service_type,
            zone=cart.zone,
            delivery_address_id=address.id if address else None,
            delivery_address_snapshot=_address_snapshot(address) if address else None,
            subtotal=summary["subtotal"],
            discount_total=summary["discounts"],
            delivery_fee=summary["delivery_fee"],
            total=summary["total"],
            status=ORDER_PENDING,
            payment_method=payload.payment_method.value,
            payment_status=PAYMENT_PENDING,
            points_earned=points_service.calculate_points(db, summary["total"], customer),
            nit_id=payload.nit_id,
            scheduled_for=scheduled_for,
            estimated_ready_at=now + timedelta(minutes=estimated_minutes),
            notes=payload.notes,
            created_at=now,
        )

        for position, item in enumerate(cart.items):
            discount = item_discounts.get(str(item.id), {})
            options = pricing.item_options_total(db, item)
            snapshot = _product_snapshot(item)
            if snapshot is not None and (options["total"] > 0 or options["savings"] > 0):
                snapshot["options_breakdown"] = {
                    "items_total": str(options["total"] + options["savings"]),
                    "bundle_discount": str(options["savings"]),
                    "final": str(options["total"]),
                }
            line_subtotal = money(to_decimal(item.subtotal) + options["total"] * int(item.quantity))
            order.items.append(models.OrderItem(
                product_id=item.product_id,
                variant_id=item.variant_id,
                combo_id=item.combo_id,
                combinado_id=item.combinado_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=line_subtotal,
                options_price=options["total"],
                discount_amount=discount.get("discount_amount", ZERO),
                final_price=discount.get("final_price", line_subtotal),
                selected_options=item.selected_options,
                combo_selections=item.combo_selections,
                product_snapshot=snapshot,
                promotion_snapshot=_promotion_snapshot(discount),
                notes=item.notes,
                # keep cart order when reading items back
                created_at=now + timedelta(microseconds=position),
            ))

        order.promotions.extend(_order_promotions(item_discounts))
        order.status_history.append(models.OrderStatusHistory(
            previous_status=None,
            new_status=ORDER_PENDING,
            changed_by_type=CHANGED_BY_CUSTOMER,
            changed_by_id=customer.id,
            notes="Orden creada",
            created_at=now,
        ))
        db.add(order)
        cart.status = CART_CONVERTED
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s created for customer %s (total %s)", order.order_number, customer.id, order.total)
    (notifier or OrderNotifier(db)).order_created(order)
    return order


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------

def update_status(
    db: Session,
    order: models.Order,
    new_status: str,
    *,
    notes: Optional[str] = None,
    changed_by_type: str = CHANGED_BY_SYSTEM,
    changed_by_id: Optional[uuid.UUID] = None,
    moment: Optional[datetime] = None,
    notifier: Optional[OrderNotifier] = None,
) -> models.Order:
    previous = order.status
    if not can_transition(previous, new_status, order.service_type):
        raise InvalidTransition(f"Invalid status transition: {previous} -> {new_status}")

    now = ensure_utc(moment) or models.now_utc()
    try:
        order.status = new_status
        if new_status == ORDER_READY:
            order.ready_at = now
        elif new_status == ORDER_DELIVERED:
            order.delivered_at = now
        elif new_status == ORDER_CANCELLED:
            order.cancelled_at = now
        elif new_status == ORDER_COMPLETED:
            customer = order.customer
            points_service.credit_points(db, customer, order, now)
            customer.last_purchase_at = now
        db.add(models.OrderStatusHistory(
            order_id=order.id,
            previous_status=previous,
            new_status=new_status,
            changed_by_type=changed_by_type,
            changed_by_id=changed_by_id,
            notes=notes,
            created_at=now,
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s moved %s -> %s by %s", order.order_number, previous, new_status, changed_by_type)
    (notifier or OrderNotifier(db)).status_changed(order, previous)
    return order


def cancel(
    db: Session,
    order: models.Order,
    reason: str,
    moment: Optional[datetime] = None,
    notifier: Optional[OrderNotifier] = None,
) -> models.Order:
    """Customer cancellation; only pending or preparing orders can be cancelled."""
    if not order.can_be_cancelled:
        raise InvalidTransition("The order can no longer be cancelled")
    order.cancellation_reason = reason
    return update_status(
        db,
        order,
        ORDER_CANCELLED,
        notes=f"Cancelada: {reason}",
        changed_by_type=CHANGED_BY_CUSTOMER,
        changed_by_id=order.customer_id,
        moment=moment,
        notifier=notifier,
    )


# ---------------------------------------------------------------------------
# Reorder and queries
# ---------------------------------------------------------------------------

def _option_ids(options: Optional[List[Dict[str, Any]]]) -> List[str]:
    return [opt["option_id"] for opt in options or [] if opt.get("option_id")]


def _line_payload(item: models.OrderItem) -> schemas.CartItemAdd:
    selections = [
        {
            "combo_item_id": sel["combo_item_id"],
            "product_id": sel["product_id"],
            "variant_id": sel.get("variant_id"),
            "selected_options": _option_ids(sel.get("selected_options")),
        }
        for sel in item.combo_selections or []
    ]
    return schemas.CartItemAdd(
        product_id=item.product_id if not (item.combo_id or item.combinado_id) else None,
        variant_id=item.variant_id if not (item.combo_id or item.combinado_id) else None,
        combo_id=item.combo_id,
        combinado_id=item.combinado_id,
        quantity=item.quantity,
        selected_options=_option_ids(item.selected_options),
        combo_selections=selections,
        notes=item.notes,
    )


def _line_name(item: models.OrderItem) -> str:
    return (item.product_snapshot or {}).get("name") or "item"


def reorder(db: Session, customer: models.Customer, order: models.Order) -> Dict[str, Any]:
    """Refill the customer's cart with the lines of a past order.

    Lines that can no longer be added are skipped and reported.
    """
    cart = cart_service.get_or_create_cart(db, customer)
    cart_service.clear_cart(db, cart)
    cart.restaurant_id = order.restaurant_id
    cart.service_type = order.service_type
    cart.zone = order.zone
    db.commit()

    added = 0
    skipped: List[str] = []
    for item in order.items:
        if not (item.product_id or item.combo_id or item.combinado_id):
            skipped.append(f"'{_line_name(item)}' is no longer on the menu")
            continue
        try:
            cart_service.add_item(db, cart, _line_payload(item))
            added += 1
        except (OrderingError, ValidationError) as exc:
            db.rollback()
            reason = exc.detail if isinstance(exc, OrderingError) else "invalid selection"
            skipped.append(f"'{_line_name(item)}' could not be added: {reason}")
    db.refresh(cart)
    logger.info("Reorder of %s added %s line(s), skipped %s", order.order_number, added, len(skipped))
    return {"cart": cart, "items_added": added, "skipped": skipped}


def get_active_orders(db: Session, customer: models.Customer) -> List[models.Order]:
    return orders_repo.get_active_orders(db, customer.id)


def get_history(db: Session, customer: models.Customer, *, page: int = 1, per_page: int = 15):
    return orders_repo.get_history(db, customer.id, page=page, per_page=per_page)
