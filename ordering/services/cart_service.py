"""
Cart management for customers.

Carts hold base unit prices only; promotions are computed on demand by
:mod:`ordering.services.promotion_application` when a summary is requested.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ordering.db import models, schemas
from ordering.db.repositories import customers as customers_repo
from ordering.db.repositories import menu as menu_repo
from ordering.db.repositories import promotions as promotions_repo
from ordering.errors import NotFoundError, ValidationFailed
from ordering.services import pricing, promotion_application, promotion_rules
from ordering.utils.choices import (
    CART_ACTIVE,
    PROMO_BUNDLE,
    SERVICE_DELIVERY,
    SERVICE_PICKUP,
    ZONE_CAPITAL,
)
from ordering.utils.money import ZERO, money, to_decimal
from ordering.utils.runtime import ensure_utc

logger = logging.getLogger(__name__)

CART_LIFETIME = timedelta(days=7)


def _now() -> datetime:
    return models.now_utc()


def get_or_create_cart(db: Session, customer: models.Customer) -> models.Cart:
    """Return the customer's active, unexpired cart, creating one when needed."""
    now = _now()
    carts = (
        db.query(models.Cart)
        .filter(models.Cart.customer_id == customer.id, models.Cart.status == CART_ACTIVE)
        .order_by(models.Cart.created_at.desc())
        .all()
    )
    for cart in carts:
        expires_at = ensure_utc(cart.expires_at)
        if expires_at is None or expires_at > now:
            return cart

    cart = models.Cart(
        customer_id=customer.id,
        service_type=SERVICE_PICKUP,
        zone=ZONE_CAPITAL,
        status=CART_ACTIVE,
        expires_at=now + CART_LIFETIME,
    )
    db.add(cart)
    db.commit()
    db.refresh(cart)
    return cart


def get_item_owned(db: Session, cart: models.Cart, item_id: uuid.UUID) -> models.CartItem:
    item = (
        db.query(models.CartItem)
        .filter(models.CartItem.id == item_id, models.CartItem.cart_id == cart.id)
        .first()
    )
    if item is None:
        raise NotFoundError("Cart item not found")
    return item


# ---------------------------------------------------------------------------
# Pricing helpers
# ---------------------------------------------------------------------------

def _zone_price(obj, zone: str, service_type: str) -> Optional[Decimal]:
    raw = obj.get_price(pricing.price_field(zone, service_type)) if obj is not None else None
    return to_decimal(raw) if raw is not None else None


def product_unit_price(product: models.Product, variant: Optional[models.ProductVariant], zone: str, service_type: str) -> Decimal:
    """Normal zone price of the variant, falling back to the product's own price."""
    price = _zone_price(variant, zone, service_type)
    if price is None:
        price = _zone_price(product, zone, service_type)
    return money(price or ZERO)


def combo_unit_price(combo: models.Combo, zone: str, service_type: str) -> Decimal:
    return money(_zone_price(combo, zone, service_type) or ZERO)


def combinado_unit_price(promotion: models.Promotion, zone: str) -> Decimal:
    return money(promotion_rules.bundle_price(promotion, zone) or ZERO)


def unit_price_for(item: models.CartItem, zone: str, service_type: str) -> Decimal:
    if item.is_combinado:
        return combinado_unit_price(item.combinado, zone) if item.combinado else ZERO
    if item.is_combo:
        return combo_unit_price(item.combo, zone, service_type) if item.combo else ZERO
    if item.product is None:
        return ZERO
    return product_unit_price(item.product, item.variant, zone, service_type)


def _reprice_items(cart: models.Cart) -> None:
    for item in cart.items:
        unit = unit_price_for(item, cart.zone, cart.service_type)
        item.unit_price = unit
        item.subtotal = money(unit * int(item.quantity))


# ---------------------------------------------------------------------------
# Selection resolution and validation
# ---------------------------------------------------------------------------

def _resolve_options(db: Session, option_ids: List[uuid.UUID]) -> List[Dict[str, Any]]:
    """Store picked options as name/price snapshots; repeated ids stay repeated."""
    if not option_ids:
        return []
    options = {opt.id: opt for opt in menu_repo.get_section_options(db, option_ids)}
    resolved = []
    for option_id in option_ids:
        option = options.get(option_id)
        if option is None:
            raise ValidationFailed("Selected option not found")
        resolved.append({
            "section_id": str(option.section_id),
            "option_id": str(option.id),
            "name": option.name,
            "price": str(money(option.price_modifier)),
        })
    return resolved


def _validate_group_selections(
    db: Session,
    groups,
    selections: List[schemas.ComboSelection],
    label: str,
) -> List[Dict[str, Any]]:
    """Check one selection per choice group and return the JSON to store.

    ``groups`` are combo items or bundle items: fixed lines plus choice groups
    whose ``options`` list the interchangeable product/variant pairs.
    """
    by_group: Dict[uuid.UUID, schemas.ComboSelection] = {}
    for selection in selections:
        if selection.combo_item_id in by_group:
            raise ValidationFailed(f"Duplicate selection for {label} item")
        by_group[selection.combo_item_id] = selection

    known = {group.id for group in groups}
    unknown = [sid for sid in by_group if sid not in known]
    if unknown:
        raise ValidationFailed(f"Selection does not belong to this {label}")

    stored = []
    messages = []
    for group in groups:
        selection = by_group.get(group.id)
        if group.is_choice_group:
            if selection is None:
                messages.append(f"Choose an option for '{group.choice_label}'")
                continue
            allowed = {(opt.product_id, opt.variant_id) for opt in group.options}
            allowed_products = {opt.product_id for opt in group.options if opt.variant_id is None}
            pair = (selection.product_id, selection.variant_id)
            if pair not in allowed and selection.product_id not in allowed_products:
                messages.append(f"Invalid option for '{group.choice_label}'")
                continue
        elif selection is not None and selection.product_id != group.product_id:
            messages.append(f"Fixed {label} item cannot be swapped")
            continue
        if selection is None:
            continue
        product = menu_repo.get_product(db, selection.product_id)
        if product is None or not product.is_active:
            messages.append(f"Selected product is not available in this {label}")
            continue
        stored.append({
            "combo_item_id": str(group.id),
            "product_id": str(selection.product_id),
            "variant_id": str(selection.variant_id) if selection.variant_id else None,
            "product_name": product.name,
            "selected_options": _resolve_options(db, selection.selected_options),
        })
    if messages:
        raise ValidationFailed(messages[0], messages)
    return stored


# ---------------------------------------------------------------------------
# Item operations
# ---------------------------------------------------------------------------

def add_item(db: Session, cart: models.Cart, payload: schemas.CartItemAdd) -> models.CartItem:
    """Add a product, combo or bundle-special line priced for the cart's zone and service."""
    item = models.CartItem(
        cart_id=cart.id,
        quantity=payload.quantity,
        notes=payload.notes,
    )

    if payload.combo_id is not None:
        combo = menu_repo.get_combo(db, payload.combo_id)
        if combo is None:
            raise NotFoundError("Combo not found")
        if not combo.is_active:
            raise ValidationFailed("The combo is not available")
        item.combo_id = combo.id
        item.combo_selections = _validate_group_selections(db, combo.items, payload.combo_selections, "combo")
        unit = combo_unit_price(combo, cart.zone, cart.service_type)
    elif payload.combinado_id is not None:
        promotion = promotions_repo.get_promotion(db, payload.combinado_id)
        if promotion is None or promotion.type != PROMO_BUNDLE:
            raise NotFoundError("Bundle special not found")
        if not promotion_rules.is_bundle_valid_now(promotion):
            raise ValidationFailed("The bundle special is not available right now")
        item.combinado_id = promotion.id
        item.combo_selections = _validate_group_selections(
            db, promotion.bundle_items, payload.combo_selections, "bundle"
        )
        unit = combinado_unit_price(promotion, cart.zone)
    else:
        product = menu_repo.get_product(db, payload.product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if not product.is_active:
            raise ValidationFailed("The product is not available")
        variant = None
        if payload.variant_id is not None:
            variant = menu_repo.get_variant(db, payload.variant_id)
            if variant is None or variant.product_id != product.id:
                raise ValidationFailed("The variant does not belong to the product")
            if not variant.is_active:
                raise ValidationFailed("The variant is not available")
        item.product_id = product.id
        item.variant_id = variant.id if variant else None
        item.selected_options = _resolve_options(db, payload.selected_options)
        unit = product_unit_price(product, variant, cart.zone, cart.service_type)

    item.unit_price = unit
    item.subtotal = money(unit * payload.quantity)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_item(db: Session, item: models.CartItem, payload: schemas.CartItemUpdate) -> models.CartItem:
    data = payload.model_dump(exclude_unset=True)
    cart = item.cart
    if data.get("quantity") is not None:
        unit = unit_price_for(item, cart.zone, cart.service_type)
        item.quantity = data["quantity"]
        item.unit_price = unit
        item.subtotal = money(unit * item.quantity)
    if data.get("selected_options") is not None:
        item.selected_options = _resolve_options(db, payload.selected_options)
    if "notes" in data:
        item.notes = data["notes"]
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, item: models.CartItem) -> None:
    db.delete(item)
    db.commit()


def clear_cart(db: Session, cart: models.Cart) -> None:
    for item in list(cart.items):
        db.delete(item)
    db.commit()
    db.refresh(cart)


# ---------------------------------------------------------------------------
# Cart settings
# ---------------------------------------------------------------------------

def update_restaurant(db: Session, cart: models.Cart, restaurant: models.Restaurant) -> models.Cart:
    """Pick a restaurant for pickup; zone follows the restaurant's price location."""
    cart.restaurant_id = restaurant.id
    cart.service_type = SERVICE_PICKUP
    cart.zone = restaurant.price_location or ZONE_CAPITAL
    cart.delivery_address_id = None
    _reprice_items(cart)
    db.commit()
    db.refresh(cart)
    return cart


def update_service_type(db: Session, cart: models.Cart, service_type: str, zone: Optional[str] = None) -> models.Cart:
    cart.service_type = service_type
    if zone:
        cart.zone = zone
    _reprice_items(cart)
    db.commit()
    db.refresh(cart)
    return cart


def update_delivery_address(db: Session, cart: models.Cart, address_id: uuid.UUID) -> models.Cart:
    address = customers_repo.get_address_owned(db, address_id=address_id, customer_id=cart.customer_id)
    if address is None:
        raise NotFoundError("Address not found")
    cart.delivery_address_id = address.id
    cart.service_type = SERVICE_DELIVERY
    _reprice_items(cart)
    db.commit()
    db.refresh(cart)
    return cart


def validate_cart(db: Session, cart: models.Cart) -> Dict[str, Any]:
    messages: List[str] = []
    if not cart.items:
        messages.append("The cart is empty")

    for item in cart.items:
        if item.is_combinado:
            promotion = item.combinado
            if promotion is None or promotion.deleted_at is not None:
                messages.append("A bundle special in the cart no longer exists")
            elif not promotion_rules.is_bundle_valid_now(promotion):
                messages.append(f"The bundle special '{promotion.name}' is no longer available")
            continue
        if item.is_combo:
            combo = item.combo
            if combo is None or combo.deleted_at is not None:
                messages.append("A combo in the cart no longer exists")
            elif not combo.is_active:
                messages.append(f"The combo '{combo.name}' is no longer available")
            elif any(ci.product is not None and not ci.product.is_active for ci in combo.items):
                messages.append(f"The combo '{combo.name}' has unavailable items")
            continue
        product = item.product
        if product is None:
            messages.append("A product in the cart no longer exists")
            continue
        if not product.is_active:
            messages.append(f"The product '{product.name}' is no longer available")
        if item.variant_id is not None:
            variant = item.variant
            if variant is None:
                messages.append(f"The variant of '{product.name}' no longer exists")
            elif not variant.is_active:
                messages.append(f"The variant '{variant.name}' of '{product.name}' is no longer available")

    return {"valid": not messages, "messages": messages}


def get_cart_summary(db: Session, cart: models.Cart, moment: Optional[datetime] = None) -> Dict[str, Any]:
    return promotion_application.cart_summary(db, cart, moment)
