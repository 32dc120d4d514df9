"""Staff-side order operations: status changes, driver assignment, listings."""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ordering import audit
from ordering.db import models
from ordering.db.repositories import orders as orders_repo
from ordering.db.repositories import users as users_repo
from ordering.errors import InvalidTransition, NotFoundError, PermissionDenied, ValidationFailed
from ordering.services import order_service
from ordering.utils.choices import CHANGED_BY_USER, ORDER_READY, SERVICE_DELIVERY

logger = logging.getLogger(__name__)


def ensure_restaurant_access(user: models.User, order: models.Order) -> None:
    """Staff bound to a restaurant only see that restaurant's orders."""
    if user.is_superadmin or user.restaurant_id is None:
        return
    if order.restaurant_id != user.restaurant_id:
        raise PermissionDenied("The order belongs to another restaurant")


def update_order_status(
    db: Session,
    order: models.Order,
    status: str,
    *,
    user: models.User,
    notes: Optional[str] = None,
) -> models.Order:
    ensure_restaurant_access(user, order)
    previous = order.status
    order = order_service.update_status(
        db,
        order,
        status,
        notes=notes,
        changed_by_type=CHANGED_BY_USER,
        changed_by_id=user.id,
    )
    audit.log_order(
        db,
        actor_user_id=user.id,
        order_id=order.id,
        action=audit.AuditAction.ORDER_STATUS_CHANGE,
        description=f"{order.order_number}: {previous} -> {status}",
        metadata={"previous_status": previous, "new_status": status},
    )
    return order


def assign_driver(db: Session, order: models.Order, driver_id: uuid.UUID, *, user: models.User) -> models.Order:
    """Assign a driver to a delivery order that is ready to leave."""
    ensure_restaurant_access(user, order)
    if order.service_type != SERVICE_DELIVERY:
        raise ValidationFailed("Only delivery orders can have a driver")
    if order.status != ORDER_READY:
        raise InvalidTransition("A driver can only be assigned to orders that are ready")
    driver = users_repo.get_user(db, driver_id)
    if driver is None or not driver.is_driver or not driver.is_active:
        raise NotFoundError("Driver not found")
    if driver.restaurant_id is not None and driver.restaurant_id != order.restaurant_id:
        raise ValidationFailed("The driver works for another restaurant")

    order.driver_id = driver.id
    db.add(models.OrderStatusHistory(
        order_id=order.id,
        previous_status=order.status,
        new_status=order.status,
        changed_by_type=CHANGED_BY_USER,
        changed_by_id=user.id,
        notes=f"Motorista asignado: {driver.display_name or driver.email}",
    ))
    db.commit()
    db.refresh(order)
    logger.info("Driver %s assigned to order %s", driver.email, order.order_number)
    audit.log_order(
        db,
        actor_user_id=user.id,
        order_id=order.id,
        action=audit.AuditAction.ORDER_ASSIGN_DRIVER,
        metadata={"driver_id": driver.id},
    )
    return order


def list_orders(
    db: Session,
    *,
    user: models.User,
    restaurant_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    service_type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 20,
) -> Dict[str, Any]:
    if not user.is_superadmin and user.restaurant_id is not None:
        restaurant_id = user.restaurant_id
    rows, total, last_page = orders_repo.list_orders(
        db,
        restaurant_id=restaurant_id,
        status=status,
        service_type=service_type,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        per_page=per_page,
    )
    return {"items": rows, "total": total, "page": page, "per_page": per_page, "last_page": last_page}


def statistics(db: Session, *, user: models.User, restaurant_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
    if not user.is_superadmin and user.restaurant_id is not None:
        restaurant_id = user.restaurant_id
    return orders_repo.order_statistics(db, restaurant_id=restaurant_id)
