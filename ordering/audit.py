"""
Audit logging helpers and enums.

Centralized helpers to persist normalized audit records for staff-facing
mutations, with convenience wrappers per target type.
"""
from __future__ import annotations
import logging
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from ordering.db.repositories import audits as audits_repo

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    # Menu
    CATEGORY_CREATE = "category_create"
    CATEGORY_UPDATE = "category_update"
    CATEGORY_DELETE = "category_delete"
    PRODUCT_CREATE = "product_create"
    PRODUCT_UPDATE = "product_update"
    PRODUCT_DELETE = "product_delete"
    SECTION_CREATE = "section_create"
    SECTION_UPDATE = "section_update"
    SECTION_DELETE = "section_delete"
    COMBO_CREATE = "combo_create"
    COMBO_UPDATE = "combo_update"
    COMBO_DELETE = "combo_delete"
    MENU_REORDER = "menu_reorder"
    # Promotions
    PROMOTION_CREATE = "promotion_create"
    PROMOTION_UPDATE = "promotion_update"
    PROMOTION_TOGGLE = "promotion_toggle"
    PROMOTION_DELETE = "promotion_delete"
    # Restaurants
    RESTAURANT_CREATE = "restaurant_create"
    RESTAURANT_UPDATE = "restaurant_update"
    RESTAURANT_DELETE = "restaurant_delete"
    # Orders
    ORDER_STATUS_CHANGE = "order_status_change"
    ORDER_ASSIGN_DRIVER = "order_assign_driver"
    # Loyalty
    CUSTOMER_TYPE_CREATE = "customer_type_create"
    CUSTOMER_TYPE_UPDATE = "customer_type_update"
    CUSTOMER_TYPE_DELETE = "customer_type_delete"
    POINTS_SETTINGS_UPDATE = "points_settings_update"
    # Notifications
    NOTIFICATION_BROADCAST = "notification_broadcast"
    # Roles and permissions
    ROLE_CREATE = "role_create"
    ROLE_UPDATE = "role_update"
    ROLE_DELETE = "role_delete"
    PERMISSIONS_SYNC = "permissions_sync"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    description: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper.

    Ensures consistent schema and a single place for enrichment.
    """
    # Persist pure string values, not Enum reprs (avoid 'AuditAction.XYZ')
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    return audits_repo.create_audit_log(
        db,
        actor_user_id=actor_user_id,
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        description=description,
        metadata=_jsonable(metadata or {}),
    )


def safe_log(db: Session, **kwargs) -> None:
    """Best-effort :func:`log` for request handlers; failures are logged, never raised."""
    try:
        log(db, **kwargs)
    except Exception as exc:
        db.rollback()
        logger.warning("Failed to write audit log %s: %s", kwargs.get("action"), exc)


__all__ = ["AuditAction", "AuditStatus", "log", "safe_log"]


def log_menu(db: Session, *, actor_user_id: Optional[uuid.UUID], target_type: str, target_id: uuid.UUID,
             action: AuditAction, name: Optional[str] = None):
    return safe_log(
        db,
        action=action,
        target_type=target_type,
        target_id=target_id,
        actor_user_id=actor_user_id,
        metadata={"name": name} if name else None,
    )


def log_promotion(db: Session, *, actor_user_id: Optional[uuid.UUID], promotion_id: uuid.UUID,
                  action: AuditAction, name: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
    data = dict(metadata or {})
    if name:
        data["name"] = name
    return safe_log(
        db,
        action=action,
        target_type="promotion",
        target_id=promotion_id,
        actor_user_id=actor_user_id,
        metadata=data,
    )


def log_order(db: Session, *, actor_user_id: Optional[uuid.UUID], order_id: uuid.UUID, action: AuditAction,
              description: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
    return safe_log(
        db,
        action=action,
        target_type="order",
        target_id=order_id,
        actor_user_id=actor_user_id,
        description=description,
        metadata=metadata,
    )


def log_role(db: Session, *, actor_user_id: Optional[uuid.UUID], role_id: Optional[uuid.UUID], action: AuditAction,
             name: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
    data = dict(metadata or {})
    if name:
        data["name"] = name
    return safe_log(
        db,
        action=action,
        target_type="role",
        target_id=role_id,
        actor_user_id=actor_user_id,
        metadata=data,
    )


__all__.extend(["log_menu", "log_promotion", "log_order", "log_role"])
