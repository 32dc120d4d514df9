"""
API dependency helpers.

Resolves the staff user behind oauth2-proxy headers, enforces ``page.action``
permissions, and authenticates customers by bearer token.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ordering.api.auth import get_or_create_staff_user, resolve_identity_from_headers
from ordering.db import crud, models
from ordering.db.database import get_db
from ordering.utils.runtime import dev_mode_active, ensure_utc
from ordering.utils.token_crypto import parse_token, verify_secret

logger = logging.getLogger(__name__)

DEV_USER_EMAIL = "dev@localhost"


def get_current_user(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> models.User:
    """Return the staff user for the request; 401 without an identity."""
    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    if not email and dev_mode_active():
        user = get_or_create_staff_user(db, DEV_USER_EMAIL, "Development User")
        if not user.is_superadmin:
            user.is_superadmin = True
            db.commit()
            db.refresh(user)
        return user
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = get_or_create_staff_user(db, email, name)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is disabled")
    return user


def user_has_permission(db: Session, user: models.User, permission: str) -> bool:
    if user.is_superadmin:
        return True
    return permission in crud.user_permission_names(db, user.id)


def require_permission(permission: str) -> Callable[..., models.User]:
    """Dependency factory: the current staff user must hold ``permission``."""

    def _dependency(
        db: Session = Depends(get_db),
        user: models.User = Depends(get_current_user),
    ) -> models.User:
        if not user_has_permission(db, user, permission):
            logger.info("Permission denied: user=%s permission=%s", user.email, permission)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _dependency


def get_current_customer_token(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Tuple[models.Customer, models.CustomerAccessToken]:
    """Validate ``Authorization: Bearer ord_cat_...`` and load its customer."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    parsed = parse_token(authorization[7:].strip())
    if not parsed:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token format")
    token = crud.get_customer_token_by_token_id(db, token_id=parsed.token_id)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if token.status != "active":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token not active")
    if token.expires_at is not None and datetime.now(timezone.utc) > ensure_utc(token.expires_at):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    if not verify_secret(parsed.secret, token.token_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    customer = crud.get_customer(db, token.customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token customer")
    crud.mark_customer_token_used(db, token=token)
    return customer, token


def get_current_customer(
    customer_token: Tuple[models.Customer, models.CustomerAccessToken] = Depends(get_current_customer_token),
) -> models.Customer:
    return customer_token[0]
