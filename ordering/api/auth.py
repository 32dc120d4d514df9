"""
Authentication helpers and identity resolution.

Parses oauth2-proxy headers, normalizes emails, and upserts staff users while
supporting superadmin elevation via the ``ADMIN_EMAILS`` environment variable.
"""
import os
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ordering.db import crud, models


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def get_or_create_staff_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    user = crud.get_or_create_user(db, email=email, display_name=display_name)
    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if email in _admin_emails() and not user.is_superadmin:
        user.is_superadmin = True
        db.commit()
        db.refresh(user)
    return user
