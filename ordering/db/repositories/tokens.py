"""
Repositories for customer access tokens.

Implements issue/lookup/revoke and last-used updates. Only the Argon2 hash of
the secret is stored; the full token string is returned once at issue time.
"""
from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ordering.db import models
from ordering.utils import token_crypto

DEFAULT_TOKEN_TTL_DAYS = 30


def _now() -> datetime:
    return datetime.now(timezone.utc)


def token_ttl_days() -> int:
    try:
        return max(1, int(os.getenv("CUSTOMER_TOKEN_TTL_DAYS", str(DEFAULT_TOKEN_TTL_DAYS))))
    except ValueError:
        return DEFAULT_TOKEN_TTL_DAYS


def create_token(
    db: Session,
    *,
    customer_id: uuid.UUID,
    device_id: Optional[uuid.UUID] = None,
) -> Tuple[models.CustomerAccessToken, str]:
    token_id, secret, full_token = token_crypto.generate_token()
    token = models.CustomerAccessToken(
        customer_id=customer_id,
        device_id=device_id,
        token_id=token_id,
        token_hash=token_crypto.hash_secret(secret),
        status="active",
        created_at=_now(),
        expires_at=_now() + timedelta(days=token_ttl_days()),
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    return token, full_token


def get_by_token_id(db: Session, *, token_id: str) -> Optional[models.CustomerAccessToken]:
    return (
        db.query(models.CustomerAccessToken)
        .filter(models.CustomerAccessToken.token_id == token_id)
        .first()
    )


def list_tokens(db: Session, *, customer_id: uuid.UUID) -> List[models.CustomerAccessToken]:
    return (
        db.query(models.CustomerAccessToken)
        .filter(models.CustomerAccessToken.customer_id == customer_id)
        .order_by(models.CustomerAccessToken.created_at.desc())
        .all()
    )


def revoke_token(db: Session, *, token: models.CustomerAccessToken) -> None:
    if token.status != "revoked":
        token.status = "revoked"
        token.revoked_at = _now()
        db.commit()


def revoke_all_for_customer(db: Session, *, customer_id: uuid.UUID, keep_id: Optional[uuid.UUID] = None) -> int:
    count = 0
    for token in list_tokens(db, customer_id=customer_id):
        if token.status == "active" and token.id != keep_id:
            token.status = "revoked"
            token.revoked_at = _now()
            count += 1
    db.commit()
    return count


def mark_used_now(db: Session, *, token: models.CustomerAccessToken) -> None:
    token.last_used_at = _now()
    try:
        db.commit()
    except Exception:
        db.rollback()
