"""Staff users and roles."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ordering.db import models, schemas


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(func.lower(models.User.email) == (email or "").strip().lower()).first()


def get_or_create_user(db: Session, *, email: str, display_name: Optional[str] = None) -> models.User:
    user = get_user_by_email(db, email)
    if user:
        return user
    user = models.User(email=email.strip().lower(), display_name=display_name or email.split("@")[0])
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def list_users(db: Session, *, drivers_only: bool = False, restaurant_id: Optional[uuid.UUID] = None) -> List[models.User]:
    query = db.query(models.User).filter(models.User.is_active.is_(True))
    if drivers_only:
        query = query.filter(models.User.is_driver.is_(True))
    if restaurant_id:
        query = query.filter(models.User.restaurant_id == restaurant_id)
    return query.order_by(models.User.email).all()


def touch_activity(db: Session, user: models.User) -> None:
    user.last_activity_at = datetime.now(timezone.utc)
    try:
        db.commit()
    except Exception:
        db.rollback()


# Roles

def get_role(db: Session, role_id: uuid.UUID) -> Optional[models.Role]:
    return (
        db.query(models.Role)
        .options(selectinload(models.Role.role_permissions).selectinload(models.RolePermission.permission))
        .filter(models.Role.id == role_id)
        .first()
    )


def get_role_by_name(db: Session, name: str) -> Optional[models.Role]:
    return db.query(models.Role).filter(models.Role.name == name).first()


def list_roles(db: Session) -> List[models.Role]:
    return db.query(models.Role).order_by(models.Role.name).all()


def _set_role_permissions(db: Session, role: models.Role, permission_ids: List[uuid.UUID]) -> None:
    valid = {p.id for p in db.query(models.Permission).filter(models.Permission.id.in_(permission_ids)).all()} if permission_ids else set()
    role.role_permissions = [models.RolePermission(permission_id=pid) for pid in permission_ids if pid in valid]


def create_role(db: Session, payload: schemas.RoleCreate, *, is_system: bool = False) -> models.Role:
    role = models.Role(name=payload.name, description=payload.description, is_system=is_system)
    db.add(role)
    db.flush()
    _set_role_permissions(db, role, list(dict.fromkeys(payload.permission_ids)))
    db.commit()
    db.refresh(role)
    return role


def update_role(db: Session, role: models.Role, payload: schemas.RoleUpdate) -> models.Role:
    data = payload.model_dump(exclude_unset=True, exclude={"permission_ids"})
    for key, value in data.items():
        if value is not None:
            setattr(role, key, value)
    if payload.permission_ids is not None:
        _set_role_permissions(db, role, list(dict.fromkeys(payload.permission_ids)))
    db.commit()
    db.refresh(role)
    return role


def delete_role(db: Session, role: models.Role) -> None:
    db.delete(role)
    db.commit()


def assign_role(db: Session, *, user_id: uuid.UUID, role_id: uuid.UUID) -> None:
    exists = (
        db.query(models.UserRole)
        .filter(models.UserRole.user_id == user_id, models.UserRole.role_id == role_id)
        .first()
    )
    if not exists:
        db.add(models.UserRole(user_id=user_id, role_id=role_id))
        db.commit()


def remove_role(db: Session, *, user_id: uuid.UUID, role_id: uuid.UUID) -> bool:
    deleted = (
        db.query(models.UserRole)
        .filter(models.UserRole.user_id == user_id, models.UserRole.role_id == role_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)


def role_permission_names(role: models.Role) -> List[str]:
    return sorted(rp.permission.name for rp in role.role_permissions if rp.permission is not None)


def user_permission_names(db: Session, user_id: uuid.UUID) -> set:
    rows = (
        db.query(models.Permission.name)
        .join(models.RolePermission, models.RolePermission.permission_id == models.Permission.id)
        .join(models.UserRole, models.UserRole.role_id == models.RolePermission.role_id)
        .filter(models.UserRole.user_id == user_id)
        .all()
    )
    return {name for (name,) in rows}
