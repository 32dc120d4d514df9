"""
Customer repository functions.

Customers, their addresses, NITs and devices, plus customer types and the
single-row points settings.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ordering.db import models, schemas
from ordering.utils import token_crypto


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Customers

def create_customer(db: Session, payload: schemas.CustomerRegister) -> models.Customer:
    customer = models.Customer(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=payload.email,
        phone=payload.phone,
        birth_date=payload.birth_date,
        password_hash=token_crypto.hash_password(payload.password),
        points=0,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def get_customer(db: Session, customer_id: uuid.UUID) -> Optional[models.Customer]:
    return (
        db.query(models.Customer)
        .filter(models.Customer.id == customer_id, models.Customer.deleted_at.is_(None))
        .first()
    )


def get_customer_by_email(db: Session, email: str) -> Optional[models.Customer]:
    return (
        db.query(models.Customer)
        .filter(func.lower(models.Customer.email) == (email or "").strip().lower(), models.Customer.deleted_at.is_(None))
        .first()
    )


def update_customer(db: Session, customer: models.Customer, payload: schemas.CustomerUpdate) -> models.Customer:
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer


def list_customers(db: Session, *, search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[models.Customer]:
    query = db.query(models.Customer).filter(models.Customer.deleted_at.is_(None))
    if search:
        like = f"%{search.strip().lower()}%"
        query = query.filter(
            func.lower(models.Customer.email).like(like)
            | func.lower(models.Customer.first_name).like(like)
            | func.lower(models.Customer.last_name).like(like)
            | func.lower(models.Customer.first_name + " " + models.Customer.last_name).like(like)
        )
    return query.order_by(models.Customer.created_at.desc()).offset(skip).limit(limit).all()


def set_password(db: Session, customer: models.Customer, password: str) -> models.Customer:
    customer.password_hash = token_crypto.hash_password(password)
    db.commit()
    db.refresh(customer)
    return customer


def soft_delete_customer(db: Session, customer: models.Customer) -> None:
    """Mark the customer deleted, free their email and deactivate their devices.

    Tokens are revoked by the caller through the token repository.
    """
    now = _now()
    customer.deleted_at = now
    customer.email = f"deleted-{customer.id}-{customer.email}"
    for device in customer.devices:
        device.is_active = False
    db.commit()


# Favorites

def list_favorites(db: Session, customer_id: uuid.UUID) -> List[models.CustomerFavorite]:
    return (
        db.query(models.CustomerFavorite)
        .filter(models.CustomerFavorite.customer_id == customer_id)
        .order_by(models.CustomerFavorite.created_at.desc())
        .all()
    )


def get_favorite(db: Session, *, customer_id: uuid.UUID, kind: str, item_id: uuid.UUID) -> Optional[models.CustomerFavorite]:
    column = models.CustomerFavorite.product_id if kind == "product" else models.CustomerFavorite.combo_id
    return (
        db.query(models.CustomerFavorite)
        .filter(models.CustomerFavorite.customer_id == customer_id, column == item_id)
        .first()
    )


def add_favorite(db: Session, *, customer_id: uuid.UUID, kind: str, item_id: uuid.UUID) -> Tuple[models.CustomerFavorite, bool]:
    """Return ``(favorite, created)``; an existing favorite is returned unchanged."""
    existing = get_favorite(db, customer_id=customer_id, kind=kind, item_id=item_id)
    if existing is not None:
        return existing, False
    favorite = models.CustomerFavorite(customer_id=customer_id, created_at=_now())
    if kind == "product":
        favorite.product_id = item_id
    else:
        favorite.combo_id = item_id
    db.add(favorite)
    db.commit()
    db.refresh(favorite)
    return favorite, True


def delete_favorite(db: Session, favorite: models.CustomerFavorite) -> None:
    db.delete(favorite)
    db.commit()


# Addresses

def list_addresses(db: Session, customer_id: uuid.UUID) -> List[models.CustomerAddress]:
    return (
        db.query(models.CustomerAddress)
        .filter(models.CustomerAddress.customer_id == customer_id)
        .order_by(models.CustomerAddress.is_default.desc(), models.CustomerAddress.created_at)
        .all()
    )


def get_address_owned(db: Session, *, address_id: uuid.UUID, customer_id: uuid.UUID) -> Optional[models.CustomerAddress]:
    return (
        db.query(models.CustomerAddress)
        .filter(models.CustomerAddress.id == address_id, models.CustomerAddress.customer_id == customer_id)
        .first()
    )


def _clear_default(db: Session, model, customer_id: uuid.UUID, keep_id: Optional[uuid.UUID] = None) -> None:
    query = db.query(model).filter(model.customer_id == customer_id, model.is_default.is_(True))
    if keep_id is not None:
        query = query.filter(model.id != keep_id)
    for row in query.all():
        row.is_default = False


def create_address(db: Session, customer_id: uuid.UUID, payload: schemas.AddressCreate) -> models.CustomerAddress:
    is_first = not list_addresses(db, customer_id)
    address = models.CustomerAddress(customer_id=customer_id, **payload.model_dump())
    if is_first:
        address.is_default = True
    if address.is_default:
        _clear_default(db, models.CustomerAddress, customer_id)
    db.add(address)
    db.commit()
    db.refresh(address)
    return address


def update_address(db: Session, address: models.CustomerAddress, payload: schemas.AddressUpdate) -> models.CustomerAddress:
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        setattr(address, key, value)
    if data.get("is_default"):
        _clear_default(db, models.CustomerAddress, address.customer_id, keep_id=address.id)
    db.commit()
    db.refresh(address)
    return address


def delete_address(db: Session, address: models.CustomerAddress) -> None:
    db.delete(address)
    db.commit()


# NITs

def list_nits(db: Session, customer_id: uuid.UUID) -> List[models.CustomerNit]:
    return (
        db.query(models.CustomerNit)
        .filter(models.CustomerNit.customer_id == customer_id)
        .order_by(models.CustomerNit.is_default.desc(), models.CustomerNit.created_at)
        .all()
    )


def get_nit_owned(db: Session, *, nit_id: uuid.UUID, customer_id: uuid.UUID) -> Optional[models.CustomerNit]:
    return (
        db.query(models.CustomerNit)
        .filter(models.CustomerNit.id == nit_id, models.CustomerNit.customer_id == customer_id)
        .first()
    )


def create_nit(db: Session, customer_id: uuid.UUID, payload: schemas.NitCreate) -> models.CustomerNit:
    nit = models.CustomerNit(customer_id=customer_id, **payload.model_dump())
    if not list_nits(db, customer_id):
        nit.is_default = True
    if nit.is_default:
        _clear_default(db, models.CustomerNit, customer_id)
    db.add(nit)
    db.commit()
    db.refresh(nit)
    return nit


def update_nit(db: Session, nit: models.CustomerNit, payload: schemas.NitUpdate) -> models.CustomerNit:
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        setattr(nit, key, value)
    if data.get("is_default"):
        _clear_default(db, models.CustomerNit, nit.customer_id, keep_id=nit.id)
    db.commit()
    db.refresh(nit)
    return nit


def delete_nit(db: Session, nit: models.CustomerNit) -> None:
    db.delete(nit)
    db.commit()


# Devices

def list_devices(db: Session, customer_id: uuid.UUID, *, active_only: bool = False) -> List[models.CustomerDevice]:
    query = db.query(models.CustomerDevice).filter(models.CustomerDevice.customer_id == customer_id)
    if active_only:
        query = query.filter(models.CustomerDevice.is_active.is_(True), models.CustomerDevice.fcm_token.isnot(None))
    return query.order_by(models.CustomerDevice.last_used_at.desc()).all()


def upsert_device(
    db: Session,
    *,
    customer_id: uuid.UUID,
    fcm_token: Optional[str] = None,
    device_identifier: Optional[str] = None,
    device_name: Optional[str] = None,
    count_login: bool = False,
) -> Optional[models.CustomerDevice]:
    """Find the device by identifier or FCM token and bind it to ``customer_id``.

    A token or identifier previously held by another customer moves to this one.
    """
    if not fcm_token and not device_identifier:
        return None
    device = None
    if device_identifier:
        device = (
            db.query(models.CustomerDevice)
            .filter(models.CustomerDevice.device_identifier == device_identifier)
            .first()
        )
    if device is None and fcm_token:
        device = db.query(models.CustomerDevice).filter(models.CustomerDevice.fcm_token == fcm_token).first()
    if device is None:
        device = models.CustomerDevice(customer_id=customer_id, device_identifier=device_identifier, login_count=0)
        db.add(device)
    elif fcm_token and device.fcm_token != fcm_token:
        # Release the token if a different row already holds it
        holder = db.query(models.CustomerDevice).filter(models.CustomerDevice.fcm_token == fcm_token).first()
        if holder is not None and holder is not device:
            holder.fcm_token = None
            holder.is_active = False
            db.flush()
    device.customer_id = customer_id
    if fcm_token:
        device.fcm_token = fcm_token
    if device_name:
        device.device_name = device_name
    device.is_active = True
    device.last_used_at = _now()
    if count_login:
        device.login_count = (device.login_count or 0) + 1
    db.commit()
    db.refresh(device)
    return device


def deactivate_device(db: Session, device: models.CustomerDevice) -> None:
    device.is_active = False
    db.commit()


# Customer types

def list_customer_types(db: Session, *, active_only: bool = False) -> List[models.CustomerType]:
    query = db.query(models.CustomerType)
    if active_only:
        query = query.filter(models.CustomerType.is_active.is_(True))
    return query.order_by(models.CustomerType.points_required).all()


def get_customer_type(db: Session, type_id: uuid.UUID) -> Optional[models.CustomerType]:
    return db.query(models.CustomerType).filter(models.CustomerType.id == type_id).first()


def customer_type_for_points(db: Session, points: int) -> Optional[models.CustomerType]:
    return models.CustomerType.for_points(db, points)


def create_customer_type(db: Session, payload: schemas.CustomerTypeCreate) -> models.CustomerType:
    row = models.CustomerType(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_customer_type(db: Session, type_id: uuid.UUID, payload: schemas.CustomerTypeUpdate) -> Optional[models.CustomerType]:
    row = get_customer_type(db, type_id)
    if not row:
        return None
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def delete_customer_type(db: Session, type_id: uuid.UUID) -> bool:
    row = get_customer_type(db, type_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True


# Points settings

def get_points_settings(db: Session) -> models.PointsSetting:
    """Return the settings row, creating it with defaults on first access."""
    row = db.query(models.PointsSetting).first()
    if row is None:
        row = models.PointsSetting(quetzales_per_point=10, rounding_threshold=0.7, expiration_months=6)
        db.add(row)
        db.flush()
    return row


def update_points_settings(db: Session, payload: schemas.PointsSettingUpdate) -> models.PointsSetting:
    row = get_points_settings(db)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row
