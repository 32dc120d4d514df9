"""
Loyalty administration: customer types, points settings, point expiry, and
the customer directory.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ordering import audit
from ordering.api.deps import require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.services import points_service

router = APIRouter(prefix="/admin", tags=["admin-loyalty"])


def _log(db: Session, user: models.User, action: audit.AuditAction, target_type: str,
         target_id: Optional[uuid.UUID] = None, metadata=None):
    audit.safe_log(
        db,
        action=action,
        target_type=target_type,
        target_id=target_id,
        actor_user_id=user.id,
        metadata=metadata,
    )


# Customer types

@router.get("/customer-types", response_model=List[schemas.CustomerType])
def list_customer_types(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("customer-types.view")),
):
    return crud.list_customer_types(db)


@router.post("/customer-types", response_model=schemas.CustomerType, status_code=status.HTTP_201_CREATED)
def create_customer_type(
    payload: schemas.CustomerTypeCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("customer-types.create")),
):
    customer_type = crud.create_customer_type(db, payload)
    _log(db, user, audit.AuditAction.CUSTOMER_TYPE_CREATE, "customer_type", customer_type.id,
         {"name": customer_type.name})
    return customer_type


@router.put("/customer-types/{type_id}", response_model=schemas.CustomerType)
def update_customer_type(
    type_id: uuid.UUID,
    payload: schemas.CustomerTypeUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("customer-types.edit")),
):
    customer_type = crud.update_customer_type(db, type_id, payload)
    if customer_type is None:
        raise HTTPException(status_code=404, detail="Customer type not found")
    _log(db, user, audit.AuditAction.CUSTOMER_TYPE_UPDATE, "customer_type", customer_type.id,
         {"name": customer_type.name})
    return customer_type


@router.delete("/customer-types/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer_type(
    type_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("customer-types.delete")),
):
    if not crud.delete_customer_type(db, type_id):
        raise HTTPException(status_code=404, detail="Customer type not found")
    _log(db, user, audit.AuditAction.CUSTOMER_TYPE_DELETE, "customer_type", type_id)
    return None


# Points settings

@router.get("/points-settings", response_model=schemas.PointsSetting)
def get_points_settings(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("settings.view")),
):
    settings = crud.get_points_settings(db)
    db.commit()
    return settings


@router.put("/points-settings", response_model=schemas.PointsSetting)
def update_points_settings(
    payload: schemas.PointsSettingUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("settings.edit")),
):
    settings = crud.update_points_settings(db, payload)
    _log(db, user, audit.AuditAction.POINTS_SETTINGS_UPDATE, "points_settings", settings.id,
         payload.model_dump(exclude_unset=True))
    return settings


@router.post("/points/expire")
def expire_points(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("settings.edit")),
):
    return points_service.expire_points(db)


# Customers

@router.get("/customers", response_model=List[schemas.Customer])
def list_customers(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("customers.view")),
):
    return crud.list_customers(db, search=search, skip=skip, limit=limit)


@router.get("/customers/{customer_id}/points", response_model=schemas.PointsBalance)
def customer_points(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("customers.view")),
):
    customer = crud.get_customer(db, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return points_service.balance(db, customer)
