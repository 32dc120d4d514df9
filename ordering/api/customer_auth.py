"""
Customer authentication endpoints.

Register and login return a one-time ``ord_cat_...`` bearer token and bind the
calling device (FCM token) to the customer; logout revokes the token.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ordering.api.deps import get_current_customer_token
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.utils.token_crypto import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(db: Session, customer: models.Customer, device: Optional[models.CustomerDevice]) -> schemas.TokenCreateResponse:
    token, full_token = crud.create_customer_token(
        db, customer_id=customer.id, device_id=device.id if device is not None else None
    )
    return schemas.TokenCreateResponse(
        token=full_token,
        expires_at=token.expires_at,
        customer=schemas.Customer.model_validate(customer),
    )


@router.post("/register", response_model=schemas.TokenCreateResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.CustomerRegister, db: Session = Depends(get_db)):
    if crud.get_customer_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    customer = crud.create_customer(db, payload)
    device = crud.upsert_device(
        db,
        customer_id=customer.id,
        fcm_token=payload.fcm_token,
        device_identifier=payload.device_identifier,
        device_name=payload.device_name,
        count_login=True,
    )
    logger.info("Customer registered: %s", customer.email)
    return _issue_token(db, customer, device)


@router.post("/login", response_model=schemas.TokenCreateResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    customer = crud.get_customer_by_email(db, payload.email)
    if customer is None or not verify_password(payload.password, customer.password_hash or ""):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    device = crud.upsert_device(
        db,
        customer_id=customer.id,
        fcm_token=payload.fcm_token,
        device_identifier=payload.device_identifier,
        device_name=payload.device_name,
        count_login=True,
    )
    customer.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(customer)
    return _issue_token(db, customer, device)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    db: Session = Depends(get_db),
    customer_token = Depends(get_current_customer_token),
):
    _customer, token = customer_token
    crud.revoke_customer_token(db, token=token)
    return None


@router.get("/me", response_model=schemas.Customer)
def me(customer_token = Depends(get_current_customer_token)):
    customer, _token = customer_token
    return customer
