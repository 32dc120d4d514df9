"""
Customer self-service: profile, password and account deletion, loyalty
balance, rewards and redemption, favorites, addresses, NITs and devices.
"""
import logging
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ordering.api.deps import get_current_customer, get_current_customer_token
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http
from ordering.services import points_service
from ordering.utils.choices import ITEM_COMBO, ITEM_PRODUCT
from ordering.utils.token_crypto import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["me"])


@router.get("", response_model=schemas.Customer)
def get_profile(customer: models.Customer = Depends(get_current_customer)):
    return customer


@router.patch("", response_model=schemas.Customer)
def update_profile(
    payload: schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    return crud.update_customer(db, customer, payload)


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: schemas.PasswordChange,
    db: Session = Depends(get_db),
    customer_token=Depends(get_current_customer_token),
):
    """Set or change the password; every other session of the customer is signed out."""
    customer, token = customer_token
    if customer.password_hash and not verify_password(payload.current_password or "", customer.password_hash):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Current password is incorrect")
    crud.set_customer_password(db, customer, payload.password)
    crud.revoke_all_customer_tokens(db, customer_id=customer.id, keep_id=token.id)
    return None


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    crud.revoke_all_customer_tokens(db, customer_id=customer.id)
    crud.soft_delete_customer(db, customer)
    logger.info("Customer %s deleted their account", customer.id)
    return None


@router.get("/points", response_model=schemas.PointsBalance)
def get_points(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return points_service.balance(db, customer)


@router.get("/points/rewards", response_model=schemas.RewardList)
def list_rewards(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    rewards = points_service.list_rewards(db)
    return {"data": rewards, "total": len(rewards)}


@router.post("/points/redeem", response_model=schemas.RedeemResult)
def redeem_points(
    payload: schemas.RedeemRequest,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    try:
        tx = points_service.redeem_points(
            db, customer, order_id=payload.order_id, points=payload.points_to_redeem
        )
    except OrderingError as exc:
        raise to_http(exc)
    return {"transaction": tx, "points": customer.points, "customer_type": customer.customer_type}


# Favorites

def _favorite_out(favorite: models.CustomerFavorite) -> dict:
    item = favorite.product if favorite.product_id is not None else favorite.combo
    return {
        "id": favorite.id,
        "favorable_type": favorite.favorable_type,
        "favorable_id": favorite.favorable_id,
        "name": item.name if item is not None else None,
        "created_at": favorite.created_at,
    }


@router.get("/favorites", response_model=List[schemas.Favorite])
def list_favorites(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return [_favorite_out(f) for f in crud.list_favorites(db, customer.id)]


@router.post("/favorites", response_model=schemas.Favorite)
def add_favorite(
    payload: schemas.FavoriteCreate,
    response: Response,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    if payload.favorable_type == ITEM_PRODUCT:
        item = crud.get_product(db, payload.favorable_id)
    else:
        item = crud.get_combo(db, payload.favorable_id)
    if item is None or not item.is_active:
        raise HTTPException(status_code=404, detail="Item not found")
    favorite, created = crud.add_favorite(
        db, customer_id=customer.id, kind=payload.favorable_type, item_id=payload.favorable_id
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return _favorite_out(favorite)


@router.delete("/favorites/{favorable_type}/{favorable_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(
    favorable_type: str,
    favorable_id: uuid.UUID,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    if favorable_type not in (ITEM_PRODUCT, ITEM_COMBO):
        raise HTTPException(status_code=422, detail="Invalid favorite type")
    favorite = crud.get_favorite(db, customer_id=customer.id, kind=favorable_type, item_id=favorable_id)
    if favorite is None:
        raise HTTPException(status_code=404, detail="Favorite not found")
    crud.delete_favorite(db, favorite)
    return None


# Addresses

@router.get("/addresses", response_model=List[schemas.Address])
def list_addresses(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return crud.list_addresses(db, customer.id)


@router.post("/addresses", response_model=schemas.Address, status_code=status.HTTP_201_CREATED)
def create_address(
    payload: schemas.AddressCreate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    return crud.create_address(db, customer.id, payload)


def _owned_address(db: Session, address_id: uuid.UUID, customer: models.Customer) -> models.CustomerAddress:
    address = crud.get_address_owned(db, address_id=address_id, customer_id=customer.id)
    if address is None:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


@router.put("/addresses/{address_id}", response_model=schemas.Address)
def update_address(
    address_id: uuid.UUID,
    payload: schemas.AddressUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    return crud.update_address(db, _owned_address(db, address_id, customer), payload)


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_address(
    address_id: uuid.UUID,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    crud.delete_address(db, _owned_address(db, address_id, customer))
    return None


# NITs

@router.get("/nits", response_model=List[schemas.Nit])
def list_nits(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return crud.list_nits(db, customer.id)


@router.post("/nits", response_model=schemas.Nit, status_code=status.HTTP_201_CREATED)
def create_nit(
    payload: schemas.NitCreate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    return crud.create_nit(db, customer.id, payload)


def _owned_nit(db: Session, nit_id: uuid.UUID, customer: models.Customer) -> models.CustomerNit:
    nit = crud.get_nit_owned(db, nit_id=nit_id, customer_id=customer.id)
    if nit is None:
        raise HTTPException(status_code=404, detail="NIT not found")
    return nit


@router.put("/nits/{nit_id}", response_model=schemas.Nit)
def update_nit(
    nit_id: uuid.UUID,
    payload: schemas.NitUpdate,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    return crud.update_nit(db, _owned_nit(db, nit_id, customer), payload)


@router.delete("/nits/{nit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_nit(
    nit_id: uuid.UUID,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    crud.delete_nit(db, _owned_nit(db, nit_id, customer))
    return None


# Devices

@router.get("/devices", response_model=List[schemas.Device])
def list_devices(db: Session = Depends(get_db), customer: models.Customer = Depends(get_current_customer)):
    return crud.list_devices(db, customer.id)


@router.post("/devices", response_model=schemas.Device)
def register_device(
    payload: schemas.DeviceRegister,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    return crud.upsert_device(
        db,
        customer_id=customer.id,
        fcm_token=payload.fcm_token,
        device_identifier=payload.device_identifier,
        device_name=payload.device_name,
    )


@router.delete("/devices/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_device(
    device_id: uuid.UUID,
    db: Session = Depends(get_db),
    customer: models.Customer = Depends(get_current_customer),
):
    device = next((d for d in crud.list_devices(db, customer.id) if d.id == device_id), None)
    if device is None:
        raise HTTPException(status_code=404, detail="Device not found")
    crud.deactivate_device(db, device)
    return None
