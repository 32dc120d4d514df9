"""
Public menu endpoints.

Listing, product and combo detail, price quotes and the promotions currently
in effect. No authentication required.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ordering.db import crud, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http
from ordering.services import pricing
from ordering.services.promotion_rules import is_bundle_valid_now, promotion_is_valid_now
from ordering.utils.choices import PROMO_BUNDLE, ServiceTypeEnum, ZoneEnum
from ordering.utils.feature_flags import promotions_enabled

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("", response_model=List[schemas.MenuCategory])
def get_menu(db: Session = Depends(get_db)):
    return crud.get_public_menu(db)


@router.get("/products/{product_id}", response_model=schemas.Product)
def get_product(product_id: uuid.UUID, db: Session = Depends(get_db)):
    product = crud.get_product(db, product_id)
    if product is None or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")
    data = schemas.Product.model_validate(product)
    return data.model_copy(update={
        "variants": [v for v in data.variants if v.is_active],
        "sections": [s for s in data.sections if s.is_active],
    })


@router.get("/products/{product_id}/price", response_model=schemas.PriceQuote)
def quote_product(
    product_id: uuid.UUID,
    category_id: uuid.UUID,
    variant_id: Optional[uuid.UUID] = None,
    zone: ZoneEnum = ZoneEnum.capital,
    service_type: ServiceTypeEnum = ServiceTypeEnum.pickup,
    quantity: int = Query(default=1, ge=1, le=99),
    option_ids: List[uuid.UUID] = Query(default=[]),
    db: Session = Depends(get_db),
):
    product = crud.get_product(db, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        return pricing.calculate_price(
            db,
            product=product,
            category_id=category_id,
            variant_id=variant_id,
            zone=zone.value,
            service_type=service_type.value,
            quantity=quantity,
            option_ids=option_ids,
        )
    except OrderingError as exc:
        raise to_http(exc)


@router.post("/sections/{section_id}/options-price", response_model=schemas.OptionsPrice)
def quote_section_options(section_id: uuid.UUID, payload: schemas.OptionsPriceRequest, db: Session = Depends(get_db)):
    section = crud.get_section(db, section_id)
    if section is None or not section.is_active:
        raise HTTPException(status_code=404, detail="Section not found")
    return pricing.calculate_options_price(section, payload.option_ids)


@router.get("/combos/{combo_id}", response_model=schemas.Combo)
def get_combo(combo_id: uuid.UUID, db: Session = Depends(get_db)):
    combo = crud.get_combo(db, combo_id)
    if combo is None or not combo.is_active:
        raise HTTPException(status_code=404, detail="Combo not found")
    return combo


@router.get("/promotions", response_model=List[schemas.Promotion])
def current_promotions(db: Session = Depends(get_db)):
    """Promotions in effect right now; empty while promotions are switched off."""
    if not promotions_enabled():
        return []
    current = []
    for promotion in crud.list_promotions(db, active_only=True, limit=500):
        valid = is_bundle_valid_now(promotion) if promotion.type == PROMO_BUNDLE else promotion_is_valid_now(promotion)
        if valid:
            current.append(promotion)
    return current
