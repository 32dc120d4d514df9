"""Promotion administration, bundle specials ("combinados") included."""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ordering import audit
from ordering.api.deps import require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http
from ordering.utils.choices import PromotionTypeEnum

router = APIRouter(prefix="/admin/promotions", tags=["admin-promotions"])


@router.get("", response_model=List[schemas.Promotion])
def list_promotions(
    type: Optional[PromotionTypeEnum] = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.promotions.view")),
):
    return crud.list_promotions(
        db,
        promotion_type=type.value if type is not None else None,
        active_only=active_only,
        skip=skip,
        limit=limit,
    )


@router.get("/{promotion_id}", response_model=schemas.Promotion)
def get_promotion(
    promotion_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.promotions.view")),
):
    promotion = crud.get_promotion(db, promotion_id)
    if promotion is None:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return promotion


@router.post("", response_model=schemas.Promotion, status_code=status.HTTP_201_CREATED)
def create_promotion(
    payload: schemas.PromotionCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.promotions.create")),
):
    try:
        promotion = crud.create_promotion(db, payload)
    except OrderingError as exc:
        db.rollback()
        raise to_http(exc)
    audit.log_promotion(db, actor_user_id=user.id, promotion_id=promotion.id,
                        action=audit.AuditAction.PROMOTION_CREATE, name=promotion.name,
                        metadata={"type": promotion.type})
    return promotion


@router.put("/{promotion_id}", response_model=schemas.Promotion)
def update_promotion(
    promotion_id: uuid.UUID,
    payload: schemas.PromotionUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.promotions.edit")),
):
    try:
        promotion = crud.update_promotion(db, promotion_id, payload)
    except OrderingError as exc:
        db.rollback()
        raise to_http(exc)
    if promotion is None:
        raise HTTPException(status_code=404, detail="Promotion not found")
    audit.log_promotion(db, actor_user_id=user.id, promotion_id=promotion.id,
                        action=audit.AuditAction.PROMOTION_UPDATE, name=promotion.name)
    return promotion


@router.post("/{promotion_id}/toggle", response_model=schemas.Promotion)
def toggle_promotion(
    promotion_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.promotions.edit")),
):
    promotion = crud.toggle_promotion(db, promotion_id)
    if promotion is None:
        raise HTTPException(status_code=404, detail="Promotion not found")
    audit.log_promotion(db, actor_user_id=user.id, promotion_id=promotion.id,
                        action=audit.AuditAction.PROMOTION_TOGGLE, name=promotion.name,
                        metadata={"is_active": promotion.is_active})
    return promotion


@router.delete("/{promotion_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_promotion(
    promotion_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.promotions.delete")),
):
    if not crud.delete_promotion(db, promotion_id):
        raise HTTPException(status_code=404, detail="Promotion not found")
    audit.log_promotion(db, actor_user_id=user.id, promotion_id=promotion_id,
                        action=audit.AuditAction.PROMOTION_DELETE)
    return None
