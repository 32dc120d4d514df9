"""
Promotion repository functions.

CRUD for promotions with their scoped items and bundle-special components,
and the candidate query used by promotion matching.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ordering.db import models, schemas
from ordering.errors import ValidationFailed
from ordering.utils.choices import PROMO_BUNDLE


def _build_items(items: List[schemas.PromotionItemCreate]) -> List[models.PromotionItem]:
    built = []
    for item in items:
        data = item.model_dump()
        data["validity_type"] = item.validity_type.value
        data["service_type"] = item.service_type.value if item.service_type else None
        built.append(models.PromotionItem(**data))
    return built


def _build_bundle_items(items: List[schemas.BundleItemCreate]) -> List[models.BundlePromotionItem]:
    errors: List[str] = []
    built: List[models.BundlePromotionItem] = []
    for position, item in enumerate(items):
        if item.is_choice_group:
            if not (item.choice_label or "").strip():
                errors.append(f"Item {position + 1}: a choice group needs a label")
            if len(item.options) < 2:
                errors.append(f"Item {position + 1}: a choice group needs at least two options")
        elif item.product_id is None:
            errors.append(f"Item {position + 1}: a fixed item needs a product")
        row = models.BundlePromotionItem(
            product_id=None if item.is_choice_group else item.product_id,
            variant_id=None if item.is_choice_group else item.variant_id,
            is_choice_group=item.is_choice_group,
            choice_label=item.choice_label,
            quantity=item.quantity,
            sort_order=item.sort_order or position,
        )
        row.options = [models.BundlePromotionItemOption(**opt.model_dump()) for opt in item.options]
        built.append(row)
    if errors:
        raise ValidationFailed("Invalid bundle items", errors)
    return built


def create_promotion(db: Session, payload: schemas.PromotionCreate) -> models.Promotion:
    data = payload.model_dump(exclude={"items", "bundle_items"})
    data["type"] = payload.type.value
    promotion = models.Promotion(**data)
    promotion.items = _build_items(payload.items)
    if payload.type.value == PROMO_BUNDLE:
        promotion.bundle_items = _build_bundle_items(payload.bundle_items)
    db.add(promotion)
    db.commit()
    db.refresh(promotion)
    return promotion


def get_promotion(db: Session, promotion_id: uuid.UUID) -> Optional[models.Promotion]:
    return (
        db.query(models.Promotion)
        .options(
            selectinload(models.Promotion.items),
            selectinload(models.Promotion.bundle_items).selectinload(models.BundlePromotionItem.options),
        )
        .filter(models.Promotion.id == promotion_id, models.Promotion.deleted_at.is_(None))
        .first()
    )


def list_promotions(
    db: Session,
    *,
    promotion_type: Optional[str] = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Promotion]:
    query = db.query(models.Promotion).filter(models.Promotion.deleted_at.is_(None))
    if promotion_type:
        query = query.filter(models.Promotion.type == promotion_type)
    if active_only:
        query = query.filter(models.Promotion.is_active.is_(True))
    return (
        query.order_by(models.Promotion.sort_order, models.Promotion.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_promotion(db: Session, promotion_id: uuid.UUID, payload: schemas.PromotionUpdate) -> Optional[models.Promotion]:
    promotion = get_promotion(db, promotion_id)
    if not promotion:
        return None
    data = payload.model_dump(exclude_unset=True, exclude={"items", "bundle_items"})
    for key, value in data.items():
        setattr(promotion, key, value)
    if payload.items is not None:
        promotion.items = _build_items(payload.items)
    if payload.bundle_items is not None and promotion.type == PROMO_BUNDLE:
        promotion.bundle_items = _build_bundle_items(payload.bundle_items)
    db.commit()
    db.refresh(promotion)
    return promotion


def toggle_promotion(db: Session, promotion_id: uuid.UUID) -> Optional[models.Promotion]:
    promotion = get_promotion(db, promotion_id)
    if not promotion:
        return None
    promotion.is_active = not promotion.is_active
    db.commit()
    db.refresh(promotion)
    return promotion


def delete_promotion(db: Session, promotion_id: uuid.UUID) -> bool:
    promotion = get_promotion(db, promotion_id)
    if not promotion:
        return False
    promotion.deleted_at = models.now_utc()
    promotion.is_active = False
    db.commit()
    return True


def candidate_promotions(
    db: Session,
    *,
    product_id: Optional[uuid.UUID],
    variant_id: Optional[uuid.UUID],
    category_id: Optional[uuid.UUID],
    promotion_type: Optional[str] = None,
) -> List[models.Promotion]:
    """Active promotions with an item scoped to the variant, product or category, newest first.

    Window checks are left to the caller so they run against restaurant-local time.
    """
    scope = []
    if variant_id is not None:
        scope.append(models.PromotionItem.variant_id == variant_id)
    if product_id is not None:
        scope.append(models.PromotionItem.product_id == product_id)
    if category_id is not None:
        scope.append(models.PromotionItem.category_id == category_id)
    if not scope:
        return []
    query = (
        db.query(models.Promotion)
        .join(models.PromotionItem, models.PromotionItem.promotion_id == models.Promotion.id)
        .filter(
            models.Promotion.is_active.is_(True),
            models.Promotion.deleted_at.is_(None),
            or_(*scope),
        )
    )
    if promotion_type:
        query = query.filter(models.Promotion.type == promotion_type)
    promotions = query.order_by(models.Promotion.created_at.desc(), models.Promotion.id.desc()).all()
    # The join yields one row per matching item; keep first occurrence order
    seen = set()
    unique = []
    for promotion in promotions:
        if promotion.id not in seen:
            seen.add(promotion.id)
            unique.append(promotion)
    return unique
