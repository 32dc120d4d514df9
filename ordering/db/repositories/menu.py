"""
Menu catalog repository functions.

CRUD for categories, products, variants, option sections and combos, plus the
ordered public menu listing.
"""
from __future__ import annotations

import uuid
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from ordering.db import models, schemas
from ordering.errors import ValidationFailed


def _apply_updates(obj, payload, *, exclude: Iterable[str] = ()):
    data = payload.model_dump(exclude_unset=True, exclude=set(exclude))
    for key, value in data.items():
        setattr(obj, key, value)
    return obj


def reorder(db: Session, model, ids: List[uuid.UUID]) -> int:
    """Set ``sort_order`` on ``model`` rows following the order of ``ids``."""
    rows = {row.id: row for row in db.query(model).filter(model.id.in_(ids)).all()}
    for position, row_id in enumerate(ids):
        row = rows.get(row_id)
        if row is not None:
            row.sort_order = position
    db.commit()
    return len(rows)


# Categories

def create_category(db: Session, payload: schemas.CategoryCreate) -> models.Category:
    category = models.Category(**payload.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def get_category(db: Session, category_id: uuid.UUID) -> Optional[models.Category]:
    return db.query(models.Category).filter(models.Category.id == category_id).first()


def list_categories(db: Session, *, active_only: bool = False) -> List[models.Category]:
    query = db.query(models.Category)
    if active_only:
        query = query.filter(models.Category.is_active.is_(True))
    return query.order_by(models.Category.sort_order, models.Category.name).all()


def update_category(db: Session, category_id: uuid.UUID, payload: schemas.CategoryUpdate) -> Optional[models.Category]:
    category = get_category(db, category_id)
    if not category:
        return None
    _apply_updates(category, payload)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: uuid.UUID) -> bool:
    category = get_category(db, category_id)
    if not category:
        return False
    db.delete(category)
    db.commit()
    return True


def attach_product_to_category(db: Session, category_id: uuid.UUID, product_id: uuid.UUID, sort_order: int = 0) -> models.CategoryProduct:
    link = (
        db.query(models.CategoryProduct)
        .filter(models.CategoryProduct.category_id == category_id, models.CategoryProduct.product_id == product_id)
        .first()
    )
    if link:
        link.sort_order = sort_order
    else:
        link = models.CategoryProduct(category_id=category_id, product_id=product_id, sort_order=sort_order)
        db.add(link)
    db.commit()
    db.refresh(link)
    return link


def detach_product_from_category(db: Session, category_id: uuid.UUID, product_id: uuid.UUID) -> bool:
    deleted = (
        db.query(models.CategoryProduct)
        .filter(models.CategoryProduct.category_id == category_id, models.CategoryProduct.product_id == product_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)


def product_in_category(db: Session, product_id: uuid.UUID, category_id: uuid.UUID) -> bool:
    return (
        db.query(models.CategoryProduct.id)
        .filter(models.CategoryProduct.category_id == category_id, models.CategoryProduct.product_id == product_id)
        .first()
        is not None
    )


# Sections

def _set_section_options(section: models.Section, options: List[schemas.SectionOptionCreate]) -> None:
    section.options = [models.SectionOption(**opt.model_dump()) for opt in options]


def create_section(db: Session, payload: schemas.SectionCreate) -> models.Section:
    section = models.Section(**payload.model_dump(exclude={"options"}))
    _set_section_options(section, payload.options)
    db.add(section)
    db.commit()
    db.refresh(section)
    return section


def get_section(db: Session, section_id: uuid.UUID) -> Optional[models.Section]:
    return db.query(models.Section).filter(models.Section.id == section_id).first()


def list_sections(db: Session) -> List[models.Section]:
    return db.query(models.Section).order_by(models.Section.sort_order, models.Section.title).all()


def update_section(db: Session, section_id: uuid.UUID, payload: schemas.SectionUpdate) -> Optional[models.Section]:
    section = get_section(db, section_id)
    if not section:
        return None
    _apply_updates(section, payload, exclude=("options",))
    if payload.options is not None:
        _set_section_options(section, payload.options)
    db.commit()
    db.refresh(section)
    return section


def delete_section(db: Session, section_id: uuid.UUID) -> bool:
    section = get_section(db, section_id)
    if not section:
        return False
    db.delete(section)
    db.commit()
    return True


def get_section_options(db: Session, option_ids: Iterable[uuid.UUID]) -> List[models.SectionOption]:
    ids = list({oid for oid in option_ids})
    if not ids:
        return []
    return db.query(models.SectionOption).filter(models.SectionOption.id.in_(ids)).all()


# Products and variants

def _set_product_sections(product: models.Product, section_ids: List[uuid.UUID]) -> None:
    product.product_sections = [
        models.ProductSection(section_id=section_id, sort_order=position)
        for position, section_id in enumerate(section_ids)
    ]


def create_product(db: Session, payload: schemas.ProductCreate) -> models.Product:
    product = models.Product(**payload.model_dump(exclude={"variants", "section_ids"}))
    product.variants = [models.ProductVariant(**v.model_dump()) for v in payload.variants]
    if payload.variants:
        product.has_variants = True
    _set_product_sections(product, payload.section_ids)
    db.add(product)
    db.flush()
    if payload.category_id is not None:
        category = get_category(db, payload.category_id)
        if category is not None and not category.uses_variants:
            db.add(models.CategoryProduct(category_id=category.id, product_id=product.id, sort_order=product.sort_order))
    db.commit()
    db.refresh(product)
    return product


def get_product(db: Session, product_id: uuid.UUID) -> Optional[models.Product]:
    return (
        db.query(models.Product)
        .options(selectinload(models.Product.variants), selectinload(models.Product.product_sections))
        .filter(models.Product.id == product_id)
        .first()
    )


def list_products(db: Session, *, category_id: Optional[uuid.UUID] = None, active_only: bool = False) -> List[models.Product]:
    query = db.query(models.Product)
    if category_id:
        query = query.filter(models.Product.category_id == category_id)
    if active_only:
        query = query.filter(models.Product.is_active.is_(True))
    return query.order_by(models.Product.sort_order, models.Product.name).all()


def update_product(db: Session, product_id: uuid.UUID, payload: schemas.ProductUpdate) -> Optional[models.Product]:
    product = get_product(db, product_id)
    if not product:
        return None
    _apply_updates(product, payload, exclude=("section_ids",))
    if payload.section_ids is not None:
        _set_product_sections(product, payload.section_ids)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: uuid.UUID) -> bool:
    product = get_product(db, product_id)
    if not product:
        return False
    db.delete(product)
    db.commit()
    return True


def get_variant(db: Session, variant_id: uuid.UUID) -> Optional[models.ProductVariant]:
    return db.query(models.ProductVariant).filter(models.ProductVariant.id == variant_id).first()


def create_variant(db: Session, product_id: uuid.UUID, payload: schemas.VariantCreate) -> Optional[models.ProductVariant]:
    product = get_product(db, product_id)
    if not product:
        return None
    variant = models.ProductVariant(product_id=product.id, **payload.model_dump())
    product.has_variants = True
    db.add(variant)
    db.commit()
    db.refresh(variant)
    return variant


def update_variant(db: Session, variant_id: uuid.UUID, payload: schemas.VariantUpdate) -> Optional[models.ProductVariant]:
    variant = get_variant(db, variant_id)
    if not variant:
        return None
    _apply_updates(variant, payload)
    db.commit()
    db.refresh(variant)
    return variant


def delete_variant(db: Session, variant_id: uuid.UUID) -> bool:
    variant = get_variant(db, variant_id)
    if not variant:
        return False
    db.delete(variant)
    db.commit()
    return True


# Combos

def _build_combo_items(items: List[schemas.ComboItemCreate]) -> List[models.ComboItem]:
    errors: List[str] = []
    built: List[models.ComboItem] = []
    for position, item in enumerate(items):
        if item.is_choice_group:
            if not (item.choice_label or "").strip():
                errors.append(f"Item {position + 1}: a choice group needs a label")
            if len(item.options) < 2:
                errors.append(f"Item {position + 1}: a choice group needs at least two options")
            seen = set()
            for opt in item.options:
                key = (opt.product_id, opt.variant_id)
                if key in seen:
                    errors.append(f"Item {position + 1}: duplicated option")
                seen.add(key)
            row = models.ComboItem(
                is_choice_group=True,
                choice_label=item.choice_label,
                quantity=item.quantity,
                sort_order=item.sort_order or position,
            )
            row.options = [models.ComboItemOption(**opt.model_dump()) for opt in item.options]
        else:
            if item.product_id is None:
                errors.append(f"Item {position + 1}: a fixed item needs a product")
            row = models.ComboItem(
                product_id=item.product_id,
                variant_id=item.variant_id,
                is_choice_group=False,
                quantity=item.quantity,
                sort_order=item.sort_order or position,
            )
        built.append(row)
    if errors:
        raise ValidationFailed("Invalid combo items", errors)
    return built


def create_combo(db: Session, payload: schemas.ComboCreate) -> models.Combo:
    combo = models.Combo(**payload.model_dump(exclude={"items"}))
    combo.items = _build_combo_items(payload.items)
    db.add(combo)
    db.commit()
    db.refresh(combo)
    return combo


def get_combo(db: Session, combo_id: uuid.UUID) -> Optional[models.Combo]:
    return (
        db.query(models.Combo)
        .options(selectinload(models.Combo.items).selectinload(models.ComboItem.options))
        .filter(models.Combo.id == combo_id, models.Combo.deleted_at.is_(None))
        .first()
    )


def list_combos(db: Session, *, active_only: bool = False, category_id: Optional[uuid.UUID] = None) -> List[models.Combo]:
    query = db.query(models.Combo).filter(models.Combo.deleted_at.is_(None))
    if active_only:
        query = query.filter(models.Combo.is_active.is_(True))
    if category_id:
        query = query.filter(models.Combo.category_id == category_id)
    return query.order_by(models.Combo.sort_order, models.Combo.name).all()


def update_combo(db: Session, combo_id: uuid.UUID, payload: schemas.ComboUpdate) -> Optional[models.Combo]:
    combo = get_combo(db, combo_id)
    if not combo:
        return None
    _apply_updates(combo, payload, exclude=("items",))
    if payload.items is not None:
        combo.items = _build_combo_items(payload.items)
    db.commit()
    db.refresh(combo)
    return combo


def delete_combo(db: Session, combo_id: uuid.UUID) -> bool:
    combo = get_combo(db, combo_id)
    if not combo:
        return False
    combo.deleted_at = models.now_utc()
    combo.is_active = False
    db.commit()
    return True


# Public menu

def _public_product(product: models.Product) -> schemas.Product:
    data = schemas.Product.model_validate(product)
    return data.model_copy(update={
        "variants": [v for v in data.variants if v.is_active],
        "sections": [s for s in data.sections if s.is_active],
    })


def get_public_menu(db: Session) -> List[schemas.MenuCategory]:
    """Active categories with their active products/variants and combos, in display order."""
    menu: List[schemas.MenuCategory] = []
    for category in list_categories(db, active_only=True):
        if category.uses_variants:
            products = list_products(db, category_id=category.id, active_only=True)
        else:
            links = (
                db.query(models.CategoryProduct)
                .join(models.Product, models.Product.id == models.CategoryProduct.product_id)
                .filter(models.CategoryProduct.category_id == category.id, models.Product.is_active.is_(True))
                .order_by(models.CategoryProduct.sort_order)
                .all()
            )
            products = [link.product for link in links]
        combos = list_combos(db, active_only=True, category_id=category.id)
        menu.append(schemas.MenuCategory(
            id=category.id,
            name=category.name,
            uses_variants=category.uses_variants,
            is_combo_category=category.is_combo_category,
            sort_order=category.sort_order,
            products=[_public_product(p) for p in products],
            combos=[schemas.Combo.model_validate(c) for c in combos],
        ))
    return menu
