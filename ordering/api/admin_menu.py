"""
Menu administration: categories, products and variants, option sections and
combos, plus drag-and-drop reordering.

Every mutation requires the matching ``menu.<page>.<action>`` permission and
writes an audit record.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ordering import audit
from ordering.api.deps import require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.errors import OrderingError, to_http

router = APIRouter(prefix="/admin/menu", tags=["admin-menu"])


def _found(obj, label: str):
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def _conflict(db: Session, exc: IntegrityError) -> HTTPException:
    db.rollback()
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A record with the same unique value already exists")


# Categories

@router.get("/categories", response_model=List[schemas.Category])
def list_categories(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.categories.view")),
):
    return crud.list_categories(db)


@router.post("/categories", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.categories.create")),
):
    category = crud.create_category(db, payload)
    audit.log_menu(db, actor_user_id=user.id, target_type="category", target_id=category.id,
                   action=audit.AuditAction.CATEGORY_CREATE, name=category.name)
    return category


@router.put("/categories/{category_id}", response_model=schemas.Category)
def update_category(
    category_id: uuid.UUID,
    payload: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.categories.edit")),
):
    category = _found(crud.update_category(db, category_id, payload), "Category")
    audit.log_menu(db, actor_user_id=user.id, target_type="category", target_id=category.id,
                   action=audit.AuditAction.CATEGORY_UPDATE, name=category.name)
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.categories.delete")),
):
    if not crud.delete_category(db, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    audit.log_menu(db, actor_user_id=user.id, target_type="category", target_id=category_id,
                   action=audit.AuditAction.CATEGORY_DELETE)
    return None


@router.post("/categories/{category_id}/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def attach_product(
    category_id: uuid.UUID,
    product_id: uuid.UUID,
    sort_order: int = 0,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.categories.edit")),
):
    _found(crud.get_category(db, category_id), "Category")
    _found(crud.get_product(db, product_id), "Product")
    crud.attach_product_to_category(db, category_id, product_id, sort_order)
    return None


@router.delete("/categories/{category_id}/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def detach_product(
    category_id: uuid.UUID,
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.categories.edit")),
):
    if not crud.detach_product_from_category(db, category_id, product_id):
        raise HTTPException(status_code=404, detail="Product is not in the category")
    return None


# Products and variants

@router.get("/products", response_model=List[schemas.Product])
def list_products(
    category_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.view")),
):
    return crud.list_products(db, category_id=category_id)


@router.get("/products/{product_id}", response_model=schemas.Product)
def get_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.view")),
):
    return _found(crud.get_product(db, product_id), "Product")


@router.post("/products", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: schemas.ProductCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.create")),
):
    try:
        product = crud.create_product(db, payload)
    except IntegrityError as exc:
        raise _conflict(db, exc)
    audit.log_menu(db, actor_user_id=user.id, target_type="product", target_id=product.id,
                   action=audit.AuditAction.PRODUCT_CREATE, name=product.name)
    return product


@router.put("/products/{product_id}", response_model=schemas.Product)
def update_product(
    product_id: uuid.UUID,
    payload: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.edit")),
):
    product = _found(crud.update_product(db, product_id, payload), "Product")
    audit.log_menu(db, actor_user_id=user.id, target_type="product", target_id=product.id,
                   action=audit.AuditAction.PRODUCT_UPDATE, name=product.name)
    return product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.delete")),
):
    if not crud.delete_product(db, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    audit.log_menu(db, actor_user_id=user.id, target_type="product", target_id=product_id,
                   action=audit.AuditAction.PRODUCT_DELETE)
    return None


@router.post("/products/{product_id}/variants", response_model=schemas.Variant, status_code=status.HTTP_201_CREATED)
def create_variant(
    product_id: uuid.UUID,
    payload: schemas.VariantCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.edit")),
):
    try:
        variant = _found(crud.create_variant(db, product_id, payload), "Product")
    except IntegrityError as exc:
        raise _conflict(db, exc)
    audit.log_menu(db, actor_user_id=user.id, target_type="variant", target_id=variant.id,
                   action=audit.AuditAction.PRODUCT_UPDATE, name=variant.name)
    return variant


@router.put("/variants/{variant_id}", response_model=schemas.Variant)
def update_variant(
    variant_id: uuid.UUID,
    payload: schemas.VariantUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.edit")),
):
    try:
        variant = _found(crud.update_variant(db, variant_id, payload), "Variant")
    except IntegrityError as exc:
        raise _conflict(db, exc)
    audit.log_menu(db, actor_user_id=user.id, target_type="variant", target_id=variant.id,
                   action=audit.AuditAction.PRODUCT_UPDATE, name=variant.name)
    return variant


@router.delete("/variants/{variant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_variant(
    variant_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.products.edit")),
):
    if not crud.delete_variant(db, variant_id):
        raise HTTPException(status_code=404, detail="Variant not found")
    audit.log_menu(db, actor_user_id=user.id, target_type="variant", target_id=variant_id,
                   action=audit.AuditAction.PRODUCT_UPDATE)
    return None


# Sections

@router.get("/sections", response_model=List[schemas.Section])
def list_sections(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.sections.view")),
):
    return crud.list_sections(db)


@router.post("/sections", response_model=schemas.Section, status_code=status.HTTP_201_CREATED)
def create_section(
    payload: schemas.SectionCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.sections.create")),
):
    section = crud.create_section(db, payload)
    audit.log_menu(db, actor_user_id=user.id, target_type="section", target_id=section.id,
                   action=audit.AuditAction.SECTION_CREATE, name=section.title)
    return section


@router.put("/sections/{section_id}", response_model=schemas.Section)
def update_section(
    section_id: uuid.UUID,
    payload: schemas.SectionUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.sections.edit")),
):
    section = _found(crud.update_section(db, section_id, payload), "Section")
    audit.log_menu(db, actor_user_id=user.id, target_type="section", target_id=section.id,
                   action=audit.AuditAction.SECTION_UPDATE, name=section.title)
    return section


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(
    section_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.sections.delete")),
):
    if not crud.delete_section(db, section_id):
        raise HTTPException(status_code=404, detail="Section not found")
    audit.log_menu(db, actor_user_id=user.id, target_type="section", target_id=section_id,
                   action=audit.AuditAction.SECTION_DELETE)
    return None


# Combos

@router.get("/combos", response_model=List[schemas.Combo])
def list_combos(
    category_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.combos.view")),
):
    return crud.list_combos(db, category_id=category_id)


@router.post("/combos", response_model=schemas.Combo, status_code=status.HTTP_201_CREATED)
def create_combo(
    payload: schemas.ComboCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.combos.create")),
):
    try:
        combo = crud.create_combo(db, payload)
    except OrderingError as exc:
        raise to_http(exc)
    except IntegrityError as exc:
        raise _conflict(db, exc)
    audit.log_menu(db, actor_user_id=user.id, target_type="combo", target_id=combo.id,
                   action=audit.AuditAction.COMBO_CREATE, name=combo.name)
    return combo


@router.put("/combos/{combo_id}", response_model=schemas.Combo)
def update_combo(
    combo_id: uuid.UUID,
    payload: schemas.ComboUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.combos.edit")),
):
    try:
        combo = _found(crud.update_combo(db, combo_id, payload), "Combo")
    except OrderingError as exc:
        db.rollback()
        raise to_http(exc)
    except IntegrityError as exc:
        raise _conflict(db, exc)
    audit.log_menu(db, actor_user_id=user.id, target_type="combo", target_id=combo.id,
                   action=audit.AuditAction.COMBO_UPDATE, name=combo.name)
    return combo


@router.delete("/combos/{combo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_combo(
    combo_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("menu.combos.delete")),
):
    if not crud.delete_combo(db, combo_id):
        raise HTTPException(status_code=404, detail="Combo not found")
    audit.log_menu(db, actor_user_id=user.id, target_type="combo", target_id=combo_id,
                   action=audit.AuditAction.COMBO_DELETE)
    return None


# Reordering

_REORDER_PERMISSIONS = {
    "categories": "menu.categories.edit",
    "products": "menu.products.edit",
    "sections": "menu.sections.edit",
    "combos": "menu.combos.edit",
}


def _reorder_endpoint(kind: str):
    def _reorder(
        payload: schemas.ReorderRequest,
        db: Session = Depends(get_db),
        user: models.User = Depends(require_permission(_REORDER_PERMISSIONS[kind])),
    ):
        updated = crud.reorder_menu(db, kind, payload.ids)
        audit.safe_log(
            db,
            action=audit.AuditAction.MENU_REORDER,
            target_type=kind,
            actor_user_id=user.id,
            metadata={"count": updated},
        )
        return {"updated": updated}

    return _reorder


for _kind in _REORDER_PERMISSIONS:
    router.add_api_route(f"/{_kind}/reorder", _reorder_endpoint(_kind), methods=["POST"], name=f"reorder_{_kind}")
