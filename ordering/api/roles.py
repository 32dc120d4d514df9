"""
Staff roles, permissions and user role assignment.
"""
from typing import Any, Dict, List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ordering import audit
from ordering.api.deps import get_current_user, require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.services import PermissionService

router = APIRouter(prefix="/admin", tags=["admin-roles"])


def _role_read(role: models.Role) -> schemas.Role:
    return schemas.Role(
        id=role.id,
        name=role.name,
        description=role.description,
        is_system=role.is_system,
        created_at=role.created_at,
        permissions=crud.role_permission_names(role),
    )


def _role_or_404(db: Session, role_id: uuid.UUID) -> models.Role:
    role = crud.get_role(db, role_id)
    if role is None:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


# Permissions

@router.get("/permissions", response_model=List[schemas.PermissionRead])
def list_permissions(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.view")),
):
    return crud.list_permissions(db)


@router.get("/permissions/pages")
def pages_configuration(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.view")),
) -> Dict[str, Any]:
    service = PermissionService(db)
    pages = service.get_pages_configuration()
    for page_name, page in pages.items():
        group = page_name.split(".")[0]
        page["group_display_name"] = service.get_group_display_name(group)
    return pages


@router.post("/permissions/sync", response_model=schemas.PermissionSyncResult)
def sync_permissions(
    remove_obsolete: bool = False,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.edit")),
):
    result = PermissionService(db).sync_permissions(remove_obsolete=remove_obsolete)
    audit.log_role(db, actor_user_id=user.id, role_id=None, action=audit.AuditAction.PERMISSIONS_SYNC,
                   metadata=result)
    return result


# Roles

@router.get("/roles", response_model=List[schemas.Role])
def list_roles(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.view")),
):
    return [_role_read(role) for role in crud.list_roles(db)]


@router.get("/roles/{role_id}", response_model=schemas.Role)
def get_role(
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.view")),
):
    return _role_read(_role_or_404(db, role_id))


@router.post("/roles", response_model=schemas.Role, status_code=status.HTTP_201_CREATED)
def create_role(
    payload: schemas.RoleCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.create")),
):
    if crud.get_role_by_name(db, payload.name):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A role with that name already exists")
    role = crud.create_role(db, payload)
    audit.log_role(db, actor_user_id=user.id, role_id=role.id, action=audit.AuditAction.ROLE_CREATE, name=role.name)
    return _role_read(role)


@router.put("/roles/{role_id}", response_model=schemas.Role)
def update_role(
    role_id: uuid.UUID,
    payload: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.edit")),
):
    role = _role_or_404(db, role_id)
    if role.is_system and payload.name is not None and payload.name != role.name:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="System roles cannot be renamed")
    try:
        role = crud.update_role(db, role, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A role with that name already exists")
    audit.log_role(db, actor_user_id=user.id, role_id=role.id, action=audit.AuditAction.ROLE_UPDATE, name=role.name)
    return _role_read(role)


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("roles.delete")),
):
    role = _role_or_404(db, role_id)
    if role.is_system:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="System roles cannot be deleted")
    name = role.name
    crud.delete_role(db, role)
    audit.log_role(db, actor_user_id=user.id, role_id=role_id, action=audit.AuditAction.ROLE_DELETE, name=name)
    return None


# Staff users

@router.get("/users/me")
def current_staff_user(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Dict[str, Any]:
    """The signed-in staff user and the permission names the panel should unlock."""
    if user.is_superadmin:
        permissions = sorted(p.name for p in crud.list_permissions(db))
    else:
        permissions = sorted(crud.user_permission_names(db, user.id))
    return {
        "user": schemas.User.model_validate(user).model_dump(mode="json"),
        "permissions": permissions,
    }


@router.get("/users", response_model=List[schemas.User])
def list_users(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("users.view")),
):
    return crud.list_users(db)


@router.post("/users/{user_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def assign_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("users.edit")),
):
    if crud.get_user(db, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    role = _role_or_404(db, role_id)
    crud.assign_role(db, user_id=user_id, role_id=role_id)
    audit.log_role(db, actor_user_id=user.id, role_id=role_id, action=audit.AuditAction.ROLE_UPDATE,
                   name=role.name, metadata={"assigned_user_id": user_id})
    return None


@router.delete("/users/{user_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("users.edit")),
):
    if not crud.remove_role(db, user_id=user_id, role_id=role_id):
        raise HTTPException(status_code=404, detail="Role assignment not found")
    audit.log_role(db, actor_user_id=user.id, role_id=role_id, action=audit.AuditAction.ROLE_UPDATE,
                   metadata={"removed_user_id": user_id})
    return None
