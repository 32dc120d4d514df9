"""
Audit log API endpoints.

Query audit records written by staff-facing mutations.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ordering.api.deps import require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db

router = APIRouter(prefix="/admin/audits", tags=["audits"])


@router.get("", response_model=List[schemas.AuditLog])
def list_audit_logs(
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("activity.view")),
):
    return crud.get_audit_logs(
        db,
        user_id=user_id,
        action_type=action_type,
        status=status,
        target_id=target_id,
        skip=skip,
        limit=limit,
    )
