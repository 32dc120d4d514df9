"""
Admin panel activity: record panel events and read the combined feed.
"""
from datetime import date
from typing import Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ordering.api.deps import get_current_user, require_permission
from ordering.db import crud, models, schemas
from ordering.db.database import get_db
from ordering.services import ActivityFeedService

router = APIRouter(prefix="/admin/activity", tags=["admin-activity"])


@router.get("", response_model=schemas.ActivityFeed)
def activity_feed(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user_id: Optional[uuid.UUID] = None,
    event_type: Optional[str] = Query(default=None, description="One event type or a comma separated list"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=15, ge=1, le=100),
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("activity.view")),
):
    filters = {
        "start_date": start_date,
        "end_date": end_date,
        "user_id": user_id,
        "event_type": event_type,
        "search": search,
    }
    return ActivityFeedService(db).get_feed(filters, page=page, per_page=per_page)


@router.post("", status_code=status.HTTP_201_CREATED)
def record_activity(
    payload: schemas.ActivityCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    activity = crud.create_user_activity(
        db,
        user_id=user.id,
        activity_type=payload.activity_type,
        description=payload.description,
        url=payload.url,
        method=payload.method,
        metadata=payload.metadata,
    )
    crud.touch_user_activity(db, user)
    return {"id": activity.id, "created_at": activity.created_at}
