"""
Push notification tools for staff: customer broadcasts and a Firebase
configuration check.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ordering import audit
from ordering.api.deps import require_permission
from ordering.db import models, schemas
from ordering.db.database import get_db
from ordering.services.fcm_service import FCMService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/notifications", tags=["admin-notifications"])


@router.post("/broadcast", response_model=schemas.NotificationResult)
def broadcast(
    payload: schemas.NotificationBroadcast,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("notifications.create")),
):
    service = FCMService(db)
    if payload.customer_ids is not None:
        result = service.send_to_multiple_customers(
            payload.customer_ids, payload.title, payload.body, payload.data, event_type="broadcast"
        )
    else:
        result = service.send_to_all_customers(payload.title, payload.body, payload.data)
    logger.info("Broadcast '%s' by %s: %s", payload.title, user.email, result)
    audit.safe_log(
        db,
        action=audit.AuditAction.NOTIFICATION_BROADCAST,
        target_type="notification",
        actor_user_id=user.id,
        metadata={"title": payload.title, **result},
    )
    return result


@router.get("/test-connection")
def test_connection(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permission("notifications.view")),
):
    return FCMService(db).test_connection()
