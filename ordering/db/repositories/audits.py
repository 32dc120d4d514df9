"""
Audit log and panel activity repository functions.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from ordering.db import models


def create_audit_log(
    db: Session,
    *,
    actor_user_id: Optional[uuid.UUID],
    action_type: str,
    status: str,
    target_type: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    description: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    db_audit_log = models.AuditLog(
        actor_user_id=actor_user_id,
        action_type=action_type,
        status=status,
        target_type=target_type,
        target_id=target_id,
        description=description,
        metadata_json=metadata,
    )
    db.add(db_audit_log)
    db.commit()
    db.refresh(db_audit_log)
    return db_audit_log


def get_audit_logs(
    db: Session,
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(models.AuditLog)
    if user_id:
        query = query.filter(models.AuditLog.actor_user_id == user_id)
    if action_type:
        query = query.filter(models.AuditLog.action_type == action_type)
    if status:
        query = query.filter(models.AuditLog.status == status)
    if target_id:
        query = query.filter(models.AuditLog.target_id == target_id)
    return query.order_by(models.AuditLog.created_at.desc()).offset(skip).limit(limit).all()


def create_user_activity(
    db: Session,
    *,
    user_id: Optional[uuid.UUID],
    activity_type: str,
    description: Optional[str] = None,
    url: Optional[str] = None,
    method: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> models.UserActivity:
    activity = models.UserActivity(
        user_id=user_id,
        activity_type=activity_type,
        description=description,
        url=url,
        method=method,
        metadata_json=metadata,
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity
