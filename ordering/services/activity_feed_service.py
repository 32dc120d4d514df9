"""
Combined activity feed for the admin panel.

Panel activity (``user_activities``) and audit records (``audit_logs``) are
merged with a ``UNION ALL`` in the database so ordering and pagination stay
correct across both sources. Heartbeats and page views are noise and never
appear in the feed.
"""
from __future__ import annotations

import math
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import func, literal, null, union_all
from sqlalchemy.orm import Session

from ordering.db import models
from ordering.utils.runtime import app_timezone

EXCLUDED_EVENTS = ("heartbeat", "page_view")
DELETED_USER = {"id": None, "name": "Usuario eliminado", "email": "N/A", "initials": "UD"}


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=app_timezone()).astimezone(timezone.utc)


def _event_types(value: Union[str, Iterable[str], None]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [v.strip() for v in value if v and v.strip()]


class ActivityFeedService:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, query, model, event_column, filters: Dict[str, Any]):
        query = query.filter(event_column.notin_(EXCLUDED_EVENTS))
        if filters.get("start_date"):
            query = query.filter(model.created_at >= _day_start(filters["start_date"]))
        if filters.get("end_date"):
            query = query.filter(model.created_at < _day_start(filters["end_date"]) + timedelta(days=1))
        user_column = model.user_id if model is models.UserActivity else model.actor_user_id
        if filters.get("user_id"):
            query = query.filter(user_column == filters["user_id"])
        event_types = _event_types(filters.get("event_type"))
        if event_types:
            query = query.filter(event_column.in_(event_types))
        if filters.get("search"):
            query = query.filter(func.lower(model.description).like(f"%{filters['search'].strip().lower()}%"))
        return query

    def _combined(self, filters: Dict[str, Any]):
        activities = self._filtered(
            self.db.query(
                models.UserActivity.id.label("row_id"),
                literal("ua").label("prefix"),
                literal("user_activity").label("source"),
                models.UserActivity.user_id.label("user_id"),
                models.UserActivity.activity_type.label("event_type"),
                models.UserActivity.description.label("description"),
                null().label("target_type"),
                models.UserActivity.metadata_json.label("meta"),
                models.UserActivity.created_at.label("created_at"),
            ),
            models.UserActivity,
            models.UserActivity.activity_type,
            filters,
        )
        audits = self._filtered(
            self.db.query(
                models.AuditLog.id.label("row_id"),
                literal("al").label("prefix"),
                literal("audit_log").label("source"),
                models.AuditLog.actor_user_id.label("user_id"),
                models.AuditLog.action_type.label("event_type"),
                models.AuditLog.description.label("description"),
                models.AuditLog.target_type.label("target_type"),
                models.AuditLog.metadata_json.label("meta"),
                models.AuditLog.created_at.label("created_at"),
            ),
            models.AuditLog,
            models.AuditLog.action_type,
            filters,
        )
        return union_all(activities.statement, audits.statement).subquery("combined")

    def _users(self, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Dict[str, Any]]:
        ids = {uid for uid in user_ids if uid is not None}
        if not ids:
            return {}
        users = self.db.query(models.User).filter(models.User.id.in_(ids)).all()
        return {
            user.id: {
                "id": user.id,
                "name": user.display_name or user.email,
                "email": user.email,
                "initials": user.initials,
            }
            for user in users
        }

    def get_feed(self, filters: Optional[Dict[str, Any]] = None, page: int = 1, per_page: int = 15) -> Dict[str, Any]:
        filters = filters or {}
        page = max(1, page)
        per_page = max(1, min(per_page, 100))
        combined = self._combined(filters)

        total = self.db.query(func.count()).select_from(combined).scalar() or 0
        rows = (
            self.db.query(combined)
            .order_by(combined.c.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        users = self._users(row.user_id for row in rows)
        data = [
            {
                "id": f"{row.prefix}_{row.row_id}",
                "source": row.source,
                "event_type": row.event_type,
                "description": row.description,
                "target_type": row.target_type,
                "metadata": row.meta,
                "created_at": row.created_at,
                "user": users.get(row.user_id, DELETED_USER),
            }
            for row in rows
        ]
        return {
            "data": data,
            "total": total,
            "page": page,
            "per_page": per_page,
            "last_page": max(1, math.ceil(total / per_page)),
        }
