"""
Firebase Cloud Messaging delivery to customer devices.

The Firebase app is initialised lazily from ``FIREBASE_CREDENTIALS`` (path to
a service-account JSON) and ``FIREBASE_PROJECT_ID``. When credentials are
missing or ``PUSH_NOTIFICATIONS_ENABLED`` is false, every send is a no-op that
reports zero deliveries. Each attempt is recorded in ``push_notification_logs``.
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, Iterable, Optional

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging
from sqlalchemy.orm import Session

from ordering.db import models
from ordering.utils.feature_flags import push_notifications_enabled

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "ordering-fcm"

_app: Optional[firebase_admin.App] = None
_missing_credentials_logged = False


def get_firebase_app() -> Optional[firebase_admin.App]:
    """Return the messaging app, initialising it once; None when not configured."""
    global _app, _missing_credentials_logged
    if _app is not None:
        return _app
    try:
        _app = firebase_admin.get_app(FIREBASE_APP_NAME)
        return _app
    except ValueError:
        pass

    cred_path = os.getenv("FIREBASE_CREDENTIALS")
    if not cred_path or not os.path.exists(cred_path):
        if not _missing_credentials_logged:
            logger.warning("FIREBASE_CREDENTIALS not configured; push notifications are disabled")
            _missing_credentials_logged = True
        return None

    options = {}
    project_id = os.getenv("FIREBASE_PROJECT_ID")
    if project_id:
        options["projectId"] = project_id
    try:
        _app = firebase_admin.initialize_app(credentials.Certificate(cred_path), options, name=FIREBASE_APP_NAME)
        logger.info("Firebase messaging initialised for project %s", project_id or "<from credentials>")
    except (ValueError, OSError) as exc:
        logger.error("Failed to initialise Firebase: %s", exc)
        return None
    return _app


def reset_firebase_app() -> None:
    """Forget the cached app (tests)."""
    global _app, _missing_credentials_logged
    _app = None
    _missing_credentials_logged = False


def _stringify(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {str(k): "" if v is None else str(v) for k, v in (data or {}).items()}


class FCMService:
    """Sends push notifications to a customer's registered devices."""

    def __init__(self, db: Session, app: Optional[firebase_admin.App] = None):
        self.db = db
        self._app = app

    @property
    def app(self) -> Optional[firebase_admin.App]:
        if self._app is None:
            self._app = get_firebase_app()
        return self._app

    def is_enabled(self) -> bool:
        return push_notifications_enabled() and self.app is not None

    def _log(self, device: models.CustomerDevice, title: str, body: str, data: Dict[str, str],
             event_type: str, result: Dict[str, Any]) -> None:
        self.db.add(models.PushNotificationLog(
            customer_id=device.customer_id,
            device_id=device.id,
            event_type=event_type,
            title=title,
            body=body,
            data=data,
            status="sent" if result["success"] else "failed",
            provider_message_id=result.get("message_id"),
            error_message=result.get("error"),
            sent_at=models.now_utc() if result["success"] else None,
        ))

    def _mark_device_inactive(self, device: models.CustomerDevice) -> None:
        device.is_active = False
        logger.warning("FCM token marked as inactive for device %s (%s...)", device.id, (device.fcm_token or "")[:20])

    def send_to_device(
        self,
        device: models.CustomerDevice,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        event_type: str = "generic",
    ) -> Dict[str, Any]:
        if not self.is_enabled():
            return {"success": False, "message_id": None, "error": "push notifications disabled"}
        if not device.fcm_token:
            return {"success": False, "message_id": None, "error": "device has no FCM token"}

        payload = _stringify(data)
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=payload,
            token=device.fcm_token,
        )
        try:
            message_id = messaging.send(message, app=self.app)
            result = {"success": True, "message_id": message_id, "error": None}
        except (messaging.UnregisteredError, firebase_exceptions.NotFoundError) as exc:
            self._mark_device_inactive(device)
            result = {"success": False, "message_id": None, "error": str(exc)}
        except firebase_exceptions.InvalidArgumentError as exc:
            logger.error("FCM rejected message for device %s: %s", device.id, exc)
            result = {"success": False, "message_id": None, "error": str(exc)}
        except firebase_exceptions.FirebaseError as exc:
            logger.error("FCM messaging error for device %s: %s", device.id, exc)
            result = {"success": False, "message_id": None, "error": str(exc)}

        self._log(device, title, body, payload, event_type, result)
        return result

    def send_to_customer(
        self,
        customer_id: uuid.UUID,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        event_type: str = "generic",
    ) -> Dict[str, int]:
        if not self.is_enabled():
            return {"sent": 0, "failed": 0}
        devices = (
            self.db.query(models.CustomerDevice)
            .filter(
                models.CustomerDevice.customer_id == customer_id,
                models.CustomerDevice.is_active.is_(True),
                models.CustomerDevice.fcm_token.isnot(None),
            )
            .all()
        )
        sent = failed = 0
        for device in devices:
            result = self.send_to_device(device, title, body, data, event_type=event_type)
            if result["success"]:
                sent += 1
                device.last_used_at = models.now_utc()
            else:
                failed += 1
        self.db.commit()
        return {"sent": sent, "failed": failed}

    def send_to_multiple_customers(
        self,
        customer_ids: Iterable[uuid.UUID],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        event_type: str = "generic",
    ) -> Dict[str, int]:
        ids = list(customer_ids)
        totals = {"sent": 0, "failed": 0, "customers": len(ids)}
        for customer_id in ids:
            result = self.send_to_customer(customer_id, title, body, data, event_type=event_type)
            totals["sent"] += result["sent"]
            totals["failed"] += result["failed"]
        return totals

    def send_to_all_customers(
        self,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        event_type: str = "broadcast",
    ) -> Dict[str, int]:
        ids = [
            row[0]
            for row in self.db.query(models.Customer.id).filter(
                models.Customer.email_verified_at.isnot(None),
                models.Customer.deleted_at.is_(None),
            )
        ]
        return self.send_to_multiple_customers(ids, title, body, data, event_type=event_type)

    def test_connection(self) -> Dict[str, Any]:
        if not push_notifications_enabled():
            return {"success": False, "message": "Push notifications are disabled"}
        if self.app is None:
            return {"success": False, "message": "Firebase credentials are not configured"}
        return {"success": True, "message": "Firebase messaging is configured", "project_id": self.app.project_id}
