"""Business logic services package with public service classes."""

from .activity_feed_service import ActivityFeedService
from .fcm_service import FCMService, get_firebase_app, reset_firebase_app
from .order_notifier import OrderNotifier
from .permission_service import PermissionService

__all__ = [
    "ActivityFeedService",
    "FCMService",
    "get_firebase_app",
    "reset_firebase_app",
    "OrderNotifier",
    "PermissionService",
]
