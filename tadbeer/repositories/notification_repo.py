"""Notification Repository - Data access for the notification bell"""
from typing import Any, Dict, List
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import Notification
from ..domain.errors import NotificationNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for in-app notification operations"""

    COLLECTION_NAME = "notifications"

    def __init__(self):
        self._collection: Collection = get_collection(self.COLLECTION_NAME)

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> Notification:
        doc.pop("_id", None)
        return Notification.model_validate(doc)

    def create_notification(self, notification: Notification) -> Notification:
        """Store a notification for its recipient"""
        doc = notification.model_dump()
        doc["_id"] = notification.notification_id

        self._collection.insert_one(doc)

        logger.info(
            f"Created notification for {notification.user_id}",
            extra={
                "notification_id": notification.notification_id,
                "notification_type": notification.type.value,
                "user_id": notification.user_id
            }
        )
        return notification

    def get_notifications_for_user(self, user_id: str, skip: int = 0, limit: int = 50) -> List[Notification]:
        """Get notifications for a user, newest first"""
        cursor = (
            self._collection.find({"user_id": user_id})
            .sort("created_at", DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        return [self._to_model(doc) for doc in cursor]

    def get_unread_count(self, user_id: str) -> int:
        """Get count of unread notifications for a user"""
        return self._collection.count_documents({"user_id": user_id, "is_read": False})

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one of the user's notifications as read"""
        result = self._collection.find_one_and_update(
            {"notification_id": notification_id, "user_id": user_id},
            {"$set": {"is_read": True, "updated_at": utc_now()}},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise NotificationNotFoundError(
                "Notification not found", details={"notification_id": notification_id}
            )
        return self._to_model(result)

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark all notifications as read for a user. Returns count of updated."""
        result = self._collection.update_many(
            {"user_id": user_id, "is_read": False},
            {"$set": {"is_read": True, "updated_at": utc_now()}}
        )
        logger.info(f"Marked {result.modified_count} notifications as read", extra={"user_id": user_id})
        return result.modified_count

    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        """Delete one of the user's notifications. Returns True if deleted."""
        result = self._collection.delete_one({"notification_id": notification_id, "user_id": user_id})
        return result.deleted_count > 0
