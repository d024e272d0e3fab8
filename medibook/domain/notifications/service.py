"""Notification service - reading, marking and best-effort delivery"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import GatewayFailure
from ...models import Account, Notification
from . import bus  # noqa: F401 - registers the live feed hooks
from .repository import NotificationRepository
from .schemas import NotificationFeed, NotificationResponse

logger = logging.getLogger(__name__)


class NotificationService:
    """Service layer for notifications"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def list_for(self, account: Account) -> list[Notification]:
        return self.repo.get_for_account(self.db, account.id)

    def feed_for(self, account: Account) -> NotificationFeed:
        """Newest-first notifications partitioned into unseen and seen"""
        notifications = [NotificationResponse.model_validate(n) for n in self.list_for(account)]
        unseen = [n for n in notifications if not n.seen]
        seen = [n for n in notifications if n.seen]
        return NotificationFeed(unseen=unseen, seen=seen, unseen_count=len(unseen))

    def mark_seen(self, account: Account, notification_id: str) -> Notification:
        """Flip seen to true; an already-seen notification is returned without a write"""
        notification = self.repo.get_by_id(self.db, notification_id, account.id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        if notification.seen:
            return notification

        try:
            return self.repo.mark_seen(self.db, notification)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to mark notification {notification_id} seen: {e}")
            raise GatewayFailure("Failed to update notification", cause=e) from e

    # Delivery helpers used by the workflows. A failed notification write is
    # logged and swallowed; the workflow's primary write stays committed.

    def notify(self, user_id: str, message: str) -> Optional[Notification]:
        try:
            notification = self.repo.create(self.db, user_id, message)
            logger.info(f"🔔 Notified {user_id}: {message}")
            return notification
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to notify {user_id}: {e}")
            return None

    def notify_many(self, user_ids: list[str], message: str) -> list[Notification]:
        if not user_ids:
            return []
        try:
            notifications = self.repo.create_many(self.db, user_ids, message)
            logger.info(f"🔔 Notified {len(user_ids)} accounts: {message}")
            return notifications
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to notify {len(user_ids)} accounts: {e}")
            return []
