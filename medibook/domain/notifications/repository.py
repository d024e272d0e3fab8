"""Notification repository - Database operations for notifications"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Notification


class NotificationRepository:
    """Repository for notification database operations"""

    @staticmethod
    def get_for_account(db: Session, account_id: str) -> list[Notification]:
        """All notifications of an account, newest first"""
        return (
            db.query(Notification)
            .filter(Notification.user_id == account_id)
            .order_by(Notification.created_at.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, notification_id: str, account_id: str) -> Optional[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == account_id)
            .first()
        )

    @staticmethod
    def create(db: Session, user_id: str, message: str) -> Notification:
        notification = Notification(user_id=user_id, message=message)
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def create_many(db: Session, user_ids: list[str], message: str) -> list[Notification]:
        """Insert one notification per recipient in a single transaction"""
        notifications = [Notification(user_id=user_id, message=message) for user_id in user_ids]
        db.add_all(notifications)
        db.commit()
        return notifications

    @staticmethod
    def mark_seen(db: Session, notification: Notification) -> Notification:
        notification.seen = True
        db.commit()
        db.refresh(notification)
        return notification
