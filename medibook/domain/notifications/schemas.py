"""Notification domain schemas"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    message: str
    seen: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationFeed(BaseModel):
    """An account's notifications split the way the inbox shows them"""

    unseen: list[NotificationResponse]
    seen: list[NotificationResponse]
    unseen_count: int
