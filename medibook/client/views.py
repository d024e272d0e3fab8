"""
Client-side lists that apply a mutation locally once the server accepts it.

Each view keeps a LocalList. A successful operation patches the list in
place; the next `load()` replaces it with what the server returns. A failed
operation raises and leaves the list as it was.
"""

import logging
from typing import Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel

from ..domain.appointments.schemas import AppointmentResponse
from ..domain.doctors.schemas import DoctorResponse
from ..domain.notifications.schemas import NotificationResponse
from .api import LiveFeed, MedibookClient

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LocalList(Generic[T]):
    """Ordered items keyed by their `id`"""

    def __init__(self, items: Optional[Iterable[T]] = None):
        self._items: list[T] = list(items or [])

    def __iter__(self):
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self._items)

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[T]:
        return next((item for item in self._items if item.id == item_id), None)

    def remove(self, item_id: str) -> None:
        self._items = [item for item in self._items if item.id != item_id]

    def patch(self, item_id: str, **fields) -> None:
        self._items = [
            item.model_copy(update=fields) if item.id == item_id else item for item in self._items
        ]

    def prepend(self, item: T) -> None:
        self._items.insert(0, item)

    def reconcile(self, items: Iterable[T]) -> None:
        """Replace local state with a full fetch from the server"""
        self._items = list(items)


class PendingApplicationsView:
    """Administrator queue of applications waiting for a decision"""

    def __init__(self, client: MedibookClient):
        self.client = client
        self.applications: LocalList[DoctorResponse] = LocalList()

    def load(self) -> list[DoctorResponse]:
        self.applications.reconcile(self.client.list_applications("pending"))
        return self.applications.items

    def decide(self, application_id: str, status: str) -> DoctorResponse:
        decided = self.client.decide_application(application_id, status)
        self.applications.remove(application_id)
        return decided


class AppointmentsView:
    """Appointments of the signed-in account with an optional status filter"""

    def __init__(self, client: MedibookClient, status_filter: Optional[str] = None):
        self.client = client
        self.status_filter = status_filter
        self.appointments: LocalList[AppointmentResponse] = LocalList()

    def load(self) -> list[AppointmentResponse]:
        self.appointments.reconcile(self.client.list_appointments())
        return self.visible

    @property
    def visible(self) -> list[AppointmentResponse]:
        if not self.status_filter:
            return self.appointments.items
        return [a for a in self.appointments if a.status == self.status_filter]

    def set_status(self, appointment_id: str, status: str) -> AppointmentResponse:
        updated = self.client.set_appointment_status(appointment_id, status)
        self.appointments.patch(appointment_id, status=updated.status)
        return updated


class NotificationInbox:
    """Notifications newest first, kept current by live inserts"""

    def __init__(self, client: MedibookClient):
        self.client = client
        self.notifications: LocalList[NotificationResponse] = LocalList()
        self._feed: Optional[LiveFeed] = None

    def load(self) -> list[NotificationResponse]:
        feed = self.client.notifications()
        merged = sorted(feed.unseen + feed.seen, key=lambda n: n.created_at, reverse=True)
        self.notifications.reconcile(merged)
        return self.notifications.items

    @property
    def unseen(self) -> list[NotificationResponse]:
        return [n for n in self.notifications if not n.seen]

    @property
    def seen(self) -> list[NotificationResponse]:
        return [n for n in self.notifications if n.seen]

    @property
    def unseen_count(self) -> int:
        return len(self.unseen)

    def mark_seen(self, notification_id: str) -> NotificationResponse:
        updated = self.client.mark_seen(notification_id)
        self.notifications.patch(notification_id, seen=True)
        return updated

    def on_insert(self, payload: dict) -> None:
        """Callback for the live feed"""
        notification = NotificationResponse.model_validate(payload)
        if notification.id in self.notifications:
            return
        self.notifications.prepend(notification)
        logger.debug(f"🔔 Live notification {notification.id} added to inbox")

    def follow(self) -> LiveFeed:
        """Start prepending live inserts; pair with `unfollow()` when the inbox goes away"""
        if self._feed is None or self._feed.closed:
            self._feed = self.client.subscribe_notifications(self.on_insert)
        return self._feed

    def unfollow(self) -> None:
        if self._feed is not None:
            self._feed.close()
            self._feed = None
