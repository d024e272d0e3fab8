from .api import LiveFeed, MedibookClient
from .session import SessionContext
from .views import AppointmentsView, LocalList, NotificationInbox, PendingApplicationsView

__all__ = [
    "AppointmentsView",
    "LiveFeed",
    "LocalList",
    "MedibookClient",
    "NotificationInbox",
    "PendingApplicationsView",
    "SessionContext",
]
