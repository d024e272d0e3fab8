"""Dashboard service - role-specific landing data and admin statistics"""

import logging
from datetime import date
from typing import Callable

from sqlalchemy.orm import Session

from ...models import Account
from ..appointments.repository import AppointmentRepository
from ..appointments.schemas import AppointmentResponse
from ..appointments.service import AppointmentService
from ..doctors.repository import DoctorApplicationRepository
from ..doctors.schemas import DoctorResponse
from .schemas import AdminStats, DashboardResponse

logger = logging.getLogger(__name__)

DASHBOARD_LIMIT = 5


class DashboardService:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.doctors = DoctorApplicationRepository()
        self.appointments = AppointmentRepository()
        self.booking = AppointmentService(db, today=today)

    def admin_stats(self) -> AdminStats:
        """Counts for the administrator overview plus the latest pending applications"""
        recent = self.doctors.list_by_status(self.db, "pending", limit=DASHBOARD_LIMIT)
        return AdminStats(
            approved_doctors=self.doctors.count_by_status(self.db, "approved"),
            pending_applications=self.doctors.count_by_status(self.db, "pending"),
            total_appointments=self.appointments.count_all(self.db),
            recent_applications=[DoctorResponse.model_validate(d) for d in recent],
        )

    def for_account(self, account: Account) -> DashboardResponse:
        upcoming = [
            AppointmentResponse.model_validate(a)
            for a in self.booking.list_for(account, upcoming=True, limit=DASHBOARD_LIMIT)
        ]
        if account.role == "doctor":
            return DashboardResponse(role=account.role, upcoming_appointments=upcoming)

        doctors = self.doctors.search_approved(self.db)[:DASHBOARD_LIMIT]
        logger.debug(f"📊 Dashboard for {account.id}: {len(upcoming)} upcoming appointments")
        return DashboardResponse(
            role=account.role,
            upcoming_appointments=upcoming,
            doctors=[DoctorResponse.model_validate(d) for d in doctors],
        )
