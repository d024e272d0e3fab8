"""Doctor service - application workflow and the doctor directory"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import GatewayFailure, ValidationFailure
from ...models import Account, DoctorApplication
from ..notifications.service import NotificationService
from ..profiles.repository import ProfileRepository
from .repository import DoctorApplicationRepository
from .schemas import DoctorApplicationCreate

logger = logging.getLogger(__name__)

DECISION_MESSAGES = {
    "approved": "You can now log in as a doctor and start accepting appointments.",
    "blocked": "Please contact support for more information.",
}


class DoctorApplicationService:
    """Service layer for doctor applications"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorApplicationRepository()
        self.profiles = ProfileRepository()
        self.notifications = NotificationService(db)

    def get_application(self, application_id: str) -> DoctorApplication:
        application = self.repo.get_by_id(self.db, application_id)
        if not application:
            raise HTTPException(status_code=404, detail="Doctor application not found")
        return application

    def list_applications(self, status: str = "pending") -> list[DoctorApplication]:
        return self.repo.list_by_status(self.db, status)

    def list_own_applications(self, account: Account) -> list[DoctorApplication]:
        return self.repo.get_for_owner(self.db, account.id)

    def submit(self, applicant: Account, data: DoctorApplicationCreate) -> DoctorApplication:
        """Create a pending application and tell every administrator about it"""
        logger.info(f"📥 Doctor application from account {applicant.id}")
        try:
            application = self.repo.create(self.db, applicant.id, **data.model_dump())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create doctor application for {applicant.id}: {e}")
            raise GatewayFailure("Failed to submit application", cause=e) from e

        try:
            admin_ids = self.profiles.list_ids_by_role(self.db, "admin")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Could not load administrators to notify: {e}")
            admin_ids = []

        self.notifications.notify_many(
            admin_ids, f"New doctor application received from {application.full_name}"
        )
        return application

    def decide(self, application_id: str, decision: str) -> DoctorApplication:
        """
        Approve or block a pending application.

        Approval promotes a `user` owner to `doctor` before the application
        status is written. If that second write fails the promotion is
        reverted, so once this returns or raises the pair (role, status) is
        either (doctor, approved) or what it was before the call. Owners who
        are already admins or doctors keep their role.
        """
        if decision not in DECISION_MESSAGES:
            raise ValidationFailure(f"Unknown decision '{decision}'")

        application = self.get_application(application_id)
        if application.status != "pending":
            raise HTTPException(
                status_code=409, detail=f"Application has already been {application.status}"
            )

        if decision == "approved":
            self._approve(application)
        else:
            self._write_status(application, "blocked")

        self.notifications.notify(
            application.user_id,
            f"Your doctor application has been {decision}. {DECISION_MESSAGES[decision]}",
        )
        logger.info(f"✅ Application {application.id} {decision}")
        return application

    def _approve(self, application: DoctorApplication) -> None:
        owner = self.profiles.get_by_id(self.db, application.user_id)
        if not owner:
            raise HTTPException(status_code=404, detail="Applicant profile not found")
        previous_role = owner.role

        # Only plain users are promoted; admins and doctors keep their role
        if previous_role != "user":
            logger.info(f"ℹ️ Owner {owner.id} is already '{previous_role}', role left unchanged")
            self._write_status(application, "approved")
            return

        try:
            self.profiles.set_role(self.db, owner, "doctor")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error updating profile {owner.id}: {e}")
            raise GatewayFailure("Failed to update user role", cause=e) from e

        try:
            self.repo.update_status(self.db, application, "approved")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error updating doctor application {application.id}: {e}")
            self._restore_role(owner, previous_role)
            raise GatewayFailure("Failed to update doctor status", cause=e) from e

    def _restore_role(self, owner: Account, role: str) -> None:
        try:
            self.profiles.set_role(self.db, owner, role)
            logger.warning(f"↩️ Restored role '{role}' for {owner.id} after failed approval")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.critical(
                f"🚨 Role rollback failed for {owner.id}; profile is 'doctor' "
                f"while its application is still pending: {e}"
            )

    def _write_status(self, application: DoctorApplication, status: str) -> None:
        try:
            self.repo.update_status(self.db, application, status)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error updating doctor application {application.id}: {e}")
            raise GatewayFailure("Failed to update doctor status", cause=e) from e


class DoctorDirectoryService:
    """Read side for patients looking for a doctor"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorApplicationRepository()

    def list_doctors(
        self, search: Optional[str] = None, specialization: Optional[str] = None
    ) -> list[DoctorApplication]:
        return self.repo.search_approved(self.db, search, specialization)

    def list_specializations(self) -> list[str]:
        return self.repo.list_approved_specializations(self.db)

    def get_doctor(self, doctor_id: str, viewer: Account) -> DoctorApplication:
        """Approved doctors are public; other applications only to their owner and admins"""
        doctor = self.repo.get_by_id(self.db, doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        if doctor.status != "approved" and viewer.role != "admin" and viewer.id != doctor.user_id:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor
