"""Appointment service - slot availability, booking and status transitions"""

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import BOOKING_WINDOW_DAYS
from ...errors import GatewayFailure, ValidationFailure
from ...models import Account, Appointment, DoctorApplication
from ..doctors.repository import DoctorApplicationRepository
from ..notifications.service import NotificationService
from .repository import AppointmentRepository
from .schemas import BookingRequest

logger = logging.getLogger(__name__)


class AppointmentService:
    """Service layer for the booking workflow.

    Availability and booking are separate reads and writes: two patients can
    both see a slot as free and both book it. Set ENFORCE_SLOT_UNIQUENESS to
    have the database reject the second booking instead.
    """

    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.today = today
        self.repo = AppointmentRepository()
        self.doctors = DoctorApplicationRepository()
        self.notifications = NotificationService(db)

    def _get_doctor(self, doctor_id: str) -> DoctorApplication:
        doctor = self.doctors.get_by_id(self.db, doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def list_available_slots(self, doctor_id: str, on_date: date) -> list[str]:
        """The doctor's configured timings minus those held by pending/approved appointments"""
        doctor = self._get_doctor(doctor_id)
        claimed = self.repo.claimed_times(self.db, doctor.id, on_date)
        return [slot for slot in doctor.timings or [] if slot not in claimed]

    def book(self, patient: Account, data: BookingRequest) -> Appointment:
        """Request a slot; the doctor's account is notified"""
        doctor = self._get_doctor(data.doctor_id)
        if doctor.status != "approved":
            raise ValidationFailure("This doctor is not accepting appointments")
        if data.time not in (doctor.timings or []):
            raise ValidationFailure(f"{data.time} is not one of this doctor's time slots")

        first_day = self.today() + timedelta(days=1)
        last_day = self.today() + timedelta(days=BOOKING_WINDOW_DAYS)
        if not first_day <= data.date <= last_day:
            raise ValidationFailure(
                f"Appointments can be booked from {first_day.isoformat()} to {last_day.isoformat()}"
            )

        logger.info(f"📅 Booking {doctor.id} on {data.date} at {data.time} for {patient.id}")
        try:
            appointment = self.repo.create(self.db, patient.id, doctor.id, data.date, data.time)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Slot {data.date} {data.time} for {doctor.id} already taken: {e}")
            raise GatewayFailure("This time slot has just been booked", status_code=409, cause=e) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to book appointment: {e}")
            raise GatewayFailure("Failed to book appointment", cause=e) from e

        self.notifications.notify(
            doctor.user_id,
            f"New appointment request for {data.date.isoformat()} at {data.time}",
        )
        return appointment

    def set_status(self, actor: Account, appointment_id: str, status: str) -> Appointment:
        """Approve or reject a pending appointment; the patient is notified"""
        if status not in ("approved", "rejected"):
            raise ValidationFailure(f"Unknown appointment status '{status}'")

        appointment = self.get_appointment(appointment_id)
        is_owning_doctor = actor.role == "doctor" and appointment.doctor.user_id == actor.id
        if actor.role != "admin" and not is_owning_doctor:
            raise HTTPException(status_code=403, detail="You cannot update this appointment")
        if appointment.status != "pending":
            raise HTTPException(
                status_code=409, detail=f"Appointment has already been {appointment.status}"
            )

        try:
            self.repo.update_status(self.db, appointment, status)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error updating appointment {appointment_id}: {e}")
            raise GatewayFailure("Failed to update appointment", cause=e) from e

        self.notifications.notify(
            appointment.user_id,
            f"Your appointment for {appointment.date.isoformat()} at {appointment.time} "
            f"has been {status}",
        )
        return appointment

    def list_for(
        self,
        account: Account,
        status: Optional[str] = None,
        upcoming: bool = False,
        limit: Optional[int] = None,
    ) -> list[Appointment]:
        """Doctors see their practice's appointments; everyone else their own bookings"""
        from_date = self.today() if upcoming else None

        if account.role == "doctor":
            doctor = self.doctors.get_approved_for_owner(self.db, account.id)
            if not doctor:
                return []
            return self.repo.list_appointments(
                self.db, doctor_id=doctor.id, status=status, from_date=from_date, limit=limit
            )

        return self.repo.list_appointments(
            self.db, patient_id=account.id, status=status, from_date=from_date, limit=limit
        )
