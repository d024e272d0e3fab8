"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import SLOT_HOLDING_STATUSES, Appointment
from ...shared.validators import slot_minutes


def _chronological(appointments: list[Appointment]) -> list[Appointment]:
    return sorted(appointments, key=lambda a: (a.date, slot_minutes(a.time)))


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def claimed_times(db: Session, doctor_id: str, on_date: date) -> set[str]:
        """Times already held by pending or approved appointments"""
        rows = (
            db.query(Appointment.time)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == on_date,
                Appointment.status.in_(SLOT_HOLDING_STATUSES),
            )
            .all()
        )
        return {row.time for row in rows}

    @staticmethod
    def list_appointments(
        db: Session,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        status: Optional[str] = None,
        from_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Appointment]:
        """Appointments with their doctor join-fetched, in chronological order"""
        query = db.query(Appointment).options(joinedload(Appointment.doctor))

        if patient_id:
            query = query.filter(Appointment.user_id == patient_id)
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)
        if from_date:
            query = query.filter(Appointment.date >= from_date)

        appointments = _chronological(query.all())
        return appointments[:limit] if limit else appointments

    @staticmethod
    def count_all(db: Session) -> int:
        return db.query(func.count(Appointment.id)).scalar()

    @staticmethod
    def create(db: Session, user_id: str, doctor_id: str, on_date: date, time: str) -> Appointment:
        appointment = Appointment(
            user_id=user_id, doctor_id=doctor_id, date=on_date, time=time, status="pending"
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_status(db: Session, appointment: Appointment, status: str) -> Appointment:
        appointment.status = status
        db.commit()
        db.refresh(appointment)
        return appointment
