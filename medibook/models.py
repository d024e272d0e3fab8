import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from .config import ENFORCE_SLOT_UNIQUENESS
from .database import Base

# Appointment statuses that hold a slot; rejected appointments free it
SLOT_HOLDING_STATUSES = ("pending", "approved")


def _uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=True)
    email = Column(String(255), index=True, nullable=False, default="")
    # user, doctor, admin - changed only by application approval or an administrator
    role = Column(String(20), nullable=False, default="user", index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    applications = relationship("DoctorApplication", back_populates="owner")
    appointments = relationship("Appointment", back_populates="patient")
    notifications = relationship("Notification", back_populates="recipient")


class DoctorApplication(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    specialization = Column(String(100), nullable=False)
    experience = Column(Integer, nullable=False, default=0)  # years
    fee = Column(Integer, nullable=False, default=0)
    phone = Column(String(50), nullable=False)
    address = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    timings = Column(JSON, nullable=False, default=list)  # e.g. ["09:00 AM", "09:30 AM"]
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    owner = relationship("Account", back_populates="applications")
    appointments = relationship("Appointment", back_populates="doctor")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    patient = relationship("Account", back_populates="appointments")
    doctor = relationship("DoctorApplication", back_populates="appointments")

    __table_args__ = (Index("ix_appointments_doctor_date", "doctor_id", "date"),)


if ENFORCE_SLOT_UNIQUENESS:
    _slot_holding = text("status IN ('pending', 'approved')")
    Index(
        "uq_appointments_active_slot",
        Appointment.doctor_id,
        Appointment.date,
        Appointment.time,
        unique=True,
        postgresql_where=_slot_holding,
        sqlite_where=_slot_holding,
    )


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    seen = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    recipient = relationship("Account", back_populates="notifications")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "message": self.message,
            "seen": bool(self.seen),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
