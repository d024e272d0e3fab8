"""Appointment routers - booking, status transitions and slot availability"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from ...rate_limiter import create_rate_limiter
from ...role_guard import require_roles
from .schemas import (
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AvailableSlots,
    BookingRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
slots_router = APIRouter(prefix="/doctors", tags=["Doctors"])

limit_bookings = create_rate_limiter(limit=20, window_seconds=60, key_prefix="booking")


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@slots_router.get("/{doctor_id}/slots", response_model=AvailableSlots)
async def get_available_slots(
    doctor_id: str,
    on_date: date = Query(..., alias="date"),
    current_account: Account = Depends(get_current_account),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Free time slots of a doctor on a date"""
    slots = service.list_available_slots(doctor_id, on_date)
    return AvailableSlots(doctor_id=doctor_id, date=on_date, slots=slots)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    current_account: Account = Depends(get_current_account),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments visible to the current account, in chronological order"""
    return service.list_for(current_account, status=status)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    data: BookingRequest,
    current_account: Account = Depends(get_current_account),
    service: AppointmentService = Depends(get_appointment_service),
    _: None = Depends(limit_bookings),
):
    """Request an appointment slot with a doctor"""
    return service.book(current_account, data)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    actor: Account = Depends(require_roles("doctor", "admin")),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Approve or reject a pending appointment"""
    return service.set_status(actor, appointment_id, data.status)
