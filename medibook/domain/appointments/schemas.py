"""Appointment domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import validate_time_slot

AppointmentStatus = Literal["pending", "approved", "rejected"]


class BookingRequest(BaseModel):
    """Schema for requesting an appointment slot"""

    doctor_id: str
    date: dt.date
    time: str

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_slot(v)


class AppointmentStatusUpdate(BaseModel):
    status: Literal["approved", "rejected"]


class DoctorSummary(BaseModel):
    id: str
    user_id: str
    first_name: str
    last_name: str
    specialization: str
    fee: int

    model_config = ConfigDict(from_attributes=True)


class AppointmentResponse(BaseModel):
    id: str
    user_id: str
    doctor_id: str
    date: dt.date
    time: str
    status: AppointmentStatus
    created_at: Optional[dt.datetime] = None
    doctor: Optional[DoctorSummary] = None

    model_config = ConfigDict(from_attributes=True)


class AvailableSlots(BaseModel):
    doctor_id: str
    date: dt.date
    slots: list[str]
