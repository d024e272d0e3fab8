"""Dashboard domain schemas"""

from pydantic import BaseModel

from ..appointments.schemas import AppointmentResponse
from ..doctors.schemas import DoctorResponse


class AdminStats(BaseModel):
    approved_doctors: int
    pending_applications: int
    total_appointments: int
    recent_applications: list[DoctorResponse]


class DashboardResponse(BaseModel):
    role: str
    upcoming_appointments: list[AppointmentResponse] = []
    doctors: list[DoctorResponse] = []
