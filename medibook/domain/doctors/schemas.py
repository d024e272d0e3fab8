"""Doctor domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_phone, validate_required_text, validate_time_slot

ApplicationStatus = Literal["pending", "approved", "blocked"]


class DoctorApplicationCreate(BaseModel):
    """Schema for submitting a doctor application"""

    first_name: str
    last_name: str
    specialization: str
    experience: int = Field(ge=0)
    fee: int = Field(ge=0)
    phone: str
    address: str
    timings: list[str] = []

    @field_validator("first_name", "last_name", "specialization", "address")
    @classmethod
    def validate_text(cls, v, info):
        return validate_required_text(v, info.field_name)

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        validate_required_text(v, "phone")
        return validate_phone(v)

    @field_validator("timings")
    @classmethod
    def validate_timings(cls, v):
        normalized = []
        for label in v:
            slot = validate_time_slot(label)
            if slot not in normalized:
                normalized.append(slot)
        return normalized


class ApplicationDecision(BaseModel):
    status: Literal["approved", "blocked"]


class DoctorResponse(BaseModel):
    id: str
    user_id: str
    first_name: str
    last_name: str
    specialization: str
    experience: int
    fee: int
    phone: str
    address: str
    status: ApplicationStatus
    timings: list[str]
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DoctorCatalog(BaseModel):
    specializations: list[str]
    time_slots: list[str]
