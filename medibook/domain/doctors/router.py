"""Doctor routers - application workflow and directory endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from ...rate_limiter import create_rate_limiter
from ...role_guard import require_roles
from .catalog import SPECIALIZATIONS, TIME_SLOTS
from .schemas import (
    ApplicationDecision,
    ApplicationStatus,
    DoctorApplicationCreate,
    DoctorCatalog,
    DoctorResponse,
)
from .service import DoctorApplicationService, DoctorDirectoryService

logger = logging.getLogger(__name__)

applications_router = APIRouter(prefix="/doctor-applications", tags=["Doctor Applications"])
router = APIRouter(prefix="/doctors", tags=["Doctors"])

limit_applications = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="doctor_application")


def get_application_service(db: Session = Depends(get_db)) -> DoctorApplicationService:
    """Dependency injection for DoctorApplicationService"""
    return DoctorApplicationService(db)


def get_directory_service(db: Session = Depends(get_db)) -> DoctorDirectoryService:
    """Dependency injection for DoctorDirectoryService"""
    return DoctorDirectoryService(db)


# ============================================================================
# APPLICATION WORKFLOW
# ============================================================================


@applications_router.post("", response_model=DoctorResponse, status_code=201)
async def submit_application(
    data: DoctorApplicationCreate,
    current_account: Account = Depends(get_current_account),
    service: DoctorApplicationService = Depends(get_application_service),
    _: None = Depends(limit_applications),
):
    """Apply to practice as a doctor; administrators are notified"""
    return service.submit(current_account, data)


@applications_router.get("", response_model=list[DoctorResponse])
async def list_applications(
    status: ApplicationStatus = Query("pending"),
    admin: Account = Depends(require_roles("admin")),
    service: DoctorApplicationService = Depends(get_application_service),
):
    """Applications in a given status, newest first (pending by default)"""
    return service.list_applications(status)


@applications_router.get("/mine", response_model=list[DoctorResponse])
async def list_my_applications(
    current_account: Account = Depends(get_current_account),
    service: DoctorApplicationService = Depends(get_application_service),
):
    """Applications submitted by the current account"""
    return service.list_own_applications(current_account)


@applications_router.patch("/{application_id}", response_model=DoctorResponse)
async def decide_application(
    application_id: str,
    data: ApplicationDecision,
    admin: Account = Depends(require_roles("admin")),
    service: DoctorApplicationService = Depends(get_application_service),
):
    """Approve (promoting the applicant to doctor) or block an application"""
    logger.info(f"🩺 Admin {admin.id} deciding application {application_id}: {data.status}")
    return service.decide(application_id, data.status)


# ============================================================================
# DIRECTORY
# ============================================================================


@router.get("", response_model=list[DoctorResponse])
async def list_doctors(
    search: Optional[str] = Query(None),
    specialization: Optional[str] = Query(None),
    current_account: Account = Depends(get_current_account),
    service: DoctorDirectoryService = Depends(get_directory_service),
):
    """Approved doctors, optionally filtered by name/specialization search"""
    return service.list_doctors(search, specialization)


@router.get("/catalog", response_model=DoctorCatalog)
async def get_catalog():
    """Specializations and time slots offered on the application form"""
    return DoctorCatalog(specializations=SPECIALIZATIONS, time_slots=TIME_SLOTS)


@router.get("/specializations", response_model=list[str])
async def list_specializations(
    current_account: Account = Depends(get_current_account),
    service: DoctorDirectoryService = Depends(get_directory_service),
):
    """Distinct specializations among approved doctors"""
    return service.list_specializations()


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    doctor_id: str,
    current_account: Account = Depends(get_current_account),
    service: DoctorDirectoryService = Depends(get_directory_service),
):
    return service.get_doctor(doctor_id, current_account)
