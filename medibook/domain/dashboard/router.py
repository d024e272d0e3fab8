"""Dashboard router - landing data per role and the admin overview"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from ...role_guard import require_roles
from .schemas import AdminStats, DashboardResponse
from .service import DashboardService

router = APIRouter(tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_account: Account = Depends(get_current_account),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Upcoming appointments, plus a few doctors to book with for patients"""
    return service.for_account(current_account)


@router.get("/admin/stats", response_model=AdminStats)
async def get_admin_stats(
    admin: Account = Depends(require_roles("admin")),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.admin_stats()
