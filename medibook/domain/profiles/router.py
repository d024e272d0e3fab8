"""Profile router - current profile and administrator role management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from ...role_guard import require_roles
from .schemas import ProfileResponse, RoleUpdate
from .service import ProfileService

router = APIRouter(tags=["Profiles"])


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    """Dependency injection for ProfileService"""
    return ProfileService(db)


@router.get("/profiles/me", response_model=ProfileResponse)
async def get_my_profile(current_account: Account = Depends(get_current_account)):
    """Get the signed-in account and its role"""
    return current_account


@router.patch("/admin/profiles/{account_id}/role", response_model=ProfileResponse)
async def set_profile_role(
    account_id: str,
    data: RoleUpdate,
    admin: Account = Depends(require_roles("admin")),
    service: ProfileService = Depends(get_profile_service),
):
    """Set an account's role directly"""
    return service.set_role(admin, account_id, data.role)
