"""Profile service - current account and administrator role changes"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import GatewayFailure
from ...models import Account
from .repository import ProfileRepository

logger = logging.getLogger(__name__)


class ProfileService:
    """Service layer for profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProfileRepository()

    def get_profile(self, account_id: str) -> Account:
        account = self.repo.get_by_id(self.db, account_id)
        if not account:
            raise HTTPException(status_code=404, detail="Profile not found")
        return account

    def set_role(self, admin: Account, account_id: str, role: str) -> Account:
        """Set an account's role directly (administrators only)"""
        account = self.get_profile(account_id)
        if account.role == role:
            return account

        logger.info(f"👤 Admin {admin.id} changing role of {account.id}: {account.role} -> {role}")
        try:
            return self.repo.set_role(self.db, account, role)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update role for {account_id}: {e}")
            raise GatewayFailure("Failed to update user role", cause=e) from e
