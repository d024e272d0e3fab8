"""Profile repository - Database operations for accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Account


class ProfileRepository:
    """Repository for account (profile) database operations"""

    @staticmethod
    def get_by_id(db: Session, account_id: str) -> Optional[Account]:
        return db.query(Account).filter(Account.id == account_id).first()

    @staticmethod
    def list_ids_by_role(db: Session, role: str) -> list[str]:
        rows = db.query(Account.id).filter(Account.role == role).all()
        return [row.id for row in rows]

    @staticmethod
    def set_role(db: Session, account: Account, role: str) -> Account:
        account.role = role
        db.commit()
        db.refresh(account)
        return account
