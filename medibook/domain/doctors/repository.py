"""Doctor repository - Database operations for doctor applications"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import DoctorApplication


class DoctorApplicationRepository:
    """Repository for doctor application database operations"""

    @staticmethod
    def get_by_id(db: Session, application_id: str) -> Optional[DoctorApplication]:
        return db.query(DoctorApplication).filter(DoctorApplication.id == application_id).first()

    @staticmethod
    def get_for_owner(db: Session, account_id: str) -> list[DoctorApplication]:
        return (
            db.query(DoctorApplication)
            .filter(DoctorApplication.user_id == account_id)
            .order_by(DoctorApplication.created_at.desc())
            .all()
        )

    @staticmethod
    def get_approved_for_owner(db: Session, account_id: str) -> Optional[DoctorApplication]:
        """The doctor record an account practices under"""
        return (
            db.query(DoctorApplication)
            .filter(DoctorApplication.user_id == account_id, DoctorApplication.status == "approved")
            .order_by(DoctorApplication.created_at.desc())
            .first()
        )

    @staticmethod
    def list_by_status(
        db: Session, status: str, limit: Optional[int] = None
    ) -> list[DoctorApplication]:
        query = (
            db.query(DoctorApplication)
            .filter(DoctorApplication.status == status)
            .order_by(DoctorApplication.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def count_by_status(db: Session, status: str) -> int:
        return (
            db.query(func.count(DoctorApplication.id))
            .filter(DoctorApplication.status == status)
            .scalar()
        )

    @staticmethod
    def search_approved(
        db: Session, search: Optional[str] = None, specialization: Optional[str] = None
    ) -> list[DoctorApplication]:
        """Approved doctors matching a name/specialization search, newest first"""
        query = db.query(DoctorApplication).filter(DoctorApplication.status == "approved")

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    DoctorApplication.first_name.ilike(pattern),
                    DoctorApplication.last_name.ilike(pattern),
                    DoctorApplication.specialization.ilike(pattern),
                )
            )

        if specialization:
            query = query.filter(DoctorApplication.specialization == specialization)

        return query.order_by(DoctorApplication.created_at.desc()).all()

    @staticmethod
    def list_approved_specializations(db: Session) -> list[str]:
        rows = (
            db.query(DoctorApplication.specialization)
            .filter(DoctorApplication.status == "approved")
            .distinct()
            .all()
        )
        return sorted(row.specialization for row in rows)

    @staticmethod
    def create(db: Session, user_id: str, **application_data) -> DoctorApplication:
        application = DoctorApplication(user_id=user_id, status="pending", **application_data)
        db.add(application)
        db.commit()
        db.refresh(application)
        return application

    @staticmethod
    def update_status(db: Session, application: DoctorApplication, status: str) -> DoctorApplication:
        application.status = status
        db.commit()
        db.refresh(application)
        return application
