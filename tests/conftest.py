"""
Shared pytest fixtures.

The app runs against an in-memory SQLite database shared through a
StaticPool. Authentication is replaced by an `auth` fixture that decides
which account the next request is made as.
"""

import os
from datetime import date, datetime, timedelta
from typing import Generator

# Ensure test environment before the app reads its configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

import pytest
from fastapi import Depends, HTTPException, Query
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from medibook.auth import get_current_account
from medibook.database import Base, get_db
from medibook.domain.appointments.router import get_appointment_service
from medibook.domain.appointments.service import AppointmentService
from medibook.domain.dashboard.router import get_dashboard_service
from medibook.domain.dashboard.service import DashboardService
from medibook.domain.notifications.router import get_live_account
from medibook.main import app
from medibook.models import Account, Appointment, DoctorApplication, Notification

# Every booking scenario runs as if today were this date
TODAY = date(2025, 5, 20)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    """Session for arranging and inspecting data outside of requests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# APP FIXTURES
# ============================================================================


class AuthState:
    """Which account requests are made as; None means signed out"""

    def __init__(self):
        self.account_id = None

    def login(self, account: Account) -> None:
        self.account_id = account.id

    def logout(self) -> None:
        self.account_id = None


@pytest.fixture
def auth() -> AuthState:
    return AuthState()


@pytest.fixture
def client(session_factory, auth) -> Generator[TestClient, None, None]:
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_current_account(db: Session = Depends(get_db)) -> Account:
        account = db.get(Account, auth.account_id) if auth.account_id else None
        if account is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return account

    def override_live_account(token: str = Query(...)) -> Account:
        with session_factory() as session:
            return session.get(Account, token)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_account] = override_current_account
    app.dependency_overrides[get_live_account] = override_live_account
    app.dependency_overrides[get_appointment_service] = lambda db=Depends(get_db): (
        AppointmentService(db, today=lambda: TODAY)
    )
    app.dependency_overrides[get_dashboard_service] = lambda db=Depends(get_db): (
        DashboardService(db, today=lambda: TODAY)
    )

    yield TestClient(app)

    app.dependency_overrides.clear()


# ============================================================================
# DATA FACTORIES
# ============================================================================


@pytest.fixture
def make_account(db):
    counter = {"n": 0}

    def factory(role: str = "user", email: str = None) -> Account:
        counter["n"] += 1
        account = Account(email=email or f"account{counter['n']}@example.com", role=role)
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return factory


@pytest.fixture
def make_doctor(db, make_account):
    def factory(
        owner: Account = None,
        status: str = "approved",
        timings: list = None,
        first_name: str = "Alice",
        last_name: str = "Ng",
        specialization: str = "Cardiology",
        created_at: datetime = None,
    ) -> DoctorApplication:
        owner = owner or make_account(role="doctor" if status == "approved" else "user")
        doctor = DoctorApplication(
            user_id=owner.id,
            first_name=first_name,
            last_name=last_name,
            specialization=specialization,
            experience=8,
            fee=120,
            phone="+15551234567",
            address="1 Main St",
            status=status,
            timings=timings if timings is not None else ["09:00 AM", "10:00 AM", "11:00 AM"],
            created_at=created_at or datetime.utcnow(),
        )
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    return factory


@pytest.fixture
def make_appointment(db):
    def factory(
        patient: Account,
        doctor: DoctorApplication,
        on_date: date = None,
        time: str = "09:00 AM",
        status: str = "pending",
    ) -> Appointment:
        appointment = Appointment(
            user_id=patient.id,
            doctor_id=doctor.id,
            date=on_date or TODAY + timedelta(days=12),
            time=time,
            status=status,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return factory


@pytest.fixture
def make_notification(db):
    def factory(
        account: Account, message: str = "Hello", seen: bool = False, created_at: datetime = None
    ) -> Notification:
        notification = Notification(
            user_id=account.id,
            message=message,
            seen=seen,
            created_at=created_at or datetime.utcnow(),
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    return factory


@pytest.fixture
def messages_for(db):
    """Messages currently stored for an account"""

    def lookup(account: Account) -> list[str]:
        db.expire_all()
        rows = db.query(Notification).filter(Notification.user_id == account.id).all()
        return [n.message for n in rows]

    return lookup


@pytest.fixture
def today() -> date:
    return TODAY
