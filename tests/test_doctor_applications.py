"""Tests for the doctor application workflow and directory"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from medibook.domain.doctors.repository import DoctorApplicationRepository
from medibook.domain.doctors.service import DoctorApplicationService
from medibook.errors import GatewayFailure
from medibook.models import Account, DoctorApplication

APPLICATION = {
    "first_name": "Ann",
    "last_name": "Lee",
    "specialization": "Dermatology",
    "experience": 5,
    "fee": 80,
    "phone": "(555) 123-4567",
    "address": "42 Elm Street",
    "timings": ["9:00 am", "10:00 AM", "10:00 AM"],
}


def _db_error():
    return OperationalError("UPDATE doctors", {}, Exception("database is locked"))


class TestSubmit:
    def test_notifies_every_admin(self, client, auth, db, make_account, messages_for):
        a1 = make_account(role="admin")
        a2 = make_account(role="admin")
        u2 = make_account()
        auth.login(u2)

        response = client.post("/doctor-applications", json=APPLICATION)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["user_id"] == u2.id
        assert body["phone"] == "+15551234567"
        assert body["timings"] == ["09:00 AM", "10:00 AM"]

        for admin in (a1, a2):
            messages = messages_for(admin)
            assert len(messages) == 1
            assert "Ann Lee" in messages[0]
        assert messages_for(u2) == []

    def test_submit_without_admins_still_succeeds(self, client, auth, make_account):
        auth.login(make_account())
        assert client.post("/doctor-applications", json=APPLICATION).status_code == 201

    @pytest.mark.parametrize(
        "field,value",
        [
            ("first_name", "   "),
            ("phone", "12"),
            ("experience", -1),
            ("fee", -10),
            ("timings", ["25:00 XM"]),
        ],
    )
    def test_rejects_malformed_fields(self, client, auth, db, make_account, field, value):
        auth.login(make_account())

        response = client.post("/doctor-applications", json={**APPLICATION, field: value})

        assert response.status_code == 422
        assert db.query(DoctorApplication).count() == 0

    def test_fan_out_failure_keeps_application(self, client, auth, db, make_account):
        make_account(role="admin")
        auth.login(make_account())

        with patch(
            "medibook.domain.notifications.repository.NotificationRepository.create_many",
            side_effect=_db_error(),
        ):
            response = client.post("/doctor-applications", json=APPLICATION)

        assert response.status_code == 201
        assert db.query(DoctorApplication).count() == 1

    def test_lists_own_applications(self, client, auth, make_account, make_doctor):
        owner = make_account()
        make_doctor(owner=owner, status="pending")
        make_doctor(status="pending")
        auth.login(owner)

        response = client.get("/doctor-applications/mine")

        assert response.status_code == 200
        assert [a["user_id"] for a in response.json()] == [owner.id]


class TestDecide:
    def test_block_keeps_role_and_notifies(self, client, auth, db, make_account, make_doctor, messages_for):
        u1 = make_account()
        application = make_doctor(owner=u1, status="pending")
        auth.login(make_account(role="admin"))

        response = client.patch(f"/doctor-applications/{application.id}", json={"status": "blocked"})

        assert response.status_code == 200
        db.expire_all()
        assert db.get(DoctorApplication, application.id).status == "blocked"
        assert db.get(Account, u1.id).role == "user"
        messages = messages_for(u1)
        assert len(messages) == 1
        assert "blocked" in messages[0].lower()

    def test_approve_promotes_owner(self, client, auth, db, make_account, make_doctor, messages_for):
        u1 = make_account()
        application = make_doctor(owner=u1, status="pending")
        auth.login(make_account(role="admin"))

        response = client.patch(f"/doctor-applications/{application.id}", json={"status": "approved"})

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        db.expire_all()
        assert db.get(Account, u1.id).role == "doctor"
        messages = messages_for(u1)
        assert len(messages) == 1
        assert "approved" in messages[0]

    def test_approving_an_admins_application_keeps_admin_role(
        self, client, auth, db, make_account, make_doctor
    ):
        applicant = make_account(role="admin")
        application = make_doctor(owner=applicant, status="pending")
        auth.login(make_account(role="admin"))

        response = client.patch(f"/doctor-applications/{application.id}", json={"status": "approved"})

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        db.expire_all()
        assert db.get(Account, applicant.id).role == "admin"

    def test_failed_status_write_restores_role(self, db, make_account, make_doctor, messages_for):
        u1 = make_account()
        application = make_doctor(owner=u1, status="pending")
        service = DoctorApplicationService(db)

        with patch.object(DoctorApplicationRepository, "update_status", side_effect=_db_error()):
            with pytest.raises(GatewayFailure) as exc_info:
                service.decide(application.id, "approved")

        assert exc_info.value.status_code == 502
        assert exc_info.value.detail == "Failed to update doctor status"
        db.expire_all()
        assert db.get(Account, u1.id).role == "user"
        assert db.get(DoctorApplication, application.id).status == "pending"
        assert messages_for(u1) == []

    def test_failed_compensation_is_logged_critical(self, db, make_account, make_doctor, caplog):
        u1 = make_account()
        application = make_doctor(owner=u1, status="pending")
        service = DoctorApplicationService(db)
        real_set_role = service.profiles.set_role
        calls = []

        def set_role(session, account, role):
            calls.append(role)
            if len(calls) > 1:
                raise _db_error()
            return real_set_role(session, account, role)

        with patch.object(DoctorApplicationRepository, "update_status", side_effect=_db_error()):
            with patch.object(service.profiles, "set_role", side_effect=set_role):
                with pytest.raises(GatewayFailure):
                    service.decide(application.id, "approved")

        assert calls == ["doctor", "user"]
        assert any(r.levelname == "CRITICAL" for r in caplog.records)

    def test_failed_promotion_leaves_application_pending(self, db, make_account, make_doctor):
        u1 = make_account()
        application = make_doctor(owner=u1, status="pending")
        service = DoctorApplicationService(db)

        with patch.object(service.profiles, "set_role", side_effect=_db_error()):
            with pytest.raises(GatewayFailure) as exc_info:
                service.decide(application.id, "approved")

        assert exc_info.value.detail == "Failed to update user role"
        db.expire_all()
        assert db.get(DoctorApplication, application.id).status == "pending"

    def test_already_decided_conflicts(self, client, auth, make_account, make_doctor):
        application = make_doctor(status="blocked")
        auth.login(make_account(role="admin"))

        response = client.patch(f"/doctor-applications/{application.id}", json={"status": "approved"})

        assert response.status_code == 409

    def test_unknown_application(self, client, auth, make_account):
        auth.login(make_account(role="admin"))
        response = client.patch("/doctor-applications/missing", json={"status": "approved"})
        assert response.status_code == 404

    def test_only_admins_decide(self, client, auth, make_account, make_doctor):
        application = make_doctor(status="pending")
        auth.login(make_account(role="doctor"))

        response = client.patch(f"/doctor-applications/{application.id}", json={"status": "approved"})

        assert response.status_code == 403

    def test_pending_queue_newest_first(self, client, auth, make_account, make_doctor):
        now = datetime.utcnow()
        older = make_doctor(status="pending", created_at=now - timedelta(days=1))
        newer = make_doctor(status="pending", created_at=now)
        make_doctor(status="approved")
        auth.login(make_account(role="admin"))

        response = client.get("/doctor-applications")

        assert [a["id"] for a in response.json()] == [newer.id, older.id]


class TestDirectory:
    def test_search_is_case_insensitive_over_names_and_specialization(
        self, client, auth, make_account, make_doctor
    ):
        cardio = make_doctor(first_name="Maria", specialization="Cardiology")
        derm = make_doctor(first_name="John", last_name="Cardin", specialization="Dermatology")
        make_doctor(first_name="Zed", specialization="Neurology")
        make_doctor(first_name="Carla", status="pending")
        auth.login(make_account())

        response = client.get("/doctors", params={"search": "CARD"})

        assert {d["id"] for d in response.json()} == {cardio.id, derm.id}

    def test_specialization_filter_and_distinct_list(self, client, auth, make_account, make_doctor):
        make_doctor(specialization="Pediatrics")
        make_doctor(specialization="Cardiology")
        make_doctor(specialization="Cardiology")
        make_doctor(specialization="Oncology", status="pending")
        auth.login(make_account())

        assert client.get("/doctors/specializations").json() == ["Cardiology", "Pediatrics"]
        filtered = client.get("/doctors", params={"specialization": "Pediatrics"}).json()
        assert [d["specialization"] for d in filtered] == ["Pediatrics"]

    def test_unapproved_doctor_hidden_from_patients(self, client, auth, make_account, make_doctor):
        owner = make_account()
        application = make_doctor(owner=owner, status="pending")

        auth.login(make_account())
        assert client.get(f"/doctors/{application.id}").status_code == 404

        auth.login(owner)
        assert client.get(f"/doctors/{application.id}").status_code == 200

    def test_catalog_is_public(self, client):
        body = client.get("/doctors/catalog").json()
        assert "Cardiology" in body["specializations"]
        assert body["time_slots"][0] == "09:00 AM"
