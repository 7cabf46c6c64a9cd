"""Tests for the admin-editable application deadline."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import step_payload
from scholarship_app.config import settings
from scholarship_app.exceptions import Forbidden, ValidationFailed
from scholarship_app.models.application import ApplicationStatus
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.user import UserRole
from scholarship_app.services.applications import application_service
from scholarship_app.services.audit import audit_recorder
from scholarship_app.services.portal_settings import portal_settings_service


def yesterday():
    return datetime.utcnow() - timedelta(days=1)


class TestDeadlineSetting:
    def test_configured_deadline_is_the_default(self, db, monkeypatch):
        assert portal_settings_service.get_deadline(db) is None
        configured = datetime(2030, 3, 1, 17, 0)
        monkeypatch.setattr(settings, "application_deadline", configured)
        assert portal_settings_service.get_deadline(db) == configured

    def test_stored_deadline_overrides_config(self, db, admin_user, monkeypatch):
        monkeypatch.setattr(settings, "application_deadline", datetime(2030, 3, 1))
        portal_settings_service.set_deadline(db, datetime(2031, 1, 15, 12, 0), admin_user)
        assert portal_settings_service.get_deadline(db) == datetime(2031, 1, 15, 12, 0)

        portal_settings_service.set_deadline(db, None, admin_user)
        assert portal_settings_service.get_deadline(db) is None
        assert portal_settings_service.deadline_passed(db) is False

    def test_aware_deadline_stored_as_utc(self, db, admin_user):
        eastern = timezone(timedelta(hours=-5))
        stored = portal_settings_service.set_deadline(db, datetime(2031, 1, 15, 12, 0, tzinfo=eastern), admin_user)
        assert stored == datetime(2031, 1, 15, 17, 0)
        assert portal_settings_service.get_deadline(db) == datetime(2031, 1, 15, 17, 0)

    def test_only_admin_sets_deadline(self, db, applicant, committee_member):
        for user in (applicant, committee_member):
            with pytest.raises(Forbidden):
                portal_settings_service.set_deadline(db, yesterday(), user)
        assert portal_settings_service.get_deadline(db) is None

    def test_change_is_audited(self, db, admin_user):
        portal_settings_service.set_deadline(db, datetime(2031, 1, 15), admin_user)
        assert audit_recorder.count(db, AuditAction.ADMIN_SETTINGS_UPDATED) == 1
        entry = audit_recorder.get_by_user(db, admin_user.id)[0]
        assert entry.details["key"] == "application_deadline"
        assert entry.details["to"] == "2031-01-15T00:00:00"
        assert entry in audit_recorder.get_security_events(db)


class TestDeadlineEnforcement:
    def test_owner_cannot_edit_after_deadline(self, db, applicant, admin_user):
        application = application_service.create_application(db, applicant)
        application_service.update_step(db, application.id, 1, step_payload(1), applicant)
        portal_settings_service.set_deadline(db, yesterday(), admin_user)

        with pytest.raises(ValidationFailed) as exc_info:
            application_service.update_step(db, application.id, 1, step_payload(1, first_name="Janet"), applicant)
        assert exc_info.value.requirements == ["deadline"]
        db.refresh(application)
        assert application.first_name == "Jane"

    def test_future_deadline_allows_edits(self, db, applicant, admin_user):
        portal_settings_service.set_deadline(db, datetime.utcnow() + timedelta(days=7), admin_user)
        application = application_service.create_application(db, applicant)
        application = application_service.update_step(db, application.id, 2, step_payload(2), applicant)
        assert application.completed_steps == [2]

    def test_admin_override_ignores_deadline(self, db, applicant, admin_user):
        application = application_service.create_application(db, applicant)
        portal_settings_service.set_deadline(db, yesterday(), admin_user)
        updated = application_service.update_step(
            db, application.id, 1, step_payload(1, phone="517-555-0111"), admin_user
        )
        assert updated.phone == "517-555-0111"
        assert updated.status == ApplicationStatus.DRAFT

    def test_submit_after_stored_deadline(self, db, applicant, admin_user, prepare_application):
        application = prepare_application(applicant)
        portal_settings_service.set_deadline(db, yesterday(), admin_user)
        with pytest.raises(ValidationFailed) as exc_info:
            application_service.submit(db, application.id, "Jane Doe", applicant)
        assert exc_info.value.requirements == ["deadline"]


class TestDeadlineApi:
    def test_admin_sets_and_everyone_reads(self, client, make_api_user, auth_headers):
        admin = make_api_user(UserRole.ADMIN)
        applicant = make_api_user()

        response = client.get("/api/settings/deadline", headers=auth_headers(applicant))
        assert response.status_code == 200
        assert response.json() == {"application_deadline": None, "deadline_passed": False}

        response = client.put(
            "/api/settings/deadline",
            json={"application_deadline": "2020-01-01T00:00:00"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["deadline_passed"] is True

        response = client.get("/api/settings/deadline", headers=auth_headers(applicant))
        assert response.json()["application_deadline"].startswith("2020-01-01T00:00:00")
        assert response.json()["deadline_passed"] is True

    def test_applicant_cannot_set_deadline(self, client, make_api_user, auth_headers):
        applicant = make_api_user()
        response = client.put(
            "/api/settings/deadline",
            json={"application_deadline": "2020-01-01T00:00:00"},
            headers=auth_headers(applicant),
        )
        assert response.status_code == 403

    def test_owner_edit_after_deadline_rejected(self, client, make_api_user, auth_headers):
        admin = make_api_user(UserRole.ADMIN)
        applicant = make_api_user()
        headers = auth_headers(applicant)
        application_id = client.post("/api/applications", headers=headers).json()["id"]

        client.put(
            "/api/settings/deadline",
            json={"application_deadline": "2020-01-01T00:00:00"},
            headers=auth_headers(admin),
        )
        response = client.put(
            f"/api/applications/{application_id}/steps/2",
            json={"street_address": "100 Main St", "city": "Lansing", "state": "MI", "zip_code": "48933"},
            headers=headers,
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_failed"
        assert response.json()["requirements"] == ["deadline"]
