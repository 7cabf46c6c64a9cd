"""Tests for email dispatch."""

from datetime import datetime

import pytest
import requests
from fastapi import BackgroundTasks

from scholarship_app.config import settings
from scholarship_app.models.email_log import EmailLog
from scholarship_app.services.applications import application_service
from scholarship_app.services.email import email_service


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


VARIABLES = {
    "recommender_name": "Ms. Teacher",
    "applicant_name": "Jane Doe",
    "link": "http://localhost:8000/recommend/abc",
    "expires_at": datetime(2025, 5, 1),
}


def test_render_subject_and_body():
    rendered = email_service.render("recommendation_request", VARIABLES)
    assert rendered["subject"] == "Jane Doe has requested a letter of recommendation"
    assert "http://localhost:8000/recommend/abc" in rendered["html"]


def test_unknown_template():
    with pytest.raises(ValueError):
        email_service.render("newsletter", {})


def test_logged_only_without_transport(db):
    log_id = email_service.send(db, "recommendation_request", "teacher@school.edu", VARIABLES)
    log = db.get(EmailLog, log_id)
    assert log.status == "pending"
    assert log.sent_at is None


def test_sent(db, monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return FakeResponse(payload={"id": "msg_123"})

    monkeypatch.setattr(settings, "email_api_key", "test-key")
    monkeypatch.setattr("scholarship_app.services.email.requests.post", fake_post)

    log_id = email_service.send(
        db, "recommendation_request", "teacher@school.edu", VARIABLES, related_type="recommendation", related_id=7
    )
    log = db.get(EmailLog, log_id)
    assert log.status == "sent"
    assert log.provider_message_id == "msg_123"
    assert log.related_id == 7
    assert calls[0][1]["json"]["to"] == ["teacher@school.edu"]
    assert calls[0][1]["headers"]["Authorization"] == "Bearer test-key"


def test_transport_failure_is_recorded_not_raised(db, monkeypatch):
    def failing_post(url, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(settings, "email_api_key", "test-key")
    monkeypatch.setattr("scholarship_app.services.email.requests.post", failing_post)

    log_id = email_service.send(db, "recommendation_reminder", "teacher@school.edu", VARIABLES)
    log = db.get(EmailLog, log_id)
    assert log.status == "failed"
    assert "connection refused" in log.error


def test_provider_error_status(db, monkeypatch):
    monkeypatch.setattr(settings, "email_api_key", "test-key")
    monkeypatch.setattr(
        "scholarship_app.services.email.requests.post", lambda url, **kwargs: FakeResponse(status_code=500)
    )

    log_id = email_service.send(db, "application_submitted", "jane@example.com",
                                {"applicant_name": "Jane Doe", "submitted_at": datetime(2025, 4, 1, 12, 0)})
    assert db.get(EmailLog, log_id).status == "failed"


def record_posts(monkeypatch):
    calls = []

    def fake_post(url, **kwargs):
        calls.append(kwargs["json"])
        return FakeResponse(payload={"id": f"msg_{len(calls)}"})

    monkeypatch.setattr(settings, "email_api_key", "test-key")
    monkeypatch.setattr("scholarship_app.services.email.requests.post", fake_post)
    return calls


def run_tasks(tasks):
    for task in tasks.tasks:
        task.func(*task.args, **task.kwargs)


def test_background_delivery_is_deferred(db, monkeypatch):
    calls = record_posts(monkeypatch)
    tasks = BackgroundTasks()

    log_id = email_service.send(db, "recommendation_request", "teacher@school.edu", VARIABLES, background_tasks=tasks)
    assert calls == []
    assert len(tasks.tasks) == 1
    assert db.get(EmailLog, log_id).status == "pending"
    db.commit()

    run_tasks(tasks)
    assert [call["to"] for call in calls] == [["teacher@school.edu"]]
    log = db.get(EmailLog, log_id)
    assert log.status == "sent"
    assert log.provider_message_id == "msg_1"


def test_submit_queues_confirmation_email(db, applicant, prepare_application, monkeypatch):
    application = prepare_application(applicant)
    calls = record_posts(monkeypatch)
    tasks = BackgroundTasks()

    application_service.submit(db, application.id, "Jane Doe", applicant, background_tasks=tasks)
    assert calls == []
    assert len(tasks.tasks) == 1
    db.commit()

    run_tasks(tasks)
    assert calls[0]["to"] == ["jane@example.com"]
    log = db.query(EmailLog).filter(EmailLog.template_kind == "application_submitted").one()
    assert log.status == "sent"
    assert log.related_id == application.id
