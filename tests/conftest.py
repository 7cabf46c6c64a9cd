"""Shared fixtures and helpers for tests."""

import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-chars-long-for-jwt")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("EMAIL_API_KEY", None)
os.environ.pop("APPLICATION_DEADLINE", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import scholarship_app.models  # noqa: F401  (register tables)
from scholarship_app.database import Base, create_db_engine, get_db
from scholarship_app.main import app
from scholarship_app.models.user import User, UserRole
from scholarship_app.schemas.application import (
    Step1PersonalInfo, Step2Address, Step3Education, Step4Eligibility, Step5Documents, Step6Endorsement
)
from scholarship_app.schemas.recommendation import LetterSubmit, RecommenderInvite
from scholarship_app.services.applications import application_service
from scholarship_app.services.auth import create_user_token, get_password_hash
from scholarship_app.services.recommendations import recommendation_service

TEST_PASSWORD = "correct-horse-battery"
PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

ESSAY_300_WORDS = " ".join(["scholarship"] * 300)

STEP_SCHEMAS = {
    1: Step1PersonalInfo,
    2: Step2Address,
    3: Step3Education,
    4: Step4Eligibility,
    5: Step5Documents,
    6: Step6Endorsement,
}

VALID_STEP_DATA = {
    1: {
        "first_name": "Jane",
        "last_name": "Doe",
        "phone": "517-555-0100",
        "date_of_birth": "2005-04-12",
        "profile_photo_id": "uploads/photos/jane.jpg",
    },
    2: {"street_address": "100 Main St", "city": "Lansing", "state": "MI", "zip_code": "48933"},
    3: {
        "high_school_name": "Eastside High",
        "high_school_city": "Lansing",
        "high_school_state": "MI",
        "graduation_date": "2023-06",
        "gpa": 3.5,
        "college_name": "Michigan State University",
        "college_city": "East Lansing",
        "college_state": "MI",
        "year_in_college": "sophomore",
        "major": "Biology",
    },
    4: {
        "is_first_time_applying": True,
        "is_previous_recipient": False,
        "is_full_time_student": True,
        "is_michigan_resident": True,
    },
    5: {"transcript_file_id": "uploads/transcripts/jane.pdf", "essay_text": ESSAY_300_WORDS},
    6: {
        "endorser_name": "Pat Member",
        "endorser_email": "pat@example.org",
        "endorser_phone": "517-555-0199",
        "endorsement_confirmed": True,
    },
}


def step_payload(step, **overrides):
    """Validated schema instance for a wizard step"""
    return STEP_SCHEMAS[step](**{**VALID_STEP_DATA[step], **overrides})


@pytest.fixture
def engine():
    test_engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory creating persisted users"""
    counter = {"n": 0}

    def _make(role=UserRole.APPLICANT, email=None, name=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            name=name or f"User {counter['n']}",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def applicant(make_user):
    return make_user(UserRole.APPLICANT, email="jane@example.com", name="Jane Doe")


@pytest.fixture
def other_applicant(make_user):
    return make_user(UserRole.APPLICANT, email="john@example.com", name="John Roe")


@pytest.fixture
def committee_member(make_user):
    return make_user(UserRole.COMMITTEE, email="committee@example.com", name="Casey Committee")


@pytest.fixture
def admin_user(make_user):
    return make_user(UserRole.ADMIN, email="admin@example.com", name="Alex Admin")


@pytest.fixture
def prepare_application(db):
    """
    Factory walking an application through steps 1-7 and inviting recommenders.

    recommender_types lists one recommender per entry; submit_letters controls
    whether each recommender submits their letter.
    """

    def _prepare(user, recommender_types=("educator", "other"), submit_letters=True, **step_overrides):
        application = application_service.create_application(db, user)
        for step in range(1, 7):
            overrides = step_overrides.get(f"step{step}", {})
            application_service.update_step(db, application.id, step, step_payload(step, **overrides), user)
        application_service.set_current_step(db, application.id, 7, user)

        for index, recommender_type in enumerate(recommender_types, start=1):
            recommendation = recommendation_service.invite(
                db,
                application.id,
                RecommenderInvite(
                    recommender_email=f"recommender{index}@school.edu",
                    recommender_name=f"Recommender {index}",
                    recommender_type=recommender_type,
                ),
                user,
            )
            if submit_letters:
                recommendation_service.submit_letter(
                    db,
                    recommendation.access_token,
                    LetterSubmit(letter_text="Jane is an outstanding student.", recommender_name=f"Dr. Recommender {index}"),
                )

        db.refresh(application)
        return application

    return _prepare


@pytest.fixture
def make_api_user(session_factory):
    """
    Factory creating users for API tests.

    Uses a short-lived session: the in-memory database has a single
    connection, which must not hold an open transaction during requests.
    """
    counter = {"n": 0}

    def _make(role=UserRole.APPLICANT, email=None, name=None):
        counter["n"] += 1
        session = session_factory()
        try:
            user = User(
                email=email or f"api{counter['n']}@example.com",
                password_hash=PASSWORD_HASH,
                name=name or f"Api User {counter['n']}",
                role=role,
                is_active=True,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
        finally:
            session.close()
        return user

    return _make


@pytest.fixture
def client(session_factory):
    """TestClient bound to the per-test database"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header factory for a user"""

    def _headers(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers
