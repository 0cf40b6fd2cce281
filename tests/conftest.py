"""Shared pytest fixtures.

Every test runs against a fresh SQLite database in ``tmp_path`` with default
configuration and a mail client that records messages instead of sending.
"""

import itertools
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from skilltrack.config.app_config import MailConfig, RetryConfig, clear_config_cache
from skilltrack.core import skills
from skilltrack.core.auth import CurrentUser, create_profile
from skilltrack.db import profiles_repository
from skilltrack.db.database import init_db
from skilltrack.mail.client import MailClient, get_mail_client, set_mail_client
from skilltrack.utils.retry import RetryExhaustedError
from skilltrack.web.api import create_app

PASSWORD = "secret123"

SKILL_FORM = {
    "questions": [
        {
            "id": "q-steps",
            "question_text": "Describe the steps taken",
            "response_type": "text",
            "is_required": True,
            "order_index": 0,
        },
        {
            "id": "q-rating",
            "question_text": "Rate the performance",
            "response_type": "multiple_choice",
            "is_required": True,
            "order_index": 1,
            "options": ["Excellent", "Good", "Poor"],
        },
        {
            "id": "q-safe",
            "question_text": "Were safety protocols followed?",
            "response_type": "checkbox",
            "is_required": False,
            "order_index": 2,
        },
    ]
}

GOOD_RESPONSES = {"q-steps": "Washed hands, checked pulse", "q-rating": "Good"}


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Fresh database, default config and a recording mail client."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SKILLTRACK_CONFIG", raising=False)
    monkeypatch.delenv("SKILLTRACK_DB", raising=False)
    clear_config_cache()

    db_path = tmp_path / "skilltrack.db"
    init_db(db_path)

    set_mail_client(
        MailClient(
            config=MailConfig(enabled=False),
            retry=RetryConfig(max_retries=1, initial_delay=0, max_delay=0, jitter=0),
        )
    )
    yield db_path
    set_mail_client(None)
    clear_config_cache()


@pytest.fixture
def outbox():
    """Messages handed to the mail client during the test."""
    return get_mail_client().outbox


@pytest.fixture
def failing_mail(isolated_db):
    """Mail client whose every delivery ends in RetryExhaustedError."""
    with patch.object(get_mail_client(), "send", side_effect=RetryExhaustedError(1)) as send:
        yield send


@pytest.fixture
def make_user():
    """Factory creating a profile and returning it as a CurrentUser."""
    counter = itertools.count(1)

    def factory(role="student", full_name=None, email=None, instructor=None):
        n = next(counter)
        profile = create_profile(
            email=email or f"{role}{n}@example.com",
            password=PASSWORD,
            full_name=full_name or f"{role.title()} {n}",
            role=role,
        )
        if instructor is not None:
            profiles_repository.set_affiliated_instructor(profile.id, instructor.id)
            profile = profiles_repository.get_profile_by_id(profile.id)
        return CurrentUser(profile=profile, token="")

    return factory


@pytest.fixture
def admin(make_user):
    return make_user("admin", full_name="Ada Admin", email="admin@example.com")


@pytest.fixture
def instructor(make_user):
    return make_user("instructor", full_name="Ian Instructor", email="ian@example.com")


@pytest.fixture
def student(make_user, instructor):
    """A student affiliated with ``instructor``."""
    return make_user(
        "student", full_name="Sam Student", email="sam@example.com", instructor=instructor
    )


@pytest.fixture
def category(admin):
    return skills.create_category(
        admin, "Clinical", "Bedside skills", subcategories=[("Vitals", "")]
    )


@pytest.fixture
def skill(admin, category):
    """Peer-verified skill with a three-question form."""
    return skills.create_skill(
        admin,
        name="Blood Pressure",
        description="Manual blood pressure reading",
        category_id=category.id,
        form_schema=SKILL_FORM,
    )


@pytest.fixture
def good_responses():
    """Answers satisfying SKILL_FORM."""
    return dict(GOOD_RESPONSES)


@pytest.fixture
def client(isolated_db):
    """Test client for the Web API."""
    return TestClient(create_app())


@pytest.fixture
def auth_headers(client):
    """Factory signing in through the API and returning auth headers."""

    def factory(user_or_email, password=PASSWORD):
        email = user_or_email if isinstance(user_or_email, str) else user_or_email.profile.email
        response = client.post("/api/auth/signin", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return factory
