"""
Shared fixtures for the portal tests.

The backend API client is replaced by a MagicMock and every test gets a
fresh employer cache, so no network is touched.
"""

from unittest.mock import MagicMock

import pytest

from api_client import APIError, ErrorKind, JobBoardAPI
from app import app as flask_app
from employers import EmployerCache


@pytest.fixture
def app():
    """The Flask app with the backend client and employer cache swapped out."""
    flask_app.config.update(TESTING=True, WTF_CSRF_ENABLED=False)
    saved = dict(flask_app.extensions)
    flask_app.extensions["jobboard_api"] = MagicMock(spec=JobBoardAPI)
    flask_app.extensions["employer_cache"] = EmployerCache()
    flask_app.extensions["matcher"] = MagicMock()
    yield flask_app
    flask_app.extensions.clear()
    flask_app.extensions.update(saved)


@pytest.fixture
def api(app):
    return app.extensions["jobboard_api"]


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def _log_in(client, user_id, role, name):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
        sess["name"] = name
    return client


@pytest.fixture
def candidate_client(client):
    return _log_in(client, "c1", "candidate", "Cara Candidate")


@pytest.fixture
def employer_client(client):
    return _log_in(client, "e1", "employer", "Eve Employer")


@pytest.fixture
def admin_client(client):
    return _log_in(client, "a1", "admin", "Ada Admin")


def not_found():
    return APIError(ErrorKind.HTTP, "Not found", 404)


def job_record(job_id, employer_id="e1", **overrides):
    record = {
        "id": job_id,
        "employer_id": employer_id,
        "title": f"Job {job_id}",
        "description": "Build and ship product features",
        "type": "Full-time",
        "tags": ["Python"],
        "salary": "$80,000 - $100,000",
        "deadline": "2099-12-31",
        "created_at": "2024-01-10T09:00:00",
    }
    record.update(overrides)
    return record


def employer_payload(employer_id, company_name, logo=None):
    return {
        "user": {"id": employer_id, "name": "Owner", "email": f"{employer_id}@acme.io", "role": "employer"},
        "employer": {"company_name": company_name, "company_logo_url": logo},
        "jobs": [],
        "applications": [],
    }
