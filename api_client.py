"""
Client for the job board REST backend.

Every page of the portal reads and writes through this module. The backend
speaks JSON over HTTP; failures surface as APIError with a kind that views
turn into a flashed message.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15  # seconds


class ErrorKind(str, enum.Enum):
    NETWORK = "network"
    HTTP = "http"
    MALFORMED = "malformed"
    UPLOAD = "upload"
    VALIDATION = "validation"


class APIError(Exception):
    """A backend call that did not produce the expected response."""

    def __init__(self, kind: ErrorKind, message: str, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.kind is ErrorKind.HTTP and self.status_code == 404


class JobBoardAPI:
    """Thin wrapper over the backend endpoints."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ---------------- transport ----------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            logger.warning("%s %s timed out", method, url)
            raise APIError(ErrorKind.NETWORK, "The job board service timed out")
        except requests.exceptions.ConnectionError:
            logger.warning("%s %s could not connect", method, url)
            raise APIError(ErrorKind.NETWORK, "Cannot connect to the job board service")
        except requests.exceptions.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise APIError(ErrorKind.NETWORK, f"Request to the job board service failed: {exc}")

        if not response.ok:
            raise APIError(ErrorKind.HTTP, _error_detail(response), response.status_code)

        try:
            return response.json()
        except ValueError:
            raise APIError(ErrorKind.MALFORMED, f"Invalid JSON from {path}", response.status_code)

    def _get(self, path: str, **params) -> Any:
        return self._request("GET", path, params=params or None)

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        return self._request("POST", path, json=payload)

    # ---------------- users ----------------

    def list_users(self) -> list[dict[str, Any]]:
        return _expect_list(self._get("/allusers"), "/allusers")

    def get_user(self, user_id: str) -> dict[str, Any]:
        """Return ``{user, employer, candidate, jobs, applications}`` for a user."""
        return _expect_dict(self._get(f"/user/{user_id}"), "/user")

    def get_user_by_email_role(self, email: str, role: str) -> dict[str, Any]:
        return _expect_dict(self._get("/user_by_email_role", email=email, role=role), "/user_by_email_role")

    def create_user(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = _expect_dict(self._post("/user", payload), "/user")
        created = data.get("data")
        if not isinstance(created, list) or not created:
            raise APIError(ErrorKind.MALFORMED, "User creation returned no user")
        return created[0]

    def create_candidate(self, payload: dict[str, Any]) -> Any:
        return self._post("/candidate", payload)

    def create_employer(self, payload: dict[str, Any]) -> Any:
        return self._post("/employer", payload)

    def update_user(self, payload: dict[str, Any]) -> Any:
        return self._post("/updateuser", payload)

    def delete_user(self, user_id: str) -> Any:
        return self._post("/deleteuser", {"user_id": user_id})

    # ---------------- jobs ----------------

    def list_jobs(self) -> list[dict[str, Any]]:
        return _expect_list(self._get("/alljobs"), "/alljobs")

    def get_job(self, job_id: str) -> dict[str, Any]:
        data = _expect_dict(self._get(f"/job/{job_id}"), "/job")
        job = data.get("job")
        if not isinstance(job, dict):
            raise APIError(ErrorKind.MALFORMED, f"Job {job_id} missing from response")
        return job

    def create_job(self, payload: dict[str, Any]) -> Any:
        return self._post("/job", payload)

    def update_job(self, payload: dict[str, Any]) -> Any:
        return self._post("/updatejob", payload)

    def delete_job(self, job_id: str) -> Any:
        return self._post("/deletejob", {"job_id": job_id})

    # ---------------- applications ----------------

    def list_applications(self) -> list[dict[str, Any]]:
        return _expect_list(self._get("/allapplications"), "/allapplications")

    def get_application(self, application_id: str) -> dict[str, Any]:
        """Return ``{application, job, candidate_user, candidate}``."""
        return _expect_dict(self._get(f"/application/{application_id}"), "/application")

    def create_application(self, payload: dict[str, Any]) -> Any:
        return self._post("/application", payload)

    def update_application(self, application_id: str, status: str) -> Any:
        return self._post("/updateapplication", {"application_id": application_id, "status": status})

    # ---------------- documents ----------------

    def extract_pdf_text(self, url: str) -> str:
        data = _expect_dict(self._post("/extract_pdf_text", {"url": url}), "/extract_pdf_text")
        if data.get("error"):
            raise APIError(ErrorKind.HTTP, f"Could not read resume: {data['error']}")
        return data.get("text") or ""


def _error_detail(response: requests.Response) -> str:
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    return detail or f"Job board service returned HTTP {response.status_code}"


def _expect_list(data: Any, path: str) -> list:
    if not isinstance(data, list):
        logger.error("Expected a list from %s, got %s", path, type(data).__name__)
        raise APIError(ErrorKind.MALFORMED, f"Unexpected response from {path}")
    return data


def _expect_dict(data: Any, path: str) -> dict:
    if not isinstance(data, dict):
        logger.error("Expected an object from %s, got %s", path, type(data).__name__)
        raise APIError(ErrorKind.MALFORMED, f"Unexpected response from {path}")
    return data
