"""Tests for the candidate portal pages."""

from unittest.mock import MagicMock

import requests

from api_client import JobBoardAPI
from matching import MatchResult
from conftest import employer_payload, job_record, not_found


def _me(applications=(), resume_url="https://files.io/cara.pdf"):
    return {
        "user": {"id": "c1", "name": "Cara Candidate", "email": "cara@mail.io", "role": "candidate"},
        "candidate": {"resume_url": resume_url, "skills": ["Python"]},
        "applications": list(applications),
    }


def _users(**payloads):
    """get_user side effect: known IDs return their payload, anything else 404s."""
    def get_user(user_id):
        if user_id not in payloads:
            raise not_found()
        return payloads[user_id]
    return get_user


class TestCandidateDashboard:
    def test_jobs_are_enriched_with_company(self, candidate_client, api):
        api.list_jobs.return_value = [job_record("01", "e1"), job_record("02", "e2")]
        api.get_user.side_effect = _users(e1=employer_payload("e1", "Acme"))

        response = candidate_client.get("/candidate/dashboard/c1")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "Welcome, Cara Candidate" in body
        assert "Acme" in body
        assert "Unknown Company" in body

    def test_employers_fetched_once_across_requests(self, candidate_client, api):
        api.list_jobs.return_value = [job_record("01", "e1"), job_record("02", "e1")]
        api.get_user.side_effect = _users(e1=employer_payload("e1", "Acme"))

        candidate_client.get("/candidate/dashboard/c1")
        candidate_client.get("/candidate/dashboard/c1")

        assert api.get_user.call_count == 1

    def test_first_page_and_load_more(self, candidate_client, api):
        api.list_jobs.return_value = [job_record(f"{i:02d}") for i in range(25)]
        api.get_user.side_effect = _users(e1=employer_payload("e1", "Acme"))

        first = candidate_client.get("/candidate/dashboard/c1").get_data(as_text=True)
        second = candidate_client.get("/candidate/dashboard/c1?page=2").get_data(as_text=True)
        last = candidate_client.get("/candidate/dashboard/c1?page=3").get_data(as_text=True)

        assert "Job 09" in first and "Job 10" not in first
        assert "page=2" in first
        assert "Job 00" in second and "Job 19" in second and "Job 20" not in second
        assert "Job 24" in last
        assert "Load more" not in last

    def test_filters_from_query_string(self, candidate_client, api):
        api.list_jobs.return_value = [
            job_record("01", title="Backend Engineer", tags=["Python"]),
            job_record("02", title="Designer", tags=["Figma"]),
        ]
        api.get_user.side_effect = _users(e1=employer_payload("e1", "Acme"))

        body = candidate_client.get("/candidate/dashboard/c1?tag=Figma").get_data(as_text=True)

        assert "Designer" in body
        assert "Backend Engineer" not in body
        assert "Reset Filters" in body

    def test_other_candidate_id_redirects_to_own(self, candidate_client, api):
        response = candidate_client.get("/candidate/dashboard/c2")
        assert response.headers["Location"].endswith("/candidate/dashboard/c1")

    def test_feed_failure_shows_empty_list(self, candidate_client, api):
        api.list_jobs.side_effect = not_found()

        body = candidate_client.get("/candidate/dashboard/c1").get_data(as_text=True)

        assert "Could not load jobs" in body
        assert "No jobs match your filters." in body

    def test_employer_lookup_failure_still_renders(self, app, candidate_client):
        def request(method, url, **kwargs):
            if "/user/" in url:
                raise requests.exceptions.TooManyRedirects("redirect loop")
            response = MagicMock(ok=True, status_code=200)
            response.json.return_value = [job_record("01", "e1")]
            return response

        session = MagicMock()
        session.request.side_effect = request
        app.extensions["jobboard_api"] = JobBoardAPI("https://api.jobboard.io", session=session)

        response = candidate_client.get("/candidate/dashboard/c1")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "Job 01" in body
        assert "Unknown Company" in body


class TestJobDetail:
    def test_shows_company_and_related_jobs(self, candidate_client, api):
        api.get_job.return_value = job_record("j1", title="Backend Engineer")
        api.list_jobs.return_value = [job_record("j1"), job_record("j2", title="Data Engineer")]
        api.get_user.side_effect = _users(e1=employer_payload("e1", "Acme"), c1=_me())

        body = candidate_client.get("/candidate/job/j1").get_data(as_text=True)

        assert "Backend Engineer" in body
        assert "About Acme" in body
        assert "Data Engineer" in body
        assert "Submit Application" in body

    def test_missing_job_redirects(self, candidate_client, api):
        api.get_job.side_effect = not_found()

        response = candidate_client.get("/candidate/job/nope")

        assert response.headers["Location"].endswith("/candidate/dashboard/c1")


class TestApply:
    def test_uses_profile_resume(self, candidate_client, api):
        api.get_job.return_value = job_record("j1")
        api.get_user.return_value = _me()

        response = candidate_client.post("/candidate/job/j1/apply", data={"message": "Keen to join"})

        assert response.headers["Location"].endswith("/candidate/job/j1")
        api.create_application.assert_called_once_with({
            "candidate_id": "c1",
            "job_id": "j1",
            "resume_url": "https://files.io/cara.pdf",
            "message": "Keen to join",
            "status": "pending",
        })

    def test_duplicate_application_refused(self, candidate_client, api):
        api.get_job.return_value = job_record("j1")
        api.get_user.return_value = _me(applications=[{"id": "a1", "job_id": "j1", "candidate_id": "c1"}])

        candidate_client.post("/candidate/job/j1/apply", data={})

        api.create_application.assert_not_called()
        with candidate_client.session_transaction() as sess:
            assert ("error", "You have already applied for this job.") in sess["_flashes"]

    def test_expired_job_refused(self, candidate_client, api):
        api.get_job.return_value = job_record("j1", deadline="2020-01-01")
        api.get_user.return_value = _me()

        candidate_client.post("/candidate/job/j1/apply", data={})

        api.create_application.assert_not_called()

    def test_no_resume_anywhere(self, candidate_client, api):
        api.get_job.return_value = job_record("j1")
        api.get_user.return_value = _me(resume_url=None)

        candidate_client.post("/candidate/job/j1/apply", data={})

        api.create_application.assert_not_called()


class TestCandidateMatch:
    def test_renders_score(self, app, candidate_client, api):
        api.get_job.return_value = job_record("j1")
        api.list_jobs.return_value = [job_record("j1")]
        api.get_user.side_effect = _users(e1=employer_payload("e1", "Acme"), c1=_me())
        api.extract_pdf_text.return_value = "Python developer, five years"
        app.extensions["matcher"].match.return_value = MatchResult(score=77, explanation="Good overlap")

        response = candidate_client.post("/candidate/job/j1/match")

        assert response.status_code == 200
        assert "Match score: 77%" in response.get_data(as_text=True)
        api.extract_pdf_text.assert_called_once_with("https://files.io/cara.pdf")


class TestCandidateApplications:
    def test_lists_jobs_with_company_and_status(self, candidate_client, api):
        api.get_user.side_effect = _users(
            c1=_me(applications=[
                {"id": "a1", "job_id": "j1", "candidate_id": "c1", "status": True, "applied_at": "2024-02-01T10:00:00"},
            ]),
            e1=employer_payload("e1", "Acme"),
        )
        api.get_job.return_value = job_record("j1", title="Data Analyst")

        body = candidate_client.get("/candidate/applications").get_data(as_text=True)

        assert "Data Analyst" in body
        assert "Acme" in body
        assert "Accepted" in body
        assert "2024-02-01" in body

    def test_no_applications(self, candidate_client, api):
        api.get_user.return_value = _me()

        body = candidate_client.get("/candidate/applications").get_data(as_text=True)

        assert "You have not applied to any jobs yet." in body
        api.get_job.assert_not_called()


class TestCandidateProfile:
    def test_details_update_sends_skills(self, candidate_client, api):
        api.get_user.return_value = _me()

        response = candidate_client.post("/candidate/profile/c1", data={
            "details-bio": "Backend developer",
            "details-skills": "Python, SQL",
            "details-submit": "Save profile",
        })

        assert response.status_code == 302
        payload = api.update_user.call_args.args[0]
        assert payload["user_id"] == "c1"
        assert payload["skills"] == ["Python", "SQL"]
        assert payload["resume_url"] == "https://files.io/cara.pdf"

    def test_account_update_renames_session(self, candidate_client, api):
        api.get_user.return_value = _me()

        candidate_client.post("/candidate/profile/c1", data={
            "account-name": "Cara C",
            "account-email": "cara@mail.io",
            "account-submit": "Save account",
        })

        assert api.update_user.call_args.args[0]["name"] == "Cara C"
        with candidate_client.session_transaction() as sess:
            assert sess["name"] == "Cara C"
