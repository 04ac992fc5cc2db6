"""Tests for the employer cache and job enrichment."""

from unittest.mock import MagicMock

import requests

from api_client import APIError, ErrorKind, JobBoardAPI
from conftest import employer_payload, job_record
from employers import EmployerCache, enrich, get_employers, load_enriched_jobs
from models import UNKNOWN_COMPANY, EmployerSummary, Job


def _api(companies):
    """Fake backend knowing the given employer ID -> company name."""
    api = MagicMock(spec=JobBoardAPI)

    def get_user(user_id):
        if user_id not in companies:
            raise APIError(ErrorKind.HTTP, "Not found", 404)
        return employer_payload(user_id, companies[user_id], logo=f"https://cdn.io/{user_id}.png")

    api.get_user.side_effect = get_user
    return api


class TestEmployerCache:
    def test_set_if_absent_is_write_once(self):
        cache = EmployerCache()
        first = EmployerSummary("e1", "Acme")
        stored = cache.set_if_absent("e1", first)
        again = cache.set_if_absent("e1", EmployerSummary("e1", "Renamed"))
        assert stored is first
        assert again is first
        assert cache.get("e1").company_name == "Acme"

    def test_get_missing_returns_none(self):
        assert EmployerCache().get("nope") is None


class TestGetEmployers:
    def test_overlapping_batches_fetch_each_employer_once(self):
        api = _api({"A": "Alpha", "B": "Beta", "C": "Gamma"})
        cache = EmployerCache()

        get_employers({"A", "B"}, api, cache)
        result = get_employers({"B", "C"}, api, cache)

        fetched = sorted(call.args[0] for call in api.get_user.call_args_list)
        assert fetched == ["A", "B", "C"]
        assert result["B"].company_name == "Beta"
        assert result["C"].company_name == "Gamma"

    def test_failed_fetch_is_left_out(self):
        api = _api({"A": "Alpha"})
        cache = EmployerCache()

        result = get_employers({"A", "missing"}, api, cache)

        assert set(result) == {"A"}
        assert "missing" not in cache

    def test_broken_transfer_for_one_employer_is_left_out(self):
        def request(method, url, **kwargs):
            if url.endswith("/user/B"):
                raise requests.exceptions.ChunkedEncodingError("connection broken")
            response = MagicMock(ok=True, status_code=200)
            response.json.return_value = employer_payload("A", "Alpha")
            return response

        session = MagicMock()
        session.request.side_effect = request
        api = JobBoardAPI("https://api.jobboard.io", session=session)

        result = get_employers({"A", "B"}, api, EmployerCache())

        assert set(result) == {"A"}
        assert result["A"].company_name == "Alpha"

    def test_cached_ids_make_no_requests(self):
        api = _api({})
        cache = EmployerCache()
        cache.set_if_absent("A", EmployerSummary("A", "Alpha"))

        result = get_employers(["A"], api, cache)

        api.get_user.assert_not_called()
        assert result["A"].company_name == "Alpha"


class TestEnrich:
    def test_does_not_mutate_input_and_uses_sentinel(self):
        cache = EmployerCache()
        cache.set_if_absent("e1", EmployerSummary("e1", "Acme", "https://cdn.io/acme.png"))
        jobs = [
            Job(id="1", employer_id="e1", title="Dev", tags=["Python"]),
            Job(id="2", employer_id="e2", title="Ops", tags=["AWS"]),
        ]
        before = [Job(**vars(j)) for j in jobs]

        result = enrich(jobs, cache)

        assert jobs == before
        assert result[0].company_name == "Acme"
        assert result[0].company_logo_url == "https://cdn.io/acme.png"
        assert result[1].company_name == UNKNOWN_COMPANY
        assert result[1].company_logo_url is None
        assert result[0] is not jobs[0]
        assert result[0].tags is not jobs[0].tags

    def test_load_enriched_jobs(self):
        api = _api({"e1": "Acme"})
        jobs = load_enriched_jobs([job_record("1"), job_record("2", employer_id="e9")], api, EmployerCache())
        assert [j.company_name for j in jobs] == ["Acme", UNKNOWN_COMPANY]
