"""Employer summaries cached by employer ID, and job enrichment from them."""
from __future__ import annotations

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Mapping

from api_client import APIError, JobBoardAPI
from models import UNKNOWN_COMPANY, EmployerSummary, Job

logger = logging.getLogger(__name__)

MAX_FETCH_WORKERS = 8


class EmployerCache:
    """Write-once map of employer ID to summary. No eviction."""

    def __init__(self):
        self._entries: dict[str, EmployerSummary] = {}
        self._lock = threading.Lock()

    def get(self, employer_id: str) -> EmployerSummary | None:
        return self._entries.get(str(employer_id))

    def set_if_absent(self, employer_id: str, summary: EmployerSummary) -> EmployerSummary:
        key = str(employer_id)
        with self._lock:
            return self._entries.setdefault(key, summary)

    def __contains__(self, employer_id) -> bool:
        return str(employer_id) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _fetch_summary(api: JobBoardAPI, employer_id: str) -> EmployerSummary | None:
    try:
        return EmployerSummary.from_api(employer_id, api.get_user(employer_id))
    except APIError as exc:
        logger.warning("Could not load employer %s: %s", employer_id, exc)
        return None


def get_employers(ids: Iterable[str], api: JobBoardAPI, cache: EmployerCache) -> dict[str, EmployerSummary]:
    """Return summaries for ``ids``, fetching only the ones not cached yet.

    Uncached employers are fetched in parallel, one request each. An
    employer whose fetch fails is left out of the result.
    """
    wanted = {str(i) for i in ids if i}
    missing = sorted(i for i in wanted if i not in cache)

    if missing:
        workers = min(MAX_FETCH_WORKERS, len(missing))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            summaries = list(pool.map(lambda i: _fetch_summary(api, i), missing))
        for employer_id, summary in zip(missing, summaries):
            if summary is not None:
                cache.set_if_absent(employer_id, summary)
        logger.debug("Fetched %d employer(s), %d cached", len(missing), len(cache))

    found = {}
    for employer_id in wanted:
        summary = cache.get(employer_id)
        if summary is not None:
            found[employer_id] = summary
    return found


def enrich(jobs: Iterable[Job], cache: EmployerCache) -> list[Job]:
    """Copy ``jobs`` with company name and logo taken from ``cache``."""
    enriched = []
    for job in jobs:
        summary = cache.get(job.employer_id)
        enriched.append(
            dataclasses.replace(
                job,
                tags=list(job.tags),
                company_name=summary.company_name if summary else UNKNOWN_COMPANY,
                company_logo_url=summary.company_logo_url if summary else None,
            )
        )
    return enriched


def load_enriched_jobs(raw_jobs: Iterable[Mapping], api: JobBoardAPI, cache: EmployerCache) -> list[Job]:
    """Parse backend job records and enrich them, fetching employers as needed."""
    jobs = [Job.from_api(dict(raw)) for raw in raw_jobs]
    get_employers({job.employer_id for job in jobs}, api, cache)
    return enrich(jobs, cache)
