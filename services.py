"""Per-app service objects and the parallel fetch helper used by the views."""
from concurrent.futures import ThreadPoolExecutor

from flask import current_app

from api_client import JobBoardAPI
from employers import EmployerCache
from matching import ResumeMatcher
from storage import StorageClient


def init_services(app):
    """Attach the backend client, employer cache, storage and matcher to ``app``."""
    app.extensions["jobboard_api"] = JobBoardAPI(app.config["API_BASE_URL"], timeout=app.config["API_TIMEOUT"])
    app.extensions["employer_cache"] = EmployerCache()
    app.extensions["storage"] = StorageClient(app.config["SUPABASE_URL"], app.config["SUPABASE_ANON_KEY"])
    app.extensions["matcher"] = ResumeMatcher(app.config["OPENAI_API_KEY"], model=app.config["OPENAI_MODEL"])


def get_api() -> JobBoardAPI:
    return current_app.extensions["jobboard_api"]


def get_employer_cache() -> EmployerCache:
    return current_app.extensions["employer_cache"]


def get_storage() -> StorageClient:
    return current_app.extensions["storage"]


def get_matcher() -> ResumeMatcher:
    return current_app.extensions["matcher"]


def fetch_all(*calls):
    """Run independent fetches in parallel and wait for all of them.

    Results come back in call order. The first failure is re-raised.
    """
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
        return [future.result() for future in futures]
