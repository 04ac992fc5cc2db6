"""Search, filtering and pagination over collections already fetched for a page."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence, TypeVar

from models import Application, Job, User

T = TypeVar("T")

SALARY_MIN = 0
SALARY_MAX = 200000

_NUMBER = re.compile(r"\d+")
# "80,000" is one number
_THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}\b)")


def parse_salary(text: str | None) -> float | None:
    """Best-effort midpoint of a free-text salary.

    Returns the first number found, or the average of the first two.
    None when the text holds no digits.
    """
    numbers = [int(n) for n in _NUMBER.findall(_THOUSANDS.sub("", text or ""))]
    if not numbers:
        return None
    if len(numbers) > 1:
        return (numbers[0] + numbers[1]) / 2
    return float(numbers[0])


@dataclass
class JobFilter:
    query: str = ""
    tags: list[str] = field(default_factory=list)
    job_type: str | None = None
    salary_min: int = SALARY_MIN
    salary_max: int = SALARY_MAX

    @classmethod
    def from_args(cls, args) -> "JobFilter":
        """Build a filter from a request's query string."""
        return cls(
            query=(args.get("q") or "").strip(),
            tags=[t for t in args.getlist("tag") if t],
            job_type=args.get("type") or None,
            salary_min=_int_arg(args.get("salary_min"), SALARY_MIN),
            salary_max=_int_arg(args.get("salary_max"), SALARY_MAX),
        )

    @property
    def is_default(self) -> bool:
        return self == JobFilter()

    def matches(self, job: Job) -> bool:
        if self.query and not _job_mentions(job, self.query, ("title", "company_name", "description")):
            return False
        if self.tags and not any(tag in job.tags for tag in self.tags):
            return False
        if self.job_type and job.type != self.job_type:
            return False
        salary = parse_salary(job.salary)
        if salary is not None and not (self.salary_min <= salary <= self.salary_max):
            return False
        return True


def _int_arg(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _job_mentions(job: Job, query: str, fields: Sequence[str]) -> bool:
    query = query.lower()
    for name in fields:
        if query in (getattr(job, name) or "").lower():
            return True
    return any(query in tag.lower() for tag in job.tags)


def filter_jobs(jobs: Iterable[Job], flt: JobFilter) -> list[Job]:
    return [job for job in jobs if flt.matches(job)]


def search_jobs(jobs: Iterable[Job], query: str) -> list[Job]:
    """Admin job table search over title, company, type and tags."""
    query = (query or "").strip()
    if not query:
        return list(jobs)
    return [job for job in jobs if _job_mentions(job, query, ("title", "company_name", "type"))]


def filter_users(users: Iterable[User], query: str = "", role: str = "all") -> list[User]:
    result = list(users)
    if role and role != "all":
        result = [u for u in result if u.role.value == role]
    query = (query or "").strip().lower()
    if query:
        result = [u for u in result if query in u.name.lower() or query in u.email.lower()]
    return result


def search_applications(applications: Iterable[Application], query: str) -> list[Application]:
    query = (query or "").strip().lower()
    if not query:
        return list(applications)
    return [
        a for a in applications
        if query in a.job_title.lower()
        or query in a.candidate_name.lower()
        or query in (a.message or "").lower()
    ]


def available_tags(jobs: Iterable[Job]) -> list[str]:
    return sorted({tag for job in jobs for tag in job.tags})


def available_types(jobs: Iterable[Job]) -> list[str]:
    return sorted({job.type for job in jobs if job.type})


def related_jobs(jobs: Iterable[Job], job: Job, limit: int = 3) -> list[Job]:
    """Other jobs from the same employer."""
    same = [j for j in jobs if j.employer_id == job.employer_id and j.id != job.id]
    return same[:limit]


@dataclass
class Page:
    items: list
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """Slice one page out of ``items``. Pages start at 1."""
    if page_size < 1:
        raise ValueError("page_size must be positive")
    page = max(page, 1)
    start = (page - 1) * page_size
    return Page(items=list(items[start:start + page_size]), page=page, page_size=page_size, total=len(items))


def load_more(items: Sequence[T], page: int, page_size: int) -> Page:
    """Pages 1..page concatenated, as shown after clicking "load more"."""
    last = paginate(items, page, page_size)
    last.items = list(items[:last.page * page_size])
    return last
