"""Dashboard statistics computed from fetched collections."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from models import Application, ApplicationStatus, Job, Role, User

RECENT_DAYS = 30


def percentage(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 1)


def _recent(items, attr: str, limit: int):
    dated = [i for i in items if getattr(i, attr) is not None]
    dated.sort(key=lambda i: _naive(getattr(i, attr)), reverse=True)
    return dated[:limit]


def _naive(moment: datetime) -> datetime:
    return moment.replace(tzinfo=None)


def _since(items, attr: str, cutoff: datetime) -> int:
    return sum(1 for i in items if getattr(i, attr) is not None and _naive(getattr(i, attr)) >= cutoff)


@dataclass
class AdminStats:
    total_users: int
    total_jobs: int
    total_applications: int
    new_users: int
    new_jobs: int
    new_applications: int
    users_by_role: dict[str, int]
    blocked_users: int
    acceptance_rate: float
    recent_jobs: list[Job] = field(default_factory=list)
    recent_users: list[User] = field(default_factory=list)


def admin_stats(users: Sequence[User], jobs: Sequence[Job], applications: Sequence[Application],
                now: datetime | None = None) -> AdminStats:
    now = now or datetime.now()
    cutoff = _naive(now) - timedelta(days=RECENT_DAYS)
    roles = Counter(u.role.value for u in users)
    accepted = sum(1 for a in applications if a.status is ApplicationStatus.ACCEPTED)
    return AdminStats(
        total_users=len(users),
        total_jobs=len(jobs),
        total_applications=len(applications),
        new_users=_since(users, "created_at", cutoff),
        new_jobs=_since(jobs, "created_at", cutoff),
        new_applications=_since(applications, "applied_at", cutoff),
        users_by_role={role.value: roles.get(role.value, 0) for role in Role},
        blocked_users=sum(1 for u in users if u.is_blocked),
        acceptance_rate=percentage(accepted, len(applications)),
        recent_jobs=_recent(jobs, "created_at", 4),
        recent_users=_recent(users, "created_at", 4),
    )


@dataclass
class EmployerStats:
    total_jobs: int
    active_jobs: int
    total_applications: int
    pending_applications: int
    accepted_applications: int
    acceptance_rate: float
    applications_per_job: list[tuple[str, int]]
    recent_jobs: list[Job]


def employer_stats(jobs: Sequence[Job], applications: Sequence[Application],
                   today: date | None = None) -> EmployerStats:
    statuses = Counter(a.status for a in applications)
    per_job = Counter(a.job_id for a in applications)
    return EmployerStats(
        total_jobs=len(jobs),
        active_jobs=sum(1 for j in jobs if not j.is_expired(today)),
        total_applications=len(applications),
        pending_applications=statuses[ApplicationStatus.PENDING],
        accepted_applications=statuses[ApplicationStatus.ACCEPTED],
        acceptance_rate=percentage(statuses[ApplicationStatus.ACCEPTED], len(applications)),
        applications_per_job=[(j.title, per_job.get(j.id, 0)) for j in jobs],
        recent_jobs=_recent(jobs, "created_at", 5),
    )
