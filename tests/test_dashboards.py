"""Tests for admin and employer dashboard statistics."""

from datetime import date, datetime

from dashboards import admin_stats, employer_stats, percentage
from models import Application, ApplicationStatus, Job, Role, User

NOW = datetime(2024, 6, 30, 12, 0)


def _user(user_id, role, created, blocked=False):
    return User(id=user_id, name=user_id, email=f"{user_id}@mail.io", role=role,
                is_blocked=blocked, created_at=created)


def _application(app_id, job_id, status, applied=None):
    return Application(id=app_id, candidate_id="c1", job_id=job_id, status=status, applied_at=applied)


class TestPercentage:
    def test_zero_whole(self):
        assert percentage(3, 0) == 0.0

    def test_rounded(self):
        assert percentage(1, 3) == 33.3


class TestAdminStats:
    def test_counts(self):
        users = [
            _user("a", Role.ADMIN, datetime(2023, 1, 1)),
            _user("b", Role.CANDIDATE, datetime(2024, 6, 20)),
            _user("c", Role.CANDIDATE, datetime(2024, 6, 25), blocked=True),
            _user("d", Role.EMPLOYER, None),
        ]
        jobs = [
            Job(id="1", employer_id="d", title="Old", created_at=datetime(2024, 1, 1)),
            Job(id="2", employer_id="d", title="New", created_at=datetime(2024, 6, 29)),
        ]
        applications = [
            _application("x", "1", ApplicationStatus.ACCEPTED, datetime(2024, 6, 28)),
            _application("y", "1", ApplicationStatus.PENDING, datetime(2024, 2, 1)),
        ]

        stats = admin_stats(users, jobs, applications, now=NOW)

        assert stats.total_users == 4
        assert stats.new_users == 2
        assert stats.new_jobs == 1
        assert stats.new_applications == 1
        assert stats.users_by_role == {"admin": 1, "employer": 1, "candidate": 2}
        assert stats.blocked_users == 1
        assert stats.acceptance_rate == 50.0
        assert [j.id for j in stats.recent_jobs] == ["2", "1"]
        assert [u.id for u in stats.recent_users] == ["c", "b", "a"]


class TestEmployerStats:
    def test_counts(self):
        jobs = [
            Job(id="1", employer_id="e1", title="Open", deadline=date(2024, 7, 1)),
            Job(id="2", employer_id="e1", title="Closed", deadline=date(2024, 6, 1)),
        ]
        applications = [
            _application("x", "1", ApplicationStatus.PENDING),
            _application("y", "1", ApplicationStatus.ACCEPTED),
            _application("z", "1", ApplicationStatus.REJECTED),
        ]

        stats = employer_stats(jobs, applications, today=date(2024, 6, 15))

        assert stats.total_jobs == 2
        assert stats.active_jobs == 1
        assert stats.pending_applications == 1
        assert stats.accepted_applications == 1
        assert stats.acceptance_rate == 33.3
        assert stats.applications_per_job == [("Open", 3), ("Closed", 0)]
