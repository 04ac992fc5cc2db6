"""Records exchanged with the job board backend."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime

UNKNOWN_COMPANY = "Unknown Company"


class Role(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYER = "employer"
    CANDIDATE = "candidate"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value) -> "ApplicationStatus":
        """Read any status shape the backend has produced.

        Older records carry a boolean (True accepted, False rejected) or
        null for pending.
        """
        if isinstance(value, cls):
            return value
        if value is True:
            return cls.ACCEPTED
        if value is False:
            return cls.REJECTED
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.PENDING
        return cls.PENDING

    @property
    def label(self) -> str:
        return self.value.capitalize()


def parse_datetime(value) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_date(value) -> date | None:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


@dataclass
class CandidateProfile:
    resume_url: str | None = None
    bio: str | None = None
    skills: list[str] = field(default_factory=list)
    experience_years: int | None = None
    education: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None

    @classmethod
    def from_api(cls, data: dict | None) -> "CandidateProfile | None":
        if not data:
            return None
        return cls(
            resume_url=data.get("resume_url"),
            bio=data.get("bio"),
            skills=list(data.get("skills") or []),
            experience_years=data.get("experience_years"),
            education=data.get("education"),
            linkedin_url=data.get("linkedin_url"),
            portfolio_url=data.get("portfolio_url"),
        )


@dataclass
class EmployerProfile:
    company_name: str = ""
    company_website: str | None = None
    company_description: str | None = None
    company_logo_url: str | None = None

    @classmethod
    def from_api(cls, data: dict | None) -> "EmployerProfile | None":
        if not data:
            return None
        return cls(
            company_name=data.get("company_name") or "",
            company_website=data.get("company_website"),
            company_description=data.get("company_description"),
            company_logo_url=data.get("company_logo_url"),
        )


@dataclass
class User:
    id: str
    name: str
    email: str
    role: Role
    password_hash: str = ""
    is_blocked: bool = False
    profile_picture_url: str | None = None
    created_at: datetime | None = None
    candidate: CandidateProfile | None = None
    employer: EmployerProfile | None = None

    @classmethod
    def from_api(cls, data: dict) -> "User":
        """Build a user from either a bare user record or a ``/user/<id>`` payload."""
        record = data.get("user") or data
        return cls(
            id=str(record["id"]),
            name=record.get("name") or "",
            email=record.get("email") or "",
            role=Role(record.get("role") or Role.CANDIDATE.value),
            password_hash=record.get("password_hash") or "",
            is_blocked=bool(record.get("is_blocked")),
            profile_picture_url=record.get("profile_picture_url"),
            created_at=parse_datetime(record.get("created_at")),
            candidate=CandidateProfile.from_api(data.get("candidate") or record.get("candidate")),
            employer=EmployerProfile.from_api(data.get("employer") or record.get("employer")),
        )

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.name.split() if part).upper()


@dataclass(frozen=True)
class EmployerSummary:
    employer_id: str
    company_name: str = UNKNOWN_COMPANY
    company_logo_url: str | None = None

    @classmethod
    def from_api(cls, employer_id: str, data: dict) -> "EmployerSummary":
        employer = data.get("employer") or {}
        return cls(
            employer_id=str(employer_id),
            company_name=employer.get("company_name") or UNKNOWN_COMPANY,
            company_logo_url=employer.get("company_logo_url"),
        )


@dataclass
class Job:
    id: str
    employer_id: str
    title: str
    description: str = ""
    type: str = ""
    tags: list[str] = field(default_factory=list)
    salary: str = ""
    deadline: date | None = None
    created_at: datetime | None = None
    company_name: str = UNKNOWN_COMPANY
    company_logo_url: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Job":
        record = data.get("job") or data
        return cls(
            id=str(record["id"]),
            employer_id=str(record.get("employer_id") or ""),
            title=record.get("title") or "",
            description=record.get("description") or "",
            type=record.get("type") or "",
            tags=list(record.get("tags") or []),
            salary=record.get("salary") or "",
            deadline=parse_date(record.get("deadline")),
            created_at=parse_datetime(record.get("created_at")),
            company_name=record.get("company_name") or UNKNOWN_COMPANY,
            company_logo_url=record.get("company_logo_url"),
        )

    def is_expired(self, today: date | None = None) -> bool:
        if self.deadline is None:
            return False
        return self.deadline < (today or date.today())

    @property
    def match_text(self) -> str:
        # Job fields concatenated for resume matching
        return " ".join([" ".join(self.tags), self.description, self.title]).strip()


@dataclass
class Application:
    id: str
    candidate_id: str
    job_id: str
    resume_url: str = ""
    message: str = ""
    applied_at: datetime | None = None
    status: ApplicationStatus = ApplicationStatus.PENDING

    # Filled in by the views that join applications with jobs and users
    job: Job | None = None
    candidate: User | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Application":
        record = data.get("application") or data
        return cls(
            id=str(record["id"]),
            candidate_id=str(record.get("candidate_id") or ""),
            job_id=str(record.get("job_id") or ""),
            resume_url=record.get("resume_url") or "",
            message=record.get("message") or "",
            applied_at=parse_datetime(record.get("applied_at")),
            status=ApplicationStatus.parse(record.get("status")),
        )

    @property
    def job_title(self) -> str:
        return self.job.title if self.job else "Unknown Job"

    @property
    def candidate_name(self) -> str:
        return self.candidate.name if self.candidate else "Unknown Candidate"
