"""Data models for postings, matches, resumes, interview preps and analytics."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


class RequestError(ValueError):
    """A caller-supplied field is missing or invalid."""


class MatchStatus(str, Enum):
    NEW = "new"
    VIEWED = "viewed"
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass
class Job:
    id: str
    title: str
    company: str
    location: str
    description: str | None
    requirements: list[str] = field(default_factory=list)
    salary: str | None = None
    type: str = "Full-time"
    posted: datetime = field(default_factory=utc_now)
    url: str = ""
    source: str = "unknown"
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "requirements": list(self.requirements),
            "salary": self.salary,
            "type": self.type,
            "posted": _iso(self.posted),
            "url": self.url,
            "source": self.source,
            "tags": list(self.tags),
        }


@dataclass
class ProfileSnapshot:
    skills: list[str]
    years_of_experience: int = 0
    proficiency_level: str = "Mid-Level"


@dataclass
class ResumeAnalysis:
    name: str = ""
    email: str = ""
    phone: str = ""
    skills: list[str] = field(default_factory=list)
    experience: list[dict[str, Any]] = field(default_factory=list)
    education: list[dict[str, Any]] = field(default_factory=list)
    projects: list[dict[str, Any]] = field(default_factory=list)
    summary: str = ""
    proficiency_level: str = "Mid-Level"
    years_of_experience: int = 0

    def profile(self) -> ProfileSnapshot:
        return ProfileSnapshot(
            skills=list(self.skills),
            years_of_experience=self.years_of_experience,
            proficiency_level=self.proficiency_level,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "skills": list(self.skills),
            "experience": list(self.experience),
            "education": list(self.education),
            "projects": list(self.projects),
            "summary": self.summary,
            "proficiencyLevel": self.proficiency_level,
            "yearsOfExperience": self.years_of_experience,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResumeAnalysis":
        """Accepts the camelCase JSON view (as produced by the LLM and to_dict)."""

        def _list(key: str) -> list:
            value = data.get(key)
            return list(value) if isinstance(value, list) else []

        try:
            years = int(float(data.get("yearsOfExperience") or 0))
        except (TypeError, ValueError):
            years = 0

        return cls(
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            phone=str(data.get("phone") or ""),
            skills=[str(s) for s in _list("skills") if s],
            experience=[e for e in _list("experience") if isinstance(e, dict)],
            education=[e for e in _list("education") if isinstance(e, dict)],
            projects=[p for p in _list("projects") if isinstance(p, dict)],
            summary=str(data.get("summary") or ""),
            proficiency_level=str(data.get("proficiencyLevel") or "Mid-Level"),
            years_of_experience=max(years, 0),
        )


@dataclass
class ResumeRecord:
    user_id: str
    file_name: str
    analysis: ResumeAnalysis
    id: str = field(default_factory=new_id)
    file_url: str | None = None
    uploaded_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
            "uploadedAt": _iso(self.uploaded_at),
            "analysis": self.analysis.to_dict(),
        }


@dataclass
class JobMatch:
    id: str
    user_id: str
    job: Job
    match_score: int
    match_reasons: list[str]
    created_at: datetime = field(default_factory=utc_now)
    status: MatchStatus = MatchStatus.NEW

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "jobId": self.job.id,
            "job": self.job.to_dict(),
            "matchScore": self.match_score,
            "matchReasons": list(self.match_reasons),
            "createdAt": _iso(self.created_at),
            "status": self.status.value,
        }


@dataclass
class InterviewPrep:
    user_id: str
    role: str
    technologies: list[str]
    material: dict[str, Any]
    company: str = "General"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "company": self.company,
            "role": self.role,
            "technologies": list(self.technologies),
            "createdAt": _iso(self.created_at),
            "material": self.material,
        }


@dataclass
class ActivityLogEntry:
    action: str
    item: str
    timestamp: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "item": self.item,
            "timestamp": _iso(self.timestamp),
        }


@dataclass
class SkillCoverage:
    skill: str
    current: float
    jobs_requiring: int
    target: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill": self.skill,
            "current": self.current,
            "target": self.target,
            "jobsRequiring": self.jobs_requiring,
        }


@dataclass
class WeeklyProgress:
    week: str
    jobs_viewed: int = 0
    applications_submitted: int = 0
    interviews_scheduled: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "week": self.week,
            "jobsViewed": self.jobs_viewed,
            "applicationsSubmitted": self.applications_submitted,
            "interviewsScheduled": self.interviews_scheduled,
        }


@dataclass
class Insight:
    type: str
    title: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "title": self.title, "message": self.message}


@dataclass
class UserAnalytics:
    user_id: str
    total_jobs_matched: int
    total_applications: int
    total_interviews: int
    skill_coverage: list[SkillCoverage]
    activity_log: list[ActivityLogEntry]
    weekly_progress: list[WeeklyProgress]
    insights: list[Insight]

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "totalJobsMatched": self.total_jobs_matched,
            "totalApplications": self.total_applications,
            "totalInterviews": self.total_interviews,
            "skillCoverage": [s.to_dict() for s in self.skill_coverage],
            "activityLog": [a.to_dict() for a in self.activity_log],
            "weeklyProgress": [w.to_dict() for w in self.weekly_progress],
            "insights": [i.to_dict() for i in self.insights],
        }


@dataclass
class DashboardStats:
    jobs_matched: int
    applications: int
    interviews: int
    skill_score: int

    def to_dict(self) -> dict[str, int]:
        return {
            "jobsMatched": self.jobs_matched,
            "applications": self.applications,
            "interviews": self.interviews,
            "skillScore": self.skill_score,
        }
