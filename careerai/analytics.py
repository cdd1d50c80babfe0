"""
Dashboard analytics derived on demand from a user's stored records.

Nothing here is persisted: counts, skill coverage, the 4-week histogram,
the activity feed and the insights are recomputed on every read.
"""
from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

from careerai.log import get_logger
from careerai.models import (
    ActivityLogEntry,
    DashboardStats,
    Insight,
    InterviewPrep,
    JobMatch,
    MatchStatus,
    RequestError,
    ResumeRecord,
    SkillCoverage,
    UserAnalytics,
    WeeklyProgress,
    utc_now,
)
from careerai.store.base import DataStore

log = get_logger(__name__)

WEEKS = 4
MAX_SKILLS = 15
MAX_FEED = 20
FEED_MATCHES = 10
FEED_PREPS = 5
LOW_APPLICATION_RATE = 0.10
HIGH_APPLICATION_RATE = 0.30
SKILL_GAP = 20
MAX_GAP_SKILLS = 3


def _percent(rate: float) -> int:
    return int(rate * 100 + 0.5)


def _mentions(skill: str, keywords: list[str]) -> bool:
    s = skill.lower()
    return any(s in k.lower() or k.lower() in s for k in keywords if k)


# ── Skill coverage ───────────────────────────────────────────────────────


def skill_coverage(
    skills: list[str], matches: list[JobMatch], rng: random.Random | None = None
) -> list[SkillCoverage]:
    """Per-skill count of matched jobs whose tags or requirements mention it.

    ``current`` is a placeholder proficiency drawn from [75, 100).
    Sorted by jobs_requiring, highest first; ties keep resume order.
    """
    rng = rng or random.Random()
    coverage: list[SkillCoverage] = []
    for skill in skills:
        if not skill.strip():
            continue
        jobs_requiring = sum(
            1 for m in matches if _mentions(skill, m.job.tags) or _mentions(skill, m.job.requirements)
        )
        coverage.append(SkillCoverage(skill=skill, current=75 + rng.random() * 25, jobs_requiring=jobs_requiring))
    coverage.sort(key=lambda c: -c.jobs_requiring)
    return coverage


# ── Weekly progress ──────────────────────────────────────────────────────


def weekly_progress(
    matches: list[JobMatch], preps: list[InterviewPrep], now: datetime | None = None
) -> list[WeeklyProgress]:
    """Four 7-day buckets ending at *now*, oldest first.

    Bucket k covers (now - 7(k+1) days, now - 7k days], so a record created
    exactly at *now* counts toward the newest week.
    """
    now = now or utc_now()
    weeks: list[WeeklyProgress] = []
    for k in range(WEEKS - 1, -1, -1):
        end = now - timedelta(days=7 * k)
        start = now - timedelta(days=7 * (k + 1))
        in_week = [m for m in matches if start < m.created_at <= end]
        weeks.append(
            WeeklyProgress(
                week=f"Week {WEEKS - k}",
                jobs_viewed=len(in_week),
                applications_submitted=sum(1 for m in in_week if m.status == MatchStatus.APPLIED),
                interviews_scheduled=sum(1 for p in preps if start < p.created_at <= end),
            )
        )
    return weeks


# ── Activity feed ────────────────────────────────────────────────────────


def activity_feed(
    resume: ResumeRecord | None,
    matches: list[JobMatch],
    preps: list[InterviewPrep],
    limit: int = MAX_FEED,
) -> list[ActivityLogEntry]:
    feed: list[ActivityLogEntry] = []
    if resume is not None:
        feed.append(
            ActivityLogEntry(
                id=f"resume-{resume.id}",
                action="Uploaded resume",
                item=resume.file_name,
                timestamp=resume.uploaded_at,
            )
        )

    recent_matches = sorted(matches, key=lambda m: m.created_at, reverse=True)[:FEED_MATCHES]
    for m in recent_matches:
        feed.append(
            ActivityLogEntry(
                id=f"job-{m.id}",
                action="Applied to" if m.status == MatchStatus.APPLIED else "Discovered",
                item=m.job.title,
                timestamp=m.created_at,
            )
        )

    recent_preps = sorted(preps, key=lambda p: p.created_at, reverse=True)[:FEED_PREPS]
    for p in recent_preps:
        feed.append(
            ActivityLogEntry(
                id=f"prep-{p.id}",
                action="Generated interview prep for",
                item=p.role,
                timestamp=p.created_at,
            )
        )

    feed.sort(key=lambda a: a.timestamp, reverse=True)
    return feed[:limit]


# ── Insights ─────────────────────────────────────────────────────────────


def generate_insights(
    total_jobs: int,
    total_applications: int,
    total_interviews: int,
    coverage: list[SkillCoverage],
) -> list[Insight]:
    insights: list[Insight] = []

    if total_jobs > 0:
        rate = total_applications / total_jobs
        if rate < LOW_APPLICATION_RATE:
            insights.append(Insight(
                "warning",
                "Low Application Rate",
                f"You've only applied to {_percent(rate)}% of matched jobs. "
                "Consider applying to more opportunities to increase your chances.",
            ))
        elif rate > HIGH_APPLICATION_RATE:
            insights.append(Insight(
                "success",
                "Great Application Activity",
                f"You're actively applying to {_percent(rate)}% of matched jobs. Keep up the momentum!",
            ))

    if total_interviews == 0 and total_applications > 0:
        insights.append(Insight(
            "info",
            "Prepare for Interviews",
            "Start preparing for interviews using our AI-powered interview prep tool to boost your confidence.",
        ))
    elif total_interviews > 0:
        plural = "s" if total_interviews > 1 else ""
        insights.append(Insight(
            "success",
            "Interview Ready",
            f"You've prepared for {total_interviews} interview{plural}. "
            "You're building strong preparation habits!",
        ))

    if coverage:
        top = coverage[0]
        insights.append(Insight(
            "info",
            "Most In-Demand Skill",
            f"{top.skill} is required by {top.jobs_requiring} of your matched jobs. "
            "Focus on strengthening this skill.",
        ))

    gaps = [c.skill for c in coverage if c.current < c.target - SKILL_GAP]
    if gaps:
        insights.append(Insight(
            "warning",
            "Skill Development Opportunity",
            f"Consider improving: {', '.join(gaps[:MAX_GAP_SKILLS])}. These skills have room for growth.",
        ))

    return insights


# ── Snapshot ─────────────────────────────────────────────────────────────


def compute_analytics(
    user_id: str,
    resume: ResumeRecord | None,
    matches: list[JobMatch],
    preps: list[InterviewPrep],
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> UserAnalytics:
    total_jobs = len(matches)
    total_applications = sum(1 for m in matches if m.status == MatchStatus.APPLIED)
    total_interviews = len(preps)

    skills = resume.analysis.skills if resume else []
    coverage = skill_coverage(skills, matches, rng)
    insights = generate_insights(total_jobs, total_applications, total_interviews, coverage)

    return UserAnalytics(
        user_id=user_id,
        total_jobs_matched=total_jobs,
        total_applications=total_applications,
        total_interviews=total_interviews,
        skill_coverage=coverage[:MAX_SKILLS],
        activity_log=activity_feed(resume, matches, preps),
        weekly_progress=weekly_progress(matches, preps, now),
        insights=insights,
    )


class AnalyticsService:
    def __init__(self, store: DataStore, rng: random.Random | None = None) -> None:
        self.store = store
        self.rng = rng or random.Random()

    def get_analytics(self, user_id: str | None, now: datetime | None = None) -> UserAnalytics:
        if not user_id:
            raise RequestError("User ID required")

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="analytics") as pool:
            resume_f = pool.submit(self.store.get_resume, user_id)
            matches_f = pool.submit(self.store.get_job_matches, user_id)
            preps_f = pool.submit(self.store.get_interview_preps, user_id)
            resume, matches, preps = resume_f.result(), matches_f.result(), preps_f.result()

        log.debug("Analytics for %s: %d matches, %d preps", user_id, len(matches), len(preps))
        return compute_analytics(user_id, resume, matches, preps, now=now, rng=self.rng)

    def dashboard_stats(self, user_id: str | None) -> DashboardStats:
        if not user_id:
            raise RequestError("User ID required")

        resume = self.store.get_resume(user_id)
        has_skills = bool(resume and resume.analysis.skills)
        return DashboardStats(
            jobs_matched=self.store.count_job_matches(user_id),
            applications=self.store.count_job_matches(user_id, MatchStatus.APPLIED),
            interviews=len(self.store.get_interview_preps(user_id)),
            skill_score=self.rng.randint(75, 95) if has_skills else 0,
        )
