"""SerpAPI Google Jobs search."""
from __future__ import annotations

import hashlib
import re
from datetime import datetime, timedelta, timezone
from urllib.parse import quote_plus

import requests

from careerai.log import get_logger
from careerai.models import Job
from careerai.sources.base import JobSearchBase
from careerai.sources.mock import MockSource

log = get_logger(__name__)

SERP_API_URL = "https://serpapi.com/search.json"

COMMON_TECH_SKILLS: list[str] = [
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Ruby", "Go", "Rust", "PHP",
    "React", "Angular", "Vue", "Node.js", "Express", "Django", "Flask", "Spring", "Rails",
    "HTML", "CSS", "Tailwind", "Bootstrap", "SASS", "LESS",
    "MongoDB", "PostgreSQL", "MySQL", "Redis", "Elasticsearch",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "CI/CD",
    "Git", "GitHub", "GitLab", "Jira", "Agile", "Scrum",
    "REST", "GraphQL", "API", "Microservices",
    "Machine Learning", "AI", "Data Science", "TensorFlow", "PyTorch",
]

_MAX_REQUIREMENTS = 10
_MAX_TAGS = 5

# SerpAPI rejects "Remote" as a location
_LOCATION_ALIASES: dict[str, str] = {"remote": "United States"}

_UNIT_DELTAS: list[tuple[str, timedelta]] = [
    ("hour", timedelta(hours=1)),
    ("day", timedelta(days=1)),
    ("week", timedelta(weeks=1)),
    ("month", timedelta(days=30)),
]


def extract_requirements(description: str, user_skills: list[str]) -> list[str]:
    """Known tech keywords plus the user's own skills found in *description*."""
    low = (description or "").lower()
    found: list[str] = []
    for skill in COMMON_TECH_SKILLS + list(user_skills):
        if skill and skill.lower() in low:
            found.append(skill)
    return list(dict.fromkeys(found))[:_MAX_REQUIREMENTS]


def parse_posted_date(posted: str, now: datetime | None = None) -> datetime:
    """Turn relative text like "3 days ago" into a timestamp."""
    now = now or datetime.now(timezone.utc)
    low = (posted or "").lower()
    m = re.search(r"\d+", low)
    count = int(m.group(0)) if m else 1
    for unit, delta in _UNIT_DELTAS:
        if unit in low:
            return now - delta * count
    return now


def _best_link(hit: dict) -> str:
    link = hit.get("share_link") or hit.get("apply_link")
    if link:
        return link
    for opt in hit.get("apply_options") or []:
        if isinstance(opt, dict) and opt.get("link"):
            return opt["link"]
    query = f"{hit.get('title', '')} {hit.get('company_name', '')}"
    return f"https://www.google.com/search?q={quote_plus(query)}"


def _job_from_hit(hit: dict, location: str, skills: list[str]) -> Job:
    title = hit.get("title") or "Untitled Position"
    company = hit.get("company_name") or "Unknown Company"
    job_location = hit.get("location") or location
    ext = hit.get("detected_extensions") or {}
    description = hit.get("description")
    job_id = hit.get("job_id") or hashlib.sha256(
        (title + company + job_location).encode()
    ).hexdigest()[:12]
    requirements = extract_requirements(description or "", skills)
    return Job(
        id=job_id,
        title=title,
        company=company,
        location=job_location,
        description=description.strip() if isinstance(description, str) else None,
        requirements=requirements,
        salary=ext.get("salary") or hit.get("salary") or "Not specified",
        type=ext.get("schedule_type") or "Full-time",
        posted=parse_posted_date(ext["posted_at"]) if ext.get("posted_at") else datetime.now(timezone.utc),
        url=_best_link(hit),
        source="Google Jobs (SERP API)",
        tags=requirements[:_MAX_TAGS],
    )


class SerpApiSource(JobSearchBase):
    def __init__(self, api_key: str, fallback: JobSearchBase | None = None, timeout: float = 15.0) -> None:
        self.api_key = api_key
        self.fallback = fallback or MockSource()
        self.timeout = timeout

    def _fetch(self, skills: list[str], location: str, limit: int) -> list[Job]:
        query = f"{' '.join(skills[:3])} jobs {location}".strip()
        search_location = _LOCATION_ALIASES.get(location.lower(), location)
        log.info("Searching jobs with SerpAPI: %r (location=%s)", query, search_location)
        r = requests.get(
            SERP_API_URL,
            params={
                "engine": "google_jobs",
                "q": query,
                "location": search_location,
                "api_key": self.api_key,
                "num": limit,
            },
            timeout=self.timeout,
        )
        r.raise_for_status()
        data = r.json()
        hits = data.get("jobs_results") or []
        return [_job_from_hit(hit, location, skills) for hit in hits[:limit]]

    def search(self, skills: list[str], location: str, limit: int = 20) -> list[Job]:
        if not self.api_key:
            log.warning("SERPAPI_KEY not configured, using mock data")
            return self.fallback.search(skills, location, limit)
        try:
            jobs = self._fetch(skills, location, limit)
        except Exception as exc:
            log.warning("SerpAPI error (%s), falling back to mock data", exc)
            return self.fallback.search(skills, location, limit)

        if not jobs:
            log.warning("No jobs found from SerpAPI, using mock data")
            return self.fallback.search(skills, location, limit)

        log.info("SerpAPI returned %d jobs", len(jobs))
        return jobs
