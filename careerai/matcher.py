"""Score jobs against a candidate profile with the reasoning service."""
from __future__ import annotations

import json

from pydantic import ValidationError

from careerai.llm import LlmClient, parse_json
from careerai.log import get_logger
from careerai.models import Job, ProfileSnapshot
from careerai.schemas import MatchResult

log = get_logger(__name__)


class MatcherError(RuntimeError):
    """The reasoning call failed or its reply could not be used."""


_MATCH_PROMPT = """\
Given a candidate profile:
- Skills: {skills}
- Years of Experience: {years}
- Proficiency Level: {level}

And these job listings:
{jobs}

For each job, calculate a match score (0-100) and provide match reasons.
Return a JSON array with: [{{ "jobId": "...", "matchScore": 0, "matchReasons": ["..."] }}]

Consider:
- Skill overlap
- Experience level match
- Role seniority alignment
- Technology stack compatibility

Return ONLY valid JSON array, no markdown or additional text.
"""


def _job_payload(job: Job) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "type": job.type,
        "requirements": job.requirements,
        "description": (job.description or "")[:1500],
    }


def build_prompt(profile: ProfileSnapshot, jobs: list[Job]) -> str:
    return _MATCH_PROMPT.format(
        skills=", ".join(profile.skills),
        years=profile.years_of_experience,
        level=profile.proficiency_level,
        jobs=json.dumps([_job_payload(j) for j in jobs], indent=2),
    )


def parse_match_results(raw: str, jobs: list[Job]) -> list[MatchResult]:
    """Validate the model reply; at most one result per known job id."""
    try:
        items = parse_json(raw, list)
    except ValueError as exc:
        log.error("Unparseable matcher reply: %s", raw[:200])
        raise MatcherError(f"Failed to parse match results: {exc}") from exc

    try:
        results = [MatchResult.model_validate(item) for item in items]
    except ValidationError as exc:
        raise MatcherError(f"Match results have an unexpected shape: {exc.error_count()} error(s)") from exc

    known = {j.id for j in jobs}
    seen: set[str] = set()
    out: list[MatchResult] = []
    for r in results:
        if r.job_id not in known:
            log.warning("Matcher returned unknown jobId %r, ignoring", r.job_id)
            continue
        if r.job_id in seen:
            continue
        seen.add(r.job_id)
        out.append(r)
    return out


class JobMatcher:
    def __init__(self, client: LlmClient) -> None:
        self.client = client

    def match(self, profile: ProfileSnapshot, jobs: list[Job]) -> list[MatchResult]:
        if not jobs:
            return []
        log.info("Matching %d jobs to profile (%d skills)", len(jobs), len(profile.skills))
        try:
            raw = self.client.complete(build_prompt(profile, jobs), max_tokens=8000, temperature=0.2)
        except Exception as exc:
            raise MatcherError(f"Failed to match jobs: {exc}") from exc
        results = parse_match_results(raw, jobs)
        log.info("Matcher scored %d of %d jobs", len(results), len(jobs))
        return results
