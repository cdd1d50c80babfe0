"""Filter postings without usable descriptions and merge match results into ranked JobMatches."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable

from careerai.log import get_logger
from careerai.models import Job, JobMatch, MatchStatus, new_id, utc_now
from careerai.schemas import MatchResult

log = get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 50
DEFAULT_MATCH_SCORE = 50
DEFAULT_MATCH_REASON = "General match based on profile"


def has_valid_description(job: Job, min_length: int = MIN_DESCRIPTION_LENGTH) -> bool:
    return job.description is not None and len(job.description.strip()) >= min_length


def filter_valid_jobs(jobs: Iterable[Job], min_length: int = MIN_DESCRIPTION_LENGTH) -> list[Job]:
    """Keep postings whose trimmed description has at least *min_length* chars."""
    valid: list[Job] = []
    total = 0
    for job in jobs:
        total += 1
        if has_valid_description(job, min_length):
            valid.append(job)
        else:
            log.info("Filtering out job without description: %s at %s", job.title, job.company)
    log.info("Kept %d of %d jobs with valid descriptions", len(valid), total)
    return valid


def assemble_matches(
    user_id: str,
    jobs: list[Job],
    results: Iterable[MatchResult],
    *,
    now: datetime | None = None,
    id_factory: Callable[[], str] = new_id,
) -> list[JobMatch]:
    """One JobMatch per job, highest score first.

    Jobs the matcher skipped get the default score and reason. The sort is
    stable, so equal scores keep input order.
    """
    created = now or utc_now()
    by_id: dict[str, MatchResult] = {}
    for r in results:
        by_id.setdefault(r.job_id, r)

    matches: list[JobMatch] = []
    for job in jobs:
        r = by_id.get(job.id)
        if r is not None:
            score, reasons = r.match_score, list(r.match_reasons)
        else:
            score, reasons = DEFAULT_MATCH_SCORE, [DEFAULT_MATCH_REASON]
        matches.append(
            JobMatch(
                id=id_factory(),
                user_id=user_id,
                job=job,
                match_score=score,
                match_reasons=reasons,
                created_at=created,
                status=MatchStatus.NEW,
            )
        )

    matches.sort(key=lambda m: -m.match_score)
    return matches
