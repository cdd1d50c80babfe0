"""
Job discovery pipeline.

Runs: resume profile → source search → description filter → matcher →
assemble/rank → store → activity log.
"""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from careerai.config import Settings
from careerai.log import get_logger
from careerai.matching import assemble_matches, filter_valid_jobs
from careerai.models import JobMatch, MatchStatus, RequestError
from careerai.snapshot import write_jobs_snapshot
from careerai.sources.base import JobSearchBase
from careerai.store.base import DataStore

log = get_logger(__name__)

NO_VALID_JOBS_MESSAGE = "No jobs found with valid descriptions matching your profile"


class MissingResumeError(LookupError):
    """Discovery was requested for a user with no stored resume."""


@dataclass
class DiscoveryResult:
    matches: list[JobMatch] = field(default_factory=list)
    jobs_found: int = 0
    jobs_valid: int = 0
    message: str | None = None

    @property
    def no_valid_jobs(self) -> bool:
        return self.jobs_valid == 0


class DiscoveryService:
    def __init__(
        self,
        store: DataStore,
        source: JobSearchBase,
        matcher,
        settings: Settings | None = None,
        *,
        max_workers: int = 2,
    ) -> None:
        self.store = store
        self.source = source
        self.matcher = matcher
        self.settings = settings or Settings()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="discovery")

    def discover_jobs(
        self,
        user_id: str | None,
        location: str | None = None,
        limit: int | None = None,
    ) -> DiscoveryResult:
        """Search, filter, match and store jobs for *user_id*.

        Raises RequestError without a user id, MissingResumeError without a
        resume, and lets MatcherError propagate: nothing is stored then.
        """
        if not user_id:
            raise RequestError("User ID required")
        resume = self.store.get_resume(user_id)
        if resume is None:
            raise MissingResumeError("Please upload your resume first")

        profile = resume.analysis.profile()
        location = location or self.settings.default_location
        limit = limit or self.settings.discovery_limit

        jobs = self.source.search(profile.skills, location, limit=limit)
        valid = filter_valid_jobs(jobs, self.settings.min_description_length)
        if not valid:
            log.warning("No jobs with valid descriptions for %s (%d fetched)", user_id, len(jobs))
            return DiscoveryResult(jobs_found=len(jobs), message=NO_VALID_JOBS_MESSAGE)

        log.info("Processing %d jobs with valid descriptions (filtered from %d)", len(valid), len(jobs))
        results = self.matcher.match(profile, valid)
        matches = assemble_matches(user_id, valid, results)

        self.store.save_job_matches(user_id, matches)
        self.store.add_activity(user_id, "Discovered jobs", f"{len(matches)} new opportunities")
        log.info("Discovery complete for %s: %d matches, top score %d", user_id, len(matches), matches[0].match_score)
        return DiscoveryResult(matches=matches, jobs_found=len(jobs), jobs_valid=len(valid))

    def get_jobs(self, user_id: str | None) -> list[JobMatch]:
        if not user_id:
            raise RequestError("User ID required")
        return self.store.get_job_matches(user_id)

    def update_job_status(self, user_id: str | None, match_id: str, status: MatchStatus) -> bool:
        if not user_id:
            raise RequestError("User ID required")
        updated = self.store.update_job_status(user_id, match_id, status)
        if updated:
            log.info("Job match %s for %s → %s", match_id, user_id, status.value)
        return updated

    # ── Background discovery ───────────────────────────────────────────

    def _discover_in_background(self, user_id: str, location: str | None) -> DiscoveryResult | None:
        try:
            result = self.discover_jobs(user_id, location)
        except Exception:
            log.exception("Background discovery failed for %s", user_id)
            return None

        if result.matches:
            try:
                write_jobs_snapshot(user_id, self.store.get_resume(user_id), result.matches, self.settings.data_dir)
            except Exception:
                log.exception("Could not write jobs snapshot for %s", user_id)
        return result

    def spawn_background_discovery(self, user_id: str, location: str | None = None) -> Future:
        """Run discovery detached from the caller.

        The returned future always resolves to a DiscoveryResult or None;
        failures are logged here and never re-raised.
        """
        log.info("Starting background job search for %s", user_id)
        future = self._executor.submit(self._discover_in_background, user_id, location)
        future.add_done_callback(lambda f: _log_background_outcome(user_id, f))
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _log_background_outcome(user_id: str, future: Future) -> None:
    if future.cancelled():
        log.warning("Background discovery for %s was cancelled", user_id)
        return
    exc = future.exception()
    if exc is not None:
        log.error("Background discovery for %s ended with %r", user_id, exc)
        return
    result = future.result()
    if result is None:
        return
    if result.message:
        log.info("Background discovery for %s: %s", user_id, result.message)
    else:
        log.info("Background discovery for %s saved %d job matches", user_id, len(result.matches))
