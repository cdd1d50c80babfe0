from __future__ import annotations

import json
from concurrent.futures import Future

import pytest

from careerai.discovery import (
    NO_VALID_JOBS_MESSAGE,
    DiscoveryService,
    MissingResumeError,
    _log_background_outcome,
)
from careerai.matcher import MatcherError
from careerai.models import MatchStatus, RequestError
from careerai.store import InMemoryStore
from conftest import FakeMatcher, FixedSource
from factories import make_job, make_resume


@pytest.fixture()
def jobs():
    return [
        make_job("a", title="Backend Engineer"),
        make_job("b", title="Platform Engineer"),
        make_job("c", title="No Description", description=None),
        make_job("d", title="Data Engineer"),
    ]


@pytest.fixture()
def service(store, jobs, settings):
    svc = DiscoveryService(store, FixedSource(jobs), FakeMatcher({"a": 60, "b": 95}), settings)
    yield svc
    svc.shutdown()


def test_requires_user_id(service):
    with pytest.raises(RequestError, match="User ID required"):
        service.discover_jobs("")
    with pytest.raises(RequestError):
        service.get_jobs(None)


def test_requires_resume(service):
    with pytest.raises(MissingResumeError):
        service.discover_jobs("u1")
    assert service.source.calls == []


def test_discovery_ranks_stores_and_logs_activity(service, store):
    store.save_resume(make_resume())

    result = service.discover_jobs("u1", "Lahore", 10)

    assert service.source.calls == [(["Python", "FastAPI", "Docker"], "Lahore", 10)]
    assert [m.job.id for m in result.matches] == ["b", "a", "d"]
    assert [m.match_score for m in result.matches] == [95, 60, 50]
    assert result.jobs_found == 4
    assert result.jobs_valid == 3
    assert result.message is None

    _, matched_jobs = service.matcher.calls[0]
    assert [j.id for j in matched_jobs] == ["a", "b", "d"]

    stored = store.get_job_matches("u1")
    assert [m.id for m in stored] == [m.id for m in result.matches]
    assert all(m.status == MatchStatus.NEW for m in stored)

    [activity] = store.get_activity("u1")
    assert (activity.action, activity.item) == ("Discovered jobs", "3 new opportunities")


def test_discovery_uses_settings_defaults(service, store, settings):
    store.save_resume(make_resume())

    service.discover_jobs("u1")

    assert service.source.calls[0][1:] == (settings.default_location, settings.discovery_limit)


def test_no_valid_descriptions_skips_matcher(store, settings):
    store.save_resume(make_resume())
    matcher = FakeMatcher()
    service = DiscoveryService(store, FixedSource([make_job("x", description="short")]), matcher, settings)

    result = service.discover_jobs("u1")

    assert result.matches == []
    assert result.no_valid_jobs
    assert result.message == NO_VALID_JOBS_MESSAGE
    assert matcher.calls == []
    assert store.get_job_matches("u1") == []
    service.shutdown()


def test_matcher_failure_propagates_and_stores_nothing(store, jobs, settings, failing_matcher):
    store.save_resume(make_resume())
    service = DiscoveryService(store, FixedSource(jobs), failing_matcher, settings)

    with pytest.raises(MatcherError):
        service.discover_jobs("u1")

    assert store.get_job_matches("u1") == []
    assert store.get_activity("u1") == []
    service.shutdown()


def test_repeated_discovery_appends(service, store):
    store.save_resume(make_resume())

    service.discover_jobs("u1")
    service.discover_jobs("u1")

    stored = store.get_job_matches("u1")
    assert len(stored) == 6
    assert len({m.id for m in stored}) == 6
    assert [m.job.id for m in stored] == ["b", "b", "a", "a", "d", "d"]


def test_update_job_status(service, store):
    store.save_resume(make_resume())
    match = service.discover_jobs("u1").matches[0]

    assert service.update_job_status("u1", match.id, MatchStatus.APPLIED)
    assert not service.update_job_status("u1", "missing", MatchStatus.APPLIED)
    assert service.get_jobs("u1")[0].status == MatchStatus.APPLIED
    with pytest.raises(ValueError):
        service.get_jobs(None)


# ── background ───────────────────────────────────────────────────────────


def test_background_discovery_writes_snapshot(service, store, settings, tmp_path):
    store.save_resume(make_resume())

    result = service.spawn_background_discovery("u1").result(timeout=10)

    assert len(result.matches) == 3
    files = list((tmp_path / "data" / "u1").glob("jobs-*.json"))
    assert len(files) == 1
    snapshot = json.loads(files[0].read_text(encoding="utf-8"))
    assert snapshot["totalJobs"] == 3
    assert snapshot["resumeFileName"] == "cv.pdf"
    assert snapshot["jobs"][0]["jobId"] == "b"


def test_background_errors_are_logged_not_raised(store, jobs, settings, failing_matcher, caplog):
    store.save_resume(make_resume())
    service = DiscoveryService(store, FixedSource(jobs), failing_matcher, settings)

    future = service.spawn_background_discovery("u1")

    assert future.result(timeout=10) is None
    assert future.exception() is None
    assert "Background discovery failed for u1" in caplog.text
    service.shutdown()


def test_background_without_resume_is_swallowed(service, caplog):
    assert service.spawn_background_discovery("nobody").result(timeout=10) is None
    assert "Please upload your resume first" in caplog.text


class _FlakyResumeStore(InMemoryStore):
    """Serves the resume once, then fails like a dropped database connection."""

    def __init__(self) -> None:
        super().__init__()
        self.resume_reads = 0

    def get_resume(self, user_id):
        self.resume_reads += 1
        if self.resume_reads > 1:
            raise RuntimeError("db down")
        return super().get_resume(user_id)


def test_background_snapshot_failure_still_resolves(jobs, settings, caplog):
    store = _FlakyResumeStore()
    store.save_resume(make_resume())
    service = DiscoveryService(store, FixedSource(jobs), FakeMatcher({"a": 60, "b": 95}), settings)

    future = service.spawn_background_discovery("u1")
    result = future.result(timeout=10)
    service.shutdown()

    assert future.exception() is None
    assert len(result.matches) == 3
    assert len(store.get_job_matches("u1")) == 3
    assert "Could not write jobs snapshot for u1" in caplog.text
    assert "exception calling callback" not in caplog.text


def test_outcome_callback_logs_failed_future(caplog):
    future = Future()
    future.set_exception(RuntimeError("db down"))

    _log_background_outcome("u1", future)

    assert "Background discovery for u1 ended with RuntimeError('db down')" in caplog.text
