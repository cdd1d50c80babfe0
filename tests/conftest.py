from __future__ import annotations

import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="careerai-logs-"))

import pytest

from careerai.config import Settings
from careerai.matcher import MatcherError
from careerai.schemas import MatchResult
from careerai.sources.base import JobSearchBase
from careerai.store import InMemoryStore, SqlStore


class FakeLlmClient:
    """Returns canned replies in order; an Exception reply is raised instead."""

    def __init__(self, *replies, configured: bool = True, model: str = "fake-model") -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.model = model
        self._configured = configured

    @property
    def configured(self) -> bool:
        return self._configured

    def complete(self, prompt: str, *, max_tokens: int = 4000, temperature: float = 0.2) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeMatcher:
    def __init__(self, scores: dict[str, int] | None = None, error: Exception | None = None) -> None:
        self.scores = scores or {}
        self.error = error
        self.calls: list[tuple] = []

    def match(self, profile, jobs):
        self.calls.append((profile, list(jobs)))
        if self.error is not None:
            raise self.error
        return [
            MatchResult(job_id=j.id, match_score=self.scores[j.id], match_reasons=[f"Scored {j.title}"])
            for j in jobs
            if j.id in self.scores
        ]


class FixedSource(JobSearchBase):
    def __init__(self, jobs) -> None:
        self.jobs = list(jobs)
        self.calls: list[tuple] = []

    def search(self, skills, location, limit=20):
        self.calls.append((list(skills), location, limit))
        return list(self.jobs[:limit])


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(data_dir=str(tmp_path / "data"))


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryStore()
    else:
        s = SqlStore(f"sqlite:///{tmp_path / 'careerai.db'}")
        yield s
        s.engine.dispose()


@pytest.fixture()
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def failing_matcher() -> FakeMatcher:
    return FakeMatcher(error=MatcherError("Failed to parse match results"))
