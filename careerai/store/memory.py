"""Process-local store, for tests and for running without a database."""
from __future__ import annotations

import copy
import threading
from dataclasses import replace
from datetime import datetime

from careerai.log import get_logger
from careerai.models import (
    ActivityLogEntry,
    InterviewPrep,
    JobMatch,
    MatchStatus,
    ResumeRecord,
    utc_now,
)
from careerai.store.base import DataStore

log = get_logger(__name__)


class InMemoryStore(DataStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resumes: dict[str, ResumeRecord] = {}
        self._matches: dict[str, list[JobMatch]] = {}
        self._preps: dict[str, list[InterviewPrep]] = {}
        self._activity: dict[str, list[ActivityLogEntry]] = {}

    def save_resume(self, resume: ResumeRecord) -> None:
        with self._lock:
            self._resumes[resume.user_id] = copy.deepcopy(resume)

    def get_resume(self, user_id: str) -> ResumeRecord | None:
        with self._lock:
            resume = self._resumes.get(user_id)
            return copy.deepcopy(resume) if resume else None

    def save_job_matches(self, user_id: str, matches: list[JobMatch]) -> None:
        with self._lock:
            self._matches.setdefault(user_id, []).extend(copy.deepcopy(matches))
        log.debug("Stored %d job matches for %s", len(matches), user_id)

    def get_job_matches(self, user_id: str) -> list[JobMatch]:
        with self._lock:
            rows = copy.deepcopy(self._matches.get(user_id, []))
        return sorted(rows, key=lambda m: -m.match_score)

    def update_job_status(self, user_id: str, match_id: str, status: MatchStatus) -> bool:
        with self._lock:
            rows = self._matches.get(user_id, [])
            for i, m in enumerate(rows):
                if m.id == match_id:
                    rows[i] = replace(m, status=status)
                    return True
        return False

    def count_job_matches(self, user_id: str, status: MatchStatus | None = None) -> int:
        with self._lock:
            rows = self._matches.get(user_id, [])
            if status is None:
                return len(rows)
            return sum(1 for m in rows if m.status == status)

    def save_interview_prep(self, prep: InterviewPrep) -> None:
        with self._lock:
            self._preps.setdefault(prep.user_id, []).append(copy.deepcopy(prep))

    def get_interview_preps(self, user_id: str) -> list[InterviewPrep]:
        with self._lock:
            rows = copy.deepcopy(self._preps.get(user_id, []))
        return sorted(reversed(rows), key=lambda p: p.created_at, reverse=True)

    def add_activity(
        self, user_id: str, action: str, item: str, timestamp: datetime | None = None
    ) -> ActivityLogEntry:
        entry = ActivityLogEntry(action=action, item=item, timestamp=timestamp or utc_now())
        with self._lock:
            self._activity.setdefault(user_id, []).append(entry)
        return copy.deepcopy(entry)

    def get_activity(self, user_id: str, limit: int = 20) -> list[ActivityLogEntry]:
        with self._lock:
            rows = copy.deepcopy(self._activity.get(user_id, []))
        return sorted(reversed(rows), key=lambda a: a.timestamp, reverse=True)[: max(1, limit)]

    def clear_user_data(self, user_id: str) -> None:
        with self._lock:
            self._resumes.pop(user_id, None)
            self._matches.pop(user_id, None)
            self._preps.pop(user_id, None)
            self._activity.pop(user_id, None)
