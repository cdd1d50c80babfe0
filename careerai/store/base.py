from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from careerai.models import (
    ActivityLogEntry,
    InterviewPrep,
    JobMatch,
    MatchStatus,
    ResumeRecord,
)


class DataStore(ABC):
    """Per-user persistence for resumes, job matches, interview preps and activity."""

    # resumes

    @abstractmethod
    def save_resume(self, resume: ResumeRecord) -> None:
        """Insert or replace the single resume of ``resume.user_id``."""

    @abstractmethod
    def get_resume(self, user_id: str) -> ResumeRecord | None:
        pass

    # job matches

    @abstractmethod
    def save_job_matches(self, user_id: str, matches: list[JobMatch]) -> None:
        """Append *matches*; existing rows are never replaced or deduplicated."""

    @abstractmethod
    def get_job_matches(self, user_id: str) -> list[JobMatch]:
        """All matches for the user, highest score first."""

    @abstractmethod
    def update_job_status(self, user_id: str, match_id: str, status: MatchStatus) -> bool:
        """Set the status of one match. Returns False if it does not exist."""

    @abstractmethod
    def count_job_matches(self, user_id: str, status: MatchStatus | None = None) -> int:
        pass

    # interview preps

    @abstractmethod
    def save_interview_prep(self, prep: InterviewPrep) -> None:
        pass

    @abstractmethod
    def get_interview_preps(self, user_id: str) -> list[InterviewPrep]:
        """Newest first."""

    def get_interview_prep(self, user_id: str, prep_id: str) -> InterviewPrep | None:
        for prep in self.get_interview_preps(user_id):
            if prep.id == prep_id:
                return prep
        return None

    # activity log

    @abstractmethod
    def add_activity(
        self, user_id: str, action: str, item: str, timestamp: datetime | None = None
    ) -> ActivityLogEntry:
        pass

    @abstractmethod
    def get_activity(self, user_id: str, limit: int = 20) -> list[ActivityLogEntry]:
        """Newest first; entries with equal timestamps keep reverse insertion order."""

    @abstractmethod
    def clear_user_data(self, user_id: str) -> None:
        pass
