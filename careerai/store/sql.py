"""
Relational store on SQLAlchemy.

Any SQLAlchemy URL works; production points DATABASE_URL at Postgres,
tests use SQLite. Tables are created on construction.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from careerai.log import get_logger
from careerai.models import (
    ActivityLogEntry,
    InterviewPrep,
    Job,
    JobMatch,
    MatchStatus,
    ResumeAnalysis,
    ResumeRecord,
    new_id,
    utc_now,
)
from careerai.store.base import DataStore
from careerai.store.tables import ActivityRow, Base, InterviewPrepRow, JobApplicationRow, ResumeRow

log = get_logger(__name__)


def _aware(dt: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; every stored timestamp is UTC."""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _mask_db_url(db_url: str) -> str:
    try:
        return str(make_url(db_url).set(password="***"))
    except Exception:
        return db_url


class SqlStore(DataStore):
    def __init__(self, database_url: str, echo: bool = False) -> None:
        kwargs: dict = {"echo": echo, "pool_pre_ping": True}
        if database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            db_file = make_url(database_url).database
            if not db_file or db_file == ":memory:":
                kwargs["poolclass"] = StaticPool
            else:
                Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(database_url, **kwargs)
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)
        log.info("SqlStore ready (%s)", _mask_db_url(database_url))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── row <-> model ──────────────────────────────────────────────────

    @staticmethod
    def _to_resume(row: ResumeRow) -> ResumeRecord:
        return ResumeRecord(
            id=row.id,
            user_id=row.user_id,
            file_name=row.file_name,
            file_url=row.file_url,
            uploaded_at=_aware(row.created_at),
            analysis=ResumeAnalysis.from_dict(row.analysis or {}),
        )

    @staticmethod
    def _to_match(row: JobApplicationRow) -> JobMatch:
        job = Job(
            id=row.job_id,
            title=row.job_title,
            company=row.company,
            location=row.location,
            description=row.description,
            requirements=list(row.requirements or []),
            salary=row.salary_range,
            type=row.job_type,
            posted=_aware(row.posted_at),
            url=row.job_url,
            source=row.source,
            tags=list(row.tags or []),
        )
        return JobMatch(
            id=row.id,
            user_id=row.user_id,
            job=job,
            match_score=row.match_score,
            match_reasons=list(row.match_reasons or []),
            created_at=_aware(row.created_at),
            status=MatchStatus(row.status),
        )

    @staticmethod
    def _to_prep(row: InterviewPrepRow) -> InterviewPrep:
        return InterviewPrep(
            id=row.id,
            user_id=row.user_id,
            company=row.company,
            role=row.role,
            technologies=list(row.technologies or []),
            material=dict(row.prep_material or {}),
            created_at=_aware(row.created_at),
        )

    # ── resumes ────────────────────────────────────────────────────────

    def save_resume(self, resume: ResumeRecord) -> None:
        with self.session_scope() as s:
            row = s.execute(select(ResumeRow).where(ResumeRow.user_id == resume.user_id)).scalar_one_or_none()
            if row is None:
                row = ResumeRow(id=resume.id, user_id=resume.user_id)
                s.add(row)
            row.id = resume.id
            row.file_name = resume.file_name
            row.file_url = resume.file_url
            row.analysis = resume.analysis.to_dict()
            row.created_at = resume.uploaded_at
            row.updated_at = utc_now()

    def get_resume(self, user_id: str) -> ResumeRecord | None:
        with self.session_scope() as s:
            row = s.execute(select(ResumeRow).where(ResumeRow.user_id == user_id)).scalar_one_or_none()
            return self._to_resume(row) if row else None

    # ── job matches ────────────────────────────────────────────────────

    def save_job_matches(self, user_id: str, matches: list[JobMatch]) -> None:
        log.debug("Inserting %d job applications for %s", len(matches), user_id)
        with self.session_scope() as s:
            s.add_all(
                JobApplicationRow(
                    id=m.id,
                    user_id=user_id,
                    job_id=m.job.id,
                    job_title=m.job.title,
                    company=m.job.company,
                    location=m.job.location,
                    description=m.job.description,
                    requirements=list(m.job.requirements),
                    salary_range=m.job.salary,
                    job_type=m.job.type,
                    job_url=m.job.url,
                    tags=list(m.job.tags),
                    posted_at=m.job.posted,
                    source=m.job.source,
                    match_score=m.match_score,
                    match_reasons=list(m.match_reasons),
                    status=m.status.value,
                    created_at=m.created_at,
                )
                for m in matches
            )

    def get_job_matches(self, user_id: str) -> list[JobMatch]:
        q = (
            select(JobApplicationRow)
            .where(JobApplicationRow.user_id == user_id)
            .order_by(JobApplicationRow.match_score.desc(), JobApplicationRow.row_id)
        )
        with self.session_scope() as s:
            return [self._to_match(r) for r in s.execute(q).scalars()]

    def update_job_status(self, user_id: str, match_id: str, status: MatchStatus) -> bool:
        with self.session_scope() as s:
            row = s.execute(
                select(JobApplicationRow)
                .where(JobApplicationRow.id == match_id)
                .where(JobApplicationRow.user_id == user_id)
            ).scalar_one_or_none()
            if row is None:
                return False
            row.status = status.value
            row.updated_at = utc_now()
            if status is MatchStatus.APPLIED:
                row.applied_at = row.updated_at
            return True

    def count_job_matches(self, user_id: str, status: MatchStatus | None = None) -> int:
        q = select(func.count()).select_from(JobApplicationRow).where(JobApplicationRow.user_id == user_id)
        if status is not None:
            q = q.where(JobApplicationRow.status == status.value)
        with self.session_scope() as s:
            return int(s.execute(q).scalar_one())

    # ── interview preps ────────────────────────────────────────────────

    def save_interview_prep(self, prep: InterviewPrep) -> None:
        with self.session_scope() as s:
            s.add(
                InterviewPrepRow(
                    id=prep.id,
                    user_id=prep.user_id,
                    company=prep.company,
                    role=prep.role,
                    technologies=list(prep.technologies),
                    prep_material=prep.material,
                    created_at=prep.created_at,
                )
            )

    def get_interview_preps(self, user_id: str) -> list[InterviewPrep]:
        q = (
            select(InterviewPrepRow)
            .where(InterviewPrepRow.user_id == user_id)
            .order_by(InterviewPrepRow.created_at.desc(), InterviewPrepRow.row_id.desc())
        )
        with self.session_scope() as s:
            return [self._to_prep(r) for r in s.execute(q).scalars()]

    def get_interview_prep(self, user_id: str, prep_id: str) -> InterviewPrep | None:
        with self.session_scope() as s:
            row = s.execute(
                select(InterviewPrepRow)
                .where(InterviewPrepRow.id == prep_id)
                .where(InterviewPrepRow.user_id == user_id)
            ).scalar_one_or_none()
            return self._to_prep(row) if row else None

    # ── activity ───────────────────────────────────────────────────────

    def add_activity(
        self, user_id: str, action: str, item: str, timestamp: datetime | None = None
    ) -> ActivityLogEntry:
        entry = ActivityLogEntry(id=new_id(), action=action, item=item, timestamp=timestamp or utc_now())
        with self.session_scope() as s:
            s.add(
                ActivityRow(
                    id=entry.id,
                    user_id=user_id,
                    action=entry.action,
                    item=entry.item,
                    timestamp=entry.timestamp,
                )
            )
        return entry

    def get_activity(self, user_id: str, limit: int = 20) -> list[ActivityLogEntry]:
        q = (
            select(ActivityRow)
            .where(ActivityRow.user_id == user_id)
            .order_by(ActivityRow.timestamp.desc(), ActivityRow.row_id.desc())
            .limit(max(1, limit))
        )
        with self.session_scope() as s:
            return [
                ActivityLogEntry(id=r.id, action=r.action, item=r.item, timestamp=_aware(r.timestamp))
                for r in s.execute(q).scalars()
            ]

    def clear_user_data(self, user_id: str) -> None:
        with self.session_scope() as s:
            for table in (ResumeRow, JobApplicationRow, InterviewPrepRow, ActivityRow):
                s.execute(delete(table).where(table.user_id == user_id))
