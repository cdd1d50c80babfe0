"""Pydantic schemas for LLM payloads and HTTP request bodies."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from careerai.models import MatchStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ── Matcher output ──────────────────────────────────────────────────────


class MatchResult(_CamelModel):
    """One scored job as returned by the reasoning service."""

    job_id: str
    match_score: int = Field(ge=0, le=100)
    match_reasons: List[str]

    @field_validator("job_id", mode="before")
    @classmethod
    def _job_id_to_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("match_score", mode="before")
    @classmethod
    def _round_score(cls, v: Any) -> Any:
        if isinstance(v, float):
            return int(v + 0.5) if v >= 0 else v
        return v

    @field_validator("match_reasons", mode="before")
    @classmethod
    def _single_reason(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v


# ── Interview material ──────────────────────────────────────────────────


class CompanyInsights(_CamelModel):
    culture: str = ""
    tech_stack: List[str] = Field(default_factory=list)
    interview_process: str = ""
    tips: List[str] = Field(default_factory=list)


class TechnicalQuestion(_CamelModel):
    question: str
    difficulty: str = "Medium"
    category: str = ""
    hints: List[str] = Field(default_factory=list)
    answer: str = ""


class BehavioralQuestion(_CamelModel):
    question: str
    category: str = ""
    framework: str = "STAR"
    tips: List[str] = Field(default_factory=list)


class StudyGuideItem(_CamelModel):
    topic: str
    priority: str = "Medium"
    resources: List[str] = Field(default_factory=list)
    time_estimate: str = ""


class InterviewMaterial(_CamelModel):
    company_insights: CompanyInsights = Field(default_factory=CompanyInsights)
    technical_questions: List[TechnicalQuestion] = Field(default_factory=list)
    behavioral_questions: List[BehavioralQuestion] = Field(default_factory=list)
    study_guide: List[StudyGuideItem] = Field(default_factory=list)


# ── HTTP request bodies ─────────────────────────────────────────────────


class DiscoverRequest(_CamelModel):
    user_id: Optional[str] = None
    location: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=50)


class StatusUpdateRequest(_CamelModel):
    user_id: Optional[str] = None
    status: MatchStatus


class InterviewPrepRequest(_CamelModel):
    user_id: Optional[str] = None
    role: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)
