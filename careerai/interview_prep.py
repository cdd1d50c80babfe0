"""Generate and serve interview preparation material for a role."""
from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from careerai.llm import LlmClient, parse_json
from careerai.log import get_logger
from careerai.models import InterviewPrep, RequestError
from careerai.schemas import InterviewMaterial
from careerai.store.base import DataStore

log = get_logger(__name__)

MAX_QUESTIONS = 5


class InterviewPrepError(RuntimeError):
    """The reasoning service could not produce usable interview material."""


_PREP_PROMPT = """\
Generate comprehensive interview preparation material for:
Role: {role}
Technologies: {technologies}

This should be GENERAL interview prep for this role type, NOT company-specific.

Return a JSON object with:
1. companyInsights: {{
   culture: "General overview of what this role typically involves",
   techStack: array of key technologies for this role,
   interviewProcess: "Typical interview process for this role",
   tips: array of general preparation tips
}}
2. technicalQuestions: array of {{ question, difficulty (Easy/Medium/Hard), category, hints (array), answer }}
3. behavioralQuestions: array of {{ question, category, framework (STAR), tips (array) }}
4. studyGuide: array of {{ topic, priority (High/Medium/Low), resources (array of resource names/links), timeEstimate }}

Generate 8-10 technical questions, 5-6 behavioral questions, and 6-8 study guide items.
Make questions specific to the role and technologies mentioned.
Focus on general industry best practices, not company-specific information.

Return ONLY valid JSON, no markdown or additional text.
"""

# Served when no stored prep has questions for the requested category.
DEFAULT_QUESTIONS: dict[str, list[dict[str, str]]] = {
    "technical": [
        {"id": "1", "question": "Can you explain the difference between var, let, and const in JavaScript?"},
        {"id": "2", "question": "What is the virtual DOM and how does React use it?"},
        {"id": "3", "question": "Explain the concept of closures in JavaScript with an example."},
        {"id": "4", "question": "What are the main differences between SQL and NoSQL databases?"},
        {"id": "5", "question": "How would you optimize the performance of a web application?"},
    ],
    "behavioral": [
        {"id": "6", "question": "Tell me about a time when you had to work under pressure to meet a deadline."},
        {"id": "7", "question": "Describe a situation where you had to resolve a conflict with a team member."},
        {"id": "8", "question": "Can you share an example of a project where you took initiative?"},
        {"id": "9", "question": "Tell me about a time when you failed and what you learned from it."},
        {"id": "10", "question": "How do you handle feedback and criticism?"},
    ],
}

_PREP_SECTIONS = {
    "technical": ("technicalQuestions", "tech"),
    "behavioral": ("behavioralQuestions", "behavioral"),
}


def generate_interview_material(role: str, technologies: list[str], client: LlmClient) -> dict[str, Any]:
    """One LLM call; returns the camelCase material dict with all four sections."""
    prompt = _PREP_PROMPT.format(role=role, technologies=", ".join(technologies))
    try:
        raw = client.complete(prompt, max_tokens=8000, temperature=0.4)
        material = InterviewMaterial.model_validate(parse_json(raw, dict))
    except (ValueError, ValidationError) as exc:
        log.error("Unusable interview material for %s: %s", role, exc)
        raise InterviewPrepError("Failed to generate interview material") from exc
    except Exception as exc:
        log.error("Error generating interview prep for %s: %s", role, exc)
        raise InterviewPrepError("Failed to generate interview material") from exc
    return material.model_dump(by_alias=True)


def _questions_from_material(material: dict[str, Any], category: str) -> list[dict[str, str]]:
    if category not in _PREP_SECTIONS:
        return []
    key, prefix = _PREP_SECTIONS[category]
    out: list[dict[str, str]] = []
    for i, q in enumerate(material.get(key) or []):
        if isinstance(q, dict) and q.get("question"):
            out.append({"id": f"{prefix}-{i}", "question": q["question"], "category": category})
    return out


def default_questions(category: str) -> list[dict[str, str]]:
    if category not in DEFAULT_QUESTIONS:
        category = "technical"
    return [{**q, "category": category} for q in DEFAULT_QUESTIONS[category]]


class InterviewPrepService:
    def __init__(self, store: DataStore, client: LlmClient) -> None:
        self.store = store
        self.client = client

    def generate(self, user_id: str | None, role: str | None, technologies: list[str] | None) -> InterviewPrep:
        if not user_id or not role or not technologies:
            raise RequestError("User ID, role, and technologies are required")

        log.info("Generating interview prep for role: %s", role)
        material = generate_interview_material(role, technologies, self.client)
        prep = InterviewPrep(user_id=user_id, role=role, technologies=list(technologies), material=material)
        self.store.save_interview_prep(prep)
        self.store.add_activity(user_id, "Generated interview prep", role)
        return prep

    def history(self, user_id: str | None) -> list[InterviewPrep]:
        """Every stored prep for the user, newest first."""
        if not user_id:
            raise RequestError("User ID required")
        return self.store.get_interview_preps(user_id)

    def latest(self, user_id: str | None) -> InterviewPrep | None:
        preps = self.history(user_id)
        return preps[0] if preps else None

    def questions(
        self, user_id: str | None, category: str | None = None, prep_id: str | None = None
    ) -> list[dict[str, str]]:
        """Up to five practice questions, from a stored prep when one is given."""
        category = (category or "technical").strip().lower()
        if prep_id and user_id:
            prep = self.store.get_interview_prep(user_id, prep_id)
            if prep is not None:
                found = _questions_from_material(prep.material, category)
                if found:
                    return found[:MAX_QUESTIONS]
            else:
                log.info("Interview prep %s not found for %s, using default questions", prep_id, user_id)
        return default_questions(category)[:MAX_QUESTIONS]
