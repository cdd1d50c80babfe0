"""Extract structured profile data from an uploaded resume.

Supports PDF (via pdftotext or pypdf), DOCX (via stdlib zipfile), and TXT.
If a Gemini API key is configured the cleaned text is sent to the LLM for
structured extraction; otherwise a heuristic regex parser is used.
"""
from __future__ import annotations

import io
import re
import shutil
import subprocess
import zipfile
from pathlib import PurePath
from typing import Any
from xml.etree import ElementTree

from pypdf import PdfReader

from careerai.llm import LlmClient, parse_json
from careerai.log import get_logger
from careerai.models import ResumeAnalysis

log = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")
MIN_RESUME_LENGTH = 50


class ResumeParseError(ValueError):
    """The upload could not be turned into a resume analysis."""


# ── Text extraction ──────────────────────────────────────────────────────


def extract_text(data: bytes, file_name: str) -> str:
    """Return plain text from the bytes of a PDF, DOCX, or TXT upload."""
    if not data:
        raise ResumeParseError("Invalid or empty file")
    suffix = PurePath(file_name).suffix.lower()
    if suffix == ".txt":
        return data.decode("utf-8", errors="ignore")
    if suffix == ".docx":
        return _extract_docx(data)
    if suffix == ".pdf":
        return _extract_pdf(data)
    raise ResumeParseError(f"Unsupported resume format: {suffix or file_name}")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together.

    Detects the problem by checking if the space-to-character ratio is
    abnormally low, then applies heuristic space insertion.
    """
    if not text or len(text) < 50:
        return text
    space_ratio = text.count(" ") / len(text)
    if space_ratio > 0.08:
        return text

    log.debug("Low space ratio (%.2f%%), applying spacing fix", space_ratio * 100)
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([a-zA-Z])(\d)", r"\1 \2", fixed)
    fixed = re.sub(r"(\d)([a-zA-Z])", r"\1 \2", fixed)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(data: bytes) -> str:
    # Prefer pdftotext (better spacing) over pypdf
    if shutil.which("pdftotext"):
        try:
            result = subprocess.run(
                ["pdftotext", "-layout", "-", "-"],
                input=data,
                capture_output=True,
                timeout=30,
            )
            text = result.stdout.decode("utf-8", errors="ignore")
            if result.returncode == 0 and text.strip():
                return text
        except (OSError, subprocess.SubprocessError) as exc:
            log.debug("pdftotext failed (%s), using pypdf", exc)

    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            raise ResumeParseError("PDF is password protected")
        pages = [_fix_spacing(page.extract_text() or "") for page in reader.pages]
    except ResumeParseError:
        raise
    except Exception as exc:
        raise ResumeParseError(f"Invalid PDF file format: {exc}") from exc

    text = "\n".join(pages)
    if not text.strip():
        raise ResumeParseError("PDF appears to be empty or contains only images")
    log.info("Extracted %d characters from %d PDF page(s)", len(text), len(pages))
    return text


def _extract_docx(data: bytes) -> str:
    """Parse DOCX using only stdlib (zipfile + xml)."""
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: list[str] = []
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            with zf.open("word/document.xml") as f:
                tree = ElementTree.parse(f)
    except (zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
        raise ResumeParseError(f"Invalid DOCX file: {exc}") from exc
    for para in tree.iter(f"{ns}p"):
        parts = [node.text for node in para.iter(f"{ns}t") if node.text]
        if parts:
            texts.append("".join(parts))
    return "\n".join(texts)


def clean_resume_text(text: str) -> str:
    """Collapse whitespace and drop characters a resume never needs."""
    if not text or not text.strip():
        raise ResumeParseError("No text content to clean")

    cleaned = re.sub(r"[ \t]+", " ", text)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    cleaned = re.sub(r"[^\w\s@.,\-()/+#&:;'\"]", "", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()

    if len(cleaned) < MIN_RESUME_LENGTH:
        raise ResumeParseError("Extracted text is too short to be a valid resume")
    log.debug("Cleaned text: %d characters", len(cleaned))
    return cleaned


# ── LLM-based extraction ────────────────────────────────────────────────

_ANALYZE_PROMPT = """\
Analyze the following resume and extract structured information in JSON format.
Extract: name, email, phone, skills (array), experience (array with title, company, duration, description),
education (array with degree, school, year), projects (array with name, description, tech array),
summary, proficiencyLevel (Entry Level/Junior/Mid-Level/Senior/Lead), yearsOfExperience (number).

Resume text:
{resume_text}

Return ONLY valid JSON, no markdown or additional text. Ensure all arrays are properly formatted.
If a field is not found, use empty string for strings, empty array for arrays, or 0 for numbers.
"""


def _llm_analyze(resume_text: str, client: LlmClient) -> ResumeAnalysis:
    try:
        raw = client.complete(_ANALYZE_PROMPT.format(resume_text=resume_text[:12000]), temperature=0.1)
    except Exception as exc:
        raise ResumeParseError(f"Failed to analyze resume: {exc}") from exc
    try:
        data = parse_json(raw, dict)
    except ValueError as exc:
        log.error("Failed to parse AI response as JSON: %s", raw[:200])
        raise ResumeParseError("Failed to parse AI response") from exc
    return ResumeAnalysis.from_dict(data)


# ── Heuristic fallback ──────────────────────────────────────────────────

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"[\+]?\d[\d\s\-().]{7,15}\d")
_YEARS_RE = re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)", re.IGNORECASE)

_COMMON_SKILLS = [
    "Python", "Java", "JavaScript", "TypeScript", "React", "Node.js", "Angular",
    "Vue", "Next.js", "Express", "Django", "Flask", "FastAPI", "Spring",
    "SQL", "NoSQL", "MongoDB", "PostgreSQL", "MySQL", "Redis",
    "Docker", "Kubernetes", "AWS", "GCP", "Azure", "Terraform", "Ansible",
    "Jenkins", "Git", "Linux", "CI/CD", "REST", "GraphQL", "Microservices",
    "HTML", "CSS", "Tailwind", "Swift", "Kotlin", "Flutter", "React Native",
    "C++", "C#", "Rust", "Agile", "Scrum", "Jira",
    "Machine Learning", "Deep Learning", "NLP", "Data Science", "Pandas",
    "TensorFlow", "PyTorch", "Spark", "Hadoop", "Kafka", "Elasticsearch",
    "Figma", "UI/UX", "Communication", "Leadership", "Project Management",
]

_SKILL_RES = [
    (skill, re.compile(r"(?<![\w.+#])" + re.escape(skill.lower()) + r"(?![\w+#])"))
    for skill in _COMMON_SKILLS
]

_TITLE_KEYWORDS = [
    "engineer", "manager", "developer", "analyst", "designer", "consultant",
    "lead", "director", "specialist", "architect", "scientist",
]


def _level_for(years: int) -> str:
    if years >= 7:
        return "Senior"
    if years >= 3:
        return "Mid-Level"
    if years >= 1:
        return "Junior"
    return "Entry Level"


def _heuristic_parse(text: str) -> dict[str, Any]:
    """Best-effort extraction without an LLM."""
    lines = [ln.strip() for ln in text.strip().splitlines() if ln.strip()]
    name = lines[0] if lines else ""
    if len(name) > 60 or _EMAIL_RE.search(name):
        name = ""

    email_match = _EMAIL_RE.search(text)
    phone_match = _PHONE_RE.search(text)

    years = 0
    for m in _YEARS_RE.finditer(text):
        years = max(years, int(m.group(1)))

    low = text.lower()
    skills = [skill for skill, rx in _SKILL_RES if rx.search(low)]

    title = ""
    for line in lines[1:20]:
        if 3 < len(line) < 80 and not _EMAIL_RE.search(line) and not _PHONE_RE.search(line):
            if any(kw in line.lower() for kw in _TITLE_KEYWORDS):
                title = line
                break

    return {
        "name": name,
        "email": email_match.group(0) if email_match else "",
        "phone": phone_match.group(0).strip() if phone_match else "",
        "skills": skills[:20],
        "experience": [],
        "education": [],
        "projects": [],
        "summary": title,
        "proficiencyLevel": _level_for(years),
        "yearsOfExperience": years,
    }


# ── Public API ───────────────────────────────────────────────────────────


def analyze_resume(raw_text: str, client: LlmClient | None = None) -> ResumeAnalysis:
    """Turn extracted resume text into a ResumeAnalysis.

    Uses the LLM when *client* is configured, otherwise the heuristic parser.
    LLM failures raise ResumeParseError rather than degrading silently.
    """
    cleaned = clean_resume_text(raw_text)

    if client is not None and client.configured:
        log.info("Analyzing resume with LLM (%s)", client.model)
        analysis = _llm_analyze(cleaned, client)
    else:
        log.info("Parsing resume with heuristic extractor")
        analysis = ResumeAnalysis.from_dict(_heuristic_parse(raw_text))

    log.info(
        "Resume analysis complete: name=%s, skills=%d, level=%s",
        analysis.name or "?", len(analysis.skills), analysis.proficiency_level,
    )
    return analysis
