"""Deterministic local job generator, used when SerpAPI is unavailable."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from careerai.log import get_logger
from careerai.models import Job
from careerai.sources.base import JobSearchBase

log = get_logger(__name__)

_TEMPLATES: list[dict] = [
    {
        "title": "Frontend Developer",
        "companies": ["TechCorp", "InnovateLabs", "DigitalWave", "CodeCraft", "WebSolutions"],
        "requirements": ["React", "TypeScript", "CSS", "JavaScript", "HTML"],
        "description": "Build modern web applications using React and TypeScript. "
                       "Work with a talented team to create user-friendly interfaces.",
        "type": "Full-time",
        "salaries": ["$80k-$120k", "$90k-$130k", "$100k-$140k"],
    },
    {
        "title": "Full Stack Engineer",
        "companies": ["StartupXYZ", "CloudTech", "DataFlow", "AppBuilder", "TechVentures"],
        "requirements": ["Node.js", "React", "MongoDB", "Express", "TypeScript"],
        "description": "Design and develop full-stack applications. "
                       "Work on both frontend and backend systems.",
        "type": "Full-time",
        "salaries": ["$100k-$150k", "$110k-$160k", "$120k-$170k"],
    },
    {
        "title": "Backend Developer",
        "companies": ["DataSystems", "APIFirst", "ServerTech", "CloudBase", "MicroServices Inc"],
        "requirements": ["Node.js", "Python", "PostgreSQL", "Docker", "AWS"],
        "description": "Build scalable backend systems and APIs. "
                       "Work with microservices architecture.",
        "type": "Full-time",
        "salaries": ["$90k-$140k", "$100k-$150k", "$110k-$160k"],
    },
    {
        "title": "Software Engineer Intern",
        "companies": ["BigTech Inc", "Innovation Labs", "Tech Academy", "Future Systems", "Code School"],
        "requirements": ["JavaScript", "Python", "Git", "Data Structures", "Algorithms"],
        "description": "Learn and contribute to real-world projects. "
                       "Mentorship from senior engineers.",
        "type": "Internship",
        "salaries": ["$30/hr", "$35/hr", "$40/hr"],
    },
    {
        "title": "React Developer",
        "companies": ["UIExperts", "Frontend Masters", "Component Co", "React Pros", "Modern Web"],
        "requirements": ["React", "Redux", "TypeScript", "Next.js", "Tailwind CSS"],
        "description": "Create beautiful and performant React applications. "
                       "Focus on component architecture.",
        "type": "Full-time",
        "salaries": ["$85k-$125k", "$95k-$135k", "$105k-$145k"],
    },
    {
        "title": "DevOps Engineer",
        "companies": ["CloudOps", "Infrastructure Co", "Deploy Systems", "CI/CD Experts", "AutoScale"],
        "requirements": ["Docker", "Kubernetes", "AWS", "CI/CD", "Linux"],
        "description": "Manage infrastructure and deployment pipelines. "
                       "Ensure system reliability.",
        "type": "Full-time",
        "salaries": ["$100k-$150k", "$110k-$160k", "$120k-$170k"],
    },
    {
        "title": "Mobile Developer",
        "companies": ["AppMakers", "Mobile First", "Native Apps", "Cross Platform", "App Studio"],
        "requirements": ["React Native", "TypeScript", "iOS", "Android", "Mobile UI"],
        "description": "Build cross-platform mobile applications. "
                       "Focus on performance and UX.",
        "type": "Full-time",
        "salaries": ["$90k-$140k", "$100k-$150k", "$110k-$160k"],
    },
    {
        "title": "Data Engineer",
        "companies": ["DataPipe", "Analytics Co", "Big Data Inc", "ETL Systems", "Data Warehouse"],
        "requirements": ["Python", "SQL", "Spark", "Airflow", "AWS"],
        "description": "Build data pipelines and ETL processes. "
                       "Work with large-scale data systems.",
        "type": "Full-time",
        "salaries": ["$100k-$150k", "$110k-$160k", "$120k-$170k"],
    },
]

_OTHER_LOCATIONS: list[str] = ["San Francisco", "New York", "Austin", "Seattle", "Remote"]


def _mock_id(index: int) -> str:
    """Date-based ID so the same posting keeps its id within a day."""
    return f"mock-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}-{index + 1}"


def _overlaps(requirement: str, skills: list[str]) -> bool:
    req = requirement.lower()
    return any(s.lower() in req or req in s.lower() for s in skills if s)


class MockSource(JobSearchBase):
    def search(self, skills: list[str], location: str, limit: int = 20) -> list[Job]:
        now = datetime.now(timezone.utc)
        jobs: list[Job] = []
        for i in range(min(limit, len(_TEMPLATES) * 3)):
            tpl = _TEMPLATES[i % len(_TEMPLATES)]
            rotation = i // len(_TEMPLATES)
            jobs.append(
                Job(
                    id=_mock_id(i),
                    title=tpl["title"],
                    company=tpl["companies"][rotation % len(tpl["companies"])],
                    location=location if i % 2 == 0 else _OTHER_LOCATIONS[(i // 2) % len(_OTHER_LOCATIONS)],
                    description=tpl["description"],
                    requirements=list(tpl["requirements"]),
                    salary=tpl["salaries"][rotation % len(tpl["salaries"])],
                    type=tpl["type"],
                    posted=now - timedelta(days=(i * 7) % 30 + 1),
                    url=f"https://example.com/jobs/{i}",
                    source="CareerAI",
                    tags=list(tpl["requirements"][:3]),
                )
            )

        relevant = [j for j in jobs if any(_overlaps(r, skills) for r in j.requirements)]
        result = relevant or jobs
        log.info("MockSource generated %d sample jobs (%d relevant)", len(jobs), len(relevant))
        return result[:limit]
