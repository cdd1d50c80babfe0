"""Export the matches of one discovery run as a JSON snapshot."""
from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from careerai.config import DATA_DIR
from careerai.log import get_logger
from careerai.models import JobMatch, ResumeRecord, utc_now

log = get_logger(__name__)

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def _safe_name(user_id: str) -> str:
    return _UNSAFE_RE.sub("_", user_id).strip("._") or "user"


def build_jobs_snapshot(
    user_id: str,
    resume: ResumeRecord | None,
    matches: list[JobMatch],
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    generated = now or utc_now()
    profile = resume.analysis.profile() if resume else None
    jobs: list[dict[str, Any]] = []
    for m in matches:
        row = m.job.to_dict()
        row.pop("id")
        jobs.append(
            {
                "id": m.id,
                "jobId": m.job.id,
                **row,
                "matchScore": m.match_score,
                "matchReasons": list(m.match_reasons),
                "status": m.status.value,
                "createdAt": m.created_at.isoformat(),
            }
        )
    return {
        "userId": user_id,
        "generatedAt": generated.isoformat(),
        "resumeFileName": resume.file_name if resume else None,
        "userProfile": {
            "skills": profile.skills if profile else [],
            "yearsOfExperience": profile.years_of_experience if profile else 0,
            "proficiencyLevel": profile.proficiency_level if profile else "",
        },
        "totalJobs": len(jobs),
        "jobs": jobs,
    }


def write_jobs_snapshot(
    user_id: str,
    resume: ResumeRecord | None,
    matches: list[JobMatch],
    data_dir: Path | str | None = None,
) -> Path:
    now = utc_now()
    snapshot = build_jobs_snapshot(user_id, resume, matches, now=now)
    out_dir = Path(data_dir or DATA_DIR) / _safe_name(user_id)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"jobs-{now.strftime('%Y%m%dT%H%M%S%f')}.json"
    path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
    log.info("Jobs snapshot written → %s", path)
    return path
