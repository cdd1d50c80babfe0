"""HTTP API: thin JSON routes over the discovery, resume, interview and analytics services."""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from careerai.analytics import AnalyticsService
from careerai.config import Settings, load_settings
from careerai.discovery import DiscoveryService, MissingResumeError
from careerai.interview_prep import InterviewPrepError, InterviewPrepService
from careerai.llm import LlmClient
from careerai.log import get_logger
from careerai.matcher import JobMatcher, MatcherError
from careerai.models import RequestError
from careerai.resume_parser import ResumeParseError
from careerai.resumes import ResumeService
from careerai.schemas import DiscoverRequest, InterviewPrepRequest, StatusUpdateRequest
from careerai.sources import JobSearchBase, get_source
from careerai.store import DataStore, get_store

log = get_logger(__name__)

router = APIRouter(prefix="/api")


def _ok(data: Any, **extra: Any) -> dict[str, Any]:
    return {"success": True, "data": data, **extra}


def _services(request: Request):
    return request.app.state


# ── Resume ───────────────────────────────────────────────────────────────


@router.post("/resume/upload")
def upload_resume(
    request: Request,
    file: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID required")
    record = _services(request).resumes.upload(user_id, file.filename or "", file.file.read())
    return _ok(record.to_dict())


@router.get("/resume")
def get_resume(request: Request, user_id: Optional[str] = Query(None, alias="userId")):
    record = _services(request).resumes.get(user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Resume not found")
    return _ok(record.to_dict())


# ── Jobs ─────────────────────────────────────────────────────────────────


@router.post("/jobs/discover")
def discover_jobs(request: Request, body: DiscoverRequest):
    result = _services(request).discovery.discover_jobs(body.user_id, body.location, body.limit)
    payload = [m.to_dict() for m in result.matches]
    if result.message:
        return _ok(payload, message=result.message)
    return _ok(payload)


@router.get("/jobs")
def list_jobs(request: Request, user_id: Optional[str] = Query(None, alias="userId")):
    return _ok([m.to_dict() for m in _services(request).discovery.get_jobs(user_id)])


@router.patch("/jobs/{match_id}")
def update_job_status(request: Request, match_id: str, body: StatusUpdateRequest):
    if not _services(request).discovery.update_job_status(body.user_id, match_id, body.status):
        raise HTTPException(status_code=404, detail="Job match not found")
    return _ok({"id": match_id, "status": body.status.value})


# ── Analytics ────────────────────────────────────────────────────────────


@router.get("/analytics")
def get_analytics(request: Request, user_id: Optional[str] = Query(None, alias="userId")):
    return _ok(_services(request).analytics.get_analytics(user_id).to_dict())


@router.get("/dashboard/stats")
def dashboard_stats(request: Request, user_id: Optional[str] = Query(None, alias="userId")):
    return _ok(_services(request).analytics.dashboard_stats(user_id).to_dict())


@router.get("/activity")
def activity(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(20, ge=1, le=100),
):
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID required")
    entries = _services(request).store.get_activity(user_id, limit)
    return _ok([e.to_dict() for e in entries])


# ── Interview prep ───────────────────────────────────────────────────────


@router.post("/interview/generate")
def generate_interview_prep(request: Request, body: InterviewPrepRequest):
    prep = _services(request).interviews.generate(body.user_id, body.role, body.technologies)
    return _ok(prep.to_dict())


@router.get("/interview/latest")
def latest_interview_prep(request: Request, user_id: Optional[str] = Query(None, alias="userId")):
    prep = _services(request).interviews.latest(user_id)
    return _ok(prep.to_dict() if prep else None)


@router.get("/interview-prep")
def list_interview_preps(request: Request, user_id: Optional[str] = Query(None, alias="userId")):
    return _ok([p.to_dict() for p in _services(request).interviews.history(user_id)])


@router.get("/interview/questions")
def interview_questions(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    category: str = Query("technical"),
    prep_id: Optional[str] = Query(None, alias="prepId"),
):
    return _ok(_services(request).interviews.questions(user_id, category, prep_id))


# ── App factory ──────────────────────────────────────────────────────────


def _error(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app(
    store: DataStore | None = None,
    source: JobSearchBase | None = None,
    matcher: JobMatcher | None = None,
    llm_client: LlmClient | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    if settings is None:
        settings = load_settings()
    if store is None:
        store = get_store(settings)
    if llm_client is None:
        if not settings.has_llm_key:
            log.warning("GEMINI_API_KEY not set: resumes use the heuristic parser and job matching will fail")
        llm_client = LlmClient.from_settings(settings)
    if source is None:
        source = get_source(settings)
    if matcher is None:
        matcher = JobMatcher(llm_client)

    discovery = DiscoveryService(store, source, matcher, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        discovery.shutdown(wait=False)

    application = FastAPI(title="CareerAI", version="0.1.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.settings = settings
    application.state.store = store
    application.state.discovery = discovery
    application.state.resumes = ResumeService(store, llm_client, discovery, settings)
    application.state.interviews = InterviewPrepService(store, llm_client)
    application.state.analytics = AnalyticsService(store)

    application.add_exception_handler(RequestError, _error(400))
    application.add_exception_handler(MissingResumeError, _error(400))
    application.add_exception_handler(ResumeParseError, _error(400))
    application.add_exception_handler(MatcherError, _error(502))
    application.add_exception_handler(InterviewPrepError, _error(502))

    @application.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "search": "serpapi" if settings.has_search_key else "mock",
            "llm": "configured" if llm_client.configured else "missing",
        }

    application.include_router(router)
    return application
