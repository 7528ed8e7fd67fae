from fastapi import FastAPI, HTTPException, Depends, Request, Header, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import List, Optional
from dataclasses import asdict
from datetime import datetime, timezone
import structlog

from core.config import settings
from core.exceptions import (
    ActivationStateError,
    AppError,
    AuthenticationError,
    DataStoreError,
    ForbiddenError,
    NotFoundError,
)
from core.security import verify_session_token
from db.session import get_db, get_redis
from schemas.activation import (
    ActivationStatus,
    ActivationStepOut,
    BankDetails,
    TrainingModuleOut,
    TrainingProgressOut,
    TrainingProgressUpdate,
)
from schemas.analysis import AnalysisRequest
from schemas.profile import DoerOut, DoerProfileUpdate
from schemas.project import DeliverableCreate, DeliverableOut, DoerStats, ProjectOut, ProjectStatusUpdate
from schemas.quiz import QuizAttemptOut, QuizQuestionPublic, QuizSubmissionOut, QuizSubmitRequest
from services import content_analysis
from services.activation_service import ActivationService
from services.profile_service import ProfileService
from services.project_service import ProjectService

logger = structlog.get_logger()

API_DESCRIPTION = """
## AssignX Core API

Trusted backend for the doer and supervisor portals: activation flow,
server-side quiz scoring, project access and content analysis.

### Authentication

Send the session token issued at sign-in in one of:

- `X-Auth-Token: <token>`
- `Authorization: Bearer <token>`

Tokens expire after `TOKEN_TTL_SECONDS`.

### Rate Limits

- Activation quiz: 3 attempts per rolling 60 minutes. Limited submissions
  return `rate_limited: true` with `retry_after_minutes`.
- Content analysis: limited per user per minute (429 when exceeded).
"""

TAGS_METADATA = [
    {"name": "activation", "description": "Doer onboarding: training, quiz, bank details."},
    {"name": "projects", "description": "Project access for doers and supervisors."},
    {"name": "analysis", "description": "AI-text, plagiarism and grammar heuristics."},
    {"name": "profile", "description": "Caller identity and doer profile."},
    {"name": "info", "description": "Public information endpoints."},
]

app = FastAPI(
    title="AssignX Core API",
    description=API_DESCRIPTION,
    version="1.0.0",
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Error mapping ===

ERROR_STATUS = {
    AuthenticationError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ActivationStateError: 409,
    DataStoreError: 500,
}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    # Ownership failures never say which check failed
    if isinstance(exc, ForbiddenError):
        detail = ForbiddenError.message
    elif isinstance(exc, DataStoreError):
        detail = DataStoreError.message
    else:
        detail = exc.detail
    logger.info("Request failed", path=request.url.path, error=type(exc).__name__, detail=exc.detail)
    return JSONResponse(status_code=status_code, content={"detail": detail})


# === Auth ===

def get_caller_id(
    x_auth_token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> Optional[int]:
    """
    Resolve the caller's profile id from the session token.
    Returns None when no valid token is present; guards turn that into 401.
    """
    if x_auth_token:
        profile_id = verify_session_token(x_auth_token)
        if profile_id:
            return profile_id

    if authorization and authorization.lower().startswith("bearer "):
        profile_id = verify_session_token(authorization.split(" ", 1)[1].strip())
        if profile_id:
            return profile_id

    return None


def require_caller_id(caller_id: Optional[int] = Depends(get_caller_id)) -> int:
    if caller_id is None:
        raise AuthenticationError()
    return caller_id


def get_activation_service(db: AsyncSession = Depends(get_db), caller_id: Optional[int] = Depends(get_caller_id)):
    return ActivationService(db, caller_id)


def get_project_service(db: AsyncSession = Depends(get_db), caller_id: Optional[int] = Depends(get_caller_id)):
    return ProjectService(db, caller_id)


def get_profile_service(db: AsyncSession = Depends(get_db), caller_id: Optional[int] = Depends(get_caller_id)):
    return ProfileService(db, caller_id)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# === Response models ===

class MeResponse(BaseModel):
    profile_id: int
    email: str
    full_name: Optional[str] = None
    role: str
    doer_id: Optional[int] = None
    supervisor_id: Optional[int] = None


class ActiveCountResponse(BaseModel):
    doer_id: int
    active_count: int


class HealthResponse(BaseModel):
    status: str = Field(default="ok")
    env: str


# === Profile ===

@app.get("/api/me", response_model=MeResponse, tags=["profile"], summary="Current caller")
async def get_me(service: ProfileService = Depends(get_profile_service)):
    return await service.get_me()


@app.get("/api/doers/{doer_id}", response_model=DoerOut, tags=["profile"])
async def get_doer(doer_id: int, service: ProfileService = Depends(get_profile_service)):
    return await service.get_doer(doer_id)


@app.patch("/api/doers/{doer_id}", response_model=DoerOut, tags=["profile"])
async def update_doer(doer_id: int, update: DoerProfileUpdate, service: ProfileService = Depends(get_profile_service)):
    return await service.update_doer_profile(doer_id, **update.model_dump(exclude_unset=True))


# === Activation ===

@app.get("/api/doers/{doer_id}/activation", response_model=ActivationStatus, tags=["activation"])
async def get_activation(doer_id: int, service: ActivationService = Depends(get_activation_service)):
    activation = await service.get_activation_status(doer_id)
    if activation is None:
        raise HTTPException(status_code=404, detail="Activation record not found")
    return activation


@app.post("/api/doers/{doer_id}/activation", response_model=ActivationStatus, tags=["activation"])
async def create_activation(doer_id: int, service: ActivationService = Depends(get_activation_service)):
    return await service.create_activation(doer_id)


@app.get("/api/doers/{doer_id}/activation/step", response_model=ActivationStepOut, tags=["activation"])
async def get_activation_step(doer_id: int, service: ActivationService = Depends(get_activation_service)):
    step = await service.get_current_step(doer_id)
    return {
        "doer_id": doer_id,
        "current_step": step.value,
        "is_fully_activated": await service.is_fully_activated(doer_id),
    }


@app.get("/api/training/modules", response_model=List[TrainingModuleOut], tags=["activation"])
async def list_training_modules(
    _: int = Depends(require_caller_id),
    service: ActivationService = Depends(get_activation_service),
):
    return await service.get_training_modules()


@app.get("/api/doers/{doer_id}/training", response_model=List[TrainingProgressOut], tags=["activation"])
async def get_training_progress(doer_id: int, service: ActivationService = Depends(get_activation_service)):
    return await service.get_training_progress(doer_id)


@app.put("/api/doers/{doer_id}/training/{module_id}", response_model=TrainingProgressOut, tags=["activation"])
async def update_training_progress(
    doer_id: int,
    module_id: int,
    update: TrainingProgressUpdate,
    service: ActivationService = Depends(get_activation_service),
):
    return await service.update_training_progress(doer_id, module_id, update.status, update.progress_percentage)


@app.post("/api/doers/{doer_id}/training/complete", response_model=ActivationStatus, tags=["activation"])
async def complete_training(doer_id: int, service: ActivationService = Depends(get_activation_service)):
    return await service.complete_training(doer_id)


@app.get(
    "/api/quiz/questions",
    response_model=List[QuizQuestionPublic],
    tags=["activation"],
    summary="Activation quiz questions",
    description="Active quiz questions. The answer key is never included.",
)
async def list_quiz_questions(
    _: int = Depends(require_caller_id),
    service: ActivationService = Depends(get_activation_service),
):
    return await service.get_quiz_questions()


@app.post(
    "/api/doers/{doer_id}/quiz/attempts",
    response_model=QuizSubmissionOut,
    tags=["activation"],
    summary="Submit quiz answers",
    description="Scores the answers on the server. Rate limited to 3 attempts per rolling hour.",
)
async def submit_quiz(
    doer_id: int,
    submission: QuizSubmitRequest,
    service: ActivationService = Depends(get_activation_service),
):
    result = await service.submit_quiz_attempt(doer_id, submission.answers)
    return QuizSubmissionOut.model_validate(result)


@app.get("/api/doers/{doer_id}/quiz/attempts", response_model=List[QuizAttemptOut], tags=["activation"])
async def list_quiz_attempts(doer_id: int, service: ActivationService = Depends(get_activation_service)):
    return await service.get_quiz_attempts(doer_id)


@app.post("/api/doers/{doer_id}/bank-details", response_model=ActivationStatus, tags=["activation"])
async def submit_bank_details(
    doer_id: int,
    details: BankDetails,
    service: ActivationService = Depends(get_activation_service),
):
    return await service.submit_bank_details(doer_id, details)


# === Projects ===

@app.get("/api/doers/{doer_id}/projects", response_model=List[ProjectOut], tags=["projects"])
async def list_doer_projects(
    doer_id: int,
    category: Optional[str] = Query(None, pattern="^(active|review|completed)$"),
    search: Optional[str] = Query(None, max_length=100),
    sort: str = Query("deadline", pattern="^(deadline|doer_payout|created_at|title)$"),
    ascending: bool = True,
    service: ProjectService = Depends(get_project_service),
):
    filters = dict(search=search, sort_field=sort, ascending=ascending)
    if category:
        return await service.get_projects_by_category(doer_id, category, **filters)
    return await service.get_doer_projects(doer_id, **filters)


@app.get("/api/doers/{doer_id}/projects/active-count", response_model=ActiveCountResponse, tags=["projects"])
async def get_active_projects_count(doer_id: int, service: ProjectService = Depends(get_project_service)):
    return {"doer_id": doer_id, "active_count": await service.get_active_projects_count(doer_id)}


@app.get("/api/doers/{doer_id}/stats", response_model=DoerStats, tags=["projects"])
async def get_doer_stats(doer_id: int, service: ProjectService = Depends(get_project_service)):
    return await service.get_doer_stats(doer_id)


@app.get("/api/supervisors/{supervisor_id}/projects", response_model=List[ProjectOut], tags=["projects"])
async def list_supervisor_projects(supervisor_id: int, service: ProjectService = Depends(get_project_service)):
    return await service.get_supervisor_projects(supervisor_id)


@app.get("/api/projects/pool", response_model=List[ProjectOut], tags=["projects"])
async def list_open_pool(
    _: int = Depends(require_caller_id),
    service: ProjectService = Depends(get_project_service),
):
    return await service.get_open_pool_tasks()


@app.get("/api/projects/{project_id}", response_model=ProjectOut, tags=["projects"])
async def get_project(project_id: int, service: ProjectService = Depends(get_project_service)):
    return await service.get_project(project_id)


@app.patch("/api/projects/{project_id}/status", response_model=ProjectOut, tags=["projects"])
async def update_project_status(
    project_id: int,
    update: ProjectStatusUpdate,
    service: ProjectService = Depends(get_project_service),
):
    return await service.update_project_status(project_id, update.status)


class AcceptTaskRequest(BaseModel):
    doer_id: int


@app.post("/api/projects/{project_id}/accept", response_model=ProjectOut, tags=["projects"])
async def accept_project(
    project_id: int,
    request: AcceptTaskRequest,
    service: ProjectService = Depends(get_project_service),
):
    return await service.accept_pool_task(project_id, request.doer_id)


@app.get("/api/projects/{project_id}/deliverables", response_model=List[DeliverableOut], tags=["projects"])
async def list_deliverables(project_id: int, service: ProjectService = Depends(get_project_service)):
    return await service.get_project_deliverables(project_id)


class DeliverableRequest(DeliverableCreate):
    doer_id: int


@app.post("/api/projects/{project_id}/deliverables", response_model=DeliverableOut, tags=["projects"])
async def add_deliverable(
    project_id: int,
    request: DeliverableRequest,
    service: ProjectService = Depends(get_project_service),
):
    return await service.add_deliverable(
        project_id,
        request.doer_id,
        file_name=request.file_name,
        file_url=request.file_url,
        file_type=request.file_type,
        file_size_bytes=request.file_size_bytes,
    )


@app.get("/api/deliverables/{deliverable_id}", response_model=DeliverableOut, tags=["projects"])
async def get_deliverable(deliverable_id: int, service: ProjectService = Depends(get_project_service)):
    return await service.get_deliverable(deliverable_id)


# === Content analysis ===

async def enforce_analysis_rate_limit(caller_id: int = Depends(require_caller_id), redis=Depends(get_redis)) -> int:
    rate_key = f"rl:analysis:{caller_id}"
    current_count = await redis.get(rate_key)
    if current_count and int(current_count) >= settings.ANALYSIS_RATE_LIMIT_PER_MINUTE:
        logger.warning("Analysis rate limit reached", profile_id=caller_id)
        raise HTTPException(status_code=429, detail="Too many analysis requests. Please wait a minute.")

    await redis.incr(rate_key)
    if not current_count:
        await redis.expire(rate_key, 60)
    return caller_id


@app.post("/api/analysis/ai", tags=["analysis"], summary="AI-generated text likelihood")
async def analyze_ai(request: AnalysisRequest, _: int = Depends(enforce_analysis_rate_limit)):
    result = content_analysis.analyze_for_ai(request.content)
    return {**asdict(result), "analysis_timestamp": utc_timestamp()}


@app.post("/api/analysis/plagiarism", tags=["analysis"], summary="Plagiarism pattern check")
async def analyze_plagiarism(request: AnalysisRequest, _: int = Depends(enforce_analysis_rate_limit)):
    result = content_analysis.check_plagiarism(request.content)
    return {**asdict(result), "analysis_timestamp": utc_timestamp()}


@app.post("/api/analysis/grammar", tags=["analysis"], summary="Grammar and style check")
async def analyze_grammar(request: AnalysisRequest, _: int = Depends(enforce_analysis_rate_limit)):
    result = content_analysis.check_grammar(request.content)
    return {**asdict(result), "analysis_timestamp": utc_timestamp()}


# === Info ===

@app.get("/health", response_model=HealthResponse, tags=["info"])
async def health():
    return {"status": "ok", "env": settings.ENV}
