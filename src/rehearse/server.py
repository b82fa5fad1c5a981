import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rehearse.application.service import ReviewService
from rehearse.consts import VERSION
from rehearse.domain.errors import (
    DuplicateActivePlan,
    InvalidPostpone,
    InvalidScore,
    NotSkippable,
    PlanNotActive,
    SchedulerError,
    StorageError,
    UnknownEntity,
)
from rehearse.domain.models import Problem, ReviewPlan, ReviewStatistics

logger = logging.getLogger("rehearse.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    from rehearse.application.config import resolve_config
    from rehearse.application.factory import build_review_service

    logger.info(f"Rehearse Server v{VERSION} starting up...")
    app.state.service = build_review_service(resolve_config())
    yield
    # Shutdown
    logger.info("Rehearse Server shutting down...")


app = FastAPI(
    title="Rehearse Server",
    description="Review scheduling API for the practice-problem tracker UI.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


def get_service(request: Request) -> ReviewService:
    return request.app.state.service


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ProblemCreate(BaseModel):
    title: str
    source: str | None = None
    tags: list[str] = []


class CompleteRequest(BaseModel):
    score: int
    confidence: int = 3
    time_spent: float = 0.0


class PostponeRequest(BaseModel):
    days: int


class PlanOut(BaseModel):
    id: str
    problem_id: str
    scheduled_at: datetime
    status: str
    level: int
    score: int | None = None
    confidence: int | None = None
    completed_at: datetime | None = None
    time_spent: float = 0.0

    @classmethod
    def from_plan(cls, plan: ReviewPlan) -> "PlanOut":
        return cls(
            id=plan.id,
            problem_id=plan.problem_id,
            scheduled_at=plan.scheduled_at,
            status=plan.status.value,
            level=plan.level,
            score=plan.score,
            confidence=plan.confidence,
            completed_at=plan.completed_at,
            time_spent=plan.time_spent,
        )


class ProblemOut(BaseModel):
    id: str
    title: str
    source: str | None
    tags: list[str]
    mastery: int
    average_score: float
    total_reviews: int
    streak_count: int
    last_practiced_at: datetime | None

    @classmethod
    def from_problem(cls, problem: Problem) -> "ProblemOut":
        return cls(
            id=problem.id,
            title=problem.title,
            source=problem.source,
            tags=problem.tags,
            mastery=problem.mastery,
            average_score=problem.average_score,
            total_reviews=problem.total_reviews,
            streak_count=problem.streak_count,
            last_practiced_at=problem.last_practiced_at,
        )


class ProblemCreated(BaseModel):
    problem: ProblemOut
    plan: PlanOut


class StatisticsOut(BaseModel):
    total_reviews: int
    average_score: float
    completion_rate: float
    average_interval_days: float
    current_streak: int
    reviews_this_week: int
    reviews_this_month: int

    @classmethod
    def from_stats(cls, stats: ReviewStatistics) -> "StatisticsOut":
        return cls(**stats.__dict__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: list[tuple[type[SchedulerError], int]] = [
    (UnknownEntity, 404),
    (InvalidScore, 422),
    (InvalidPostpone, 422),
    (PlanNotActive, 409),
    (NotSkippable, 409),
    (DuplicateActivePlan, 409),
    (StorageError, 503),
]


@app.exception_handler(SchedulerError)
async def scheduler_error_handler(request: Request, exc: SchedulerError):
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)), 400
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/problems", response_model=ProblemCreated, status_code=201)
def create_problem(req: ProblemCreate, service: ReviewService = Depends(get_service)):
    problem, plan = service.add_problem(req.title, source=req.source, tags=req.tags)
    return ProblemCreated(problem=ProblemOut.from_problem(problem), plan=PlanOut.from_plan(plan))


@app.get("/problems/{problem_id}", response_model=ProblemOut)
def read_problem(problem_id: str, service: ReviewService = Depends(get_service)):
    return ProblemOut.from_problem(service.get_problem(problem_id))


@app.get("/problems/{problem_id}/statistics", response_model=StatisticsOut | None)
def read_statistics(problem_id: str, service: ReviewService = Depends(get_service)):
    stats = service.statistics(problem_id)
    return StatisticsOut.from_stats(stats) if stats else None


@app.post("/plans/{plan_id}/complete", response_model=PlanOut)
def complete_plan(
    plan_id: str, req: CompleteRequest, service: ReviewService = Depends(get_service)
):
    plan = service.get_plan(plan_id)
    successor = service.complete(
        plan, req.score, confidence=req.confidence, time_spent=req.time_spent
    )
    return PlanOut.from_plan(successor)


@app.post("/plans/{plan_id}/skip", response_model=PlanOut)
def skip_plan(plan_id: str, service: ReviewService = Depends(get_service)):
    plan = service.skip(service.get_plan(plan_id))
    return PlanOut.from_plan(plan)


@app.post("/plans/{plan_id}/postpone", response_model=PlanOut)
def postpone_plan(
    plan_id: str, req: PostponeRequest, service: ReviewService = Depends(get_service)
):
    plan = service.postpone(service.get_plan(plan_id), req.days)
    return PlanOut.from_plan(plan)


@app.get("/reviews/{view}", response_model=list[PlanOut])
def list_reviews(
    view: Literal["due", "today", "overdue", "week"],
    as_of: datetime | None = None,
    service: ReviewService = Depends(get_service),
):
    queries = {
        "due": service.due,
        "today": service.today,
        "overdue": service.overdue,
        "week": service.this_week,
    }
    return [PlanOut.from_plan(p) for p in queries[view](as_of)]


@app.post("/cache/invalidate", status_code=204)
def invalidate_cache(service: ReviewService = Depends(get_service)):
    service.invalidate_cache()
