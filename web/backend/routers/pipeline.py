#!/usr/bin/env python3
"""
Pipeline endpoints - scored view of a job's applications.
"""

import logging
from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from core.scoring import JobNotFoundError, ScoringService
from database.tenancy import AsyncScopedGateway, ScopedGateway
from ..config import get_config
from ..dependencies import get_async_tenant_gateway, get_tenant_gateway
from ..models.responses import PipelineResponse, ScoreResponse, StageSummaryResponse

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/api/v1/jobs", tags=["pipeline"])


def add_rate_limit_handlers(app):
    """Add rate limit exception handlers to the FastAPI app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": str(exc), "type": "RateLimitExceeded"}
    )


def to_score_response(application, result, anonymize: bool) -> ScoreResponse:
    return ScoreResponse(
        application_id=application.id,
        full_name=None if anonymize else application.full_name,
        stage=application.stage,
        score=result.score,
        tier=result.tier.value,
        rationale=result.rationale,
        category_scores=result.category_scores,
        risk_flags=result.risk_flags,
        red_flags=result.red_flags,
        interview_focus=result.interview_focus,
        matched_skills=result.matched_skills,
        missing_must_haves=result.missing_must_haves,
        hard_capped=result.hard_capped,
    )


@router.get("/{job_id}/pipeline", response_model=PipelineResponse)
def get_job_pipeline(
    job_id: str,
    stage: Optional[str] = Query(default=None, description="Only applications in this stage"),
    gateway: ScopedGateway = Depends(get_tenant_gateway)
):
    """
    Score every application of a job and return them best first.

    Scores are computed on demand from the merged tenant/job scoring config;
    ties are broken by application date, then id. A job of another tenant
    returns 404.
    """
    config = get_config()
    service = ScoringService(gateway, default_mode=config.scoring.default_hiring_mode)
    scored = service.score_pipeline(job_id, stage=stage)

    return PipelineResponse(
        job_id=job_id,
        stage=stage,
        count=len(scored),
        applications=[to_score_response(s.application, s.result, s.anonymized) for s in scored],
    )


@router.get("/{job_id}/pipeline/stages", response_model=StageSummaryResponse)
async def get_job_stage_summary(
    job_id: str,
    gateway: AsyncScopedGateway = Depends(get_async_tenant_gateway)
):
    """
    Count a job's applications per stage, with the average recorded score.

    Runs on the async gateway: every query is bounded by the configured
    timeout (504 when exceeded). A job of another tenant returns 404.
    """
    job = await gateway.job.find_first(where={"id": job_id})
    if job is None:
        raise JobNotFoundError(f"Job {job_id} not found")

    applications = await gateway.application.find_many(where={"job_id": job_id}, order_by="created_at")
    stages = Counter(a.stage for a in applications)
    stats = await gateway.application.aggregate(
        where={"job_id": job_id, "match_score": {"not": None}},
        avg=["match_score"],
        count=True,
    )
    average = stats["avg_match_score"]

    return StageSummaryResponse(
        job_id=job_id,
        total=len(applications),
        stages=dict(stages),
        scored=stats["count"],
        average_score=round(float(average), 1) if average is not None else None,
    )
