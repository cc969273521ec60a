#!/usr/bin/env python3
"""
Scoring endpoints - tenant/job scoring settings and on-demand scoring.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from core.scoring import ScoringService
from database.tenancy import ScopedGateway
from ..config import get_config
from ..dependencies import get_db, get_tenant_gateway, require_settings_access
from ..models.requests import ScoringSettingsUpdate
from ..models.responses import ScoreResponse, ScoringConfigResponse
from ..services.scoring_settings_service import ScoringSettingsService
from .pipeline import limiter, to_score_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["scoring"])


def _settings_service(db: Session, gateway: ScopedGateway) -> ScoringSettingsService:
    return ScoringSettingsService(db, gateway, default_mode=get_config().scoring.default_hiring_mode)


@router.get("/settings/scoring", response_model=ScoringConfigResponse)
def get_scoring_settings(
    db: Session = Depends(get_db),
    gateway: ScopedGateway = Depends(get_tenant_gateway)
):
    """
    Get the tenant's effective scoring configuration.

    Hiring-mode defaults and plan policy merged with the tenant's saved
    overrides.
    """
    return _settings_service(db, gateway).get_tenant_config()


@router.put("/settings/scoring", response_model=ScoringConfigResponse)
def update_scoring_settings(
    update: ScoringSettingsUpdate,
    _: str = Depends(require_settings_access),
    db: Session = Depends(get_db),
    gateway: ScopedGateway = Depends(get_tenant_gateway)
):
    """
    Save tenant scoring overrides.

    - weights: per-category integers; merged weights must sum to exactly 100
    - thresholds: tierA >= tierB >= tierC, each 1-100
    - mustHavePolicy: strict (cap to tier D) or soft (penalise)

    Invalid settings return 400 and nothing is saved.
    """
    return _settings_service(db, gateway).update_tenant_settings(update)


@router.get("/jobs/{job_id}/scoring", response_model=ScoringConfigResponse)
def get_job_scoring_settings(
    job_id: str,
    db: Session = Depends(get_db),
    gateway: ScopedGateway = Depends(get_tenant_gateway)
):
    """Effective scoring configuration for one job."""
    return _settings_service(db, gateway).get_job_config(job_id)


@router.put("/jobs/{job_id}/scoring", response_model=ScoringConfigResponse)
def update_job_scoring_settings(
    job_id: str,
    update: ScoringSettingsUpdate,
    _: str = Depends(require_settings_access),
    db: Session = Depends(get_db),
    gateway: ScopedGateway = Depends(get_tenant_gateway)
):
    """Save job-level scoring overrides, layered over the tenant's."""
    return _settings_service(db, gateway).update_job_settings(job_id, update)


@router.post("/applications/{application_id}/score", response_model=ScoreResponse)
@limiter.limit("60/minute")
def score_application(
    request: Request,
    application_id: str,
    db: Session = Depends(get_db),
    gateway: ScopedGateway = Depends(get_tenant_gateway)
):
    """
    Score an application now and record the result.

    Stores match_score/match_reason on the application and appends a
    scoring event for audit.
    """
    config = get_config()
    service = ScoringService(
        gateway,
        default_mode=config.scoring.default_hiring_mode,
        engine_version=config.scoring.engine_version,
    )
    scored = service.score_and_record(application_id)
    db.commit()
    return to_score_response(scored.application, scored.result, scored.anonymized)
