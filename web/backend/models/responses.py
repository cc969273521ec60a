#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict


class ScoringConfigResponse(BaseModel):
    """Effective (merged) scoring configuration."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tenant_id": "2f6c0d9e-3c1f-4d7e-9a55-6d1b2f0a9c11",
                "job_id": None,
                "hiring_mode": "exec",
                "plan": "pro",
                "weights": {
                    "core_competencies": 30,
                    "experience_quality": 25,
                    "education": 15,
                    "achievements": 20,
                    "cultural_fit": 10
                },
                "thresholds": {"a": 80, "b": 65, "c": 50},
                "must_have_policy": "strict",
                "anonymize": True
            }
        }
    )

    tenant_id: str
    job_id: Optional[str] = None
    hiring_mode: Optional[str]
    plan: Optional[str]
    weights: Dict[str, int]
    thresholds: Dict[str, int]
    must_have_policy: str
    anonymize: bool


class ScoreResponse(BaseModel):
    """One scored application."""
    application_id: str
    full_name: Optional[str] = None
    stage: Optional[str] = None
    score: int = Field(ge=0, le=100)
    tier: str
    rationale: str
    category_scores: Dict[str, int] = Field(default_factory=dict)
    risk_flags: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    interview_focus: List[str] = Field(default_factory=list)
    matched_skills: List[str] = Field(default_factory=list)
    missing_must_haves: List[str] = Field(default_factory=list)
    hard_capped: bool = False


class PipelineResponse(BaseModel):
    """Applications of a job, best score first."""
    success: bool = True
    job_id: str
    stage: Optional[str] = None
    count: int
    applications: List[ScoreResponse]


class StageSummaryResponse(BaseModel):
    """Application counts per stage for one job."""
    success: bool = True
    job_id: str
    total: int
    stages: Dict[str, int] = Field(default_factory=dict)
    scored: int = 0
    average_score: Optional[float] = None
