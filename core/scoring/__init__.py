#!/usr/bin/env python3
"""
Scoring Module - deterministic candidate/application scoring.

Public API:
- compute_application_score: pure scoring function (job, candidate, application, config)
- ScoringConfig / TierThresholds: validated configuration
- merge_scoring_config / get_scoring_config_for_job: config layering
- ScoringService: tenant-scoped scoring of applications and pipelines

Modules:
- models.py: profiles and ScoredResult
- skills.py: required-skill parsing and matching
- categories.py: per-category heuristics and the category registry
- config.py: pydantic config models
- config_source.py: mode/plan defaults and override merging
- engine.py: weighted combination, must-have policy, tiering
- rationale.py: human-readable rationale
- service.py: ScoringService
"""

from core.scoring.errors import ScoringConfigError, JobNotFoundError, ApplicationNotFoundError
from core.scoring.models import (
    Tier, JobProfile, CandidateProfile, ApplicationProfile, CategoryScore, ScoredResult,
)
from core.scoring.categories import register_category, CATEGORY_SCORERS, DEFAULT_CATEGORIES
from core.scoring.config import ScoringConfig, TierThresholds, ensure_valid_config
from core.scoring.config_source import merge_scoring_config, get_scoring_config_for_job, MODE_DEFAULTS
from core.scoring.engine import compute_application_score, tier_for_score
from core.scoring.service import ScoringService, ScoredApplication

__all__ = [
    'ScoringConfigError',
    'JobNotFoundError',
    'ApplicationNotFoundError',
    'Tier',
    'JobProfile',
    'CandidateProfile',
    'ApplicationProfile',
    'CategoryScore',
    'ScoredResult',
    'register_category',
    'CATEGORY_SCORERS',
    'DEFAULT_CATEGORIES',
    'ScoringConfig',
    'TierThresholds',
    'ensure_valid_config',
    'merge_scoring_config',
    'get_scoring_config_for_job',
    'MODE_DEFAULTS',
    'compute_application_score',
    'tier_for_score',
    'ScoringService',
    'ScoredApplication',
]
