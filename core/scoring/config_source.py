#!/usr/bin/env python3
"""
Scoring Config Source - builds the merged ScoringConfig for a job.

Layering, later wins per field (weights and thresholds merge per key):

    hiring-mode defaults -> plan policy -> tenant overrides -> job overrides

The job is always read through the caller's tenant gateway, so a job id from
another tenant behaves exactly like a missing one.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from core.scoring.config import ScoringConfig, camel_to_snake
from core.scoring.errors import JobNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_MODE = 'exec'
DEFAULT_PLAN = 'free'

DEFAULT_THRESHOLDS = {'a': 80, 'b': 65, 'c': 50}

MODE_DEFAULTS: Dict[str, Dict[str, int]] = {
    'exec': {
        'core_competencies': 30,
        'experience_quality': 25,
        'education': 15,
        'achievements': 20,
        'cultural_fit': 10,
    },
    'volume': {
        'core_competencies': 40,
        'experience_quality': 30,
        'education': 10,
        'achievements': 10,
        'cultural_fit': 10,
    },
    'hybrid': {
        'core_competencies': 35,
        'experience_quality': 25,
        'education': 10,
        'achievements': 15,
        'cultural_fit': 15,
    },
}

PLAN_POLICIES = {
    'free': 'soft',
    'pro': 'strict',
    'enterprise': 'strict',
}

_THRESHOLD_KEYS = {
    'a': 'a', 'A': 'a', 'tierA': 'a', 'tier_a': 'a',
    'b': 'b', 'B': 'b', 'tierB': 'b', 'tier_b': 'b',
    'c': 'c', 'C': 'c', 'tierC': 'c', 'tier_c': 'c',
}


def normalize_mode(raw: Optional[str], default: str = DEFAULT_MODE) -> str:
    value = (raw or '').strip().lower()
    if value in MODE_DEFAULTS:
        return value
    return default if default in MODE_DEFAULTS else DEFAULT_MODE


def normalize_plan(raw: Optional[str]) -> str:
    value = (raw or '').strip().lower()
    return value if value in PLAN_POLICIES else DEFAULT_PLAN


def normalize_overrides(raw: Any) -> Dict[str, Any]:
    """
    Flatten a stored override blob into {weights, thresholds, must_have_policy, anonymize}.

    Accepts the camelCase shape written by the settings API as well as the
    older nested one ({"skills": {"treatMissingMustHaveAsRedFlag": true},
    "bias": {"anonymizeForScoring": false}, "strictMustHaveSkills": true}).
    Anything that is not a mapping counts as no overrides.
    """
    if not isinstance(raw, Mapping):
        return {}

    result: Dict[str, Any] = {}

    weights = raw.get('weights')
    if isinstance(weights, Mapping):
        result['weights'] = {camel_to_snake(str(k)): v for k, v in weights.items()}

    thresholds = raw.get('thresholds')
    if isinstance(thresholds, Mapping):
        result['thresholds'] = {
            _THRESHOLD_KEYS[k]: v for k, v in thresholds.items() if k in _THRESHOLD_KEYS
        }

    skills = raw.get('skills')
    if isinstance(skills, Mapping) and 'treatMissingMustHaveAsRedFlag' in skills:
        result['must_have_policy'] = 'strict' if skills['treatMissingMustHaveAsRedFlag'] else 'soft'
    if 'strictMustHaveSkills' in raw:
        result['must_have_policy'] = 'strict' if raw['strictMustHaveSkills'] else 'soft'
    for key in ('mustHavePolicy', 'must_have_policy'):
        if key in raw:
            result['must_have_policy'] = raw[key]

    bias = raw.get('bias')
    if isinstance(bias, Mapping) and 'anonymizeForScoring' in bias:
        result['anonymize'] = bias['anonymizeForScoring']
    for key in ('anonymizeForScoring', 'anonymize'):
        if key in raw:
            result['anonymize'] = raw[key]

    return result


def _apply(merged: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    if 'weights' in overrides:
        merged['weights'].update(overrides['weights'])
    if 'thresholds' in overrides:
        merged['thresholds'].update(overrides['thresholds'])
    for key in ('must_have_policy', 'anonymize'):
        if key in overrides:
            merged[key] = overrides[key]


def combine_overrides(existing: Any, update: Any) -> Dict[str, Any]:
    """Layer `update` onto `existing` (per key for weights/thresholds), normalized for storage."""
    merged: Dict[str, Any] = {'weights': {}, 'thresholds': {}}
    _apply(merged, normalize_overrides(existing))
    _apply(merged, normalize_overrides(update))
    return {k: v for k, v in merged.items() if v != {}}


def merge_scoring_config(mode: Optional[str] = None, plan: Optional[str] = None,
                         tenant_config: Any = None, job_config: Any = None,
                         default_mode: str = DEFAULT_MODE) -> ScoringConfig:
    """Merge defaults and overrides; an invalid result raises ScoringConfigError."""
    resolved_mode = normalize_mode(mode, default_mode)
    resolved_plan = normalize_plan(plan)

    merged: Dict[str, Any] = {
        'weights': dict(MODE_DEFAULTS[resolved_mode]),
        'thresholds': dict(DEFAULT_THRESHOLDS),
        'must_have_policy': PLAN_POLICIES[resolved_plan],
        'anonymize': True,
        'plan': resolved_plan,
        'hiring_mode': resolved_mode,
    }
    _apply(merged, normalize_overrides(tenant_config))
    _apply(merged, normalize_overrides(job_config))
    return ScoringConfig.from_raw(merged)


@dataclass
class JobScoringConfig:
    job: Any
    tenant: Any
    config: ScoringConfig


def get_scoring_config_for_job(gateway, job_id: str, default_mode: str = DEFAULT_MODE) -> JobScoringConfig:
    """Load the job through `gateway` and merge its effective scoring config."""
    job = gateway.job.find_first(where={'id': job_id})
    if job is None:
        raise JobNotFoundError(job_id)

    tenant = gateway.current_tenant()
    mode = job.hiring_mode or (tenant.hiring_mode if tenant is not None else None)
    config = merge_scoring_config(
        mode=mode,
        plan=tenant.plan if tenant is not None else None,
        tenant_config=tenant.scoring_config if tenant is not None else None,
        job_config=job.scoring_overrides,
        default_mode=default_mode,
    )
    logger.debug("Scoring config for job %s (tenant %s): mode=%s policy=%s",
                 job_id, gateway.tenant_id, config.hiring_mode, config.must_have_policy)
    return JobScoringConfig(job=job, tenant=tenant, config=config)
