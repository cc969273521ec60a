#!/usr/bin/env python3
"""
Scoring Engine - deterministic 0-100 application score, tier and rationale.

    score = round_half_up(sum(sub_score[c] * weight[c]) / 100), clamped to [0, 100]

Must-have policy:
- strict: any missing must-have caps the final score at min(40, tier_c - 1),
  which always lands in tier D.
- soft: the core competencies sub-score drops by 20 (floor 20) before
  weighting; the tier then follows the thresholds as usual.

Pure function of its inputs: no storage, no clock, no randomness.
"""

import logging
from dataclasses import replace
from typing import Any, List, Optional

from core.scoring.categories import (
    CATEGORY_SCORERS, build_context, clamp, round_half_up,
)
from core.scoring.config import ScoringConfig, TierThresholds, ensure_valid_config
from core.scoring.errors import ScoringConfigError
from core.scoring.models import (
    ApplicationProfile, CandidateProfile, CategoryScore, JobProfile, ScoredResult, Tier,
)
from core.scoring.rationale import build_rationale

logger = logging.getLogger(__name__)

ENGINE_NAME = "heuristic"
ENGINE_VERSION = "1.0"

STRICT_CAP = 40
SOFT_PENALTY = 20
SOFT_FLOOR = 20
# Taken off the final score when core_competencies carries no weight
SOFT_SCORE_PENALTY = 10
FOCUS_THRESHOLD = 70


def tier_for_score(score: int, thresholds: TierThresholds) -> Tier:
    if score >= thresholds.a:
        return Tier.A
    if score >= thresholds.b:
        return Tier.B
    if score >= thresholds.c:
        return Tier.C
    return Tier.D


def strict_cap(thresholds: TierThresholds) -> int:
    return max(0, min(STRICT_CAP, thresholds.c - 1))


def _score_categories(ctx, config: ScoringConfig) -> List[CategoryScore]:
    results = []
    for name, weight in config.weights.items():
        spec = CATEGORY_SCORERS.get(name)
        if spec is None:
            raise ScoringConfigError(f"No scorer registered for category '{name}'")
        outcome = spec.scorer(ctx)
        results.append(replace(outcome, name=name, weight=weight, score=clamp(outcome.score)))
    return results


def compute_application_score(job: JobProfile, candidate: Optional[CandidateProfile],
                              application: ApplicationProfile, config: Any) -> ScoredResult:
    config = ensure_valid_config(config)
    ctx = build_context(job, candidate, application, config.anonymize)
    categories = _score_categories(ctx, config)

    risks: List[str] = []
    red_flags: List[str] = []
    missing_must = ctx.missing_must_haves
    must_names = ', '.join(s.name for s in missing_must)

    soft_score_penalty = 0
    if missing_must and not config.is_strict:
        core_weighted = False
        for i, cat in enumerate(categories):
            if cat.name == 'core_competencies' and cat.weight > 0:
                categories[i] = replace(cat, score=max(SOFT_FLOOR, cat.score - SOFT_PENALTY))
                core_weighted = True
        if not core_weighted:
            soft_score_penalty = SOFT_SCORE_PENALTY
        risks.append(f"Missing must-have skills: {must_names}")

    for cat in categories:
        risks.extend(cat.risks)
        red_flags.extend(cat.red_flags)

    raw = sum(cat.score * cat.weight for cat in categories) / 100.0
    score = clamp(round_half_up(raw) - soft_score_penalty)

    hard_capped = False
    if missing_must and config.is_strict:
        score = min(score, strict_cap(config.thresholds))
        hard_capped = True
        red_flags.insert(0, f"Missing must-have skills: {must_names}")

    tier = tier_for_score(score, config.thresholds)

    interview_focus = [
        CATEGORY_SCORERS[cat.name].interview_focus
        for cat in categories if cat.weight > 0 and cat.score < FOCUS_THRESHOLD
    ]
    if missing_must:
        interview_focus.insert(0, f"Verify experience with {must_names}")

    candidate_name = None
    if not config.anonymize:
        candidate_name = (candidate.full_name if candidate and candidate.full_name else application.full_name)

    rationale = build_rationale(
        score, tier, categories, ctx.matched, ctx.missing, risks, red_flags, interview_focus,
        candidate_name=candidate_name, hard_capped=hard_capped,
    )

    result = ScoredResult(
        score=score,
        tier=tier,
        rationale=rationale,
        category_scores={cat.name: cat.score for cat in categories},
        risk_flags=risks,
        red_flags=red_flags,
        interview_focus=interview_focus,
        matched_skills=[s.name for s in ctx.matched],
        missing_skills=[s.name for s in ctx.missing],
        missing_must_haves=[s.name for s in missing_must],
        hard_capped=hard_capped,
    )
    logger.debug("Scored application %s for job %s: %d (%s)", application.id, job.id, score, tier.value)
    return result
