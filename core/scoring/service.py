#!/usr/bin/env python3
"""
Scoring Service - scores applications loaded through a tenant gateway.

The engine itself is pure; this layer does the tenant-scoped reads (job,
merged config, applications, candidates and their skills), converts rows to
profiles, and optionally records the result back on the application along
with a ScoringEvent audit row. It never commits: the caller owns the
transaction.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import selectinload

from database.models import CandidateSkill, JobSkill
from core.scoring.config_source import DEFAULT_MODE, JobScoringConfig, get_scoring_config_for_job
from core.scoring.engine import ENGINE_NAME, ENGINE_VERSION, compute_application_score
from core.scoring.errors import ApplicationNotFoundError
from core.scoring.models import ApplicationProfile, CandidateProfile, JobProfile, ScoredResult

logger = logging.getLogger(__name__)


@dataclass
class ScoredApplication:
    application: Any
    result: ScoredResult
    anonymized: bool = True


def job_profile(job, extra_skills: Iterable[str] = ()) -> JobProfile:
    required = [s for s in (job.required_skills or []) if isinstance(s, str)]
    required.extend(extra_skills)
    return JobProfile(
        id=job.id,
        title=job.title or "",
        required_skills=tuple(required),
        experience_level=job.experience_level,
        seniority=job.seniority,
        min_years_experience=job.min_years_experience,
        requires_degree=bool(job.requires_degree),
        location=job.location,
        location_type=job.location_type,
    )


def candidate_profile(candidate, skills: Iterable[str] = ()) -> Optional[CandidateProfile]:
    if candidate is None:
        return None
    return CandidateProfile(
        id=candidate.id,
        full_name=candidate.full_name,
        location=candidate.location,
        current_title=candidate.current_title,
        current_company=candidate.current_company,
        years_experience=candidate.years_experience,
        education_level=candidate.education_level,
        skills=tuple(skills),
    )


def application_profile(application) -> ApplicationProfile:
    answers = application.screening_answers
    return ApplicationProfile(
        id=application.id,
        full_name=application.full_name,
        location=application.location,
        cover_letter=application.cover_letter,
        screening_answers=answers if isinstance(answers, dict) else None,
        notice_period=application.notice_period,
    )


def _sort_key(item: ScoredApplication):
    created = item.application.created_at
    return (
        -item.result.score,
        created.timestamp() if created is not None else float('inf'),
        item.application.id,
    )


class ScoringService:
    def __init__(self, gateway, default_mode: str = DEFAULT_MODE, engine_version: str = ENGINE_VERSION):
        self.gateway = gateway
        self.default_mode = default_mode
        self.engine_version = engine_version

    # ----- loading -----

    def _load_application(self, application_id: str):
        application = self.gateway.application.find_first(where={'id': application_id})
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    def _job_config(self, job_id: str) -> JobScoringConfig:
        return get_scoring_config_for_job(self.gateway, job_id, default_mode=self.default_mode)

    def _structured_job_skills(self, job_id: str) -> List[str]:
        rows = self.gateway.job_skill.find_many(
            where={'job_id': job_id}, options=(selectinload(JobSkill.skill),)
        )
        return [("!" if row.is_must_have else "") + row.skill.name for row in rows if row.skill is not None]

    def _candidates_with_skills(self, candidate_ids: List[str]) -> Dict[str, CandidateProfile]:
        """Batch-load candidates and their skill names (one query each)."""
        if not candidate_ids:
            return {}
        candidates = self.gateway.candidate.find_many(where={'id': candidate_ids})
        links = self.gateway.candidate_skill.find_many(
            where={'candidate_id': candidate_ids}, options=(selectinload(CandidateSkill.skill),)
        )
        skills_by_candidate: Dict[str, List[str]] = {}
        for link in links:
            if link.skill is not None:
                skills_by_candidate.setdefault(link.candidate_id, []).append(link.skill.name)
        return {
            c.id: candidate_profile(c, sorted(skills_by_candidate.get(c.id, [])))
            for c in candidates
        }

    def _score(self, job_config: JobScoringConfig, job: JobProfile, application,
               candidates: Dict[str, CandidateProfile]) -> ScoredResult:
        candidate = candidates.get(application.candidate_id) if application.candidate_id else None
        return compute_application_score(job, candidate, application_profile(application), job_config.config)

    # ----- public API -----

    def _score_one(self, application_id: str):
        application = self._load_application(application_id)
        job_config = self._job_config(application.job_id)
        job = job_profile(job_config.job, self._structured_job_skills(application.job_id))
        candidates = self._candidates_with_skills([application.candidate_id] if application.candidate_id else [])
        return application, job_config, job, self._score(job_config, job, application, candidates)

    def score_application(self, application_id: str) -> ScoredResult:
        return self._score_one(application_id)[3]

    def score_pipeline(self, job_id: str, stage: Optional[str] = None) -> List[ScoredApplication]:
        """Score every application of a job, best first (ties: oldest, then id)."""
        job_config = self._job_config(job_id)
        job = job_profile(job_config.job, self._structured_job_skills(job_id))

        where: Dict[str, Any] = {'job_id': job_id}
        if stage is not None:
            where['stage'] = stage
        applications = self.gateway.application.find_many(where=where)

        candidate_ids = sorted({a.candidate_id for a in applications if a.candidate_id})
        candidates = self._candidates_with_skills(candidate_ids)

        scored = [
            ScoredApplication(
                application=a,
                result=self._score(job_config, job, a, candidates),
                anonymized=job_config.config.anonymize,
            )
            for a in applications
        ]
        scored.sort(key=_sort_key)
        logger.debug("Scored pipeline for job %s: %d applications", job_id, len(scored))
        return scored

    def score_and_record(self, application_id: str, engine_version: Optional[str] = None) -> ScoredApplication:
        """Score, store match_score/match_reason and write a ScoringEvent. Caller commits."""
        application, job_config, job, result = self._score_one(application_id)

        self.gateway.application.update_many(
            where={'id': application.id},
            values={'match_score': result.score, 'match_reason': result.rationale},
        )
        config = job_config.config
        self.gateway.scoring_event.create(
            job_id=application.job_id,
            application_id=application.id,
            engine=ENGINE_NAME,
            engine_version=engine_version or self.engine_version,
            mode=config.hiring_mode,
            score=result.score,
            tier=result.tier.value,
            config_snapshot=config.model_dump(),
            input_summary={
                'required_skills': len(job.required_skills),
                'matched_skills': result.matched_skills,
                'missing_must_haves': result.missing_must_haves,
                'category_scores': result.category_scores,
                'has_candidate': application.candidate_id is not None,
                'anonymized': config.anonymize,
            },
            reason=result.rationale,
            risks=result.risk_flags,
            red_flags=result.red_flags,
        )
        logger.info("Recorded score %d (%s) for application %s", result.score, result.tier.value, application.id)
        return ScoredApplication(application=application, result=result, anonymized=config.anonymize)
