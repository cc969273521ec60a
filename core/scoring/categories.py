#!/usr/bin/env python3
"""
Category scorers.

Each weighted category is scored 0-100 by a deterministic heuristic over the
job, candidate and application. Scorers are registered by name so tenant
configs can weight any registered category; the default five are
core_competencies, experience_quality, education, achievements and
cultural_fit.

All heuristics are monotonic: adding a matched skill, more years, a
higher degree or more concrete evidence never lowers a sub-score.
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.scoring.models import ApplicationProfile, CandidateProfile, CategoryScore, JobProfile
from core.scoring.skills import RequiredSkill, match_skills, parse_required_skills

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 70


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


@dataclass
class ScoringContext:
    """Everything a category scorer may look at, derived once per score."""
    job: JobProfile
    candidate: Optional[CandidateProfile]
    application: ApplicationProfile
    anonymize: bool
    required: List[RequiredSkill] = field(default_factory=list)
    matched: List[RequiredSkill] = field(default_factory=list)
    missing: List[RequiredSkill] = field(default_factory=list)
    evidence: str = ""

    @property
    def missing_must_haves(self) -> List[RequiredSkill]:
        return [s for s in self.missing if s.must_have]

    @property
    def candidate_location(self) -> Optional[str]:
        if self.candidate and self.candidate.location:
            return self.candidate.location
        return self.application.location


def screening_text(answers) -> str:
    if not answers:
        return ""
    if isinstance(answers, str):
        return answers
    return json.dumps(answers, sort_keys=True, default=str)


def evidence_text(candidate: Optional[CandidateProfile], application: ApplicationProfile, anonymize: bool) -> str:
    parts = [application.cover_letter or "", screening_text(application.screening_answers)]
    if candidate is not None:
        parts.append(candidate.current_title or "")
        if not anonymize:
            parts.append(candidate.current_company or "")
    return "\n".join(p for p in parts if p)


def build_context(job: JobProfile, candidate: Optional[CandidateProfile],
                  application: ApplicationProfile, anonymize: bool) -> ScoringContext:
    required = parse_required_skills(job.required_skills)
    evidence = evidence_text(candidate, application, anonymize)
    candidate_skills = candidate.skills if candidate is not None else ()
    matched, missing = match_skills(required, candidate_skills, evidence)
    return ScoringContext(
        job=job,
        candidate=candidate,
        application=application,
        anonymize=anonymize,
        required=required,
        matched=matched,
        missing=missing,
        evidence=evidence,
    )


# ----- core competencies -----

def score_core_competencies(ctx: ScoringContext) -> CategoryScore:
    result = CategoryScore(name='core_competencies', score=NEUTRAL_SCORE)
    total = len(ctx.required)
    if total == 0:
        result.risks.append("Job lists no required skills; core competencies not assessed")
        return result

    result.score = round_half_up(30 + 70 * len(ctx.matched) / total)
    if not ctx.matched:
        result.red_flags.append("No overlap with the job's required skills")
    return result


# ----- experience quality -----

_LEVEL_PATTERNS = (
    (4, re.compile(r'\b(head|director|vp|vice president|chief|ceo|cto|cfo|coo|president|executive)\b')),
    (3, re.compile(r'\b(senior|sr|lead|principal|staff|manager)\b')),
    (2, re.compile(r'\b(associate|mid|intermediate)\b')),
    (1, re.compile(r'\b(junior|jr|graduate|entry)\b')),
    (0, re.compile(r'\b(intern|internship|trainee|apprentice)\b')),
)

DEFAULT_LEVEL = 2


def infer_level(text: Optional[str]) -> Optional[int]:
    """Seniority ladder: intern 0, junior 1, mid 2, senior 3, executive 4."""
    if not text or not text.strip():
        return None
    lowered = text.lower()
    for level, pattern in _LEVEL_PATTERNS:
        if pattern.search(lowered):
            return level
    return DEFAULT_LEVEL


def job_level(job: JobProfile) -> Optional[int]:
    for text in (job.experience_level, job.seniority, job.title):
        if text and text.strip():
            lowered = text.lower()
            for level, pattern in _LEVEL_PATTERNS:
                if pattern.search(lowered):
                    return level
    return infer_level(job.title)


def _ladder_score(diff: int) -> int:
    if diff >= 1:
        return 80 + 5 * min(diff, 2)
    if diff == 0:
        return 75
    if diff == -1:
        return 65
    return 50


def _years_score(years: int, minimum: int) -> int:
    ratio = min(years / minimum, 1.0)
    surplus = min(max(years - minimum, 0), 5)
    return round_half_up(50 + 30 * ratio + 2 * surplus)


def score_experience_quality(ctx: ScoringContext) -> CategoryScore:
    result = CategoryScore(name='experience_quality', score=NEUTRAL_SCORE)
    signals = []

    cand_level = infer_level(ctx.candidate.current_title) if ctx.candidate else None
    target = job_level(ctx.job)
    if cand_level is not None and target is not None:
        diff = cand_level - target
        signals.append(_ladder_score(diff))
        if diff <= -2:
            result.risks.append("Current role is well below the seniority of this position")

    years = ctx.candidate.years_experience if ctx.candidate else None
    minimum = ctx.job.min_years_experience
    if years is not None and minimum:
        signals.append(_years_score(max(years, 0), minimum))
        if years < minimum:
            result.risks.append(f"Below minimum years of experience ({years} of {minimum})")

    if not signals:
        result.risks.append("No experience signal available")
        return result

    result.score = round_half_up(sum(signals) / len(signals))
    return result


# ----- education -----

_EDUCATION_LEVELS = (
    ('doctorate', 80, re.compile(r'\b(doctorate|doctoral|phd|ph\.d)\b')),
    ('master', 78, re.compile(r'\b(master|masters|msc|m\.sc|mba|ma)\b')),
    ('bachelor', 75, re.compile(r'\b(bachelor|bachelors|bsc|b\.sc|ba|bs|undergraduate)\b')),
    ('associate', 72, re.compile(r'\b(associate|diploma|hnd)\b')),
    ('secondary', 70, re.compile(r'\b(secondary|high school|gcse|a[- ]levels?)\b')),
)
_DEGREE_MENTION = re.compile(r'\b(degree|bachelor|master|phd|doctorate|mba|bsc|msc|graduated)\b')
_SELF_TAUGHT = re.compile(r'\b(self[- ]taught|bootcamp|self[- ]educated)\b')


def _structured_education(level: Optional[str]):
    if not level:
        return None
    lowered = level.lower()
    for name, score, pattern in _EDUCATION_LEVELS:
        if name in lowered or pattern.search(lowered):
            return name, score
    return None


def score_education(ctx: ScoringContext) -> CategoryScore:
    result = CategoryScore(name='education', score=NEUTRAL_SCORE)
    structured = _structured_education(ctx.candidate.education_level if ctx.candidate else None)
    evidence = ctx.evidence.lower()

    if structured is not None:
        level, result.score = structured
        has_degree = level != 'secondary'
    elif _DEGREE_MENTION.search(evidence):
        result.score = 75
        has_degree = True
    elif _SELF_TAUGHT.search(evidence):
        result.score = 72
        has_degree = False
        result.risks.append("Self-taught; no formal degree indicated")
    else:
        has_degree = False

    if ctx.job.requires_degree and not has_degree:
        result.score = min(result.score, 60)
        result.risks.append("Role requires a degree and none is indicated")
    return result


# ----- achievements -----

_QUANTIFIED = re.compile(
    r'\d+(?:\.\d+)?\s?%|[$€£]\s?\d|\b\d+(?:\.\d+)?\s?(?:k|m|bn|million|billion)\b'
)
_IMPACT_VERBS = re.compile(
    r'\b(increased|reduced|grew|improved|saved|delivered|launched|generated|cut|boosted|doubled|tripled)\b'
)
_LEADERSHIP_VERBS = re.compile(
    r'\b(led|managed|mentored|built|founded|scaled|owned|headed|spearheaded)\b'
)


def score_achievements(ctx: ScoringContext) -> CategoryScore:
    result = CategoryScore(name='achievements', score=55)
    text = ctx.evidence.lower()
    impact = bool(_IMPACT_VERBS.search(text))
    if impact and _QUANTIFIED.search(text):
        result.score = 85
    elif impact or _LEADERSHIP_VERBS.search(text):
        result.score = 70
    else:
        result.risks.append("No concrete achievements evidenced")
    return result


# ----- cultural fit -----

_REMOTE_AFFINITY = re.compile(r'\b(remote|hybrid|distributed|work from home|wfh)\b')
_LONG_NOTICE = re.compile(
    r'\b([3-9]|1[0-2]|three|four|five|six|nine|twelve)\s*(?:\+\s*)?months?\b'
)


def _city(location: Optional[str]) -> str:
    if not location:
        return ""
    return location.split(',')[0].strip().lower()


def score_cultural_fit(ctx: ScoringContext) -> CategoryScore:
    result = CategoryScore(name='cultural_fit', score=NEUTRAL_SCORE)

    job_city = _city(ctx.job.location)
    cand_city = _city(ctx.candidate_location)
    if job_city and cand_city and job_city == cand_city:
        result.score += 5

    if (ctx.job.location_type or '').lower() in ('remote', 'hybrid') and _REMOTE_AFFINITY.search(ctx.evidence.lower()):
        result.score += 5

    notice = (ctx.application.notice_period or '').lower()
    if notice and _LONG_NOTICE.search(notice):
        result.risks.append(f"Long notice period ({ctx.application.notice_period})")
    return result


# ----- registry -----

CategoryScorer = Callable[[ScoringContext], CategoryScore]


@dataclass(frozen=True)
class CategorySpec:
    name: str
    scorer: CategoryScorer
    label: str
    interview_focus: str


CATEGORY_SCORERS: Dict[str, CategorySpec] = {}


def register_category(name: str, scorer: CategoryScorer, label: Optional[str] = None,
                      interview_focus: Optional[str] = None) -> CategorySpec:
    """Register (or replace) a weighted scoring category."""
    spec = CategorySpec(
        name=name,
        scorer=scorer,
        label=label or name.replace('_', ' ').capitalize(),
        interview_focus=interview_focus or f"Probe {name.replace('_', ' ')}",
    )
    CATEGORY_SCORERS[name] = spec
    return spec


register_category('core_competencies', score_core_competencies, 'Core competencies',
                  'Validate hands-on depth in the required skills')
register_category('experience_quality', score_experience_quality, 'Experience quality',
                  'Walk through scope and seniority of recent roles')
register_category('education', score_education, 'Education',
                  'Confirm training or equivalent practical background')
register_category('achievements', score_achievements, 'Achievements',
                  'Ask for measurable outcomes from past work')
register_category('cultural_fit', score_cultural_fit, 'Cultural fit',
                  'Discuss working style, location and availability')

DEFAULT_CATEGORIES = tuple(CATEGORY_SCORERS)


def get_category(name: str) -> Optional[CategorySpec]:
    return CATEGORY_SCORERS.get(name)
