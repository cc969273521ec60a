#!/usr/bin/env python3
"""
Scoring Models - plain inputs and outputs of the scoring engine.

The engine never sees ORM rows: the service layer copies what it needs into
these frozen dataclasses so a score is a pure function of its inputs.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Tier(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


@dataclass(frozen=True)
class JobProfile:
    id: str
    title: str
    required_skills: Tuple[str, ...] = ()
    experience_level: Optional[str] = None
    seniority: Optional[str] = None
    min_years_experience: Optional[int] = None
    requires_degree: bool = False
    location: Optional[str] = None
    location_type: Optional[str] = None  # onsite|hybrid|remote


@dataclass(frozen=True)
class CandidateProfile:
    id: str
    full_name: Optional[str] = None
    location: Optional[str] = None
    current_title: Optional[str] = None
    current_company: Optional[str] = None
    years_experience: Optional[int] = None
    education_level: Optional[str] = None
    skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ApplicationProfile:
    id: str
    full_name: Optional[str] = None
    location: Optional[str] = None
    cover_letter: Optional[str] = None
    screening_answers: Optional[Dict[str, Any]] = None
    notice_period: Optional[str] = None


@dataclass
class CategoryScore:
    """Sub-score for one weighted category."""
    name: str
    score: int
    weight: int = 0
    risks: List[str] = field(default_factory=list)
    red_flags: List[str] = field(default_factory=list)

    @property
    def contribution(self) -> float:
        return self.score * self.weight / 100.0


@dataclass
class ScoredResult:
    score: int
    tier: Tier
    rationale: str
    category_scores: Dict[str, int] = field(default_factory=dict)
    risk_flags: List[str] = field(default_factory=list)
    red_flags: List[str] = field(default_factory=list)
    interview_focus: List[str] = field(default_factory=list)
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    missing_must_haves: List[str] = field(default_factory=list)
    hard_capped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['tier'] = self.tier.value
        return data
