"""
Human-readable rationale for a scored application.

Regenerated on every call from the score breakdown; never stored as the
source of truth and never dependent on clock or randomness.
"""

from typing import List, Optional, Sequence

from core.scoring.categories import get_category
from core.scoring.models import CategoryScore, Tier
from core.scoring.skills import RequiredSkill


def _label(name: str) -> str:
    spec = get_category(name)
    return spec.label if spec else name


def _names(skills: Sequence[RequiredSkill]) -> str:
    return ', '.join(s.name for s in skills)


def build_rationale(score: int, tier: Tier, categories: List[CategoryScore],
                    matched: Sequence[RequiredSkill], missing: Sequence[RequiredSkill],
                    risks: Sequence[str], red_flags: Sequence[str], interview_focus: Sequence[str],
                    candidate_name: Optional[str] = None, hard_capped: bool = False) -> str:
    lines = []
    headline = f"Tier {tier.value} ({score}/100)"
    if candidate_name:
        headline = f"{candidate_name}: {headline}"
    if hard_capped:
        headline += ", capped for missing must-have skills"
    lines.append(headline + ".")

    weighted = [c for c in categories if c.weight > 0]
    strongest = sorted(weighted, key=lambda c: (-c.contribution, c.name))[:2]
    if strongest:
        lines.append("Strongest: " + '; '.join(f"{_label(c.name)} {c.score}" for c in strongest) + ".")

    weakest = sorted((c for c in weighted if c.score < 70), key=lambda c: (c.score, c.name))[:2]
    if weakest:
        lines.append("Weakest: " + '; '.join(f"{_label(c.name)} {c.score}" for c in weakest) + ".")

    missing_must = [s for s in missing if s.must_have]
    if missing_must:
        lines.append(f"Missing must-have skills: {_names(missing_must)}.")
    if matched:
        lines.append(f"Matched skills: {_names(matched)}.")
    other_missing = [s for s in missing if not s.must_have]
    if other_missing:
        lines.append(f"Missing skills: {_names(other_missing)}.")
    if risks:
        lines.append("Risks: " + '; '.join(risks) + ".")
    if red_flags:
        lines.append("Red flags: " + '; '.join(red_flags) + ".")
    if interview_focus:
        lines.append("Interview focus: " + '; '.join(interview_focus) + ".")
    return ' '.join(lines)
