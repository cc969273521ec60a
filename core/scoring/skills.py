#!/usr/bin/env python3
"""
Skill parsing and matching.

Job required skills are free text. A skill is a must-have when it carries a
leading "!" or a "(must have)" / "[must]" marker:

    ["!Python", "SQL", "Kubernetes (must have)", "[must] AWS"]

Matching is case-insensitive. A skill matches if it is one of the
candidate's structured skills, or if it (or a known synonym) appears as a
whole word in the evidence text.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Set, Tuple

_MUST_MARKERS = re.compile(
    r'\(\s*must[\s-]*have\s*\)|\[\s*must(?:[\s-]*have)?\s*\]|\bmust[\s-]*have\b\s*:?',
    re.IGNORECASE
)

SKILL_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    'javascript': ('js', 'nodejs', 'node.js'),
    'typescript': ('ts',),
    'project management': ('pm', 'pmp'),
    'product management': ('pm', 'product manager'),
    'human resources': ('hr', 'people ops'),
    'postgresql': ('postgres',),
    'kubernetes': ('k8s',),
}


@dataclass(frozen=True)
class RequiredSkill:
    name: str
    must_have: bool = False

    @property
    def key(self) -> str:
        return normalize_skill(self.name)


def normalize_skill(name: str) -> str:
    return re.sub(r'\s+', ' ', name or '').strip().lower()


def parse_required_skill(raw: str) -> RequiredSkill:
    text = (raw or '').strip()
    must_have = False
    if text.startswith('!'):
        must_have = True
        text = text.lstrip('!').strip()
    if _MUST_MARKERS.search(text):
        must_have = True
        text = _MUST_MARKERS.sub(' ', text)
    text = re.sub(r'\s+', ' ', text).strip(' -:,')
    return RequiredSkill(name=text, must_have=must_have)


def parse_required_skills(raw_skills: Iterable[str]) -> List[RequiredSkill]:
    """Parse and de-duplicate; a skill listed twice is a must-have if either copy is."""
    parsed: Dict[str, RequiredSkill] = {}
    order: List[str] = []
    for raw in raw_skills or ():
        if not isinstance(raw, str):
            continue
        skill = parse_required_skill(raw)
        if not skill.name:
            continue
        key = skill.key
        if key in parsed:
            if skill.must_have and not parsed[key].must_have:
                parsed[key] = RequiredSkill(parsed[key].name, True)
            continue
        parsed[key] = skill
        order.append(key)
    return [parsed[k] for k in order]


def _word_pattern(term: str) -> re.Pattern:
    return re.compile(r'(?<![a-z0-9])' + re.escape(term) + r'(?![a-z0-9])')


def skill_terms(skill_key: str) -> Tuple[str, ...]:
    return (skill_key,) + SKILL_SYNONYMS.get(skill_key, ())


def matches_skill(skill: RequiredSkill, structured: Set[str], evidence: str) -> bool:
    key = skill.key
    if key in structured:
        return True
    terms = skill_terms(key)
    if any(t in structured for t in terms):
        return True
    text = evidence.lower()
    return any(_word_pattern(t).search(text) for t in terms)


def match_skills(required: Sequence[RequiredSkill], candidate_skills: Iterable[str],
                 evidence: str) -> Tuple[List[RequiredSkill], List[RequiredSkill]]:
    """Split required skills into (matched, missing), preserving order."""
    structured = {normalize_skill(s) for s in candidate_skills or () if s}
    matched, missing = [], []
    for skill in required:
        (matched if matches_skill(skill, structured, evidence or '') else missing).append(skill)
    return matched, missing
