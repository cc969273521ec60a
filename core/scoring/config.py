#!/usr/bin/env python3
"""
Scoring configuration models.

A ScoringConfig is the fully merged configuration for one job: category
weights (non-negative integers summing to exactly 100), tier thresholds
(a >= b >= c, each 1-100), the must-have policy and the anonymisation flag.

Stored JSON uses camelCase (coreCompetencies, tierA, mustHavePolicy); both
that and snake_case are accepted.
"""

import re
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core.scoring.categories import CATEGORY_SCORERS
from core.scoring.errors import ScoringConfigError

WEIGHT_TOTAL = 100


def camel_to_snake(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


class TierThresholds(BaseModel):
    """Inclusive lower bounds: score >= a is tier A, >= b is B, >= c is C, else D."""
    model_config = ConfigDict(populate_by_name=True)

    a: int = Field(80, ge=1, le=100, validation_alias=AliasChoices('a', 'A', 'tierA', 'tier_a'))
    b: int = Field(65, ge=1, le=100, validation_alias=AliasChoices('b', 'B', 'tierB', 'tier_b'))
    c: int = Field(50, ge=1, le=100, validation_alias=AliasChoices('c', 'C', 'tierC', 'tier_c'))

    @model_validator(mode='after')
    def check_ordering(self) -> 'TierThresholds':
        if not (self.a >= self.b >= self.c):
            raise ValueError(f"Tier thresholds must satisfy A >= B >= C (got {self.a}/{self.b}/{self.c})")
        return self


class ScoringConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    weights: Dict[str, int]
    thresholds: TierThresholds = Field(default_factory=TierThresholds)
    must_have_policy: Literal['strict', 'soft'] = Field(
        'soft', validation_alias=AliasChoices('must_have_policy', 'mustHavePolicy')
    )
    anonymize: bool = Field(
        True, validation_alias=AliasChoices('anonymize', 'anonymizeForScoring', 'anonymize_for_scoring')
    )
    plan: Optional[str] = None
    hiring_mode: Optional[str] = Field(None, validation_alias=AliasChoices('hiring_mode', 'hiringMode', 'mode'))

    @field_validator('weights', mode='before')
    @classmethod
    def normalize_weight_keys(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        normalized = {}
        for key, weight in value.items():
            if isinstance(weight, bool):
                raise ValueError(f"Weight for '{key}' must be an integer, not a boolean")
            normalized[camel_to_snake(str(key))] = weight
        return normalized

    @field_validator('weights')
    @classmethod
    def check_weights(cls, value: Dict[str, int]) -> Dict[str, int]:
        unknown = sorted(k for k in value if k not in CATEGORY_SCORERS)
        if unknown:
            raise ValueError(f"Unknown scoring categories: {', '.join(unknown)}")
        negative = sorted(k for k, w in value.items() if w < 0)
        if negative:
            raise ValueError(f"Weights must be non-negative: {', '.join(negative)}")
        total = sum(value.values())
        if total != WEIGHT_TOTAL:
            raise ValueError(f"Weights must sum to {WEIGHT_TOTAL} (got {total})")
        return value

    @property
    def is_strict(self) -> bool:
        return self.must_have_policy == 'strict'

    def to_storage(self) -> Dict[str, Any]:
        """camelCase JSON shape used in tenant/job override columns."""
        return {
            'weights': {_snake_to_camel(k): v for k, v in self.weights.items()},
            'thresholds': {'tierA': self.thresholds.a, 'tierB': self.thresholds.b, 'tierC': self.thresholds.c},
            'mustHavePolicy': self.must_have_policy,
            'anonymize': self.anonymize,
        }

    @classmethod
    def from_raw(cls, data: Any) -> 'ScoringConfig':
        if isinstance(data, ScoringConfig):
            return data
        if not isinstance(data, Mapping):
            raise ScoringConfigError(f"Scoring config must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ScoringConfigError(format_validation_error(e)) from e


def _snake_to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(p.capitalize() for p in rest)


def format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        loc = '.'.join(str(p) for p in item.get('loc', ()))
        msg = item.get('msg', 'invalid value')
        messages.append(f"{loc}: {msg}" if loc else msg)
    return '; '.join(messages)


def ensure_valid_config(config: Any) -> ScoringConfig:
    """Re-validate a config at the point of use; invalid -> ScoringConfigError."""
    if isinstance(config, ScoringConfig):
        config = config.model_dump()
    return ScoringConfig.from_raw(config)
