#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Literal, Optional


class ThresholdsUpdate(BaseModel):
    """Tier thresholds as sent by the settings form (tierA/tierB/tierC)."""
    model_config = ConfigDict(populate_by_name=True)

    tier_a: Optional[int] = Field(None, alias="tierA")
    tier_b: Optional[int] = Field(None, alias="tierB")
    tier_c: Optional[int] = Field(None, alias="tierC")


class ScoringSettingsUpdate(BaseModel):
    """
    Partial scoring overrides for a tenant or a job.

    Only the fields sent are overridden. Range and sum checks run against the
    fully merged config, so a weight map that does not add up to 100 once
    merged is rejected with 400 and nothing is saved.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "hiringMode": "volume",
                "weights": {
                    "coreCompetencies": 40,
                    "experienceQuality": 30,
                    "education": 10,
                    "achievements": 10,
                    "culturalFit": 10
                },
                "thresholds": {"tierA": 80, "tierB": 65, "tierC": 50},
                "mustHavePolicy": "strict",
                "anonymize": True
            }
        }
    )

    hiring_mode: Optional[Literal["exec", "volume", "hybrid"]] = Field(None, alias="hiringMode")
    weights: Optional[Dict[str, int]] = None
    thresholds: Optional[ThresholdsUpdate] = None
    must_have_policy: Optional[Literal["strict", "soft"]] = Field(None, alias="mustHavePolicy")
    anonymize: Optional[bool] = None

    def to_overrides(self) -> Dict:
        """camelCase override blob in the shape stored on tenant/job rows."""
        overrides = {}
        if self.weights is not None:
            overrides["weights"] = dict(self.weights)
        if self.thresholds is not None:
            sent = {
                "tierA": self.thresholds.tier_a,
                "tierB": self.thresholds.tier_b,
                "tierC": self.thresholds.tier_c,
            }
            overrides["thresholds"] = {k: v for k, v in sent.items() if v is not None}
        if self.must_have_policy is not None:
            overrides["mustHavePolicy"] = self.must_have_policy
        if self.anonymize is not None:
            overrides["anonymize"] = self.anonymize
        return overrides
