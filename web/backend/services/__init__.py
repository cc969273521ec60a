"""Business logic services."""

from .scoring_settings_service import ScoringSettingsService
