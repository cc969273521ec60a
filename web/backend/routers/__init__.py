"""API route handlers."""

from .scoring import router as scoring_router
from .pipeline import router as pipeline_router
