#!/usr/bin/env python3
"""
Scoring settings service - read and save tenant/job scoring overrides.

Every save is validated against the fully merged configuration first; an
invalid combination raises InvalidScoringConfigException and nothing is
written.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from core.scoring.config import ScoringConfig
from core.scoring.config_source import combine_overrides, merge_scoring_config
from core.scoring.errors import ScoringConfigError
from database.tenancy import ScopedGateway
from ..exceptions import InvalidScoringConfigException, JobNotFoundException, TenantNotFoundException
from ..models.requests import ScoringSettingsUpdate
from ..models.responses import ScoringConfigResponse

logger = logging.getLogger(__name__)


def to_response(config: ScoringConfig, tenant_id: str, job_id: Optional[str] = None) -> ScoringConfigResponse:
    return ScoringConfigResponse(
        tenant_id=tenant_id,
        job_id=job_id,
        hiring_mode=config.hiring_mode,
        plan=config.plan,
        weights=dict(config.weights),
        thresholds={'a': config.thresholds.a, 'b': config.thresholds.b, 'c': config.thresholds.c},
        must_have_policy=config.must_have_policy,
        anonymize=config.anonymize,
    )


class ScoringSettingsService:
    """Service for tenant and job scoring settings."""

    def __init__(self, db: Session, gateway: ScopedGateway, default_mode: str = "exec"):
        self.db = db
        self.gateway = gateway
        self.default_mode = default_mode

    def _tenant(self):
        tenant = self.gateway.current_tenant()
        if tenant is None:
            raise TenantNotFoundException(f"Tenant {self.gateway.tenant_id} not found")
        return tenant

    def _merge(self, tenant, tenant_config: Any, mode: Optional[str] = None, job_config: Any = None) -> ScoringConfig:
        try:
            return merge_scoring_config(
                mode=mode or tenant.hiring_mode,
                plan=tenant.plan,
                tenant_config=tenant_config,
                job_config=job_config,
                default_mode=self.default_mode,
            )
        except ScoringConfigError as e:
            raise InvalidScoringConfigException(str(e)) from e

    def get_tenant_config(self) -> ScoringConfigResponse:
        tenant = self._tenant()
        return to_response(self._merge(tenant, tenant.scoring_config), tenant.id)

    def update_tenant_settings(self, update: ScoringSettingsUpdate) -> ScoringConfigResponse:
        """
        Save tenant-level overrides.

        Raises:
            InvalidScoringConfigException: merged weights/thresholds invalid.
        """
        tenant = self._tenant()
        overrides = combine_overrides(tenant.scoring_config, update.to_overrides())
        mode = update.hiring_mode or tenant.hiring_mode
        config = self._merge(tenant, overrides, mode=mode)

        tenant.scoring_config = overrides
        if update.hiring_mode is not None:
            tenant.hiring_mode = update.hiring_mode
        self.db.commit()
        logger.info("Updated scoring settings for tenant %s", tenant.id)
        return to_response(config, tenant.id)

    def get_job_config(self, job_id: str) -> ScoringConfigResponse:
        tenant = self._tenant()
        job = self._job(job_id)
        config = self._merge(tenant, tenant.scoring_config, mode=job.hiring_mode, job_config=job.scoring_overrides)
        return to_response(config, tenant.id, job.id)

    def update_job_settings(self, job_id: str, update: ScoringSettingsUpdate) -> ScoringConfigResponse:
        """Save job-level overrides (layered on top of the tenant's)."""
        tenant = self._tenant()
        job = self._job(job_id)
        overrides = combine_overrides(job.scoring_overrides, update.to_overrides())
        mode = update.hiring_mode or job.hiring_mode
        config = self._merge(tenant, tenant.scoring_config, mode=mode, job_config=overrides)

        values: Dict[str, Any] = {'scoring_overrides': overrides}
        if update.hiring_mode is not None:
            values['hiring_mode'] = update.hiring_mode
        self.gateway.job.update_many(where={'id': job.id}, values=values)
        self.db.commit()
        logger.info("Updated scoring settings for job %s (tenant %s)", job.id, tenant.id)
        return to_response(config, tenant.id, job.id)

    def _job(self, job_id: str):
        job = self.gateway.job.find_first(where={'id': job_id})
        if job is None:
            raise JobNotFoundException(f"Job {job_id} not found")
        return job
