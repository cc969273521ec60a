#!/usr/bin/env python3
"""
Session context and active-tenant resolution.

Authentication happens upstream: an auth middleware places a SessionContext on
request.state.session_context. This module only decides which tenant a
request may act for.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class TenantRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    RECRUITER = "recruiter"
    HIRING_MANAGER = "hiring_manager"
    VIEWER = "viewer"


# Roles allowed to change scoring settings
SETTINGS_ROLES = {TenantRole.OWNER, TenantRole.ADMIN}


@dataclass(frozen=True)
class TenantMembership:
    tenant_id: str
    role: TenantRole


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    tenant_roles: List[TenantMembership] = field(default_factory=list)
    is_super_admin: bool = False

    def role_in(self, tenant_id: str) -> Optional[TenantRole]:
        for membership in self.tenant_roles:
            if membership.tenant_id == tenant_id:
                return membership.role
        return None

    def can_access(self, tenant_id: str) -> bool:
        return self.is_super_admin or self.role_in(tenant_id) is not None

    def can_manage_settings(self, tenant_id: str) -> bool:
        return self.is_super_admin or self.role_in(tenant_id) in SETTINGS_ROLES


class NotAuthenticated(Exception):
    """No session context on the request."""


class NoActiveTenant(Exception):
    """No tenant id supplied with the request."""


class TenantAccessDenied(Exception):
    """The session has no role in the requested tenant."""


def resolve_active_tenant(context: Optional[SessionContext], requested: Optional[str]) -> str:
    """
    Pick the tenant for this request.

    The requested id (X-Tenant-Id) wins; a session with exactly one membership
    falls back to it. Super admins may act for any tenant.
    """
    if context is None:
        raise NotAuthenticated("Not authenticated")

    tenant_id = (requested or "").strip()
    if not tenant_id and len(context.tenant_roles) == 1:
        tenant_id = context.tenant_roles[0].tenant_id
    if not tenant_id:
        raise NoActiveTenant("No active tenant")

    if not context.can_access(tenant_id):
        logger.warning("User %s denied access to tenant %s", context.user_id, tenant_id)
        raise TenantAccessDenied(f"No access to tenant {tenant_id}")
    return tenant_id
