#!/usr/bin/env python3
"""
Tenant isolation errors.

All of these signal programming errors in the calling code, not recoverable
runtime conditions. They are raised immediately and never degrade into an
unscoped query.
"""


class TenantScopeError(RuntimeError):
    """Base class for tenant isolation failures."""
    pass


class MissingTenantError(TenantScopeError):
    """Raised when a gateway is opened without an active tenant id."""
    pass


class UnsafeLookupError(TenantScopeError):
    """Raised when a bare primary-key lookup is attempted on a tenant-scoped entity."""
    pass


class CrossTenantReferenceError(TenantScopeError):
    """Raised when a write references a parent row outside the bound tenant."""
    pass


class InvalidFilterError(TenantScopeError):
    """Raised when a filter names a field or relation the entity does not have."""
    pass
