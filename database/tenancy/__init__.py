from .errors import (
    TenantScopeError,
    MissingTenantError,
    UnsafeLookupError,
    CrossTenantReferenceError,
    InvalidFilterError,
)
from .rules import (
    ScopeRule,
    DirectScope,
    RelationScope,
    TenantOrGlobalScope,
    TENANT_SCOPE_RULES,
    ENTITY_MODELS,
    entity_name,
    scope_rule_for,
    describe_rules,
)
from .gateway import ScopedGateway, ScopedModel, open_tenant_scope
from .async_gateway import AsyncScopedGateway, AsyncScopedModel, open_async_tenant_scope

__all__ = [
    'TenantScopeError',
    'MissingTenantError',
    'UnsafeLookupError',
    'CrossTenantReferenceError',
    'InvalidFilterError',
    'ScopeRule',
    'DirectScope',
    'RelationScope',
    'TenantOrGlobalScope',
    'TENANT_SCOPE_RULES',
    'ENTITY_MODELS',
    'entity_name',
    'scope_rule_for',
    'describe_rules',
    'ScopedGateway',
    'ScopedModel',
    'open_tenant_scope',
    'AsyncScopedGateway',
    'AsyncScopedModel',
    'open_async_tenant_scope',
]
