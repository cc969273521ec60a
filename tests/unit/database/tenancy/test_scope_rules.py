#!/usr/bin/env python3
"""
Unit tests for the tenant scope rule registry.

No database needed: these check the registry's coverage and the SQL each
rule compiles to.
"""

import pytest
from sqlalchemy.dialects import sqlite

from database.models import (
    Application, Base, CareerSiteSettings, CareerTheme, CompetencyRating,
    Interview, Job, Skill, Tenant,
)
from database.tenancy import (
    DirectScope, RelationScope, TenantOrGlobalScope, TenantScopeError,
    TENANT_SCOPE_RULES, ENTITY_MODELS, describe_rules, entity_name, scope_rule_for,
)
from database.tenancy.rules import find_rule, primary_key_name


def _sql(clause) -> str:
    return str(clause.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


class TestRegistryCoverage:

    def test_every_mapped_model_except_tenant_has_a_rule(self):
        mapped = {m.class_ for m in Base.registry.mappers}
        unscoped = {m.__name__ for m in mapped - set(TENANT_SCOPE_RULES)}
        assert unscoped == {"Tenant"}

    def test_tenant_itself_is_not_scoped(self):
        with pytest.raises(TenantScopeError):
            scope_rule_for(Tenant)

    def test_rule_kinds(self):
        assert isinstance(scope_rule_for(Job), DirectScope)
        assert isinstance(scope_rule_for(Application), RelationScope)
        assert isinstance(scope_rule_for(Skill), TenantOrGlobalScope)
        assert isinstance(scope_rule_for(CareerTheme), TenantOrGlobalScope)

    def test_entity_names(self):
        assert entity_name(CareerSiteSettings) == "career_site_settings"
        assert entity_name(Job) == "job"
        assert ENTITY_MODELS["competency_rating"] is CompetencyRating
        assert "tenant" not in ENTITY_MODELS

    def test_describe_rules_lists_every_entity(self):
        described = describe_rules()
        assert set(described) == set(ENTITY_MODELS)
        assert described["interview"] == "RelationScope(application.job.tenant_id)"
        assert described["skill"] == "TenantOrGlobalScope(tenant_id or is_global)"

    def test_find_rule(self):
        assert isinstance(find_rule("application_event"), RelationScope)
        assert find_rule("tenant") is None

    def test_primary_key_name(self):
        assert primary_key_name(Job) == "id"


class TestRelationScope:

    def test_requires_a_hop(self):
        with pytest.raises(ValueError):
            RelationScope(())

    def test_anchor_and_hops(self):
        rule = scope_rule_for(CompetencyRating)
        assert rule.hops == 3
        assert rule.anchor(CompetencyRating) is Job
        assert rule.parent_relation(CompetencyRating) == "interview"

    def test_predicate_nests_exists_down_to_job(self):
        sql = _sql(scope_rule_for(Interview).predicate(Interview, "tenant-1"))
        assert sql.count("EXISTS") == 2
        assert "job.tenant_id = 'tenant-1'" in sql

    def test_stamp_drops_tenant_id(self):
        rule = scope_rule_for(Application)
        stamped = rule.stamp(Application, {"job_id": "job-1", "tenant_id": "tenant-2"}, "tenant-1")
        assert stamped == {"job_id": "job-1"}


class TestDirectScope:

    def test_stamp_overrides_caller_tenant(self):
        stamped = scope_rule_for(Job).stamp(Job, {"title": "X", "tenant_id": "tenant-2"}, "tenant-1")
        assert stamped["tenant_id"] == "tenant-1"

    def test_predicate(self):
        assert _sql(scope_rule_for(Job).predicate(Job, "tenant-1")) == "job.tenant_id = 'tenant-1'"


class TestTenantOrGlobalScope:

    def test_read_predicate_includes_shared_rows(self):
        sql = _sql(scope_rule_for(Skill).predicate(Skill, "tenant-1"))
        assert "skill.tenant_id = 'tenant-1'" in sql
        assert "skill.is_global" in sql
        assert " OR " in sql

    def test_writable_predicate_is_tenant_only(self):
        sql = _sql(scope_rule_for(Skill).writable_predicate(Skill, "tenant-1"))
        assert sql == "skill.tenant_id = 'tenant-1'"

    def test_stamp_never_creates_shared_rows(self):
        stamped = scope_rule_for(CareerTheme).stamp(
            CareerTheme, {"name": "Dark", "is_system": True, "tenant_id": None}, "tenant-1"
        )
        assert stamped["is_system"] is False
        assert stamped["tenant_id"] == "tenant-1"
