#!/usr/bin/env python3
"""
Tenant isolation tests for ScopedGateway.

Runs against the two-tenant fixture data (tests/fixtures/tenant_fixtures.py)
on in-memory SQLite. Every entity is checked in both directions; writes are
checked for stamping, scoping and cross-tenant references.

These tests require a database - marked with @pytest.mark.db
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import or_, select
from sqlalchemy.dialects import postgresql

from database.models import Application, Job, Skill, Tag
from database.tenancy import (
    ENTITY_MODELS, CrossTenantReferenceError, InvalidFilterError, MissingTenantError,
    TenantScopeError, UnsafeLookupError, open_tenant_scope,
)
from tests.fixtures.tenant_fixtures import TENANT_1, TENANT_2, VISIBLE_IDS

pytestmark = pytest.mark.db


def _ids(rows):
    return {row.id for row in rows}


class TestReadIsolation:

    @pytest.mark.parametrize("entity", sorted(VISIBLE_IDS))
    @pytest.mark.parametrize("tenant", [TENANT_1, TENANT_2])
    def test_find_many_returns_only_visible_rows(self, seeded_session, entity, tenant):
        gateway = open_tenant_scope(seeded_session, tenant)
        rows = getattr(gateway, entity).find_many()
        assert _ids(rows) == VISIBLE_IDS[entity][tenant]

    @pytest.mark.parametrize("entity", sorted(VISIBLE_IDS))
    def test_count_matches_visible_rows(self, seeded_session, entity):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert getattr(gateway, entity).count() == len(VISIBLE_IDS[entity][TENANT_1])

    def test_other_tenants_application_is_invisible(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.application.find_first(where={"id": "app-123"}) is None
        assert gateway.interview.find_many(where={"application_id": "app-123"}) == []

        other = open_tenant_scope(seeded_session, TENANT_2)
        found = other.application.find_first(where={"id": "app-123"})
        assert found is not None
        assert found.job.tenant_id == TENANT_2

    def test_same_email_in_two_tenants_is_two_candidates(self, seeded_session):
        t1 = open_tenant_scope(seeded_session, TENANT_1).candidate.find_many(where={"email": "ada@example.com"})
        t2 = open_tenant_scope(seeded_session, TENANT_2).candidate.find_many(where={"email": "ada@example.com"})
        assert _ids(t1) == {"cand-1"}
        assert _ids(t2) == {"cand-3"}

    def test_caller_or_cannot_widen_the_scope(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        rows = gateway.job.find_many(or_(Job.tenant_id == TENANT_2, Job.id.is_not(None)))
        assert _ids(rows) == {"job-1", "job-3"}

    def test_caller_tenant_filter_cannot_select_another_tenant(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.job.find_many(where={"tenant_id": TENANT_2}) == []
        assert gateway.application.find_many(where={"job.tenant_id": TENANT_2}) == []

    @pytest.mark.parametrize("entity", sorted(ENTITY_MODELS))
    def test_find_unique_and_get_are_refused(self, seeded_session, entity):
        scoped = getattr(open_tenant_scope(seeded_session, TENANT_1), entity)
        with pytest.raises(UnsafeLookupError):
            scoped.find_unique(id="any-id")
        with pytest.raises(UnsafeLookupError):
            scoped.get("any-id")
        with pytest.raises(UnsafeLookupError):
            scoped.find_unique(where={"id": "any-id"})

    def test_unscoped_entity_is_not_exposed(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(AttributeError):
            gateway.tenant
        with pytest.raises(AttributeError):
            gateway.user

    def test_current_tenant(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.tenant_id == TENANT_1
        assert gateway.current_tenant().slug == "acme"


class TestMissingTenant:

    @pytest.mark.parametrize("tenant_id", [None, "", "   "])
    def test_blank_tenant_is_rejected(self, db_session, tenant_id):
        with pytest.raises(MissingTenantError):
            open_tenant_scope(db_session, tenant_id)

    def test_missing_tenant_is_a_scope_error(self):
        assert issubclass(MissingTenantError, TenantScopeError)


class TestFilters:

    def test_column_filters(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert _ids(gateway.job.find_many(where={"status": "open"})) == {"job-1"}
        assert _ids(gateway.job.find_many(where={"status": ["open", "draft"]})) == {"job-1", "job-3"}
        assert _ids(gateway.candidate.find_many(where={"years_experience": {"gte": 7}})) == {"cand-2"}
        assert _ids(gateway.note.find_many(where={"candidate_id": None})) == set()

    def test_relation_filters(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert _ids(gateway.application.find_many(where={"job.status": "open"})) == {"app-1", "app-2"}
        assert _ids(gateway.application.find_many(where={"job": {"client_company_id": "company-1"}})) == {"app-1", "app-2"}
        assert _ids(gateway.interview.find_many(where={"application.candidate_id": "cand-1"})) == {"int-1"}
        assert _ids(gateway.job.find_many(where={"applications.stage": "screen"})) == {"job-1"}

    def test_order_limit_offset(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        rows = gateway.application.find_many(order_by="-created_at")
        assert [r.id for r in rows] == ["app-2", "app-1"]
        rows = gateway.application.find_many(order_by="created_at", limit=1, offset=1)
        assert [r.id for r in rows] == ["app-2"]

    def test_unknown_field_is_rejected(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(InvalidFilterError):
            gateway.job.find_many(where={"no_such_field": 1})
        with pytest.raises(InvalidFilterError):
            gateway.job.find_many(order_by="-no_such_field")
        with pytest.raises(InvalidFilterError):
            gateway.job.find_many(where={"status": {"like": "o%"}})

    def test_positional_mapping_is_rejected(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(InvalidFilterError):
            gateway.job.find_many({"status": "open"})

    def test_aggregate_is_scoped(self, seeded_session):
        t1 = open_tenant_scope(seeded_session, TENANT_1).competency_rating.aggregate(avg=["rating"], count=True)
        t2 = open_tenant_scope(seeded_session, TENANT_2).competency_rating.aggregate(avg=["rating"], count=True)
        assert t1 == {"avg_rating": 4.0, "count": 1}
        assert t2 == {"avg_rating": 2.0, "count": 1}

    def test_aggregate_requires_a_known_field(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(InvalidFilterError):
            gateway.competency_rating.aggregate(avg=["nope"])
        with pytest.raises(InvalidFilterError):
            gateway.competency_rating.aggregate()


class TestDualScope:

    def test_find_preferred_picks_tenant_row_first(self, seeded_session):
        t1 = open_tenant_scope(seeded_session, TENANT_1)
        t2 = open_tenant_scope(seeded_session, TENANT_2)
        assert t1.skill.find_preferred(where={"name": "Python"}).id == "skill-t1-python"
        assert t2.skill.find_preferred(where={"name": "Python"}).id == "skill-global-python"
        assert t2.skill.find_preferred(where={"name": "Docker"}) is None

    def test_find_preferred_only_for_shared_entities(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(TenantScopeError):
            gateway.job.find_preferred(where={"title": "x"})

    def test_shared_rows_are_read_only(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.skill.update_many(where={"id": "skill-global-python"}, values={"name": "Py"}) == 0
        assert gateway.career_theme.delete_many(where={"id": "theme-system"}) == 0
        seeded_session.expire_all()
        assert seeded_session.get(Skill, "skill-global-python").name == "Python"

    def test_delete_by_name_only_removes_local_row(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.skill.delete_many(where={"name": "Python"}) == 1
        remaining = seeded_session.execute(select(Skill.id).where(Skill.name == "Python")).scalars().all()
        assert set(remaining) == {"skill-global-python"}

    def test_create_is_always_tenant_local(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        skill = gateway.skill.create(name="Rust", is_global=True)
        assert skill.tenant_id == TENANT_1
        assert skill.is_global is False
        assert open_tenant_scope(seeded_session, TENANT_2).skill.find_first(where={"name": "Rust"}) is None


class TestWrites:

    def test_create_stamps_bound_tenant(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        job = gateway.job.create(title="Platform Engineer", tenant_id=TENANT_2)
        assert job.tenant_id == TENANT_1
        assert open_tenant_scope(seeded_session, TENANT_2).job.find_first(where={"id": job.id}) is None

    def test_create_ignores_tenant_field_on_transitive_entity(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        app = gateway.application.create(job_id="job-1", full_name="Linus", tenant_id=TENANT_2)
        assert app.job.tenant_id == TENANT_1
        assert open_tenant_scope(seeded_session, TENANT_2).application.find_first(where={"id": app.id}) is None

        rating = gateway.competency_rating.create(interview_id="int-1", competency="SQL", rating=3, tenant_id=TENANT_2)
        assert rating.id in _ids(gateway.competency_rating.find_many())

    def test_create_many_stamps_every_row(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        tags = gateway.tag.create_many([{"name": "Backend", "tenant_id": TENANT_2}, {"name": "Remote"}])
        assert [t.tenant_id for t in tags] == [TENANT_1, TENANT_1]
        assert gateway.tag.count(where={"name": ["Backend", "Remote"]}) == 2
        assert gateway.tag.create_many([]) == []

    def test_create_many_rejects_the_whole_batch(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(CrossTenantReferenceError):
            gateway.application.create_many([
                {"job_id": "job-1", "full_name": "Alan Turing"},
                {"job_id": "job-2", "full_name": "Mallory"},
            ])
        assert gateway.application.count() == 2

    def test_create_transitive_child_of_visible_parent(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        app = gateway.application.create(job_id="job-3", candidate_id="cand-1", full_name="Ada Lovelace")
        assert app.stage == "applied"
        assert app.id in _ids(gateway.application.find_many())

    def test_create_under_other_tenants_parent_is_refused(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(CrossTenantReferenceError):
            gateway.application.create(job_id="job-2", full_name="Mallory")
        with pytest.raises(CrossTenantReferenceError):
            gateway.interview.create(application_id="app-123")

    def test_create_transitive_child_requires_parent(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(CrossTenantReferenceError):
            gateway.application.create(full_name="Orphan")

    def test_foreign_keys_are_checked_against_scope(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(CrossTenantReferenceError):
            gateway.application.create(job_id="job-1", candidate_id="cand-3", full_name="Ada Lovelace")
        with pytest.raises(CrossTenantReferenceError):
            gateway.candidate_skill.create(candidate_id="cand-1", skill_id="skill-t2-crm")
        # shared skills may be referenced by any tenant
        link = gateway.candidate_skill.create(candidate_id="cand-1", skill_id="skill-global-python")
        assert link.tenant_id == TENANT_1

    def test_unknown_create_field_is_rejected(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(InvalidFilterError):
            gateway.tag.create(name="x", colour="red")

    def test_update_many_is_scoped(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.job.update_many(values={"status": "closed"}) == 2
        seeded_session.expire_all()
        assert seeded_session.get(Job, "job-2").status == "open"
        assert seeded_session.get(Job, "job-1").status == "closed"

    def test_update_of_other_tenants_row_matches_nothing(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.application.update_many(where={"id": "app-123"}, values={"stage": "hired"}) == 0
        seeded_session.expire_all()
        assert seeded_session.get(Application, "app-123").stage == "applied"

    def test_tenant_ownership_is_not_writable(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.job.update_many(where={"id": "job-1"}, values={"tenant_id": TENANT_2}) == 0
        seeded_session.expire_all()
        assert seeded_session.get(Job, "job-1").tenant_id == TENANT_1

    def test_tenant_field_is_dropped_from_transitive_updates(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.application.update_many(
            where={"id": "app-1"}, values={"stage": "hired", "tenant_id": TENANT_2}
        ) == 1
        assert gateway.application.update_many(where={"id": "app-1"}, values={"tenant_id": TENANT_2}) == 0
        seeded_session.expire_all()
        app = seeded_session.get(Application, "app-1")
        assert app.stage == "hired"
        assert app.job.tenant_id == TENANT_1

    def test_moving_a_child_to_another_tenants_parent_is_refused(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        with pytest.raises(CrossTenantReferenceError):
            gateway.application.update_many(where={"id": "app-1"}, values={"job_id": "job-2"})
        with pytest.raises(CrossTenantReferenceError):
            gateway.application.update_many(where={"id": "app-1"}, values={"job_id": None})

    def test_delete_many_is_scoped(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        assert gateway.tag.delete_many() == 1
        assert gateway.application_event.delete_many(where={"id": "ev-2"}) == 0
        remaining = seeded_session.execute(select(Tag.id)).scalars().all()
        assert remaining == ["tag-2"]

    def test_gateway_never_commits(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1)
        gateway.tag.create(name="Temporary")
        seeded_session.rollback()
        assert gateway.tag.count(where={"name": "Temporary"}) == 0


class TestStatementTimeout:

    def test_postgres_statements_run_under_statement_timeout(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "postgresql"
        gateway = open_tenant_scope(session, TENANT_1, timeout=2.5)

        gateway.job.count()

        statements = [c.args[0] for c in session.execute.call_args_list]
        assert len(statements) == 2
        compiled = statements[0].compile(dialect=postgresql.dialect())
        assert "set_config" in str(compiled)
        assert "2500" in compiled.params.values()

    def test_no_timeout_issues_only_the_query(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "postgresql"
        open_tenant_scope(session, TENANT_1).job.count()
        assert session.execute.call_count == 1

    def test_timeout_is_ignored_on_sqlite(self, seeded_session):
        gateway = open_tenant_scope(seeded_session, TENANT_1, timeout=1)
        assert gateway.timeout == 1
        assert gateway.job.count() == 2
