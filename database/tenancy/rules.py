#!/usr/bin/env python3
"""
Tenant scope rules - how each entity resolves to its tenant.

Entities fall into three classes:

- Direct: the row carries tenant_id itself.
- Transitive: tenant membership is inherited through one or more many-to-one
  relations (Application -> Job, Interview -> Application -> Job, ...).
- Dual-scope: tenant-local rows plus rows flagged as shared by every tenant
  (global skills, system career themes).

Each rule produces the SQL predicate the gateway ANDs onto every query, and
knows how to stamp tenant ownership onto new rows.
"""

import logging
import re
from typing import Any, Dict, Optional, Tuple, Type

from sqlalchemy import inspect, or_, true
from sqlalchemy.sql.elements import ColumnElement

from database.models import (
    Job, Candidate, ClientCompany, Tag, Note, SentEmail, ActivityLog,
    ScoringEvent, SavedView, AnalyticsSnapshot, CareerSiteSettings,
    CareerPage, CandidateSkill, JobSkill, Application, ApplicationEvent,
    Interview, InterviewParticipant, CompetencyRating, Skill, CareerTheme,
)
from database.tenancy.errors import TenantScopeError

logger = logging.getLogger(__name__)

TENANT_COLUMN = 'tenant_id'


class ScopeRule:
    """Base class for per-entity scoping rules."""

    kind = "abstract"

    def predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        """Rows of `model` visible to `tenant_id`."""
        raise NotImplementedError

    def writable_predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        """Rows of `model` the tenant may update or delete."""
        return self.predicate(model, tenant_id)

    def stamp(self, model: Type, data: Dict[str, Any], tenant_id: str) -> Dict[str, Any]:
        """Return a copy of a create payload with tenant ownership applied."""
        return dict(data)

    def protected_fields(self) -> Tuple[str, ...]:
        """Fields callers may never set through an update."""
        return ()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class DirectScope(ScopeRule):
    """tenant_id = :bound"""

    kind = "direct"

    def __init__(self, column: str = TENANT_COLUMN):
        self.column = column

    def predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        return getattr(model, self.column) == tenant_id

    def stamp(self, model: Type, data: Dict[str, Any], tenant_id: str) -> Dict[str, Any]:
        stamped = dict(data)
        supplied = stamped.get(self.column)
        if supplied is not None and supplied != tenant_id:
            logger.warning(
                "Ignoring caller-supplied %s=%r on %s create; using bound tenant",
                self.column, supplied, model.__name__
            )
        stamped[self.column] = tenant_id
        return stamped

    def protected_fields(self) -> Tuple[str, ...]:
        return (self.column,)


class RelationScope(ScopeRule):
    """
    Tenant inherited through a chain of many-to-one relations.

    RelationScope(('application', 'job')) on Interview compiles to
    Interview.application.has(Application.job.has(Job.tenant_id == :bound)).
    """

    kind = "transitive"

    def __init__(self, path: Tuple[str, ...], column: str = TENANT_COLUMN):
        if not path:
            raise ValueError("RelationScope requires at least one relation hop")
        self.path = tuple(path)
        self.column = column

    @property
    def hops(self) -> int:
        return len(self.path)

    def _walk(self, model: Type):
        attrs = []
        current = model
        for name in self.path:
            attr = getattr(current, name)
            attrs.append(attr)
            current = attr.property.mapper.class_
        return attrs, current

    def anchor(self, model: Type) -> Type:
        """The model that finally carries tenant_id."""
        return self._walk(model)[1]

    def parent_relation(self, model: Type) -> str:
        """Name of the first-hop relation (the scope-defining parent)."""
        return self.path[0]

    def predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        attrs, anchor = self._walk(model)
        clause = getattr(anchor, self.column) == tenant_id
        for attr in reversed(attrs):
            clause = attr.has(clause)
        return clause

    def stamp(self, model: Type, data: Dict[str, Any], tenant_id: str) -> Dict[str, Any]:
        stamped = dict(data)
        if self.column in stamped:
            logger.warning(
                "Ignoring caller-supplied %s on %s create; tenant is inherited via %s",
                self.column, model.__name__, ".".join(self.path)
            )
            stamped.pop(self.column)
        return stamped

    def protected_fields(self) -> Tuple[str, ...]:
        return (self.column,)

    def __repr__(self) -> str:
        return f"RelationScope({'.'.join(self.path)}.{self.column})"


class TenantOrGlobalScope(ScopeRule):
    """
    (tenant_id = :bound) OR (<flag> = true)

    Shared rows are readable by every tenant but only tenant-local rows are
    writable.
    """

    kind = "dual"

    def __init__(self, flag: str, column: str = TENANT_COLUMN):
        self.flag = flag
        self.column = column

    def predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        return or_(
            getattr(model, self.column) == tenant_id,
            getattr(model, self.flag) == true()
        )

    def writable_predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        return getattr(model, self.column) == tenant_id

    def local_predicate(self, model: Type, tenant_id: str) -> ColumnElement:
        return getattr(model, self.column) == tenant_id

    def stamp(self, model: Type, data: Dict[str, Any], tenant_id: str) -> Dict[str, Any]:
        stamped = dict(data)
        supplied = stamped.get(self.column)
        if supplied is not None and supplied != tenant_id:
            logger.warning(
                "Ignoring caller-supplied %s=%r on %s create; using bound tenant",
                self.column, supplied, model.__name__
            )
        if stamped.get(self.flag):
            logger.warning(
                "Ignoring %s=True on %s create; shared rows cannot be created through a tenant scope",
                self.flag, model.__name__
            )
        stamped[self.column] = tenant_id
        stamped[self.flag] = False
        return stamped

    def protected_fields(self) -> Tuple[str, ...]:
        return (self.column, self.flag)

    def __repr__(self) -> str:
        return f"TenantOrGlobalScope({self.column} or {self.flag})"


_direct = DirectScope()

TENANT_SCOPE_RULES: Dict[Type, ScopeRule] = {
    # Direct
    Job: _direct,
    Candidate: _direct,
    ClientCompany: _direct,
    Tag: _direct,
    Note: _direct,
    SentEmail: _direct,
    ActivityLog: _direct,
    ScoringEvent: _direct,
    SavedView: _direct,
    AnalyticsSnapshot: _direct,
    CareerSiteSettings: _direct,
    CareerPage: _direct,
    CandidateSkill: _direct,
    JobSkill: _direct,
    # Transitive
    Application: RelationScope(('job',)),
    ApplicationEvent: RelationScope(('application', 'job')),
    Interview: RelationScope(('application', 'job')),
    InterviewParticipant: RelationScope(('interview', 'application', 'job')),
    CompetencyRating: RelationScope(('interview', 'application', 'job')),
    # Dual-scope
    Skill: TenantOrGlobalScope('is_global'),
    CareerTheme: TenantOrGlobalScope('is_system'),
}


def entity_name(model: Type) -> str:
    """CareerSiteSettings -> career_site_settings"""
    return re.sub(r'(?<!^)(?=[A-Z])', '_', model.__name__).lower()


ENTITY_MODELS: Dict[str, Type] = {entity_name(m): m for m in TENANT_SCOPE_RULES}


def scope_rule_for(model: Type) -> ScopeRule:
    rule = TENANT_SCOPE_RULES.get(model)
    if rule is None:
        raise TenantScopeError(
            f"{model.__name__} is not a tenant-scoped entity and cannot be accessed through a tenant gateway"
        )
    return rule


def primary_key_name(model: Type) -> str:
    pk = inspect(model).primary_key
    if len(pk) != 1:
        raise TenantScopeError(f"{model.__name__} must have a single-column primary key")
    return pk[0].key


def describe_rules() -> Dict[str, str]:
    """Human-readable {entity: rule} map, used by the CLI and in logs."""
    return {entity_name(m): repr(r) for m, r in TENANT_SCOPE_RULES.items()}


def find_rule(name: str) -> Optional[ScopeRule]:
    model = ENTITY_MODELS.get(name)
    return TENANT_SCOPE_RULES.get(model) if model is not None else None
