#!/usr/bin/env python3
"""
Tenant Isolation Gateway.

A ScopedGateway wraps a caller-owned SQLAlchemy Session and is bound to exactly
one tenant for its whole lifetime. Every read and write issued through it
carries that tenant's predicate, whether the entity stores tenant_id itself,
inherits it through its job (applications, interviews, ...), or is shared
across tenants (global skills, system themes).

    with db_session_scope() as session:
        gateway = open_tenant_scope(session, tenant_id)
        jobs = gateway.job.find_many(where={"status": "open"})

The gateway never begins, commits or rolls back a transaction. With a
`timeout` (seconds) each statement runs under a transaction-local
PostgreSQL statement_timeout; other backends ignore it.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database.models import Tenant
from database.tenancy.errors import MissingTenantError
from database.tenancy.rules import ENTITY_MODELS, entity_name
from database.tenancy.statements import ScopedStatements

logger = logging.getLogger(__name__)


def normalize_tenant_id(tenant_id: Any) -> str:
    if tenant_id is None or not str(tenant_id).strip():
        raise MissingTenantError("A tenant id is required to open a tenant scope")
    return str(tenant_id).strip()


class ScopedModel:
    """Tenant-scoped operations for one entity."""

    def __init__(self, session: Session, model: Type, tenant_id: str, timeout: Optional[float] = None):
        self._session = session
        self._stmts = ScopedStatements(model, tenant_id)
        self._timeout = timeout

    @property
    def model(self) -> Type:
        return self._stmts.model

    def _execute(self, stmt):
        if self._timeout is not None and self._session.get_bind().dialect.name == 'postgresql':
            # is_local=true: the setting ends with the caller's transaction
            millis = str(max(1, int(self._timeout * 1000)))
            self._session.execute(select(func.set_config('statement_timeout', millis, True)))
        return self._session.execute(stmt)

    def find_many(self, *criteria, where: Optional[Mapping[str, Any]] = None, order_by=None,
                  limit: Optional[int] = None, offset: Optional[int] = None, options: Sequence = ()) -> List[Any]:
        stmt = self._stmts.select_stmt(criteria, where, order_by, limit, offset, options)
        rows = list(self._execute(stmt).scalars().all())
        logger.debug("find_many %s tenant=%s -> %d rows", self._stmts.name, self._stmts.tenant_id, len(rows))
        return rows

    def find_first(self, *criteria, where: Optional[Mapping[str, Any]] = None, order_by=None,
                   options: Sequence = ()) -> Optional[Any]:
        stmt = self._stmts.select_stmt(criteria, where, order_by, 1, None, options)
        row = self._execute(stmt).scalars().first()
        logger.debug("find_first %s tenant=%s -> %s", self._stmts.name, self._stmts.tenant_id,
                     "hit" if row is not None else "miss")
        return row

    def find_preferred(self, *criteria, where: Optional[Mapping[str, Any]] = None, order_by=None,
                       options: Sequence = ()) -> Optional[Any]:
        """First match, preferring the tenant's own row over a shared one."""
        stmt = self._stmts.preferred_stmt(criteria, where, order_by, options)
        return self._execute(stmt).scalars().first()

    def count(self, *criteria, where: Optional[Mapping[str, Any]] = None) -> int:
        return int(self._execute(self._stmts.count_stmt(criteria, where)).scalar_one())

    def aggregate(self, *criteria, where: Optional[Mapping[str, Any]] = None, avg: Sequence[str] = (),
                  sum: Sequence[str] = (), min: Sequence[str] = (), max: Sequence[str] = (),
                  count: bool = False) -> Dict[str, Any]:
        stmt = self._stmts.aggregate_stmt(criteria, where, avg=avg, sum=sum, min=min, max=max, count=count)
        return dict(self._execute(stmt).one()._mapping)

    def find_unique(self, *args, **kwargs):
        raise self._stmts.unsafe_lookup('find_unique')

    def get(self, *args, **kwargs):
        raise self._stmts.unsafe_lookup('get')

    def create(self, **data) -> Any:
        stamped, checks = self._stmts.prepare_create(data)
        self._verify_references(checks)
        row = self.model(**stamped)
        self._session.add(row)
        self._session.flush()
        logger.debug("create %s tenant=%s id=%s", self._stmts.name, self._stmts.tenant_id,
                     getattr(row, self._stmts.pk.key))
        return row

    def create_many(self, rows: Iterable[Mapping[str, Any]]) -> List[Any]:
        """
        Insert several rows in one flush.

        Each row is stamped and its references verified before anything is
        added, so one out-of-scope row rejects the whole batch.
        """
        prepared = self._stmts.prepare_create_many(rows)
        for _, checks in prepared:
            self._verify_references(checks)
        created = [self.model(**stamped) for stamped, _ in prepared]
        if created:
            self._session.add_all(created)
            self._session.flush()
        logger.debug("create_many %s tenant=%s -> %d rows", self._stmts.name, self._stmts.tenant_id, len(created))
        return created

    def update_many(self, *criteria, where: Optional[Mapping[str, Any]] = None,
                    values: Optional[Mapping[str, Any]] = None) -> int:
        cleaned, checks = self._stmts.prepare_update(values or {})
        if not cleaned:
            return 0
        self._verify_references(checks)
        result = self._execute(self._stmts.update_stmt(criteria, where, cleaned))
        logger.debug("update_many %s tenant=%s -> %d rows", self._stmts.name, self._stmts.tenant_id, result.rowcount)
        return result.rowcount

    def delete_many(self, *criteria, where: Optional[Mapping[str, Any]] = None) -> int:
        result = self._execute(self._stmts.delete_stmt(criteria, where))
        logger.debug("delete_many %s tenant=%s -> %d rows", self._stmts.name, self._stmts.tenant_id, result.rowcount)
        return result.rowcount

    def _verify_references(self, checks) -> None:
        for check in checks:
            if self._execute(check.statement).first() is None:
                raise check.failure(self._stmts.tenant_id)

    def __repr__(self) -> str:
        return f"<ScopedModel {self._stmts.name} tenant={self._stmts.tenant_id}>"


class ScopedGateway:
    """
    Entry point for all tenant data access.

    Entities are exposed as snake_case attributes (gateway.job,
    gateway.application, gateway.career_site_settings, ...). There is no
    accessor for the underlying session.
    """

    def __init__(self, session: Session, tenant_id: str, timeout: Optional[float] = None):
        self._tenant_id = normalize_tenant_id(tenant_id)
        self._session = session
        self._timeout = timeout
        self._models: Dict[str, ScopedModel] = {}

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def for_model(self, model: Type) -> ScopedModel:
        name = entity_name(model)
        if name not in self._models:
            self._models[name] = ScopedModel(self._session, model, self._tenant_id, self._timeout)
        return self._models[name]

    def current_tenant(self) -> Optional[Tenant]:
        return self._session.get(Tenant, self._tenant_id)

    def __getattr__(self, name: str) -> ScopedModel:
        if name.startswith('_'):
            raise AttributeError(name)
        model = ENTITY_MODELS.get(name)
        if model is None:
            raise AttributeError(f"'{name}' is not a tenant-scoped entity")
        return self.for_model(model)

    def __repr__(self) -> str:
        return f"<ScopedGateway tenant={self._tenant_id}>"


def open_tenant_scope(session: Session, tenant_id: str, timeout: Optional[float] = None) -> ScopedGateway:
    """Bind a gateway to `tenant_id`. Does not check that the tenant exists."""
    return ScopedGateway(session, tenant_id, timeout=timeout)

