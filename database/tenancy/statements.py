"""
Statement building shared by the sync and async gateways.

Nothing here touches a session: every method returns a SQLAlchemy statement
(or the inputs for one) with the tenant predicate already applied, so the two
gateways differ only in how they execute.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.sql.elements import ClauseElement, ColumnElement

from database.tenancy.errors import (
    CrossTenantReferenceError, InvalidFilterError, TenantScopeError, UnsafeLookupError,
)
from database.tenancy.filters import caller_clauses, compose_scoped
from database.tenancy.rules import (
    TENANT_SCOPE_RULES, RelationScope, TenantOrGlobalScope,
    primary_key_name, scope_rule_for,
)

logger = logging.getLogger(__name__)

_AGGREGATES = {
    'avg': func.avg,
    'sum': func.sum,
    'min': func.min,
    'max': func.max,
}


def _model_for_table(table) -> Optional[Type]:
    for model in TENANT_SCOPE_RULES:
        if model.__table__ is table:
            return model
    return None


class ReferenceCheck:
    """A foreign key value that must resolve to a row visible in the scope."""

    def __init__(self, field: str, parent: Type, value: Any, statement):
        self.field = field
        self.parent = parent
        self.value = value
        self.statement = statement

    def failure(self, tenant_id: str) -> CrossTenantReferenceError:
        return CrossTenantReferenceError(
            f"{self.field}={self.value!r} does not reference a {self.parent.__name__} "
            f"visible to tenant {tenant_id}"
        )


class ScopedStatements:
    """Builds tenant-scoped statements for one entity and one bound tenant."""

    def __init__(self, model: Type, tenant_id: str):
        self.model = model
        self.rule = scope_rule_for(model)
        self.tenant_id = tenant_id
        self.pk = getattr(model, primary_key_name(model))

    @property
    def name(self) -> str:
        return self.model.__name__

    @property
    def is_dual_scope(self) -> bool:
        return isinstance(self.rule, TenantOrGlobalScope)

    # ----- predicates -----

    def predicate(self) -> ColumnElement:
        return self.rule.predicate(self.model, self.tenant_id)

    def where_clause(self, criteria: Iterable[Any], where: Optional[Mapping[str, Any]], writable: bool = False) -> ColumnElement:
        parts = caller_clauses(self.model, criteria, where)
        tenant_pred = (
            self.rule.writable_predicate(self.model, self.tenant_id) if writable else self.predicate()
        )
        return compose_scoped(tenant_pred, parts)

    # ----- reads -----

    def _order_by(self, order_by) -> List[Any]:
        if order_by is None:
            return []
        if isinstance(order_by, (str, ClauseElement)):
            order_by = [order_by]
        clauses = []
        for item in order_by:
            if isinstance(item, str):
                descending = item.startswith('-')
                field = item.lstrip('-')
                col = self.model.__table__.columns.get(field)
                if col is None:
                    raise InvalidFilterError(f"Unknown order_by field '{field}' on {self.name}")
                attr = getattr(self.model, field)
                clauses.append(attr.desc() if descending else attr.asc())
            else:
                clauses.append(item)
        return clauses

    def select_stmt(self, criteria, where=None, order_by=None, limit=None, offset=None, options=()):
        stmt = select(self.model).where(self.where_clause(criteria, where))
        ordering = self._order_by(order_by)
        if ordering:
            stmt = stmt.order_by(*ordering)
        if options:
            stmt = stmt.options(*options)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt

    def count_stmt(self, criteria, where=None):
        return select(func.count(self.pk)).where(self.where_clause(criteria, where))

    def aggregate_stmt(self, criteria, where=None, avg: Sequence[str] = (), sum: Sequence[str] = (),
                       min: Sequence[str] = (), max: Sequence[str] = (), count: bool = False):
        columns = []
        requested = {'avg': avg, 'sum': sum, 'min': min, 'max': max}
        for op, fields in requested.items():
            if isinstance(fields, str):
                fields = [fields]
            for field in fields:
                if self.model.__table__.columns.get(field) is None:
                    raise InvalidFilterError(f"Unknown aggregate field '{field}' on {self.name}")
                columns.append(_AGGREGATES[op](getattr(self.model, field)).label(f"{op}_{field}"))
        if count:
            columns.append(func.count(self.pk).label('count'))
        if not columns:
            raise InvalidFilterError(f"aggregate() on {self.name} requested no aggregates")
        return select(*columns).where(self.where_clause(criteria, where))

    def preferred_stmt(self, criteria, where=None, order_by=None, options=()):
        if not self.is_dual_scope:
            raise TenantScopeError(f"find_preferred() is only defined for shared entities, not {self.name}")
        local_first = case((self.rule.local_predicate(self.model, self.tenant_id), 0), else_=1)
        stmt = select(self.model).where(self.where_clause(criteria, where))
        stmt = stmt.order_by(local_first, *self._order_by(order_by), self.pk)
        if options:
            stmt = stmt.options(*options)
        return stmt.limit(1)

    def unsafe_lookup(self, operation: str) -> UnsafeLookupError:
        return UnsafeLookupError(
            f"{self.name}.{operation}() looks rows up by unique key alone and cannot carry the "
            f"tenant predicate; use find_first(where={{...}}) instead"
        )

    # ----- writes -----

    def reference_checks(self, data: Mapping[str, Any], creating: bool) -> List[ReferenceCheck]:
        """Statements that must each return a row for the write to stay in scope."""
        checks = []
        required_parent = None
        if isinstance(self.rule, RelationScope):
            rel = getattr(self.model, self.rule.parent_relation(self.model)).property
            required_parent = [c.key for c in rel.local_columns][0]
            if creating and data.get(required_parent) is None:
                raise CrossTenantReferenceError(
                    f"{self.name} must reference its parent via {required_parent}"
                )

        for column in self.model.__table__.columns:
            if column.key not in data:
                continue
            value = data[column.key]
            if value is None:
                if column.key == required_parent:
                    raise CrossTenantReferenceError(f"{self.name}.{required_parent} cannot be cleared")
                continue
            for fk in column.foreign_keys:
                parent = _model_for_table(fk.column.table)
                if parent is None:
                    continue
                parent_rule = TENANT_SCOPE_RULES[parent]
                parent_pk = getattr(parent, primary_key_name(parent))
                stmt = select(parent_pk).where(
                    parent_pk == value, parent_rule.predicate(parent, self.tenant_id)
                )
                checks.append(ReferenceCheck(column.key, parent, value, stmt))
        return checks

    def prepare_create(self, data: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[ReferenceCheck]]:
        # Stamp before the field check: transitive entities have no tenant_id column
        stamped = self.rule.stamp(self.model, data, self.tenant_id)
        self._check_fields(stamped)
        return stamped, self.reference_checks(stamped, creating=True)

    def prepare_create_many(self, rows: Iterable[Mapping[str, Any]]) -> List[Tuple[Dict[str, Any], List[ReferenceCheck]]]:
        """Every row is stamped and checked before any is inserted."""
        return [self.prepare_create(row) for row in rows]

    def prepare_update(self, values: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[ReferenceCheck]]:
        if not values:
            raise InvalidFilterError(f"update_many() on {self.name} requires values")
        cleaned = dict(values)
        for field in self.rule.protected_fields():
            if field in cleaned:
                logger.warning("Dropping %s from %s update; tenant ownership is not writable", field, self.name)
                cleaned.pop(field)
        self._check_fields(cleaned)
        if self.pk.key in cleaned:
            logger.warning("Dropping primary key from %s update", self.name)
            cleaned.pop(self.pk.key)
        return cleaned, self.reference_checks(cleaned, creating=False)

    def _scoped_ids(self, criteria, where):
        return select(self.pk).where(self.where_clause(criteria, where, writable=True)).correlate(None)

    def update_stmt(self, criteria, where, values: Mapping[str, Any]):
        return (
            update(self.model)
            .where(self.pk.in_(self._scoped_ids(criteria, where)))
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )

    def delete_stmt(self, criteria, where):
        return (
            delete(self.model)
            .where(self.pk.in_(self._scoped_ids(criteria, where)))
            .execution_options(synchronize_session="fetch")
        )

    def _check_fields(self, data: Mapping[str, Any]) -> None:
        columns = self.model.__table__.columns
        unknown = [k for k in data if columns.get(k) is None]
        if unknown:
            raise InvalidFilterError(f"Unknown field(s) for {self.name}: {', '.join(sorted(unknown))}")
