"""
Filter composition for tenant-scoped queries.

Callers describe what they want either as SQLAlchemy clauses
(``Job.status == "open"``, ``or_(...)``) or as a ``where`` mapping:

    {"status": "open"}                      -> status = 'open'
    {"stage": ["applied", "screen"]}        -> stage IN (...)
    {"candidate_id": None}                  -> candidate_id IS NULL
    {"match_score": {"gte": 60}}            -> match_score >= 60
    {"job.status": "open"}                  -> EXISTS(job WHERE status = 'open')
    {"job": {"client_company_id": "c-1"}}   -> same, nested form

The tenant predicate is always ANDed on as the outermost conjunct, so nothing
here can widen a query past the bound tenant.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Type

from sqlalchemy import and_, inspect
from sqlalchemy.sql.elements import ClauseElement, ColumnElement

from database.tenancy.errors import InvalidFilterError

logger = logging.getLogger(__name__)

_OPERATORS = {
    'equals': lambda col, v: col.is_(None) if v is None else col == v,
    'not': lambda col, v: col.is_not(None) if v is None else col != v,
    'in': lambda col, v: col.in_(list(v)),
    'not_in': lambda col, v: col.not_in(list(v)),
    'gt': lambda col, v: col > v,
    'gte': lambda col, v: col >= v,
    'lt': lambda col, v: col < v,
    'lte': lambda col, v: col <= v,
    'contains': lambda col, v: col.contains(v),
}


def _column_clause(model: Type, column_name: str, value: Any) -> ColumnElement:
    col = getattr(model, column_name)
    if value is None:
        return col.is_(None)
    if isinstance(value, Mapping):
        if not value:
            raise InvalidFilterError(f"Empty operator mapping for {model.__name__}.{column_name}")
        parts = []
        for op, operand in value.items():
            fn = _OPERATORS.get(op)
            if fn is None:
                raise InvalidFilterError(
                    f"Unknown filter operator '{op}' for {model.__name__}.{column_name}"
                )
            parts.append(fn(col, operand))
        return parts[0] if len(parts) == 1 else and_(*parts)
    if isinstance(value, (list, tuple, set, frozenset)):
        return col.in_(list(value))
    return col == value


def _field_clause(model: Type, path: List[str], value: Any) -> ColumnElement:
    mapper = inspect(model)
    head, rest = path[0], path[1:]

    if head in mapper.relationships:
        rel = mapper.relationships[head]
        target = rel.mapper.class_
        if rest:
            inner = _field_clause(target, rest, value)
        elif isinstance(value, Mapping):
            inner = build_where(target, value)
        else:
            raise InvalidFilterError(
                f"Relation filter '{model.__name__}.{head}' needs a field or a nested mapping"
            )
        attr = getattr(model, head)
        return attr.any(inner) if rel.uselist else attr.has(inner)

    if head in mapper.columns:
        if rest:
            raise InvalidFilterError(
                f"'{model.__name__}.{head}' is a column and cannot be traversed"
            )
        return _column_clause(model, head, value)

    raise InvalidFilterError(f"Unknown filter field '{head}' on {model.__name__}")


def build_where(model: Type, where: Optional[Mapping[str, Any]]) -> Optional[ColumnElement]:
    """Translate a ``where`` mapping into a single clause (or None if empty)."""
    if not where:
        return None
    if not isinstance(where, Mapping):
        raise InvalidFilterError(f"where= must be a mapping, got {type(where).__name__}")

    parts = []
    for key, value in where.items():
        if not isinstance(key, str) or not key:
            raise InvalidFilterError(f"Invalid filter key {key!r} on {model.__name__}")
        parts.append(_field_clause(model, key.split('.'), value))
    return parts[0] if len(parts) == 1 else and_(*parts)


def caller_clauses(model: Type, criteria: Iterable[Any], where: Optional[Mapping[str, Any]]) -> List[ColumnElement]:
    parts = []
    for criterion in criteria:
        if isinstance(criterion, Mapping):
            raise InvalidFilterError("Pass filter mappings via where=, not positionally")
        if not isinstance(criterion, ClauseElement):
            raise InvalidFilterError(
                f"Filter criteria must be SQL expressions, got {type(criterion).__name__}"
            )
        parts.append(criterion)
    where_clause = build_where(model, where)
    if where_clause is not None:
        parts.append(where_clause)
    return parts


def compose_scoped(tenant_predicate: ColumnElement, parts: List[ColumnElement]) -> ColumnElement:
    """AND(AND(caller parts...), tenant_predicate)"""
    if not parts:
        return tenant_predicate
    return and_(and_(*parts), tenant_predicate)
