"""
asyncio twin of the tenant gateway, for request handlers running on an
AsyncSession (asyncpg in production, aiosqlite in tests).

Same surface as ScopedGateway with awaitable operations. An optional
per-query timeout (seconds) wraps each statement in asyncio.wait_for; if the
surrounding task is cancelled the in-flight query is cancelled with it.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Tenant
from database.tenancy.gateway import normalize_tenant_id
from database.tenancy.rules import ENTITY_MODELS, entity_name
from database.tenancy.statements import ScopedStatements

logger = logging.getLogger(__name__)


class AsyncScopedModel:
    def __init__(self, session: AsyncSession, model: Type, tenant_id: str, timeout: Optional[float] = None):
        self._session = session
        self._stmts = ScopedStatements(model, tenant_id)
        self._timeout = timeout

    @property
    def model(self) -> Type:
        return self._stmts.model

    async def _execute(self, stmt):
        if self._timeout is None:
            return await self._session.execute(stmt)
        return await asyncio.wait_for(self._session.execute(stmt), timeout=self._timeout)

    async def find_many(self, *criteria, where: Optional[Mapping[str, Any]] = None, order_by=None,
                        limit: Optional[int] = None, offset: Optional[int] = None,
                        options: Sequence = ()) -> List[Any]:
        result = await self._execute(self._stmts.select_stmt(criteria, where, order_by, limit, offset, options))
        rows = list(result.scalars().all())
        logger.debug("find_many %s tenant=%s -> %d rows", self._stmts.name, self._stmts.tenant_id, len(rows))
        return rows

    async def find_first(self, *criteria, where: Optional[Mapping[str, Any]] = None, order_by=None,
                         options: Sequence = ()) -> Optional[Any]:
        result = await self._execute(self._stmts.select_stmt(criteria, where, order_by, 1, None, options))
        return result.scalars().first()

    async def find_preferred(self, *criteria, where: Optional[Mapping[str, Any]] = None, order_by=None,
                             options: Sequence = ()) -> Optional[Any]:
        result = await self._execute(self._stmts.preferred_stmt(criteria, where, order_by, options))
        return result.scalars().first()

    async def count(self, *criteria, where: Optional[Mapping[str, Any]] = None) -> int:
        result = await self._execute(self._stmts.count_stmt(criteria, where))
        return int(result.scalar_one())

    async def aggregate(self, *criteria, where: Optional[Mapping[str, Any]] = None, avg: Sequence[str] = (),
                        sum: Sequence[str] = (), min: Sequence[str] = (), max: Sequence[str] = (),
                        count: bool = False) -> Dict[str, Any]:
        stmt = self._stmts.aggregate_stmt(criteria, where, avg=avg, sum=sum, min=min, max=max, count=count)
        result = await self._execute(stmt)
        return dict(result.one()._mapping)

    async def find_unique(self, *args, **kwargs):
        raise self._stmts.unsafe_lookup('find_unique')

    async def get(self, *args, **kwargs):
        raise self._stmts.unsafe_lookup('get')

    async def create(self, **data) -> Any:
        stamped, checks = self._stmts.prepare_create(data)
        await self._verify_references(checks)
        row = self.model(**stamped)
        self._session.add(row)
        await self._session.flush()
        return row

    async def create_many(self, rows: Iterable[Mapping[str, Any]]) -> List[Any]:
        prepared = self._stmts.prepare_create_many(rows)
        for _, checks in prepared:
            await self._verify_references(checks)
        created = [self.model(**stamped) for stamped, _ in prepared]
        if created:
            self._session.add_all(created)
            await self._session.flush()
        return created

    async def update_many(self, *criteria, where: Optional[Mapping[str, Any]] = None,
                          values: Optional[Mapping[str, Any]] = None) -> int:
        cleaned, checks = self._stmts.prepare_update(values or {})
        if not cleaned:
            return 0
        await self._verify_references(checks)
        result = await self._execute(self._stmts.update_stmt(criteria, where, cleaned))
        return result.rowcount

    async def delete_many(self, *criteria, where: Optional[Mapping[str, Any]] = None) -> int:
        result = await self._execute(self._stmts.delete_stmt(criteria, where))
        return result.rowcount

    async def _verify_references(self, checks) -> None:
        for check in checks:
            result = await self._execute(check.statement)
            if result.first() is None:
                raise check.failure(self._stmts.tenant_id)


class AsyncScopedGateway:
    def __init__(self, session: AsyncSession, tenant_id: str, timeout: Optional[float] = None):
        self._tenant_id = normalize_tenant_id(tenant_id)
        self._session = session
        self._timeout = timeout
        self._models: Dict[str, AsyncScopedModel] = {}

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def for_model(self, model: Type) -> AsyncScopedModel:
        name = entity_name(model)
        if name not in self._models:
            self._models[name] = AsyncScopedModel(self._session, model, self._tenant_id, self._timeout)
        return self._models[name]

    async def current_tenant(self) -> Optional[Tenant]:
        return await self._session.get(Tenant, self._tenant_id)

    def __getattr__(self, name: str) -> AsyncScopedModel:
        if name.startswith('_'):
            raise AttributeError(name)
        model = ENTITY_MODELS.get(name)
        if model is None:
            raise AttributeError(f"'{name}' is not a tenant-scoped entity")
        return self.for_model(model)

    def __repr__(self) -> str:
        return f"<AsyncScopedGateway tenant={self._tenant_id}>"


def open_async_tenant_scope(session: AsyncSession, tenant_id: str,
                            timeout: Optional[float] = None) -> AsyncScopedGateway:
    return AsyncScopedGateway(session, tenant_id, timeout=timeout)
