#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

from functools import lru_cache
from typing import AsyncGenerator, Generator, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session, sessionmaker

from database.database import build_async_sessionmaker
from database.tenancy import AsyncScopedGateway, ScopedGateway, open_async_tenant_scope, open_tenant_scope
from .config import get_config
from .tenancy import (
    NoActiveTenant,
    NotAuthenticated,
    SessionContext,
    TenantAccessDenied,
    resolve_active_tenant,
)


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, url: Optional[str] = None):
        config = get_config()
        self.engine = create_engine(
            url or config.database.url,
            pool_pre_ping=config.database.pool_pre_ping,  # Verify connections before using
        )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine
        )

    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session.

        Yields:
            Session: SQLAlchemy database session.
        """
        session = self.SessionLocal()
        try:
            yield session
        finally:
            session.close()


@lru_cache()
def get_db_manager() -> DatabaseManager:
    """Created on first use so importing the app never opens a connection."""
    return DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session.

    Usage:
        @app.get("/endpoint")
        def my_endpoint(db: Session = Depends(get_db)):
            ...

    Yields:
        Session: Database session that will be automatically closed.
    """
    yield from get_db_manager().get_session()


@lru_cache()
def get_async_session_factory() -> async_sessionmaker:
    """asyncpg session factory, built on first use from database.url or database.async_url."""
    return build_async_sessionmaker(get_config().database.resolved_async_url())


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an AsyncSession for async routes."""
    async with get_async_session_factory()() as session:
        yield session


def get_session_context(request: Request) -> Optional[SessionContext]:
    """SessionContext placed on the request by the upstream auth middleware."""
    return getattr(request.state, "session_context", None)


def get_active_tenant_id(
    request: Request,
    context: Optional[SessionContext] = Depends(get_session_context)
) -> str:
    """Resolve the tenant for this request from the tenant header and session roles."""
    requested = request.headers.get(get_config().web.tenant_header)
    try:
        return resolve_active_tenant(context, requested)
    except NotAuthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except NoActiveTenant as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TenantAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))


def get_tenant_gateway(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_active_tenant_id)
) -> ScopedGateway:
    """Tenant-scoped gateway over the request's session."""
    return open_tenant_scope(db, tenant_id, timeout=get_config().database.query_timeout_seconds)


def get_async_tenant_gateway(
    db: AsyncSession = Depends(get_async_db),
    tenant_id: str = Depends(get_active_tenant_id)
) -> AsyncScopedGateway:
    """
    asyncio gateway for async routes.

    Each statement is bounded by database.query_timeout_seconds and is
    cancelled together with the request task.
    """
    return open_async_tenant_scope(db, tenant_id, timeout=get_config().database.query_timeout_seconds)


def require_settings_access(
    tenant_id: str = Depends(get_active_tenant_id),
    context: Optional[SessionContext] = Depends(get_session_context)
) -> str:
    """Only owners, admins and super admins may change scoring settings."""
    if context is None or not context.can_manage_settings(tenant_id):
        raise HTTPException(status_code=403, detail="Insufficient role to change scoring settings")
    return tenant_id
