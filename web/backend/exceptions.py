#!/usr/bin/env python3
"""
Custom exceptions and error handlers for the web application.
"""

import asyncio
import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from core.scoring.errors import ApplicationNotFoundError, JobNotFoundError, ScoringConfigError
from database.tenancy.errors import MissingTenantError, TenantScopeError

logger = logging.getLogger(__name__)


class ServiceException(Exception):
    """Base exception for service layer errors."""
    pass


class JobNotFoundException(ServiceException):
    """Raised when a job is not found in the active tenant."""
    pass


class ApplicationNotFoundException(ServiceException):
    """Raised when an application is not found in the active tenant."""
    pass


class TenantNotFoundException(ServiceException):
    """Raised when the active tenant id does not match a tenant row."""
    pass


class InvalidScoringConfigException(ServiceException):
    """Raised when submitted scoring settings are invalid; nothing is saved."""
    pass


def _error_response(status_code: int, error: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "type": error_type
        }
    )


async def service_exception_handler(
    request: Request,
    exc: ServiceException
) -> JSONResponse:
    """
    Handle service layer exceptions.

    Args:
        request: The FastAPI request.
        exc: The service exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = 500
    if isinstance(exc, (JobNotFoundException, ApplicationNotFoundException, TenantNotFoundException)):
        status_code = 404
    elif isinstance(exc, InvalidScoringConfigException):
        status_code = 400

    if status_code >= 500:
        logger.error(f"Service error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"Service error in {request.url.path}: {exc}")

    return _error_response(status_code, str(exc), exc.__class__.__name__)


async def not_found_handler(request: Request, exc: LookupError) -> JSONResponse:
    """JobNotFoundError / ApplicationNotFoundError raised straight from core."""
    return _error_response(404, str(exc), exc.__class__.__name__)


async def scoring_config_error_handler(request: Request, exc: ScoringConfigError) -> JSONResponse:
    """
    A stored config that no longer validates surfaced while scoring.

    Settings saves convert ScoringConfigError to InvalidScoringConfigException
    (400) before it reaches here.
    """
    logger.error(f"Invalid stored scoring config in {request.url.path}: {exc}")
    return _error_response(500, str(exc), exc.__class__.__name__)


async def tenant_scope_error_handler(request: Request, exc: TenantScopeError) -> JSONResponse:
    """Isolation violations are programmer errors: log loudly, reveal nothing."""
    if isinstance(exc, MissingTenantError):
        return _error_response(400, "No active tenant", exc.__class__.__name__)
    logger.error(f"Tenant scope violation in {request.url.path}: {exc}", exc_info=True)
    return _error_response(500, "Internal server error", "InternalError")


async def query_timeout_handler(request: Request, exc: asyncio.TimeoutError) -> JSONResponse:
    """A tenant-gateway query ran past database.query_timeout_seconds."""
    logger.warning(f"Query timed out in {request.url.path}")
    return _error_response(504, "Query timed out", "QueryTimeout")


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions with consistent format.
    """
    return _error_response(exc.status_code, exc.detail, "HTTPException")


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.
    """
    logger.exception(f"Unexpected error in {request.url.path}")
    return _error_response(500, "Internal server error", "InternalError")


def register_exception_handlers(app) -> None:
    app.add_exception_handler(ServiceException, service_exception_handler)
    app.add_exception_handler(JobNotFoundError, not_found_handler)
    app.add_exception_handler(ApplicationNotFoundError, not_found_handler)
    app.add_exception_handler(ScoringConfigError, scoring_config_error_handler)
    app.add_exception_handler(TenantScopeError, tenant_scope_error_handler)
    app.add_exception_handler(asyncio.TimeoutError, query_timeout_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
