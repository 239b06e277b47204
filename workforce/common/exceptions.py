"""Custom exceptions and JSON error handlers.

Every error body carries a human-readable ``error`` string alongside the
RFC 7807 problem-detail fields.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://workforce.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → problem-detail JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class ValidationException(AppException):
    """400: business-rule violations."""

    def __init__(
        self,
        detail: str,
        errors: Optional[dict[str, list[str]]] = None,
    ) -> None:
        super().__init__(
            status_code=400,
            error_type="validation-error",
            title="Validation Error",
            detail=detail,
            errors=errors,
        )


class UnauthorizedException(AppException):
    """401: missing or bad credentials."""

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class ForbiddenException(AppException):
    """403: insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class NotFoundException(AppException):
    """404: entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409: unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


# ── Problem-detail builder ──────────────────────────────────────────

def _problem(
    request: Request,
    *,
    status: int,
    error_type: str,
    title: str,
    detail: str,
    errors: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "error": detail,
        "type": f"{BASE_ERROR_URI}/{error_type}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": str(request.url.path),
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(
        status_code=status,
        content=body,
        media_type="application/problem+json",
    )


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return _problem(
        request,
        status=exc.status_code,
        error_type=exc.error_type,
        title=exc.title,
        detail=exc.detail,
        errors=exc.errors,
    )


async def _handle_http_exception(
    request: Request,
    exc: HTTPException,
) -> JSONResponse:
    response = _problem(
        request,
        status=exc.status_code,
        error_type="http-error",
        title="HTTP Error",
        detail=str(exc.detail),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return _problem(
        request,
        status=400,
        error_type="validation-error",
        title="Validation Error",
        detail="Request validation failed.",
        errors=field_errors,
    )


async def _handle_integrity_error(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
    return _problem(
        request,
        status=409,
        error_type="conflict",
        title="Conflict",
        detail="A record with the same unique value already exists.",
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _handle_http_exception)        # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _handle_integrity_error)      # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
