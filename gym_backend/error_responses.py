"""
Standardized error response catalog for API consistency.
All HTTP error responses follow the RFC 7807 Problem Details format.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Application error codes for client-side handling."""

    # 4xx Client Errors
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"

    # 5xx Server Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorDetail(BaseModel):
    """RFC 7807 Problem Details response."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: list[dict[str, Any]] | None = None


PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"


class AppHTTPException(HTTPException):
    """Application-specific HTTP exception with error code."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


# Pre-defined error factories
def unauthorized(detail: str = "Authentication required") -> AppHTTPException:
    return AppHTTPException(
        401, ErrorCode.UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def forbidden(detail: str = "Access denied") -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.FORBIDDEN, detail)


def account_locked(
    locked_until: datetime,
    now: datetime | None = None,
    error_id: str | None = None,
) -> AppHTTPException:
    """R: 423 with Retry-After rounded up to whole seconds (at least 1)."""
    now = now or datetime.now(timezone.utc)
    remaining = (locked_until - now).total_seconds()
    return AppHTTPException(
        423,
        ErrorCode.ACCOUNT_LOCKED,
        "User is locked due to repeated failed logins. Try again later.",
        headers={"Retry-After": str(max(math.ceil(remaining), 1))},
        errors=[{"error_id": error_id}] if error_id else None,
    )


# Exception handlers for FastAPI
async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    """Handler for AppHTTPException."""
    error = ErrorDetail(
        type=f"https://api.gym.local/errors/{exc.code.value.lower()}",
        title=exc.code.value.replace("_", " ").title(),
        status=exc.status_code,
        detail=exc.detail,
        code=exc.code,
        instance=str(request.url),
        errors=exc.errors,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error.model_dump(mode="json", exclude_none=True),
        headers=exc.headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unhandled exceptions."""
    error = ErrorDetail(
        type="https://api.gym.local/errors/internal_error",
        title="Internal Server Error",
        status=500,
        detail="An unexpected error occurred",
        code=ErrorCode.INTERNAL_ERROR,
        instance=str(request.url),
    )
    return JSONResponse(
        status_code=500,
        content=error.model_dump(mode="json", exclude_none=True),
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
