"""
Name: FastAPI Exception Handlers

Responsibilities:
  - Convert domain exceptions into HTTP responses
  - Structured error responses (RFC 7807 style)
  - Centralized logging of errors with correlation IDs

Collaborators:
  - main.py: Registers these handlers
  - exceptions.py: GymError and its account/database subclasses

Constraints:
  - All responses use RFC 7807 Problem Details format
  - HTTP status codes: 503 for store errors, 500 for generic errors
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from .error_responses import (
    AppHTTPException,
    ErrorCode,
    account_locked,
    app_exception_handler,
    generic_exception_handler,
)
from .exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    DatabaseError,
    GymError,
    InvalidCredentialError,
    UsernameTakenError,
)
from .logger import logger


async def account_not_found_handler(
    request: Request, exc: AccountNotFoundError
) -> JSONResponse:
    logger.info("Account not found", extra={"error_id": exc.error_id})
    app_exc = AppHTTPException(
        status_code=404,
        code=ErrorCode.NOT_FOUND,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


async def invalid_credential_handler(
    request: Request, exc: InvalidCredentialError
) -> JSONResponse:
    logger.info("Invalid credential", extra={"error_id": exc.error_id})
    app_exc = AppHTTPException(
        status_code=400,
        code=ErrorCode.INVALID_CREDENTIAL,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


async def account_locked_handler(
    request: Request, exc: AccountLockedError
) -> JSONResponse:
    """Lockouts from any route become 423 with Retry-After."""
    logger.info(
        "Account locked",
        extra={"error_id": exc.error_id, "lock_until": exc.locked_until},
    )
    return await app_exception_handler(
        request, account_locked(exc.locked_until, error_id=exc.error_id)
    )


async def username_taken_handler(
    request: Request, exc: UsernameTakenError
) -> JSONResponse:
    logger.warning(
        "Username taken", extra={"error_id": exc.error_id, "error_message": exc.message}
    )
    app_exc = AppHTTPException(
        status_code=409,
        code=ErrorCode.CONFLICT,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Handle database errors with structured response."""
    logger.error(
        "Database error", extra={"error_id": exc.error_id, "error_message": exc.message}
    )
    app_exc = AppHTTPException(
        status_code=503,
        code=ErrorCode.DATABASE_ERROR,
        detail="Database operation failed",
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


async def gym_error_handler(request: Request, exc: GymError) -> JSONResponse:
    """Handle any other backend error."""
    logger.error(
        "Backend error", extra={"error_id": exc.error_id, "error_message": exc.message}
    )
    app_exc = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=exc.message,
        errors=[{"error_id": exc.error_id}],
    )
    return await app_exception_handler(request, app_exc)


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers on the FastAPI app.

    Usage:
        from .exception_handlers import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(AccountNotFoundError, account_not_found_handler)
    app.add_exception_handler(InvalidCredentialError, invalid_credential_handler)
    app.add_exception_handler(AccountLockedError, account_locked_handler)
    app.add_exception_handler(UsernameTakenError, username_taken_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(GymError, gym_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
