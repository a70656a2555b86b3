"""
Every error leaves the API in one envelope:

    {"success": false, "message": ..., "error": {"code": ..., "details": ..., "field": ...}}
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from fleetapp.utils.exceptions import AppException, ErrorCode, from_integrity_error

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, code: str, details=None, field=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error": {"code": code, "details": details, "field": field},
        },
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    error = exc.detail.get("error", {})
    return _envelope(
        exc.status_code,
        exc.detail.get("message", "An error occurred"),
        error.get("code", ErrorCode.INTERNAL_SERVER_ERROR),
        error.get("details"),
        error.get("field"),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # loc looks like ("body", "distanceKm"); the "body" prefix is dropped.
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "unknown",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error. Please check your input.",
        ErrorCode.VALIDATION_ERROR,
        details,
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    mapped = from_integrity_error(exc)
    logger.warning(f"IntegrityError on {request.method} {request.url.path} "
                   f"mapped to {mapped.error_code}: {exc.orig}")
    return await app_exception_handler(request, mapped)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        ErrorCode.INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
