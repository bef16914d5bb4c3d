"""
Exception handlers rendering every error into the standard envelope.

    {"success": false, "error": {"message", "code", "details"}}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.utils import error_response
from common.utils.exceptions import APIException

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    # Drop the leading "body" / "query" segment
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI, expose_errors: bool = False) -> None:
    """
    Attach the API exception handlers.

    Args:
        app: FastAPI application
        expose_errors: Include exception text in 500 responses (development only)
    """

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(error_response(exc.message, code=exc.code, details=exc.details)),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
            for error in exc.errors()
        ]

        return JSONResponse(
            status_code=422,
            content=error_response(
                "Validation failed",
                code="VALIDATION_ERROR",
                details={"errors": errors},
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")

        details = {"error": str(exc)} if expose_errors else None

        return JSONResponse(
            status_code=500,
            content=error_response("Internal server error", code="INTERNAL_ERROR", details=details),
        )
