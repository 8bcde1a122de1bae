"""Global error handlers: every error leaves as the standard failure envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from qiclife.config import Settings
from qiclife.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    GoneError,
    LimitExceededError,
    NotFoundError,
)
from qiclife.responses import error_body

logger = structlog.get_logger()


def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]


def setup_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if isinstance(exc.detail, dict):
            content = {"success": False, **exc.detail}
        else:
            content = error_body(str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", _validation_details(exc)),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=error_body(str(exc)))

    @app.exception_handler(ConflictError)
    async def conflict_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content=error_body(str(exc)))

    @app.exception_handler(ForbiddenError)
    async def forbidden_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content=error_body(str(exc)))

    @app.exception_handler(GoneError)
    async def gone_handler(_request: Request, exc: GoneError) -> JSONResponse:
        return JSONResponse(status_code=410, content=error_body(str(exc)))

    @app.exception_handler(LimitExceededError)
    async def limit_exceeded_handler(_request: Request, exc: LimitExceededError) -> JSONResponse:
        return JSONResponse(status_code=429, content=error_body(str(exc)))

    @app.exception_handler(DomainValidationError)
    async def domain_validation_handler(_request: Request, exc: DomainValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={**error_body(str(exc), exc.details), **exc.extra})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("Internal server error", None if settings.is_production else str(exc)),
        )
