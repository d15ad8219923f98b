"""AYUSH Terminology Core FastAPI application.

A terminology-resolution service that maps free-text symptom and condition
queries across the Ayurveda, Siddha and Unani (NAMASTE) code systems and WHO
ICD-11, ranks the candidates, and drives a guided clarifying-question loop.

UI, authentication, document storage and persistence belong to the calling
products and must not be added here.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ayush_core.core.config import Settings, settings as default_settings
from ayush_core.core.exceptions import InvalidArgumentError, NotFoundError, UpstreamUnavailableError
from ayush_core.core.logging_config import configure_logging
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.routers import icd11, intelligent_search, terminology
from ayush_core.schemas.search import ErrorResponse
from ayush_core.services.icd11_gateway import Icd11Gateway

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "FATAL ERROR: CLIENT_ID and CLIENT_SECRET (or MANUAL_TOKEN) must be provided."


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(),
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "INVALID_ARGUMENT", str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
        )
        return _error(status.HTTP_400_BAD_REQUEST, "INVALID_ARGUMENT", messages or "invalid request")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "NOT_FOUND", str(exc))

    @app.exception_handler(UpstreamUnavailableError)
    async def upstream_handler(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
        logger.warning("Upstream unavailable on %s: %s", request.url.path, exc)
        return _error(status.HTTP_502_BAD_GATEWAY, "UPSTREAM_UNAVAILABLE", "ICD-11 service unavailable")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s", request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "internal server error")


def create_app(
    settings: Settings | None = None,
    *,
    repository: ReferenceDataRepository | None = None,
    gateway: Icd11Gateway | None = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not settings.has_credentials:
            logger.error(MISSING_CREDENTIALS_MESSAGE)
            raise RuntimeError(MISSING_CREDENTIALS_MESSAGE)
        logger.info(
            "%s %s starting (sandbox=%s, datasets=%s)",
            settings.app_name,
            settings.app_version,
            settings.sandbox,
            app.state.repository.stats(),
        )
        yield
        await app.state.gateway.aclose()
        logger.info("%s shutting down", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="AYUSH (NAMASTE) and ICD-11 terminology resolution, ranking and guided Q&A.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.repository = repository or ReferenceDataRepository.from_directory(settings.data_dir)
    app.state.gateway = gateway or Icd11Gateway(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(terminology.router)
    app.include_router(intelligent_search.router)
    app.include_router(icd11.router)

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {
            "status": "ok",
            "service": settings.app_name,
            "version": settings.app_version,
            "datasets": app.state.repository.stats(),
        }

    return app


def run() -> None:
    import uvicorn

    if not default_settings.has_credentials:
        logger.error(MISSING_CREDENTIALS_MESSAGE)
        sys.exit(1)

    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)


app = create_app()


if __name__ == "__main__":
    run()
