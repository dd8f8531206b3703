"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.error_responses import domain_error_to_http
from app.core.exceptions import AssessmentError
from app.core.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware
from app.observability import capture_error, init_sentry, metrics

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    Starts error tracking on startup; nothing needs closing on shutdown since
    database sessions are per request.
    """
    init_sentry()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENV})")

    yield

    logger.info("Application shutting down")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "tests",
        "description": "Test creation, start, answer submission, video upload and grading",
    },
    {
        "name": "responses",
        "description": "Individual saved answers and uploaded videos",
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**Candidate Assessments API** - test lifecycle and auto-grading.\n\n"
            "This API provides:\n"
            "* Portuguese, Math and Interview video tests\n"
            "* Psychology and Visual Retention multiple-choice tests with "
            "automatic grading\n"
            "* Time-boxed sessions and progress tracking\n\n"
            "## Authentication\n\n"
            "All test endpoints require a JWT Bearer token carrying the "
            "candidate id in its `candidate_id` (or `sub`) claim."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(AssessmentError)
    async def assessment_error_handler(request: Request, exc: AssessmentError):
        """
        Map engine failures to their HTTP status.
        """
        http_exc = domain_error_to_http(exc)
        metrics.record_error(exc.__class__.__name__)
        logger.warning(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc}",
            extra={
                "method": request.method,
                "path": str(request.url.path),
                "status_code": http_exc.status_code,
            },
        )
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            capture_error(
                exc,
                context={
                    "path": str(request.url.path),
                    "method": request.method,
                    "status_code": exc.status_code,
                },
                tags={"error_type": "HTTPException"},
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]
        metrics.record_error("ValidationError")

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Each one gets an error_id that is returned to the client and logged
        with the full traceback, so support can find the matching log entry.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )
        metrics.record_error(exc.__class__.__name__)
        capture_error(
            exc,
            context={
                "path": str(request.url.path),
                "method": request.method,
                "error_id": error_id,
            },
            tags={"error_type": exc.__class__.__name__},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

    @app.get("/metrics", include_in_schema=False)
    def prometheus_metrics():
        return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
