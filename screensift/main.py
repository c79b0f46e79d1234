"""ScreenSift HTTP application: versioned REST API, tool endpoint and health check."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from screensift.api.middleware import RequestLoggingMiddleware
from screensift.api.routes import api_v1_router, health, mcp
from screensift.api.security import verify_api_key
from screensift.config import settings
from screensift.db.session import close_db, init_db
from screensift.utils.exceptions import (
    NotFoundError,
    ScreenSiftError,
    StorageError,
    ValidationError,
)
from screensift.utils.logging import configure_logging
from screensift.version import __version__

configure_logging(log_level=settings.log_level, environment=settings.environment)

logger = structlog.get_logger(__name__)

# Domain errors whose message is safe to return to the client
CLIENT_ERRORS: dict[type[ScreenSiftError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("application_startup", version=__version__, environment=settings.environment)
    if settings.environment == "development":
        await init_db()
    yield
    await close_db()
    logger.info("application_shutdown")


app = FastAPI(
    title="ScreenSift API",
    description="AI-powered screenshot classification and organization system",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(api_v1_router)
app.include_router(mcp.router, dependencies=[Depends(verify_api_key)])


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "ScreenSift - AI-powered screenshot classification system"


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


@app.exception_handler(ScreenSiftError)
async def screensift_error_handler(request: Request, exc: ScreenSiftError) -> JSONResponse:
    """Map domain errors to 400/404 with their message, anything else to 500."""
    for error_type, status_code in CLIENT_ERRORS.items():
        if isinstance(exc, error_type):
            logger.warning(
                "client_error",
                error=str(exc),
                error_type=type(exc).__name__,
                status_code=status_code,
                path=request.url.path,
            )
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    detail = "Storage error occurred" if isinstance(exc, StorageError) else "Internal server error"
    logger.error(
        "server_error",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=500, content={"detail": detail})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database_error", error=str(exc), request_id=_request_id(request))
    return JSONResponse(status_code=500, content={"detail": "Database error occurred"})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed ids, out-of-range query params and bad JSON bodies."""
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
