"""X-API-Key authentication for the versioned API and the tool endpoint."""

import secrets

import structlog
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from screensift.config import settings

logger = structlog.get_logger(__name__)

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,
    description="Shared API key; only enforced when REQUIRE_API_KEY is true",
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(provided: str | None = Security(api_key_header)) -> None:
    """
    Reject the request unless it carries the configured key.

    Raises:
        HTTPException: 401 for a missing or wrong key, 500 if enforcement is
            on but no key is configured
    """
    if not settings.require_api_key:
        return

    if settings.api_key is None:
        logger.error("api_key_not_configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API authentication is not properly configured",
        )

    if not provided:
        logger.warning("api_key_missing")
        raise _unauthorized("API key is required. Provide it in the X-API-Key header.")

    if not secrets.compare_digest(
        provided.encode(), settings.api_key.get_secret_value().encode()
    ):
        logger.warning("api_key_invalid")
        raise _unauthorized("Invalid API key")
