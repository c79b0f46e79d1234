"""API route initialization and versioning."""

from fastapi import APIRouter, Depends

from screensift.api.routes import categories, screenshots
from screensift.api.security import verify_api_key

# API v1 router - all versioned endpoints go under /api/v1
api_v1_router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])

api_v1_router.include_router(screenshots.router)
api_v1_router.include_router(categories.router)
