"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter

from app.api.v1 import health, responses, tests

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(tests.router, prefix="/tests", tags=["tests"])
api_router.include_router(responses.router, tags=["responses"])
