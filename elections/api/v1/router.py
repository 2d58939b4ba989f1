"""Main API router for v1."""
from fastapi import APIRouter

from elections.api.v1.endpoints import admin, auth, ballots, elections

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(elections.router, prefix="/elections", tags=["Elections"])
api_router.include_router(ballots.router, prefix="/elections", tags=["Ballots"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
