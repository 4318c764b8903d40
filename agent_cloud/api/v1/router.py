"""Main router for API v1."""

from fastapi import APIRouter

from agent_cloud.api.v1 import deployments, health, runs

router = APIRouter(prefix="/api/v1")

# Include sub-routers
router.include_router(health.router, tags=["health"])
router.include_router(runs.router, prefix="/runs", tags=["runs"])
router.include_router(deployments.router, prefix="/deployments", tags=["deployments"])
