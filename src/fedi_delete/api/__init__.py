"""HTTP surface: the Delete activity endpoint and the health probes."""

from fastapi import APIRouter

from .v1.health import router as health_router
from .v1.routes import router as activities_router

api_router = APIRouter()
for _router in (activities_router, health_router):
    api_router.include_router(_router)

__all__ = ["api_router"]
