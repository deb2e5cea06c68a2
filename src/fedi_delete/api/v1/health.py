from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from fedi_delete.db import DatabaseSessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

SERVICE_NAME = "fedi-delete"


def get_db_manager(request: Request) -> DatabaseSessionManager:
    return request.app.state.db_manager


@router.get("/live")
async def liveness_check():
    """Liveness probe; answers as long as the process is serving requests."""
    return {"status": "alive", "service": SERVICE_NAME}


@router.get("/ready")
def readiness_check(db_manager: DatabaseSessionManager = Depends(get_db_manager)):
    """Readiness probe; fails with 503 while the object store is unreachable."""
    try:
        db_manager.ping()
    except SQLAlchemyError as exc:
        logger.warning("Readiness check failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="database unavailable",
        ) from None
    return {"status": "ready", "service": SERVICE_NAME, "checks": {"database": True}}
