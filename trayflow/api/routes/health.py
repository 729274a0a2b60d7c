"""
Health Check API Routes

Liveness of the service and reachability of its database.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from trayflow.api.deps import SettingsDep, UnitOfWorkManagerDep
from trayflow.infrastructure.database.repositories import DatabaseError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", summary="Service health")
def get_health_status(uow_manager: UnitOfWorkManagerDep, settings: SettingsDep) -> JSONResponse:
    """Report the service as healthy when the database answers a trivial query."""
    try:
        with uow_manager.transaction() as uow:
            uow.session.execute(text("SELECT 1"))
        database = "healthy"
    except (DatabaseError, SQLAlchemyError) as e:
        logger.error(f"Health check failed: {str(e)}")
        database = "unhealthy"

    healthy = database == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": settings.PROJECT_NAME,
            "environment": settings.ENVIRONMENT,
            "checks": {"database": database},
        },
    )
