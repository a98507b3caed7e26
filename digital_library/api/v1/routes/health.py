import time

from fastapi import APIRouter, Depends, Response, status
from loguru import logger

from digital_library.config import ENVIRONMENT
from digital_library.database import DatabaseManager, get_db_manager
from digital_library.schemas.health import HealthResponse, SimpleHealthResponse

router = APIRouter(tags=["Health"], prefix="/health")


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health Check",
    responses={
        200: {"description": "Service is healthy and database is connected"},
        503: {"description": "Database connection failed"},
    }
)
async def health_check(response: Response, db: DatabaseManager = Depends(get_db_manager)):
    """Ping the database and report connection pool statistics"""
    start_time = time.time()
    healthy = await db.verify_health()
    response_time = (time.time() - start_time) * 1000
    stats = db.get_stats()

    if not healthy:
        logger.error("Health check failed: {}", stats.get("health_metrics", {}).get("last_error"))
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        success=healthy,
        status="healthy" if healthy else "unhealthy",
        database=db.backend,
        connection="active" if healthy else "failed",
        environment=ENVIRONMENT,
        response_time_ms=response_time,
        pool=stats.get("pool_stats"),
        error=None if healthy else "Database connection failed",
        status_code=response.status_code or status.HTTP_200_OK,
    )


@router.get(
    "/startup",
    response_model=SimpleHealthResponse,
    summary="Startup Health Check",
)
async def startup_health_check():
    """Simple health check that doesn't depend on database."""
    return SimpleHealthResponse(
        success=True,
        status="healthy",
        service="digital-library-api",
        message="Service is running",
        status_code=status.HTTP_200_OK
    )
