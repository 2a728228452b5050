from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from visa_portal.config import settings
from visa_portal.database import Database, get_database
from visa_portal.utils.response import create_response, error_response

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
def health_check(database: Database = Depends(get_database)):
    timestamp = datetime.now(timezone.utc).isoformat()
    if not database.ping():
        return error_response(
            "Service unhealthy",
            status.HTTP_503_SERVICE_UNAVAILABLE,
            data={"status": "unhealthy", "database": "disconnected", "timestamp": timestamp},
        )
    return create_response(
        message="Service healthy",
        data={
            "status": "healthy",
            "database": "connected",
            "environment": settings.APP_ENV,
            "timestamp": timestamp,
        },
    )
