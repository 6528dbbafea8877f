"""Service-level routes."""

from datetime import datetime, timezone

from fastapi import APIRouter

from identity.database import health_check as db_health_check

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness check.

    Always answers 200 while the process is up. Database state is reported
    for information and never fails the check.
    """
    db_healthy = await db_health_check()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "healthy" if db_healthy else "unavailable",
    }
