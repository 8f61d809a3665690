"""Health check router: liveness + readiness.

Readiness only checks that configuration loads and the merchant catalogue
can be read; the database is reached per request with the caller's token,
so there is no shared connection to ping.
"""

import structlog
from fastapi import APIRouter, Depends

from apps.api.core.config import Settings, get_settings
from packages.statement_import.catalogue import load_catalogue

router = APIRouter(tags=["health"])
logger = structlog.get_logger()


@router.get("/health")
async def health_liveness():
    """Liveness probe: returns 200 if the API process is running."""
    return {"status": "healthy", "service": "api"}


@router.get("/health/ready")
async def health_readiness(settings: Settings = Depends(get_settings)):
    status = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "services": {
            "api": "up",
            "catalogue": "unknown",
        },
    }

    try:
        catalogue = load_catalogue(settings.KNOWN_MERCHANTS_FILE or None)
        status["services"]["catalogue"] = f"{len(catalogue)} merchants"
    except (OSError, ValueError, KeyError) as e:
        status["services"]["catalogue"] = "down"
        status["status"] = "degraded"
        logger.warning("catalogue_health_failed", error=str(e))

    return status
