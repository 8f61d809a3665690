"""Statement Import API: FastAPI entry point.

Routes are served from domain modules under apps/api/domains/.
"""

import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import get_settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging

from apps.api.domains.merchant_mappings.router import router as merchant_mappings_router
from apps.api.domains.statement_import.router import router as statement_import_router
from apps.api.routers import health

logger = structlog.get_logger()

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup/shutdown hooks."""
    setup_logging(log_level=settings.log_level, json_output=settings.json_logs)
    logger.info("app_starting", version=settings.APP_VERSION)
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Statement Import API",
    description="Parses bank statements into reviewable transactions and imports them.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(statement_import_router, prefix="/api/v1")
app.include_router(merchant_mappings_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
