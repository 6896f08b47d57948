"""Upstream Pool - Admin Application."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from upstream_pool.api.admin import router as admin_router
from upstream_pool.core.config import settings
from upstream_pool.logging_hardening import setup_logging
from upstream_pool.routers import health

logger = logging.getLogger(__name__)

setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    backend = settings.STORE_BACKEND.lower()
    if backend == "postgres":
        from upstream_pool.adapters.postgres import session as pg_session
        from upstream_pool.adapters.postgres.models import Base
        engine = pg_session.init_engine()
        if settings.MODE.lower() == "dev":
            # dev convenience; prod schemas are managed outside the service
            Base.metadata.create_all(engine)
    logger.info(f"Upstream pool admin started (store={backend})")
    yield
    logger.info("Upstream pool admin stopped")


app = FastAPI(title="Upstream Pool", lifespan=lifespan)
app.include_router(health.router)
app.include_router(admin_router.router, prefix="/admin/v1")
