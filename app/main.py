"""PULSE — FastAPI Application Entry Point.

Paid-media account health: audits, KPI roll-ups and portfolio scoring over
published sheet snapshots.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.connectors.sheets.sync import sync_all
from app.scheduler.jobs import start_scheduler, stop_scheduler
from app.api.dashboard_routes import router as dashboard_router
from app.api.sync_routes import router as sync_router
from app.core.logging import get_logger
from app.store import store

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 PULSE starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    if settings.sync_on_startup:
        report = await sync_all(store, force=True)
        if report.failed:
            logger.error("❌ Initial sync failed — serving an empty snapshot")
        else:
            logger.info(f"✅ Snapshot v{report.dataset_version} loaded")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("PULSE shut down")


app = FastAPI(
    title="PULSE",
    description="Paid-media audit, aggregation and scoring engine over published sheet snapshots.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(sync_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "pulse",
        "version": "1.0.0",
        "dataset_version": store.version,
    }
