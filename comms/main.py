"""COMMS — FastAPI Application Entry Point.

Marketing-communications analytics: weekly social, website and newsletter
metrics per business unit and country, with dashboard rollups.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from comms.database import init_db, check_connection, backend_name, db_url, _mask_url
from comms.api.metrics_routes import router as metrics_router
from comms.api.analytics_routes import router as analytics_router
from comms.api.admin_routes import router as admin_router
from comms.core.logging import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the metric tables on startup when the database answers."""
    logger.info("COMMS starting up")
    if check_connection():
        init_db()
    else:
        logger.error("Database NOT connected — endpoints will fail")
    yield
    logger.info("COMMS shut down")


app = FastAPI(
    title="COMMS",
    description="Marketing-communications analytics: weekly social, website and newsletter metrics with dashboard rollups.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(metrics_router)
app.include_router(analytics_router)
app.include_router(admin_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "comms",
        "version": "1.0.0",
    }


@app.get("/debug/db", tags=["System"])
async def debug_db():
    """Database backend and connectivity."""
    return {
        "connected": check_connection(),
        "backend": backend_name(db_url),
        "url": _mask_url(db_url),
    }
