"""DepositLens — FastAPI Application Entry Point.

Bank telemarketing deposit-conversion analytics.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from depositlens.database import init_db, test_connection
from depositlens.api.analysis_routes import router as pipeline_router
from depositlens.api.analysis_routes import reports as reports_router
from depositlens.core.logging import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 DepositLens starting up...")
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    yield
    logger.info("DepositLens shut down")


app = FastAPI(
    title="DepositLens",
    description="Normalize bank telemarketing records and serve deposit conversion breakdowns to dashboards.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS — dashboards fetch rows straight from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(pipeline_router)
app.include_router(reports_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "depositlens",
        "version": "1.0.0",
    }
