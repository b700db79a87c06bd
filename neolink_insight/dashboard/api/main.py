"""Main FastAPI application for the NeoLink Insight dashboard.

This module sets up the FastAPI application with all routes, middleware,
and configuration for the dashboard API.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neolink_insight.dashboard.api.logging_config import setup_logging
from neolink_insight.dashboard.api.middleware import setup_middleware
from neolink_insight.dashboard.api.routes import analytics, health, query
from neolink_insight.infrastructure.settings import APP_NAME, APP_VERSION

# Configure structured logging
use_json_logs = os.getenv("JSON_LOGS", "false").lower() == "true"
log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(use_json=use_json_logs, log_level=log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"{APP_NAME} API starting up...")
    logger.info("API documentation available at /api/docs")
    logger.info(f"Logging level: {log_level}")
    logger.info(f"JSON logs: {use_json_logs}")
    yield
    logger.info(f"{APP_NAME} API shutting down...")


app = FastAPI(
    title=f"{APP_NAME} API",
    description="Natural-language queries and analytics over neonatal patient records",
    version=APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# In production, replace with specific origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time"],
)

setup_middleware(app)

app.include_router(health.router)
app.include_router(query.router)
app.include_router(analytics.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"{APP_NAME} API",
        "version": APP_VERSION,
        "docs": "/api/docs",
        "health": "/api/health",
        "query": "/api/query"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "neolink_insight.dashboard.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
