"""FastAPI application setup for the OpsIntel dashboard API."""

from fastapi import FastAPI

from .api import router as api_router
from .config import settings
from utils.logging_utils import setup_logging

setup_logging(level=settings.log_level, job_name="opsintel_dashboard")

app = FastAPI(title="OpsIntel Dashboard")

# API routes
app.include_router(api_router, prefix="/api")
