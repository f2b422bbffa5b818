"""
Aerosensor CSV Ingest - FastAPI Backend

Main application entry point and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aero_ingest.api.records import router as records_router
from aero_ingest.services import canonicalizer, resampler


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


APP_NAME = "Aerosensor CSV Ingest"
APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting %s backend", APP_NAME)
    logger.info(
        "Coordinate scale: %g, resample threshold: %.3fs",
        canonicalizer.COORD_SCALE,
        resampler.RESAMPLE_STD_THRESHOLD_S,
    )

    yield

    logger.info("Shutting down %s backend", APP_NAME)


# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="""
    Backend API for ingesting Gibli aerosensor CSV exports.

    ## Features
    - Validate the aerosensor column set
    - Convert source units (cm/s, km/h, mm, Pa, fixed-point degrees)
    - Detect optional environmental, CdA reference, lap and wind-angle data
    - Resample irregular timers onto a uniform 1 Hz grid

    ## Data Flow
    1. POST the CSV text to /records/parse
    2. Feed the returned unified record to the aerodynamic calculator
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)


# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(records_router)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "coord_scale": canonicalizer.COORD_SCALE,
        "resample_std_threshold_s": resampler.RESAMPLE_STD_THRESHOLD_S,
    }
