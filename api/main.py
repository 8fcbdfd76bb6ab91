"""
FastAPI API Service Entry Point
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import awards, cast, productions
from shared.config import get_settings
from shared.logging_config import configure_logging
from shared.startup_validator import StartupValidationError, validate_startup_config

# Configure structured JSON logging on startup
configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Theater CMS API",
    version="1.0.0",
)

settings = get_settings()
origins = settings.CORS_ORIGINS.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(productions.router)
app.include_router(awards.router)
app.include_router(cast.router)


@app.on_event("startup")
async def startup_seed_reference_data():
    """
    Validate configuration and seed reference data before serving requests.

    Seeding is idempotent, so it runs on every start. Any seeding failure
    (ambiguous catalog key, unreachable database) aborts startup.

    Raises:
        StartupValidationError: If critical configuration is invalid
        SeedingError: If reconciliation fails
    """
    logger.info("Running API startup configuration validation...")
    try:
        await validate_startup_config()
        logger.info("API startup configuration validation passed")
    except StartupValidationError as e:
        logger.critical(f"API startup blocked due to configuration errors: {e}")
        raise

    if settings.AUTO_CREATE_TABLES:
        from database.connection import create_tables

        await create_tables()

    if settings.SEED_ON_STARTUP:
        from database.seeds import seed_all

        await seed_all()


@app.get("/health")
async def health_check() -> JSONResponse:
    """
    Health check endpoint for Docker health checks and monitoring.

    Returns:
        200 OK if the database answers
        503 Service Unavailable otherwise
    """
    from shared.startup_validator import validate_database_connection

    if await validate_database_connection():
        return JSONResponse(status_code=200, content={"status": "healthy", "database": "connected"})
    return JSONResponse(
        status_code=503, content={"status": "degraded", "database": "disconnected"}
    )
