"""
Application lifespan handler.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from menu_api.services.permissions import ROLE_DEFINITIONS, validate_catalog
from shared.config.logging import api_logger as logger, setup_logging
from shared.config.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: logging, configuration checks and the permission catalog.
    Schema creation is left to ``cli.py db-init``.
    """
    setup_logging()

    secret_errors = settings.validate_production_secrets()
    if secret_errors:
        for error in secret_errors:
            logger.error("Configuration error: %s", error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(secret_errors)}. "
                "Server will not start with insecure configuration."
            )
        logger.warning("Running with insecure defaults (acceptable for development only)")

    # Also runs at import time.
    validate_catalog()
    logger.info(
        "Permission catalog loaded",
        roles=[role.slug for role in ROLE_DEFINITIONS],
    )

    logger.info("Starting Menu Ops API", port=settings.api_port, env=settings.environment)
    yield
    logger.info("Shutting down Menu Ops API")
