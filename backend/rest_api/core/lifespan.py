"""
Application lifespan: logging, schema, outbox publisher, Redis shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from shared.infrastructure.events import close_redis_pool
from rest_api.models import Base
from rest_api.services.events import start_outbox_processor, stop_outbox_processor


def _check_secrets() -> None:
    """Refuse to start in production with default secrets."""
    problems = settings.validate_production_secrets()
    if not problems:
        return
    for problem in problems:
        logger.error("Configuration error", error=problem)
    if settings.environment == "production":
        raise RuntimeError(
            f"Production configuration errors: {'; '.join(problems)}"
        )
    logger.warning("Running with insecure defaults (development only)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    _check_secrets()

    logger.info("Starting POS API", port=settings.rest_api_port, env=settings.environment)
    Base.metadata.create_all(bind=engine)

    if settings.outbox_processor_enabled:
        await start_outbox_processor()

    yield

    logger.info("Shutting down POS API")
    if settings.outbox_processor_enabled:
        await stop_outbox_processor()
    await close_redis_pool()
