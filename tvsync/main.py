from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tvsync.config import settings, setup_logging
from tvsync.database import close_db, init_db
from tvsync.dependencies import get_scheduler, get_sync_manager
from tvsync.utils.logging_helpers import log_section_end, log_section_start

from tvsync.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    log_section_start(logger, "TV Sync Service startup")

    manager = get_sync_manager()
    scheduler = get_scheduler()

    try:
        logger.info("Initializing database...")
        await init_db()

        manager.coordinator.start()

        if settings.sync_schedule_enabled:
            logger.info("Starting scheduler...")
            scheduler.start()
        else:
            logger.info("Scheduled sync disabled")

        if settings.sync_on_startup:
            logger.info("Running startup sync...")
            for result in await manager.sync_active():
                logger.info("Startup %s sync: %s", result.kind.value, result.status)

        log_section_end(logger, "TV Sync Service startup")
    except Exception as e:
        logger.error(f"Failed to start TV Sync Service: {e}", exc_info=True)
        raise

    yield

    log_section_start(logger, "TV Sync Service shutdown")

    try:
        scheduler.shutdown()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    manager.coordinator.stop()
    await close_db()

    log_section_end(logger, "TV Sync Service shutdown")


app = FastAPI(
    title="TV Sync Service",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    # Create a properly serializable error response
    errors = []
    for error in exc.errors():
        error_dict = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        }
        errors.append(error_dict)

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors
        }
    )
