from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from game_events.config import settings, setup_logging
from game_events.database import close_db, init_db
from game_events.services.scheduler_service import sync_scheduler

from game_events.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting Game Event Calendar...")

    try:
        logger.info("Initializing database...")
        await init_db()

        logger.info("Starting scheduler...")
        sync_scheduler.start(settings.sync_interval_minutes)

        logger.info("Game Event Calendar started successfully")
    except Exception as e:
        logger.error(f"Failed to start Game Event Calendar: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down Game Event Calendar...")

    try:
        sync_scheduler.stop()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    await close_db()
    logger.info("Game Event Calendar stopped")


app = FastAPI(
    title="Game Event Calendar",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with details"""
    logger.error(f"Validation error for {request.method} {request.url.path}")
    logger.error(f"Validation details: {exc.errors()}")

    errors = []
    for error in exc.errors():
        errors.append({
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": str(error.get("input", ""))[:100]
        })

    return JSONResponse(
        status_code=422,
        content={
            "detail": errors
        }
    )
