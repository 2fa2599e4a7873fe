"""
FastAPI API Service Entry Point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.middleware.request_logging import RequestLoggingMiddleware
from api.routes import events, swaps
from shared.config import get_settings
from shared.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SlotSwapError,
    StorageError,
    ValidationError,
)
from shared.logging_config import configure_logging
from shared.startup_validator import StartupValidationError, validate_startup_config

# Configure structured JSON logging on startup
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: validate configuration before serving (fail-fast),
    release the connection pool on shutdown.

    Raises:
        StartupValidationError: If critical configuration is invalid
    """
    if get_settings().SKIP_STARTUP_VALIDATION:
        logger.warning("Startup configuration validation skipped")
    else:
        logger.info("Running API startup configuration validation...")
        try:
            await validate_startup_config()
            logger.info("API startup configuration validation passed")
        except StartupValidationError as e:
            logger.critical(f"API startup blocked due to configuration errors: {e}")
            raise

    yield

    from database.connection import engine

    await engine.dispose()
    logger.info("SlotSwapper API shut down")


app = FastAPI(
    title="SlotSwapper API",
    version="1.0.0",
    lifespan=lifespan,
)

settings = get_settings()
origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]

app.add_middleware(RequestLoggingMiddleware)

# Added last so it executes first and answers preflight OPTIONS requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(events.router)
app.include_router(swaps.router)

# Most specific class first
ERROR_STATUS_CODES: list[tuple[type[SlotSwapError], int]] = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 503),
]


@app.exception_handler(SlotSwapError)
async def slot_swap_exception_handler(request: Request, exc: SlotSwapError) -> JSONResponse:
    """Map the error taxonomy to HTTP status codes with a readable reason."""
    status_code = next(
        (code for error_class, code in ERROR_STATUS_CODES if isinstance(exc, error_class)),
        500,
    )
    content: dict = {"error": exc.message}
    if isinstance(exc, ConflictError) and exc.swap_request_id is not None:
        content["swapRequestId"] = str(exc.swap_request_id)
    if isinstance(exc, StorageError):
        content["retryable"] = True

    logger.info(
        f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc.message}",
        extra={"request_path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with validation error details."""
    return JSONResponse(
        status_code=400,
        content={"error": "Validation error", "details": jsonable_encoder(exc.errors())},
    )


@app.get("/health")
@app.get("/api/health")
async def health_check() -> JSONResponse:
    """
    Health check endpoint for Docker health checks and monitoring.

    Returns:
        200 OK if the database answers
        503 Service Unavailable otherwise
    """
    from sqlalchemy import text

    from database.connection import get_async_session

    health_status = {"status": "ok", "message": "SlotSwapper API is running", "database": "unknown"}
    status_code = 200

    try:
        async with get_async_session() as session:
            await session.execute(text("SELECT 1"))
            health_status["database"] = "connected"
    except Exception:
        logger.exception("Health check could not reach the database")
        health_status["database"] = "disconnected"
        health_status["status"] = "degraded"
        status_code = 503

    return JSONResponse(status_code=status_code, content=health_status)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.HOST, port=settings.PORT, log_config=None)
