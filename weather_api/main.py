"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from weather_api.config import get_config
from weather_api.database import Database
from weather_api.errors import internal_error, register_error_handlers
from weather_api.metrics import REQUEST_COUNT, REQUEST_DURATION
from weather_api.models import Station, Weather
from weather_api.routers import health, stations, observations

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Get configuration
config = get_config()
logging.getLogger().setLevel(config.log_level.upper())

REQUIRED_TABLES = (Station.__tablename__, Weather.__tablename__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Create the database collaborator
    - Check connectivity and required tables

    Shutdown:
    - Dispose the connection pool
    """
    logger.info("Starting Weather Station API")
    database = Database(config)
    app.state.database = database
    logger.info(f"Database dialect: {database.engine.dialect.name}")

    if database.check_connection():
        logger.info("Database connection successful")
        missing = database.missing_tables(REQUIRED_TABLES)
        if missing:
            logger.warning(f"Missing tables: {', '.join(missing)}")
    else:
        logger.warning("Database connection failed - API may not function properly")

    try:
        yield
    finally:
        logger.info("Shutting down Weather Station API")
        database.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=config.api_title,
    version=config.api_version,
    description=config.api_description,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

register_error_handlers(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


# Request logging and metrics middleware
@app.middleware("http")
async def logging_and_metrics_middleware(request: Request, call_next):
    """
    Middleware to log requests, collect Prometheus metrics and
    stamp the CORS headers on every response.
    """
    start_time = time.time()

    # Generate request ID
    request_id = f"{int(start_time * 1000)}-{id(request)}"

    logger.info(
        f"Request started: {request.method} {request.url.path} "
        f"[{request_id}]"
    )

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} "
            f"[{request_id}] - {exc}",
            exc_info=True
        )
        response = internal_error(request, "internal_error")

    duration = time.time() - start_time
    endpoint = request.url.path

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"[{request_id}] - {response.status_code} - {duration:.3f}s"
    )

    # CORSMiddleware only adds these when the request carries Origin
    response.headers.setdefault("Access-Control-Allow-Origin", ", ".join(config.cors_origins))
    response.headers.setdefault("Access-Control-Allow-Methods", ", ".join(config.cors_allow_methods))
    response.headers.setdefault("Access-Control-Allow-Headers", ", ".join(config.cors_allow_headers))

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{duration:.3f}s"

    return response


# Prometheus metrics endpoint
@app.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Include routers
app.include_router(health.router)
app.include_router(stations.router)
app.include_router(observations.router)


def run() -> None:
    import uvicorn
    uvicorn.run(
        "weather_api.main:app",
        host=config.api_host,
        port=config.api_port,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    run()
