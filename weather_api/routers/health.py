"""Health check endpoint."""

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from weather_api import __version__

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    database: str
    message: str


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Verifies that the API is running and can connect to PostgreSQL.

    Returns:
        Health status information
    """
    if not request.app.state.database.check_connection():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed"
        )

    return HealthResponse(
        status="healthy",
        database="connected",
        message="Weather Station API is running"
    )


@router.get("/")
async def root() -> dict:
    """
    Root endpoint with API information.

    Returns:
        Basic API information
    """
    return {
        "service": "Weather Station API",
        "version": __version__,
        "endpoints": {
            "stations": "/stations",
            "observations": "/input/data",
            "health": "/health",
            "metrics": "/metrics"
        },
        "documentation": "/docs"
    }
