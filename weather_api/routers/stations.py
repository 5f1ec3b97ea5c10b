"""Station metadata endpoint."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from weather_api.database import get_db
from weather_api.models import StationResponse
from weather_api.crud import list_stations

router = APIRouter(tags=["stations"])


@router.get("/stations", response_model=list[StationResponse])
def get_stations(db: Session = Depends(get_db)) -> list[StationResponse]:
    """
    List all weather stations.

    Stations without a known elevation report ``"elevation": null``.

    Returns:
        Every station, ordered by station number
    """
    return list_stations(db)


@router.options("/stations", include_in_schema=False)
def stations_options() -> Response:
    """Answer OPTIONS without Origin; CORS headers come from the middleware."""
    return Response(status_code=status.HTTP_200_OK)

