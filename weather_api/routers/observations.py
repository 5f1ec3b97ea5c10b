"""Observation query endpoint."""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from weather_api.database import get_db
from weather_api.crud import fetch_observations

router = APIRouter(tags=["observations"])


@router.get("/input/data")
def get_observations(
    station_number: Optional[str] = Query(
        default=None,
        alias="stationNumber",
        description="Station number"
    ),
    date_range: Optional[str] = Query(
        default=None,
        alias="dateRange",
        description="Inclusive range as YYYY-MM-DD,YYYY-MM-DD"
    ),
    data_types: Optional[str] = Query(
        default=None,
        alias="type",
        description="Comma-separated measurement names, e.g. tn,tx,rr"
    ),
    db: Session = Depends(get_db)
) -> list[dict[str, Any]]:
    """
    Get daily observations for one station.

    Query parameters:
    - **stationNumber**: Station number
    - **dateRange**: Start and end date, both inclusive
    - **type**: Measurements to return (tn, tx, tavg, rh_avg, rr, ss,
      ff_x, ddd_x, ff_avg, ddd_car)

    Returns:
        One object per day with the requested measurements and ``tanggal``.
        Missing readings are ``null``.

    Raises:
        400: Missing or malformed parameters
    """
    return fetch_observations(
        db,
        station_number=station_number,
        date_range=date_range,
        field_list=data_types,
    )


@router.options("/input/data", include_in_schema=False)
def observations_options() -> Response:
    return Response(status_code=status.HTTP_200_OK)

