"""Database queries behind the station and observation endpoints."""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import RowMapping
from sqlalchemy.orm import Session

from weather_api.database import execute_with_retry
from weather_api.errors import InvalidRequest, StorageFailure
from weather_api.metrics import DB_QUERY_DURATION, DB_QUERY_FAILURES
from weather_api.models import (
    DATE_FIELD,
    OBSERVATION_FIELDS,
    Station,
    StationResponse,
    Weather,
    stored_date,
)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_STATION_PATTERN = re.compile(r"[0-9]+")


def _run(db: Session, statement, operation: str) -> list[RowMapping]:
    """Execute a statement, timing it and mapping database errors to StorageFailure."""
    try:
        with DB_QUERY_DURATION.labels(operation=operation).time():
            return execute_with_retry(db, statement)
    except SQLAlchemyError as e:
        DB_QUERY_FAILURES.labels(operation=operation).inc()
        raise StorageFailure(operation) from e


# ============================================================================
# Station Operations
# ============================================================================

def list_stations(db: Session) -> list[StationResponse]:
    """
    Get every station.

    Args:
        db: Database session

    Returns:
        All stations ordered by station number; absent elevation stays None
    """
    query = select(Station.__table__).order_by(Station.station_number)
    rows = _run(db, query, "list_stations")
    return [StationResponse.model_validate(dict(row)) for row in rows]


# ============================================================================
# Observation Operations
# ============================================================================

def parse_field_list(field_list: Optional[str]) -> list[str]:
    """
    Split a comma-separated list of measurement names.

    Empty tokens are dropped and repeats collapse onto their first
    occurrence.

    Raises:
        InvalidRequest: If no names remain or a name is not a known measurement
    """
    names = [name.strip() for name in (field_list or "").split(",")]
    names = [name for name in names if name]
    if not names:
        raise InvalidRequest("missing data types")

    fields: list[str] = []
    for name in names:
        if name not in OBSERVATION_FIELDS and name != DATE_FIELD:
            raise InvalidRequest(f"unknown data type '{name}'")
        if name not in fields:
            fields.append(name)
    return fields


def parse_station_number(station_number: Optional[str]) -> int:
    """
    Parse a station number.

    Raises:
        InvalidRequest: Unless the value is a positive decimal integer
    """
    value = (station_number or "").strip()
    if not _STATION_PATTERN.fullmatch(value) or int(value) <= 0:
        raise InvalidRequest("station number must be a positive integer")
    return int(value)


def _parse_date(value: str) -> date:
    value = value.strip()
    if not _DATE_PATTERN.fullmatch(value):
        raise InvalidRequest(f"date '{value}' is not in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidRequest(f"date '{value}' is not a valid calendar date") from None


def parse_date_range(date_range: Optional[str]) -> tuple[date, date]:
    """
    Parse ``YYYY-MM-DD,YYYY-MM-DD`` into a (start, end) pair.

    The pair is returned as given; a start after the end is not an error.

    Raises:
        InvalidRequest: If there are not exactly two valid dates
    """
    parts = (date_range or "").split(",")
    if len(parts) != 2:
        raise InvalidRequest("date range must be two dates separated by a comma")
    return _parse_date(parts[0]), _parse_date(parts[1])


def build_observation_query(
    fields: list[str],
    station_number: int,
    start_date: date,
    end_date: date,
) -> Select:
    """
    Build the projection for an observation request.

    Args:
        fields: Allow-listed measurement names, in output order
        station_number: Station to filter on
        start_date: First day, inclusive
        end_date: Last day, inclusive

    Returns:
        SELECT of the requested columns plus the stored date read as a date
        (labelled ``tanggal``), ordered by date ascending. Station and dates
        are bound parameters.
    """
    table = Weather.__table__
    date_column = stored_date(table.c[DATE_FIELD])
    columns = [table.c[name] for name in fields if name != DATE_FIELD]
    columns.append(date_column.label(DATE_FIELD))

    return (
        select(*columns)
        .where(
            table.c.station_number == station_number,
            date_column.between(start_date, end_date),
        )
        .order_by(date_column)
    )


def _decode_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime(DATE_FORMAT)
    return str(value)


def decode_observation(row: RowMapping, fields: list[str]) -> dict[str, Any]:
    """
    Convert a result row into a JSON-ready dict.

    Every requested measurement is present; SQL NULL becomes None.
    The date comes last as a ``YYYY-MM-DD`` string.
    """
    decoded: dict[str, Any] = {}
    for name in fields:
        if name == DATE_FIELD:
            continue
        value = row[name]
        decoded[name] = None if value is None else OBSERVATION_FIELDS[name](value)

    value = row[DATE_FIELD]
    decoded[DATE_FIELD] = None if value is None else _decode_date(value)
    return decoded


def fetch_observations(
    db: Session,
    station_number: Optional[str],
    date_range: Optional[str],
    field_list: Optional[str],
) -> list[dict[str, Any]]:
    """
    Get a station's observations over a date range.

    Parameters are validated in order (fields, station, dates) before the
    database is touched.

    Args:
        db: Database session
        station_number: Station number as received
        date_range: ``YYYY-MM-DD,YYYY-MM-DD``, both ends inclusive
        field_list: Comma-separated measurement names

    Returns:
        One dict per matching day, ordered by date

    Raises:
        InvalidRequest: If any parameter is missing or malformed
        StorageFailure: If the query fails
    """
    fields = parse_field_list(field_list)
    station = parse_station_number(station_number)
    start_date, end_date = parse_date_range(date_range)

    if start_date > end_date:
        logger.info(
            f"Empty date range {start_date}..{end_date} for station {station}"
        )
        return []

    query = build_observation_query(fields, station, start_date, end_date)
    rows = _run(db, query, "fetch_observations")
    return [decode_observation(row, fields) for row in rows]
