"""SQLAlchemy ORM models and Pydantic response schemas."""

from typing import Optional
from sqlalchemy import Column, Date, Integer, String, Float, ForeignKey
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from pydantic import BaseModel, ConfigDict

from weather_api.database import Base


# ============================================================================
# SQLAlchemy ORM Models (Database Tables)
# ============================================================================

class Station(Base):
    """Station metadata table."""
    __tablename__ = "Station"

    station_number = Column(Integer, primary_key=True, autoincrement=False)
    station_name = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    elevation = Column(Float, nullable=True)


class Weather(Base):
    """Daily observations, one row per station per day."""
    __tablename__ = "Weather"

    id = Column(Integer, primary_key=True, autoincrement=True)
    station_number = Column(
        Integer, ForeignKey("Station.station_number"), nullable=False, index=True
    )
    # Stored as text; read it through stored_date()
    tanggal = Column("Tanggal", String, key="tanggal", nullable=False, index=True)

    # Measurements
    tn = Column(Float)
    tx = Column(Float)
    tavg = Column(Float)
    rh_avg = Column(Float)
    rr = Column(Float)
    ss = Column(Float)
    ff_x = Column(Float)
    ddd_x = Column(Integer)
    ff_avg = Column(Float)
    ddd_car = Column(Integer)


class stored_date(FunctionElement):
    """
    A text date column read as a calendar date.

    Accepts unpadded values such as ``2023-1-5`` and ignores a trailing
    time part.
    """
    type = Date()
    name = "stored_date"
    inherit_cache = True


@compiles(stored_date)
def _compile_stored_date(element, compiler, **kw):
    return "CAST(%s AS DATE)" % compiler.process(element.clauses, **kw)


@compiles(stored_date, "postgresql")
def _compile_stored_date_postgresql(element, compiler, **kw):
    return "TO_DATE(%s, 'YYYY-MM-DD')" % compiler.process(element.clauses, **kw)


@compiles(stored_date, "sqlite")
def _compile_stored_date_sqlite(element, compiler, **kw):
    text = compiler.process(element.clauses, **kw)
    rest = f"substr({text}, instr({text}, '-') + 1)"
    year = f"CAST(substr({text}, 1, instr({text}, '-') - 1) AS INTEGER)"
    month = f"CAST(substr({rest}, 1, instr({rest}, '-') - 1) AS INTEGER)"
    day = f"CAST(substr({rest}, instr({rest}, '-') + 1) AS INTEGER)"
    return f"printf('%04d-%02d-%02d', {year}, {month}, {day})"


# Key of the observation date in result rows
DATE_FIELD = "tanggal"

_NON_MEASUREMENT_COLUMNS = {"id", "station_number", DATE_FIELD}

# Allow-list of selectable measurements and their Python types
OBSERVATION_FIELDS: dict[str, type] = {
    column.key: column.type.python_type
    for column in Weather.__table__.columns
    if column.key not in _NON_MEASUREMENT_COLUMNS
}


# ============================================================================
# Pydantic Response Models (API Responses)
# ============================================================================

class StationResponse(BaseModel):
    """Station metadata response."""
    model_config = ConfigDict(from_attributes=True)

    station_number: int
    station_name: str
    latitude: float
    longitude: float
    elevation: Optional[float] = None
