"""Database connection and session management."""

import logging
from typing import Generator, Sequence

from fastapi import Request
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool
from sqlalchemy.sql import Executable
from tenacity import (
    before_sleep_log,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from weather_api.config import APIConfig, get_config

logger = logging.getLogger(__name__)

# Base class for ORM models
Base = declarative_base()

# Session.info key holding the retry policy of the owning Database
RETRY_POLICY_KEY = "retry_policy"


def is_connection_error(exc: BaseException) -> bool:
    """True for driver errors that invalidated the underlying connection."""
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def build_retry_policy(attempts: int) -> Retrying:
    """Retry lost connections up to ``attempts`` times with exponential backoff."""
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, max=2),
        retry=retry_if_exception(is_connection_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


class Database:
    """
    Storage collaborator shared by all request handlers.

    Created once at application startup, handed to handlers through the
    ``get_db`` dependency and disposed at shutdown.
    """

    def __init__(self, config: APIConfig):
        """
        Initialize engine and session factory.

        Args:
            config: Configuration object
        """
        self.config = config
        self.retry_policy = build_retry_policy(config.db_retry_attempts)
        self.engine = create_engine(config.database_url, **self._engine_options(config))
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            info={RETRY_POLICY_KEY: self.retry_policy}
        )

    @staticmethod
    def _engine_options(config: APIConfig) -> dict:
        if not config.is_postgres:
            return {}
        return {
            "poolclass": QueuePool,
            "pool_size": config.pool_size,
            "max_overflow": config.max_overflow,
            "pool_timeout": config.pool_timeout,
            "pool_recycle": config.pool_recycle,
            "pool_pre_ping": True,  # Verify connections before using
            "connect_args": {
                "connect_timeout": config.connect_timeout,
                "options": f"-c statement_timeout={config.statement_timeout_ms}",
            },
        }

    def session(self) -> Session:
        return self.session_factory()

    def check_connection(self) -> bool:
        """
        Check if database connection is healthy.

        Returns:
            True if connection successful, False otherwise.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database connection check failed: {e}")
            return False

    def missing_tables(self, required: Sequence[str]) -> list[str]:
        """
        Report which of the required tables do not exist.

        Args:
            required: Table names the API reads from

        Returns:
            Names from ``required`` that are absent from the database
        """
        existing = set(inspect(self.engine).get_table_names())
        return [name for name in required if name not in existing]

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    Yields:
        Database session that is automatically closed after use.
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def _fetch_all(db: Session, statement: Executable) -> list[RowMapping]:
    try:
        return list(db.execute(statement).mappings().all())
    except DBAPIError:
        db.rollback()
        raise


def execute_with_retry(db: Session, statement: Executable) -> list[RowMapping]:
    """
    Execute a read statement and return every row as a mapping.

    Lost connections are retried with exponential backoff using the policy
    the session was created with (see ``Database``); any other database
    error propagates on the first attempt.
    """
    policy = db.info.get(RETRY_POLICY_KEY)
    if policy is None:
        policy = build_retry_policy(get_config().db_retry_attempts)
    return policy.copy()(_fetch_all, db, statement)
