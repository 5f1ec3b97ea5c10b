"""Domain errors and their HTTP responses.

Malformed query parameters answer 400 with a short plain-text reason.
Storage and unexpected failures answer 500 with a generic JSON body;
the underlying error is only logged.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

logger = logging.getLogger(__name__)


class InvalidRequest(ValueError):
    """Missing or malformed query parameters."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    @property
    def message(self) -> str:
        return f"Invalid request. {self.reason[:1].upper()}{self.reason[1:]}."


class StorageFailure(RuntimeError):
    """The database rejected a query or could not be reached."""

    def __init__(self, operation: str):
        super().__init__(f"Storage failure during {operation}")
        self.operation = operation


def internal_error(request: Request, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "type": error_type,
            "path": str(request.url.path)
        }
    )


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(InvalidRequest)
    async def invalid_request_handler(request: Request, exc: InvalidRequest):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc.reason}")
        return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure):
        logger.error(
            f"Storage failure: {request.method} {request.url.path} - {exc.operation}",
            exc_info=exc
        )
        return internal_error(request, "storage_error")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler for unhandled errors.

        Returns:
            500 error with sanitized error message
        """
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - {str(exc)}",
            exc_info=True
        )
        return internal_error(request, "internal_error")
