"""Error handlers with OpenTelemetry trace context."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from opentelemetry import trace
from opentelemetry.trace import StatusCode
from sqlalchemy.exc import SQLAlchemyError


logger = logging.getLogger(__name__)


class NotFoundError(Exception):
    """A keyed update or delete found no row."""

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource


def _record_error_on_span(exc: Exception) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.record_exception(exc)
        span.set_attribute("error.type", type(exc).__name__)
        span.set_status(StatusCode.ERROR, str(exc))


def error_response(message: str, status_code: int) -> JSONResponse:
    """Create a JSON error response carrying the current trace id when there is one.

    Args:
        message: Error message.
        status_code: HTTP status code.

    Returns:
        JSONResponse with error, status and optional trace_id keys.
    """
    content: dict[str, str | int] = {
        "error": message,
        "status": status_code,
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        content["trace_id"] = format(span_context.trace_id, "032x")

    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> PlainTextResponse:
        logger.info("%s %s: %s", request.method, request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=404)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        _record_error_on_span(exc)
        logger.error(
            "Database error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return error_response("Database query failed", 500)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _record_error_on_span(exc)
        logger.warning(
            "Validation error on %s %s: %s", request.method, request.url.path, exc.errors()
        )
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})
