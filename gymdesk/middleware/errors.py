import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gymdesk.services.core_service import CoreError
from gymdesk.utils.envelope import error

log = logging.getLogger("gymdesk.errors")


def install_error_handlers(app: FastAPI) -> None:
    """Every error leaves as {"error": message}; tracebacks stay in the logs."""

    @app.exception_handler(CoreError)
    async def _core_error(request: Request, exc: CoreError):
        return error(exc.message, status=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return error(str(exc.detail), status=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return error("Invalid request", status=422)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error("Internal server error", status=500)
