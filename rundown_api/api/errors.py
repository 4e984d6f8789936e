"""Exception handlers that turn application errors into JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import RundownError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def rundown_error_handler(request: Request, exc: RundownError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed input as 400 with a message naming what was wrong."""

    locations = {error["loc"][0] for error in exc.errors() if error.get("loc")}
    if "path" in locations:
        message = "Invalid athlete ID"
    elif "body" in locations:
        message = "Invalid request body"
    else:
        message = "Invalid query parameters"
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return error_response(400, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RundownError, rundown_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


__all__ = ["error_response", "register_exception_handlers"]
