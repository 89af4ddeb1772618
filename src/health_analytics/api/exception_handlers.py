"""
Error responses for the analytics API.

Every failure leaves the API as ``{"error": {"code", "message", "details"}}``:
domain errors with their own status, malformed batches as 422, and anything
unexpected as 500 without internals.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ErrorCode, HealthAnalyticsError


logger = logging.getLogger(__name__)


def error_json(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """The error envelope; ``details`` is omitted when empty."""
    error: Dict[str, Any] = {"code": code.value, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def _field_problems(exc: RequestValidationError | PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in problem["loc"]),
            "message": problem["msg"],
            "type": problem["type"],
        }
        for problem in exc.errors()
    ]


async def analytics_error_handler(request: Request, exc: HealthAnalyticsError) -> JSONResponse:
    """Domain errors keep their own status and code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code.value)
    return error_json(exc.status_code, exc.code, exc.message, exc.details)


async def invalid_batch_handler(
    request: Request,
    exc: RequestValidationError | PydanticValidationError,
) -> JSONResponse:
    """A batch that does not match the input records is a 422 listing each bad field."""
    problems = _field_problems(exc)
    return error_json(
        422,
        ErrorCode.VALIDATION_ERROR,
        f"Input batch has {len(problems)} invalid field(s)",
        {"errors": problems},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s crashed", request.method, request.url.path)
    return error_json(500, ErrorCode.INTERNAL_ERROR, "Analysis service error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers, the catch-all last."""
    app.add_exception_handler(HealthAnalyticsError, analytics_error_handler)
    app.add_exception_handler(RequestValidationError, invalid_batch_handler)
    app.add_exception_handler(PydanticValidationError, invalid_batch_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
