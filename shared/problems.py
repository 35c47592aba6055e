"""
Problem-details (RFC 7807) responses
Maps Outcome error kinds to HTTP status codes and installs the
application-wide exception handlers.
"""
from http import HTTPStatus

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from .observability import get_request_id
from .outcomes import ErrorKind, Outcome

logger = structlog.get_logger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNPROCESSABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
}

_PROBLEM_TYPES = {
    status.HTTP_404_NOT_FOUND: "https://tools.ietf.org/html/rfc9110#section-15.5.5",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "https://tools.ietf.org/html/rfc4918#section-11.2",
    status.HTTP_502_BAD_GATEWAY: "https://tools.ietf.org/html/rfc9110#section-15.6.3",
}


def problem_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        content={
            "type": _PROBLEM_TYPES.get(status_code, "about:blank"),
            "title": HTTPStatus(status_code).phrase,
            "status": status_code,
            "detail": detail,
            "traceId": get_request_id(),
        },
    )


def problem_for(outcome: Outcome) -> JSONResponse:
    """Problem response for a failed outcome"""
    return problem_response(STATUS_BY_KIND[outcome.error], outcome.detail)


def empty_or_problem(outcome: Outcome) -> Response:
    """200 with no body on success, problem details otherwise"""
    if outcome.ok:
        return Response(status_code=status.HTTP_200_OK)
    return problem_for(outcome)


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "request_validation_failed",
            path=request.url.path,
            method=request.method,
            errors=exc.errors(),
        )
        return problem_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return problem_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "An unexpected error occurred",
        )
