"""
Request context middleware
Binds a request id to the logging context for the whole request and turns
unhandled exceptions into problem responses while that id is still bound.
"""
import structlog
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware

from .observability import REQUEST_ID_HEADER, generate_request_id, request_id_ctx
from .problems import problem_response

logger = structlog.get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the logging context and echoes it back"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        token = request_id_ctx.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "unhandled_exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
                exc_info=True,
            )
            response = problem_response(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "An unexpected error occurred",
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            request_id_ctx.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
