"""
Gateway Main Application
Forwards /api/news and /api/users calls to the backend services
"""
from contextlib import asynccontextmanager
from typing import List

import httpx
import structlog
from fastapi import FastAPI, Request, Response, status

from shared.middleware import RequestContextMiddleware
from shared.observability import (
    REQUEST_ID_HEADER,
    get_request_id,
    log_startup_info,
    setup_logging,
)
from shared.problems import install_exception_handlers, problem_response

from .config import Settings, settings
from .routes import Route, build_routes, match_route

logger = structlog.get_logger(__name__)

HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "host",
    "content-length",
}
# httpx hands back decoded bodies
_DROPPED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-encoding"}

PROXIED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def create_app(routes: List[Route], client: httpx.AsyncClient, config: Settings = settings) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_startup_info(config)
        logger.info("gateway_routes", routes=[f"{r.prefix} -> {r.upstream}" for r in routes])
        yield
        await client.aclose()

    app = FastAPI(title="Gateway", version=config.VERSION, lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    install_exception_handlers(app)

    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "healthy", "service": config.SERVICE_NAME, "version": config.VERSION}

    @app.api_route("/{path:path}", methods=PROXIED_METHODS)
    async def proxy(request: Request, path: str):
        route = match_route(routes, request.url.path)
        if route is None:
            return problem_response(status.HTTP_404_NOT_FOUND, f"No route for {request.url.path}")

        url = route.upstream.rstrip("/") + request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        headers = {
            k: v for k, v in request.headers.items()
            if k.lower() not in HOP_BY_HOP_HEADERS and k.lower() != REQUEST_ID_HEADER.lower()
        }
        headers[REQUEST_ID_HEADER] = get_request_id()

        try:
            upstream = await client.request(
                request.method,
                url,
                content=await request.body(),
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error("upstream_unreachable", route=route.name, url=url, error=str(e))
            return problem_response(
                status.HTTP_502_BAD_GATEWAY,
                f"Upstream service '{route.name}' is unreachable",
            )

        logger.info(
            "request_proxied",
            route=route.name,
            method=request.method,
            path=request.url.path,
            status_code=upstream.status_code,
        )
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers={
                k: v for k, v in upstream.headers.items()
                if k.lower() not in _DROPPED_RESPONSE_HEADERS
            },
        )

    return app


def build_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    client = httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    return create_app(build_routes(settings), client, settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gateway.main:build_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
