"""
News Service Main Application
FastAPI service for sport news items and their confirmation handshake
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from sqlalchemy.ext.asyncio import AsyncEngine

from shared.kafka import ConsumerLoop, EventPublisher, KafkaMessageSource
from shared.kafka_topics import CONFIRMATION_TOPIC, ensure_topics
from shared.middleware import RequestContextMiddleware
from shared.observability import log_startup_info, setup_logging
from shared.problems import install_exception_handlers

from .api import build_router
from .cache import NewsCache
from .config import Settings, settings
from .consumer import build_consumer_loop
from .db import build_engine, build_session_factory, create_schema
from .producer import NewsProducer
from .repository import NewsRepository
from .service import NewsService

logger = structlog.get_logger(__name__)


@dataclass
class NewsDependencies:
    """Everything the news app needs, built once at process start"""
    settings: Settings
    service: NewsService
    publisher: Optional[EventPublisher] = None
    consumer: Optional[ConsumerLoop] = None
    engine: Optional[AsyncEngine] = None
    redis_client: Optional[redis.Redis] = None


def build_dependencies(config: Settings = settings) -> NewsDependencies:
    engine = build_engine(config.DATABASE_URL)
    repository = NewsRepository(build_session_factory(engine))

    redis_client = None
    cache = None
    if config.REDIS_URL:
        redis_client = redis.from_url(config.REDIS_URL, decode_responses=True)
        cache = NewsCache(redis_client, ttl_seconds=config.NEWS_CACHE_TTL_SECONDS)

    publisher = EventPublisher(config.KAFKA_BOOTSTRAP_SERVERS, client_id=config.KAFKA_CLIENT_ID)
    service = NewsService(repository, NewsProducer(publisher), cache)

    consumer = None
    if config.CONSUMER_ENABLED:
        source = KafkaMessageSource(
            CONFIRMATION_TOPIC,
            bootstrap_servers=config.KAFKA_BOOTSTRAP_SERVERS,
            group_id=config.KAFKA_CONSUMER_GROUP,
            auto_offset_reset=config.KAFKA_AUTO_OFFSET_RESET,
        )
        consumer = build_consumer_loop(source, service)

    return NewsDependencies(
        settings=config,
        service=service,
        publisher=publisher,
        consumer=consumer,
        engine=engine,
        redis_client=redis_client,
    )


def create_app(deps: NewsDependencies) -> FastAPI:
    config = deps.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        log_startup_info(config)
        if deps.engine is not None:
            await create_schema(deps.engine)
        if config.KAFKA_CREATE_TOPICS:
            await ensure_topics(config.KAFKA_BOOTSTRAP_SERVERS)
        if deps.publisher is not None:
            await deps.publisher.start()
        if deps.consumer is not None:
            await deps.consumer.start()

        yield

        logger.info("news_service_shutting_down")
        if deps.consumer is not None:
            await deps.consumer.stop()
        if deps.publisher is not None:
            await deps.publisher.stop()
        if deps.redis_client is not None:
            await deps.redis_client.aclose()
        if deps.engine is not None:
            await deps.engine.dispose()

    app = FastAPI(
        title="Sport News Service",
        description="News items confirmed through the user service",
        version=config.VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(RequestContextMiddleware)
    install_exception_handlers(app)

    if config.ENABLE_METRICS:
        app.mount("/metrics", make_asgi_app())

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": config.SERVICE_NAME,
            "version": config.VERSION,
            "consumer_running": deps.consumer.running if deps.consumer else False,
        }

    app.include_router(build_router(deps.service))
    return app


def build_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    return create_app(build_dependencies(settings))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "news_service.main:build_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )
