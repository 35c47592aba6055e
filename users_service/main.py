"""
Users Service Main Application
FastAPI service for users and news registration confirmations
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from sqlalchemy.ext.asyncio import AsyncEngine

from shared.kafka import ConsumerLoop, EventPublisher, KafkaMessageSource
from shared.kafka_topics import OBJECT_SERVICE_TOPIC, ensure_topics
from shared.middleware import RequestContextMiddleware
from shared.observability import log_startup_info, setup_logging
from shared.problems import install_exception_handlers

from .api import build_router
from .config import Settings, settings
from .consumer import build_consumer_loop
from .db import build_engine, build_session_factory, create_schema
from .producer import UserProducer
from .repository import UserRepository
from .service import UserService

logger = structlog.get_logger(__name__)


@dataclass
class UserDependencies:
    """Everything the users app needs, built once at process start"""
    settings: Settings
    service: UserService
    publisher: Optional[EventPublisher] = None
    consumer: Optional[ConsumerLoop] = None
    engine: Optional[AsyncEngine] = None


def build_dependencies(config: Settings = settings) -> UserDependencies:
    engine = build_engine(config.DATABASE_URL)
    repository = UserRepository(build_session_factory(engine))
    publisher = EventPublisher(config.KAFKA_BOOTSTRAP_SERVERS, client_id=config.KAFKA_CLIENT_ID)
    service = UserService(repository, UserProducer(publisher))

    consumer = None
    if config.CONSUMER_ENABLED:
        source = KafkaMessageSource(
            OBJECT_SERVICE_TOPIC,
            bootstrap_servers=config.KAFKA_BOOTSTRAP_SERVERS,
            group_id=config.KAFKA_CONSUMER_GROUP,
            auto_offset_reset=config.KAFKA_AUTO_OFFSET_RESET,
        )
        consumer = build_consumer_loop(source, service)

    return UserDependencies(
        settings=config,
        service=service,
        publisher=publisher,
        consumer=consumer,
        engine=engine,
    )


def create_app(deps: UserDependencies) -> FastAPI:
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

        logger.info("users_service_shutting_down")
        if deps.consumer is not None:
            await deps.consumer.stop()
        if deps.publisher is not None:
            await deps.publisher.stop()
        if deps.engine is not None:
            await deps.engine.dispose()

    app = FastAPI(
        title="Users Service",
        description="Users and their registered news items",
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
        "users_service.main:build_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )
