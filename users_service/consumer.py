"""
Creation-event consumer
Runs process-news for every object_service_topic message. Undecodable
messages, unknown users and failures are logged and the message is dropped.
"""
import structlog
from pydantic import ValidationError

from shared.kafka import ConsumerLoop, MessageSource
from shared.kafka_topics import OBJECT_SERVICE_TOPIC
from shared.messages import CreationEvent
from shared.observability import events_consumed_total
from shared.outcomes import ErrorKind

from .service import UserService

logger = structlog.get_logger(__name__)


class CreationEventHandler:
    def __init__(self, service: UserService):
        self.service = service

    async def __call__(self, raw: bytes) -> None:
        try:
            message = CreationEvent.from_bytes(raw)
        except ValidationError as e:
            events_consumed_total.labels(topic=OBJECT_SERVICE_TOPIC, outcome="malformed").inc()
            logger.warning("creation_event_undecodable", error=str(e))
            return

        outcome = await self.service.process_news(message)
        if outcome.ok:
            events_consumed_total.labels(topic=OBJECT_SERVICE_TOPIC, outcome="processed").inc()
        elif outcome.error is ErrorKind.NOT_FOUND:
            events_consumed_total.labels(topic=OBJECT_SERVICE_TOPIC, outcome="dropped").inc()
            logger.warning(
                "creation_event_dropped",
                user_id=message.user_id,
                news_id=message.object_id,
                reason=outcome.detail,
            )
        else:
            events_consumed_total.labels(topic=OBJECT_SERVICE_TOPIC, outcome="failed").inc()
            logger.error(
                "creation_event_failed",
                user_id=message.user_id,
                news_id=message.object_id,
                reason=outcome.detail,
            )


def build_consumer_loop(source: MessageSource, service: UserService) -> ConsumerLoop:
    return ConsumerLoop(source, CreationEventHandler(service), name="users-creation-consumer")
