"""
Confirmation consumer
Applies confirmation_topic messages to news items. Undecodable messages,
unknown ids and store failures are logged and the message is dropped.
"""
import structlog
from pydantic import ValidationError

from shared.kafka import ConsumerLoop, MessageSource
from shared.kafka_topics import CONFIRMATION_TOPIC
from shared.messages import ConfirmationEvent
from shared.observability import events_consumed_total
from shared.outcomes import ErrorKind

from .service import NewsService

logger = structlog.get_logger(__name__)


class ConfirmationHandler:
    def __init__(self, service: NewsService):
        self.service = service

    async def __call__(self, raw: bytes) -> None:
        try:
            event = ConfirmationEvent.from_bytes(raw)
        except ValidationError as e:
            events_consumed_total.labels(topic=CONFIRMATION_TOPIC, outcome="malformed").inc()
            logger.warning("confirmation_undecodable", error=str(e))
            return

        outcome = await self.service.apply_confirmation(event)
        if outcome.ok:
            events_consumed_total.labels(topic=CONFIRMATION_TOPIC, outcome="processed").inc()
        elif outcome.error is ErrorKind.NOT_FOUND:
            events_consumed_total.labels(topic=CONFIRMATION_TOPIC, outcome="dropped").inc()
            logger.warning("confirmation_dropped", news_id=event.object_id, reason=outcome.detail)
        else:
            events_consumed_total.labels(topic=CONFIRMATION_TOPIC, outcome="failed").inc()
            logger.error("confirmation_failed", news_id=event.object_id, reason=outcome.detail)


def build_consumer_loop(source: MessageSource, service: NewsService) -> ConsumerLoop:
    return ConsumerLoop(source, ConfirmationHandler(service), name="news-confirmation-consumer")
