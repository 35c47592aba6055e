from datetime import datetime

from shared.kafka import EventPublisher
from shared.kafka_topics import CONFIRMATION_TOPIC
from shared.messages import ConfirmationEvent


class UserProducer:
    """Publishes confirmations toward the news service"""

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher

    async def send_confirmation(self, object_id: str, moment: datetime) -> ConfirmationEvent:
        event = ConfirmationEvent.at(object_id, moment)
        await self.publisher.publish(CONFIRMATION_TOPIC, event)
        return event
