from shared.kafka import EventPublisher
from shared.kafka_topics import OBJECT_SERVICE_TOPIC
from shared.messages import CreationEvent

# Every creation event names this user; the request carries no user id.
REGISTRATION_USER_ID = "67372df1077cd2c1072a883b"


class NewsProducer:
    """Publishes creation events toward the user service"""

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher

    async def send_registration_request(self, object_id: str, user_id: str = REGISTRATION_USER_ID) -> CreationEvent:
        event = CreationEvent(object_id=object_id, user_id=user_id)
        await self.publisher.publish(OBJECT_SERVICE_TOPIC, event)
        return event
