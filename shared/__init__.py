"""
Shared contracts and plumbing for the news and user services
"""
from .ids import generate_object_id
from .kafka_topics import CONFIRMATION_TOPIC, OBJECT_SERVICE_TOPIC
from .messages import ConfirmationEvent, CreationEvent
from .outcomes import ErrorKind, Outcome

__all__ = [
    "generate_object_id",
    "OBJECT_SERVICE_TOPIC",
    "CONFIRMATION_TOPIC",
    "CreationEvent",
    "ConfirmationEvent",
    "ErrorKind",
    "Outcome",
]
