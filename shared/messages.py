"""
Event envelopes carried on the Kafka channels
Field names on the wire are PascalCase (ObjectId, UserId, ConfirmationTimestamp);
Python code uses the snake_case attributes.
"""
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes | str):
        """Decode a message value; raises pydantic.ValidationError on malformed payloads"""
        return cls.model_validate_json(raw)


class CreationEvent(Envelope):
    """Published by the news service once per created item"""
    object_id: str = Field(alias="ObjectId")
    user_id: str = Field(alias="UserId")


class ConfirmationEvent(Envelope):
    """
    Published by the user service after it registers an object

    The same envelope is also emitted on user creation with the user id as
    object_id.
    """
    object_id: str = Field(alias="ObjectId")
    confirmation_timestamp: str = Field(alias="ConfirmationTimestamp")

    @classmethod
    def at(cls, object_id: str, moment: datetime) -> "ConfirmationEvent":
        return cls(object_id=object_id, confirmation_timestamp=moment.isoformat())

    def parsed_timestamp(self) -> datetime:
        """ISO-8601 timestamp as a datetime; raises ValueError when unparseable"""
        return datetime.fromisoformat(self.confirmation_timestamp)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
