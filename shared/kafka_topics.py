"""
Kafka Topic Definitions and Management
Names and provisioning settings for the two confirmation-handshake channels
"""
import asyncio
from dataclasses import dataclass
from typing import Dict, List

import structlog
from aiokafka.admin import AIOKafkaAdminClient, NewTopic

logger = structlog.get_logger(__name__)

# News service -> user service: {ObjectId, UserId}
OBJECT_SERVICE_TOPIC = "object_service_topic"
# User service -> news service: {ObjectId, ConfirmationTimestamp}
CONFIRMATION_TOPIC = "confirmation_topic"


@dataclass
class TopicConfig:
    """Kafka topic configuration"""
    name: str
    partitions: int = 1
    replication_factor: int = 1
    retention_ms: int = 7 * 24 * 60 * 60 * 1000  # 7 days
    cleanup_policy: str = "delete"


TOPICS: Dict[str, TopicConfig] = {
    OBJECT_SERVICE_TOPIC: TopicConfig(name=OBJECT_SERVICE_TOPIC),
    CONFIRMATION_TOPIC: TopicConfig(name=CONFIRMATION_TOPIC),
}


async def ensure_topics(bootstrap_servers: str, client_id: str = "topic_manager") -> List[str]:
    """
    Create any managed topic that does not exist yet

    Returns:
        Names of the topics that were created
    """
    admin = AIOKafkaAdminClient(bootstrap_servers=bootstrap_servers, client_id=client_id)
    await admin.start()
    try:
        existing = set(await admin.list_topics())
        missing = [config for name, config in TOPICS.items() if name not in existing]
        if not missing:
            logger.info("kafka_topics_present", topics=sorted(TOPICS))
            return []

        await admin.create_topics(new_topics=[
            NewTopic(
                name=config.name,
                num_partitions=config.partitions,
                replication_factor=config.replication_factor,
                topic_configs={
                    "retention.ms": str(config.retention_ms),
                    "cleanup.policy": config.cleanup_policy,
                },
            )
            for config in missing
        ])
        created = [config.name for config in missing]
        logger.info("kafka_topics_created", topics=created)
        return created
    finally:
        await admin.close()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Provision the confirmation handshake topics")
    parser.add_argument("--bootstrap-servers", default="localhost:9092", help="Kafka bootstrap servers")
    args = parser.parse_args()

    created = asyncio.run(ensure_topics(args.bootstrap_servers))
    print(f"Created: {', '.join(created) if created else 'nothing, all topics exist'}")
