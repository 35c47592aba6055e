"""
Kafka plumbing shared by both services

EventPublisher wraps an AIOKafkaProducer; ConsumerLoop drives a single
sequential consumption task over a MessageSource (KafkaMessageSource in
production).
"""
import asyncio
from typing import Awaitable, Callable, Optional, Protocol

import structlog
from aiokafka import AIOKafkaConsumer, AIOKafkaProducer

from .messages import Envelope
from .observability import events_consumed_total, events_published_total

logger = structlog.get_logger(__name__)

MessageHandler = Callable[[bytes], Awaitable[None]]


class EventPublisher:
    """Kafka publisher for event envelopes"""

    def __init__(self, bootstrap_servers: str, client_id: str) -> None:
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self._producer: Optional[AIOKafkaProducer] = None
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        if self._producer:
            return
        producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
        )
        await producer.start()
        self._producer = producer
        logger.info("kafka_producer_started", bootstrap_servers=self.bootstrap_servers)

    async def stop(self) -> None:
        if self._producer:
            await self._producer.stop()
            self._producer = None
            logger.info("kafka_producer_stopped")

    async def publish(self, topic: str, event: Envelope) -> None:
        """Send one envelope and wait for the broker ack; errors propagate"""
        if self._producer is None:
            raise RuntimeError("Producer not started")
        payload = event.to_bytes()
        try:
            async with self._lock:
                await self._producer.send_and_wait(topic=topic, value=payload)
        except Exception:
            events_published_total.labels(topic=topic, status="error").inc()
            raise
        events_published_total.labels(topic=topic, status="ok").inc()
        logger.debug("event_published", topic=topic, payload=payload.decode("utf-8"))


class MessageSource(Protocol):
    topic: str

    async def start(self) -> None: ...

    async def receive(self) -> bytes: ...

    async def stop(self) -> None: ...


class KafkaMessageSource:
    """One-topic AIOKafkaConsumer handing out raw message values"""

    def __init__(
        self,
        topic: str,
        bootstrap_servers: str,
        group_id: str,
        auto_offset_reset: str = "earliest",
    ) -> None:
        self.topic = topic
        self.bootstrap_servers = bootstrap_servers
        self.group_id = group_id
        self.auto_offset_reset = auto_offset_reset
        self._consumer: Optional[AIOKafkaConsumer] = None

    async def start(self) -> None:
        consumer = AIOKafkaConsumer(
            self.topic,
            bootstrap_servers=self.bootstrap_servers,
            group_id=self.group_id,
            auto_offset_reset=self.auto_offset_reset,
            enable_auto_commit=True,
        )
        await consumer.start()
        self._consumer = consumer
        logger.info(
            "kafka_consumer_subscribed",
            topic=self.topic,
            group_id=self.group_id,
        )

    async def receive(self) -> bytes:
        record = await self._consumer.getone()
        return record.value

    async def stop(self) -> None:
        if self._consumer:
            await self._consumer.stop()
            self._consumer = None
            logger.info("kafka_consumer_closed", topic=self.topic)


class ConsumerLoop:
    """
    Background consumption task for one topic

    Messages are received and handled strictly one at a time. A handler
    exception is logged and the loop moves on to the next message. stop()
    sets the stop event (checked once per iteration), cancels the task only
    while it waits in receive or in the error pause, joins the task so a
    message already being handled runs to completion, then closes the source.
    """

    def __init__(
        self,
        source: MessageSource,
        handler: MessageHandler,
        name: str,
        receive_error_pause: float = 1.0,
    ) -> None:
        self.source = source
        self.handler = handler
        self.name = name
        self.receive_error_pause = receive_error_pause
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._idle = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        await self.source.start()
        self._task = asyncio.create_task(self.run(), name=self.name)
        logger.info("consumer_loop_started", consumer=self.name, topic=self.source.topic)

    async def stop(self) -> None:
        self._stopping.set()
        if self._task:
            if self._idle:
                self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.source.stop()
        logger.info("consumer_loop_stopped", consumer=self.name)

    async def run(self) -> None:
        topic = self.source.topic
        while not self._stopping.is_set():
            self._idle = True
            try:
                raw = await self.source.receive()
            except Exception as e:
                events_consumed_total.labels(topic=topic, outcome="receive_error").inc()
                logger.error("message_receive_failed", consumer=self.name, error=str(e), exc_info=True)
                await asyncio.sleep(self.receive_error_pause)
                continue
            finally:
                self._idle = False

            logger.info("message_received", consumer=self.name, topic=topic)
            try:
                await self.handler(raw)
            except Exception as e:
                events_consumed_total.labels(topic=topic, outcome="handler_error").inc()
                logger.error("message_processing_failed", consumer=self.name, error=str(e), exc_info=True)
