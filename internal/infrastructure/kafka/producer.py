"""
Kafka Producer for event publishing.

Publishes domain events and sync requests to Kafka topics.
"""
import json
from typing import Iterable, Optional

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from internal.domain.errors import EventPublishError
from internal.usecase.ports import DomainEvent
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


DEFAULT_EVENTS_TOPIC = "product-events"
DEFAULT_SYNC_TOPIC = "product-sync-requests"


class KafkaProducer:
    """
    Thin wrapper around AIOKafkaProducer.

    Values are JSON-encoded and keys UTF-8 encoded. Sends wait for all
    in-sync replicas.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str = "catalog-sync-service",
    ) -> None:
        """
        Initialize the Kafka producer.

        Args:
            bootstrap_servers: Comma-separated list of Kafka brokers.
            client_id: Client identifier for the producer.
        """
        self._bootstrap_servers = bootstrap_servers
        self._client_id = client_id
        self._producer: Optional[AIOKafkaProducer] = None

    async def start(self) -> None:
        """Start the Kafka producer."""
        self._producer = AIOKafkaProducer(
            bootstrap_servers=self._bootstrap_servers,
            client_id=self._client_id,
            value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
            key_serializer=lambda k: k.encode("utf-8") if k else None,
            acks="all",
        )
        await self._producer.start()
        logger.info("Kafka producer started", bootstrap_servers=self._bootstrap_servers)

    async def stop(self) -> None:
        """Stop the Kafka producer."""
        if self._producer:
            await self._producer.stop()
            self._producer = None
            logger.info("Kafka producer stopped")

    async def publish_message(
        self,
        topic: str,
        key: Optional[str],
        value: dict,
    ) -> None:
        """
        Publish a message and wait for the broker acknowledgement.

        Raises:
            RuntimeError: If the producer has not been started.
            KafkaError: If the broker rejects the message.
        """
        if not self._producer:
            raise RuntimeError("Producer not started")

        await self._producer.send_and_wait(topic=topic, key=key, value=value)
        logger.debug("Message published to Kafka", topic=topic, key=key)


class KafkaEventDispatcher:
    """
    Event dispatcher that publishes domain events to Kafka.

    Messages are keyed by the event's aggregate key (the product SKU) so
    events for one product stay ordered within a partition.
    """

    def __init__(
        self,
        producer: KafkaProducer,
        topic: str = DEFAULT_EVENTS_TOPIC,
    ) -> None:
        self._producer = producer
        self._topic = topic

    async def dispatch(self, event: DomainEvent) -> None:
        """
        Publish one event.

        Raises:
            EventPublishError: If the event could not be published.
        """
        payload = event.to_dict()
        value = {
            "event_type": event.event_type,
            "payload": payload,
            "occurred_at": payload.get("occurred_at"),
        }

        try:
            await self._producer.publish_message(
                topic=self._topic,
                key=event.aggregate_key,
                value=value,
            )
        except (KafkaError, RuntimeError) as e:
            logger.error(
                "Failed to publish event",
                event_type=event.event_type,
                key=event.aggregate_key,
                error=str(e),
            )
            raise EventPublishError(event.event_type, str(e)) from e

        logger.info(
            "Event published to Kafka",
            topic=self._topic,
            event_type=event.event_type,
            key=event.aggregate_key,
        )

    async def dispatch_many(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            await self.dispatch(event)


class SyncRequestPublisher:
    """Enqueues product sync requests for the sync worker."""

    def __init__(
        self,
        producer: KafkaProducer,
        topic: str = DEFAULT_SYNC_TOPIC,
    ) -> None:
        self._producer = producer
        self._topic = topic

    async def request_sync(self, shopify_id: str, force_update: bool = True) -> None:
        await self._producer.publish_message(
            topic=self._topic,
            key=str(shopify_id),
            value={"shopify_id": str(shopify_id), "force_update": force_update},
        )

    async def request_many(self, shopify_ids: Iterable[str], force_update: bool = True) -> int:
        """
        Enqueue one sync request per ID.

        Returns:
            Number of requests published.
        """
        count = 0
        for shopify_id in shopify_ids:
            await self.request_sync(shopify_id, force_update)
            count += 1

        logger.info("Sync requests queued", topic=self._topic, count=count)
        return count
