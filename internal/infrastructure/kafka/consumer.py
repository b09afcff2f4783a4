"""
Kafka Consumer for product sync requests.

Reads ``{"shopify_id", "force_update"}`` messages from the
'product-sync-requests' topic and runs the sync use case for each.
"""
import asyncio
import json
from typing import Any, Optional, Sequence

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError

from internal.infrastructure.kafka.producer import DEFAULT_SYNC_TOPIC
from internal.infrastructure.metrics.prometheus import SYNC_REQUESTS_CONSUMED
from internal.usecase.sync_product import SyncProductInput, SyncProductUseCase
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


MAX_ATTEMPTS = 3
RETRY_BACKOFF = (60, 120, 300)


class InvalidSyncRequest(ValueError):
    """Raised for messages that can never be processed."""


class SyncRequestHandler:
    """Runs SyncProductUseCase for one sync request message."""

    def __init__(self, sync_use_case: SyncProductUseCase) -> None:
        self._sync_use_case = sync_use_case

    async def handle(self, message: dict) -> None:
        """
        Handle a sync request.

        Raises:
            InvalidSyncRequest: If the message has no shopify_id.
            SyncFailedError: If the sync fails.
        """
        if not isinstance(message, dict) or not message.get("shopify_id"):
            raise InvalidSyncRequest(f"Sync request without shopify_id: {message!r}")

        input_dto = SyncProductInput.from_dict(message)
        product = await self._sync_use_case.execute(input_dto)

        logger.info(
            "Sync request processed",
            shopify_id=input_dto.shopify_id,
            sku=product.sku.value,
        )


class SyncRequestConsumer:
    """
    Kafka consumer for the product-sync-requests topic.

    Each message is attempted up to three times with backoff between
    attempts. After the last failure it is logged and committed so one bad
    product cannot block the partition.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        group_id: str,
        handler: SyncRequestHandler,
        topic: str = DEFAULT_SYNC_TOPIC,
        max_attempts: int = MAX_ATTEMPTS,
        retry_backoff: Sequence[float] = RETRY_BACKOFF,
    ) -> None:
        """
        Initialize the sync request consumer.

        Args:
            bootstrap_servers: Comma-separated list of Kafka brokers.
            group_id: Consumer group identifier.
            handler: Handler invoked for each message.
            topic: Topic to consume from.
            max_attempts: Attempts per message before it is skipped.
            retry_backoff: Seconds to wait after the 1st, 2nd, ... failure.
        """
        self._bootstrap_servers = bootstrap_servers
        self._group_id = group_id
        self._handler = handler
        self._topic = topic
        self._max_attempts = max_attempts
        self._retry_backoff = tuple(retry_backoff)
        self._consumer: Optional[AIOKafkaConsumer] = None
        self._running = False

        self._stats = {
            "synced": 0,
            "failed": 0,
            "invalid": 0,
            "total_processed": 0,
        }

    @property
    def stats(self) -> dict:
        return dict(self._stats)

    async def start(self) -> None:
        """Start the Kafka consumer."""
        self._consumer = AIOKafkaConsumer(
            self._topic,
            bootstrap_servers=self._bootstrap_servers,
            group_id=self._group_id,
            client_id="catalog-sync-worker",
            value_deserializer=_deserialize,
            auto_offset_reset="earliest",
            enable_auto_commit=False,
        )
        await self._consumer.start()
        self._running = True
        logger.info(
            "Sync request consumer started",
            topic=self._topic,
            group_id=self._group_id,
        )

    async def stop(self) -> None:
        """Stop the Kafka consumer."""
        self._running = False
        if self._consumer:
            await self._consumer.stop()
            self._consumer = None
            logger.info("Sync request consumer stopped", **self._stats)

    async def consume(self) -> None:
        """
        Consume messages until stop() is called.

        Offsets are committed after every message, whatever its outcome.
        """
        if not self._consumer:
            raise RuntimeError("Consumer not started")

        try:
            async for msg in self._consumer:
                if not self._running:
                    break

                logger.debug(
                    "Received sync request",
                    topic=msg.topic,
                    partition=msg.partition,
                    offset=msg.offset,
                )
                await self.process_message(msg.value)
                await self._consumer.commit()
        except KafkaError as e:
            logger.error("Kafka consumer error", error=str(e))
            raise

    async def process_message(self, value: Any) -> str:
        """
        Process one message with retries.

        Returns:
            "synced", "invalid" or "failed".
        """
        status = "failed"
        attempt = 0

        while attempt < self._max_attempts:
            attempt += 1
            try:
                await self._handler.handle(value)
                status = "synced"
                break
            except InvalidSyncRequest as e:
                logger.warning("Invalid sync request, skipping", error=str(e))
                status = "invalid"
                break
            except Exception as e:
                logger.error(
                    "Sync request attempt failed",
                    shopify_id=_shopify_id(value),
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    error=str(e),
                )
                if attempt >= self._max_attempts:
                    logger.error(
                        "Product sync job failed",
                        shopify_id=_shopify_id(value),
                        attempts=attempt,
                        error=str(e),
                    )
                    break
                await asyncio.sleep(self._backoff_for(attempt))

        self._stats[status] += 1
        self._stats["total_processed"] += 1
        SYNC_REQUESTS_CONSUMED.labels(status=status).inc()
        return status

    def _backoff_for(self, attempt: int) -> float:
        if not self._retry_backoff:
            return 0
        index = min(attempt, len(self._retry_backoff)) - 1
        return self._retry_backoff[index]


def _deserialize(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Undecodable sync request payload")
        return None


def _shopify_id(value: Any) -> Optional[str]:
    return value.get("shopify_id") if isinstance(value, dict) else None
