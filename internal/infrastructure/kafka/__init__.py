"""
Kafka infrastructure package.
"""

from .consumer import SyncRequestConsumer, SyncRequestHandler
from .producer import KafkaEventDispatcher, KafkaProducer, SyncRequestPublisher

__all__ = [
    "KafkaProducer",
    "KafkaEventDispatcher",
    "SyncRequestPublisher",
    "SyncRequestConsumer",
    "SyncRequestHandler",
]
