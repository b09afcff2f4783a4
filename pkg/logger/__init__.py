"""
Structured logging shared by the API, the sync worker and the migrator.
"""
from .logger import (
    ConsoleFormatter,
    StructuredFormatter,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)

__all__ = [
    "ConsoleFormatter",
    "StructuredFormatter",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
    "setup_logging",
]
