"""
Use case package for Catalog Sync Service.

Contains business logic and use cases.
"""
from .sync_product import SyncProductUseCase, SyncProductInput
from .bulk_import import BulkImportUseCase, BulkImportInput, BulkImportResult
from .update_inventory import UpdateInventoryUseCase, UpdateInventoryInput
from .get_product import GetProductUseCase, GetProductInput
from .list_products import ListProductsUseCase, ListProductsInput
from .delete_product import DeleteProductUseCase

__all__ = [
    "SyncProductUseCase",
    "SyncProductInput",
    "BulkImportUseCase",
    "BulkImportInput",
    "BulkImportResult",
    "UpdateInventoryUseCase",
    "UpdateInventoryInput",
    "GetProductUseCase",
    "GetProductInput",
    "ListProductsUseCase",
    "ListProductsInput",
    "DeleteProductUseCase",
]
