"""
FastAPI HTTP Handlers for Catalog Sync Service API v1.

Implements REST endpoints for product reads, Shopify sync and inventory.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from internal.domain.errors import (
    DomainValidationError,
    ProductNotFoundError,
    SyncFailedError,
)
from internal.domain.product import Product
from internal.infrastructure.kafka.producer import SyncRequestPublisher
from internal.infrastructure.metrics import BULK_IMPORT_ITEMS
from internal.transport.http.dto import (
    BulkImportResponse,
    BulkSyncRequest,
    ErrorResponse,
    InventoryUpdatedResponse,
    PaginationMeta,
    ProductListResponse,
    ProductResponse,
    QueuedResponse,
    QueueSyncRequest,
    SyncProductRequest,
    UpdateInventoryRequest,
)
from internal.usecase.bulk_import import BulkImportInput, BulkImportUseCase
from internal.usecase.delete_product import DeleteProductUseCase
from internal.usecase.get_product import GetProductInput, GetProductUseCase
from internal.usecase.list_products import (
    MAX_PER_PAGE,
    ListProductsInput,
    ListProductsUseCase,
)
from internal.usecase.sync_product import SyncProductInput, SyncProductUseCase
from internal.usecase.update_inventory import (
    UpdateInventoryInput,
    UpdateInventoryUseCase,
)
from pkg.logger.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1", tags=["products"])


# Dependency injection container (simplified)
class Dependencies:
    """Container for handler dependencies."""

    sync_use_case: Optional[SyncProductUseCase] = None
    bulk_import_use_case: Optional[BulkImportUseCase] = None
    update_inventory_use_case: Optional[UpdateInventoryUseCase] = None
    get_product_use_case: Optional[GetProductUseCase] = None
    list_products_use_case: Optional[ListProductsUseCase] = None
    delete_product_use_case: Optional[DeleteProductUseCase] = None
    sync_publisher: Optional[SyncRequestPublisher] = None


_deps = Dependencies()


def _require(dependency):
    if dependency is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return dependency


def get_sync_use_case() -> SyncProductUseCase:
    """Get SyncProductUseCase instance."""
    return _require(_deps.sync_use_case)


def get_bulk_import_use_case() -> BulkImportUseCase:
    """Get BulkImportUseCase instance."""
    return _require(_deps.bulk_import_use_case)


def get_update_inventory_use_case() -> UpdateInventoryUseCase:
    """Get UpdateInventoryUseCase instance."""
    return _require(_deps.update_inventory_use_case)


def get_product_use_case() -> GetProductUseCase:
    """Get GetProductUseCase instance."""
    return _require(_deps.get_product_use_case)


def get_list_products_use_case() -> ListProductsUseCase:
    """Get ListProductsUseCase instance."""
    return _require(_deps.list_products_use_case)


def get_delete_product_use_case() -> DeleteProductUseCase:
    """Get DeleteProductUseCase instance."""
    return _require(_deps.delete_product_use_case)


def get_sync_publisher() -> SyncRequestPublisher:
    """Get SyncRequestPublisher instance."""
    return _require(_deps.sync_publisher)


def set_dependencies(
    sync_use_case: Optional[SyncProductUseCase] = None,
    bulk_import_use_case: Optional[BulkImportUseCase] = None,
    update_inventory_use_case: Optional[UpdateInventoryUseCase] = None,
    get_product_use_case: Optional[GetProductUseCase] = None,
    list_products_use_case: Optional[ListProductsUseCase] = None,
    delete_product_use_case: Optional[DeleteProductUseCase] = None,
    sync_publisher: Optional[SyncRequestPublisher] = None,
) -> None:
    """
    Set handler dependencies.

    Called during application startup. Anything left as None makes the
    matching endpoints answer 503.
    """
    _deps.sync_use_case = sync_use_case
    _deps.bulk_import_use_case = bulk_import_use_case
    _deps.update_inventory_use_case = update_inventory_use_case
    _deps.get_product_use_case = get_product_use_case
    _deps.list_products_use_case = list_products_use_case
    _deps.delete_product_use_case = delete_product_use_case
    _deps.sync_publisher = sync_publisher


# Handlers
@router.get(
    "/products",
    response_model=ProductListResponse,
    response_model_by_alias=True,
    responses={
        200: {"description": "Page of products"},
        422: {"model": ErrorResponse, "description": "Invalid pagination"},
    },
)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=MAX_PER_PAGE, description="Items per page"),
    use_case: ListProductsUseCase = Depends(get_list_products_use_case),
) -> ProductListResponse:
    """
    List products, newest first.

    Args:
        page: Page number (1-indexed).
        per_page: Items per page.
        use_case: Injected use case.

    Returns:
        Paginated product list.
    """
    try:
        result = await use_case.execute(ListProductsInput(page=page, per_page=per_page))
    except DomainValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )

    return ProductListResponse(
        data=[
            ProductResponse.from_product(Product.from_dict(item))
            for item in result["data"]
        ],
        meta=PaginationMeta(
            total=result["total"],
            page=result["page"],
            per_page=result["per_page"],
            last_page=result["last_page"],
        ),
    )


@router.get(
    "/products/{sku}",
    response_model=ProductResponse,
    response_model_by_alias=True,
    responses={
        200: {"description": "Product found"},
        404: {"model": ErrorResponse, "description": "Product not found"},
        422: {"model": ErrorResponse, "description": "Invalid SKU"},
    },
)
async def get_product(
    sku: str,
    use_case: GetProductUseCase = Depends(get_product_use_case),
) -> ProductResponse:
    """
    Get a product by SKU.

    Args:
        sku: Product SKU.
        use_case: Injected use case.

    Returns:
        Product data.
    """
    try:
        product = await use_case.execute(GetProductInput(sku=sku))
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )
    except DomainValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )

    return ProductResponse.from_product(product)


@router.delete(
    "/products/{sku}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Product deleted"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
)
async def delete_product(
    sku: str,
    use_case: DeleteProductUseCase = Depends(get_delete_product_use_case),
) -> Response:
    """Soft-delete a product by SKU."""
    try:
        await use_case.execute(sku)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )
    except DomainValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/sync/product",
    response_model=ProductResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Product synced"},
        502: {"description": "Sync failed"},
        503: {"model": ErrorResponse, "description": "Service unavailable"},
    },
)
async def sync_product(
    request: SyncProductRequest,
    x_request_id: Optional[str] = Header(None, alias="X-Request-ID"),
    use_case: SyncProductUseCase = Depends(get_sync_use_case),
) -> ProductResponse:
    """
    Sync one product from Shopify.

    Args:
        request: Sync request.
        x_request_id: Optional request ID.
        use_case: Injected use case.

    Returns:
        The synced product.
    """
    logger.info(
        "Sync requested",
        shopify_id=request.shopify_id,
        force_update=request.force_update,
        request_id=x_request_id,
    )

    try:
        product = await use_case.execute(
            SyncProductInput(
                shopify_id=request.shopify_id,
                force_update=request.force_update,
            )
        )
    except SyncFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Sync failed",
                "message": e.message,
                "shopify_id": e.shopify_id,
            },
        )

    return ProductResponse.from_product(product)


@router.post(
    "/sync/bulk",
    response_model=BulkImportResponse,
    response_model_by_alias=True,
    responses={
        200: {"description": "Bulk import finished"},
        422: {"description": "Invalid request"},
    },
)
async def bulk_sync(
    request: BulkSyncRequest,
    x_request_id: Optional[str] = Header(None, alias="X-Request-ID"),
    use_case: BulkImportUseCase = Depends(get_bulk_import_use_case),
) -> BulkImportResponse:
    """
    Import several products in this request.

    Individual failures are reported in the response and do not fail the
    request.
    """
    logger.info(
        "Bulk sync requested",
        count=len(request.shopify_ids),
        skip_duplicates=request.skip_duplicates,
        request_id=x_request_id,
    )

    result = await use_case.execute(
        BulkImportInput(
            shopify_ids=request.shopify_ids,
            skip_duplicates=request.skip_duplicates,
        )
    )

    BULK_IMPORT_ITEMS.labels(status="success").inc(result.success_count)
    BULK_IMPORT_ITEMS.labels(status="failed").inc(result.failed_count)
    BULK_IMPORT_ITEMS.labels(status="skipped").inc(result.skipped_count)

    return BulkImportResponse.model_validate(result.to_dict())


@router.post(
    "/sync/bulk/queue",
    response_model=QueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        202: {"description": "Sync jobs queued"},
        503: {"model": ErrorResponse, "description": "Queue unavailable"},
    },
)
async def queue_bulk_sync(
    request: QueueSyncRequest,
    publisher: SyncRequestPublisher = Depends(get_sync_publisher),
) -> QueuedResponse:
    """Queue one sync request per Shopify ID for the sync worker."""
    count = await publisher.request_many(
        request.shopify_ids,
        force_update=request.force_update,
    )
    return QueuedResponse(message="Sync jobs queued", count=count)


@router.put(
    "/inventory/{sku}",
    response_model=InventoryUpdatedResponse,
    responses={
        200: {"description": "Inventory updated"},
        404: {"model": ErrorResponse, "description": "Product not found"},
        422: {"model": ErrorResponse, "description": "Invalid SKU or quantity"},
    },
)
async def update_inventory(
    sku: str,
    request: UpdateInventoryRequest,
    use_case: UpdateInventoryUseCase = Depends(get_update_inventory_use_case),
) -> InventoryUpdatedResponse:
    """
    Set the inventory quantity of a product.

    Args:
        sku: Product SKU.
        request: New quantity and optional reason.
        use_case: Injected use case.

    Returns:
        Confirmation with the applied quantity.
    """
    try:
        await use_case.execute(
            UpdateInventoryInput(
                sku=sku,
                quantity=request.quantity,
                reason=request.reason,
            )
        )
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )
    except DomainValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )

    return InventoryUpdatedResponse(
        message="Inventory updated successfully",
        sku=sku,
        quantity=request.quantity,
    )


@router.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy", "service": "catalog-sync-service"}


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
