"""
Update Inventory Use Case.

Overrides the local inventory quantity of a product. The remote catalog
is not touched.
"""
from typing import Optional

from internal.domain.errors import InvalidInventoryError, ProductNotFoundError
from internal.domain.events import InventoryUpdated
from internal.domain.value_objects import Sku
from internal.usecase.cache_keys import CacheKeyGenerator
from internal.usecase.ports import CacheService, EventDispatcher, ProductRepository
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class UpdateInventoryInput:
    """Input DTO for an inventory update."""

    def __init__(
        self,
        sku: str,
        quantity: int,
        reason: Optional[str] = None,
    ) -> None:
        """
        Initialize update inventory input.

        Args:
            sku: SKU of the product.
            quantity: New absolute quantity.
            reason: Optional reason recorded on the event.

        Raises:
            InvalidInventoryError: If quantity is negative.
        """
        if quantity < 0:
            raise InvalidInventoryError(quantity)
        self.sku = sku
        self.quantity = quantity
        self.reason = reason

    @classmethod
    def from_dict(cls, data: dict) -> "UpdateInventoryInput":
        """Create UpdateInventoryInput from dictionary."""
        return cls(
            sku=str(data.get("sku", "")),
            quantity=int(data.get("quantity", 0)),
            reason=data.get("reason"),
        )


class UpdateInventoryUseCase:
    """Use case for setting a product's local inventory quantity."""

    def __init__(
        self,
        repository: ProductRepository,
        event_dispatcher: EventDispatcher,
        cache: CacheService,
        cache_keys: Optional[CacheKeyGenerator] = None,
    ) -> None:
        """
        Initialize the use case.

        Args:
            repository: Product repository for persistence.
            event_dispatcher: Dispatcher for domain events.
            cache: Cache holding product reads, flushed after the update.
            cache_keys: Cache key generator.
        """
        self._repository = repository
        self._event_dispatcher = event_dispatcher
        self._cache = cache
        self._cache_keys = cache_keys or CacheKeyGenerator()

    async def execute(self, input_dto: UpdateInventoryInput) -> None:
        """
        Execute the update inventory use case.

        Args:
            input_dto: SKU, quantity and reason.

        Raises:
            InvalidSkuError: If the SKU is malformed.
            ProductNotFoundError: If no product has the SKU.
        """
        sku = Sku(input_dto.sku)

        logger.info(
            "Updating inventory",
            sku=sku.value,
            quantity=input_dto.quantity,
            reason=input_dto.reason,
        )

        product = await self._repository.find_by_sku(sku)
        if product is None:
            raise ProductNotFoundError.with_sku(sku.value)

        previous_quantity = product.inventory_quantity
        updated = product.with_inventory_quantity(input_dto.quantity)
        await self._repository.save(updated)
        await self._cache.flush_tags([self._cache_keys.products_tag()])

        await self._event_dispatcher.dispatch(
            InventoryUpdated(
                sku=sku,
                previous_quantity=previous_quantity,
                new_quantity=input_dto.quantity,
                reason=input_dto.reason,
            )
        )

        logger.info(
            "Inventory updated successfully",
            sku=sku.value,
            previous_quantity=previous_quantity,
            new_quantity=input_dto.quantity,
        )
