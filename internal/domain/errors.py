"""
Domain-specific exceptions.

Custom exceptions for domain validation and business rule violations.
"""
from typing import Optional


class DomainError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize domain error.

        Args:
            message: Error message describing the issue.
        """
        self.message = message
        super().__init__(self.message)


class DomainValidationError(DomainError):
    """Exception raised when domain validation fails."""
    pass


class InvalidSkuError(DomainValidationError):
    """Exception raised when a SKU violates format rules."""

    @classmethod
    def empty(cls) -> "InvalidSkuError":
        return cls("SKU cannot be empty")

    @classmethod
    def too_long(cls, max_length: int) -> "InvalidSkuError":
        return cls(f"SKU cannot exceed {max_length} characters")

    @classmethod
    def invalid_characters(cls) -> "InvalidSkuError":
        return cls("SKU contains invalid characters")


class InvalidPriceError(DomainValidationError):
    """Exception raised when a price amount is not acceptable."""

    @classmethod
    def negative(cls) -> "InvalidPriceError":
        return cls("Price cannot be negative")

    @classmethod
    def invalid_amount(cls) -> "InvalidPriceError":
        return cls("Invalid price amount")


class CurrencyMismatchError(DomainValidationError):
    """Exception raised when prices in different currencies are combined."""

    def __init__(self, message: str, left: str, right: str) -> None:
        """
        Initialize currency mismatch error.

        Args:
            message: Error message describing the issue.
            left: Currency code of the left operand.
            right: Currency code of the right operand.
        """
        super().__init__(message)
        self.left = left
        self.right = right

    @classmethod
    def for_comparison(cls, left: str, right: str) -> "CurrencyMismatchError":
        return cls(
            f"Cannot compare prices with different currencies: {left} and {right}",
            left,
            right,
        )

    @classmethod
    def for_operation(
        cls,
        operation: str,
        left: str,
        right: str,
    ) -> "CurrencyMismatchError":
        return cls(
            f"Cannot {operation} prices with different currencies: {left} and {right}",
            left,
            right,
        )


class InvalidInventoryError(DomainValidationError):
    """Exception raised when an inventory quantity is negative."""

    def __init__(self, quantity: int) -> None:
        """
        Initialize invalid inventory error.

        Args:
            quantity: The rejected quantity.
        """
        super().__init__("Inventory quantity cannot be negative")
        self.quantity = quantity


class ProductNotFoundError(DomainError):
    """Exception raised when a product is not found."""

    def __init__(self, message: str, identifier: str) -> None:
        """
        Initialize product not found error.

        Args:
            message: Error message describing the lookup.
            identifier: The identifier that was looked up.
        """
        super().__init__(message)
        self.identifier = identifier

    @classmethod
    def with_sku(cls, sku: str) -> "ProductNotFoundError":
        return cls(f"Product with SKU '{sku}' not found", sku)

    @classmethod
    def with_shopify_id(cls, shopify_id: str) -> "ProductNotFoundError":
        return cls(f"Product with Shopify ID '{shopify_id}' not found", shopify_id)

    @classmethod
    def with_id(cls, product_id: int) -> "ProductNotFoundError":
        return cls(f"Product with ID '{product_id}' not found", str(product_id))


class DuplicateProductError(DomainError):
    """Exception raised when attempting to create a duplicate product."""

    @classmethod
    def with_sku(cls, sku: str) -> "DuplicateProductError":
        return cls(f"Product with SKU '{sku}' already exists")

    @classmethod
    def with_shopify_id(cls, shopify_id: str) -> "DuplicateProductError":
        return cls(f"Product with Shopify ID '{shopify_id}' already exists")


class RemoteApiError(DomainError):
    """Exception raised when the remote catalog API rejects a request."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        """
        Initialize remote API error.

        Args:
            message: Error message describing the issue.
            status_code: HTTP status code returned by the remote API.
        """
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def product_not_found(cls, shopify_id: str) -> "RemoteApiError":
        return cls(f"Product with Shopify ID '{shopify_id}' not found", 404)

    @classmethod
    def rate_limited(cls) -> "RemoteApiError":
        return cls("Shopify API rate limit exceeded", 429)

    @classmethod
    def unauthorized(
        cls,
        message: str = "Shopify API authentication failed",
        status_code: int = 401,
    ) -> "RemoteApiError":
        return cls(message, status_code)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)


class SyncFailedError(DomainError):
    """Exception raised when syncing a product from Shopify fails."""

    def __init__(
        self,
        message: str,
        shopify_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        """
        Initialize sync failed error.

        Args:
            message: Error message describing the issue.
            shopify_id: Remote product ID that failed to sync.
            cause: The underlying exception.
        """
        super().__init__(message)
        self.shopify_id = shopify_id
        self.cause = cause

    @classmethod
    def from_remote_error(
        cls,
        shopify_id: str,
        cause: BaseException,
    ) -> "SyncFailedError":
        return cls(
            f"Failed to sync product from Shopify: {cause}",
            shopify_id=shopify_id,
            cause=cause,
        )


class CacheError(DomainError):
    """Exception raised when cache operations fail."""
    pass


class EventPublishError(DomainError):
    """Exception raised when event publishing fails."""

    def __init__(self, event_type: str, reason: str) -> None:
        """
        Initialize event publish error.

        Args:
            event_type: Type of event that failed to publish.
            reason: The reason for the failure.
        """
        super().__init__(f"Failed to publish event '{event_type}': {reason}")
        self.event_type = event_type
        self.reason = reason
