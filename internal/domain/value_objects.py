"""
Value Objects for the Product domain.

Value objects are immutable and defined by their attributes.
"""
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from .errors import CurrencyMismatchError, InvalidPriceError, InvalidSkuError


class Currency(Enum):
    """Currencies supported by the catalog."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"

    @classmethod
    def from_string(cls, value: str) -> "Currency":
        """
        Parse a currency code.

        Args:
            value: ISO 4217 code, any case, surrounding whitespace allowed.

        Returns:
            Matching Currency.

        Raises:
            ValueError: If the code is not supported.
        """
        return cls(value.strip().upper())

    @classmethod
    def all(cls) -> list["Currency"]:
        return list(cls)

    @property
    def symbol(self) -> str:
        return _CURRENCY_SYMBOLS[self]

    def format(self, amount_in_cents: int) -> str:
        """
        Format an amount in minor units for display.

        Args:
            amount_in_cents: Amount in cents.

        Returns:
            Display string, e.g. "$12.34" or "12.34 EUR".
        """
        decimal = (Decimal(amount_in_cents) / 100).quantize(Decimal("0.01"))
        if self is Currency.EUR:
            return f"{decimal:.2f} EUR"
        return f"{self.symbol}{decimal:.2f}"


_CURRENCY_SYMBOLS = {
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
    Currency.CAD: "C$",
    Currency.AUD: "A$",
}


class ProductStatus(Enum):
    """Publication status of a product."""

    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"

    @classmethod
    def from_string(cls, value: str) -> "ProductStatus":
        """
        Parse a status string.

        Raises:
            ValueError: If the value is not a known status.
        """
        return cls(value.strip().lower())

    @classmethod
    def all(cls) -> list["ProductStatus"]:
        return list(cls)

    @property
    def is_active(self) -> bool:
        return self is ProductStatus.ACTIVE

    @property
    def is_draft(self) -> bool:
        return self is ProductStatus.DRAFT

    @property
    def is_archived(self) -> bool:
        return self is ProductStatus.ARCHIVED

    @property
    def is_editable(self) -> bool:
        return self is not ProductStatus.ARCHIVED


@dataclass(frozen=True)
class Sku:
    """
    Stock Keeping Unit value object.

    The value is stored trimmed and uppercased.

    Attributes:
        value: Normalized SKU string (1-50 chars of A-Z, 0-9, '-', '_').
    """
    value: str

    MAX_LENGTH = 50
    _PATTERN = re.compile(r"^[A-Z0-9\-_]+$")

    def __post_init__(self) -> None:
        """Normalize and validate the SKU."""
        if not isinstance(self.value, str):
            raise InvalidSkuError.invalid_characters()

        normalized = self.value.strip().upper()
        if not normalized:
            raise InvalidSkuError.empty()
        if len(normalized) > self.MAX_LENGTH:
            raise InvalidSkuError.too_long(self.MAX_LENGTH)
        if not self._PATTERN.match(normalized):
            raise InvalidSkuError.invalid_characters()

        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value

    def equals(self, other: "Sku") -> bool:
        return self.value == other.value


@dataclass(frozen=True)
class Price:
    """
    Price value object.

    Attributes:
        amount: Amount in minor units (cents), never negative.
        currency: Currency of the amount.
    """
    amount: int
    currency: Currency = Currency.USD

    def __post_init__(self) -> None:
        """Validate price constraints."""
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidPriceError.invalid_amount()
        if self.amount < 0:
            raise InvalidPriceError.negative()

    @classmethod
    def from_decimal(
        cls,
        value: Union[str, int, float, Decimal],
        currency: Currency = Currency.USD,
    ) -> "Price":
        """
        Build a price from a major-unit amount such as "29.99".

        Args:
            value: Amount in major units.
            currency: Currency of the amount.

        Returns:
            Price with the amount rounded half-up to whole cents.

        Raises:
            InvalidPriceError: If the value is not a finite number or is negative.
        """
        try:
            cents = (Decimal(str(value).strip()) * 100).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            )
        except (InvalidOperation, ValueError) as e:
            raise InvalidPriceError.invalid_amount() from e
        return cls(int(cents), currency)

    @classmethod
    def zero(cls, currency: Currency = Currency.USD) -> "Price":
        return cls(0, currency)

    def to_decimal(self) -> Decimal:
        return Decimal(self.amount) / 100

    def format(self) -> str:
        return self.currency.format(self.amount)

    def is_less_than(self, other: "Price") -> bool:
        self._ensure_same_currency(other)
        return self.amount < other.amount

    def is_greater_than(self, other: "Price") -> bool:
        self._ensure_same_currency(other)
        return self.amount > other.amount

    def equals(self, other: "Price") -> bool:
        return self.amount == other.amount and self.currency is other.currency

    def add(self, other: "Price") -> "Price":
        self._ensure_same_currency(other, "add")
        return Price(self.amount + other.amount, self.currency)

    def subtract(self, other: "Price") -> "Price":
        self._ensure_same_currency(other, "subtract")
        result = self.amount - other.amount
        if result < 0:
            raise InvalidPriceError.negative()
        return Price(result, self.currency)

    def multiply(self, quantity: int) -> "Price":
        return Price(self.amount * quantity, self.currency)

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply
    __lt__ = is_less_than
    __gt__ = is_greater_than

    def __str__(self) -> str:
        return self.format()

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "amount": self.amount,
            "currency": self.currency.value,
            "formatted": self.format(),
        }

    def _ensure_same_currency(self, other: "Price", operation: str = "") -> None:
        if self.currency is not other.currency:
            if operation:
                raise CurrencyMismatchError.for_operation(
                    operation, self.currency.value, other.currency.value
                )
            raise CurrencyMismatchError.for_comparison(
                self.currency.value, other.currency.value
            )
