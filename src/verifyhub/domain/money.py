"""Money value object and the shared two-decimal rounding helper.

Amounts are :class:`~decimal.Decimal` internally and JSON numbers on the
wire, or decimal strings when a float cannot hold them exactly. :func:`round2` is the single rounding rule used by every pricing
path: half-cents round toward positive infinity, i.e.
``floor(x * 100 + 0.5) / 100``.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Annotated, Any, Self

from pydantic import BeforeValidator, Field, PlainSerializer, field_validator

from verifyhub.domain.base import ValueObject
from verifyhub.domain.errors import InvalidValueError

CENT = Decimal("0.01")

SUPPORTED_CURRENCIES: frozenset[str] = frozenset({"USD", "EUR", "GBP", "NGN", "KES", "ZAR", "GHS"})

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "NGN": "₦",
    "KES": "KSh",
    "ZAR": "R",
    "GHS": "₵",
}


def to_decimal(value: Any) -> Decimal:
    """Convert *value* to Decimal without binary-float artifacts.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        msg = "Boolean is not a valid amount"
        raise ValueError(msg)
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        msg = f"Not a valid decimal amount: {value!r}"
        raise ValueError(msg) from exc


def round2(value: Decimal) -> Decimal:
    """Round to two decimal places, halves toward positive infinity."""
    scaled = (value * 100 + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
    return (scaled / 100).quantize(CENT)


def normalize_currency(code: str) -> str:
    """Upper-case *code* and check it against :data:`SUPPORTED_CURRENCIES`."""
    if not code or len(code) != 3:
        msg = "Currency must be a valid 3-letter ISO currency code"
        raise ValueError(msg)
    upper = code.upper()
    if upper not in SUPPORTED_CURRENCIES:
        msg = f"Currency '{code}' is not supported"
        raise ValueError(msg)
    return upper


def wire_amount(value: Decimal) -> float | str:
    """JSON form of an amount: a number when a float holds it exactly, else a string."""
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


# Decimal on the inside, JSON number on the wire.
Amount = Annotated[
    Decimal,
    BeforeValidator(to_decimal),
    PlainSerializer(wire_amount, return_type=float | str, when_used="json"),
]
NonNegativeAmount = Annotated[Amount, Field(ge=0)]


class Money(ValueObject):
    """A non-negative amount in a supported currency."""

    amount: Amount
    currency: str = "USD"

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            msg = "Money amount must be a finite number"
            raise ValueError(msg)
        if v < 0:
            msg = "Money amount cannot be negative"
            raise ValueError(msg)
        if v.quantize(CENT) != v:
            msg = "Money amount cannot have more than 2 decimal places"
            raise ValueError(msg)
        return v

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, v: str) -> str:
        return normalize_currency(v)

    # --- Construction helpers ---

    @classmethod
    def zero(cls, currency: str = "USD") -> Self:
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def from_cents(cls, cents: int, currency: str = "USD") -> Self:
        return cls(amount=Decimal(cents) / 100, currency=currency)

    # --- Arithmetic (always returns a new instance) ---

    def add(self, other: Money) -> Money:
        self._require_same_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: Money) -> Money:
        self._require_same_currency(other, "subtract")
        result = self.amount - other.amount
        if result < 0:
            msg = "Subtraction would result in a negative amount"
            raise InvalidValueError(msg)
        return Money(amount=result, currency=self.currency)

    def multiply(self, factor: Decimal | float | int) -> Money:
        """Multiply by a non-negative *factor*, rounding to cents."""
        f = to_decimal(factor)
        if not f.is_finite():
            msg = "Factor must be a finite number"
            raise InvalidValueError(msg)
        if f < 0:
            msg = "Cannot multiply money by a negative factor"
            raise InvalidValueError(msg)
        return Money(amount=round2(self.amount * f), currency=self.currency)

    def apply_discount(self, percentage: Decimal | float | int) -> Money:
        """Take *percentage* (0-100) off the amount."""
        pct = to_decimal(percentage)
        if pct < 0 or pct > 100:
            msg = "Discount percentage must be between 0 and 100"
            raise InvalidValueError(msg)
        return self.multiply((100 - pct) / 100)

    # --- Comparison ---

    def is_greater_than(self, other: Money) -> bool:
        self._require_same_currency(other, "compare")
        return self.amount > other.amount

    def is_less_than(self, other: Money) -> bool:
        self._require_same_currency(other, "compare")
        return self.amount < other.amount

    # --- Presentation ---

    def format(self) -> str:
        """Human-readable amount with currency symbol, e.g. ``$25.00``."""
        symbol = CURRENCY_SYMBOLS.get(self.currency, self.currency)
        return f"{symbol}{self.amount:.2f}"

    def to_cents(self) -> int:
        return int(round2(self.amount) * 100)

    def _require_same_currency(self, other: Money, action: str) -> None:
        if self.currency != other.currency:
            msg = f"Cannot {action} money in different currencies: {self.currency} vs {other.currency}"
            raise InvalidValueError(msg)
