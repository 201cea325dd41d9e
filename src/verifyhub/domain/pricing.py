"""Pricing value objects: config tables, factors, discounts, and breakdowns.

Every amount is a :class:`~decimal.Decimal` rounded with
:func:`~verifyhub.domain.money.round2`. The engine that produces a
:class:`PriceBreakdown` lives in :mod:`verifyhub.domain.engine`.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Self

from pydantic import Field, ValidationInfo, field_validator, model_validator

from verifyhub.domain.base import ValueObject
from verifyhub.domain.clock import ensure_aware
from verifyhub.domain.errors import PricingConfigError
from verifyhub.domain.kinds import Urgency, VerificationCategory
from verifyhub.domain.money import Amount, NonNegativeAmount, normalize_currency, round2

ZERO = Decimal("0.00")


class TimeSlot(StrEnum):
    """Hour-of-day band used for time-based pricing."""

    RUSH_HOUR = "rush_hour"
    STANDARD = "standard"
    ECONOMY = "economy"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class VerificationMode(StrEnum):
    """Whether the agent records the visit or streams it live."""

    RECORDED = "recorded"
    LIVE = "live"


class DiscountType(StrEnum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


CATEGORY_DIFFICULTY: dict[VerificationCategory, Difficulty] = {
    VerificationCategory.DOCUMENT_VERIFICATION: Difficulty.EASY,
    VerificationCategory.IDENTITY_VERIFICATION: Difficulty.EASY,
    VerificationCategory.LOCATION_VERIFICATION: Difficulty.EASY,
    VerificationCategory.BUSINESS_VERIFICATION: Difficulty.MEDIUM,
    VerificationCategory.ASSET_VERIFICATION: Difficulty.MEDIUM,
    VerificationCategory.PROPERTY_INSPECTION: Difficulty.HARD,
    VerificationCategory.CUSTOM_VERIFICATION: Difficulty.HARD,
}

# Clock hour suggested to clients for each slot.
SLOT_SUGGESTED_HOURS: dict[TimeSlot, int] = {
    TimeSlot.RUSH_HOUR: 8,
    TimeSlot.STANDARD: 14,
    TimeSlot.ECONOMY: 20,
}


def difficulty_for(category: VerificationCategory) -> Difficulty:
    return CATEGORY_DIFFICULTY[category]


def time_slot_for(moment: datetime) -> TimeSlot:
    """Classify *moment* by its hour: 8-10 and 17-19 are rush hour, 10-17 standard."""
    hour = moment.hour
    if 8 <= hour < 10 or 17 <= hour < 19:
        return TimeSlot.RUSH_HOUR
    if 10 <= hour < 17:
        return TimeSlot.STANDARD
    return TimeSlot.ECONOMY


# --- Config ---


def _d(value: str) -> Decimal:
    return Decimal(value)


DEFAULT_MULTIPLIERS: dict[str, dict[StrEnum, Decimal]] = {
    "time_multipliers": {
        TimeSlot.RUSH_HOUR: _d("1.2"),
        TimeSlot.STANDARD: _d("1.0"),
        TimeSlot.ECONOMY: _d("0.9"),
    },
    "difficulty_multipliers": {
        Difficulty.EASY: _d("1.0"),
        Difficulty.MEDIUM: _d("1.15"),
        Difficulty.HARD: _d("1.3"),
    },
    "type_multipliers": {
        VerificationCategory.PROPERTY_INSPECTION: _d("1.25"),
        VerificationCategory.DOCUMENT_VERIFICATION: _d("1.0"),
        VerificationCategory.BUSINESS_VERIFICATION: _d("1.2"),
        VerificationCategory.IDENTITY_VERIFICATION: _d("1.0"),
        VerificationCategory.LOCATION_VERIFICATION: _d("1.05"),
        VerificationCategory.ASSET_VERIFICATION: _d("1.15"),
        VerificationCategory.CUSTOM_VERIFICATION: _d("1.3"),
    },
    "mode_multipliers": {
        VerificationMode.RECORDED: _d("1.0"),
        VerificationMode.LIVE: _d("1.15"),
    },
    "urgency_multipliers": {
        Urgency.STANDARD: _d("1.0"),
        Urgency.URGENT: _d("1.25"),
        Urgency.EXPRESS: _d("1.5"),
        Urgency.IMMEDIATE: _d("2.0"),
    },
}


def _defaults(table: str) -> Any:
    return Field(default_factory=lambda: dict(DEFAULT_MULTIPLIERS[table]))


class PricingConfig(ValueObject):
    """Tunable rate table consumed by the pricing engine.

    Multiplier tables are sparse: given entries override the defaults key
    by key, and an entry set to ``None`` removes that key.
    """

    base_fee: NonNegativeAmount = Decimal("20.00")
    currency: str = "USD"
    distance_rate_per_km: NonNegativeAmount = Decimal("1.50")
    time_multipliers: dict[TimeSlot, NonNegativeAmount] = _defaults("time_multipliers")
    difficulty_multipliers: dict[Difficulty, NonNegativeAmount] = _defaults(
        "difficulty_multipliers"
    )
    type_multipliers: dict[VerificationCategory, NonNegativeAmount] = _defaults(
        "type_multipliers"
    )
    mode_multipliers: dict[VerificationMode, NonNegativeAmount] = _defaults("mode_multipliers")
    urgency_multipliers: dict[Urgency, NonNegativeAmount] = _defaults("urgency_multipliers")
    surge_pricing_enabled: bool = True
    max_surge_multiplier: Amount = Field(default=Decimal("3.0"), ge=1)

    @field_validator(*DEFAULT_MULTIPLIERS, mode="before")
    @classmethod
    def _merge_defaults(cls, v: Any, info: ValidationInfo) -> Any:
        if not isinstance(v, Mapping):
            return v
        merged = {**DEFAULT_MULTIPLIERS[info.field_name], **v}
        return {key: value for key, value in merged.items() if value is not None}

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, v: str) -> str:
        return normalize_currency(v)

    def multiplier(self, table: str, key: StrEnum) -> Decimal:
        """Look up *key* in the named multiplier table.

        Raises:
            PricingConfigError: if the table has no entry for *key*.
        """
        values: dict[StrEnum, Decimal] = getattr(self, f"{table}_multipliers")
        if key not in values:
            msg = f"Pricing config has no {table} multiplier for '{key}'"
            raise PricingConfigError(msg)
        return values[key]


# --- Discounts ---


class Discount(ValueObject):
    """A promotional discount, percentage or fixed amount."""

    code: str = Field(min_length=1)
    discount_type: DiscountType = Field(alias="type")
    value: NonNegativeAmount
    description: str = ""
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    min_amount: NonNegativeAmount | None = None
    is_active: bool = True
    usage_count: int = Field(default=0, ge=0)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @model_validator(mode="after")
    def _check_value(self) -> Self:
        if self.discount_type == DiscountType.PERCENTAGE and self.value > 100:
            msg = "Percentage discount cannot exceed 100"
            raise ValueError(msg)
        return self

    def amount_off(self, subtotal: Decimal) -> Decimal:
        """Contribution of this discount against *subtotal*, before capping."""
        if self.discount_type == DiscountType.PERCENTAGE:
            return round2(subtotal * self.value / 100)
        return round2(self.value)

    def is_applicable(self, amount: Decimal, at: datetime) -> bool:
        """Whether the discount can be used on *amount* at time *at*."""
        if not self.is_active:
            return False
        moment = ensure_aware(at)
        if self.valid_from is not None and moment < self.valid_from:
            return False
        if self.valid_until is not None and moment > self.valid_until:
            return False
        if self.usage_limit is not None and self.usage_count >= self.usage_limit:
            return False
        return self.min_amount is None or amount >= self.min_amount


# --- Factors, breakdown, suggestions ---


class PricingFactors(ValueObject):
    """Inputs the engine derived for one calculation."""

    base_price: NonNegativeAmount
    distance_km: NonNegativeAmount
    time_slot: TimeSlot
    difficulty: Difficulty
    category: VerificationCategory
    urgency: Urgency
    mode: VerificationMode
    surge_multiplier: Amount = Field(default=Decimal("1.0"), ge=1)


class PriceBreakdown(ValueObject):
    """Itemized result of a pricing run.

    ``subtotal`` is the sum of every additive term including surge, and
    ``total`` is ``max(0, subtotal - discount_amount)``.
    """

    base_amount: NonNegativeAmount
    distance_amount: NonNegativeAmount
    time_adjustment: Amount
    type_adjustment: Amount
    difficulty_adjustment: Amount
    mode_adjustment: Amount
    urgency_adjustment: Amount
    surge_amount: NonNegativeAmount
    subtotal: NonNegativeAmount
    discount_amount: NonNegativeAmount
    total: NonNegativeAmount
    currency: str
    factors: PricingFactors
    applied_discounts: tuple[Discount, ...] = ()

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, v: str) -> str:
        return normalize_currency(v)

    @model_validator(mode="after")
    def _check_totals(self) -> Self:
        terms = (
            self.base_amount
            + self.distance_amount
            + self.adjustments_total
            + self.surge_amount
        )
        if terms != self.subtotal:
            msg = f"Subtotal {self.subtotal} does not equal the sum of its terms {terms}"
            raise ValueError(msg)
        if self.total != max(ZERO, self.subtotal - self.discount_amount):
            msg = "Total must equal max(0, subtotal - discount)"
            raise ValueError(msg)
        return self

    @property
    def adjustments_total(self) -> Decimal:
        return (
            self.time_adjustment
            + self.type_adjustment
            + self.difficulty_adjustment
            + self.mode_adjustment
            + self.urgency_adjustment
        )

    @property
    def savings_percentage(self) -> Decimal:
        if self.subtotal == 0:
            return ZERO
        return round2(self.discount_amount / self.subtotal * 100)

    @property
    def has_surge_pricing(self) -> bool:
        return self.factors.surge_multiplier > 1

    @property
    def has_discounts(self) -> bool:
        return self.discount_amount > 0

    def summary(self) -> dict[str, str]:
        """Formatted lines for display, keyed by line item."""
        c = self.currency
        return {
            "base": f"{c} {self.base_amount:.2f}",
            "distance": f"{c} {self.distance_amount:.2f}",
            "adjustments": f"{c} {self.adjustments_total:.2f}",
            "surge": f"{c} {self.surge_amount:.2f}",
            "discount": f"-{c} {self.discount_amount:.2f}" if self.has_discounts else f"{c} 0.00",
            "total": f"{c} {self.total:.2f}",
        }


class PricingSuggestion(ValueObject):
    """A cheaper time slot the client could book instead."""

    time_slot: TimeSlot
    suggested_time: datetime
    estimated_price: NonNegativeAmount
    savings: NonNegativeAmount
    savings_percentage: NonNegativeAmount


class PricingRequest(ValueObject):
    """What the client wants priced; distance and surge come from collaborators."""

    category: VerificationCategory
    urgency: Urgency = Urgency.STANDARD
    mode: VerificationMode = VerificationMode.RECORDED
    scheduled_at: datetime | None = None
