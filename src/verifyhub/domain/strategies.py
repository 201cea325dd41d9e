"""Request-type pricing strategies.

A request type is priced by exactly one :class:`PricingType`. Each type
has a parameter model and a calculator; :data:`CALCULATORS` maps the
type to its calculator and :func:`price` dispatches on the parameters.

Parameter models enforce their own shape on construction (raising
``pydantic.ValidationError``). Checks that need a pricing table, such as
an unsupported radius or an unknown tier, raise
:class:`~verifyhub.domain.errors.InvalidValueError` from the calculator.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from decimal import Decimal
from enum import StrEnum
from typing import Any, ClassVar, Protocol, Self

from pydantic import Field, computed_field, field_validator, model_validator

from verifyhub.domain.base import ValueObject
from verifyhub.domain.clock import Clock, ensure_aware, utc_now
from verifyhub.domain.errors import InvalidValueError
from verifyhub.domain.money import Amount, Money, NonNegativeAmount, round2

MIN_RECURRING_FOR_DISCOUNT = 4
MAX_OCCURRENCES = 365


class PricingType(StrEnum):
    FIXED = "fixed"
    RADIUS_BASED = "radius_based"
    PER_LOCATION = "per_location"
    TIERED = "tiered"
    PREMIUM_MULTIPLIER = "premium_multiplier"
    RECURRING_DISCOUNT = "recurring_discount"


def _fmt(amount: Decimal, currency: str) -> str:
    return Money(amount=round2(amount), currency=currency).format()


# --- Radius table ---


class RadiusTier(ValueObject):
    radius_km: Amount = Field(gt=0)
    price: NonNegativeAmount


class RadiusPricing(ValueObject):
    """Prices by coverage radius, kept sorted by radius ascending."""

    tiers: tuple[RadiusTier, ...] = Field(min_length=1)

    @field_validator("tiers")
    @classmethod
    def _sort_unique(cls, v: tuple[RadiusTier, ...]) -> tuple[RadiusTier, ...]:
        radii = [t.radius_km for t in v]
        if len(set(radii)) != len(radii):
            msg = "Duplicate radius values found in pricing tiers"
            raise ValueError(msg)
        return tuple(sorted(v, key=lambda t: t.radius_km))

    @property
    def min_radius(self) -> Decimal:
        return self.tiers[0].radius_km

    @property
    def max_radius(self) -> Decimal:
        return self.tiers[-1].radius_km

    def supports(self, radius_km: Decimal) -> bool:
        return self.min_radius <= radius_km <= self.max_radius

    def price_for(self, radius_km: Decimal) -> Decimal:
        """Price of the smallest tier covering *radius_km*.

        A radius beyond every tier gets the largest tier's price.
        """
        if radius_km <= 0:
            msg = "Radius must be greater than 0"
            raise InvalidValueError(msg)
        for tier in self.tiers:
            if tier.radius_km >= radius_km:
                return tier.price
        return self.tiers[-1].price


# --- Named tiers ---


class TierOption(ValueObject):
    tier: str
    description: str
    price: NonNegativeAmount

    @field_validator("tier", "description")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "Tier name and description are required"
            raise ValueError(msg)
        return stripped


class TieredPricing(ValueObject):
    """Named service tiers, kept sorted by price ascending.

    Tier names match case-insensitively.
    """

    options: tuple[TierOption, ...] = Field(min_length=1)

    @field_validator("options")
    @classmethod
    def _sort_unique(cls, v: tuple[TierOption, ...]) -> tuple[TierOption, ...]:
        names = [o.tier.casefold() for o in v]
        if len(set(names)) != len(names):
            msg = "Duplicate tier names found in pricing options"
            raise ValueError(msg)
        return tuple(sorted(v, key=lambda o: o.price))

    @property
    def available_tiers(self) -> list[str]:
        return [o.tier for o in self.options]

    @property
    def cheapest(self) -> TierOption:
        return self.options[0]

    @property
    def most_expensive(self) -> TierOption:
        return self.options[-1]

    def find(self, tier: str) -> TierOption | None:
        wanted = tier.strip().casefold()
        return next((o for o in self.options if o.tier.casefold() == wanted), None)

    def has_tier(self, tier: str) -> bool:
        return self.find(tier) is not None

    def price_for(self, tier: str) -> Decimal:
        option = self.find(tier)
        if option is None:
            available = ", ".join(self.available_tiers)
            msg = f"Invalid tier: {tier}. Available tiers: {available}"
            raise InvalidValueError(msg)
        return option.price


# --- Recurring schedule ---


class RecurringFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class OccurrenceStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


def _add_months(moment: datetime, months: int) -> datetime:
    # Clamp to the last day of a shorter month (Jan 31 + 1 -> Feb 28).
    total = moment.month - 1 + months
    year, month = moment.year + total // 12, total % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _step(moment: datetime, frequency: RecurringFrequency, n: int) -> datetime:
    if frequency == RecurringFrequency.DAILY:
        return moment + timedelta(days=n)
    if frequency == RecurringFrequency.WEEKLY:
        return moment + timedelta(weeks=n)
    return _add_months(moment, n)


class RecurringOccurrence(ValueObject):
    occurrence_number: int = Field(ge=1)
    scheduled_date: datetime
    status: OccurrenceStatus = OccurrenceStatus.PENDING
    agent_id: str | None = None
    completed_at: datetime | None = None
    deliverable_id: str | None = None

    @field_validator("scheduled_date", "completed_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None


class RecurringSchedule(ValueObject):
    """A verification repeated at a fixed frequency.

    Use :meth:`create` for new schedules; it rejects a start day in the
    past. Direct construction (and ``from_json``) skips that check so
    stored schedules keep loading after their start day.
    """

    frequency: RecurringFrequency
    start_date: datetime
    total_occurrences: int = Field(ge=1, le=MAX_OCCURRENCES)
    occurrences: tuple[RecurringOccurrence, ...] = ()

    @field_validator("start_date")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @classmethod
    def create(
        cls,
        frequency: RecurringFrequency,
        start_date: datetime,
        total_occurrences: int,
        *,
        clock: Clock = utc_now,
    ) -> Self:
        start = ensure_aware(start_date)
        today = clock().astimezone(start.tzinfo).date()
        if start.date() < today:
            msg = "Start date cannot be in the past"
            raise InvalidValueError(msg)
        return cls(frequency=frequency, start_date=start, total_occurrences=total_occurrences)

    @computed_field
    @property
    def end_date(self) -> datetime:
        return _step(self.start_date, self.frequency, self.total_occurrences - 1)

    @model_validator(mode="before")
    @classmethod
    def _drop_end_date(cls, data: object) -> object:
        # end_date is derived; accept it back from to_json output.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k not in ("endDate", "end_date")}
        return data

    def occurrence_dates(self) -> list[datetime]:
        return [_step(self.start_date, self.frequency, i) for i in range(self.total_occurrences)]

    def _count(self, status: OccurrenceStatus) -> int:
        return sum(1 for occ in self.occurrences if occ.status == status)

    @property
    def completed_count(self) -> int:
        return self._count(OccurrenceStatus.COMPLETED)

    @property
    def pending_count(self) -> int:
        return self._count(OccurrenceStatus.PENDING)

    @property
    def next_scheduled_date(self) -> datetime | None:
        pending = (o for o in self.occurrences if o.status == OccurrenceStatus.PENDING)
        first = next(pending, None)
        return first.scheduled_date if first is not None else None

    @property
    def is_complete(self) -> bool:
        return self.completed_count == self.total_occurrences

    @property
    def completion_percentage(self) -> Decimal:
        return round2(Decimal(self.completed_count) * 100 / self.total_occurrences)

    def breakdown(self) -> str:
        label = self.frequency.value.capitalize()
        return f"{label} schedule: {self.completed_count}/{self.total_occurrences} completed"


# --- Strategy parameters ---


class StrategyParams(ValueObject):
    pricing_type: ClassVar[PricingType]


class FixedParams(StrategyParams):
    pricing_type: ClassVar[PricingType] = PricingType.FIXED

    base_price: Amount = Field(gt=0)


class PerLocationParams(StrategyParams):
    pricing_type: ClassVar[PricingType] = PricingType.PER_LOCATION

    price_per_location: NonNegativeAmount
    location_count: int = Field(ge=1)
    min_locations: int | None = Field(default=None, ge=1)
    max_locations: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        count = self.location_count
        if self.min_locations is not None and count < self.min_locations:
            msg = f"locationCount ({count}) is below minimum ({self.min_locations})"
            raise ValueError(msg)
        if self.max_locations is not None and count > self.max_locations:
            msg = f"locationCount ({count}) exceeds maximum ({self.max_locations})"
            raise ValueError(msg)
        return self


class PremiumParams(StrategyParams):
    pricing_type: ClassVar[PricingType] = PricingType.PREMIUM_MULTIPLIER

    base_price: NonNegativeAmount
    multiplier: Amount = Field(ge=1)


class RadiusParams(StrategyParams):
    pricing_type: ClassVar[PricingType] = PricingType.RADIUS_BASED

    radius_km: Amount = Field(gt=0)
    table: RadiusPricing


class TieredParams(StrategyParams):
    pricing_type: ClassVar[PricingType] = PricingType.TIERED

    selected_tier: str = Field(min_length=1)
    table: TieredPricing

    @field_validator("selected_tier")
    @classmethod
    def _strip(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "selectedTier is required"
            raise ValueError(msg)
        return stripped


class RecurringParams(StrategyParams):
    pricing_type: ClassVar[PricingType] = PricingType.RECURRING_DISCOUNT

    base_price: NonNegativeAmount
    occurrence_count: int = Field(ge=1, le=MAX_OCCURRENCES)
    discount_percentage: Amount = Field(default=Decimal("0"), ge=0, le=100)

    @model_validator(mode="after")
    def _check_discount(self) -> Self:
        if self.discount_percentage > 0 and self.occurrence_count < MIN_RECURRING_FOR_DISCOUNT:
            msg = f"Recurring discount requires at least {MIN_RECURRING_FOR_DISCOUNT} occurrences"
            raise ValueError(msg)
        return self

    @property
    def subtotal(self) -> Decimal:
        return self.base_price * self.occurrence_count


# --- Calculators ---


class PricingCalculator(Protocol):
    pricing_type: PricingType

    def validate(self, params: Any) -> None: ...

    def calculate(self, params: Any) -> Decimal: ...

    def breakdown(self, params: Any, currency: str = "USD") -> str: ...


class _Calculator:
    """Shared plumbing: type check, strategy checks, then the price."""

    pricing_type: PricingType
    params_type: type[StrategyParams]

    def validate(self, params: Any) -> None:
        if not isinstance(params, self.params_type):
            msg = f"{self.pricing_type} pricing needs {self.params_type.__name__}"
            raise InvalidValueError(msg)
        self._check(params)

    def calculate(self, params: Any) -> Decimal:
        self.validate(params)
        return round2(self._price(params))

    def _check(self, params: Any) -> None:
        pass

    def _price(self, params: Any) -> Decimal:
        raise NotImplementedError


class FixedPriceCalculator(_Calculator):
    pricing_type = PricingType.FIXED
    params_type = FixedParams

    def _price(self, params: FixedParams) -> Decimal:
        return params.base_price

    def breakdown(self, params: FixedParams, currency: str = "USD") -> str:
        return f"Fixed Price: {_fmt(params.base_price, currency)}"


class PerLocationCalculator(_Calculator):
    pricing_type = PricingType.PER_LOCATION
    params_type = PerLocationParams

    def _price(self, params: PerLocationParams) -> Decimal:
        return params.price_per_location * params.location_count

    def breakdown(self, params: PerLocationParams, currency: str = "USD") -> str:
        each = _fmt(params.price_per_location, currency)
        total = _fmt(self._price(params), currency)
        return f"{params.location_count} location(s) x {each} = {total}"


class PremiumMultiplierCalculator(_Calculator):
    pricing_type = PricingType.PREMIUM_MULTIPLIER
    params_type = PremiumParams

    def _price(self, params: PremiumParams) -> Decimal:
        return params.base_price * params.multiplier

    def breakdown(self, params: PremiumParams, currency: str = "USD") -> str:
        premium = round((params.multiplier - 1) * 100)
        base = _fmt(params.base_price, currency)
        total = _fmt(self._price(params), currency)
        return f"Base: {base} x {params.multiplier} ({premium}% premium) = {total}"


class RadiusBasedCalculator(_Calculator):
    pricing_type = PricingType.RADIUS_BASED
    params_type = RadiusParams

    def _check(self, params: RadiusParams) -> None:
        table = params.table
        if not table.supports(params.radius_km):
            msg = (
                f"Radius {params.radius_km}km is not supported. "
                f"Min: {table.min_radius}km, Max: {table.max_radius}km"
            )
            raise InvalidValueError(msg)

    def _price(self, params: RadiusParams) -> Decimal:
        return params.table.price_for(params.radius_km)

    def breakdown(self, params: RadiusParams, currency: str = "USD") -> str:
        return f"{params.radius_km}km radius: {_fmt(self._price(params), currency)}"


class TieredCalculator(_Calculator):
    pricing_type = PricingType.TIERED
    params_type = TieredParams

    def _check(self, params: TieredParams) -> None:
        params.table.price_for(params.selected_tier)

    def _price(self, params: TieredParams) -> Decimal:
        return params.table.price_for(params.selected_tier)

    def breakdown(self, params: TieredParams, currency: str = "USD") -> str:
        option = params.table.find(params.selected_tier)
        if option is None:
            return ""
        return f"{option.tier} ({option.description}): {_fmt(option.price, currency)}"


class RecurringDiscountCalculator(_Calculator):
    pricing_type = PricingType.RECURRING_DISCOUNT
    params_type = RecurringParams

    def discount_amount(self, params: RecurringParams) -> Decimal:
        return round2(params.subtotal * params.discount_percentage / 100)

    def _price(self, params: RecurringParams) -> Decimal:
        return round2(params.subtotal) - self.discount_amount(params)

    def price_per_occurrence(self, params: RecurringParams) -> Decimal:
        return round2(self.calculate(params) / params.occurrence_count)

    def breakdown(self, params: RecurringParams, currency: str = "USD") -> str:
        base = _fmt(params.base_price, currency)
        subtotal = _fmt(params.subtotal, currency)
        discount = _fmt(self.discount_amount(params), currency)
        total = _fmt(self.calculate(params), currency)
        each = _fmt(self.price_per_occurrence(params), currency)
        return (
            f"{params.occurrence_count} occurrences x {base} = {subtotal}\n"
            f"Discount ({params.discount_percentage}%): -{discount}\n"
            f"Total: {total} ({each} per occurrence)"
        )


CALCULATORS: dict[PricingType, PricingCalculator] = {
    calc.pricing_type: calc
    for calc in (
        FixedPriceCalculator(),
        RadiusBasedCalculator(),
        PerLocationCalculator(),
        TieredCalculator(),
        PremiumMultiplierCalculator(),
        RecurringDiscountCalculator(),
    )
}


def calculator_for(pricing_type: PricingType | str) -> PricingCalculator:
    try:
        return CALCULATORS[PricingType(pricing_type)]
    except ValueError as exc:
        msg = f"Unknown pricing type: {pricing_type}"
        raise InvalidValueError(msg) from exc


def price(params: StrategyParams) -> Decimal:
    """Price *params* with the calculator registered for its type."""
    return calculator_for(params.pricing_type).calculate(params)
