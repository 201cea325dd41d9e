"""Location-based pricing records and the tiered resolver.

Resolution order for ``(city, area)``: an exact city and area record,
then a city-wide record (``area`` is None), then the configured default.
Only records that are active at the resolution time qualify. Matching
is case-insensitive on both city and area.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Self

from pydantic import Field, field_validator, model_validator

from verifyhub.domain.base import ValueObject
from verifyhub.domain.clock import ensure_aware, utc_now
from verifyhub.domain.money import NonNegativeAmount


class PricingRecordStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class PricingSource(StrEnum):
    """Which tier of the resolver produced a price."""

    EXACT_MATCH = "exact_match"
    CITY_FALLBACK = "city_fallback"
    DEFAULT = "default"


def _norm(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped.casefold() if stripped else None


class LocationPricing(ValueObject):
    """Cost for verifications in a city, optionally narrowed to an area."""

    id: str
    city: str = Field(min_length=1)
    area: str | None = None
    city_cost: NonNegativeAmount
    area_cost: NonNegativeAmount = Decimal("0")
    status: PricingRecordStatus = PricingRecordStatus.ACTIVE
    description: str | None = None
    effective_from: datetime | None = None
    effective_to: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("city")
    @classmethod
    def _strip_city(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "City is required"
            raise ValueError(msg)
        return stripped

    @field_validator("area")
    @classmethod
    def _blank_area_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("effective_from", "effective_to", "created_at", "updated_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @model_validator(mode="after")
    def _check_window(self) -> Self:
        if (
            self.effective_from is not None
            and self.effective_to is not None
            and self.effective_to < self.effective_from
        ):
            msg = "effective_to must not be earlier than effective_from"
            raise ValueError(msg)
        return self

    @property
    def is_city_wide(self) -> bool:
        return self.area is None

    def matches(self, city: str, area: str | None) -> bool:
        return _norm(self.city) == _norm(city) and _norm(self.area) == _norm(area)

    def is_active_at(self, at: datetime) -> bool:
        """Active status and *at* inside the effective window (bounds inclusive)."""
        if self.status != PricingRecordStatus.ACTIVE:
            return False
        moment = ensure_aware(at)
        if self.effective_from is not None and self.effective_from > moment:
            return False
        return not (self.effective_to is not None and self.effective_to < moment)


class LocationPriceResult(ValueObject):
    """Outcome of :func:`resolve_location_price`, with the tier that matched."""

    city: str
    area: str | None = None
    city_cost: NonNegativeAmount
    area_cost: NonNegativeAmount
    total_cost: NonNegativeAmount
    pricing_source: PricingSource
    applied_pricing_id: str | None = None


def resolve_location_price(
    city: str,
    area: str | None,
    records: Iterable[LocationPricing],
    *,
    at: datetime,
    default_city_cost: Decimal,
    default_area_cost: Decimal = Decimal("0"),
) -> LocationPriceResult:
    """Resolve the price for *city*/*area* from *records*.

    The first qualifying record in iteration order wins within a tier.
    An exact match reports its area cost as the total when that cost is
    positive, otherwise the city cost.
    """
    live = [r for r in records if r.is_active_at(at)]

    if _norm(area) is not None:
        for record in live:
            if record.matches(city, area):
                total = record.area_cost if record.area_cost > 0 else record.city_cost
                return _result(record, PricingSource.EXACT_MATCH, total, area)

    for record in live:
        if record.matches(city, None):
            return _result(record, PricingSource.CITY_FALLBACK, record.city_cost, area)

    return LocationPriceResult(
        city=city,
        area=area,
        city_cost=default_city_cost,
        area_cost=default_area_cost,
        total_cost=default_city_cost,
        pricing_source=PricingSource.DEFAULT,
    )


def _result(
    record: LocationPricing,
    source: PricingSource,
    total: Decimal,
    area: str | None,
) -> LocationPriceResult:
    return LocationPriceResult(
        city=record.city,
        area=area or record.area,
        city_cost=record.city_cost,
        area_cost=record.area_cost,
        total_cost=total,
        pricing_source=source,
        applied_pricing_id=record.id,
    )
