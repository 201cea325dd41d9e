"""Itemized pricing engine.

Pure computation: the caller supplies the config, the distance, the
surge multiplier, and already-validated discounts. Every multiply is
followed by :func:`~verifyhub.domain.money.round2`, so intermediate
lines are in cents and the total is their exact sum.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from verifyhub.domain.clock import Clock, utc_now
from verifyhub.domain.errors import PricingConfigError
from verifyhub.domain.money import round2, to_decimal
from verifyhub.domain.pricing import (
    SLOT_SUGGESTED_HOURS,
    ZERO,
    Discount,
    PriceBreakdown,
    PricingConfig,
    PricingFactors,
    PricingRequest,
    PricingSuggestion,
    TimeSlot,
    difficulty_for,
    time_slot_for,
)

ONE = Decimal("1")


@dataclass(frozen=True)
class _Lines:
    """Pre-surge line items for one set of factors."""

    base: Decimal
    distance: Decimal
    time: Decimal
    type: Decimal
    difficulty: Decimal
    mode: Decimal
    urgency: Decimal

    @property
    def subtotal(self) -> Decimal:
        return (
            self.base
            + self.distance
            + self.time
            + self.type
            + self.difficulty
            + self.mode
            + self.urgency
        )


def _adjustment(base: Decimal, multiplier: Decimal) -> Decimal:
    return round2(base * (multiplier - ONE))


def _itemize(factors: PricingFactors, config: PricingConfig) -> _Lines:
    base = factors.base_price
    lines = _Lines(
        base=base,
        distance=round2(factors.distance_km * config.distance_rate_per_km),
        time=_adjustment(base, config.multiplier("time", factors.time_slot)),
        type=_adjustment(base, config.multiplier("type", factors.category)),
        difficulty=_adjustment(base, config.multiplier("difficulty", factors.difficulty)),
        mode=_adjustment(base, config.multiplier("mode", factors.mode)),
        urgency=_adjustment(base, config.multiplier("urgency", factors.urgency)),
    )
    if lines.subtotal < 0:
        msg = f"Pricing config produces a negative subtotal ({lines.subtotal})"
        raise PricingConfigError(msg)
    return lines


def discount_total(subtotal: Decimal, discounts: Iterable[Discount]) -> Decimal:
    """Sum of discount contributions, capped at *subtotal*."""
    total = sum((d.amount_off(subtotal) for d in discounts), ZERO)
    return min(total, subtotal)


class PricingEngine:
    """Turns a pricing request into a :class:`PriceBreakdown`.

    The clock is only consulted when a request has no scheduled time.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def factors_for(
        self,
        request: PricingRequest,
        config: PricingConfig,
        distance_km: Decimal | float,
        surge_multiplier: Decimal | float = 1,
        *,
        time_slot: TimeSlot | None = None,
    ) -> PricingFactors:
        """Derive the factor set for *request* (time slot from the schedule)."""
        return PricingFactors(
            base_price=config.base_fee,
            distance_km=to_decimal(distance_km),
            time_slot=time_slot or time_slot_for(self._reference_time(request)),
            difficulty=difficulty_for(request.category),
            category=request.category,
            urgency=request.urgency,
            mode=request.mode,
            surge_multiplier=to_decimal(surge_multiplier),
        )

    def calculate(
        self,
        request: PricingRequest,
        config: PricingConfig,
        distance_km: Decimal | float,
        surge_multiplier: Decimal | float = 1,
        discounts: Iterable[Discount] = (),
    ) -> PriceBreakdown:
        """Run the full pipeline: lines, surge, discounts, total.

        Raises:
            PricingConfigError: a multiplier is missing or the config
                yields a negative subtotal.
        """
        factors = self.factors_for(request, config, distance_km, surge_multiplier)
        return self.calculate_with_factors(factors, config, discounts)

    def calculate_with_factors(
        self,
        factors: PricingFactors,
        config: PricingConfig,
        discounts: Iterable[Discount] = (),
    ) -> PriceBreakdown:
        applied = tuple(discounts)
        lines = _itemize(factors, config)
        before_surge = lines.subtotal

        surge = ZERO
        if config.surge_pricing_enabled and factors.surge_multiplier > ONE:
            surge = _adjustment(before_surge, factors.surge_multiplier)

        subtotal = before_surge + surge
        discount = discount_total(subtotal, applied)

        return PriceBreakdown(
            base_amount=lines.base,
            distance_amount=lines.distance,
            time_adjustment=lines.time,
            type_adjustment=lines.type,
            difficulty_adjustment=lines.difficulty,
            mode_adjustment=lines.mode,
            urgency_adjustment=lines.urgency,
            surge_amount=surge,
            subtotal=subtotal,
            discount_amount=discount,
            total=max(ZERO, subtotal - discount),
            currency=config.currency,
            factors=factors,
            applied_discounts=applied,
        )

    def generate_pricing_suggestions(
        self,
        request: PricingRequest,
        config: PricingConfig,
        distance_km: Decimal | float,
    ) -> list[PricingSuggestion]:
        """Cheaper time slots than the requested one, biggest saving first.

        Prices are compared at surge 1.0 without discounts.
        """
        reference = self._reference_time(request)
        current = self.calculate(request, config, distance_km)

        suggestions: list[PricingSuggestion] = []
        for slot in (TimeSlot.ECONOMY, TimeSlot.STANDARD, TimeSlot.RUSH_HOUR):
            factors = self.factors_for(request, config, distance_km, time_slot=slot)
            alternate = _itemize(factors, config).subtotal
            savings = current.total - alternate
            if savings <= 0:
                continue
            suggestions.append(
                PricingSuggestion(
                    time_slot=slot,
                    suggested_time=_at_hour(reference, SLOT_SUGGESTED_HOURS[slot]),
                    estimated_price=alternate,
                    savings=savings,
                    savings_percentage=round2(savings / current.total * 100),
                )
            )
        suggestions.sort(key=lambda s: s.savings, reverse=True)
        return suggestions

    def _reference_time(self, request: PricingRequest) -> datetime:
        return request.scheduled_at or self._clock()


def _at_hour(moment: datetime, hour: int) -> datetime:
    return moment.replace(hour=hour, minute=0, second=0, microsecond=0)
