"""PricingService: itemized quotes, time-slot suggestions, discount checks.

Collaborators are resolved from settings: haversine distance from the
configured dispatch origin, and a fixed surge multiplier clamped to the
config's ``max_surge_multiplier``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from verifyhub.domain.engine import PricingEngine
from verifyhub.domain.errors import DomainError
from verifyhub.domain.kinds import Urgency, VerificationCategory
from verifyhub.domain.money import round2, to_decimal
from verifyhub.domain.pricing import (
    Discount,
    PriceBreakdown,
    PricingRequest,
    VerificationMode,
)
from verifyhub.infrastructure.distance import FixedSurge, HaversineDistance, Point
from verifyhub.services._helpers import from_exception, not_found
from verifyhub.services.base import BaseService
from verifyhub.services.result import ServiceResult

if TYPE_CHECKING:
    from verifyhub.infrastructure.distance import (
        Coordinates,
        DistanceCalculator,
        SurgeCalculator,
    )
    from verifyhub.infrastructure.store import Store

logger = structlog.get_logger(__name__)

ONE = Decimal("1")


class PricingService(BaseService):
    """Quotes built from the pricing engine plus distance and surge lookups."""

    def __init__(
        self,
        store: Store,
        *,
        distance: DistanceCalculator | None = None,
        surge: SurgeCalculator | None = None,
    ) -> None:
        super().__init__(store)
        quote_cfg = self._settings.quote
        self._distance = distance or HaversineDistance(quote_cfg.average_speed_kmh)
        self._surge = surge or FixedSurge(quote_cfg.surge_multiplier)
        self._engine = PricingEngine(clock=store.clock)

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def quote(
        self,
        category: VerificationCategory | str,
        *,
        latitude: float,
        longitude: float,
        urgency: Urgency | str = Urgency.STANDARD,
        mode: VerificationMode | str = VerificationMode.RECORDED,
        scheduled_at: datetime | None = None,
        discount_code: str | None = None,
        origin: tuple[float, float] | None = None,
        include_suggestions: bool | None = None,
    ) -> ServiceResult:
        """Price a prospective verification at the given coordinates."""
        op = "quote"
        try:
            request = PricingRequest(
                category=category, urgency=urgency, mode=mode, scheduled_at=scheduled_at
            )
            destination = Point.checked(latitude, longitude)
            return self._quote(op, request, destination, discount_code, origin, include_suggestions)
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)

    def quote_request(
        self,
        request_id: str,
        *,
        mode: VerificationMode | str = VerificationMode.RECORDED,
        discount_code: str | None = None,
        include_suggestions: bool | None = None,
    ) -> ServiceResult:
        """Price an existing request from its kind, location, and schedule."""
        op = "quote"
        with self._store.read() as txn:
            stored = txn.requests.load(request_id)
        if stored is None:
            return not_found(op, "Request", request_id)
        try:
            request = PricingRequest(
                category=stored.kind.category,
                urgency=stored.kind.urgency,
                mode=mode,
                scheduled_at=stored.scheduled_date,
            )
            result = self._quote(
                op, request, stored.location, discount_code, None, include_suggestions
            )
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)
        if result.ok:
            result.data["request_id"] = request_id
        return result

    def suggestions(
        self,
        category: VerificationCategory | str,
        *,
        latitude: float,
        longitude: float,
        urgency: Urgency | str = Urgency.STANDARD,
        mode: VerificationMode | str = VerificationMode.RECORDED,
        scheduled_at: datetime | None = None,
        origin: tuple[float, float] | None = None,
    ) -> ServiceResult:
        """Cheaper time slots than the requested one."""
        op = "suggestions"
        try:
            request = PricingRequest(
                category=category, urgency=urgency, mode=mode, scheduled_at=scheduled_at
            )
            destination = Point.checked(latitude, longitude)
            distance_km = self._distance_km(self._origin(origin), destination)
            found = self._engine.generate_pricing_suggestions(
                request, self._settings.pricing, distance_km
            )
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)
        items = [s.model_dump(mode="json") for s in found]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items), "distance_km": float(distance_km)},
        )

    def estimate_travel(
        self,
        *,
        latitude: float,
        longitude: float,
        origin: tuple[float, float] | None = None,
    ) -> ServiceResult:
        op = "travel_time"
        try:
            destination = Point.checked(latitude, longitude)
            start = self._origin(origin)
        except DomainError as exc:
            return from_exception(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "distance_km": float(self._distance_km(start, destination)),
                "travel_minutes": self._distance.travel_minutes(start, destination),
            },
        )

    # ------------------------------------------------------------------
    # Discounts
    # ------------------------------------------------------------------

    def validate_discount(self, code: str, amount: Decimal | float) -> ServiceResult:
        """Whether *code* can be applied to a subtotal of *amount* right now."""
        op = "validate_discount"
        with self._store.read() as txn:
            discount = txn.discounts.get(code)
        if discount is None:
            return not_found(op, "Discount", code)
        valid = discount.is_applicable(to_decimal(amount), self._now())
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "code": discount.code,
                "valid": valid,
                "amount_off": float(discount.amount_off(to_decimal(amount))) if valid else 0.0,
                "discount": discount.model_dump(mode="json"),
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _quote(
        self,
        op: str,
        request: PricingRequest,
        destination: Coordinates,
        discount_code: str | None,
        origin: tuple[float, float] | None,
        include_suggestions: bool | None,
    ) -> ServiceResult:
        config = self._settings.pricing
        warnings: list[str] = []
        start = self._origin(origin)
        distance_km = self._distance_km(start, destination)
        surge = self._clamped_surge(destination, request.scheduled_at or self._now())

        breakdown = self._engine.calculate(request, config, distance_km, surge)
        if discount_code:
            discount = self._applicable_discount(discount_code, breakdown, warnings)
            if discount is not None:
                breakdown = self._engine.calculate(
                    request, config, distance_km, surge, discounts=[discount]
                )

        data: dict[str, Any] = {
            "category": str(request.category),
            "urgency": str(request.urgency),
            "mode": str(request.mode),
            "distance_km": float(distance_km),
            "travel_minutes": self._distance.travel_minutes(start, destination),
            "surge_active": breakdown.has_surge_pricing,
            "total": float(breakdown.total),
            "currency": breakdown.currency,
            "summary": breakdown.summary(),
            "breakdown": breakdown.model_dump(mode="json"),
        }
        if include_suggestions is None:
            include_suggestions = self._settings.quote.include_suggestions
        if include_suggestions:
            found = self._engine.generate_pricing_suggestions(request, config, distance_km)
            data["suggestions"] = [s.model_dump(mode="json") for s in found]

        logger.info(
            "pricing.quoted",
            category=str(request.category),
            distance_km=float(distance_km),
            surge=float(surge),
            total=float(breakdown.total),
            discounted=breakdown.has_discounts,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    def _applicable_discount(
        self, code: str, breakdown: PriceBreakdown, warnings: list[str]
    ) -> Discount | None:
        with self._store.read() as txn:
            discount = txn.discounts.get(code)
        if discount is None:
            warnings.append(f"Discount code '{code}' not found; quoted without discount")
            return None
        if not discount.is_applicable(breakdown.subtotal, self._now()):
            warnings.append(f"Discount code '{code}' is not applicable; quoted without discount")
            return None
        return discount

    def _origin(self, origin: tuple[float, float] | None) -> Point:
        if origin is not None:
            return Point.checked(*origin)
        cfg = self._settings.requests
        return Point(cfg.origin_latitude, cfg.origin_longitude)

    def _distance_km(self, origin: Coordinates, destination: Coordinates) -> Decimal:
        return round2(to_decimal(self._distance.distance_km(origin, destination)))

    def _clamped_surge(self, location: Coordinates, when: datetime) -> Decimal:
        raw = to_decimal(self._surge.surge_multiplier(location, when))
        ceiling = self._settings.pricing.max_surge_multiplier
        return min(max(raw, ONE), ceiling)
