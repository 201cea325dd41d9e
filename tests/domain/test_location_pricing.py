"""Tests for location pricing records and the tiered resolver."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from verifyhub.domain.location_pricing import (
    LocationPriceResult,
    LocationPricing,
    PricingRecordStatus,
    PricingSource,
    resolve_location_price,
)

AT = datetime(2026, 3, 4, 12, 0, tzinfo=UTC)
DEFAULT = Decimal("5000")


def _record(record_id: str, city: str, area: str | None = None, **kwargs: object) -> LocationPricing:
    fields: dict[str, object] = {"city_cost": Decimal("4000"), "area_cost": Decimal("0")}
    fields.update(kwargs)
    return LocationPricing(id=record_id, city=city, area=area, **fields)


@pytest.fixture
def records() -> list[LocationPricing]:
    return [
        _record("lp_city", "Lagos", city_cost=Decimal("4500")),
        _record("lp_lekki", "Lagos", "Lekki", city_cost=Decimal("4500"), area_cost=Decimal("1500")),
        _record("lp_ikeja", "Lagos", "Ikeja", status=PricingRecordStatus.INACTIVE),
        _record("lp_yaba", "Lagos", "Yaba", area_cost=Decimal("0")),
    ]


def _resolve(
    city: str, area: str | None, records: list[LocationPricing]
) -> LocationPriceResult:
    return resolve_location_price(city, area, records, at=AT, default_city_cost=DEFAULT)


class TestLocationPricing:
    def test_city_stripped_and_blank_area_is_none(self) -> None:
        record = _record("lp_1", "  Lagos ", "   ")
        assert record.city == "Lagos"
        assert record.area is None
        assert record.is_city_wide

    def test_blank_city(self) -> None:
        with pytest.raises(ValidationError):
            _record("lp_1", "   ")

    def test_negative_cost(self) -> None:
        with pytest.raises(ValidationError):
            _record("lp_1", "Lagos", city_cost=Decimal("-1"))

    def test_window_order(self) -> None:
        with pytest.raises(ValidationError, match="effective_to"):
            _record(
                "lp_1",
                "Lagos",
                effective_from=datetime(2026, 3, 1, tzinfo=UTC),
                effective_to=datetime(2026, 2, 1, tzinfo=UTC),
            )

    def test_matches_case_insensitive(self) -> None:
        record = _record("lp_1", "Lagos", "Lekki Phase 1")
        assert record.matches("LAGOS", "lekki phase 1")
        assert not record.matches("Lagos", None)

    def test_active_window_inclusive(self) -> None:
        record = _record("lp_1", "Lagos", effective_from=AT, effective_to=AT)
        assert record.is_active_at(AT)
        assert not record.is_active_at(datetime(2026, 3, 5, tzinfo=UTC))


class TestResolve:
    def test_exact_match_uses_area_cost(self, records: list[LocationPricing]) -> None:
        result = _resolve("lagos", "LEKKI", records)
        assert result.pricing_source == PricingSource.EXACT_MATCH
        assert result.total_cost == Decimal("1500")
        assert result.applied_pricing_id == "lp_lekki"

    def test_exact_match_with_zero_area_cost(self, records: list[LocationPricing]) -> None:
        result = _resolve("Lagos", "Yaba", records)
        assert result.pricing_source == PricingSource.EXACT_MATCH
        assert result.total_cost == Decimal("4000")

    def test_inactive_area_falls_back_to_city(self, records: list[LocationPricing]) -> None:
        result = _resolve("Lagos", "Ikeja", records)
        assert result.pricing_source == PricingSource.CITY_FALLBACK
        assert result.total_cost == Decimal("4500")
        assert result.applied_pricing_id == "lp_city"
        assert result.area == "Ikeja"

    def test_city_only(self, records: list[LocationPricing]) -> None:
        result = _resolve("Lagos", None, records)
        assert result.pricing_source == PricingSource.CITY_FALLBACK

    def test_default(self, records: list[LocationPricing]) -> None:
        result = _resolve("Abuja", "Wuse", records)
        assert result.pricing_source == PricingSource.DEFAULT
        assert result.total_cost == DEFAULT
        assert result.applied_pricing_id is None

    def test_record_outside_window_skipped(self) -> None:
        future = _record("lp_1", "Lagos", effective_from=datetime(2026, 6, 1, tzinfo=UTC))
        result = _resolve("Lagos", None, [future])
        assert result.pricing_source == PricingSource.DEFAULT

    def test_wire_format(self, records: list[LocationPricing]) -> None:
        data = _resolve("Lagos", "Lekki", records).to_json()
        assert data["pricingSource"] == "exact_match"
        assert data["totalCost"] == 1500.0
