"""Tests for the location pricing repository."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from tests.conftest import FIXED_NOW
from verifyhub.domain.location_pricing import LocationPricing, PricingRecordStatus
from verifyhub.infrastructure.store import Store


def _record(record_id: str, city: str, area: str | None = None, **fields: object) -> LocationPricing:
    return LocationPricing(
        id=record_id,
        city=city,
        area=area,
        city_cost=fields.pop("city_cost", Decimal("5000")),
        area_cost=fields.pop("area_cost", Decimal("0")),
        created_at=FIXED_NOW,
        updated_at=fields.pop("updated_at", FIXED_NOW),
        **fields,
    )


class TestCrud:
    def test_create_and_get(self, store: Store) -> None:
        record = _record("lp-1", "Lagos", "Ikeja", area_cost=Decimal("1500.50"))
        with store.transaction() as txn:
            txn.locations.create(record)
        with store.read() as txn:
            loaded = txn.locations.get("lp-1")
        assert loaded == record
        assert loaded is not None
        assert loaded.area_cost == Decimal("1500.50")

    def test_get_missing(self, store: Store) -> None:
        with store.read() as txn:
            assert txn.locations.get("nope") is None

    def test_update(self, store: Store) -> None:
        record = _record("lp-1", "Lagos")
        with store.transaction() as txn:
            txn.locations.create(record)
            txn.locations.update(record.with_changes(status=PricingRecordStatus.INACTIVE))
        with store.read() as txn:
            loaded = txn.locations.get("lp-1")
        assert loaded is not None
        assert loaded.status == PricingRecordStatus.INACTIVE

    def test_delete(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("lp-1", "Lagos"))
        with store.transaction() as txn:
            assert txn.locations.delete("lp-1") is True
            assert txn.locations.delete("lp-1") is False


class TestLookups:
    def test_find_exact_is_case_insensitive(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("city", "Lagos"))
            txn.locations.create(_record("area", "Lagos", "Ikeja"))
        with store.read() as txn:
            city = txn.locations.find_exact("  LAGOS ", None)
            area = txn.locations.find_exact("lagos", "ikeja")
            assert txn.locations.find_exact("Lagos", "Lekki") is None
        assert city is not None and city.id == "city"
        assert area is not None and area.id == "area"

    def test_find_exact_prefers_latest_update(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("old", "Lagos"))
            txn.locations.create(_record("new", "Lagos", updated_at=FIXED_NOW + timedelta(days=1)))
        with store.read() as txn:
            found = txn.locations.find_exact("Lagos", None)
        assert found is not None
        assert found.id == "new"

    def test_for_city(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("city", "Lagos"))
            txn.locations.create(_record("area", "Lagos", "Ikeja"))
            txn.locations.create(_record("other", "Abuja"))
        with store.read() as txn:
            ids = {r.id for r in txn.locations.for_city("lagos")}
        assert ids == {"city", "area"}

    def test_active_areas_sorted(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("city", "Lagos"))
            txn.locations.create(_record("b", "Lagos", "Yaba"))
            txn.locations.create(_record("a", "Lagos", "Ikeja"))
            txn.locations.create(_record("c", "Lagos", "Lekki", status=PricingRecordStatus.INACTIVE))
        with store.read() as txn:
            areas = [r.area for r in txn.locations.active_areas("Lagos")]
        assert areas == ["Ikeja", "Yaba"]


class TestPagingAndSearch:
    def test_page(self, store: Store) -> None:
        with store.transaction() as txn:
            for i, city in enumerate(["Lagos", "Abuja", "Kano"]):
                txn.locations.create(_record(f"lp-{i}", city))
        with store.read() as txn:
            first = txn.locations.page(page=1, limit=2)
            second = txn.locations.page(page=2, limit=2)
        assert first.total == 3
        assert [r.city for r in first.items] == ["Abuja", "Kano"]
        assert [r.city for r in second.items] == ["Lagos"]

    def test_search_matches_description(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("a", "Lagos", description="Island surcharge"))
            txn.locations.create(_record("b", "Abuja"))
        with store.read() as txn:
            assert [r.id for r in txn.locations.search("ISLAND")] == ["a"]
            assert [r.id for r in txn.locations.search("abu")] == ["b"]

    def test_search_status_filter(self, store: Store) -> None:
        with store.transaction() as txn:
            txn.locations.create(_record("a", "Lagos"))
            txn.locations.create(_record("b", "Lagos", "Yaba", status=PricingRecordStatus.INACTIVE))
        with store.read() as txn:
            found = txn.locations.search("lagos", PricingRecordStatus.INACTIVE)
        assert [r.id for r in found] == ["b"]
