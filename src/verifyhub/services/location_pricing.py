"""LocationPricingService: per-city and per-area verification costs.

Resolution falls back from an exact city/area record to a city-wide
record to the configured default. The tier that matched is reported in
the result.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog
from pydantic import ValidationError

from verifyhub.domain.errors import DomainError
from verifyhub.domain.ids import new_location_pricing_id
from verifyhub.domain.location_pricing import (
    LocationPricing,
    PricingRecordStatus,
    PricingSource,
    resolve_location_price,
)
from verifyhub.services._helpers import failure, from_exception, not_found
from verifyhub.services.base import BaseService
from verifyhub.services.result import CONFLICT, VALIDATION_FAILED, ServiceResult

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"city_cost", "area_cost", "status", "description", "effective_from", "effective_to"}
)


def _label(city: str, area: str | None) -> str:
    return f"{city} - {area}" if area else city


def _record_data(record: LocationPricing) -> dict[str, Any]:
    return record.model_dump(mode="json")


class LocationPricingService(BaseService):
    """Manage location pricing records and resolve a location's cost."""

    def resolve(self, city: str, area: str | None = None) -> ServiceResult:
        op = "location_price"
        cfg = self._settings.location_pricing
        with self._store.read() as txn:
            records = txn.locations.for_city(city)
        result = resolve_location_price(
            city,
            area,
            records,
            at=self._now(),
            default_city_cost=cfg.default_city_cost,
            default_area_cost=cfg.default_area_cost,
        )
        if result.pricing_source == PricingSource.DEFAULT:
            logger.warning("location_pricing.default", city=city, area=area)
        return ServiceResult(ok=True, op=op, data=result.model_dump(mode="json"))

    def create(
        self,
        city: str,
        city_cost: Decimal | float,
        *,
        area: str | None = None,
        area_cost: Decimal | float = 0,
        status: PricingRecordStatus | str = PricingRecordStatus.ACTIVE,
        description: str | None = None,
        effective_from: datetime | None = None,
        effective_to: datetime | None = None,
    ) -> ServiceResult:
        """Create a record, refusing a second active one for the same location."""
        op = "create_location_pricing"
        now = self._now()
        try:
            record = LocationPricing(
                id=new_location_pricing_id(),
                city=city,
                area=area,
                city_cost=city_cost,
                area_cost=area_cost,
                status=status,
                description=description,
                effective_from=effective_from,
                effective_to=effective_to,
                created_at=now,
                updated_at=now,
            )
            with self._store.transaction() as txn:
                existing = txn.locations.find_exact(record.city, record.area)
                if existing is not None and existing.status == PricingRecordStatus.ACTIVE:
                    return failure(
                        op,
                        CONFLICT,
                        f"Active pricing already exists for {_label(record.city, record.area)}",
                        existing_id=existing.id,
                    )
                txn.locations.create(record)
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)

        logger.info("location_pricing.created", id=record.id, city=record.city, area=record.area)
        return ServiceResult(ok=True, op=op, data=_record_data(record))

    def update(self, record_id: str, **changes: Any) -> ServiceResult:
        op = "update_location_pricing"
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            return failure(
                op,
                VALIDATION_FAILED,
                f"Cannot update fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )
        try:
            with self._store.transaction() as txn:
                record = txn.locations.get(record_id)
                if record is None:
                    return not_found(op, "Location pricing", record_id)
                updated = record.with_changes(updated_at=self._now(), **changes)
                txn.locations.update(updated)
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={**_record_data(updated), "fields_changed": sorted(changes)},
        )

    def get(self, record_id: str) -> ServiceResult:
        op = "get_location_pricing"
        with self._store.read() as txn:
            record = txn.locations.get(record_id)
        if record is None:
            return not_found(op, "Location pricing", record_id)
        return ServiceResult(ok=True, op=op, data=_record_data(record))

    def list_page(self, page: int = 1, limit: int | None = None) -> ServiceResult:
        op = "list_location_pricing"
        if page < 1:
            return failure(op, VALIDATION_FAILED, "Page must be 1 or greater")
        size = limit or self._settings.location_pricing.page_size
        with self._store.read() as txn:
            result = txn.locations.page(page, size)
        items = [_record_data(r) for r in result.items]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items)},
            meta={"total": result.total, "page": result.page, "limit": result.limit},
        )

    def delete(self, record_id: str) -> ServiceResult:
        op = "delete_location_pricing"
        with self._store.transaction() as txn:
            if not txn.locations.delete(record_id):
                return not_found(op, "Location pricing", record_id)
        return ServiceResult(ok=True, op=op, data={"id": record_id})

    def areas(self, city: str) -> ServiceResult:
        """Active per-area records for *city*."""
        op = "city_areas"
        with self._store.read() as txn:
            found = txn.locations.active_areas(city)
        items = [_record_data(r) for r in found]
        return ServiceResult(ok=True, op=op, data={"city": city, "items": items, "count": len(items)})

    def search(self, query: str, status: PricingRecordStatus | str | None = None) -> ServiceResult:
        op = "search_location_pricing"
        try:
            resolved = PricingRecordStatus(status) if status is not None else None
        except ValueError:
            return failure(op, VALIDATION_FAILED, f"Unknown status: {status}")
        with self._store.read() as txn:
            found = txn.locations.search(query, resolved)
        items = [_record_data(r) for r in found]
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})

    def bulk_create(self, entries: Iterable[Mapping[str, Any]]) -> ServiceResult:
        """Create many records; failures are skipped with a warning."""
        op = "bulk_create_location_pricing"
        created: list[dict[str, Any]] = []
        warnings: list[str] = []
        for entry in entries:
            fields = dict(entry)
            city = fields.pop("city", "")
            city_cost = fields.pop("city_cost", None)
            if city_cost is None:
                warnings.append(f"Skipped {_label(city, fields.get('area'))}: city_cost is required")
                continue
            try:
                result = self.create(city, city_cost, **fields)
            except TypeError as exc:
                warnings.append(f"Skipped {_label(city, fields.get('area'))}: {exc}")
                continue
            if result.ok:
                created.append(result.data)
            else:
                message = result.error.message if result.error else "unknown error"
                warnings.append(f"Skipped {_label(city, fields.get('area'))}: {message}")
        for warning in warnings:
            logger.warning("location_pricing.bulk_skip", detail=warning)
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": created, "count": len(created)},
            warnings=warnings,
        )
