"""Persistence for LocationPricing records."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, or_, select, update

from verifyhub.domain.location_pricing import LocationPricing, PricingRecordStatus
from verifyhub.infrastructure.database.schema import location_pricing
from verifyhub.infrastructure.repositories._rows import dec_str, iso_utc, parse_iso

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import RowMapping

t = location_pricing


def _key(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped.casefold() if stripped else None


@dataclass(frozen=True)
class Page:
    """One page of a paginated listing."""

    items: list[LocationPricing]
    total: int
    page: int
    limit: int


class LocationPricingRepository:
    """Encapsulates SQL for the ``location_pricing`` table."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def create(self, record: LocationPricing) -> LocationPricing:
        self._conn.execute(insert(t).values(**self._row_values(record)))
        return record

    def update(self, record: LocationPricing) -> LocationPricing:
        values = self._row_values(record)
        del values["id"]
        self._conn.execute(update(t).where(t.c.id == record.id).values(**values))
        return record

    def delete(self, record_id: str) -> bool:
        result = self._conn.execute(delete(t).where(t.c.id == record_id))
        return result.rowcount > 0

    def get(self, record_id: str) -> LocationPricing | None:
        row = self._conn.execute(select(t).where(t.c.id == record_id)).mappings().first()
        return self._to_model(row) if row is not None else None

    def find_exact(self, city: str, area: str | None) -> LocationPricing | None:
        """Most recently updated record for exactly *city*/*area*."""
        stmt = select(t).where(t.c.city_key == _key(city))
        area_key = _key(area)
        stmt = stmt.where(t.c.area_key.is_(None) if area_key is None else t.c.area_key == area_key)
        row = self._conn.execute(stmt.order_by(t.c.updated_at.desc())).mappings().first()
        return self._to_model(row) if row is not None else None

    def for_city(self, city: str) -> list[LocationPricing]:
        """Every record for *city*, city-wide and per-area, newest first."""
        stmt = select(t).where(t.c.city_key == _key(city)).order_by(t.c.updated_at.desc())
        return [self._to_model(r) for r in self._conn.execute(stmt).mappings()]

    def active_areas(self, city: str) -> list[LocationPricing]:
        """Active per-area records for *city*, ordered by area name."""
        stmt = (
            select(t)
            .where(
                t.c.city_key == _key(city),
                t.c.area_key.is_not(None),
                t.c.status == str(PricingRecordStatus.ACTIVE),
            )
            .order_by(t.c.area_key)
        )
        return [self._to_model(r) for r in self._conn.execute(stmt).mappings()]

    def page(self, page: int = 1, limit: int = 50) -> Page:
        total = int(self._conn.execute(select(func.count(t.c.id))).scalar_one() or 0)
        stmt = select(t).order_by(t.c.city_key, t.c.area_key).limit(limit).offset((page - 1) * limit)
        items = [self._to_model(r) for r in self._conn.execute(stmt).mappings()]
        return Page(items=items, total=total, page=page, limit=limit)

    def search(self, query: str, status: PricingRecordStatus | str | None = None) -> list[LocationPricing]:
        """Records whose city, area, or description contains *query*."""
        pattern = f"%{query.strip().casefold()}%"
        stmt = select(t).where(
            or_(
                t.c.city_key.like(pattern),
                t.c.area_key.like(pattern),
                func.lower(t.c.description).like(pattern),
            )
        )
        if status is not None:
            stmt = stmt.where(t.c.status == str(status))
        stmt = stmt.order_by(t.c.city_key, t.c.area_key)
        return [self._to_model(r) for r in self._conn.execute(stmt).mappings()]

    # --- Internals ---

    @staticmethod
    def _row_values(record: LocationPricing) -> dict[str, Any]:
        return {
            "id": record.id,
            "city": record.city,
            "city_key": _key(record.city),
            "area": record.area,
            "area_key": _key(record.area),
            "city_cost": dec_str(record.city_cost),
            "area_cost": dec_str(record.area_cost),
            "status": str(record.status),
            "description": record.description,
            "effective_from": iso_utc(record.effective_from),
            "effective_to": iso_utc(record.effective_to),
            "created_at": iso_utc(record.created_at),
            "updated_at": iso_utc(record.updated_at),
        }

    @staticmethod
    def _to_model(row: RowMapping) -> LocationPricing:
        return LocationPricing(
            id=row["id"],
            city=row["city"],
            area=row["area"],
            city_cost=Decimal(row["city_cost"]),
            area_cost=Decimal(row["area_cost"]),
            status=PricingRecordStatus(row["status"]),
            description=row["description"],
            effective_from=parse_iso(row["effective_from"]),
            effective_to=parse_iso(row["effective_to"]),
            created_at=parse_iso(row["created_at"]),
            updated_at=parse_iso(row["updated_at"]),
        )
