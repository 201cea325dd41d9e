"""Command group: per-city and per-area location pricing."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from verifyhub.commands._base import VerifyGroup
from verifyhub.commands.request import DATETIME
from verifyhub.domain.location_pricing import PricingRecordStatus
from verifyhub.services.location_pricing import LocationPricingService

if TYPE_CHECKING:
    from verifyhub.commands._context import AppContext

STATUS_CHOICE = click.Choice([s.value for s in PricingRecordStatus], case_sensitive=False)

_LOCATION_EXAMPLES = """\
  verifyhub location resolve Lagos --area Lekki
  verifyhub location add Lagos 5000 --area Lekki --area-cost 1500
  verifyhub location list --page 2
  verifyhub location seed pricing.json"""


@click.group(cls=VerifyGroup, examples=_LOCATION_EXAMPLES)
def location() -> None:
    """Manage location pricing and resolve a location's cost."""


@location.command(
    examples="""\
  verifyhub location resolve Lagos
  verifyhub location resolve Lagos --area Ikeja"""
)
@click.argument("city")
@click.option("--area", default=None, help="Area within the city.")
@click.pass_obj
def resolve(app: AppContext, city: str, area: str | None) -> None:
    """Cost for a city or area: exact match, then city-wide, then default."""
    app.emit(LocationPricingService(app.store).resolve(city, area))


@location.command(
    examples="""\
  verifyhub location add Lagos 5000
  verifyhub location add Lagos 5000 --area Lekki --area-cost 1500 --from 2026-01-01"""
)
@click.argument("city")
@click.argument("city_cost", type=float)
@click.option("--area", default=None, help="Area (omit for a city-wide record).")
@click.option("--area-cost", type=float, default=0.0, help="Extra cost for the area.")
@click.option("--status", type=STATUS_CHOICE, default=PricingRecordStatus.ACTIVE.value)
@click.option("--description", default=None)
@click.option("--from", "effective_from", type=DATETIME, default=None, help="Effective from.")
@click.option("--to", "effective_to", type=DATETIME, default=None, help="Effective until.")
@click.pass_obj
def add(
    app: AppContext,
    city: str,
    city_cost: float,
    area: str | None,
    area_cost: float,
    status: str,
    description: str | None,
    effective_from: datetime | None,
    effective_to: datetime | None,
) -> None:
    """Create a pricing record."""
    svc = LocationPricingService(app.store)
    app.emit(
        svc.create(
            city,
            city_cost,
            area=area,
            area_cost=area_cost,
            status=status.lower(),
            description=description,
            effective_from=effective_from,
            effective_to=effective_to,
        )
    )


@location.command(
    examples="""\
  verifyhub location update lp_0a1b2c3d4e5f --city-cost 5500
  verifyhub location update lp_0a1b2c3d4e5f --status inactive"""
)
@click.argument("record_id")
@click.option("--city-cost", type=float, default=None)
@click.option("--area-cost", type=float, default=None)
@click.option("--status", type=STATUS_CHOICE, default=None)
@click.option("--description", default=None)
@click.option("--from", "effective_from", type=DATETIME, default=None)
@click.option("--to", "effective_to", type=DATETIME, default=None)
@click.pass_obj
def update(app: AppContext, record_id: str, **fields: Any) -> None:
    """Change fields of a pricing record."""
    changes = {k: v for k, v in fields.items() if v is not None}
    if "status" in changes:
        changes["status"] = changes["status"].lower()
    if not changes:
        raise click.UsageError("Nothing to update.")
    app.emit(LocationPricingService(app.store).update(record_id, **changes))


@location.command(examples="  verifyhub location show lp_0a1b2c3d4e5f")
@click.argument("record_id")
@click.pass_obj
def show(app: AppContext, record_id: str) -> None:
    """Show one pricing record."""
    app.emit(LocationPricingService(app.store).get(record_id))


@location.command("list", examples="  verifyhub location list --page 2 --limit 20")
@click.option("--page", type=int, default=1, help="Page number (1-based).")
@click.option("--limit", type=int, default=None, help="Page size (default from config).")
@click.pass_obj
def list_cmd(app: AppContext, page: int, limit: int | None) -> None:
    """List pricing records by city then area."""
    app.emit(LocationPricingService(app.store).list_page(page, limit))


@location.command(examples="  verifyhub location remove lp_0a1b2c3d4e5f")
@click.argument("record_id")
@click.pass_obj
def remove(app: AppContext, record_id: str) -> None:
    """Delete a pricing record."""
    app.emit(LocationPricingService(app.store).delete(record_id))


@location.command(examples="  verifyhub location areas Lagos")
@click.argument("city")
@click.pass_obj
def areas(app: AppContext, city: str) -> None:
    """Active per-area records for a city."""
    app.emit(LocationPricingService(app.store).areas(city))


@location.command(examples="  verifyhub location search lek --status active")
@click.argument("query")
@click.option("--status", type=STATUS_CHOICE, default=None)
@click.pass_obj
def search(app: AppContext, query: str, status: str | None) -> None:
    """Find records whose city or area contains QUERY."""
    app.emit(LocationPricingService(app.store).search(query, status.lower() if status else None))


@location.command(
    examples="""\
  verifyhub location seed pricing.json

  pricing.json holds a list of objects:
  [{"city": "Lagos", "city_cost": 5000},
   {"city": "Lagos", "area": "Lekki", "city_cost": 5000, "area_cost": 1500}]"""
)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def seed(app: AppContext, file: Path) -> None:
    """Bulk-create pricing records from a JSON file."""
    try:
        entries = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON in {file}: {exc}") from exc
    if not isinstance(entries, list):
        raise click.ClickException(f"{file} must contain a JSON list of records")
    app.emit(LocationPricingService(app.store).bulk_create(entries))
