"""Command group: quotes, cheaper time slots, travel estimates."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

import click

from verifyhub.commands._base import VerifyGroup
from verifyhub.commands.request import CATEGORY_CHOICE, DATETIME, URGENCY_CHOICE
from verifyhub.domain.kinds import Urgency
from verifyhub.domain.pricing import VerificationMode
from verifyhub.services.pricing import PricingService

if TYPE_CHECKING:
    from verifyhub.commands._context import AppContext

MODE_CHOICE = click.Choice([m.value for m in VerificationMode], case_sensitive=False)

F = TypeVar("F", bound=Callable[..., Any])


def _origin(origin_lat: float | None, origin_lng: float | None) -> tuple[float, float] | None:
    if (origin_lat is None) != (origin_lng is None):
        raise click.UsageError("--from-lat and --from-lng must be given together.")
    if origin_lat is None or origin_lng is None:
        return None
    return (origin_lat, origin_lng)


def _location_options(fn: F) -> F:
    """Add destination and origin coordinate options."""
    fn = click.option("--from-lng", "origin_lng", type=float, default=None, help="Origin longitude.")(fn)
    fn = click.option("--from-lat", "origin_lat", type=float, default=None, help="Origin latitude.")(fn)
    fn = click.option("--lng", "longitude", type=float, default=None, help="Destination longitude.")(fn)
    fn = click.option("--lat", "latitude", type=float, default=None, help="Destination latitude.")(fn)
    return fn


def _require_destination(latitude: float | None, longitude: float | None) -> tuple[float, float]:
    if latitude is None or longitude is None:
        raise click.UsageError("--lat and --lng are required.")
    return latitude, longitude


_PRICE_EXAMPLES = """\
  verifyhub price quote PROPERTY_INSPECTION --lat 6.60 --lng 3.35
  verifyhub price quote IDENTITY_VERIFICATION --lat 6.45 --lng 3.40 --mode live --discount WELCOME10
  verifyhub price quote --request 6f1c...
  verifyhub price suggest BUSINESS_VERIFICATION --lat 6.50 --lng 3.37 --at 2026-11-02T08:30
  verifyhub price travel --lat 6.60 --lng 3.35"""


@click.group(cls=VerifyGroup, examples=_PRICE_EXAMPLES)
def price() -> None:
    """Price verifications and compare time slots."""


@price.command(
    examples="""\
  verifyhub price quote PROPERTY_INSPECTION --lat 6.60 --lng 3.35
  verifyhub price quote ASSET_VERIFICATION --lat 6.60 --lng 3.35 --urgency EXPRESS --at 2026-11-02T18:00
  verifyhub price quote --request 6f1c... --discount WELCOME10"""
)
@click.argument("category", type=CATEGORY_CHOICE, required=False)
@_location_options
@click.option("--urgency", type=URGENCY_CHOICE, default=Urgency.STANDARD.value, help="Urgency tier.")
@click.option("--mode", type=MODE_CHOICE, default=VerificationMode.RECORDED.value, help="Recorded or live.")
@click.option("--at", "scheduled_at", type=DATETIME, default=None, help="Visit time (naive is UTC).")
@click.option("--discount", "discount_code", default=None, help="Discount code to apply.")
@click.option("--request", "request_id", default=None, help="Quote an existing request instead.")
@click.option(
    "--suggestions/--no-suggestions",
    "include_suggestions",
    default=None,
    help="Include cheaper time slots (default from config).",
)
@click.pass_obj
def quote(
    app: AppContext,
    category: str | None,
    latitude: float | None,
    longitude: float | None,
    origin_lat: float | None,
    origin_lng: float | None,
    urgency: str,
    mode: str,
    scheduled_at: datetime | None,
    discount_code: str | None,
    request_id: str | None,
    include_suggestions: bool | None,
) -> None:
    """Itemized price for a verification at a location."""
    svc = PricingService(app.store)
    if request_id is not None:
        app.emit(
            svc.quote_request(
                request_id,
                mode=mode.lower(),
                discount_code=discount_code,
                include_suggestions=include_suggestions,
            )
        )
        return
    if category is None:
        raise click.UsageError("CATEGORY is required unless --request is given.")
    lat, lng = _require_destination(latitude, longitude)
    app.emit(
        svc.quote(
            category.upper(),
            latitude=lat,
            longitude=lng,
            urgency=urgency.upper(),
            mode=mode.lower(),
            scheduled_at=scheduled_at,
            discount_code=discount_code,
            origin=_origin(origin_lat, origin_lng),
            include_suggestions=include_suggestions,
        )
    )


@price.command(
    examples="  verifyhub price suggest BUSINESS_VERIFICATION --lat 6.50 --lng 3.37 --at 2026-11-02T08:30"
)
@click.argument("category", type=CATEGORY_CHOICE)
@_location_options
@click.option("--urgency", type=URGENCY_CHOICE, default=Urgency.STANDARD.value, help="Urgency tier.")
@click.option("--mode", type=MODE_CHOICE, default=VerificationMode.RECORDED.value, help="Recorded or live.")
@click.option("--at", "scheduled_at", type=DATETIME, default=None, help="Visit time (naive is UTC).")
@click.pass_obj
def suggest(
    app: AppContext,
    category: str,
    latitude: float | None,
    longitude: float | None,
    origin_lat: float | None,
    origin_lng: float | None,
    urgency: str,
    mode: str,
    scheduled_at: datetime | None,
) -> None:
    """List time slots cheaper than the requested one."""
    lat, lng = _require_destination(latitude, longitude)
    svc = PricingService(app.store)
    app.emit(
        svc.suggestions(
            category.upper(),
            latitude=lat,
            longitude=lng,
            urgency=urgency.upper(),
            mode=mode.lower(),
            scheduled_at=scheduled_at,
            origin=_origin(origin_lat, origin_lng),
        )
    )


@price.command(examples="  verifyhub price travel --lat 6.60 --lng 3.35 --from-lat 6.45 --from-lng 3.40")
@_location_options
@click.pass_obj
def travel(
    app: AppContext,
    latitude: float | None,
    longitude: float | None,
    origin_lat: float | None,
    origin_lng: float | None,
) -> None:
    """Distance and estimated travel time to a location."""
    lat, lng = _require_destination(latitude, longitude)
    svc = PricingService(app.store)
    app.emit(
        svc.estimate_travel(latitude=lat, longitude=lng, origin=_origin(origin_lat, origin_lng))
    )
