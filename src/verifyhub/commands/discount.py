"""Command group: discount codes."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import click

from verifyhub.commands._base import VerifyGroup
from verifyhub.commands.request import DATETIME
from verifyhub.domain.pricing import DiscountType
from verifyhub.services.discounts import DiscountService
from verifyhub.services.pricing import PricingService

if TYPE_CHECKING:
    from verifyhub.commands._context import AppContext

_DISCOUNT_EXAMPLES = """\
  verifyhub discount add WELCOME10 percentage 10 --description "First order"
  verifyhub discount add FLAT5 fixed 5 --min-amount 30 --limit 100
  verifyhub discount validate WELCOME10 42.50
  verifyhub discount deactivate WELCOME10"""


@click.group(cls=VerifyGroup, examples=_DISCOUNT_EXAMPLES)
def discount() -> None:
    """Manage discount codes applied to quotes."""


@discount.command(examples='  verifyhub discount add WELCOME10 percentage 10 --until 2026-12-31')
@click.argument("code")
@click.argument("discount_type", type=click.Choice([t.value for t in DiscountType], case_sensitive=False))
@click.argument("value", type=float)
@click.option("--description", default="")
@click.option("--from", "valid_from", type=DATETIME, default=None, help="Valid from.")
@click.option("--until", "valid_until", type=DATETIME, default=None, help="Valid until.")
@click.option("--limit", "usage_limit", type=int, default=None, help="Total redemptions allowed.")
@click.option("--min-amount", type=float, default=None, help="Minimum subtotal.")
@click.pass_obj
def add(
    app: AppContext,
    code: str,
    discount_type: str,
    value: float,
    description: str,
    valid_from: datetime | None,
    valid_until: datetime | None,
    usage_limit: int | None,
    min_amount: float | None,
) -> None:
    """Create a discount code."""
    app.emit(
        DiscountService(app.store).create(
            code,
            discount_type.lower(),
            value,
            description=description,
            valid_from=valid_from,
            valid_until=valid_until,
            usage_limit=usage_limit,
            min_amount=min_amount,
        )
    )


@discount.command("list", examples="  verifyhub discount list --active")
@click.option("--active", "active_only", is_flag=True, help="Only active codes.")
@click.pass_obj
def list_cmd(app: AppContext, active_only: bool) -> None:
    """List discount codes."""
    app.emit(DiscountService(app.store).list_discounts(active_only=active_only))


@discount.command(examples="  verifyhub discount show WELCOME10")
@click.argument("code")
@click.pass_obj
def show(app: AppContext, code: str) -> None:
    app.emit(DiscountService(app.store).get(code))


@discount.command(examples="  verifyhub discount deactivate WELCOME10")
@click.argument("code")
@click.pass_obj
def deactivate(app: AppContext, code: str) -> None:
    """Stop a code from applying to new quotes."""
    app.emit(DiscountService(app.store).deactivate(code))


@discount.command(examples="  verifyhub discount remove WELCOME10")
@click.argument("code")
@click.pass_obj
def remove(app: AppContext, code: str) -> None:
    app.emit(DiscountService(app.store).delete(code))


@discount.command(examples="  verifyhub discount use WELCOME10")
@click.argument("code")
@click.pass_obj
def use(app: AppContext, code: str) -> None:
    """Record one redemption of a code."""
    app.emit(DiscountService(app.store).record_usage(code))


@discount.command(examples="  verifyhub discount validate WELCOME10 42.50")
@click.argument("code")
@click.argument("amount", type=float)
@click.pass_obj
def validate(app: AppContext, code: str, amount: float) -> None:
    """Check whether a code applies to a subtotal right now."""
    app.emit(PricingService(app.store).validate_discount(code, amount))
