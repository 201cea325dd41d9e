"""Command group: verification request lifecycle."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import click

from verifyhub.commands._base import VerifyGroup
from verifyhub.domain.kinds import Urgency, VerificationCategory
from verifyhub.domain.lifecycle import RequestState
from verifyhub.domain.request import PaymentStatus
from verifyhub.services.requests import RequestService

if TYPE_CHECKING:
    from verifyhub.commands._context import AppContext

CATEGORY_CHOICE = click.Choice([c.value for c in VerificationCategory], case_sensitive=False)
URGENCY_CHOICE = click.Choice([u.value for u in Urgency], case_sensitive=False)
STATE_CHOICE = click.Choice([s.value for s in RequestState], case_sensitive=False)
DATETIME = click.DateTime(["%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%d"])

_REQUEST_EXAMPLES = """\
  verifyhub request create --client c-1 --title "Shop inspection" \\
      --description "Confirm the storefront exists and is trading" \\
      --category BUSINESS_VERIFICATION --address "12 Marina Road, Lagos" \\
      --lat 6.45 --lng 3.39
  verifyhub request list --status SUBMITTED
  verifyhub request submit 6f1c...
  verifyhub request assign 6f1c... agent-7
  verifyhub request cancel 6f1c... --reason "Client withdrew\""""


@click.group(cls=VerifyGroup, examples=_REQUEST_EXAMPLES)
def request() -> None:
    """Create verification requests and move them through their lifecycle."""


@request.command(
    examples="""\
  verifyhub request create --client c-1 --title "Title deed check" \\
      --description "Verify the deed at the land registry office" \\
      --category DOCUMENT_VERIFICATION --urgency URGENT \\
      --address "Plot 4, Admiralty Way, Lekki" --lat 6.44 --lng 3.47"""
)
@click.option("--client", "client_id", required=True, help="Client identifier.")
@click.option("--title", required=True, help="Short title (5+ characters).")
@click.option("--description", required=True, help="What to verify (20+ characters).")
@click.option("--category", type=CATEGORY_CHOICE, required=True, help="Verification category.")
@click.option("--urgency", type=URGENCY_CHOICE, default=Urgency.STANDARD.value, help="Urgency tier.")
@click.option("--address", required=True, help="Street address (10+ characters).")
@click.option("--lat", "latitude", type=float, required=True, help="Latitude.")
@click.option("--lng", "longitude", type=float, required=True, help="Longitude.")
@click.option("--landmark", default=None, help="Nearby landmark.")
@click.option("--access", "access_instructions", default=None, help="Access instructions.")
@click.option("--remote", is_flag=True, help="Physical presence not required.")
@click.option("--duration", type=int, default=None, help="Estimated duration in minutes.")
@click.option("--instructions", "special_instructions", default=None, help="Special instructions.")
@click.option("--currency", default=None, help="Price currency (default from config).")
@click.pass_obj
def create(
    app: AppContext,
    client_id: str,
    title: str,
    description: str,
    category: str,
    urgency: str,
    address: str,
    latitude: float,
    longitude: float,
    landmark: str | None,
    access_instructions: str | None,
    remote: bool,
    duration: int | None,
    special_instructions: str | None,
    currency: str | None,
) -> None:
    """Create a DRAFT verification request."""
    svc = RequestService(app.store)
    app.emit(
        svc.create(
            client_id=client_id,
            title=title,
            description=description,
            category=category.upper(),
            urgency=urgency.upper(),
            address=address,
            latitude=latitude,
            longitude=longitude,
            landmark=landmark,
            access_instructions=access_instructions,
            requires_physical_presence=not remote,
            estimated_duration_minutes=duration,
            special_instructions=special_instructions,
            currency=currency,
        )
    )


@request.command(examples="  verifyhub request show 6f1c...")
@click.argument("request_id")
@click.pass_obj
def show(app: AppContext, request_id: str) -> None:
    """Show a request with its status history."""
    app.emit(RequestService(app.store).get(request_id))


@request.command(
    "list",
    examples="""\
  verifyhub request list
  verifyhub request list --status IN_PROGRESS --agent agent-7
  verifyhub request list --client c-1 --limit 10""",
)
@click.option("--client", "client_id", default=None, help="Filter by client.")
@click.option("--status", "state", type=STATE_CHOICE, default=None, help="Filter by status.")
@click.option("--agent", "agent_id", default=None, help="Filter by assigned agent.")
@click.option("--payment-ref", "payment_reference", default=None, help="Filter by payment reference.")
@click.option("--limit", type=int, default=None, help="Maximum rows.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    client_id: str | None,
    state: str | None,
    agent_id: str | None,
    payment_reference: str | None,
    limit: int | None,
) -> None:
    """List requests, newest first."""
    svc = RequestService(app.store)
    app.emit(
        svc.list_requests(
            client_id=client_id,
            state=state.upper() if state else None,
            agent_id=agent_id,
            payment_reference=payment_reference,
            limit=limit,
        )
    )


@request.command(examples="  verifyhub request overdue")
@click.pass_obj
def overdue(app: AppContext) -> None:
    """List open requests past their estimated completion date."""
    app.emit(RequestService(app.store).overdue())


@request.command("flat-price", examples="  verifyhub request flat-price 6f1c...")
@click.argument("request_id")
@click.pass_obj
def flat_price(app: AppContext, request_id: str) -> None:
    """Show the creation-time price: base price times urgency multiplier."""
    app.emit(RequestService(app.store).flat_price(request_id))


# --- Lifecycle ---


@request.command(examples="  verifyhub request submit 6f1c...")
@click.argument("request_id")
@click.pass_obj
def submit(app: AppContext, request_id: str) -> None:
    """Submit a DRAFT (or revised) request."""
    app.emit(RequestService(app.store).submit(request_id))


@request.command(examples="  verifyhub request assign 6f1c... agent-7")
@click.argument("request_id")
@click.argument("agent_id")
@click.pass_obj
def assign(app: AppContext, request_id: str, agent_id: str) -> None:
    """Assign a field agent to a submitted request."""
    app.emit(RequestService(app.store).assign_agent(request_id, agent_id))


@request.command(examples="  verifyhub request start 6f1c...")
@click.argument("request_id")
@click.pass_obj
def start(app: AppContext, request_id: str) -> None:
    """Mark an assigned request as in progress."""
    app.emit(RequestService(app.store).start(request_id))


@request.command(examples="  verifyhub request complete 6f1c...")
@click.argument("request_id")
@click.pass_obj
def complete(app: AppContext, request_id: str) -> None:
    """Mark an in-progress request as completed."""
    app.emit(RequestService(app.store).complete(request_id))


@request.command(examples='  verifyhub request cancel 6f1c... --reason "Client withdrew"')
@click.argument("request_id")
@click.option("--reason", required=True, help="Why the request is cancelled.")
@click.option("--by", "actor", default=None, help="Who cancelled it.")
@click.pass_obj
def cancel(app: AppContext, request_id: str, reason: str, actor: str | None) -> None:
    """Cancel a request that has not started."""
    app.emit(RequestService(app.store).cancel(request_id, reason, actor))


@request.command(examples='  verifyhub request reject 6f1c... --reason "Fraudulent documents"')
@click.argument("request_id")
@click.option("--reason", required=True, help="Why the request is rejected.")
@click.option("--by", "actor", default=None, help="Who rejected it.")
@click.pass_obj
def reject(app: AppContext, request_id: str, reason: str, actor: str | None) -> None:
    """Reject a request."""
    app.emit(RequestService(app.store).reject(request_id, reason, actor))


@request.command(examples='  verifyhub request revise 6f1c... --reason "Photo is blurry"')
@click.argument("request_id")
@click.option("--reason", required=True, help="What needs revising.")
@click.option("--by", "actor", default=None, help="Who asked for the revision.")
@click.pass_obj
def revise(app: AppContext, request_id: str, reason: str, actor: str | None) -> None:
    """Send a request back to the client for revision."""
    app.emit(RequestService(app.store).request_revision(request_id, reason, actor))


@request.command(
    examples="""\
  verifyhub request transition 6f1c... SUBMITTED
  verifyhub request transition 6f1c... CANCELLED --reason "Duplicate\""""
)
@click.argument("request_id")
@click.argument("state", type=STATE_CHOICE, metavar="STATE")
@click.option("--reason", default=None, help="Reason (required for some states).")
@click.option("--by", "actor", default=None, help="Who made the change.")
@click.pass_obj
def transition(
    app: AppContext, request_id: str, state: str, reason: str | None, actor: str | None
) -> None:
    """Move a request along any allowed edge of the status graph."""
    app.emit(RequestService(app.store).transition(request_id, state.upper(), reason, actor))


# --- Details ---


@request.command(examples="  verifyhub request schedule 6f1c... 2026-11-02T09:30")
@click.argument("request_id")
@click.argument("when", type=DATETIME)
@click.pass_obj
def schedule(app: AppContext, request_id: str, when: datetime) -> None:
    """Schedule the visit (naive times are UTC)."""
    app.emit(RequestService(app.store).schedule(request_id, when))


@request.command(examples="  verifyhub request attach 6f1c... https://files.example/deed.pdf")
@click.argument("request_id")
@click.argument("url")
@click.pass_obj
def attach(app: AppContext, request_id: str, url: str) -> None:
    """Add an attachment URL."""
    app.emit(RequestService(app.store).add_attachment(request_id, url))


@request.command(examples="  verifyhub request detach 6f1c... https://files.example/deed.pdf")
@click.argument("request_id")
@click.argument("url")
@click.pass_obj
def detach(app: AppContext, request_id: str, url: str) -> None:
    """Remove an attachment URL."""
    app.emit(RequestService(app.store).remove_attachment(request_id, url))


@request.command(
    examples="""\
  verifyhub request note 6f1c... "Gate code 4411"
  verifyhub request note 6f1c... --clear"""
)
@click.argument("request_id")
@click.argument("notes", required=False)
@click.option("--clear", is_flag=True, help="Remove the notes.")
@click.pass_obj
def note(app: AppContext, request_id: str, notes: str | None, clear: bool) -> None:
    """Set or clear the request notes."""
    if not clear and notes is None:
        raise click.UsageError("Pass NOTES or --clear.")
    app.emit(RequestService(app.store).update_notes(request_id, None if clear else notes))


# --- Payment ---


@request.command(examples="  verifyhub request pay 6f1c... PAYREF-0042")
@click.argument("request_id")
@click.argument("payment_reference")
@click.pass_obj
def pay(app: AppContext, request_id: str, payment_reference: str) -> None:
    """Move a DRAFT request to PENDING_PAYMENT with a gateway reference."""
    app.emit(RequestService(app.store).set_pending_payment(request_id, payment_reference))


@request.command(
    "confirm-payment",
    examples="""\
  verifyhub request confirm-payment 6f1c... pay_91
  verifyhub request confirm-payment --ref PAYREF-0042 pay_91""",
)
@click.argument("target")
@click.argument("payment_id")
@click.option("--ref", "by_reference", is_flag=True, help="TARGET is a payment reference.")
@click.pass_obj
def confirm_payment(app: AppContext, target: str, payment_id: str, by_reference: bool) -> None:
    """Confirm payment and submit the request."""
    svc = RequestService(app.store)
    if by_reference:
        app.emit(svc.confirm_payment_by_reference(target, payment_id))
    else:
        app.emit(svc.confirm_payment(target, payment_id))


@request.command(examples="  verifyhub request payment 6f1c... pay_91 refunded")
@click.argument("request_id")
@click.argument("payment_id")
@click.argument(
    "payment_status", type=click.Choice([p.value for p in PaymentStatus], case_sensitive=False)
)
@click.pass_obj
def payment(app: AppContext, request_id: str, payment_id: str, payment_status: str) -> None:
    """Record a payment id and status without changing the request status."""
    app.emit(
        RequestService(app.store).update_payment(request_id, payment_id, payment_status.lower())
    )
