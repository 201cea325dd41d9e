"""VerificationRequest aggregate root.

Every mutator checks all of its preconditions before touching state, so a
raised error leaves the request exactly as it was. Status changes go
through :meth:`VerificationRequest._change_status`, which appends to the
history and bumps ``modified_at``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from verifyhub.domain.base import WIRE_CONFIG
from verifyhub.domain.clock import Clock, ensure_aware, utc_now
from verifyhub.domain.errors import InvalidValueError, TransitionError
from verifyhub.domain.geo import GeoPoint
from verifyhub.domain.ids import IdFactory, new_request_id
from verifyhub.domain.kinds import VerificationKind
from verifyhub.domain.lifecycle import RequestState, RequestStatus
from verifyhub.domain.money import Money

MIN_TITLE_LENGTH = 5
MIN_DESCRIPTION_LENGTH = 20


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


def _require_text(value: str | None, label: str) -> str:
    if not value or not value.strip():
        msg = f"{label} is required"
        raise InvalidValueError(msg)
    return value


class VerificationRequest(BaseModel):
    """A client's request for an agent to verify something on site.

    Created in DRAFT with a flat price (category base x urgency) and an
    estimated completion of creation time plus the urgency SLA.
    """

    model_config = ConfigDict(**WIRE_CONFIG)

    id: str = Field(min_length=1)
    client_id: str
    title: str
    description: str
    kind: VerificationKind = Field(alias="verificationType")
    location: GeoPoint
    price: Money
    status: RequestStatus
    created_at: datetime
    modified_at: datetime
    assigned_agent_id: str | None = None
    scheduled_date: datetime | None = None
    estimated_completion_date: datetime | None = None
    actual_completion_date: datetime | None = None
    attachments: tuple[str, ...] = ()
    notes: str | None = None
    payment_id: str | None = None
    payment_reference: str | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status_history: tuple[RequestStatus, ...] = ()

    # Stored per instance; a function default would bind as a method.
    _clock: Clock = PrivateAttr(default_factory=lambda: utc_now)

    # --- Validation ---

    @field_validator("client_id")
    @classmethod
    def _check_client(cls, v: str) -> str:
        if not v.strip():
            msg = "Client ID is required"
            raise ValueError(msg)
        return v

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        if len(v.strip()) < MIN_TITLE_LENGTH:
            msg = f"Title must be at least {MIN_TITLE_LENGTH} characters long"
            raise ValueError(msg)
        return v

    @field_validator("description")
    @classmethod
    def _check_description(cls, v: str) -> str:
        if len(v.strip()) < MIN_DESCRIPTION_LENGTH:
            msg = f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters long"
            raise ValueError(msg)
        return v

    @field_validator(
        "created_at",
        "modified_at",
        "scheduled_date",
        "estimated_completion_date",
        "actual_completion_date",
    )
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v) if v is not None else None

    @field_validator("attachments")
    @classmethod
    def _unique_attachments(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(v)) != len(v):
            msg = "Attachments must be unique"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _seed_history(self) -> Self:
        if not self.status_history:
            self.status_history = (self.status,)
        return self

    # --- Construction ---

    @classmethod
    def create(
        cls,
        *,
        client_id: str,
        title: str,
        description: str,
        kind: VerificationKind,
        location: GeoPoint,
        price: Money | None = None,
        currency: str = "USD",
        id_factory: IdFactory = new_request_id,
        clock: Clock = utc_now,
    ) -> VerificationRequest:
        """Build a new DRAFT request.

        When *price* is omitted the flat creation-time price is used.
        """
        now = clock()
        request = cls(
            id=id_factory(),
            client_id=client_id,
            title=title,
            description=description,
            kind=kind,
            location=location,
            price=price or flat_price(kind, currency),
            status=RequestStatus.draft(at=now),
            created_at=now,
            modified_at=now,
            estimated_completion_date=now + timedelta(hours=kind.sla_hours),
        )
        request._clock = clock
        return request

    @classmethod
    def from_json(cls, data: Mapping[str, Any], *, clock: Clock = utc_now) -> VerificationRequest:
        request = cls.model_validate(data)
        request._clock = clock
        return request

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    # --- Status mutators ---

    def submit(self) -> None:
        self._transition(RequestState.SUBMITTED)

    def assign_agent(self, agent_id: str) -> None:
        if not self.status.can_be_assigned:
            msg = f"Cannot assign agent in status {self.status.state}"
            raise TransitionError(msg, current=self.status.state, requested=RequestState.ASSIGNED)
        _require_text(agent_id, "Agent ID")
        now = self._clock()
        new_status = RequestStatus(state=RequestState.ASSIGNED, changed_at=now)
        self.assigned_agent_id = agent_id
        self._change_status(new_status, now)

    def start_verification(self) -> None:
        if not self.assigned_agent_id:
            msg = "Cannot start verification without assigned agent"
            raise TransitionError(msg, current=self.status.state, requested=RequestState.IN_PROGRESS)
        if not self.status.can_progress:
            msg = f"Cannot start verification in status {self.status.state}"
            raise TransitionError(msg, current=self.status.state, requested=RequestState.IN_PROGRESS)
        now = self._clock()
        self._change_status(RequestStatus(state=RequestState.IN_PROGRESS, changed_at=now), now)

    def complete(self) -> None:
        if not self.status.can_progress:
            msg = f"Cannot complete verification in status {self.status.state}"
            raise TransitionError(msg, current=self.status.state, requested=RequestState.COMPLETED)
        now = self._clock()
        new_status = RequestStatus(state=RequestState.COMPLETED, changed_at=now)
        self.actual_completion_date = now
        self._change_status(new_status, now)

    def cancel(self, reason: str, actor: str | None = None) -> None:
        if not self.status.can_be_cancelled:
            msg = f"Cannot cancel verification in status {self.status.state}"
            raise TransitionError(msg, current=self.status.state, requested=RequestState.CANCELLED)
        now = self._clock()
        self._change_status(RequestStatus.cancelled(reason, actor, at=now), now)

    def reject(self, reason: str, actor: str | None = None) -> None:
        """Reject from any state; only the reason is checked."""
        now = self._clock()
        self._change_status(RequestStatus.rejected(reason, actor, at=now), now)

    def request_revision(self, reason: str, actor: str | None = None) -> None:
        self._transition(RequestState.REQUIRES_REVISION, reason=reason, actor=actor)

    def transition_to(
        self,
        state: RequestState | str,
        reason: str | None = None,
        actor: str | None = None,
    ) -> None:
        """Move to *state* if the transition map allows it."""
        self._transition(RequestState(state), reason=reason, actor=actor)

    # --- Payment ---

    def set_pending_payment(self, payment_reference: str) -> None:
        _require_text(payment_reference, "Payment reference")
        now = self._clock()
        new_status = self.status.transition_to(RequestState.PENDING_PAYMENT, at=now)
        self.payment_reference = payment_reference
        self._change_status(new_status, now)

    def confirm_payment(self, payment_id: str) -> None:
        if self.status.state != RequestState.PENDING_PAYMENT:
            msg = "Can only confirm payment for pending payment requests"
            raise TransitionError(msg, current=self.status.state, requested=RequestState.SUBMITTED)
        _require_text(payment_id, "Payment ID")
        now = self._clock()
        new_status = RequestStatus.submitted(at=now)
        self.payment_id = payment_id
        self.payment_status = PaymentStatus.PAID
        self._change_status(new_status, now)

    def update_payment(self, payment_id: str, payment_status: PaymentStatus | str) -> None:
        """Record a payment outcome without touching the lifecycle status."""
        _require_text(payment_id, "Payment ID")
        try:
            resolved = PaymentStatus(payment_status)
        except ValueError as exc:
            msg = f"Unknown payment status: {payment_status}"
            raise InvalidValueError(msg) from exc
        self.payment_id = payment_id
        self.payment_status = resolved
        self._touch()

    # --- Other mutators ---

    def schedule(self, when: datetime) -> None:
        when = ensure_aware(when)
        if when <= self._clock():
            msg = "Scheduled date must be in the future"
            raise TransitionError(msg)
        self.scheduled_date = when
        self._touch()

    def add_attachment(self, url: str) -> None:
        _require_text(url, "Attachment URL")
        if url in self.attachments:
            msg = f"Attachment already exists: {url}"
            raise TransitionError(msg)
        self.attachments = (*self.attachments, url)
        self._touch()

    def remove_attachment(self, url: str) -> None:
        if url not in self.attachments:
            msg = f"Attachment not found: {url}"
            raise TransitionError(msg)
        self.attachments = tuple(a for a in self.attachments if a != url)
        self._touch()

    def update_notes(self, notes: str | None) -> None:
        self.notes = notes
        self._touch()

    # --- Queries ---

    def calculate_total_price(self) -> Money:
        """Flat price: category base price times the urgency multiplier."""
        return flat_price(self.kind, self.price.currency)

    def is_overdue(self) -> bool:
        if self.estimated_completion_date is None or self.actual_completion_date is not None:
            return False
        return self._clock() > self.estimated_completion_date

    def duration_hours(self) -> int:
        """Whole hours from creation to completion (or now), half rounding up."""
        end = self.actual_completion_date or self._clock()
        hours = (end - self.created_at).total_seconds() / 3600
        return math.floor(hours + 0.5)

    def needs_payment_reconciliation(self) -> bool:
        """Payment recorded as paid but the lifecycle never advanced."""
        return self.payment_status == PaymentStatus.PAID and self.status.state in (
            RequestState.DRAFT,
            RequestState.PENDING_PAYMENT,
        )

    @property
    def state(self) -> RequestState:
        return self.status.state

    # --- Internals ---

    def _transition(
        self,
        target: RequestState,
        *,
        reason: str | None = None,
        actor: str | None = None,
    ) -> None:
        now = self._clock()
        new_status = self.status.transition_to(target, at=now, reason=reason, changed_by=actor)
        self._change_status(new_status, now)

    def _change_status(self, new_status: RequestStatus, now: datetime) -> None:
        self.status = new_status
        self.status_history = (*self.status_history, new_status)
        self.modified_at = now

    def _touch(self) -> None:
        self.modified_at = self._clock()


def flat_price(kind: VerificationKind, currency: str = "USD") -> Money:
    """Creation-time price for *kind*, independent of the pricing engine."""
    return Money(amount=kind.base_price, currency=currency).multiply(kind.urgency_multiplier)
