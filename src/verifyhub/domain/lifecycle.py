"""Verification request lifecycle: states, transition map, and RequestStatus.

The transition map is a static lookup table. Guard sets
(assignable, progressable, cancellable) are narrower than the map and
are checked by the aggregate mutators that use them.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Self

from pydantic import Field, field_validator, model_validator

from verifyhub.domain.base import ValueObject
from verifyhub.domain.clock import ensure_aware, utc_now
from verifyhub.domain.errors import TransitionError


class RequestState(StrEnum):
    """Lifecycle state of a verification request."""

    DRAFT = "DRAFT"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    SUBMITTED = "SUBMITTED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    REQUIRES_REVISION = "REQUIRES_REVISION"


# --- Transition map ---

REQUEST_TRANSITIONS: dict[str, list[str]] = {
    "DRAFT": ["PENDING_PAYMENT", "SUBMITTED", "CANCELLED"],
    "PENDING_PAYMENT": ["SUBMITTED", "CANCELLED"],
    "SUBMITTED": ["ASSIGNED", "REJECTED", "CANCELLED"],
    "ASSIGNED": ["IN_PROGRESS", "CANCELLED", "REQUIRES_REVISION"],
    "IN_PROGRESS": ["COMPLETED", "REQUIRES_REVISION", "CANCELLED"],
    "REQUIRES_REVISION": ["SUBMITTED", "CANCELLED"],
    "COMPLETED": [],
    "CANCELLED": [],
    "REJECTED": [],
}

# --- State groups ---

REASON_REQUIRED: frozenset[RequestState] = frozenset(
    {RequestState.CANCELLED, RequestState.REJECTED, RequestState.REQUIRES_REVISION}
)
TERMINAL_STATES: frozenset[RequestState] = frozenset(
    {RequestState.COMPLETED, RequestState.CANCELLED, RequestState.REJECTED}
)
ASSIGNABLE_STATES: frozenset[RequestState] = frozenset(
    {RequestState.SUBMITTED, RequestState.REQUIRES_REVISION}
)
PROGRESSABLE_STATES: frozenset[RequestState] = frozenset(
    {RequestState.ASSIGNED, RequestState.IN_PROGRESS}
)
CANCELLABLE_STATES: frozenset[RequestState] = frozenset(
    {RequestState.DRAFT, RequestState.SUBMITTED, RequestState.ASSIGNED}
)

STATE_DISPLAY_NAMES: dict[RequestState, str] = {
    RequestState.DRAFT: "Draft",
    RequestState.PENDING_PAYMENT: "Pending Payment",
    RequestState.SUBMITTED: "Submitted",
    RequestState.ASSIGNED: "Assigned",
    RequestState.IN_PROGRESS: "In Progress",
    RequestState.COMPLETED: "Completed",
    RequestState.CANCELLED: "Cancelled",
    RequestState.REJECTED: "Rejected",
    RequestState.REQUIRES_REVISION: "Requires Revision",
}

STATE_COLORS: dict[RequestState, str] = {
    RequestState.DRAFT: "#6b7280",
    RequestState.PENDING_PAYMENT: "#f59e0b",
    RequestState.SUBMITTED: "#3b82f6",
    RequestState.ASSIGNED: "#8b5cf6",
    RequestState.IN_PROGRESS: "#f59e0b",
    RequestState.COMPLETED: "#10b981",
    RequestState.CANCELLED: "#6b7280",
    RequestState.REJECTED: "#ef4444",
    RequestState.REQUIRES_REVISION: "#f97316",
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = REQUEST_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


class RequestStatus(ValueObject):
    """One entry in a request's status history.

    ``state`` travels as ``status`` on the wire.
    """

    state: RequestState = Field(alias="status")
    reason: str | None = None
    changed_at: datetime = Field(default_factory=utc_now)
    changed_by: str | None = None

    @field_validator("changed_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def _reason_present(self) -> Self:
        if self.state in REASON_REQUIRED and not (self.reason and self.reason.strip()):
            msg = f"Status '{self.state}' requires a reason"
            raise ValueError(msg)
        return self

    # --- Queries ---

    @property
    def is_final(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def can_be_assigned(self) -> bool:
        return self.state in ASSIGNABLE_STATES

    @property
    def can_progress(self) -> bool:
        return self.state in PROGRESSABLE_STATES

    @property
    def can_be_cancelled(self) -> bool:
        return self.state in CANCELLABLE_STATES

    @property
    def display_name(self) -> str:
        return STATE_DISPLAY_NAMES[self.state]

    @property
    def color(self) -> str:
        """Hex colour used when rendering the state."""
        return STATE_COLORS[self.state]

    def valid_next_states(self) -> list[RequestState]:
        return [RequestState(s) for s in REQUEST_TRANSITIONS.get(self.state, [])]

    def can_transition_to(self, target: RequestState | str) -> bool:
        return is_valid_transition(str(self.state), str(target))

    def transition_to(
        self,
        target: RequestState | str,
        *,
        at: datetime,
        reason: str | None = None,
        changed_by: str | None = None,
    ) -> RequestStatus:
        """Return the status for *target*, or raise if the edge is illegal."""
        requested = RequestState(target)
        if not self.can_transition_to(requested):
            raise TransitionError.illegal_edge(str(self.state), str(requested))
        return RequestStatus(state=requested, reason=reason, changed_at=at, changed_by=changed_by)

    # --- Factories ---

    @classmethod
    def draft(cls, at: datetime | None = None) -> Self:
        return cls(state=RequestState.DRAFT, changed_at=at or utc_now())

    @classmethod
    def pending_payment(cls, at: datetime | None = None) -> Self:
        return cls(state=RequestState.PENDING_PAYMENT, changed_at=at or utc_now())

    @classmethod
    def submitted(cls, at: datetime | None = None) -> Self:
        return cls(state=RequestState.SUBMITTED, changed_at=at or utc_now())

    @classmethod
    def cancelled(cls, reason: str, by: str | None = None, at: datetime | None = None) -> Self:
        return cls(
            state=RequestState.CANCELLED, reason=reason, changed_by=by, changed_at=at or utc_now()
        )

    @classmethod
    def rejected(cls, reason: str, by: str | None = None, at: datetime | None = None) -> Self:
        return cls(
            state=RequestState.REJECTED, reason=reason, changed_by=by, changed_at=at or utc_now()
        )

    @classmethod
    def requires_revision(
        cls, reason: str, by: str | None = None, at: datetime | None = None
    ) -> Self:
        return cls(
            state=RequestState.REQUIRES_REVISION,
            reason=reason,
            changed_by=by,
            changed_at=at or utc_now(),
        )
