"""Tests for request states, the transition map, and RequestStatus."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from verifyhub.domain.errors import TransitionError
from verifyhub.domain.lifecycle import (
    REASON_REQUIRED,
    REQUEST_TRANSITIONS,
    TERMINAL_STATES,
    RequestState,
    RequestStatus,
    is_valid_transition,
)

AT = datetime(2026, 3, 4, 12, 0, tzinfo=UTC)

LEGAL_EDGES = {
    RequestState.DRAFT: {
        RequestState.PENDING_PAYMENT,
        RequestState.SUBMITTED,
        RequestState.CANCELLED,
    },
    RequestState.PENDING_PAYMENT: {RequestState.SUBMITTED, RequestState.CANCELLED},
    RequestState.SUBMITTED: {
        RequestState.ASSIGNED,
        RequestState.REJECTED,
        RequestState.CANCELLED,
    },
    RequestState.ASSIGNED: {
        RequestState.IN_PROGRESS,
        RequestState.CANCELLED,
        RequestState.REQUIRES_REVISION,
    },
    RequestState.IN_PROGRESS: {
        RequestState.COMPLETED,
        RequestState.REQUIRES_REVISION,
        RequestState.CANCELLED,
    },
    RequestState.REQUIRES_REVISION: {RequestState.SUBMITTED, RequestState.CANCELLED},
    RequestState.COMPLETED: set(),
    RequestState.CANCELLED: set(),
    RequestState.REJECTED: set(),
}

ALL_PAIRS = [(a, b) for a in RequestState for b in RequestState]


def _status(state: RequestState) -> RequestStatus:
    reason = "because" if state in REASON_REQUIRED else None
    return RequestStatus(state=state, reason=reason, changed_at=AT)


class TestTransitionMap:
    def test_members(self) -> None:
        assert {s.value for s in RequestState} == {
            "DRAFT",
            "PENDING_PAYMENT",
            "SUBMITTED",
            "ASSIGNED",
            "IN_PROGRESS",
            "COMPLETED",
            "CANCELLED",
            "REJECTED",
            "REQUIRES_REVISION",
        }

    def test_map_covers_every_state(self) -> None:
        assert set(REQUEST_TRANSITIONS) == {s.value for s in RequestState}

    @pytest.mark.parametrize(("current", "target"), ALL_PAIRS)
    def test_edge_table(self, current: RequestState, target: RequestState) -> None:
        assert is_valid_transition(current, target) is (target in LEGAL_EDGES[current])

    def test_terminal_states_have_no_exits(self) -> None:
        for state in TERMINAL_STATES:
            assert REQUEST_TRANSITIONS[state] == []

    def test_unknown_state(self) -> None:
        assert not is_valid_transition("ARCHIVED", "DRAFT")


class TestRequestStatus:
    @pytest.mark.parametrize(
        "state",
        [RequestState.CANCELLED, RequestState.REJECTED, RequestState.REQUIRES_REVISION],
    )
    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_required(self, state: RequestState, reason: str | None) -> None:
        with pytest.raises(ValidationError, match="requires a reason"):
            RequestStatus(state=state, reason=reason)

    def test_reason_optional_elsewhere(self) -> None:
        assert RequestStatus(state=RequestState.SUBMITTED).reason is None

    def test_naive_timestamp_becomes_utc(self) -> None:
        status = RequestStatus(state=RequestState.DRAFT, changed_at=datetime(2026, 1, 1))
        assert status.changed_at.tzinfo is not None

    @pytest.mark.parametrize(("current", "target"), ALL_PAIRS)
    def test_transition_to_follows_table(
        self, current: RequestState, target: RequestState
    ) -> None:
        status = _status(current)
        reason = "because"
        if target in LEGAL_EDGES[current]:
            new = status.transition_to(target, at=AT, reason=reason, changed_by="ops")
            assert new.state == target
            assert new.changed_by == "ops"
        else:
            with pytest.raises(TransitionError) as exc_info:
                status.transition_to(target, at=AT, reason=reason)
            assert exc_info.value.current == current
            assert exc_info.value.requested == target

    def test_transition_without_required_reason(self) -> None:
        with pytest.raises(ValidationError):
            _status(RequestState.SUBMITTED).transition_to(RequestState.REJECTED, at=AT)

    def test_guards(self) -> None:
        submitted = _status(RequestState.SUBMITTED)
        assert submitted.can_be_assigned
        assert submitted.can_be_cancelled
        assert not submitted.can_progress

        in_progress = _status(RequestState.IN_PROGRESS)
        assert in_progress.can_progress
        assert not in_progress.can_be_cancelled

        revision = _status(RequestState.REQUIRES_REVISION)
        assert revision.can_be_assigned

    def test_is_final(self) -> None:
        assert _status(RequestState.COMPLETED).is_final
        assert not _status(RequestState.ASSIGNED).is_final

    def test_display(self) -> None:
        status = _status(RequestState.PENDING_PAYMENT)
        assert status.display_name == "Pending Payment"
        assert status.color.startswith("#")

    def test_valid_next_states(self) -> None:
        assert _status(RequestState.PENDING_PAYMENT).valid_next_states() == [
            RequestState.SUBMITTED,
            RequestState.CANCELLED,
        ]
        assert _status(RequestState.REJECTED).valid_next_states() == []

    def test_factories(self) -> None:
        assert RequestStatus.draft(at=AT).state == RequestState.DRAFT
        cancelled = RequestStatus.cancelled("client withdrew", "ops", at=AT)
        assert cancelled.reason == "client withdrew"
        assert cancelled.changed_by == "ops"
        assert RequestStatus.requires_revision("blurry", at=AT).state == (
            RequestState.REQUIRES_REVISION
        )

    def test_wire_format(self) -> None:
        data = RequestStatus.rejected("fraud", "ops", at=AT).to_json()
        assert data == {
            "status": "REJECTED",
            "reason": "fraud",
            "changedAt": "2026-03-04T12:00:00Z",
            "changedBy": "ops",
        }
        assert RequestStatus.from_json(data) == RequestStatus.rejected("fraud", "ops", at=AT)
