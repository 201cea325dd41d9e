"""Tests for the VerificationRequest aggregate."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tests.conftest import FIXED_NOW, FrozenClock, make_location, make_request
from verifyhub.domain.errors import InvalidValueError, TransitionError
from verifyhub.domain.kinds import Urgency, VerificationCategory, VerificationKind
from verifyhub.domain.lifecycle import RequestState
from verifyhub.domain.money import Money
from verifyhub.domain.request import PaymentStatus, VerificationRequest


def _completed_without_agent(clock: FrozenClock) -> VerificationRequest:
    request = make_request(clock)
    for state in ("SUBMITTED", "ASSIGNED", "IN_PROGRESS", "COMPLETED"):
        request.transition_to(state)
    return request


class TestCreate:
    def test_new_request_is_draft(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        assert request.state == RequestState.DRAFT
        assert request.created_at == FIXED_NOW
        assert request.modified_at == FIXED_NOW
        assert len(request.status_history) == 1
        assert request.payment_status == PaymentStatus.PENDING

    def test_estimated_completion_from_sla(self, clock: FrozenClock) -> None:
        request = make_request(clock, urgency=Urgency.EXPRESS)
        assert request.estimated_completion_date == FIXED_NOW + timedelta(hours=12)

    def test_flat_price(self, clock: FrozenClock) -> None:
        assert make_request(clock).price == Money(amount="25.00")

    def test_explicit_price(self, clock: FrozenClock) -> None:
        request = VerificationRequest.create(
            client_id="client-1",
            title="Verify title deed",
            description="Confirm the deed matches the land registry entry",
            kind=VerificationKind(category=VerificationCategory.DOCUMENT_VERIFICATION),
            location=make_location(),
            price=Money(amount=5000, currency="NGN"),
            clock=clock,
        )
        assert request.price.currency == "NGN"

    @pytest.mark.parametrize(
        ("field", "value"),
        [("title", "Abc"), ("description", "too short"), ("client_id", "  ")],
    )
    def test_text_validation(self, clock: FrozenClock, field: str, value: str) -> None:
        fields = {
            "client_id": "client-1",
            "title": "Verify title deed",
            "description": "Confirm the deed matches the land registry entry",
        }
        fields[field] = value
        with pytest.raises(ValidationError):
            VerificationRequest.create(
                **fields,
                kind=VerificationKind(category=VerificationCategory.DOCUMENT_VERIFICATION),
                location=make_location(),
                clock=clock,
            )


class TestFlatPricing:
    def test_standard_document(self, clock: FrozenClock) -> None:
        price = make_request(clock).calculate_total_price()
        assert price.amount == Decimal("25.00")

    def test_immediate_document(self, clock: FrozenClock) -> None:
        price = make_request(clock, urgency=Urgency.IMMEDIATE).calculate_total_price()
        assert price.amount == Decimal("50.00")

    def test_urgent_business(self, clock: FrozenClock) -> None:
        request = make_request(
            clock, category=VerificationCategory.BUSINESS_VERIFICATION, urgency=Urgency.URGENT
        )
        assert request.calculate_total_price().amount == Decimal("93.75")


class TestLifecycle:
    def test_happy_path(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        request.assign_agent("agent-7")
        request.start_verification()
        clock.advance(hours=3)
        request.complete()

        assert request.state == RequestState.COMPLETED
        assert request.assigned_agent_id == "agent-7"
        assert request.actual_completion_date == FIXED_NOW + timedelta(hours=3)
        assert [s.state for s in request.status_history] == [
            RequestState.DRAFT,
            RequestState.SUBMITTED,
            RequestState.ASSIGNED,
            RequestState.IN_PROGRESS,
            RequestState.COMPLETED,
        ]
        assert request.duration_hours() == 3

    def test_modified_at_bumped(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        clock.advance(minutes=5)
        request.submit()
        assert request.modified_at == FIXED_NOW + timedelta(minutes=5)

    def test_assign_on_completed_fails(self, clock: FrozenClock) -> None:
        request = _completed_without_agent(clock)
        history = request.status_history
        with pytest.raises(TransitionError):
            request.assign_agent("agent-7")
        assert request.assigned_agent_id is None
        assert request.status_history == history

    def test_assign_blank_agent(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        with pytest.raises(InvalidValueError):
            request.assign_agent("  ")
        assert request.state == RequestState.SUBMITTED

    def test_start_requires_agent(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        request.transition_to(RequestState.ASSIGNED)
        with pytest.raises(TransitionError, match="without assigned agent"):
            request.start_verification()

    def test_complete_requires_progress(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        with pytest.raises(TransitionError):
            request.complete()
        assert request.actual_completion_date is None

    def test_submit_from_completed(self, clock: FrozenClock) -> None:
        with pytest.raises(TransitionError, match="COMPLETED -> SUBMITTED"):
            _completed_without_agent(clock).submit()

    def test_cancel_requires_reason(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        with pytest.raises(ValidationError):
            request.cancel("")
        assert request.state == RequestState.DRAFT
        assert len(request.status_history) == 1

    def test_cancel_records_reason_and_actor(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.cancel("Client withdrew", "ops-1")
        assert request.state == RequestState.CANCELLED
        assert request.status.reason == "Client withdrew"
        assert request.status.changed_by == "ops-1"

    def test_cancel_in_progress_blocked_by_guard(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        request.assign_agent("agent-7")
        request.start_verification()
        with pytest.raises(TransitionError):
            request.cancel("Too late")
        assert request.state == RequestState.IN_PROGRESS

    def test_transition_to_allows_table_edge_the_guard_forbids(
        self, clock: FrozenClock
    ) -> None:
        request = make_request(clock)
        request.submit()
        request.assign_agent("agent-7")
        request.start_verification()
        request.transition_to(RequestState.CANCELLED, reason="Site unreachable")
        assert request.state == RequestState.CANCELLED

    def test_reject_from_any_state(self, clock: FrozenClock) -> None:
        request = _completed_without_agent(clock)
        request.reject("Fraudulent documents", "ops-2")
        assert request.state == RequestState.REJECTED

    def test_revision_cycle(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        request.assign_agent("agent-7")
        request.request_revision("Photo is blurry")
        assert request.status.can_be_assigned
        request.submit()
        request.assign_agent("agent-8")
        assert request.assigned_agent_id == "agent-8"

    def test_revision_from_submitted_not_allowed(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        with pytest.raises(TransitionError):
            request.request_revision("Photo is blurry")

    def test_transition_to_unknown_state(self, clock: FrozenClock) -> None:
        with pytest.raises(ValueError):
            make_request(clock).transition_to("ARCHIVED")


class TestPayment:
    def test_pay_then_confirm(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.set_pending_payment("PAYREF-1")
        assert request.state == RequestState.PENDING_PAYMENT
        assert request.payment_reference == "PAYREF-1"

        request.confirm_payment("pay_91")
        assert request.state == RequestState.SUBMITTED
        assert request.payment_id == "pay_91"
        assert request.payment_status == PaymentStatus.PAID

    def test_confirm_requires_pending_payment(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        with pytest.raises(TransitionError, match="pending payment"):
            request.confirm_payment("pay_91")
        assert request.payment_status == PaymentStatus.PENDING

    def test_blank_reference(self, clock: FrozenClock) -> None:
        with pytest.raises(InvalidValueError):
            make_request(clock).set_pending_payment("")

    def test_pending_payment_only_from_draft(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        with pytest.raises(TransitionError):
            request.set_pending_payment("PAYREF-1")
        assert request.payment_reference is None

    def test_update_payment_keeps_status(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.update_payment("pay_1", "paid")
        assert request.state == RequestState.DRAFT
        assert request.payment_status == PaymentStatus.PAID
        assert request.needs_payment_reconciliation()

    def test_update_payment_unknown_status(self, clock: FrozenClock) -> None:
        with pytest.raises(InvalidValueError, match="Unknown payment status"):
            make_request(clock).update_payment("pay_1", "lost")

    def test_reconciled_after_confirm(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.set_pending_payment("PAYREF-1")
        request.confirm_payment("pay_91")
        assert not request.needs_payment_reconciliation()


class TestDetails:
    def test_schedule_in_past(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        with pytest.raises(TransitionError, match="future"):
            request.schedule(FIXED_NOW - timedelta(days=1))
        assert request.scheduled_date is None

    def test_schedule_in_future(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        tomorrow = FIXED_NOW + timedelta(days=1)
        request.schedule(tomorrow)
        assert request.scheduled_date == tomorrow

    def test_schedule_now_is_not_future(self, clock: FrozenClock) -> None:
        with pytest.raises(TransitionError):
            make_request(clock).schedule(FIXED_NOW)

    def test_attachments(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.add_attachment("https://files.example/a.pdf")
        request.add_attachment("https://files.example/b.pdf")
        with pytest.raises(TransitionError, match="already exists"):
            request.add_attachment("https://files.example/a.pdf")
        request.remove_attachment("https://files.example/a.pdf")
        assert request.attachments == ("https://files.example/b.pdf",)
        with pytest.raises(TransitionError, match="not found"):
            request.remove_attachment("https://files.example/a.pdf")

    def test_notes(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        clock.advance(minutes=1)
        request.update_notes("Gate code 4411")
        assert request.notes == "Gate code 4411"
        assert request.modified_at == FIXED_NOW + timedelta(minutes=1)
        assert len(request.status_history) == 1


class TestQueries:
    def test_overdue(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        assert not request.is_overdue()
        clock.advance(hours=49)
        assert request.is_overdue()

    def test_completed_is_not_overdue(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        request.assign_agent("agent-7")
        request.start_verification()
        clock.advance(hours=72)
        request.complete()
        assert not request.is_overdue()

    @pytest.mark.parametrize(("minutes", "hours"), [(149, 2), (150, 3), (0, 0)])
    def test_duration_rounds_half_up(self, clock: FrozenClock, minutes: int, hours: int) -> None:
        request = make_request(clock)
        clock.advance(minutes=minutes)
        assert request.duration_hours() == hours


class TestSerialization:
    def test_round_trip(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.submit()
        request.assign_agent("agent-7")
        request.add_attachment("https://files.example/a.pdf")
        request.schedule(FIXED_NOW + timedelta(days=2))

        restored = VerificationRequest.from_json(request.to_json(), clock=clock)
        assert restored == request
        assert restored.to_json() == request.to_json()

    def test_wire_keys(self, clock: FrozenClock) -> None:
        data = make_request(clock).to_json()
        assert data["clientId"] == "client-1"
        assert data["verificationType"]["category"] == "DOCUMENT_VERIFICATION"
        assert data["status"]["status"] == "DRAFT"
        assert data["price"] == {"amount": 25.0, "currency": "USD"}
        assert data["statusHistory"][0]["changedAt"] == "2026-03-04T14:30:00Z"
        assert data["paymentStatus"] == "pending"

    def test_history_survives_round_trip(self, clock: FrozenClock) -> None:
        request = make_request(clock)
        request.cancel("Duplicate request", "ops-1")
        restored = VerificationRequest.from_json(request.to_json(), clock=clock)
        assert [s.state for s in restored.status_history] == [
            RequestState.DRAFT,
            RequestState.CANCELLED,
        ]
        assert restored.status.reason == "Duplicate request"


class TestClock:
    def test_injected_clock_drives_mutators(self) -> None:
        at = FIXED_NOW + timedelta(days=1)
        request = VerificationRequest.create(
            client_id="client-1",
            title="Verify title deed",
            description="Confirm the deed matches the land registry entry",
            kind=VerificationKind(category=VerificationCategory.DOCUMENT_VERIFICATION),
            location=make_location(),
            clock=lambda: at,
        )
        request.submit()
        assert request.status.changed_at == at
        assert request.modified_at == at

    def test_clock_survives_from_json(self, clock: FrozenClock) -> None:
        restored = VerificationRequest.from_json(make_request(clock).to_json(), clock=clock)
        assert not restored.is_overdue()
        clock.advance(hours=49)
        assert restored.is_overdue()
        restored.submit()
        assert restored.modified_at == clock.now

    def test_default_clock_is_wall_time(self, clock: FrozenClock) -> None:
        request = VerificationRequest.model_validate(make_request(clock).to_json())
        request.submit()
        assert request.modified_at > FIXED_NOW


# Shortest legal route from DRAFT to each state, with a reason where one is required.
_ROUTES: dict[RequestState, list[tuple[str, str | None]]] = {
    RequestState.DRAFT: [],
    RequestState.PENDING_PAYMENT: [("PENDING_PAYMENT", None)],
    RequestState.SUBMITTED: [("SUBMITTED", None)],
    RequestState.ASSIGNED: [("SUBMITTED", None), ("ASSIGNED", None)],
    RequestState.IN_PROGRESS: [("SUBMITTED", None), ("ASSIGNED", None), ("IN_PROGRESS", None)],
    RequestState.COMPLETED: [
        ("SUBMITTED", None),
        ("ASSIGNED", None),
        ("IN_PROGRESS", None),
        ("COMPLETED", None),
    ],
    RequestState.REQUIRES_REVISION: [
        ("SUBMITTED", None),
        ("ASSIGNED", None),
        ("REQUIRES_REVISION", "Photos are blurry"),
    ],
    RequestState.CANCELLED: [("CANCELLED", "Duplicate request")],
    RequestState.REJECTED: [("SUBMITTED", None), ("REJECTED", "Outside service area")],
}

_S = RequestState
LEGAL_EDGES: dict[RequestState, set[RequestState]] = {
    _S.DRAFT: {_S.PENDING_PAYMENT, _S.SUBMITTED, _S.CANCELLED},
    _S.PENDING_PAYMENT: {_S.SUBMITTED, _S.CANCELLED},
    _S.SUBMITTED: {_S.ASSIGNED, _S.REJECTED, _S.CANCELLED},
    _S.ASSIGNED: {_S.IN_PROGRESS, _S.CANCELLED, _S.REQUIRES_REVISION},
    _S.IN_PROGRESS: {_S.COMPLETED, _S.REQUIRES_REVISION, _S.CANCELLED},
    _S.REQUIRES_REVISION: {_S.SUBMITTED, _S.CANCELLED},
}
ALL_PAIRS = [(a, b) for a in RequestState for b in RequestState]


class TestTransitionTable:
    @pytest.mark.parametrize(("current", "target"), ALL_PAIRS)
    def test_history_grows_only_on_legal_edges(
        self, clock: FrozenClock, current: RequestState, target: RequestState
    ) -> None:
        request = make_request(clock)
        for state, reason in _ROUTES[current]:
            request.transition_to(state, reason)
        assert request.state == current
        clock.advance(minutes=1)

        history = request.status_history
        status = request.status
        modified_at = request.modified_at
        if target in LEGAL_EDGES.get(current, set()):
            request.transition_to(target, "because")
            assert len(request.status_history) == len(history) + 1
            assert request.status_history[-1].state == target
            assert request.modified_at == clock.now
        else:
            with pytest.raises(TransitionError):
                request.transition_to(target, "because")
            assert request.status_history == history
            assert request.status == status
            assert request.modified_at == modified_at
