"""RequestService: lifecycle use cases for verification requests.

Each mutation loads the aggregate, applies one domain mutator, and saves
it inside a single transaction. A domain error rolls the transaction back
and comes out as a failed ServiceResult.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from verifyhub.domain.errors import DomainError
from verifyhub.domain.geo import GeoPoint
from verifyhub.domain.kinds import Urgency, VerificationCategory, VerificationKind
from verifyhub.domain.lifecycle import RequestState
from verifyhub.domain.request import PaymentStatus, VerificationRequest
from verifyhub.services._helpers import from_exception, not_found, request_summary
from verifyhub.services.base import BaseService
from verifyhub.services.result import ServiceResult

logger = structlog.get_logger(__name__)

Mutator = Callable[[VerificationRequest], None]


class RequestService(BaseService):
    """Create, query, and move verification requests through their lifecycle."""

    # ------------------------------------------------------------------
    # Creation and queries
    # ------------------------------------------------------------------

    def create(
        self,
        *,
        client_id: str,
        title: str,
        description: str,
        category: VerificationCategory | str,
        address: str,
        latitude: float,
        longitude: float,
        urgency: Urgency | str = Urgency.STANDARD,
        requires_physical_presence: bool = True,
        estimated_duration_minutes: int | None = None,
        special_instructions: str | None = None,
        landmark: str | None = None,
        access_instructions: str | None = None,
        currency: str | None = None,
    ) -> ServiceResult:
        """Create a DRAFT request priced at the flat creation-time rate."""
        op = "create_request"
        cfg = self._settings.requests
        try:
            kind = VerificationKind(
                category=category,
                urgency=urgency,
                requires_physical_presence=requires_physical_presence,
                estimated_duration_minutes=estimated_duration_minutes
                or cfg.default_duration_minutes,
                special_instructions=special_instructions,
            )
            location = GeoPoint(
                address=address,
                latitude=latitude,
                longitude=longitude,
                landmark=landmark,
                access_instructions=access_instructions,
            )
            request = VerificationRequest.create(
                client_id=client_id,
                title=title,
                description=description,
                kind=kind,
                location=location,
                currency=currency or cfg.default_currency,
                clock=self._store.clock,
            )
            with self._store.transaction() as txn:
                txn.requests.save(request)
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)

        logger.info(
            "request.created",
            request_id=request.id,
            client_id=client_id,
            category=str(kind.category),
            urgency=str(kind.urgency),
        )
        data = request_summary(request)
        data["required_documents"] = kind.required_documents
        return ServiceResult(ok=True, op=op, data=data)

    def get(self, request_id: str) -> ServiceResult:
        op = "get_request"
        with self._store.read() as txn:
            request = txn.requests.load(request_id)
        if request is None:
            return not_found(op, "Request", request_id)

        data: dict[str, Any] = {
            **request_summary(request),
            "status_display": request.status.display_name,
            "is_final": request.status.is_final,
            "is_overdue": request.is_overdue(),
            "needs_payment_reconciliation": request.needs_payment_reconciliation(),
            "valid_next_states": [str(s) for s in request.status.valid_next_states()],
            "history": [
                {
                    "status": str(s.state),
                    "reason": s.reason,
                    "changed_at": s.changed_at.isoformat(),
                    "changed_by": s.changed_by,
                }
                for s in request.status_history
            ],
            "document": request.to_json(),
        }
        return ServiceResult(ok=True, op=op, data=data)

    def list_requests(
        self,
        *,
        client_id: str | None = None,
        state: RequestState | str | None = None,
        agent_id: str | None = None,
        payment_reference: str | None = None,
        limit: int | None = None,
    ) -> ServiceResult:
        op = "list_requests"
        with self._store.read() as txn:
            found = txn.requests.find_all(
                client_id=client_id,
                state=state,
                agent_id=agent_id,
                payment_reference=payment_reference,
                limit=limit,
            )
            total = txn.requests.count(state=state)
        items = [request_summary(r) for r in found]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": items, "count": len(items)},
            meta={"total": total},
        )

    def overdue(self) -> ServiceResult:
        op = "overdue_requests"
        now = self._now()
        with self._store.read() as txn:
            limit = self._settings.requests.overdue_page_size
            found = [r for r in txn.requests.list_overdue(now, limit=limit) if r.is_overdue()]
        items = [request_summary(r) for r in found]
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})

    def flat_price(self, request_id: str) -> ServiceResult:
        """Creation-time price: category base price times urgency multiplier."""
        op = "flat_price"
        with self._store.read() as txn:
            request = txn.requests.load(request_id)
        if request is None:
            return not_found(op, "Request", request_id)
        price = request.calculate_total_price()
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": request.id,
                "base_price": float(request.kind.base_price),
                "urgency_multiplier": float(request.kind.urgency_multiplier),
                "amount": float(price.amount),
                "currency": price.currency,
                "formatted": price.format(),
            },
        )

    # ------------------------------------------------------------------
    # Lifecycle mutations
    # ------------------------------------------------------------------

    def submit(self, request_id: str) -> ServiceResult:
        return self._mutate("submit", request_id, lambda r: r.submit())

    def assign_agent(self, request_id: str, agent_id: str) -> ServiceResult:
        return self._mutate("assign_agent", request_id, lambda r: r.assign_agent(agent_id))

    def start(self, request_id: str) -> ServiceResult:
        return self._mutate("start_verification", request_id, lambda r: r.start_verification())

    def complete(self, request_id: str) -> ServiceResult:
        return self._mutate("complete", request_id, lambda r: r.complete())

    def cancel(self, request_id: str, reason: str, actor: str | None = None) -> ServiceResult:
        return self._mutate("cancel", request_id, lambda r: r.cancel(reason, actor))

    def reject(self, request_id: str, reason: str, actor: str | None = None) -> ServiceResult:
        return self._mutate("reject", request_id, lambda r: r.reject(reason, actor))

    def request_revision(
        self, request_id: str, reason: str, actor: str | None = None
    ) -> ServiceResult:
        return self._mutate(
            "request_revision", request_id, lambda r: r.request_revision(reason, actor)
        )

    def transition(
        self,
        request_id: str,
        state: RequestState | str,
        reason: str | None = None,
        actor: str | None = None,
    ) -> ServiceResult:
        return self._mutate(
            "transition", request_id, lambda r: r.transition_to(state, reason, actor)
        )

    def schedule(self, request_id: str, when: datetime) -> ServiceResult:
        return self._mutate("schedule", request_id, lambda r: r.schedule(when))

    def add_attachment(self, request_id: str, url: str) -> ServiceResult:
        return self._mutate("add_attachment", request_id, lambda r: r.add_attachment(url))

    def remove_attachment(self, request_id: str, url: str) -> ServiceResult:
        return self._mutate("remove_attachment", request_id, lambda r: r.remove_attachment(url))

    def update_notes(self, request_id: str, notes: str | None) -> ServiceResult:
        return self._mutate("update_notes", request_id, lambda r: r.update_notes(notes))

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def set_pending_payment(self, request_id: str, payment_reference: str) -> ServiceResult:
        return self._mutate(
            "set_pending_payment",
            request_id,
            lambda r: r.set_pending_payment(payment_reference),
        )

    def confirm_payment(self, request_id: str, payment_id: str) -> ServiceResult:
        return self._mutate("confirm_payment", request_id, lambda r: r.confirm_payment(payment_id))

    def confirm_payment_by_reference(self, payment_reference: str, payment_id: str) -> ServiceResult:
        """Confirm the request waiting on *payment_reference* (gateway callback path)."""
        op = "confirm_payment"
        with self._store.read() as txn:
            request = txn.requests.find_by_payment_reference(payment_reference)
        if request is None:
            return not_found(op, "Request with payment reference", payment_reference)
        return self.confirm_payment(request.id, payment_id)

    def update_payment(
        self, request_id: str, payment_id: str, payment_status: PaymentStatus | str
    ) -> ServiceResult:
        return self._mutate(
            "update_payment",
            request_id,
            lambda r: r.update_payment(payment_id, payment_status),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mutate(self, op: str, request_id: str, action: Mutator) -> ServiceResult:
        """Load, mutate, and save one request atomically."""
        try:
            with self._store.transaction() as txn:
                request = txn.requests.load(request_id)
                if request is None:
                    return not_found(op, "Request", request_id)
                before = request.state
                history_len = len(request.status_history)
                action(request)
                txn.requests.save(request)
        except (DomainError, ValidationError) as exc:
            logger.debug("request.mutation_rejected", op=op, request_id=request_id, error=str(exc))
            return from_exception(op, exc)

        data = request_summary(request)
        if len(request.status_history) != history_len:
            data["previous_status"] = str(before)
            logger.info(
                "request.status_changed",
                request_id=request_id,
                from_state=str(before),
                to_state=str(request.state),
            )
        return ServiceResult(ok=True, op=op, data=data)
