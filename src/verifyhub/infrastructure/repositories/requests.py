"""Persistence for the VerificationRequest aggregate.

The full aggregate is stored as its JSON document, so a load returns
exactly what was saved (status history included). Saving is an upsert:
the last write wins.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from verifyhub.domain.clock import Clock, utc_now
from verifyhub.domain.lifecycle import RequestState
from verifyhub.domain.request import VerificationRequest
from verifyhub.infrastructure.database.schema import verification_requests
from verifyhub.infrastructure.repositories._rows import iso_utc

if TYPE_CHECKING:
    from sqlalchemy import Connection

t = verification_requests


class RequestRepository:
    """Encapsulates SQL for the ``verification_requests`` table."""

    def __init__(self, conn: Connection, *, clock: Clock = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    def load(self, request_id: str) -> VerificationRequest | None:
        row = self._conn.execute(select(t.c.document).where(t.c.id == request_id)).first()
        if row is None:
            return None
        return self._hydrate(row.document)

    def save(self, request: VerificationRequest) -> VerificationRequest:
        """Insert or overwrite *request*."""
        values = self._row_values(request)
        exists = self._conn.execute(select(t.c.id).where(t.c.id == request.id)).first()
        if exists is None:
            self._conn.execute(insert(t).values(id=request.id, **values))
        else:
            self._conn.execute(update(t).where(t.c.id == request.id).values(**values))
        return request

    def find_all(
        self,
        *,
        client_id: str | None = None,
        state: RequestState | str | None = None,
        agent_id: str | None = None,
        payment_reference: str | None = None,
        limit: int | None = None,
    ) -> list[VerificationRequest]:
        """Requests matching every given filter, newest first."""
        stmt = select(t.c.document).order_by(t.c.created_at.desc(), t.c.id)
        if client_id is not None:
            stmt = stmt.where(t.c.client_id == client_id)
        if state is not None:
            stmt = stmt.where(t.c.state == str(state))
        if agent_id is not None:
            stmt = stmt.where(t.c.assigned_agent_id == agent_id)
        if payment_reference is not None:
            stmt = stmt.where(t.c.payment_reference == payment_reference)
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._hydrate(row.document) for row in self._conn.execute(stmt)]

    def find_by_payment_reference(self, reference: str) -> VerificationRequest | None:
        found = self.find_all(payment_reference=reference, limit=1)
        return found[0] if found else None

    def list_overdue(self, now: datetime, *, limit: int | None = None) -> list[VerificationRequest]:
        """Open requests whose estimated completion is before *now*."""
        stmt = (
            select(t.c.document)
            .where(
                t.c.estimated_completion_date.is_not(None),
                t.c.actual_completion_date.is_(None),
                t.c.estimated_completion_date < iso_utc(now),
            )
            .order_by(t.c.estimated_completion_date)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [self._hydrate(row.document) for row in self._conn.execute(stmt)]

    def list_unreconciled(self) -> list[VerificationRequest]:
        """Requests marked paid whose lifecycle never left DRAFT/PENDING_PAYMENT."""
        stmt = select(t.c.document).where(
            t.c.payment_status == "paid",
            t.c.state.in_([str(RequestState.DRAFT), str(RequestState.PENDING_PAYMENT)]),
        )
        return [self._hydrate(row.document) for row in self._conn.execute(stmt)]

    def count(self, *, state: RequestState | str | None = None) -> int:
        stmt = select(func.count(t.c.id))
        if state is not None:
            stmt = stmt.where(t.c.state == str(state))
        return int(self._conn.execute(stmt).scalar_one() or 0)

    # --- Internals ---

    def _hydrate(self, document: str) -> VerificationRequest:
        return VerificationRequest.from_json(json.loads(document), clock=self._clock)

    @staticmethod
    def _row_values(request: VerificationRequest) -> dict[str, Any]:
        return {
            "client_id": request.client_id,
            "state": str(request.state),
            "category": str(request.kind.category),
            "urgency": str(request.kind.urgency),
            "assigned_agent_id": request.assigned_agent_id,
            "payment_status": str(request.payment_status),
            "payment_reference": request.payment_reference,
            "estimated_completion_date": iso_utc(request.estimated_completion_date),
            "actual_completion_date": iso_utc(request.actual_completion_date),
            "created_at": iso_utc(request.created_at),
            "modified_at": iso_utc(request.modified_at),
            "document": json.dumps(request.to_json()),
        }
