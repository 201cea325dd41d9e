"""Shared service-layer helpers: error mapping and payload shaping."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from verifyhub.domain.errors import DomainError, TransitionError
from verifyhub.services.result import (
    NOT_FOUND,
    VALIDATION_FAILED,
    ServiceError,
    ServiceResult,
)

if TYPE_CHECKING:
    from verifyhub.domain.request import VerificationRequest


def failure(op: str, code: str, message: str, **detail: Any) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=detail),
    )


def not_found(op: str, what: str, key: str) -> ServiceResult:
    return failure(op, NOT_FOUND, f"{what} not found: {key}", key=key)


def from_exception(op: str, exc: DomainError | ValidationError) -> ServiceResult:
    """Map a domain or validation error to a failed ServiceResult."""
    if isinstance(exc, ValidationError):
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in exc.errors(include_url=False)
        ]
        message = errors[0]["msg"] if errors else "Validation failed"
        return failure(op, VALIDATION_FAILED, message, errors=errors)
    if isinstance(exc, TransitionError) and exc.current is not None:
        return failure(
            op,
            exc.code,
            str(exc),
            current=str(exc.current),
            requested=str(exc.requested),
        )
    return failure(op, exc.code, str(exc))


def request_summary(request: VerificationRequest) -> dict[str, Any]:
    """Flat, display-oriented view of a request."""
    return {
        "id": request.id,
        "title": request.title,
        "client_id": request.client_id,
        "category": str(request.kind.category),
        "urgency": str(request.kind.urgency),
        "status": str(request.state),
        "price": request.price.format(),
        "assigned_agent_id": request.assigned_agent_id,
        "payment_status": str(request.payment_status),
        "created_at": request.created_at.isoformat(),
        "estimated_completion_date": (
            request.estimated_completion_date.isoformat()
            if request.estimated_completion_date
            else None
        ),
    }
