"""ServiceResult and ServiceError, the contract every service returns.

The CLI (and any other front end) consumes this type; domain exceptions
never cross the service boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Error codes carried by ServiceError.code.
NOT_FOUND = "NOT_FOUND"
VALIDATION_FAILED = "VALIDATION_FAILED"
INVALID_TRANSITION = "INVALID_TRANSITION"
PRICING_CONFIG = "PRICING_CONFIG"
CONFLICT = "CONFLICT"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_request"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (counts, paging).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
