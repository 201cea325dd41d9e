"""Domain error taxonomy.

Construction of an invalid value object raises ``pydantic.ValidationError``
from the model validators. Everything else raised by the domain derives
from :class:`DomainError`:

- :class:`InvalidValueError`: a mutator argument is unusable (blank id,
  currency mismatch, negative result).
- :class:`TransitionError`: a lifecycle guard failed.
- :class:`PricingConfigError`: the pricing config lacks a required key.

INVARIANT: a raised error leaves the aggregate unchanged.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain rule violations."""

    code = "DOMAIN_ERROR"


class InvalidValueError(DomainError, ValueError):
    """An argument violates a domain rule."""

    code = "VALIDATION_FAILED"


class TransitionError(DomainError):
    """A lifecycle guard rejected the requested change.

    ``current`` and ``requested`` are set for status-edge violations and
    left as None for non-status guards (attachments, scheduling).
    """

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str,
        *,
        current: str | None = None,
        requested: str | None = None,
    ) -> None:
        super().__init__(message)
        self.current = current
        self.requested = requested

    @classmethod
    def illegal_edge(cls, current: str, requested: str) -> TransitionError:
        msg = f"Invalid status transition: {current} -> {requested}"
        return cls(msg, current=current, requested=requested)


class PricingConfigError(DomainError):
    """The pricing configuration is missing a key needed for a calculation."""

    code = "PRICING_CONFIG"
