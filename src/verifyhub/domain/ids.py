"""ID generation.

Two ID strategies:
- Verification requests: random UUID4 strings.
- Location pricing records: ``lp_`` + 12 hex chars.

Generators are passed into the aggregate as factories so construction
stays deterministic under test.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable

IdFactory = Callable[[], str]


def new_request_id() -> str:
    """Generate a fresh verification-request ID."""
    return str(uuid.uuid4())


def new_location_pricing_id() -> str:
    """Generate a fresh location-pricing record ID."""
    return f"lp_{uuid.uuid4().hex[:12]}"
