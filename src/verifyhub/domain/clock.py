"""Clock and timestamp helpers shared by the domain layer.

The aggregate and the pricing engine never call ``datetime.now`` directly;
they receive a :data:`Clock` so tests can pin time.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_aware(moment: datetime) -> datetime:
    """Return *moment* unchanged if aware, otherwise tag it as UTC."""
    if moment.tzinfo is None or moment.tzinfo.utcoffset(moment) is None:
        return moment.replace(tzinfo=UTC)
    return moment
