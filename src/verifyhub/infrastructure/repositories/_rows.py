"""Column codecs shared by the repositories."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal


def iso_utc(moment: datetime | None) -> str | None:
    """Aware datetime as a UTC ISO-8601 string (naive input is taken as UTC)."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat()


def parse_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def dec_str(value: Decimal) -> str:
    return format(value, "f")
