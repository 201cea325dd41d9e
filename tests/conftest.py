"""Shared pytest fixtures and test helpers for verifyhub tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from verifyhub.config.settings import VerifySettings
from verifyhub.domain.geo import GeoPoint
from verifyhub.domain.kinds import Urgency, VerificationCategory, VerificationKind
from verifyhub.domain.request import VerificationRequest
from verifyhub.infrastructure.database.engine import init_database
from verifyhub.infrastructure.store import Store

# Wednesday, mid-afternoon: the STANDARD time slot.
FIXED_NOW = datetime(2026, 3, 4, 14, 30, tzinfo=UTC)


class FrozenClock:
    """Callable clock pinned to a moment that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> VerifySettings:
    monkeypatch.delenv("VERIFYHUB_CONFIG", raising=False)
    return VerifySettings.from_cli(data_dir=tmp_path)


@pytest.fixture
def store(settings: VerifySettings, clock: FrozenClock) -> Iterator[Store]:
    """Store on a temp directory with the frozen clock."""
    s = Store(settings, clock=clock)
    try:
        yield s
    finally:
        s.dispose()


@pytest.fixture
def _isolated_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on command test
    classes.
    """
    monkeypatch.delenv("VERIFYHUB_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------

LAGOS_ADDRESS = "12 Marina Road, Lagos Island"


def make_location(**overrides: Any) -> GeoPoint:
    fields: dict[str, Any] = {
        "address": LAGOS_ADDRESS,
        "latitude": 6.4541,
        "longitude": 3.3947,
    }
    fields.update(overrides)
    return GeoPoint(**fields)


def make_request(
    clock: FrozenClock,
    *,
    category: VerificationCategory = VerificationCategory.DOCUMENT_VERIFICATION,
    urgency: Urgency = Urgency.STANDARD,
    request_id: str = "3f2a9c4e-7d1b-4a6f-9e2c-5b8d1a0f7c63",
) -> VerificationRequest:
    """A DRAFT request built through the aggregate factory."""
    return VerificationRequest.create(
        client_id="client-1",
        title="Verify title deed",
        description="Confirm the deed matches the land registry entry",
        kind=VerificationKind(category=category, urgency=urgency),
        location=make_location(),
        id_factory=lambda: request_id,
        clock=clock,
    )


def create_request(store: Store, **kwargs: Any) -> dict[str, Any]:
    """Create a request via RequestService, asserting success."""
    from verifyhub.services.requests import RequestService

    fields: dict[str, Any] = {
        "client_id": "client-1",
        "title": "Verify title deed",
        "description": "Confirm the deed matches the land registry entry",
        "category": VerificationCategory.DOCUMENT_VERIFICATION,
        "address": LAGOS_ADDRESS,
        "latitude": 6.4541,
        "longitude": 3.3947,
    }
    fields.update(kwargs)
    result = RequestService(store).create(**fields)
    assert result.ok, result.error
    return result.data


def submitted_request(store: Store, **kwargs: Any) -> str:
    """Create and submit a request; return its id."""
    from verifyhub.services.requests import RequestService

    request_id = create_request(store, **kwargs)["id"]
    result = RequestService(store).submit(request_id)
    assert result.ok, result.error
    return request_id
