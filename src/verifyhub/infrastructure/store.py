"""Store: the single dependency injected into every service.

Owns the database engine and hands out repositories bound to one
connection inside :meth:`Store.transaction`. Writes commit when the
block exits normally and roll back when it raises.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING

from verifyhub.domain.clock import Clock, utc_now
from verifyhub.infrastructure.database.engine import init_database
from verifyhub.infrastructure.repositories.discounts import DiscountRepository
from verifyhub.infrastructure.repositories.location_pricing import LocationPricingRepository
from verifyhub.infrastructure.repositories.requests import RequestRepository

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from verifyhub.config.settings import VerifySettings

logger = logging.getLogger(__name__)


@dataclass
class StoreTransaction:
    """Repositories sharing the connection of one open transaction."""

    conn: Connection
    clock: Clock = field(default=utc_now, repr=False)

    @cached_property
    def requests(self) -> RequestRepository:
        return RequestRepository(self.conn, clock=self.clock)

    @cached_property
    def locations(self) -> LocationPricingRepository:
        return LocationPricingRepository(self.conn)

    @cached_property
    def discounts(self) -> DiscountRepository:
        return DiscountRepository(self.conn)


class Store:
    """Database access for services.

    Constructed once at CLI startup from :class:`VerifySettings` and
    shared through the click context. *clock* is handed to every
    rehydrated aggregate.
    """

    def __init__(self, settings: VerifySettings, *, clock: Clock = utc_now) -> None:
        self._settings = settings
        self._clock = clock
        self._engine: Engine = init_database(settings.data_dir, settings.storage.db_filename)

    @property
    def root(self) -> Path:
        return self._settings.data_dir

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def settings(self) -> VerifySettings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Open a transaction; commit on success, roll back on error."""
        with self._engine.begin() as conn:
            yield StoreTransaction(conn=conn, clock=self._clock)

    @contextmanager
    def read(self) -> Iterator[StoreTransaction]:
        """Read-only access; nothing is committed."""
        with self._engine.connect() as conn:
            yield StoreTransaction(conn=conn, clock=self._clock)

    def dispose(self) -> None:
        logger.debug("Disposing engine for %s", self.root)
        self._engine.dispose()
