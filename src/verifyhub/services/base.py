"""BaseService, the foundation for all verifyhub services.

Every service receives a :class:`Store` at construction time and owns
its transaction boundaries via ``self._store.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from verifyhub.config.settings import VerifySettings
    from verifyhub.infrastructure.store import Store


class BaseService:
    """Base for service-layer classes.

    Usage::

        class RequestService(BaseService):
            def submit(self, request_id: str) -> ServiceResult:
                with self._store.transaction() as txn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def _settings(self) -> VerifySettings:
        return self._store.settings

    def _now(self) -> datetime:
        return self._store.clock()
