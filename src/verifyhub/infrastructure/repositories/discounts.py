"""Persistence for promotional discounts, keyed by upper-cased code."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from verifyhub.domain.pricing import Discount
from verifyhub.infrastructure.database.schema import discounts

if TYPE_CHECKING:
    from sqlalchemy import Connection

t = discounts


def normalize_code(code: str) -> str:
    return code.strip().upper()


class DiscountRepository:
    """Encapsulates SQL for the ``discounts`` table."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get(self, code: str) -> Discount | None:
        row = self._conn.execute(
            select(t.c.document, t.c.usage_count).where(t.c.code == normalize_code(code))
        ).first()
        if row is None:
            return None
        data = json.loads(row.document)
        data["usageCount"] = row.usage_count
        return Discount.from_json(data)

    def save(self, discount: Discount) -> Discount:
        """Insert or overwrite the discount stored under its code."""
        discount = discount.with_changes(code=normalize_code(discount.code))
        values = {
            "is_active": int(discount.is_active),
            "usage_count": discount.usage_count,
            "document": json.dumps(discount.to_json()),
        }
        exists = self._conn.execute(select(t.c.code).where(t.c.code == discount.code)).first()
        if exists is None:
            self._conn.execute(insert(t).values(code=discount.code, **values))
        else:
            self._conn.execute(update(t).where(t.c.code == discount.code).values(**values))
        return discount

    def find_all(self, *, active_only: bool = False) -> list[Discount]:
        stmt = select(t.c.code).order_by(t.c.code)
        if active_only:
            stmt = stmt.where(t.c.is_active == 1)
        codes = [row.code for row in self._conn.execute(stmt)]
        return [d for d in (self.get(c) for c in codes) if d is not None]

    def delete(self, code: str) -> bool:
        result = self._conn.execute(delete(t).where(t.c.code == normalize_code(code)))
        return result.rowcount > 0

    def record_usage(self, code: str) -> None:
        self._conn.execute(
            update(t)
            .where(t.c.code == normalize_code(code))
            .values(usage_count=t.c.usage_count + 1)
        )
