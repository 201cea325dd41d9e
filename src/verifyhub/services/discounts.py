"""DiscountService: manage the promotional codes quotes can apply."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import structlog
from pydantic import ValidationError

from verifyhub.domain.errors import DomainError
from verifyhub.domain.pricing import Discount, DiscountType
from verifyhub.services._helpers import failure, from_exception, not_found
from verifyhub.services.base import BaseService
from verifyhub.services.result import CONFLICT, ServiceResult

logger = structlog.get_logger(__name__)


class DiscountService(BaseService):
    """Create, list, deactivate, and delete discount codes."""

    def create(
        self,
        code: str,
        discount_type: DiscountType | str,
        value: Decimal | float,
        *,
        description: str = "",
        valid_from: datetime | None = None,
        valid_until: datetime | None = None,
        usage_limit: int | None = None,
        min_amount: Decimal | float | None = None,
    ) -> ServiceResult:
        op = "create_discount"
        try:
            discount = Discount(
                code=code.strip().upper(),
                discount_type=discount_type,
                value=value,
                description=description,
                valid_from=valid_from,
                valid_until=valid_until,
                usage_limit=usage_limit,
                min_amount=min_amount,
            )
            with self._store.transaction() as txn:
                if txn.discounts.get(discount.code) is not None:
                    return failure(op, CONFLICT, f"Discount code already exists: {discount.code}")
                txn.discounts.save(discount)
        except (DomainError, ValidationError) as exc:
            return from_exception(op, exc)

        logger.info("discount.created", code=discount.code, type=str(discount.discount_type))
        return ServiceResult(ok=True, op=op, data=discount.model_dump(mode="json"))

    def get(self, code: str) -> ServiceResult:
        op = "get_discount"
        with self._store.read() as txn:
            discount = txn.discounts.get(code)
        if discount is None:
            return not_found(op, "Discount", code)
        return ServiceResult(ok=True, op=op, data=discount.model_dump(mode="json"))

    def list_discounts(self, *, active_only: bool = False) -> ServiceResult:
        op = "list_discounts"
        with self._store.read() as txn:
            found = txn.discounts.find_all(active_only=active_only)
        items = [d.model_dump(mode="json") for d in found]
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})

    def deactivate(self, code: str) -> ServiceResult:
        op = "deactivate_discount"
        with self._store.transaction() as txn:
            discount = txn.discounts.get(code)
            if discount is None:
                return not_found(op, "Discount", code)
            saved = txn.discounts.save(discount.with_changes(is_active=False))
        return ServiceResult(ok=True, op=op, data=saved.model_dump(mode="json"))

    def delete(self, code: str) -> ServiceResult:
        op = "delete_discount"
        with self._store.transaction() as txn:
            if not txn.discounts.delete(code):
                return not_found(op, "Discount", code)
        return ServiceResult(ok=True, op=op, data={"code": code.strip().upper()})

    def record_usage(self, code: str) -> ServiceResult:
        """Count one redemption of *code* toward its usage limit."""
        op = "record_discount_usage"
        with self._store.transaction() as txn:
            if txn.discounts.get(code) is None:
                return not_found(op, "Discount", code)
            txn.discounts.record_usage(code)
            discount = txn.discounts.get(code)
        assert discount is not None
        return ServiceResult(
            ok=True,
            op=op,
            data={"code": discount.code, "usage_count": discount.usage_count},
        )
