"""CheckService: consistency report over stored requests.

Two categories, following the linter pattern (report only, no repair):

- payment reconciliation: payment recorded as paid while the request
  still sits in DRAFT or PENDING_PAYMENT (the payment and the status
  change are separate writes, so a crash between them leaves this).
- overdue: non-final requests past their estimated completion date.
"""

from __future__ import annotations

from typing import Any

import structlog

from verifyhub.services.base import BaseService
from verifyhub.services.result import ServiceResult

logger = structlog.get_logger(__name__)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_PAYMENT = "payment_reconciliation"
CAT_OVERDUE = "overdue"

_SEVERITY_RANK = {SEVERITY_WARNING: 0, SEVERITY_ERROR: 1}


class CheckService(BaseService):
    """Reports requests that need operator attention."""

    def check(self, *, min_severity: str = SEVERITY_WARNING) -> ServiceResult:
        """Report issues at or above *min_severity* without modifying anything."""
        now = self._now()
        issues: list[dict[str, Any]] = []
        with self._store.read() as txn:
            for request in txn.requests.list_unreconciled():
                issues.append(
                    {
                        "category": CAT_PAYMENT,
                        "severity": SEVERITY_ERROR,
                        "request_id": request.id,
                        "message": (
                            f"Payment {request.payment_id or '?'} is marked paid but status "
                            f"is still {request.state}"
                        ),
                        "fix_action": f"verifyhub request transition {request.id} SUBMITTED",
                    }
                )
            for request in txn.requests.list_overdue(now):
                if request.status.is_final or not request.is_overdue():
                    continue
                assert request.estimated_completion_date is not None
                late = now - request.estimated_completion_date
                issues.append(
                    {
                        "category": CAT_OVERDUE,
                        "severity": SEVERITY_WARNING,
                        "request_id": request.id,
                        "message": (
                            f"{request.state} request is {int(late.total_seconds() // 3600)}h "
                            "past its estimated completion"
                        ),
                        "fix_action": None,
                    }
                )

        threshold = _SEVERITY_RANK.get(min_severity, 0)
        issues = [i for i in issues if _SEVERITY_RANK[i["severity"]] >= threshold]
        if issues:
            logger.info("check.issues_found", count=len(issues))
        return ServiceResult(ok=True, op="check", data={"issues": issues, "count": len(issues)})
