from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.exceptions import NotFoundError
from ..settlement.model import ConsistencyReport, GroupBill
from ..settlement.service import SettlementService
from ..settlement.validator import ConsistencyValidator

logger = logging.getLogger(__name__)

WATCHED_TABLES = frozenset({"order_items", "guest_orders", "visit_guests", "guest_billing_splits"})


@dataclass(frozen=True)
class RowChange:
    """A "row changed" event as delivered by the realtime transport."""

    table: str
    visit_id: Optional[int]
    event: str = "UPDATE"
    record: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class BillingRefresh:
    visit_id: int
    group_bill: GroupBill
    report: ConsistencyReport


class BillingRefreshHandler:
    """Re-run the billing read paths of a visit whenever one of its rows changes."""

    def __init__(self, settlement: SettlementService, validator: ConsistencyValidator):
        self._settlement = settlement
        self._validator = validator

    def handle(self, change: RowChange) -> Optional[BillingRefresh]:
        if change.table not in WATCHED_TABLES or change.visit_id is None:
            return None

        try:
            group_bill = self._settlement.generate_group_bill(change.visit_id)
        except NotFoundError:
            logger.info("Ignoring %s on %s: visit %s is gone", change.event, change.table, change.visit_id)
            return None

        report = self._validator.validate_billing_consistency(change.visit_id)
        if not report.is_valid:
            logger.debug("Visit %s has %s billing issue(s)", change.visit_id, len(report.errors))
        return BillingRefresh(visit_id=change.visit_id, group_bill=group_bill, report=report)
