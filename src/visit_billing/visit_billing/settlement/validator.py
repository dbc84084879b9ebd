from __future__ import annotations

from collections import defaultdict

from ..billing.service import BillService
from ..core.constants import CONSISTENCY_TOLERANCE, SHARE_PERCENT_TOLERANCE
from ..core.enums import PaymentStatus
from ..core.exceptions import NotFoundError
from ..guests.repository import GuestRepository
from ..orders.model import GuestOrder, OrderItem
from ..orders.repository import GuestOrderRepository, OrderItemRepository
from ..visits.repository import VisitRepository
from .model import ConsistencyReport
from .repository import BillingSplitRepository


class ConsistencyValidator:
    """Reconcile a visit's bills, attributions and payments.

    Read only: bills are recomputed without refreshing the guest cache, and
    every problem found is returned as a message rather than raised. Checks are
    independent; one failing never hides another.
    """

    def __init__(
        self,
        visits: VisitRepository,
        guests: GuestRepository,
        order_items: OrderItemRepository,
        guest_orders: GuestOrderRepository,
        splits: BillingSplitRepository,
        bills: BillService,
        *,
        tolerance: int = CONSISTENCY_TOLERANCE,
    ):
        self._visits = visits
        self._guests = guests
        self._order_items = order_items
        self._guest_orders = guest_orders
        self._splits = splits
        self._bills = bills
        self._tolerance = int(tolerance)

    def validate_billing_consistency(self, visit_id: int) -> ConsistencyReport:
        visit = self._visits.get_by_id(int(visit_id))
        if not visit:
            raise NotFoundError(f"Visit {visit_id} not found")

        errors: list[str] = []
        guests = self._guests.list_for_visit(visit.visit_id)
        totals = {g.guest_id: self._bills.preview_individual_bill(g.guest_id).total for g in guests}

        sum_of_totals = sum(totals.values())
        if visit.total_amount is not None and abs(sum_of_totals - visit.total_amount) > self._tolerance:
            errors.append(f"Visit total mismatch: visit {visit.total_amount}, sum of guests {sum_of_totals}")

        paid: dict[int, int] = defaultdict(int)
        has_payment: set[int] = set()
        for split in self._splits.list_for_visit(visit.visit_id):
            if split.payment_status == PaymentStatus.COMPLETED:
                paid[split.visit_guest_id] += split.split_amount
                has_payment.add(split.visit_guest_id)

        for guest_id, total in totals.items():
            if guest_id in has_payment and abs(paid[guest_id] - total) > self._tolerance:
                errors.append(f"Guest {guest_id} billing mismatch: total {total}, paid {paid[guest_id]}")

        for guest_id, total in totals.items():
            unpaid = total - paid[guest_id]
            if unpaid > self._tolerance:
                errors.append(f"Guest {guest_id} has an unpaid amount of {unpaid}")

        errors.extend(self._attribution_errors(visit.visit_id))
        return ConsistencyReport(visit_id=visit.visit_id, is_valid=not errors, errors=errors)

    def _attribution_errors(self, visit_id: int) -> list[str]:
        by_item: dict[int, list[GuestOrder]] = defaultdict(list)
        for guest_order in self._guest_orders.list_for_visit(visit_id):
            by_item[guest_order.order_item_id].append(guest_order)

        errors: list[str] = []
        for item in self._order_items.list_for_visit(visit_id):
            rows = by_item.get(item.order_item_id, [])
            if not rows:
                errors.append(f"Order item {item.order_item_id} is not attributed to any guest")
                continue
            errors.extend(self._item_errors(item, rows))
        return errors

    def _item_errors(self, item: OrderItem, rows: list[GuestOrder]) -> list[str]:
        errors: list[str] = []
        shared = [r for r in rows if r.is_shared_item]
        if shared:
            percentage = sum(r.shared_percentage or 0.0 for r in shared)
            if abs(percentage - 100) > SHARE_PERCENT_TOLERANCE:
                errors.append(f"Order item {item.order_item_id} shared percentages sum to {percentage:.2f}, not 100")

        # Per-share rounding may leave up to (shares - 1) minor units behind.
        allowed = max(len(rows) - 1, self._tolerance)
        attributed = sum(r.amount_for_guest for r in rows)
        if abs(item.total_price - attributed) > allowed:
            errors.append(
                f"Order item {item.order_item_id} attribution mismatch: price {item.total_price}, attributed {attributed}"
            )
        return errors
