from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..billing.service import BillService
from ..common.datetime_utils import now_local
from ..common.money import ceil_div
from ..common.validators import require_ids, require_non_negative
from ..core.enums import BillingType, PaymentMethod, PaymentStatus, SplitType, VisitStatus
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..guests.model import VisitGuest
from ..guests.repository import GuestRepository
from ..guests.service import GuestRosterService
from ..visits.model import Visit
from ..visits.repository import VisitRepository
from .model import (
    BillingSplit,
    GroupBill,
    NewBillingSplit,
    PartialCheckoutResult,
    PaymentInput,
    SplitRequest,
)
from .repository import BillingSplitRepository

logger = logging.getLogger(__name__)


def classify_billing_type(guest_ids: Iterable[int], splits: Sequence[BillingSplit]) -> BillingType:
    """Derive how a visit is being settled from its live (non-cancelled) splits."""
    live = [s for s in splits if s.payment_status != PaymentStatus.CANCELLED]
    if not live:
        return BillingType.GROUP
    if any(s.split_type == SplitType.SHARED for s in live):
        return BillingType.SPLIT

    individual = Counter(s.visit_guest_id for s in live if s.split_type == SplitType.INDIVIDUAL)
    guest_ids = list(guest_ids)
    if len(live) == len(guest_ids) and guest_ids and all(individual.get(g) == 1 for g in guest_ids):
        return BillingType.INDIVIDUAL
    return BillingType.SPLIT


class SettlementService:
    """Use case: group bills, split billing, payments, partial checkout and visit completion.

    Guest lifecycle: unbilled -> billed (cache computed) -> paid (split completed) -> checked out.
    A visit completes once every guest is checked out.

    Batch operations are best effort per guest: failures are logged and left out
    of the result, and ``ConsistencyValidator`` surfaces any drift they leave.
    """

    def __init__(
        self,
        visits: VisitRepository,
        guests: GuestRepository,
        splits: BillingSplitRepository,
        bills: BillService,
        roster: GuestRosterService,
    ):
        self._visits = visits
        self._guests = guests
        self._splits = splits
        self._bills = bills
        self._roster = roster

    def _require_visit(self, visit_id: int) -> Visit:
        visit = self._visits.get_by_id(int(visit_id))
        if not visit:
            raise NotFoundError(f"Visit {visit_id} not found")
        return visit

    def _require_guest(self, guest_id: int, *, visit_id: Optional[int] = None) -> VisitGuest:
        guest = self._guests.get_by_id(int(guest_id))
        if not guest:
            raise NotFoundError(f"Guest {guest_id} not found")
        if visit_id is not None and guest.visit_id != int(visit_id):
            raise ValidationError(f"Guest {guest_id} does not belong to visit {visit_id}")
        return guest

    def _require_split(self, split_id: int) -> BillingSplit:
        split = self._splits.get_by_id(int(split_id))
        if not split:
            raise NotFoundError(f"Billing split {split_id} not found")
        return split

    def generate_group_bill(self, visit_id: int) -> GroupBill:
        self._require_visit(visit_id)
        bills = self._bills.calculate_visit_bills(int(visit_id))
        billing_type = classify_billing_type(
            (b.guest_id for b in bills),
            self._splits.list_for_visit(int(visit_id)),
        )
        return GroupBill(
            visit_id=int(visit_id),
            total_amount=sum(b.total for b in bills),
            individual_bills=bills,
            billing_type=billing_type,
        )

    def list_visit_splits(self, visit_id: int) -> Sequence[BillingSplit]:
        self._require_visit(visit_id)
        return self._splits.list_for_visit(int(visit_id))

    def process_split_billing(self, visit_id: int, splits: Sequence[SplitRequest]) -> list[BillingSplit]:
        """Create one pending split per request.

        Not a transaction: entries that fail are skipped, so callers diff the
        returned splits against what they asked for and retry the rest.
        """
        self._require_visit(visit_id)

        created: list[BillingSplit] = []
        for req in splits:
            try:
                guest = self._require_guest(req.guest_id, visit_id=visit_id)
                split_id = self._splits.create(
                    NewBillingSplit(
                        visit_id=int(visit_id),
                        visit_guest_id=guest.guest_id,
                        split_type=req.split_type,
                        split_amount=require_non_negative(req.amount, "Split amount"),
                        payment_method=req.method,
                        notes=req.notes,
                    )
                )
                created.append(self._require_split(split_id))
            except DomainError as e:
                logger.warning("Split for guest %s in visit %s skipped: %s", req.guest_id, visit_id, e)

        return created

    def confirm_split(self, split_id: int, paid_at: Optional[datetime] = None) -> BillingSplit:
        split = self._require_split(split_id)
        if split.is_terminal or not self._splits.transition(
            split_id=split.split_id, status=PaymentStatus.COMPLETED, paid_at=paid_at or now_local()
        ):
            raise ConflictError(f"Billing split {split_id} is {split.payment_status.value}, not pending")

        self._refresh_visit_payment_status(split.visit_id)
        return self._require_split(split.split_id)

    def cancel_split(self, split_id: int) -> BillingSplit:
        split = self._require_split(split_id)
        if split.is_terminal or not self._splits.transition(split_id=split.split_id, status=PaymentStatus.CANCELLED):
            raise ConflictError(f"Billing split {split_id} is {split.payment_status.value}, not pending")
        return self._require_split(split.split_id)

    def process_individual_payment(self, guest_id: int, payment: PaymentInput) -> BillingSplit:
        """Record a completed payment for a guest (one split per guest and visit).

        Checks the guest out when ``payment.amount`` covers the cached
        ``individual_total``; compute the bill first so the cache is current.
        """
        guest = self._require_guest(guest_id)
        amount = require_non_negative(payment.amount, "Payment amount")
        paid_at = now_local()

        existing = next(
            (
                s
                for s in self._splits.list_for_guest(guest.guest_id)
                if s.visit_id == guest.visit_id and s.payment_status != PaymentStatus.CANCELLED
            ),
            None,
        )
        if existing:
            self._splits.record_payment(
                split_id=existing.split_id,
                split_amount=amount,
                payment_method=payment.method,
                paid_at=paid_at,
                notes=payment.notes,
            )
            split_id = existing.split_id
        else:
            split_id = self._splits.create(
                NewBillingSplit(
                    visit_id=guest.visit_id,
                    visit_guest_id=guest.guest_id,
                    split_type=SplitType.INDIVIDUAL,
                    split_amount=amount,
                    payment_method=payment.method,
                    payment_status=PaymentStatus.COMPLETED,
                    paid_at=paid_at,
                    notes=payment.notes,
                )
            )
        logger.info("Guest %s paid %s by %s", guest.guest_id, amount, payment.method.value)

        if amount >= guest.individual_total:
            self._roster.check_out_guest(guest.guest_id, at=paid_at)

        self._refresh_visit_payment_status(guest.visit_id)
        return self._require_split(split_id)

    def process_partial_checkout(
        self,
        visit_id: int,
        guest_ids: Sequence[int],
        method: PaymentMethod,
    ) -> PartialCheckoutResult:
        """Bill and pay each listed guest in full, then complete the visit if nobody is left."""
        visit = self._require_visit(visit_id)
        ids = require_ids(guest_ids, "Guest ids")

        payments: list[BillingSplit] = []
        failed: dict[int, str] = {}
        for guest_id in ids:
            try:
                self._require_guest(guest_id, visit_id=visit.visit_id)
                bill = self._bills.calculate_individual_bill(guest_id)
                payments.append(self.process_individual_payment(guest_id, PaymentInput(method=method, amount=bill.total)))
            except DomainError as e:
                logger.warning("Checkout of guest %s in visit %s failed: %s", guest_id, visit_id, e)
                failed[guest_id] = str(e)

        return PartialCheckoutResult(
            visit_id=visit.visit_id,
            payments=payments,
            failed=failed,
            visit_completed=self._complete_if_settled(visit),
        )

    def split_bill_evenly(
        self,
        visit_id: int,
        guest_ids: Sequence[int],
        method: Optional[PaymentMethod] = None,
    ) -> list[BillingSplit]:
        """Every guest is charged ``ceil(total / n)``.

        The venue keeps the rounding surplus: the splits add up to as much as
        ``n - 1`` minor units over the group total.
        """
        ids = require_ids(guest_ids, "Guest ids")
        group = self.generate_group_bill(visit_id)
        amount_per_guest = ceil_div(group.total_amount, len(ids))

        return self.process_split_billing(
            visit_id,
            [SplitRequest(guest_id=g, amount=amount_per_guest, method=method, split_type=SplitType.SHARED) for g in ids],
        )

    def _complete_if_settled(self, visit: Visit) -> bool:
        if not visit.is_active:
            return visit.status == VisitStatus.COMPLETED

        guests = self._guests.list_for_visit(visit.visit_id)
        if not guests or any(not g.is_checked_out for g in guests):
            return False

        total_amount = sum(g.individual_total for g in guests)
        completed = self._visits.complete(visit_id=visit.visit_id, check_out_at=now_local(), total_amount=total_amount)
        if completed:
            logger.info("Visit %s completed (total %s)", visit.visit_id, total_amount)
        return completed

    def _refresh_visit_payment_status(self, visit_id: int) -> None:
        guests = self._guests.list_for_visit(visit_id)
        if not guests:
            return

        paid = {s.visit_guest_id for s in self._splits.list_for_visit(visit_id) if s.payment_status == PaymentStatus.COMPLETED}
        if all(g.guest_id in paid for g in guests):
            self._visits.update_payment_status(visit_id, PaymentStatus.COMPLETED)
