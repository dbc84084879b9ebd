from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..core.exceptions import NotFoundError
from ..guests.model import VisitGuest
from ..guests.repository import GuestRepository
from ..orders.repository import GuestOrderRepository
from .calculator.base import BillCalculator
from .calculator.standard_calculator import StandardBillCalculator
from .model import IndividualBill


class BillService:
    """Use case: turn a guest's attributed orders into an individual bill.

    ``calculate_*`` refreshes the ``individual_*`` cache on VisitGuest;
    attribution changes do not, so call it before reading the cache.
    """

    def __init__(
        self,
        guests: GuestRepository,
        guest_orders: GuestOrderRepository,
        *,
        calculator: Optional[BillCalculator] = None,
    ):
        self._guests = guests
        self._guest_orders = guest_orders
        self._calculator = calculator or StandardBillCalculator()

    def _require_guest(self, guest_id: int) -> VisitGuest:
        guest = self._guests.get_by_id(int(guest_id))
        if not guest:
            raise NotFoundError(f"Guest {guest_id} not found")
        return guest

    def _build(self, guest: VisitGuest) -> IndividualBill:
        items = list(self._guest_orders.list_details_for_guest(guest.guest_id))
        subtotal = sum(d.guest_order.amount_for_guest for d in items)
        bill = self._calculator.calculate(subtotal)
        return IndividualBill(
            guest_id=guest.guest_id,
            guest=guest,
            subtotal=bill.subtotal,
            service_charge=bill.service_charge,
            tax_amount=bill.tax_amount,
            total=bill.total,
            items=items,
        )

    def preview_individual_bill(self, guest_id: int) -> IndividualBill:
        """Same numbers as ``calculate_individual_bill`` without touching the cache."""
        return self._build(self._require_guest(guest_id))

    def calculate_individual_bill(self, guest_id: int) -> IndividualBill:
        bill = self._build(self._require_guest(guest_id))
        self._guests.update_billing_cache(
            guest_id=bill.guest_id,
            subtotal=bill.subtotal,
            service_charge=bill.service_charge,
            tax_amount=bill.tax_amount,
            total=bill.total,
        )
        guest = replace(
            bill.guest,
            individual_subtotal=bill.subtotal,
            individual_service_charge=bill.service_charge,
            individual_tax_amount=bill.tax_amount,
            individual_total=bill.total,
        )
        return replace(bill, guest=guest)

    def calculate_visit_bills(self, visit_id: int) -> list[IndividualBill]:
        return [self.calculate_individual_bill(g.guest_id) for g in self._guests.list_for_visit(int(visit_id))]
