from __future__ import annotations

from dataclasses import dataclass, field

from ..guests.model import VisitGuest
from ..orders.model import GuestOrderDetail


@dataclass(frozen=True)
class BillBreakdown:
    subtotal: int
    service_charge: int
    tax_amount: int
    total: int


@dataclass(frozen=True)
class IndividualBill:
    """Read-model: one guest's bill together with the orders it was built from."""

    guest_id: int
    guest: VisitGuest
    subtotal: int
    service_charge: int
    tax_amount: int
    total: int
    items: list[GuestOrderDetail] = field(default_factory=list)
