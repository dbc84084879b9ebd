from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import GuestType


@dataclass(frozen=True)
class VisitGuest:
    """Domain entity: one participant of a visit.

    The ``individual_*`` fields are a cache written by the bill calculator;
    they are only as fresh as the last calculation.
    """

    guest_id: int
    visit_id: int
    customer_id: Optional[int]
    guest_type: GuestType
    seat_position: Optional[int]
    is_primary_payer: bool
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime] = None
    individual_subtotal: int = 0
    individual_service_charge: int = 0
    individual_tax_amount: int = 0
    individual_total: int = 0

    @property
    def is_checked_out(self) -> bool:
        return self.check_out_time is not None
