from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PaymentStatus, VisitStatus


@dataclass(frozen=True)
class Visit:
    """Domain entity: a table session grouping one or more guests.

    Owned by the reservation/table subsystem; billing only reads it, recounts
    guests, updates the payment status and completes it.
    """

    visit_id: int
    table_id: Optional[int]
    status: VisitStatus
    total_guests: int
    check_in_at: Optional[datetime]
    check_out_at: Optional[datetime] = None
    total_amount: Optional[int] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING

    @property
    def is_active(self) -> bool:
        return self.status == VisitStatus.ACTIVE
