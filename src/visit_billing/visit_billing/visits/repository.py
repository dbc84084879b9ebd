from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import PaymentStatus
from .model import Visit


class VisitRepository(Protocol):
    def get_by_id(self, visit_id: int) -> Optional[Visit]:
        raise NotImplementedError

    def update_guest_count(self, visit_id: int, total_guests: int) -> bool:
        raise NotImplementedError

    def update_payment_status(self, visit_id: int, payment_status: PaymentStatus) -> bool:
        raise NotImplementedError

    def complete(self, *, visit_id: int, check_out_at: datetime, total_amount: int) -> bool:
        """Mark the visit completed and paid, stamping its authoritative total."""

        raise NotImplementedError
