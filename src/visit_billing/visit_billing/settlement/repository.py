from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentMethod, PaymentStatus
from .model import BillingSplit, NewBillingSplit


class BillingSplitRepository(Protocol):
    def get_by_id(self, split_id: int) -> Optional[BillingSplit]:
        raise NotImplementedError

    def list_for_visit(self, visit_id: int) -> Sequence[BillingSplit]:
        """Newest first."""

        raise NotImplementedError

    def list_for_guest(self, guest_id: int) -> Sequence[BillingSplit]:
        raise NotImplementedError

    def create(self, split: NewBillingSplit) -> int:
        raise NotImplementedError

    def record_payment(
        self,
        *,
        split_id: int,
        split_amount: int,
        payment_method: PaymentMethod,
        paid_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        """Overwrite amount/method and mark the split completed (cancelled splits are untouched)."""

        raise NotImplementedError

    def transition(self, *, split_id: int, status: PaymentStatus, paid_at: Optional[datetime] = None) -> bool:
        """Move a pending split to ``status``; returns False when it was not pending."""

        raise NotImplementedError
