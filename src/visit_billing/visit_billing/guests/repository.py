from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import GuestType
from .model import VisitGuest


class GuestRepository(Protocol):
    """Repository interface for VisitGuest.

    Note (DIP): services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, guest_id: int) -> Optional[VisitGuest]:
        raise NotImplementedError

    def list_for_visit(self, visit_id: int) -> Sequence[VisitGuest]:
        """Guests of a visit, main guest first, then by seat position."""

        raise NotImplementedError

    def count_for_visit(self, visit_id: int) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        visit_id: int,
        customer_id: Optional[int],
        guest_type: GuestType,
        seat_position: Optional[int],
        is_primary_payer: bool,
        check_in_time: datetime,
    ) -> int:
        """Insert a guest; a new primary payer takes the flag from the others in the same transaction."""

        raise NotImplementedError

    def set_primary_payer(self, *, visit_id: int, guest_id: int) -> bool:
        """Clear the flag on every guest of the visit and set it on one, atomically."""

        raise NotImplementedError

    def move_to_visit(self, *, guest_id: int, visit_id: int, is_primary_payer: bool) -> bool:
        raise NotImplementedError

    def set_check_out(self, *, guest_id: int, check_out_time: datetime) -> bool:
        """Stamp check-out only while it is still empty."""

        raise NotImplementedError

    def update_info(self, *, guest_id: int, guest_type: GuestType, seat_position: Optional[int]) -> bool:
        raise NotImplementedError

    def update_billing_cache(
        self,
        *,
        guest_id: int,
        subtotal: int,
        service_charge: int,
        tax_amount: int,
        total: int,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, guest_id: int) -> bool:
        raise NotImplementedError
