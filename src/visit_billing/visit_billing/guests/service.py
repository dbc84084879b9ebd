from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import GuestType, PaymentStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..orders.repository import GuestOrderRepository
from ..settlement.repository import BillingSplitRepository
from ..visits.model import Visit
from ..visits.repository import VisitRepository
from .model import VisitGuest
from .repository import GuestRepository

logger = logging.getLogger(__name__)


class GuestRosterService:
    """Use case: manage who sits in a visit (roster fields only, never the billing cache)."""

    def __init__(
        self,
        guests: GuestRepository,
        visits: VisitRepository,
        guest_orders: GuestOrderRepository,
        splits: BillingSplitRepository,
    ):
        self._guests = guests
        self._visits = visits
        self._guest_orders = guest_orders
        self._splits = splits

    def _require_visit(self, visit_id: int) -> Visit:
        visit = self._visits.get_by_id(int(visit_id))
        if not visit:
            raise NotFoundError(f"Visit {visit_id} not found")
        return visit

    def _require_active_visit(self, visit_id: int) -> Visit:
        visit = self._require_visit(visit_id)
        if not visit.is_active:
            raise ConflictError(f"Visit {visit_id} is {visit.status.value}")
        return visit

    def get_guest(self, guest_id: int) -> VisitGuest:
        guest = self._guests.get_by_id(int(guest_id))
        if not guest:
            raise NotFoundError(f"Guest {guest_id} not found")
        return guest

    def list_guests(self, visit_id: int) -> Sequence[VisitGuest]:
        self._require_visit(visit_id)
        return self._guests.list_for_visit(int(visit_id))

    def add_guest(
        self,
        visit_id: int,
        customer_id: Optional[int],
        guest_type: GuestType = GuestType.COMPANION,
        *,
        seat_position: Optional[int] = None,
        is_primary_payer: bool = False,
        check_in_time: Optional[datetime] = None,
    ) -> VisitGuest:
        self._require_active_visit(visit_id)
        if seat_position is not None and int(seat_position) < 0:
            raise ValidationError("Seat position must not be negative")

        guest_id = self._guests.create(
            visit_id=int(visit_id),
            customer_id=customer_id,
            guest_type=guest_type,
            seat_position=seat_position,
            is_primary_payer=bool(is_primary_payer),
            check_in_time=check_in_time or now_local(),
        )
        self._recount(int(visit_id))
        logger.info("Guest %s joined visit %s as %s", guest_id, visit_id, guest_type.value)
        return self.get_guest(guest_id)

    def update_guest_info(
        self,
        guest_id: int,
        *,
        guest_type: Optional[GuestType] = None,
        seat_position: Optional[int] = None,
    ) -> VisitGuest:
        guest = self.get_guest(guest_id)
        if seat_position is not None and int(seat_position) < 0:
            raise ValidationError("Seat position must not be negative")

        self._guests.update_info(
            guest_id=guest.guest_id,
            guest_type=guest_type or guest.guest_type,
            seat_position=seat_position if seat_position is not None else guest.seat_position,
        )
        return self.get_guest(guest_id)

    def remove_guest(self, guest_id: int, *, cascade: bool = False) -> None:
        guest = self.get_guest(guest_id)

        open_splits = [s for s in self._splits.list_for_guest(guest.guest_id) if s.payment_status != PaymentStatus.CANCELLED]
        if open_splits:
            raise ConflictError(f"Guest {guest_id} has {len(open_splits)} billing split(s); cancel them first")

        order_count = self._guest_orders.count_for_guest(guest.guest_id)
        if order_count and not cascade:
            raise ConflictError(f"Guest {guest_id} has {order_count} attributed order(s); transfer or remove them first")
        if order_count:
            removed = self._guest_orders.delete_for_guest(guest.guest_id)
            logger.info("Removed %s attribution(s) of guest %s", removed, guest_id)

        self._guests.delete_by_id(guest.guest_id)
        self._recount(guest.visit_id)

    def transfer_guest(self, guest_id: int, new_visit_id: int) -> VisitGuest:
        guest = self.get_guest(guest_id)
        if guest.visit_id == int(new_visit_id):
            return guest
        self._require_active_visit(new_visit_id)

        keep_primary = guest.is_primary_payer and not any(
            g.is_primary_payer for g in self._guests.list_for_visit(int(new_visit_id))
        )
        self._guests.move_to_visit(guest_id=guest.guest_id, visit_id=int(new_visit_id), is_primary_payer=keep_primary)

        self._recount(guest.visit_id)
        self._recount(int(new_visit_id))
        logger.info("Guest %s moved from visit %s to %s", guest_id, guest.visit_id, new_visit_id)
        return self.get_guest(guest_id)

    def check_out_guest(self, guest_id: int, at: Optional[datetime] = None) -> VisitGuest:
        guest = self.get_guest(guest_id)
        if guest.is_checked_out:
            return guest

        self._guests.set_check_out(guest_id=guest.guest_id, check_out_time=at or now_local())
        return self.get_guest(guest_id)

    def set_primary_payer(self, visit_id: int, guest_id: int) -> VisitGuest:
        guest = self.get_guest(guest_id)
        if guest.visit_id != int(visit_id):
            raise ValidationError(f"Guest {guest_id} does not belong to visit {visit_id}")

        if not self._guests.set_primary_payer(visit_id=int(visit_id), guest_id=guest.guest_id):
            raise ConflictError(f"Could not set guest {guest_id} as primary payer")
        return self.get_guest(guest_id)

    def _recount(self, visit_id: int) -> None:
        self._visits.update_guest_count(visit_id, self._guests.count_for_visit(visit_id))
