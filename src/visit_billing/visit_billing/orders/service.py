from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.money import percentage_of
from ..common.validators import require_non_negative, require_positive
from ..core.constants import SHARE_PERCENT_TOLERANCE
from ..core.exceptions import ConflictError, InvalidSplitError, NotFoundError, ValidationError
from ..guests.model import VisitGuest
from ..guests.repository import GuestRepository
from .model import GuestOrder, GuestOrderDetail, GuestShare, NewGuestOrder, OrderItem
from .repository import GuestOrderRepository, OrderItemRepository

logger = logging.getLogger(__name__)


class OrderAttributionService:
    """Use case: record which guest(s) consume which order item.

    Every operation validates before it writes; a rejected call leaves no rows behind.
    """

    def __init__(
        self,
        order_items: OrderItemRepository,
        guest_orders: GuestOrderRepository,
        guests: GuestRepository,
    ):
        self._order_items = order_items
        self._guest_orders = guest_orders
        self._guests = guests

    def _require_item(self, order_item_id: int) -> OrderItem:
        item = self._order_items.get_by_id(int(order_item_id))
        if not item:
            raise NotFoundError(f"Order item {order_item_id} not found")
        return item

    def _require_guest(self, guest_id: int, *, visit_id: Optional[int] = None) -> VisitGuest:
        guest = self._guests.get_by_id(int(guest_id))
        if not guest:
            raise NotFoundError(f"Guest {guest_id} not found")
        if visit_id is not None and guest.visit_id != int(visit_id):
            raise ValidationError(f"Guest {guest_id} does not belong to visit {visit_id}")
        return guest

    def _require_guest_order(self, guest_order_id: int) -> GuestOrder:
        guest_order = self._guest_orders.get_by_id(int(guest_order_id))
        if not guest_order:
            raise NotFoundError(f"Guest order {guest_order_id} not found")
        return guest_order

    def attribute_exclusive(self, order_item_id: int, guest_id: int, quantity: float, amount: int) -> GuestOrder:
        item = self._require_item(order_item_id)
        guest = self._require_guest(guest_id, visit_id=item.visit_id)
        require_positive(quantity, "Quantity")
        amount = require_non_negative(amount, "Amount")

        existing = list(self._guest_orders.list_for_item(item.order_item_id))
        others = [go for go in existing if go.visit_guest_id != guest.guest_id]
        if others:
            raise ConflictError(f"Order item {order_item_id} is already attributed to another guest; reassign it instead")

        row = NewGuestOrder(
            visit_guest_id=guest.guest_id,
            order_item_id=item.order_item_id,
            quantity_for_guest=quantity,
            amount_for_guest=amount,
        )
        if len(existing) > 1 or any(go.is_shared_item for go in existing):
            # Leftover shares of this guest collapse into one exclusive row.
            (guest_order_id,) = self._guest_orders.replace_for_item(
                order_item_id=item.order_item_id, rows=[row], target_guest_id=guest.guest_id
            )
            return self._require_guest_order(guest_order_id)

        if existing:
            guest_order_id = existing[0].guest_order_id
            self._guest_orders.update(
                guest_order_id=guest_order_id,
                visit_guest_id=guest.guest_id,
                quantity_for_guest=quantity,
                amount_for_guest=amount,
            )
        else:
            guest_order_id = self._guest_orders.create(row)

        self._order_items.set_attribution_flags(
            order_item_id=item.order_item_id, is_shared_item=False, target_guest_id=guest.guest_id
        )
        return self._require_guest_order(guest_order_id)

    def attribute_shared(self, order_item_id: int, shares: Sequence[GuestShare]) -> list[GuestOrder]:
        """Split one item across guests by percentage.

        Each share is rounded on its own; the sum may miss ``total_price`` by up
        to ``len(shares) - 1`` minor units and that residual is left as is.
        """
        if not shares:
            raise InvalidSplitError("At least one guest share is required")
        for share in shares:
            if share.percentage is None or share.percentage <= 0:
                raise InvalidSplitError("Each share percentage must be greater than zero")

        total_percentage = sum(float(s.percentage) for s in shares)
        if abs(total_percentage - 100) > SHARE_PERCENT_TOLERANCE:
            raise InvalidSplitError(f"Guest share percentages must sum to 100 (got {total_percentage:.2f})")

        item = self._require_item(order_item_id)
        for share in shares:
            self._require_guest(share.guest_id, visit_id=item.visit_id)

        rows = [
            NewGuestOrder(
                visit_guest_id=int(share.guest_id),
                order_item_id=item.order_item_id,
                quantity_for_guest=round(item.quantity * float(share.percentage) / 100, 2),
                amount_for_guest=percentage_of(item.total_price, share.percentage),
                is_shared_item=True,
                shared_percentage=float(share.percentage),
            )
            for share in shares
        ]
        self._guest_orders.replace_for_item(order_item_id=item.order_item_id, rows=rows)

        residual = item.total_price - sum(r.amount_for_guest for r in rows)
        if residual:
            logger.debug("Shared item %s keeps a rounding residual of %s", item.order_item_id, residual)
        return list(self._guest_orders.list_for_item(item.order_item_id))

    def reassign(
        self,
        guest_order_id: int,
        new_guest_id: int,
        new_quantity: Optional[float] = None,
        new_amount: Optional[int] = None,
    ) -> GuestOrder:
        guest_order = self._require_guest_order(guest_order_id)
        item = self._require_item(guest_order.order_item_id)
        guest = self._require_guest(new_guest_id, visit_id=item.visit_id)

        quantity = guest_order.quantity_for_guest if new_quantity is None else require_positive(new_quantity, "Quantity")
        amount = guest_order.amount_for_guest if new_amount is None else require_non_negative(new_amount, "Amount")

        self._guest_orders.update(
            guest_order_id=guest_order.guest_order_id,
            visit_guest_id=guest.guest_id,
            quantity_for_guest=quantity,
            amount_for_guest=amount,
        )
        return self._require_guest_order(guest_order.guest_order_id)

    def transfer_all(self, from_guest_id: int, to_guest_id: int, order_ids: Optional[Sequence[int]] = None) -> int:
        """Move the attributions of a leaving guest (all of them, or only ``order_ids``)."""
        source = self._require_guest(from_guest_id)
        target = self._require_guest(to_guest_id, visit_id=source.visit_id)
        if source.guest_id == target.guest_id:
            return 0

        ids = [int(i) for i in order_ids] if order_ids else None
        if ids:
            owned = {go.guest_order_id for go in self._guest_orders.list_for_guest(source.guest_id)}
            missing = [i for i in ids if i not in owned]
            if missing:
                raise ValidationError(f"Guest orders {missing} do not belong to guest {from_guest_id}")

        moved = self._guest_orders.move_all(from_guest_id=source.guest_id, to_guest_id=target.guest_id, guest_order_ids=ids)
        logger.info("Transferred %s attribution(s) from guest %s to %s", moved, from_guest_id, to_guest_id)
        return moved

    def remove_attribution(self, guest_order_id: int) -> None:
        guest_order = self._require_guest_order(guest_order_id)
        self._guest_orders.delete_by_id(guest_order.guest_order_id)

    def get_by_guest(self, guest_id: int) -> Sequence[GuestOrderDetail]:
        self._require_guest(guest_id)
        return self._guest_orders.list_details_for_guest(int(guest_id))

    def get_visit_orders_by_guest(self, visit_id: int) -> dict[int, list[GuestOrderDetail]]:
        return {
            g.guest_id: list(self._guest_orders.list_details_for_guest(g.guest_id))
            for g in self._guests.list_for_visit(int(visit_id))
        }

    def calculate_guest_order_total(self, guest_id: int) -> int:
        self._require_guest(guest_id)
        return sum(go.amount_for_guest for go in self._guest_orders.list_for_guest(int(guest_id)))
