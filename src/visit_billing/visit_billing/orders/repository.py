from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import GuestOrder, GuestOrderDetail, NewGuestOrder, OrderItem


class OrderItemRepository(Protocol):
    """Order items are owned by the ordering subsystem; only attribution flags are written."""

    def get_by_id(self, order_item_id: int) -> Optional[OrderItem]:
        raise NotImplementedError

    def list_for_visit(self, visit_id: int) -> Sequence[OrderItem]:
        raise NotImplementedError

    def set_attribution_flags(self, *, order_item_id: int, is_shared_item: bool, target_guest_id: Optional[int]) -> bool:
        raise NotImplementedError


class GuestOrderRepository(Protocol):
    def get_by_id(self, guest_order_id: int) -> Optional[GuestOrder]:
        raise NotImplementedError

    def list_for_item(self, order_item_id: int) -> Sequence[GuestOrder]:
        raise NotImplementedError

    def list_for_guest(self, guest_id: int) -> Sequence[GuestOrder]:
        raise NotImplementedError

    def list_details_for_guest(self, guest_id: int) -> Sequence[GuestOrderDetail]:
        """Newest first."""

        raise NotImplementedError

    def list_for_visit(self, visit_id: int) -> Sequence[GuestOrder]:
        raise NotImplementedError

    def count_for_guest(self, guest_id: int) -> int:
        raise NotImplementedError

    def create(self, row: NewGuestOrder) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        guest_order_id: int,
        visit_guest_id: int,
        quantity_for_guest: float,
        amount_for_guest: int,
    ) -> bool:
        raise NotImplementedError

    def replace_for_item(
        self,
        *,
        order_item_id: int,
        rows: Sequence[NewGuestOrder],
        target_guest_id: Optional[int] = None,
    ) -> list[int]:
        """Swap every attribution of an item for ``rows`` in one transaction.

        Also sets the item flags: shared with no target when ``target_guest_id``
        is None, otherwise exclusive to that guest.
        """

        raise NotImplementedError

    def move_all(self, *, from_guest_id: int, to_guest_id: int, guest_order_ids: Optional[Sequence[int]] = None) -> int:
        raise NotImplementedError

    def delete_by_id(self, guest_order_id: int) -> bool:
        raise NotImplementedError

    def delete_for_guest(self, guest_id: int) -> int:
        raise NotImplementedError
