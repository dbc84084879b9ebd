from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Product:
    """Catalogue entry (read only here)."""

    product_id: int
    name: str
    category: Optional[str]
    price: int


@dataclass(frozen=True)
class OrderItem:
    """One purchased line of a visit, created by the ordering subsystem."""

    order_item_id: int
    visit_id: int
    product_id: int
    quantity: int
    unit_price: int
    total_price: int
    is_shared_item: bool = False
    target_guest_id: Optional[int] = None


@dataclass(frozen=True)
class GuestOrder:
    """Attribution edge between an order item and the guest who consumes it."""

    guest_order_id: int
    visit_guest_id: int
    order_item_id: int
    quantity_for_guest: float
    amount_for_guest: int
    is_shared_item: bool = False
    shared_percentage: Optional[float] = None


@dataclass(frozen=True)
class NewGuestOrder:
    visit_guest_id: int
    order_item_id: int
    quantity_for_guest: float
    amount_for_guest: int
    is_shared_item: bool = False
    shared_percentage: Optional[float] = None


@dataclass(frozen=True)
class GuestOrderDetail:
    """Read-model: attribution joined with its order item and product."""

    guest_order: GuestOrder
    order_item: OrderItem
    product: Optional[Product]


@dataclass(frozen=True)
class GuestShare:
    guest_id: int
    percentage: float
