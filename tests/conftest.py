from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

import pytest

from src.visit_billing.visit_billing.container import Container, wire_container
from src.visit_billing.visit_billing.core.enums import GuestType, PaymentMethod, PaymentStatus, VisitStatus
from src.visit_billing.visit_billing.core.exceptions import StorageError
from src.visit_billing.visit_billing.guests.model import VisitGuest
from src.visit_billing.visit_billing.orders.model import (
    GuestOrder,
    GuestOrderDetail,
    NewGuestOrder,
    OrderItem,
    Product,
)
from src.visit_billing.visit_billing.settlement.model import BillingSplit, NewBillingSplit
from src.visit_billing.visit_billing.visits.model import Visit

_GUEST_TYPE_ORDER = {GuestType.MAIN: 0, GuestType.COMPANION: 1, GuestType.ADDITIONAL: 2}


class InMemoryVisits:
    def __init__(self):
        self.visits: dict[int, Visit] = {}
        self.complete_calls = 0

    def add(self, visit_id: int, *, status: VisitStatus = VisitStatus.ACTIVE) -> Visit:
        visit = Visit(
            visit_id=visit_id,
            table_id=visit_id,
            status=status,
            total_guests=0,
            check_in_at=datetime(2024, 5, 1, 19, 0),
        )
        self.visits[visit_id] = visit
        return visit

    def get_by_id(self, visit_id: int) -> Optional[Visit]:
        return self.visits.get(visit_id)

    def update_guest_count(self, visit_id: int, total_guests: int) -> bool:
        if visit_id not in self.visits:
            return False
        self.visits[visit_id] = replace(self.visits[visit_id], total_guests=total_guests)
        return True

    def update_payment_status(self, visit_id: int, payment_status: PaymentStatus) -> bool:
        if visit_id not in self.visits:
            return False
        self.visits[visit_id] = replace(self.visits[visit_id], payment_status=payment_status)
        return True

    def complete(self, *, visit_id: int, check_out_at: datetime, total_amount: int) -> bool:
        visit = self.visits.get(visit_id)
        if not visit or visit.status != VisitStatus.ACTIVE:
            return False
        self.complete_calls += 1
        self.visits[visit_id] = replace(
            visit,
            status=VisitStatus.COMPLETED,
            check_out_at=check_out_at,
            payment_status=PaymentStatus.COMPLETED,
            total_amount=total_amount,
        )
        return True


class InMemoryGuests:
    def __init__(self):
        self.guests: dict[int, VisitGuest] = {}
        self._id = 0
        self.fail_create = False

    def get_by_id(self, guest_id: int) -> Optional[VisitGuest]:
        return self.guests.get(guest_id)

    def list_for_visit(self, visit_id: int) -> Sequence[VisitGuest]:
        items = [g for g in self.guests.values() if g.visit_id == visit_id]
        items.sort(
            key=lambda g: (
                _GUEST_TYPE_ORDER[g.guest_type],
                g.seat_position is None,
                g.seat_position or 0,
                g.guest_id,
            )
        )
        return items

    def count_for_visit(self, visit_id: int) -> int:
        return len(self.list_for_visit(visit_id))

    def create(self, *, visit_id, customer_id, guest_type, seat_position, is_primary_payer, check_in_time) -> int:
        # One transaction: a failed insert leaves the other guests untouched.
        if self.fail_create:
            raise StorageError("insert into visit_guests failed")
        if is_primary_payer:
            self._clear_primary_payer(visit_id)
        self._id += 1
        self.guests[self._id] = VisitGuest(
            guest_id=self._id,
            visit_id=visit_id,
            customer_id=customer_id,
            guest_type=guest_type,
            seat_position=seat_position,
            is_primary_payer=is_primary_payer,
            check_in_time=check_in_time,
        )
        return self._id

    def _clear_primary_payer(self, visit_id: int) -> int:
        cleared = 0
        for g in self.list_for_visit(visit_id):
            if g.is_primary_payer:
                self.guests[g.guest_id] = replace(g, is_primary_payer=False)
                cleared += 1
        return cleared

    def set_primary_payer(self, *, visit_id: int, guest_id: int) -> bool:
        guest = self.guests.get(guest_id)
        if not guest or guest.visit_id != visit_id:
            return False
        self._clear_primary_payer(visit_id)
        self.guests[guest_id] = replace(self.guests[guest_id], is_primary_payer=True)
        return True

    def move_to_visit(self, *, guest_id: int, visit_id: int, is_primary_payer: bool) -> bool:
        self.guests[guest_id] = replace(self.guests[guest_id], visit_id=visit_id, is_primary_payer=is_primary_payer)
        return True

    def set_check_out(self, *, guest_id: int, check_out_time: datetime) -> bool:
        guest = self.guests[guest_id]
        if guest.check_out_time is not None:
            return False
        self.guests[guest_id] = replace(guest, check_out_time=check_out_time)
        return True

    def update_info(self, *, guest_id: int, guest_type: GuestType, seat_position: Optional[int]) -> bool:
        self.guests[guest_id] = replace(self.guests[guest_id], guest_type=guest_type, seat_position=seat_position)
        return True

    def update_billing_cache(self, *, guest_id, subtotal, service_charge, tax_amount, total) -> bool:
        self.guests[guest_id] = replace(
            self.guests[guest_id],
            individual_subtotal=subtotal,
            individual_service_charge=service_charge,
            individual_tax_amount=tax_amount,
            individual_total=total,
        )
        return True

    def delete_by_id(self, guest_id: int) -> bool:
        return self.guests.pop(guest_id, None) is not None


class InMemoryOrderItems:
    def __init__(self):
        self.items: dict[int, OrderItem] = {}
        self.products: dict[int, Product] = {}

    def add(self, order_item_id: int, visit_id: int, total_price: int, *, quantity: int = 1) -> OrderItem:
        product = Product(product_id=order_item_id, name=f"Product {order_item_id}", category="food", price=total_price)
        self.products[product.product_id] = product
        item = OrderItem(
            order_item_id=order_item_id,
            visit_id=visit_id,
            product_id=product.product_id,
            quantity=quantity,
            unit_price=total_price // quantity,
            total_price=total_price,
        )
        self.items[order_item_id] = item
        return item

    def get_by_id(self, order_item_id: int) -> Optional[OrderItem]:
        return self.items.get(order_item_id)

    def list_for_visit(self, visit_id: int) -> Sequence[OrderItem]:
        return sorted((i for i in self.items.values() if i.visit_id == visit_id), key=lambda i: i.order_item_id)

    def set_attribution_flags(self, *, order_item_id: int, is_shared_item: bool, target_guest_id: Optional[int]) -> bool:
        self.items[order_item_id] = replace(
            self.items[order_item_id], is_shared_item=is_shared_item, target_guest_id=target_guest_id
        )
        return True


class InMemoryGuestOrders:
    def __init__(self, order_items: InMemoryOrderItems):
        self._order_items = order_items
        self.rows: dict[int, GuestOrder] = {}
        self._id = 0

    def get_by_id(self, guest_order_id: int) -> Optional[GuestOrder]:
        return self.rows.get(guest_order_id)

    def list_for_item(self, order_item_id: int) -> Sequence[GuestOrder]:
        return sorted((r for r in self.rows.values() if r.order_item_id == order_item_id), key=lambda r: r.guest_order_id)

    def list_for_guest(self, guest_id: int) -> Sequence[GuestOrder]:
        return sorted((r for r in self.rows.values() if r.visit_guest_id == guest_id), key=lambda r: r.guest_order_id)

    def list_details_for_guest(self, guest_id: int) -> Sequence[GuestOrderDetail]:
        out = []
        for row in reversed(self.list_for_guest(guest_id)):
            item = self._order_items.items[row.order_item_id]
            out.append(GuestOrderDetail(guest_order=row, order_item=item, product=self._order_items.products.get(item.product_id)))
        return out

    def list_for_visit(self, visit_id: int) -> Sequence[GuestOrder]:
        return sorted(
            (r for r in self.rows.values() if self._order_items.items[r.order_item_id].visit_id == visit_id),
            key=lambda r: r.guest_order_id,
        )

    def count_for_guest(self, guest_id: int) -> int:
        return len(self.list_for_guest(guest_id))

    def create(self, row: NewGuestOrder) -> int:
        self._id += 1
        self.rows[self._id] = GuestOrder(
            guest_order_id=self._id,
            visit_guest_id=row.visit_guest_id,
            order_item_id=row.order_item_id,
            quantity_for_guest=row.quantity_for_guest,
            amount_for_guest=row.amount_for_guest,
            is_shared_item=row.is_shared_item,
            shared_percentage=row.shared_percentage,
        )
        return self._id

    def update(self, *, guest_order_id, visit_guest_id, quantity_for_guest, amount_for_guest) -> bool:
        self.rows[guest_order_id] = replace(
            self.rows[guest_order_id],
            visit_guest_id=visit_guest_id,
            quantity_for_guest=quantity_for_guest,
            amount_for_guest=amount_for_guest,
        )
        return True

    def replace_for_item(self, *, order_item_id: int, rows: Sequence[NewGuestOrder], target_guest_id=None) -> list[int]:
        for existing in self.list_for_item(order_item_id):
            del self.rows[existing.guest_order_id]
        ids = [self.create(r) for r in rows]
        self._order_items.set_attribution_flags(
            order_item_id=order_item_id, is_shared_item=target_guest_id is None, target_guest_id=target_guest_id
        )
        return ids

    def move_all(self, *, from_guest_id: int, to_guest_id: int, guest_order_ids=None) -> int:
        moved = 0
        for row in self.list_for_guest(from_guest_id):
            if guest_order_ids is None or row.guest_order_id in guest_order_ids:
                self.rows[row.guest_order_id] = replace(row, visit_guest_id=to_guest_id)
                moved += 1
        return moved

    def delete_by_id(self, guest_order_id: int) -> bool:
        return self.rows.pop(guest_order_id, None) is not None

    def delete_for_guest(self, guest_id: int) -> int:
        ids = [r.guest_order_id for r in self.list_for_guest(guest_id)]
        for i in ids:
            del self.rows[i]
        return len(ids)


class InMemorySplits:
    def __init__(self):
        self.splits: dict[int, BillingSplit] = {}
        self._id = 0

    def get_by_id(self, split_id: int) -> Optional[BillingSplit]:
        return self.splits.get(split_id)

    def list_for_visit(self, visit_id: int) -> Sequence[BillingSplit]:
        return sorted((s for s in self.splits.values() if s.visit_id == visit_id), key=lambda s: s.split_id, reverse=True)

    def list_for_guest(self, guest_id: int) -> Sequence[BillingSplit]:
        return sorted((s for s in self.splits.values() if s.visit_guest_id == guest_id), key=lambda s: s.split_id)

    def create(self, split: NewBillingSplit) -> int:
        self._id += 1
        self.splits[self._id] = BillingSplit(
            split_id=self._id,
            visit_id=split.visit_id,
            visit_guest_id=split.visit_guest_id,
            split_type=split.split_type,
            split_amount=split.split_amount,
            payment_method=split.payment_method,
            payment_status=split.payment_status,
            paid_at=split.paid_at,
            notes=split.notes,
            created_at=datetime(2024, 5, 1, 21, 0),
        )
        return self._id

    def record_payment(self, *, split_id: int, split_amount: int, payment_method: PaymentMethod, paid_at, notes=None) -> bool:
        split = self.splits[split_id]
        if split.payment_status == PaymentStatus.CANCELLED:
            return False
        self.splits[split_id] = replace(
            split,
            split_amount=split_amount,
            payment_method=payment_method,
            payment_status=PaymentStatus.COMPLETED,
            paid_at=paid_at,
            notes=notes,
        )
        return True

    def transition(self, *, split_id: int, status: PaymentStatus, paid_at=None) -> bool:
        split = self.splits[split_id]
        if split.payment_status != PaymentStatus.PENDING:
            return False
        self.splits[split_id] = replace(split, payment_status=status, paid_at=paid_at or split.paid_at)
        return True


class Env:
    """In-memory repositories plus a container wired to them."""

    def __init__(self, *, service_rate: float = 0.10, tax_rate: float = 0.10):
        self.visits = InMemoryVisits()
        self.guests = InMemoryGuests()
        self.order_items = InMemoryOrderItems()
        self.guest_orders = InMemoryGuestOrders(self.order_items)
        self.splits = InMemorySplits()
        self.container: Container = wire_container(
            visits_repo=self.visits,
            guests_repo=self.guests,
            order_items_repo=self.order_items,
            guest_orders_repo=self.guest_orders,
            splits_repo=self.splits,
            service_rate=service_rate,
            tax_rate=tax_rate,
        )

    def add_guest(self, visit_id: int, guest_type: GuestType = GuestType.COMPANION, **kwargs) -> VisitGuest:
        return self.container.roster_service.add_guest(visit_id, None, guest_type, **kwargs)


@pytest.fixture
def env() -> Env:
    return Env()


@pytest.fixture
def untaxed_env() -> Env:
    return Env(service_rate=0, tax_rate=0)


@pytest.fixture
def scenario(env: Env):
    """Visit 1: guest A ordered 1000, guest B ordered 2000 (10% service, 10% tax)."""
    env.visits.add(1)
    a = env.add_guest(1, GuestType.MAIN, seat_position=1, is_primary_payer=True)
    b = env.add_guest(1, seat_position=2)
    env.order_items.add(101, 1, 1000)
    env.order_items.add(102, 1, 2000)
    env.container.attribution_service.attribute_exclusive(101, a.guest_id, 1, 1000)
    env.container.attribution_service.attribute_exclusive(102, b.guest_id, 1, 2000)
    return env, a, b
