from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, as_int, db_cursor, fetchall, fetchone, in_clause
from .model import GuestOrder, GuestOrderDetail, NewGuestOrder, OrderItem, Product
from .repository import GuestOrderRepository, OrderItemRepository

_ITEM_COLUMNS = """
    oi.order_item_id, oi.visit_id, oi.product_id, oi.quantity, oi.unit_price, oi.total_price,
    oi.is_shared_item, oi.target_guest_id
"""

_GUEST_ORDER_COLUMNS = """
    go.guest_order_id, go.visit_guest_id, go.order_item_id, go.quantity_for_guest,
    go.amount_for_guest, go.is_shared_item, go.shared_percentage
"""


def _to_item(r: Dict[str, Any]) -> OrderItem:
    return OrderItem(
        order_item_id=int(r["order_item_id"]),
        visit_id=int(r["visit_id"]),
        product_id=int(r["product_id"]),
        quantity=int(r["quantity"]),
        unit_price=as_int(r.get("unit_price")),
        total_price=as_int(r.get("total_price")),
        is_shared_item=bool(r.get("is_shared_item")),
        target_guest_id=r.get("target_guest_id"),
    )


def _to_guest_order(r: Dict[str, Any]) -> GuestOrder:
    return GuestOrder(
        guest_order_id=int(r["guest_order_id"]),
        visit_guest_id=int(r["visit_guest_id"]),
        order_item_id=int(r["order_item_id"]),
        quantity_for_guest=as_float(r.get("quantity_for_guest")) or 0.0,
        amount_for_guest=as_int(r.get("amount_for_guest")),
        is_shared_item=bool(r.get("is_shared_item")),
        shared_percentage=as_float(r.get("shared_percentage")),
    )


def _insert_guest_order(cur, row: NewGuestOrder) -> int:
    cur.execute(
        """
        INSERT INTO guest_orders(visit_guest_id, order_item_id, quantity_for_guest,
                                 amount_for_guest, is_shared_item, shared_percentage)
        VALUES(%s,%s,%s,%s,%s,%s)
        """,
        (
            int(row.visit_guest_id),
            int(row.order_item_id),
            row.quantity_for_guest,
            int(row.amount_for_guest),
            int(row.is_shared_item),
            row.shared_percentage,
        ),
    )
    return int(cur.lastrowid)


class MySQLOrderItemRepository(OrderItemRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, order_item_id: int) -> Optional[OrderItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ITEM_COLUMNS} FROM order_items oi WHERE oi.order_item_id=%s", (int(order_item_id),))
            r = fetchone(cur)
            return _to_item(r) if r else None

    def list_for_visit(self, visit_id: int) -> Sequence[OrderItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ITEM_COLUMNS} FROM order_items oi WHERE oi.visit_id=%s ORDER BY oi.order_item_id",
                (int(visit_id),),
            )
            return [_to_item(r) for r in fetchall(cur)]

    def set_attribution_flags(self, *, order_item_id: int, is_shared_item: bool, target_guest_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE order_items SET is_shared_item=%s, target_guest_id=%s WHERE order_item_id=%s",
                (int(is_shared_item), target_guest_id, int(order_item_id)),
            )
            return cur.rowcount > 0


class MySQLGuestOrderRepository(GuestOrderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, guest_order_id: int) -> Optional[GuestOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_GUEST_ORDER_COLUMNS} FROM guest_orders go WHERE go.guest_order_id=%s",
                (int(guest_order_id),),
            )
            r = fetchone(cur)
            return _to_guest_order(r) if r else None

    def list_for_item(self, order_item_id: int) -> Sequence[GuestOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_GUEST_ORDER_COLUMNS} FROM guest_orders go WHERE go.order_item_id=%s ORDER BY go.guest_order_id",
                (int(order_item_id),),
            )
            return [_to_guest_order(r) for r in fetchall(cur)]

    def list_for_guest(self, guest_id: int) -> Sequence[GuestOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_GUEST_ORDER_COLUMNS} FROM guest_orders go WHERE go.visit_guest_id=%s ORDER BY go.guest_order_id",
                (int(guest_id),),
            )
            return [_to_guest_order(r) for r in fetchall(cur)]

    def list_details_for_guest(self, guest_id: int) -> Sequence[GuestOrderDetail]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_GUEST_ORDER_COLUMNS},
                       oi.visit_id, oi.product_id, oi.quantity, oi.unit_price, oi.total_price,
                       oi.is_shared_item AS item_is_shared_item, oi.target_guest_id,
                       p.name AS product_name, p.category AS product_category, p.price AS product_price
                FROM guest_orders go
                JOIN order_items oi ON oi.order_item_id = go.order_item_id
                LEFT JOIN products p ON p.product_id = oi.product_id
                WHERE go.visit_guest_id=%s
                ORDER BY go.created_at DESC, go.guest_order_id DESC
                """,
                (int(guest_id),),
            )
            out = []
            for r in fetchall(cur):
                product = None
                if r.get("product_name") is not None:
                    product = Product(
                        product_id=int(r["product_id"]),
                        name=r["product_name"],
                        category=r.get("product_category"),
                        price=as_int(r.get("product_price")),
                    )
                item = _to_item({**r, "is_shared_item": r.get("item_is_shared_item")})
                out.append(GuestOrderDetail(guest_order=_to_guest_order(r), order_item=item, product=product))
            return out

    def list_for_visit(self, visit_id: int) -> Sequence[GuestOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_GUEST_ORDER_COLUMNS}
                FROM guest_orders go
                JOIN order_items oi ON oi.order_item_id = go.order_item_id
                WHERE oi.visit_id=%s
                ORDER BY go.guest_order_id
                """,
                (int(visit_id),),
            )
            return [_to_guest_order(r) for r in fetchall(cur)]

    def count_for_guest(self, guest_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM guest_orders WHERE visit_guest_id=%s", (int(guest_id),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def create(self, row: NewGuestOrder) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return _insert_guest_order(cur, row)

    def update(
        self,
        *,
        guest_order_id: int,
        visit_guest_id: int,
        quantity_for_guest: float,
        amount_for_guest: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE guest_orders
                SET visit_guest_id=%s, quantity_for_guest=%s, amount_for_guest=%s
                WHERE guest_order_id=%s
                """,
                (int(visit_guest_id), quantity_for_guest, int(amount_for_guest), int(guest_order_id)),
            )
            return cur.rowcount > 0

    def replace_for_item(
        self,
        *,
        order_item_id: int,
        rows: Sequence[NewGuestOrder],
        target_guest_id: Optional[int] = None,
    ) -> list[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM guest_orders WHERE order_item_id=%s", (int(order_item_id),))
            ids = [_insert_guest_order(cur, row) for row in rows]
            cur.execute(
                "UPDATE order_items SET is_shared_item=%s, target_guest_id=%s WHERE order_item_id=%s",
                (int(target_guest_id is None), target_guest_id, int(order_item_id)),
            )
            return ids

    def move_all(self, *, from_guest_id: int, to_guest_id: int, guest_order_ids: Optional[Sequence[int]] = None) -> int:
        sql = "UPDATE guest_orders SET visit_guest_id=%s WHERE visit_guest_id=%s"
        params: list[object] = [int(to_guest_id), int(from_guest_id)]
        if guest_order_ids:
            ids = [int(i) for i in guest_order_ids]
            sql += f" AND guest_order_id IN ({in_clause(ids)})"
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return int(cur.rowcount)

    def delete_by_id(self, guest_order_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM guest_orders WHERE guest_order_id=%s", (int(guest_order_id),))
            return cur.rowcount > 0

    def delete_for_guest(self, guest_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM guest_orders WHERE visit_guest_id=%s", (int(guest_id),))
            return int(cur.rowcount)
