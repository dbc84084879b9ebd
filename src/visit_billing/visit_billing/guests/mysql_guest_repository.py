from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import GuestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_int, db_cursor, fetchall, fetchone
from .model import VisitGuest
from .repository import GuestRepository

_COLUMNS = """
    guest_id, visit_id, customer_id, guest_type, seat_position, is_primary_payer,
    check_in_time, check_out_time,
    individual_subtotal, individual_service_charge, individual_tax_amount, individual_total
"""


def _to_guest(r: Dict[str, Any]) -> VisitGuest:
    return VisitGuest(
        guest_id=int(r["guest_id"]),
        visit_id=int(r["visit_id"]),
        customer_id=r.get("customer_id"),
        guest_type=GuestType(r["guest_type"]),
        seat_position=r.get("seat_position"),
        is_primary_payer=bool(r.get("is_primary_payer")),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        individual_subtotal=as_int(r.get("individual_subtotal")),
        individual_service_charge=as_int(r.get("individual_service_charge")),
        individual_tax_amount=as_int(r.get("individual_tax_amount")),
        individual_total=as_int(r.get("individual_total")),
    )


class MySQLGuestRepository(GuestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, guest_id: int) -> Optional[VisitGuest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM visit_guests WHERE guest_id=%s", (int(guest_id),))
            r = fetchone(cur)
            return _to_guest(r) if r else None

    def list_for_visit(self, visit_id: int) -> Sequence[VisitGuest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM visit_guests
                WHERE visit_id=%s
                ORDER BY FIELD(guest_type, 'main', 'companion', 'additional'),
                         seat_position IS NULL, seat_position, guest_id
                """,
                (int(visit_id),),
            )
            return [_to_guest(r) for r in fetchall(cur)]

    def count_for_visit(self, visit_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM visit_guests WHERE visit_id=%s", (int(visit_id),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            if is_primary_payer:
                cur.execute(
                    "UPDATE visit_guests SET is_primary_payer=0 WHERE visit_id=%s AND is_primary_payer=1",
                    (int(visit_id),),
                )
            cur.execute(
                """
                INSERT INTO visit_guests(visit_id, customer_id, guest_type, seat_position,
                                         is_primary_payer, check_in_time)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(visit_id), customer_id, guest_type.value, seat_position, int(is_primary_payer), check_in_time),
            )
            return int(cur.lastrowid)

    def set_primary_payer(self, *, visit_id: int, guest_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE visit_guests SET is_primary_payer=0 WHERE visit_id=%s AND guest_id<>%s",
                (int(visit_id), int(guest_id)),
            )
            cur.execute(
                "UPDATE visit_guests SET is_primary_payer=1 WHERE visit_id=%s AND guest_id=%s",
                (int(visit_id), int(guest_id)),
            )
            # rowcount is 0 when the flag was already set; check the row exists instead.
            cur.execute(
                "SELECT is_primary_payer FROM visit_guests WHERE visit_id=%s AND guest_id=%s",
                (int(visit_id), int(guest_id)),
            )
            r = fetchone(cur)
            return bool(r and r["is_primary_payer"])

    def move_to_visit(self, *, guest_id: int, visit_id: int, is_primary_payer: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE visit_guests SET visit_id=%s, is_primary_payer=%s WHERE guest_id=%s",
                (int(visit_id), int(is_primary_payer), int(guest_id)),
            )
            return cur.rowcount > 0

    def set_check_out(self, *, guest_id: int, check_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE visit_guests SET check_out_time=%s WHERE guest_id=%s AND check_out_time IS NULL",
                (check_out_time, int(guest_id)),
            )
            return cur.rowcount > 0

    def update_info(self, *, guest_id: int, guest_type: GuestType, seat_position: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE visit_guests SET guest_type=%s, seat_position=%s WHERE guest_id=%s",
                (guest_type.value, seat_position, int(guest_id)),
            )
            return cur.rowcount > 0

    def update_billing_cache(
        self,
        *,
        guest_id: int,
        subtotal: int,
        service_charge: int,
        tax_amount: int,
        total: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE visit_guests
                SET individual_subtotal=%s, individual_service_charge=%s,
                    individual_tax_amount=%s, individual_total=%s
                WHERE guest_id=%s
                """,
                (int(subtotal), int(service_charge), int(tax_amount), int(total), int(guest_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, guest_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM visit_guests WHERE guest_id=%s", (int(guest_id),))
            return cur.rowcount > 0
