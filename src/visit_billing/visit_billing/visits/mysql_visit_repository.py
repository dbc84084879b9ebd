from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import PaymentStatus, VisitStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Visit
from .repository import VisitRepository


class MySQLVisitRepository(VisitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, visit_id: int) -> Optional[Visit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT visit_id, table_id, status, total_guests, check_in_at, check_out_at,
                       total_amount, payment_status
                FROM visits
                WHERE visit_id=%s
                """,
                (int(visit_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Visit(
                visit_id=int(r["visit_id"]),
                table_id=r.get("table_id"),
                status=VisitStatus(r["status"]),
                total_guests=int(r.get("total_guests") or 0),
                check_in_at=r.get("check_in_at"),
                check_out_at=r.get("check_out_at"),
                total_amount=int(r["total_amount"]) if r.get("total_amount") is not None else None,
                payment_status=PaymentStatus(r["payment_status"]),
            )

    def update_guest_count(self, visit_id: int, total_guests: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE visits SET total_guests=%s WHERE visit_id=%s",
                (int(total_guests), int(visit_id)),
            )
            return cur.rowcount > 0

    def update_payment_status(self, visit_id: int, payment_status: PaymentStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE visits SET payment_status=%s WHERE visit_id=%s",
                (payment_status.value, int(visit_id)),
            )
            return cur.rowcount > 0

    def complete(self, *, visit_id: int, check_out_at: datetime, total_amount: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE visits
                SET status=%s, check_out_at=%s, payment_status=%s, total_amount=%s
                WHERE visit_id=%s AND status=%s
                """,
                (
                    VisitStatus.COMPLETED.value,
                    check_out_at,
                    PaymentStatus.COMPLETED.value,
                    int(total_amount),
                    int(visit_id),
                    VisitStatus.ACTIVE.value,
                ),
            )
            return cur.rowcount > 0
