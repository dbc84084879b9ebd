from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import PaymentMethod, PaymentStatus, SplitType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_int, db_cursor, fetchall, fetchone
from .model import BillingSplit, NewBillingSplit
from .repository import BillingSplitRepository

_COLUMNS = """
    split_id, visit_id, visit_guest_id, split_type, split_amount, payment_method,
    payment_status, paid_at, notes, created_at
"""


def _to_split(r: Dict[str, Any]) -> BillingSplit:
    method = r.get("payment_method")
    return BillingSplit(
        split_id=int(r["split_id"]),
        visit_id=int(r["visit_id"]),
        visit_guest_id=int(r["visit_guest_id"]),
        split_type=SplitType(r["split_type"]),
        split_amount=as_int(r.get("split_amount")),
        payment_method=PaymentMethod(method) if method else None,
        payment_status=PaymentStatus(r["payment_status"]),
        paid_at=r.get("paid_at"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


class MySQLBillingSplitRepository(BillingSplitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, split_id: int) -> Optional[BillingSplit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM guest_billing_splits WHERE split_id=%s", (int(split_id),))
            r = fetchone(cur)
            return _to_split(r) if r else None

    def list_for_visit(self, visit_id: int) -> Sequence[BillingSplit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM guest_billing_splits
                WHERE visit_id=%s
                ORDER BY created_at DESC, split_id DESC
                """,
                (int(visit_id),),
            )
            return [_to_split(r) for r in fetchall(cur)]

    def list_for_guest(self, guest_id: int) -> Sequence[BillingSplit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM guest_billing_splits WHERE visit_guest_id=%s ORDER BY split_id",
                (int(guest_id),),
            )
            return [_to_split(r) for r in fetchall(cur)]

    def create(self, split: NewBillingSplit) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO guest_billing_splits(visit_id, visit_guest_id, split_type, split_amount,
                                                 payment_method, payment_status, paid_at, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(split.visit_id),
                    int(split.visit_guest_id),
                    split.split_type.value,
                    int(split.split_amount),
                    split.payment_method.value if split.payment_method else None,
                    split.payment_status.value,
                    split.paid_at,
                    split.notes,
                ),
            )
            return int(cur.lastrowid)

    def record_payment(
        self,
        *,
        split_id: int,
        split_amount: int,
        payment_method: PaymentMethod,
        paid_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE guest_billing_splits
                SET split_amount=%s, payment_method=%s, payment_status=%s, paid_at=%s, notes=%s
                WHERE split_id=%s AND payment_status<>%s
                """,
                (
                    int(split_amount),
                    payment_method.value,
                    PaymentStatus.COMPLETED.value,
                    paid_at,
                    notes,
                    int(split_id),
                    PaymentStatus.CANCELLED.value,
                ),
            )
            return cur.rowcount > 0

    def transition(self, *, split_id: int, status: PaymentStatus, paid_at: Optional[datetime] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE guest_billing_splits
                SET payment_status=%s, paid_at=COALESCE(%s, paid_at)
                WHERE split_id=%s AND payment_status=%s
                """,
                (status.value, paid_at, int(split_id), PaymentStatus.PENDING.value),
            )
            return cur.rowcount > 0
