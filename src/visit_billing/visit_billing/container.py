from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .billing.calculator.standard_calculator import StandardBillCalculator
from .billing.service import BillService
from .core.constants import DEFAULT_SERVICE_RATE, DEFAULT_TAX_RATE
from .database.connection import DatabaseConnection
from .guests.mysql_guest_repository import MySQLGuestRepository
from .guests.repository import GuestRepository
from .guests.service import GuestRosterService
from .notifications.handler import BillingRefreshHandler
from .orders.mysql_order_repository import MySQLGuestOrderRepository, MySQLOrderItemRepository
from .orders.repository import GuestOrderRepository, OrderItemRepository
from .orders.service import OrderAttributionService
from .settlement.mysql_billing_split_repository import MySQLBillingSplitRepository
from .settlement.repository import BillingSplitRepository
from .settlement.service import SettlementService
from .settlement.validator import ConsistencyValidator
from .visits.mysql_visit_repository import MySQLVisitRepository
from .visits.repository import VisitRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    visits_repo: VisitRepository
    guests_repo: GuestRepository
    order_items_repo: OrderItemRepository
    guest_orders_repo: GuestOrderRepository
    splits_repo: BillingSplitRepository

    roster_service: GuestRosterService
    attribution_service: OrderAttributionService
    bill_service: BillService
    settlement_service: SettlementService
    consistency_validator: ConsistencyValidator
    refresh_handler: BillingRefreshHandler


def wire_container(
    *,
    visits_repo: VisitRepository,
    guests_repo: GuestRepository,
    order_items_repo: OrderItemRepository,
    guest_orders_repo: GuestOrderRepository,
    splits_repo: BillingSplitRepository,
    service_rate: float = DEFAULT_SERVICE_RATE,
    tax_rate: float = DEFAULT_TAX_RATE,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    roster_service = GuestRosterService(guests_repo, visits_repo, guest_orders_repo, splits_repo)
    attribution_service = OrderAttributionService(order_items_repo, guest_orders_repo, guests_repo)
    bill_service = BillService(
        guests_repo,
        guest_orders_repo,
        calculator=StandardBillCalculator(service_rate=service_rate, tax_rate=tax_rate),
    )
    settlement_service = SettlementService(visits_repo, guests_repo, splits_repo, bill_service, roster_service)
    consistency_validator = ConsistencyValidator(
        visits_repo,
        guests_repo,
        order_items_repo,
        guest_orders_repo,
        splits_repo,
        bill_service,
    )

    return Container(
        conn=conn,
        visits_repo=visits_repo,
        guests_repo=guests_repo,
        order_items_repo=order_items_repo,
        guest_orders_repo=guest_orders_repo,
        splits_repo=splits_repo,
        roster_service=roster_service,
        attribution_service=attribution_service,
        bill_service=bill_service,
        settlement_service=settlement_service,
        consistency_validator=consistency_validator,
        refresh_handler=BillingRefreshHandler(settlement_service, consistency_validator),
    )


def build_container(
    *,
    db_config: dict,
    service_rate: float = DEFAULT_SERVICE_RATE,
    tax_rate: float = DEFAULT_TAX_RATE,
) -> Container:
    conn = DatabaseConnection.from_dict(db_config)

    return wire_container(
        visits_repo=MySQLVisitRepository(conn),
        guests_repo=MySQLGuestRepository(conn),
        order_items_repo=MySQLOrderItemRepository(conn),
        guest_orders_repo=MySQLGuestOrderRepository(conn),
        splits_repo=MySQLBillingSplitRepository(conn),
        service_rate=service_rate,
        tax_rate=tax_rate,
        conn=conn,
    )
