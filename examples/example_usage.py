"""Example: settle the seeded demo visit through the service layer (no Flask).

Run ``python scripts/init_db.py --seed`` first.
"""

import importlib

from config import get_settings_module

from src.visit_billing.visit_billing.container import build_container
from src.visit_billing.visit_billing.core.enums import PaymentMethod
from src.visit_billing.visit_billing.orders.model import GuestShare


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        service_rate=settings.SERVICE_RATE,
        tax_rate=settings.TAX_RATE,
    )

    container.attribution_service.attribute_exclusive(1, 1, 1, 1000)
    container.attribution_service.attribute_exclusive(2, 2, 1, 2000)
    container.attribution_service.attribute_shared(3, [GuestShare(1, 50), GuestShare(2, 50)])

    group = container.settlement_service.generate_group_bill(1)
    for bill in group.individual_bills:
        print(f"guest {bill.guest_id}: subtotal={bill.subtotal} total={bill.total}")
    print(f"group total={group.total_amount} ({group.billing_type.value})")

    result = container.settlement_service.process_partial_checkout(1, [1, 2], PaymentMethod.CARD)
    print(f"paid={len(result.payments)} failed={result.failed} visit_completed={result.visit_completed}")
    print(container.consistency_validator.validate_billing_consistency(1))


if __name__ == "__main__":
    main()
