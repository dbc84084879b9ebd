import copy
from datetime import datetime

import pytest

from src.visit_billing.visit_billing.core.enums import GuestType, PaymentMethod
from src.visit_billing.visit_billing.core.exceptions import NotFoundError
from src.visit_billing.visit_billing.orders.model import GuestShare, NewGuestOrder
from src.visit_billing.visit_billing.settlement.model import PaymentInput


def _errors(env, visit_id=1):
    return env.container.consistency_validator.validate_billing_consistency(visit_id).errors


def test_settled_visit_is_consistent(scenario):
    env, a, b = scenario
    env.container.settlement_service.process_partial_checkout(1, [a.guest_id, b.guest_id], PaymentMethod.CARD)

    report = env.container.consistency_validator.validate_billing_consistency(1)

    assert report.is_valid is True
    assert report.errors == []
    assert report.visit_id == 1


def test_unpaid_guests_reported(scenario):
    env, a, b = scenario

    errors = _errors(env)

    assert f"Guest {a.guest_id} has an unpaid amount of 1210" in errors
    assert f"Guest {b.guest_id} has an unpaid amount of 2420" in errors


def test_validation_does_not_mutate(scenario):
    env, a, _ = scenario
    env.container.settlement_service.process_individual_payment(a.guest_id, PaymentInput(PaymentMethod.CASH, 100))
    before = copy.deepcopy((env.visits.visits, env.guests.guests, env.guest_orders.rows, env.splits.splits))

    env.container.consistency_validator.validate_billing_consistency(1)

    assert (env.visits.visits, env.guests.guests, env.guest_orders.rows, env.splits.splits) == before


def test_visit_total_mismatch(scenario):
    env, a, b = scenario
    env.container.settlement_service.process_partial_checkout(1, [a.guest_id, b.guest_id], PaymentMethod.CARD)
    env.order_items.add(103, 1, 500)
    env.container.attribution_service.attribute_exclusive(103, a.guest_id, 1, 500)

    errors = _errors(env)

    assert "Visit total mismatch: visit 3630, sum of guests 4235" in errors


def test_guest_paid_amount_mismatch(scenario):
    env, a, _ = scenario
    env.container.bill_service.calculate_individual_bill(a.guest_id)
    env.container.settlement_service.process_individual_payment(a.guest_id, PaymentInput(PaymentMethod.CASH, 1000))

    errors = _errors(env)

    assert f"Guest {a.guest_id} billing mismatch: total 1210, paid 1000" in errors
    assert f"Guest {a.guest_id} has an unpaid amount of 210" in errors


def test_unattributed_item_reported(scenario):
    env, _, _ = scenario
    env.order_items.add(103, 1, 1500)

    assert "Order item 103 is not attributed to any guest" in _errors(env)


def test_attribution_amount_mismatch(scenario):
    env, a, _ = scenario
    env.order_items.add(103, 1, 1500)
    env.container.attribution_service.attribute_exclusive(103, a.guest_id, 1, 500)

    assert "Order item 103 attribution mismatch: price 1500, attributed 500" in _errors(env)


def test_shared_percentages_not_adding_up(scenario):
    env, a, _ = scenario
    env.order_items.add(103, 1, 1500)
    env.guest_orders.create(
        NewGuestOrder(
            visit_guest_id=a.guest_id,
            order_item_id=103,
            quantity_for_guest=0.5,
            amount_for_guest=750,
            is_shared_item=True,
            shared_percentage=50.0,
        )
    )

    errors = _errors(env)

    assert "Order item 103 shared percentages sum to 50.00, not 100" in errors
    assert "Order item 103 attribution mismatch: price 1500, attributed 750" in errors


def test_three_way_rounding_residual_is_tolerated(env):
    env.visits.add(1)
    ids = [env.add_guest(1, GuestType.MAIN).guest_id, env.add_guest(1).guest_id, env.add_guest(1).guest_id]
    env.order_items.add(10, 1, 1000)
    env.container.attribution_service.attribute_shared(
        10, [GuestShare(ids[0], 33.33), GuestShare(ids[1], 33.33), GuestShare(ids[2], 33.34)]
    )

    assert not [e for e in _errors(env) if e.startswith("Order item")]


def test_unknown_visit(env):
    with pytest.raises(NotFoundError):
        _errors(env, 7)


def test_checks_are_independent(scenario):
    env, a, b = scenario
    env.visits.complete(visit_id=1, check_out_at=datetime(2024, 5, 1, 23, 0), total_amount=1)
    env.order_items.add(103, 1, 1500)

    errors = _errors(env)

    assert any(e.startswith("Visit total mismatch") for e in errors)
    assert any(e.startswith(f"Guest {b.guest_id} has an unpaid amount") for e in errors)
    assert "Order item 103 is not attributed to any guest" in errors
