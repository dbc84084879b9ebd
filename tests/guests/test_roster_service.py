import pytest

from src.visit_billing.visit_billing.core.enums import GuestType, PaymentMethod, VisitStatus
from src.visit_billing.visit_billing.core.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from src.visit_billing.visit_billing.settlement.model import PaymentInput, SplitRequest


def test_add_guest_recounts_visit(env):
    env.visits.add(1)
    env.add_guest(1, GuestType.MAIN)
    env.add_guest(1)

    assert env.visits.get_by_id(1).total_guests == 2


def test_add_guest_to_missing_or_closed_visit(env):
    env.visits.add(2, status=VisitStatus.COMPLETED)

    with pytest.raises(NotFoundError):
        env.add_guest(1)
    with pytest.raises(ConflictError):
        env.add_guest(2)


def test_negative_seat_position_rejected(env):
    env.visits.add(1)
    with pytest.raises(ValidationError):
        env.add_guest(1, seat_position=-1)


def test_primary_payer_stays_unique(env):
    env.visits.add(1)
    a = env.add_guest(1, GuestType.MAIN, is_primary_payer=True)
    b = env.add_guest(1, is_primary_payer=True)
    roster = env.container.roster_service

    assert [g.guest_id for g in roster.list_guests(1) if g.is_primary_payer] == [b.guest_id]

    roster.set_primary_payer(1, a.guest_id)
    assert [g.guest_id for g in roster.list_guests(1) if g.is_primary_payer] == [a.guest_id]


def test_set_primary_payer_rejects_guest_of_other_visit(env):
    env.visits.add(1)
    env.visits.add(2)
    other = env.add_guest(2)

    with pytest.raises(ValidationError):
        env.container.roster_service.set_primary_payer(1, other.guest_id)


def test_update_guest_info_keeps_unset_fields(env):
    env.visits.add(1)
    guest = env.add_guest(1, seat_position=3)

    updated = env.container.roster_service.update_guest_info(guest.guest_id, guest_type=GuestType.ADDITIONAL)

    assert updated.guest_type == GuestType.ADDITIONAL
    assert updated.seat_position == 3


def test_remove_guest_with_orders_needs_cascade(scenario):
    env, a, _ = scenario
    roster = env.container.roster_service

    with pytest.raises(ConflictError):
        roster.remove_guest(a.guest_id)
    assert env.guests.get_by_id(a.guest_id) is not None

    roster.remove_guest(a.guest_id, cascade=True)

    assert env.guests.get_by_id(a.guest_id) is None
    assert env.guest_orders.count_for_guest(a.guest_id) == 0
    assert env.visits.get_by_id(1).total_guests == 1


def test_remove_guest_with_live_split_conflicts(scenario):
    env, _, b = scenario
    settlement = env.container.settlement_service
    (split,) = settlement.process_split_billing(1, [SplitRequest(guest_id=b.guest_id, amount=2420)])

    with pytest.raises(ConflictError):
        env.container.roster_service.remove_guest(b.guest_id, cascade=True)

    settlement.cancel_split(split.split_id)
    env.container.roster_service.remove_guest(b.guest_id, cascade=True)
    assert env.guests.get_by_id(b.guest_id) is None


def test_transfer_guest_recounts_both_visits(env):
    env.visits.add(1)
    env.visits.add(2)
    a = env.add_guest(1, GuestType.MAIN, is_primary_payer=True)
    env.add_guest(1)
    env.add_guest(2, GuestType.MAIN, is_primary_payer=True)

    moved = env.container.roster_service.transfer_guest(a.guest_id, 2)

    assert moved.visit_id == 2
    assert moved.is_primary_payer is False
    assert env.visits.get_by_id(1).total_guests == 1
    assert env.visits.get_by_id(2).total_guests == 2


def test_transfer_to_same_visit_is_noop(env):
    env.visits.add(1)
    a = env.add_guest(1)

    assert env.container.roster_service.transfer_guest(a.guest_id, 1) == a


def test_check_out_guest_is_idempotent(env):
    env.visits.add(1)
    a = env.add_guest(1)
    roster = env.container.roster_service

    first = roster.check_out_guest(a.guest_id)
    second = roster.check_out_guest(a.guest_id)

    assert first.check_out_time is not None
    assert second.check_out_time == first.check_out_time


def test_checked_out_guest_has_completed_payment(scenario):
    env, a, b = scenario
    env.container.bill_service.calculate_individual_bill(a.guest_id)
    env.container.settlement_service.process_individual_payment(a.guest_id, PaymentInput(PaymentMethod.CASH, 1210))

    for guest in env.container.roster_service.list_guests(1):
        paid = [s for s in env.splits.list_for_guest(guest.guest_id) if s.payment_status.value == "completed"]
        assert guest.is_checked_out == bool(paid)
    assert env.guests.get_by_id(b.guest_id).check_out_time is None


def test_failed_insert_keeps_current_primary_payer(env):
    env.visits.add(1)
    a = env.add_guest(1, GuestType.MAIN, is_primary_payer=True)
    env.guests.fail_create = True

    with pytest.raises(StorageError):
        env.add_guest(1, is_primary_payer=True)

    assert env.guests.get_by_id(a.guest_id).is_primary_payer is True
    assert env.guests.count_for_visit(1) == 1
