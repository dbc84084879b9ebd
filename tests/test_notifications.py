from src.visit_billing.visit_billing.notifications.handler import RowChange


def test_watched_change_refreshes_bill_and_report(scenario):
    env, _, _ = scenario

    refresh = env.container.refresh_handler.handle(RowChange(table="guest_orders", visit_id=1, event="INSERT"))

    assert refresh.visit_id == 1
    assert refresh.group_bill.total_amount == 3630
    assert refresh.report.is_valid is False


def test_unwatched_table_ignored(scenario):
    env, _, _ = scenario

    assert env.container.refresh_handler.handle(RowChange(table="products", visit_id=1)) is None


def test_change_without_visit_ignored(scenario):
    env, _, _ = scenario

    assert env.container.refresh_handler.handle(RowChange(table="order_items", visit_id=None)) is None


def test_change_for_deleted_visit_ignored(env):
    assert env.container.refresh_handler.handle(RowChange(table="visit_guests", visit_id=99, event="DELETE")) is None
