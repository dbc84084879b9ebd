import pytest

from src.visit_billing.visit_billing.billing.calculator.standard_calculator import StandardBillCalculator
from src.visit_billing.visit_billing.core.exceptions import ValidationError


def test_service_then_tax_on_subtotal_plus_service():
    bill = StandardBillCalculator(service_rate=0.10, tax_rate=0.10).calculate(1000)

    assert (bill.subtotal, bill.service_charge, bill.tax_amount, bill.total) == (1000, 100, 110, 1210)


def test_each_step_rounds_half_up():
    calc = StandardBillCalculator(service_rate=0.10, tax_rate=0.10)

    bill = calc.calculate(5)
    assert (bill.service_charge, bill.tax_amount, bill.total) == (1, 1, 7)

    bill = calc.calculate(15)
    assert (bill.service_charge, bill.tax_amount, bill.total) == (2, 2, 19)


def test_empty_subtotal_is_free():
    bill = StandardBillCalculator().calculate(0)
    assert bill.total == 0


def test_negative_rates_rejected():
    with pytest.raises(ValidationError):
        StandardBillCalculator(service_rate=-0.1)
