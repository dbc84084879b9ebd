from __future__ import annotations

from ...common.money import apply_rate
from ...core.constants import DEFAULT_SERVICE_RATE, DEFAULT_TAX_RATE
from ...core.exceptions import ValidationError
from ..model import BillBreakdown
from .base import BillCalculator


class StandardBillCalculator(BillCalculator):
    """Standard rule: service charge on the subtotal, tax on subtotal + service charge.

    Each step rounds half up to whole minor units.
    """

    def __init__(self, service_rate: float = DEFAULT_SERVICE_RATE, tax_rate: float = DEFAULT_TAX_RATE):
        if service_rate < 0 or tax_rate < 0:
            raise ValidationError("Service and tax rates must not be negative")
        self.service_rate = service_rate
        self.tax_rate = tax_rate

    def calculate(self, subtotal: int) -> BillBreakdown:
        subtotal = int(subtotal)
        service_charge = apply_rate(subtotal, self.service_rate)
        tax_amount = apply_rate(subtotal + service_charge, self.tax_rate)
        return BillBreakdown(
            subtotal=subtotal,
            service_charge=service_charge,
            tax_amount=tax_amount,
            total=subtotal + service_charge + tax_amount,
        )
