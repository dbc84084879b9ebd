from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..billing.model import IndividualBill
from ..core.enums import BillingType, PaymentMethod, PaymentStatus, SplitType


@dataclass(frozen=True)
class BillingSplit:
    """A payment record scoped to one guest within one visit."""

    split_id: int
    visit_id: int
    visit_guest_id: int
    split_type: SplitType
    split_amount: int
    payment_method: Optional[PaymentMethod]
    payment_status: PaymentStatus
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.payment_status != PaymentStatus.PENDING


@dataclass(frozen=True)
class NewBillingSplit:
    visit_id: int
    visit_guest_id: int
    split_type: SplitType
    split_amount: int
    payment_method: Optional[PaymentMethod]
    payment_status: PaymentStatus = PaymentStatus.PENDING
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SplitRequest:
    """One entry of a split-billing batch."""

    guest_id: int
    amount: int
    method: Optional[PaymentMethod] = None
    split_type: SplitType = SplitType.INDIVIDUAL
    notes: Optional[str] = None


@dataclass(frozen=True)
class PaymentInput:
    method: PaymentMethod
    amount: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class GroupBill:
    visit_id: int
    total_amount: int
    individual_bills: list[IndividualBill]
    billing_type: BillingType


@dataclass(frozen=True)
class PartialCheckoutResult:
    """Per-guest outcome of a partial checkout; failures are reported, not raised."""

    visit_id: int
    payments: list[BillingSplit] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
    visit_completed: bool = False


@dataclass(frozen=True)
class ConsistencyReport:
    visit_id: int
    is_valid: bool
    errors: list[str] = field(default_factory=list)
