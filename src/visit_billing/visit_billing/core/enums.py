from __future__ import annotations

from enum import Enum


class GuestType(str, Enum):
    """Role of a guest inside a visit."""

    MAIN = "main"
    COMPANION = "companion"
    ADDITIONAL = "additional"


class VisitStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Status of a billing split (and of a visit's payment as a whole)."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MIXED = "mixed"


class SplitType(str, Enum):
    INDIVIDUAL = "individual"
    SHARED = "shared"
    TREATED = "treated"


class BillingType(str, Enum):
    """How a visit is being settled, derived from its billing splits."""

    INDIVIDUAL = "individual"
    SPLIT = "split"
    GROUP = "group"
