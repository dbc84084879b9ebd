from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import BillBreakdown


class BillCalculator(ABC):
    """Calculator interface (Strategy Pattern for guest bills)."""

    @abstractmethod
    def calculate(self, subtotal: int) -> BillBreakdown:
        raise NotImplementedError
