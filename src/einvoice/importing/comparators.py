"""Monetary comparison with tolerance."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ComparisonResult:
    """Result of comparing a declared amount with a computed one.

    Attributes:
        matched: Whether the gap is within tolerance
        difference: Absolute gap between the two amounts
        threshold_used: The tolerance applied
    """

    matched: bool
    difference: Decimal
    threshold_used: Decimal

    def __post_init__(self) -> None:
        if self.difference < 0:
            raise ValueError(f"Difference must be non-negative, got {self.difference}")


class MoneyComparator:
    """Decimal comparison with an absolute tolerance in currency units.

    A gap equal to the tolerance still matches.

    Example:
        ```python
        comparator = MoneyComparator(threshold=Decimal("0.02"))
        comparator.compare(Decimal("605.00"), Decimal("605.02")).matched  # True
        comparator.compare(Decimal("605.00"), Decimal("605.05")).matched  # False
        ```
    """

    def __init__(self, threshold: Decimal = Decimal("0.02")) -> None:
        threshold = Decimal(str(threshold))
        if threshold < 0:
            raise ValueError("Threshold must be non-negative")
        self.threshold = threshold

    def compare(self, declared: Decimal, computed: Decimal) -> ComparisonResult:
        difference = abs(declared - computed)
        return ComparisonResult(
            matched=difference <= self.threshold,
            difference=difference,
            threshold_used=self.threshold,
        )
