"""Declared-versus-computed totals reconciliation."""

from __future__ import annotations

from decimal import Decimal

from einvoice.importing.comparators import MoneyComparator
from einvoice.importing.results import TotalsDiscrepancy
from einvoice.models.totals import DeclaredTotals, DocumentTotals

# Declared field -> computed field
RECONCILED_FIELDS: dict[str, str] = {
    "tax_exclusive": "tax_exclusive_amount",
    "tax_inclusive": "tax_inclusive_amount",
    "tax_amount": "total_tax_amount",
}


def reconcile_totals(
    declared: DeclaredTotals,
    computed: DocumentTotals,
    tolerance: Decimal = Decimal("0.02"),
) -> list[TotalsDiscrepancy]:
    """Compare declared totals with computed ones, field by field.

    Only the tax-exclusive, tax-inclusive and total tax amounts are compared,
    and only when the source declared them. A gap equal to ``tolerance`` is
    accepted.

    Returns:
        One discrepancy per field whose gap exceeds ``tolerance``.
    """
    comparator = MoneyComparator(threshold=tolerance)
    discrepancies: list[TotalsDiscrepancy] = []

    for declared_field, computed_field in RECONCILED_FIELDS.items():
        declared_value = getattr(declared, declared_field)
        if declared_value is None:
            continue
        computed_value = getattr(computed, computed_field)
        result = comparator.compare(declared_value, computed_value)
        if not result.matched:
            discrepancies.append(
                TotalsDiscrepancy(
                    field=declared_field,
                    declared=declared_value,
                    computed=computed_value,
                    difference=result.difference,
                    tolerance=comparator.threshold,
                )
            )

    return discrepancies
