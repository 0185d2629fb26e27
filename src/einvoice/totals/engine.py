"""Totals and tax-breakdown aggregation.

Every pass starts from empty accumulators and returns a new
:class:`DocumentTotals`; nothing from a previous pass is read back. Running
sums stay unrounded until all their contributions are folded in, then each
aggregate is rounded to cents exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING

from einvoice.core.constants import TaxCategory
from einvoice.core.exceptions import NoLinesError
from einvoice.models.allowance import AllowanceCharge
from einvoice.models.line import InvoiceLine
from einvoice.models.totals import DocumentTotals, TaxBreakdownEntry
from einvoice.models.values import round_money

if TYPE_CHECKING:
    from einvoice.models.invoice import Invoice

logger = logging.getLogger(__name__)

TaxKey = tuple[TaxCategory, Decimal]

_ZERO = Decimal("0")


class _BreakdownAccumulator:
    """Additive ``(category, rate) -> (base, tax)`` map for a single pass."""

    def __init__(self) -> None:
        self._bases: dict[TaxKey, Decimal] = {}
        self._taxes: dict[TaxKey, Decimal] = {}

    def add(self, key: TaxKey, base: Decimal, tax: Decimal) -> None:
        # Keys compare by value, so 21 and 21.00 share an entry
        self._bases[key] = self._bases.get(key, _ZERO) + base
        self._taxes[key] = self._taxes.get(key, _ZERO) + tax

    def entries(self, exemption_reasons: Mapping[TaxCategory, str]) -> tuple[TaxBreakdownEntry, ...]:
        ordered = sorted(self._bases, key=lambda k: (k[0].value, k[1]))
        return tuple(
            TaxBreakdownEntry(
                category=category,
                rate=rate,
                taxable_amount=round_money(self._bases[(category, rate)]),
                tax_amount=round_money(self._taxes[(category, rate)]),
                exemption_reason=exemption_reasons.get(category),
            )
            for category, rate in ordered
        )


def compute_totals(
    lines: Sequence[InvoiceLine],
    allowances_charges: Iterable[AllowanceCharge] = (),
    prepaid_amount: Decimal = _ZERO,
    exemption_reasons: Mapping[TaxCategory, str] | None = None,
) -> DocumentTotals:
    """Aggregate lines and document-level adjustments into document totals.

    Args:
        lines: Invoice lines; their net and tax amounts are already computed.
        allowances_charges: Document-level adjustments. Allowances subtract
            from the base and tax of their ``(category, rate)`` entry, charges add.
        prepaid_amount: Amount already paid, deducted from the payable amount.
        exemption_reasons: Exemption reason code per tax category, stamped
            onto the matching breakdown entries.

    Returns:
        A new DocumentTotals.

    Raises:
        NoLinesError: If ``lines`` is empty.
    """
    if not lines:
        raise NoLinesError("Cannot compute totals for an invoice without lines")

    breakdown = _BreakdownAccumulator()
    line_sum = _ZERO
    allowance_sum = _ZERO
    charge_sum = _ZERO

    for line in lines:
        line_sum += line.net_amount
        breakdown.add(line.tax_key, line.net_amount, line.tax_amount)

    adjustments = list(allowances_charges)
    for ac in adjustments:
        key = (ac.tax_category, ac.tax_rate)
        if ac.is_allowance:
            allowance_sum += ac.amount
            breakdown.add(key, -ac.amount, -ac.tax_amount)
        else:
            charge_sum += ac.amount
            breakdown.add(key, ac.amount, ac.tax_amount)

    line_sum = round_money(line_sum)
    allowance_sum = round_money(allowance_sum)
    charge_sum = round_money(charge_sum)
    tax_exclusive = round_money(line_sum - allowance_sum + charge_sum)

    entries = breakdown.entries(exemption_reasons or {})
    total_tax = round_money(sum((e.tax_amount for e in entries), _ZERO))
    tax_inclusive = round_money(tax_exclusive + total_tax)
    prepaid = round_money(Decimal(prepaid_amount))

    logger.debug(
        "Aggregated %d line(s) and %d adjustment(s) into %d breakdown entr(ies): %s",
        len(lines),
        len(adjustments),
        len(entries),
        ", ".join(f"{e.category.value}/{e.rate}" for e in entries),
    )

    return DocumentTotals(
        sum_of_line_net_amounts=line_sum,
        sum_of_allowances=allowance_sum,
        sum_of_charges=charge_sum,
        tax_exclusive_amount=tax_exclusive,
        total_tax_amount=total_tax,
        tax_inclusive_amount=tax_inclusive,
        prepaid_amount=prepaid,
        payable_amount=round_money(tax_inclusive - prepaid),
        breakdown=entries,
    )


class TotalsEngine:
    """Computes totals for whole invoices.

    Example:
        ```python
        engine = TotalsEngine()
        totals = engine.compute(invoice)
        print(totals.payable_amount)
        ```
    """

    def compute(self, invoice: Invoice) -> DocumentTotals:
        return compute_totals(
            invoice.lines,
            invoice.allowances_charges,
            prepaid_amount=invoice.prepaid_amount,
            exemption_reasons=invoice.exemption_reasons,
        )
