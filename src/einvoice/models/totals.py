"""Computed totals, the tax breakdown and the declared-totals snapshot."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from einvoice.core.constants import EXEMPTION_REQUIRED_CATEGORIES, TAX_EXEMPTION_REASONS, TaxCategory
from einvoice.models.values import Money, round_money

BREAKDOWN_TOLERANCE = Decimal("0.02")


class TaxBreakdownEntry(BaseModel):
    """One row of the tax breakdown, keyed by ``(category, rate)``."""

    model_config = ConfigDict(frozen=True)

    category: TaxCategory = Field(description="Tax category")
    rate: Decimal = Field(description="Tax rate in percent")
    taxable_amount: Money = Field(description="Taxable base for this category and rate")
    tax_amount: Money = Field(description="Tax for this category and rate")
    exemption_reason: str | None = Field(
        default=None,
        description="Exemption reason code (VATEX), for exempt categories",
    )

    @property
    def key(self) -> tuple[TaxCategory, Decimal]:
        return (self.category, self.rate)

    @property
    def requires_exemption_reason(self) -> bool:
        return self.category in EXEMPTION_REQUIRED_CATEGORIES

    def validate_fields(self) -> list[str]:
        errors: list[str] = []

        if self.requires_exemption_reason and not self.exemption_reason:
            errors.append(f"Exemption reason is required for category {self.category.value}")
        if self.exemption_reason and self.exemption_reason not in TAX_EXEMPTION_REASONS:
            errors.append(f"Unknown exemption reason {self.exemption_reason!r}")
        if self.taxable_amount < 0:
            errors.append("Taxable amount cannot be negative")
        if self.tax_amount < 0:
            errors.append("Tax amount cannot be negative")

        expected = round_money(self.taxable_amount * self.rate / 100)
        if abs(self.tax_amount - expected) > BREAKDOWN_TOLERANCE:
            errors.append(
                f"Tax amount {self.tax_amount} inconsistent with "
                f"{self.taxable_amount} at {self.rate}% (expected {expected})"
            )

        return errors


class DocumentTotals(BaseModel):
    """Result of one aggregation pass over an invoice.

    Instances are produced fresh by the totals engine and never updated in
    place; re-running the engine yields a new, equal object.
    """

    model_config = ConfigDict(frozen=True)

    sum_of_line_net_amounts: Money = Field(description="Sum of line net amounts")
    sum_of_allowances: Money = Field(description="Sum of document-level allowances")
    sum_of_charges: Money = Field(description="Sum of document-level charges")
    tax_exclusive_amount: Money = Field(description="Total without tax")
    total_tax_amount: Money = Field(description="Sum of breakdown tax amounts")
    tax_inclusive_amount: Money = Field(description="Total with tax")
    prepaid_amount: Money = Field(default=Decimal("0.00"), description="Amount already paid")
    payable_amount: Money = Field(description="Amount due")
    breakdown: tuple[TaxBreakdownEntry, ...] = Field(
        default=(),
        description="Tax breakdown, one entry per (category, rate)",
    )

    def entry_for(self, category: TaxCategory | str, rate: Decimal | str | int) -> TaxBreakdownEntry | None:
        category = TaxCategory(category)
        rate = Decimal(str(rate))
        for entry in self.breakdown:
            if entry.category == category and entry.rate == rate:
                return entry
        return None


class DeclaredTotals(BaseModel):
    """Totals as declared by an externally authored document.

    Only the fields present in the source are set; absent ones stay ``None``
    and are skipped during reconciliation.
    """

    model_config = ConfigDict(frozen=True)

    line_extension: Money | None = Field(default=None, description="Declared sum of line amounts")
    tax_exclusive: Money | None = Field(default=None, description="Declared total without tax")
    tax_inclusive: Money | None = Field(default=None, description="Declared total with tax")
    prepaid: Money | None = Field(default=None, description="Declared prepaid amount")
    payable: Money | None = Field(default=None, description="Declared amount due")
    tax_amount: Money | None = Field(default=None, description="Declared total tax")
