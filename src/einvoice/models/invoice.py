"""The invoice root aggregate."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationInfo,
    field_validator,
    model_validator,
)

from einvoice.core.constants import (
    CURRENCY_CODES,
    EXEMPTION_REQUIRED_CATEGORIES,
    TAX_EXEMPTION_REASONS,
    InvoiceTypeCode,
    TaxCategory,
)
from einvoice.core.exceptions import SnapshotAlreadySetError
from einvoice.models.allowance import AllowanceCharge
from einvoice.models.attachment import AttachedDocument
from einvoice.models.line import InvoiceLine
from einvoice.models.party import Party
from einvoice.models.payment import PaymentDetails
from einvoice.models.totals import DeclaredTotals, DocumentTotals
from einvoice.models.values import Identifier, IsoDate, NonNegativeMoney
from einvoice.totals.engine import compute_totals

if TYPE_CHECKING:
    from einvoice.importing.results import TotalsDiscrepancy
    from einvoice.validation.profiles import ValidationProfile
    from einvoice.validation.rules import Rule


class InvoicePeriod(BaseModel):
    """Invoicing period; either bound may be open."""

    model_config = ConfigDict(frozen=True)

    start: IsoDate | None = Field(default=None, description="First day of the period")
    end: IsoDate | None = Field(default=None, description="Last day of the period")

    @model_validator(mode="after")
    def validate_order(self) -> InvoicePeriod:
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError("Period end date cannot be before its start date")
        return self


class PrecedingInvoiceReference(BaseModel):
    """Reference to a previously issued invoice, e.g. the one a credit note corrects."""

    model_config = ConfigDict(frozen=True)

    number: Identifier = Field(description="Number of the preceding invoice")
    issue_date: IsoDate | None = Field(default=None, description="Its issue date")


class Invoice(BaseModel):
    """An electronic invoice.

    Created from its four mandatory scalars, then filled through the
    additive mutators (``add_line``, ``add_allowance_charge``, ``set_seller``,
    ``set_payment``...). Totals are computed on demand by
    :meth:`calculate_totals`; until then :attr:`totals` is ``None``. Later
    mutations do not invalidate computed totals, so call
    :meth:`calculate_totals` again after changing lines or adjustments.

    An instance is not safe for concurrent mutation; serialize writers.

    Example:
        ```python
        invoice = Invoice(invoice_number="INV-2024-001", issue_date="2024-03-01")
        invoice.set_seller(seller).set_buyer(buyer)
        invoice.add_line(
            InvoiceLine(id="1", name="Consulting", quantity=5, unit_price="100.00",
                        tax_category="S", tax_rate=21)
        )
        totals = invoice.calculate_totals()
        totals.tax_inclusive_amount  # Decimal("605.00")
        ```
    """

    model_config = ConfigDict(validate_assignment=True)

    invoice_number: Identifier = Field(description="Invoice number")
    issue_date: IsoDate = Field(description="Issue date")
    type_code: InvoiceTypeCode = Field(
        default=InvoiceTypeCode.COMMERCIAL_INVOICE,
        description="Document type code (UNCL1001)",
    )
    currency: str = Field(default="EUR", description="ISO 4217 currency code")

    due_date: IsoDate | None = Field(default=None, description="Payment due date")
    delivery_date: IsoDate | None = Field(default=None, description="Actual delivery date")
    period: InvoicePeriod | None = Field(default=None, description="Invoicing period")

    buyer_reference: str | None = Field(default=None, description="Buyer's own reference")
    purchase_order_reference: str | None = Field(default=None, description="Purchase order")
    sales_order_reference: str | None = Field(default=None, description="Seller's order reference")
    contract_reference: str | None = Field(default=None, description="Contract reference")
    project_reference: str | None = Field(default=None, description="Project reference")
    receiving_advice_reference: str | None = Field(default=None, description="Receiving advice")
    despatch_advice_reference: str | None = Field(default=None, description="Despatch advice")
    buyer_accounting_reference: str | None = Field(
        default=None,
        description="Buyer's accounting reference",
    )
    note: str | None = Field(default=None, description="Free-text invoice note")
    preceding_invoice: PrecedingInvoiceReference | None = Field(
        default=None,
        description="Preceding invoice reference",
    )

    seller: Party | None = Field(default=None, description="Seller")
    buyer: Party | None = Field(default=None, description="Buyer")
    lines: list[InvoiceLine] = Field(default_factory=list, description="Invoice lines")
    allowances_charges: list[AllowanceCharge] = Field(
        default_factory=list,
        description="Document-level allowances and charges",
    )
    payment: PaymentDetails | None = Field(default=None, description="Payment instructions")
    payment_terms: str | None = Field(default=None, description="Free-text payment terms")
    attachments: list[AttachedDocument] = Field(
        default_factory=list,
        description="Attached supporting documents",
    )
    prepaid_amount: NonNegativeMoney = Field(
        default=Decimal("0.00"),
        description="Amount already paid",
    )
    exemption_reasons: dict[TaxCategory, str] = Field(
        default_factory=dict,
        description="Exemption reason code per tax category",
    )

    _totals: DocumentTotals | None = PrivateAttr(default=None)
    _declared_totals: DeclaredTotals | None = PrivateAttr(default=None)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if v not in CURRENCY_CODES:
            raise ValueError(
                f"Unknown currency code {v!r}. Valid codes: {', '.join(sorted(CURRENCY_CODES))}"
            )
        return v

    @field_validator("exemption_reasons")
    @classmethod
    def validate_exemption_reasons(cls, v: dict[TaxCategory, str]) -> dict[TaxCategory, str]:
        for code in v.values():
            if code not in TAX_EXEMPTION_REASONS:
                raise ValueError(f"Unknown tax exemption reason {code!r}")
        return v

    @field_validator("issue_date")
    @classmethod
    def validate_issue_date(cls, v: date, info: ValidationInfo) -> date:
        due_date = info.data.get("due_date")
        if due_date is not None and due_date < v:
            raise ValueError("Issue date cannot be after the due date")
        return v

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: date | None, info: ValidationInfo) -> date | None:
        # A failed field validator leaves the stored value untouched on assignment
        issue_date = info.data.get("issue_date")
        if v is not None and issue_date is not None and v < issue_date:
            raise ValueError("Due date cannot be before the issue date")
        return v

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def add_line(self, line: InvoiceLine) -> Invoice:
        self.lines.append(line)
        return self

    def add_allowance_charge(self, allowance_charge: AllowanceCharge) -> Invoice:
        self.allowances_charges.append(allowance_charge)
        return self

    def add_allowance(
        self,
        amount: Decimal | str | int,
        tax_category: TaxCategory | str = TaxCategory.STANDARD,
        tax_rate: Decimal | str | int = Decimal("21"),
        **kwargs: Any,
    ) -> Invoice:
        return self.add_allowance_charge(
            AllowanceCharge.allowance(amount, tax_category, tax_rate, **kwargs)
        )

    def add_charge(
        self,
        amount: Decimal | str | int,
        tax_category: TaxCategory | str = TaxCategory.STANDARD,
        tax_rate: Decimal | str | int = Decimal("21"),
        **kwargs: Any,
    ) -> Invoice:
        return self.add_allowance_charge(
            AllowanceCharge.charge(amount, tax_category, tax_rate, **kwargs)
        )

    def set_seller(self, seller: Party) -> Invoice:
        self.seller = seller
        return self

    def set_buyer(self, buyer: Party) -> Invoice:
        self.buyer = buyer
        return self

    def set_payment(self, payment: PaymentDetails) -> Invoice:
        if payment.terms is None and self.payment_terms is not None:
            payment = payment.with_terms(self.payment_terms)
        self.payment = payment
        return self

    def set_payment_terms(self, terms: str) -> Invoice:
        """Record payment terms, propagating them to existing payment details."""
        self.payment_terms = terms
        if self.payment is not None:
            self.payment = self.payment.with_terms(terms)
        return self

    def set_period(self, start: date | str | None, end: date | str | None) -> Invoice:
        self.period = InvoicePeriod(start=start, end=end)
        return self

    def set_preceding_invoice(self, number: str, issue_date: date | str | None = None) -> Invoice:
        self.preceding_invoice = PrecedingInvoiceReference(number=number, issue_date=issue_date)
        return self

    def set_references(self, **references: str | None) -> Invoice:
        """Set any of the ``*_reference`` fields by short name.

        Example:
            ```python
            invoice.set_references(buyer="PO-77", contract="C-2024-3")
            ```
        """
        for name, value in references.items():
            field = f"{name}_reference"
            if field not in type(self).model_fields:
                raise ValueError(f"Unknown reference {name!r}")
            setattr(self, field, value)
        return self

    def attach_document(self, document: AttachedDocument) -> Invoice:
        self.attachments.append(document)
        return self

    def set_prepaid_amount(self, amount: Decimal | str | int) -> Invoice:
        self.prepaid_amount = amount
        return self

    def set_exemption_reason(self, code: str, category: TaxCategory | str | None = None) -> Invoice:
        """Record an exemption reason for ``category``, or for every exempt category.

        Raises:
            ValueError: If ``code`` is not a known exemption reason or
                ``category`` does not take one.
        """
        if code not in TAX_EXEMPTION_REASONS:
            raise ValueError(f"Unknown tax exemption reason {code!r}")
        if category is None:
            categories = EXEMPTION_REQUIRED_CATEGORIES
        else:
            category = TaxCategory(category)
            if category not in EXEMPTION_REQUIRED_CATEGORIES:
                raise ValueError(f"Category {category.value} does not take an exemption reason")
            categories = frozenset({category})
        self.exemption_reasons = {**self.exemption_reasons, **{c: code for c in categories}}
        return self

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    @property
    def totals(self) -> DocumentTotals | None:
        """Totals of the last :meth:`calculate_totals` call, or ``None``."""
        return self._totals

    @property
    def declared_totals(self) -> DeclaredTotals | None:
        return self._declared_totals

    def calculate_totals(self) -> DocumentTotals:
        """Recompute totals and the tax breakdown from scratch.

        Raises:
            NoLinesError: If the invoice has no lines.
        """
        self._totals = compute_totals(
            self.lines,
            self.allowances_charges,
            prepaid_amount=self.prepaid_amount,
            exemption_reasons=self.exemption_reasons,
        )
        return self._totals

    def set_imported_totals(self, declared: DeclaredTotals) -> Invoice:
        """Store the totals declared by a source document. Write-once.

        Raises:
            SnapshotAlreadySetError: If a snapshot was already stored.
        """
        if self._declared_totals is not None:
            raise SnapshotAlreadySetError(
                f"Declared totals of invoice {self.invoice_number} are already set"
            )
        self._declared_totals = declared
        return self

    def check_imported_totals(
        self,
        tolerance: Decimal | str = Decimal("0.02"),
    ) -> list[TotalsDiscrepancy]:
        """Compare the declared snapshot with the computed totals.

        Totals are computed first when they are not yet. Returns an empty
        list when no snapshot was stored.
        """
        from einvoice.importing.reconciliation import reconcile_totals

        if self._declared_totals is None:
            return []
        computed = self._totals or self.calculate_totals()
        return reconcile_totals(self._declared_totals, computed, Decimal(str(tolerance)))

    # ------------------------------------------------------------------
    # Validation and serialisation
    # ------------------------------------------------------------------

    def validate_rules(
        self,
        extra_rules: Sequence[Rule] = (),
        profile: ValidationProfile | str | None = None,
    ) -> list[str]:
        """Run the business rules and return all violations (empty if conformant).

        Args:
            extra_rules: Additional rules run after the core set.
            profile: A validation profile, or the name of a built-in one,
                whose rules are added as well.
        """
        from einvoice.validation.validator import InvoiceValidator

        return InvoiceValidator.for_profile(profile, extra_rules=extra_rules).validate(self)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view including computed and declared totals."""
        data = self.model_dump(mode="json", exclude_none=True)
        data["totals"] = self._totals.model_dump(mode="json") if self._totals else None
        if self._declared_totals is not None:
            data["declared_totals"] = self._declared_totals.model_dump(
                mode="json",
                exclude_none=True,
            )
        return data
