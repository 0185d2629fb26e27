"""Invoice lines."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from einvoice.core.constants import UNIT_CODES, TaxCategory
from einvoice.models.allowance import AllowanceCharge
from einvoice.models.values import NonBlank, Percent, category_rate_error, is_not_blank, round_money


class InvoiceLine(BaseModel):
    """One priced line of goods or services.

    Core fields are immutable once constructed. Line-level allowances and
    charges are appended with :meth:`add_allowance_charge`, which recomputes
    :attr:`net_amount` and :attr:`tax_amount`:

        net = round(quantity * unit_price - allowances + charges)
        tax = round(net * tax_rate / 100)

    Example:
        ```python
        line = InvoiceLine(
            id="1",
            name="Consulting",
            quantity="5",
            unit_code="HUR",
            unit_price="100.00",
            tax_category="S",
            tax_rate="21",
        )
        line.net_amount  # Decimal("500.00")
        ```
    """

    model_config = ConfigDict(frozen=True)

    id: NonBlank = Field(description="Line identifier, unique within the invoice")
    name: NonBlank = Field(description="Item name")
    quantity: Decimal = Field(gt=0, description="Invoiced quantity")
    unit_code: str = Field(default="C62", description="UN/ECE Rec 20 unit of measure")
    unit_price: Decimal = Field(ge=0, description="Net price per unit")
    tax_category: TaxCategory = Field(description="Tax category of the line")
    tax_rate: Percent = Field(description="Tax rate in percent")
    description: str | None = Field(default=None, description="Item description")
    allowances_charges: list[AllowanceCharge] = Field(
        default_factory=list,
        description="Line-level allowances and charges",
    )
    raw_fields: tuple[str, ...] = Field(
        default=(),
        description="Fields loaded verbatim without validation",
    )

    _net_amount: Decimal = PrivateAttr(default=Decimal("0.00"))
    _tax_amount: Decimal = PrivateAttr(default=Decimal("0.00"))

    @field_validator("unit_code")
    @classmethod
    def validate_unit_code(cls, v: str) -> str:
        if v not in UNIT_CODES:
            raise ValueError(
                f"Unknown unit code {v!r}. Valid codes: {', '.join(UNIT_CODES)}"
            )
        return v

    @model_validator(mode="after")
    def validate_tax_rate(self) -> InvoiceLine:
        error = category_rate_error(self.tax_category, self.tax_rate)
        if error:
            raise ValueError(error)
        return self

    def model_post_init(self, __context: object) -> None:
        self._recalculate()

    def with_raw_unit_code(self, raw_unit_code: str) -> InvoiceLine:
        """Return a copy whose unit code is stored verbatim, unchecked.

        Build the line with a valid unit code first so that every other
        field is validated. ``raw_fields`` records the bypass.
        """
        return self.model_copy(
            update={
                "unit_code": raw_unit_code,
                "raw_fields": (*self.raw_fields, "unit_code"),
            },
            deep=True,
        )

    def _recalculate(self) -> None:
        gross = self.quantity * self.unit_price
        adjustments = sum((ac.signed_amount for ac in self.allowances_charges), Decimal("0"))
        self._net_amount = round_money(gross + adjustments)
        self._tax_amount = round_money(self._net_amount * self.tax_rate / 100)

    def add_allowance_charge(self, allowance_charge: AllowanceCharge) -> InvoiceLine:
        """Append a line-level adjustment and recompute the line amounts."""
        self.allowances_charges.append(allowance_charge)
        self._recalculate()
        return self

    def extend_allowances_charges(self, items: Iterable[AllowanceCharge]) -> InvoiceLine:
        for item in items:
            self.add_allowance_charge(item)
        return self

    @property
    def gross_amount(self) -> Decimal:
        """Quantity times unit price, before line adjustments."""
        return round_money(self.quantity * self.unit_price)

    @property
    def net_amount(self) -> Decimal:
        return self._net_amount

    @property
    def tax_amount(self) -> Decimal:
        return self._tax_amount

    @property
    def tax_key(self) -> tuple[TaxCategory, Decimal]:
        return (self.tax_category, self.tax_rate)

    def validate_fields(self, allowed_rates: Iterable[Decimal] | None = None) -> list[str]:
        """Return the line's violations, adjustment ones prefixed by their position.

        Args:
            allowed_rates: Standard-category rates permitted by a jurisdiction.
        """
        errors: list[str] = []

        if not is_not_blank(self.id):
            errors.append("Line identifier is required")
        if not is_not_blank(self.name):
            errors.append("Item name is required")
        if self.quantity <= 0:
            errors.append("Quantity must be greater than 0")
        if self.unit_code not in UNIT_CODES:
            errors.append(f"Invalid unit code {self.unit_code!r}")
        if self.unit_price < 0:
            errors.append("Unit price cannot be negative")

        rate_error = category_rate_error(self.tax_category, self.tax_rate)
        if rate_error:
            errors.append(rate_error)

        if allowed_rates is not None and self.tax_category == TaxCategory.STANDARD:
            if self.tax_rate not in set(allowed_rates):
                errors.append(f"Tax rate {self.tax_rate}% is not allowed for this country")

        for index, ac in enumerate(self.allowances_charges, start=1):
            kind = "Charge" if ac.is_charge else "Allowance"
            errors.extend(f"{kind} {index}: {e}" for e in ac.validate_fields())

        return errors
