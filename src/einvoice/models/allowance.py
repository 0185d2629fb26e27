"""Document- and line-level allowances (discounts) and charges (surcharges)."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from einvoice.core.constants import ALLOWANCE_REASON_CODES, CHARGE_REASON_CODES, TaxCategory
from einvoice.models.values import NonNegativeMoney, Percent, category_rate_error, round_money

PERCENTAGE_TOLERANCE = Decimal("0.01")


class AllowanceCharge(BaseModel):
    """A discount or surcharge with its own tax category and rate.

    Direction is carried by ``charge_indicator``; ``amount`` is never negative.
    When both ``base_amount`` and ``percentage`` are given, ``amount`` must
    equal ``base_amount * percentage / 100`` within one cent. That check is
    reported by :meth:`validate_fields`, never silently corrected.

    Example:
        ```python
        discount = AllowanceCharge.allowance("50.00", tax_rate="21", reason="Loyalty")
        freight = AllowanceCharge.charge("15.00", tax_rate="21", reason_code="FC")
        ```
    """

    model_config = ConfigDict(frozen=True)

    charge_indicator: bool = Field(description="True for a charge, False for an allowance")
    amount: NonNegativeMoney = Field(description="Adjustment amount, always non-negative")
    tax_category: TaxCategory = Field(
        default=TaxCategory.STANDARD,
        description="Tax category of the adjustment",
    )
    tax_rate: Percent = Field(default=Decimal("0"), description="Tax rate in percent")
    base_amount: NonNegativeMoney | None = Field(
        default=None,
        description="Base the percentage applies to",
    )
    percentage: Percent | None = Field(
        default=None,
        description="Percentage of the base",
    )
    reason_code: str | None = Field(default=None, description="UNCL5189 or UNCL7161 reason code")
    reason: str | None = Field(default=None, description="Free-text reason")

    @classmethod
    def allowance(
        cls,
        amount: Decimal | str | int,
        tax_category: TaxCategory | str = TaxCategory.STANDARD,
        tax_rate: Decimal | str | int = Decimal("21"),
        **kwargs,
    ) -> AllowanceCharge:
        return cls(
            charge_indicator=False,
            amount=amount,
            tax_category=tax_category,
            tax_rate=tax_rate,
            **kwargs,
        )

    @classmethod
    def charge(
        cls,
        amount: Decimal | str | int,
        tax_category: TaxCategory | str = TaxCategory.STANDARD,
        tax_rate: Decimal | str | int = Decimal("21"),
        **kwargs,
    ) -> AllowanceCharge:
        return cls(
            charge_indicator=True,
            amount=amount,
            tax_category=tax_category,
            tax_rate=tax_rate,
            **kwargs,
        )

    @classmethod
    def from_percentage(
        cls,
        base_amount: Decimal | str | int,
        percentage: Decimal | str | int,
        charge: bool = False,
        tax_category: TaxCategory | str = TaxCategory.STANDARD,
        tax_rate: Decimal | str | int = Decimal("21"),
        **kwargs,
    ) -> AllowanceCharge:
        """Derive the amount as ``base_amount * percentage / 100``, rounded to cents."""
        base = Decimal(str(base_amount))
        pct = Decimal(str(percentage))
        return cls(
            charge_indicator=charge,
            amount=round_money(base * pct / 100),
            tax_category=tax_category,
            tax_rate=tax_rate,
            base_amount=base,
            percentage=pct,
            **kwargs,
        )

    @property
    def is_allowance(self) -> bool:
        return not self.charge_indicator

    @property
    def is_charge(self) -> bool:
        return self.charge_indicator

    @property
    def tax_amount(self) -> Decimal:
        return round_money(self.amount * self.tax_rate / 100)

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it affects a total: negative for allowances."""
        return self.amount if self.charge_indicator else -self.amount

    @property
    def reason_description(self) -> str | None:
        if self.reason_code is None:
            return self.reason
        codes = CHARGE_REASON_CODES if self.charge_indicator else ALLOWANCE_REASON_CODES
        return codes.get(self.reason_code, self.reason)

    def validate_fields(self) -> list[str]:
        errors: list[str] = []

        if self.amount < 0:
            errors.append("Amount cannot be negative")

        rate_error = category_rate_error(self.tax_category, self.tax_rate)
        if rate_error:
            errors.append(rate_error)

        if self.percentage is not None and self.base_amount is None:
            errors.append("Base amount is required when a percentage is given")

        if self.percentage is not None and self.base_amount is not None:
            expected = round_money(self.base_amount * self.percentage / 100)
            if abs(expected - self.amount) > PERCENTAGE_TOLERANCE:
                errors.append(
                    f"Amount inconsistent with base x percentage: "
                    f"{self.base_amount} x {self.percentage}% = {expected} != {self.amount}"
                )

        if self.reason_code is not None:
            codes = CHARGE_REASON_CODES if self.charge_indicator else ALLOWANCE_REASON_CODES
            if self.reason_code not in codes:
                errors.append(f"Unknown reason code {self.reason_code!r}")

        return errors
