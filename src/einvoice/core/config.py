"""Configuration classes for import and reconciliation."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from einvoice.core.constants import CURRENCY_CODES

DEFAULT_TOLERANCE = Decimal("0.02")


class ImportConfig(BaseModel):
    """Configuration for importing externally authored invoice documents."""

    strict: bool = Field(
        default=True,
        description="Abort on the first inconsistent field instead of recording it",
    )

    # Reconciliation settings
    tolerance: Decimal = Field(
        default=DEFAULT_TOLERANCE,
        ge=0,
        description="Largest accepted gap between declared and recomputed totals",
    )
    currency_tolerances: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Per-currency tolerance overrides, keyed by ISO 4217 code",
    )

    @field_validator("currency_tolerances")
    @classmethod
    def validate_currency_tolerances(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Only known currencies with non-negative tolerances are accepted."""
        for code, value in v.items():
            if code not in CURRENCY_CODES:
                raise ValueError(f"Unknown currency code in tolerances: {code}")
            if value < 0:
                raise ValueError(f"Tolerance for {code} must be non-negative")
        return v

    def tolerance_for(self, currency: str) -> Decimal:
        """Return the reconciliation tolerance that applies to ``currency``."""
        return self.currency_tolerances.get(currency, self.tolerance)
