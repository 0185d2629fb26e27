"""Payment instructions."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from einvoice.core.constants import CREDIT_TRANSFER_MEANS, PAYMENT_MEANS_CODES
from einvoice.models.values import (
    Bic,
    Iban,
    format_structured_reference,
    is_valid_bic,
    is_valid_iban,
    is_valid_structured_reference,
)


class PaymentDetails(BaseModel):
    """Payment means, account and reference of an invoice.

    The validating constructor rejects a malformed IBAN, BIC or structured
    reference. Lenient import keeps a partner's malformed value verbatim by
    building the checked part first and then calling :meth:`with_raw_bic` or
    :meth:`with_raw_reference`; the bypassed fields are listed in
    ``raw_fields``.
    """

    model_config = ConfigDict(frozen=True)

    means_code: str = Field(default="30", description="Payment means code (UNCL4461)")
    iban: Iban | None = Field(default=None, description="Payee account IBAN")
    bic: Bic | None = Field(default=None, description="Payee bank BIC")
    reference: str | None = Field(default=None, description="Remittance reference")
    terms: str | None = Field(default=None, description="Free-text payment terms")
    structured_reference: bool = Field(
        default=False,
        description="Whether ``reference`` is a Belgian structured communication",
    )
    raw_fields: tuple[str, ...] = Field(
        default=(),
        description="Fields loaded verbatim without validation",
    )

    @field_validator("means_code")
    @classmethod
    def validate_means_code(cls, v: str) -> str:
        if v not in PAYMENT_MEANS_CODES:
            raise ValueError(
                f"Unknown payment means code {v!r}. "
                f"Valid codes: {', '.join(PAYMENT_MEANS_CODES)}"
            )
        return v

    @model_validator(mode="after")
    def validate_structured_reference(self) -> PaymentDetails:
        if (
            self.structured_reference
            and self.reference is not None
            and not is_valid_structured_reference(self.reference)
        ):
            raise ValueError(
                f"Invalid structured reference {self.reference!r}, "
                "expected +++123/4567/89012+++ with a valid modulo 97 check"
            )
        return self

    @classmethod
    def with_structured_reference(
        cls,
        reference: str,
        means_code: str = "30",
        iban: str | None = None,
        bic: str | None = None,
        terms: str | None = None,
    ) -> PaymentDetails:
        """Build payment details carrying a checked Belgian structured reference.

        Raises:
            ValidationError: If ``reference`` is not 12 digits with a valid mod-97 pair.
        """
        return cls(
            means_code=means_code,
            iban=iban,
            bic=bic,
            reference=reference,
            terms=terms,
            structured_reference=True,
        )

    def with_raw_bic(self, raw_bic: str) -> PaymentDetails:
        """Return a copy whose BIC is stored verbatim, unchecked.

        The bypass is recorded in ``raw_fields``.
        """
        return self.model_copy(
            update={"bic": raw_bic, "raw_fields": (*self.raw_fields, "bic")}
        )

    def with_raw_reference(self, raw_reference: str) -> PaymentDetails:
        """Return a copy carrying a structured reference stored verbatim, unchecked."""
        return self.model_copy(
            update={
                "reference": raw_reference,
                "structured_reference": True,
                "raw_fields": (*self.raw_fields, "reference"),
            }
        )

    @property
    def means_name(self) -> str:
        return PAYMENT_MEANS_CODES.get(self.means_code, "")

    @property
    def formatted_structured_reference(self) -> str | None:
        if self.reference is None:
            return None
        return format_structured_reference(self.reference)

    def with_terms(self, terms: str | None) -> PaymentDetails:
        return self.model_copy(update={"terms": terms})

    def validate_fields(self) -> list[str]:
        errors: list[str] = []

        if self.means_code not in PAYMENT_MEANS_CODES:
            errors.append("Invalid payment means code")
        if self.means_code in CREDIT_TRANSFER_MEANS and self.iban is None:
            errors.append("IBAN is recommended for a credit transfer")
        if self.iban is not None and not is_valid_iban(self.iban):
            errors.append("Invalid IBAN")
        if self.bic is not None and not is_valid_bic(self.bic):
            errors.append(f"Invalid BIC {self.bic!r}")
        if (
            self.structured_reference
            and self.reference is not None
            and not is_valid_structured_reference(self.reference)
        ):
            errors.append(f"Invalid structured reference {self.reference!r}")

        return errors
