"""Seller and buyer parties."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from einvoice.core.constants import ELECTRONIC_ADDRESS_SCHEMES
from einvoice.models.values import (
    CountryCode,
    Email,
    NonBlank,
    VatIdentifier,
    is_not_blank,
    is_valid_belgian_vat,
    is_valid_country_code,
    is_valid_email,
    is_valid_vat_identifier,
)


class Address(BaseModel):
    """Postal address of a party."""

    model_config = ConfigDict(frozen=True)

    street: NonBlank = Field(description="Street and number")
    city: NonBlank = Field(description="City name")
    postal_code: NonBlank = Field(description="Postal code")
    country: CountryCode = Field(description="ISO 3166-1 alpha-2 country code")
    additional_street: str | None = Field(default=None, description="Additional address line")

    def validate_fields(self) -> list[str]:
        errors: list[str] = []
        if not is_not_blank(self.street):
            errors.append("Street is required")
        if not is_not_blank(self.city):
            errors.append("City is required")
        if not is_not_blank(self.postal_code):
            errors.append("Postal code is required")
        if not is_valid_country_code(self.country):
            errors.append("Invalid country code")
        return errors


class ElectronicAddress(BaseModel):
    """Electronic routing address (scheme from ISO 6523 ICD + identifier)."""

    model_config = ConfigDict(frozen=True)

    scheme: str = Field(description="ISO 6523 ICD scheme identifier")
    identifier: NonBlank = Field(description="Identifier within the scheme")

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        if v not in ELECTRONIC_ADDRESS_SCHEMES:
            raise ValueError(
                f"Unknown electronic address scheme {v!r}. "
                f"Valid schemes: {', '.join(ELECTRONIC_ADDRESS_SCHEMES)}"
            )
        return v

    @classmethod
    def from_vat(cls, vat_number: str) -> ElectronicAddress:
        return cls(scheme="9925", identifier=vat_number)

    @classmethod
    def belgian_enterprise(cls, enterprise_number: str) -> ElectronicAddress:
        return cls(scheme="0208", identifier=enterprise_number)

    @classmethod
    def gln(cls, gln_number: str) -> ElectronicAddress:
        return cls(scheme="0088", identifier=gln_number)

    @property
    def scheme_name(self) -> str:
        return ELECTRONIC_ADDRESS_SCHEMES.get(self.scheme, "Unknown")

    def validate_fields(self) -> list[str]:
        errors: list[str] = []
        if self.scheme not in ELECTRONIC_ADDRESS_SCHEMES:
            errors.append("Invalid electronic address scheme")
        if not is_not_blank(self.identifier):
            errors.append("Electronic identifier is empty")
        return errors

    def __str__(self) -> str:
        return f"{self.identifier} ({self.scheme_name})"


class Party(BaseModel):
    """A seller or buyer.

    Example:
        ```python
        seller = Party(
            name="Acme SPRL",
            address=Address(street="Rue de la Loi 1", city="Bruxelles",
                            postal_code="1000", country="BE"),
            vat_id="BE0477472701",
        )
        ```
    """

    model_config = ConfigDict(frozen=True)

    name: NonBlank = Field(description="Legal or trading name")
    address: Address = Field(description="Postal address")
    vat_id: VatIdentifier | None = Field(default=None, description="VAT identifier")
    company_id: str | None = Field(default=None, description="Legal registration identifier")
    email: Email | None = Field(default=None, description="Contact email")
    electronic_address: ElectronicAddress | None = Field(
        default=None,
        description="Electronic routing address",
    )
    telephone: str | None = Field(default=None, description="Contact telephone")

    @property
    def is_belgian_seller(self) -> bool:
        return self.address.country == "BE" and is_valid_belgian_vat(self.vat_id)

    def validate_fields(
        self,
        require_vat: bool = False,
        require_electronic_address: bool = False,
    ) -> list[str]:
        """Return the party's violations, nested ones prefixed by their block.

        Args:
            require_vat: Report a missing VAT identifier.
            require_electronic_address: Report a missing electronic address.

        Returns:
            List of violation messages (empty if valid).
        """
        errors: list[str] = []

        if not is_not_blank(self.name):
            errors.append("Name is required")

        errors.extend(f"Address: {e}" for e in self.address.validate_fields())

        if require_vat and not self.vat_id:
            errors.append("VAT identifier is required")
        if self.vat_id is not None and not is_valid_vat_identifier(self.vat_id):
            errors.append("Invalid VAT identifier")
        if self.email is not None and not is_valid_email(self.email):
            errors.append("Invalid email address")

        if require_electronic_address and self.electronic_address is None:
            errors.append("Electronic address is required")
        if self.electronic_address is not None:
            errors.extend(
                f"Electronic address: {e}" for e in self.electronic_address.validate_fields()
            )

        return errors
