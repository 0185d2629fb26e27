"""Self-validating scalar types used across the invoice model.

Each type is an ``Annotated`` alias so that pydantic runs the check whenever a
model field of that type is assigned. The plain ``is_valid_*`` predicates are
shared with the business-rule validator, which reports instead of raising.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, Field

from einvoice.core.constants import ZERO_RATE_CATEGORIES, TaxCategory

CENT = Decimal("0.01")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_COUNTRY_RE = re.compile(r"^[A-Z]{2}$")
_VAT_RE = re.compile(r"^[A-Z]{2}[A-Z0-9]{2,12}$")
_BELGIAN_VAT_RE = re.compile(r"^BE[0-9]{10}$")
_IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{1,30}$")
_BIC_RE = re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_FORBIDDEN_ID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f<>&\"']")


def round_money(value: Decimal) -> Decimal:
    """Round ``value`` to cents, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_not_blank(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def is_valid_identifier(value: str | None) -> bool:
    """Non-blank and free of XML-hostile characters."""
    return is_not_blank(value) and not _FORBIDDEN_ID_CHARS.search(value or "")


def is_valid_country_code(value: str | None) -> bool:
    return value is not None and bool(_COUNTRY_RE.match(value.upper()))


def normalize_vat(value: str) -> str:
    return value.replace(" ", "").replace(".", "").upper()


def is_valid_vat_identifier(value: str | None) -> bool:
    """Generic European VAT number shape: country prefix + 2-12 alphanumerics."""
    return value is not None and bool(_VAT_RE.match(normalize_vat(value)))


def is_valid_belgian_vat(value: str | None) -> bool:
    """Belgian VAT number: ``BE`` + 10 digits with a modulo-97 check pair."""
    if value is None:
        return False
    vat = normalize_vat(value)
    if not _BELGIAN_VAT_RE.match(vat):
        return False
    digits = vat[2:]
    return 97 - (int(digits[:8]) % 97) == int(digits[8:])


def normalize_iban(value: str) -> str:
    return value.replace(" ", "").upper()


def is_valid_iban(value: str | None) -> bool:
    """IBAN shape and ISO 13616 modulo-97 checksum."""
    if value is None:
        return False
    iban = normalize_iban(value)
    if not _IBAN_RE.match(iban):
        return False
    rearranged = iban[4:] + iban[:4]
    numeric = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(numeric) % 97 == 1


def is_valid_bic(value: str | None) -> bool:
    return value is not None and bool(_BIC_RE.match(value.upper()))


def strip_structured_reference(value: str) -> str:
    return value.replace("+", "").replace("/", "").replace(" ", "")


def is_valid_structured_reference(value: str | None) -> bool:
    """Belgian structured communication, e.g. ``+++123/4567/89002+++``."""
    if value is None:
        return False
    ref = strip_structured_reference(value)
    if len(ref) != 12 or not ref.isdigit():
        return False
    check = int(ref[:10]) % 97 or 97
    return check == int(ref[10:])


def format_structured_reference(value: str) -> str:
    """Render a 12-digit reference as ``+++ddd/dddd/ddddd+++``."""
    ref = strip_structured_reference(value)
    if len(ref) != 12:
        return value
    return f"+++{ref[:3]}/{ref[3:7]}/{ref[7:]}+++"


def is_valid_email(value: str | None) -> bool:
    return value is not None and bool(_EMAIL_RE.match(value))


# ---------------------------------------------------------------------------
# Annotated field types
# ---------------------------------------------------------------------------


def _check(predicate: Any, message: str) -> Any:
    def validator(value: str) -> str:
        if not predicate(value):
            raise ValueError(f"{message}: {value!r}")
        return value

    return validator


def _iso_date_string(value: Any) -> Any:
    if isinstance(value, str) and not _DATE_RE.match(value):
        raise ValueError(f"Date must use the YYYY-MM-DD format: {value!r}")
    return value


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def _normalized_vat(value: Any) -> Any:
    return normalize_vat(value) if isinstance(value, str) else value


def _normalized_iban(value: Any) -> Any:
    return normalize_iban(value) if isinstance(value, str) else value


IsoDate = Annotated[date, BeforeValidator(_iso_date_string)]
Identifier = Annotated[str, AfterValidator(_check(is_valid_identifier, "Invalid identifier"))]
NonBlank = Annotated[str, AfterValidator(_check(is_not_blank, "Value cannot be blank"))]
CountryCode = Annotated[
    str,
    BeforeValidator(_upper),
    AfterValidator(_check(is_valid_country_code, "Invalid ISO 3166-1 alpha-2 country code")),
]
VatIdentifier = Annotated[
    str,
    BeforeValidator(_normalized_vat),
    AfterValidator(_check(is_valid_vat_identifier, "Invalid VAT identifier")),
]
Iban = Annotated[
    str,
    BeforeValidator(_normalized_iban),
    AfterValidator(_check(is_valid_iban, "Invalid IBAN")),
]
Bic = Annotated[
    str,
    BeforeValidator(_upper),
    AfterValidator(_check(is_valid_bic, "Invalid BIC")),
]
StructuredReference = Annotated[
    str,
    AfterValidator(_check(is_valid_structured_reference, "Invalid structured reference")),
]
Email = Annotated[str, AfterValidator(_check(is_valid_email, "Invalid email address"))]
Money = Annotated[Decimal, AfterValidator(round_money)]
NonNegativeMoney = Annotated[Decimal, Field(ge=0), AfterValidator(round_money)]
Percent = Annotated[Decimal, Field(ge=0, le=100)]


def category_rate_error(category: TaxCategory, rate: Decimal) -> str | None:
    """Describe why ``rate`` is not allowed for ``category``, or return None."""
    if category == TaxCategory.STANDARD and rate <= 0:
        return "Tax rate must be greater than 0 for the standard category (S)"
    if category in ZERO_RATE_CATEGORIES and rate != 0:
        return f"Tax rate must be 0 for category {category.value}"
    return None
