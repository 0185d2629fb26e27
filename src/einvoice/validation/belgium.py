"""Extra rules for the Belgian UBL.BE profile."""

from __future__ import annotations

from einvoice.core.constants import BELGIAN_VAT_RATES, TaxCategory
from einvoice.models.invoice import Invoice
from einvoice.models.values import is_valid_belgian_vat
from einvoice.validation.rules import Rule

MIN_ATTACHMENTS = 2


def _has_belgian_seller(invoice: Invoice) -> bool:
    return invoice.seller is not None and invoice.seller.address.country == "BE"


def check_payment_due(invoice: Invoice) -> list[str]:
    """BR-CO-25: a due date or payment terms when an amount is payable."""
    totals = invoice.totals
    if totals is None or totals.payable_amount <= 0:
        return []
    terms = invoice.payment_terms or (invoice.payment.terms if invoice.payment else None)
    if invoice.due_date is None and not terms:
        return ["BR-CO-25: A due date or payment terms are required when an amount is payable"]
    return []


def check_buyer_reference(invoice: Invoice) -> list[str]:
    if not invoice.buyer_reference and not invoice.purchase_order_reference:
        return ["UBL-BE: A buyer reference or purchase order reference is required"]
    return []


def check_electronic_addresses(invoice: Invoice) -> list[str]:
    errors: list[str] = []
    if invoice.seller is not None and invoice.seller.electronic_address is None:
        errors.append("UBL-BE: Seller electronic address is required")
    if invoice.buyer is not None and invoice.buyer.electronic_address is None:
        errors.append("UBL-BE: Buyer electronic address is required")
    return errors


def check_attachment_count(invoice: Invoice) -> list[str]:
    """UBL-BE-01: at least two attached documents."""
    if len(invoice.attachments) < MIN_ATTACHMENTS:
        return [f"UBL-BE-01: At least {MIN_ATTACHMENTS} attached documents are required"]
    return []


def check_belgian_rates(invoice: Invoice) -> list[str]:
    if not _has_belgian_seller(invoice):
        return []
    allowed = ", ".join(f"{rate}%" for rate in sorted(BELGIAN_VAT_RATES, reverse=True))
    errors: list[str] = []
    for index, line in enumerate(invoice.lines, start=1):
        if line.tax_category == TaxCategory.STANDARD and line.tax_rate not in BELGIAN_VAT_RATES:
            errors.append(
                f"Line {index}: Tax rate {line.tax_rate}% is not a Belgian rate ({allowed})"
            )
    return errors


def check_belgian_vat_number(invoice: Invoice) -> list[str]:
    if not _has_belgian_seller(invoice):
        return []
    if not is_valid_belgian_vat(invoice.seller.vat_id):  # type: ignore[union-attr]
        return ["UBL-BE: Seller VAT number is not a valid Belgian number (BE + 10 digits, modulo 97)"]
    return []


def check_exemption_reasons(invoice: Invoice) -> list[str]:
    if invoice.totals is None:
        return []
    return [
        f"UBL-BE: Exemption reason is required for category {entry.category.value}"
        for entry in invoice.totals.breakdown
        if entry.requires_exemption_reason and entry.category not in invoice.exemption_reasons
    ]


BELGIAN_RULES: tuple[Rule, ...] = (
    check_payment_due,
    check_buyer_reference,
    check_electronic_addresses,
    check_attachment_count,
    check_belgian_rates,
    check_belgian_vat_number,
    check_exemption_reasons,
)
