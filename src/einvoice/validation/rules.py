"""Core business rules.

A rule is any callable taking an :class:`Invoice` and returning a list of
violation messages. Rules never raise for a non-conforming invoice and never
modify it; they only read its public state, including the totals of the last
aggregation pass.
"""

from __future__ import annotations

from collections.abc import Callable

from einvoice.core.constants import CURRENCY_CODES, InvoiceTypeCode
from einvoice.models.invoice import Invoice
from einvoice.models.values import is_valid_identifier

Rule = Callable[[Invoice], list[str]]


def _prefixed(prefix: str, messages: list[str]) -> list[str]:
    return [f"{prefix}: {m}" for m in messages]


def check_header(invoice: Invoice) -> list[str]:
    """BR-01 to BR-04: number, issue date, type code and currency."""
    errors: list[str] = []
    if not is_valid_identifier(invoice.invoice_number):
        errors.append("BR-01: Invoice number is required and must not contain reserved characters")
    if invoice.issue_date is None:
        errors.append("BR-02: Issue date is required")
    if invoice.type_code not in set(InvoiceTypeCode):
        errors.append("BR-03: Invalid invoice type code")
    if invoice.currency not in CURRENCY_CODES:
        errors.append("BR-04: Invalid currency code")
    return errors


def check_seller(invoice: Invoice) -> list[str]:
    """BR-06: a seller is present and valid."""
    if invoice.seller is None:
        return ["BR-06: Seller is required"]
    return _prefixed("Seller", invoice.seller.validate_fields())


def check_buyer(invoice: Invoice) -> list[str]:
    """BR-08: a buyer is present and valid."""
    if invoice.buyer is None:
        return ["BR-08: Buyer is required"]
    return _prefixed("Buyer", invoice.buyer.validate_fields())


def check_lines(invoice: Invoice) -> list[str]:
    """BR-16: at least one line, each line valid."""
    if not invoice.lines:
        return ["BR-16: At least one invoice line is required"]
    errors: list[str] = []
    for index, line in enumerate(invoice.lines, start=1):
        errors.extend(_prefixed(f"Line {index}", line.validate_fields()))
    return errors


def check_allowances_charges(invoice: Invoice) -> list[str]:
    errors: list[str] = []
    for index, ac in enumerate(invoice.allowances_charges, start=1):
        label = "Charge" if ac.is_charge else "Allowance"
        errors.extend(_prefixed(f"{label} {index}", ac.validate_fields()))
    return errors


def check_totals_computed(invoice: Invoice) -> list[str]:
    """BR-CO-13: totals exist for an invoice with lines."""
    if not invoice.lines:
        return []
    totals = invoice.totals
    if totals is None or totals.tax_exclusive_amount == 0:
        return ["BR-CO-13: Invoice totals have not been calculated"]
    return []


def check_payment(invoice: Invoice) -> list[str]:
    if invoice.payment is None:
        return []
    return _prefixed("Payment", invoice.payment.validate_fields())


def check_attachments(invoice: Invoice) -> list[str]:
    errors: list[str] = []
    for index, document in enumerate(invoice.attachments, start=1):
        errors.extend(_prefixed(f"Attachment {index}", document.validate_fields()))
    return errors


def check_tax_breakdown(invoice: Invoice) -> list[str]:
    if invoice.totals is None:
        return []
    errors: list[str] = []
    for entry in invoice.totals.breakdown:
        label = f"Tax {entry.category.value} {entry.rate}%"
        errors.extend(_prefixed(label, entry.validate_fields()))
    return errors


CORE_RULES: tuple[Rule, ...] = (
    check_header,
    check_seller,
    check_buyer,
    check_lines,
    check_allowances_charges,
    check_totals_computed,
    check_payment,
    check_attachments,
    check_tax_breakdown,
)
