"""Plain-mapping view of an invoice, and YAML/JSON reading and writing.

The mapping produced by :func:`invoice_to_document` is exactly what
:class:`~einvoice.importing.importer.InvoiceImporter` reads, so exporting an
invoice and importing the result gives back the same invoice. Amounts are
written as strings to keep their exact decimal value; dates use YYYY-MM-DD.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from einvoice.core.exceptions import DocumentFormatError
from einvoice.models.allowance import AllowanceCharge
from einvoice.models.attachment import AttachedDocument
from einvoice.models.invoice import Invoice
from einvoice.models.line import InvoiceLine
from einvoice.models.party import Party

REFERENCE_KEYS: tuple[str, ...] = (
    "buyer",
    "purchase_order",
    "sales_order",
    "contract",
    "project",
    "receiving_advice",
    "despatch_advice",
    "buyer_accounting",
)


def _money(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None and value != {}}


def allowance_charge_to_document(ac: AllowanceCharge) -> dict[str, Any]:
    return _compact(
        {
            "charge": ac.charge_indicator,
            "amount": _money(ac.amount),
            "tax_category": ac.tax_category.value,
            "tax_rate": str(ac.tax_rate),
            "base_amount": _money(ac.base_amount),
            "percentage": None if ac.percentage is None else str(ac.percentage),
            "reason_code": ac.reason_code,
            "reason": ac.reason,
        }
    )


def line_to_document(line: InvoiceLine) -> dict[str, Any]:
    data = _compact(
        {
            "id": line.id,
            "name": line.name,
            "description": line.description,
            "quantity": str(line.quantity),
            "unit_code": line.unit_code,
            "unit_price": str(line.unit_price),
            "tax_category": line.tax_category.value,
            "tax_rate": str(line.tax_rate),
        }
    )
    if line.allowances_charges:
        data["allowances_charges"] = [
            allowance_charge_to_document(ac) for ac in line.allowances_charges
        ]
    return data


def party_to_document(party: Party) -> dict[str, Any]:
    address = party.address
    data = _compact(
        {
            "name": party.name,
            "vat_id": party.vat_id,
            "company_id": party.company_id,
            "email": party.email,
            "telephone": party.telephone,
        }
    )
    if party.electronic_address is not None:
        data["electronic_address"] = {
            "scheme": party.electronic_address.scheme,
            "identifier": party.electronic_address.identifier,
        }
    data["address"] = _compact(
        {
            "street": address.street,
            "additional_street": address.additional_street,
            "city": address.city,
            "postal_code": address.postal_code,
            "country": address.country,
        }
    )
    return data


def attachment_to_document(document: AttachedDocument) -> dict[str, Any]:
    return _compact(
        {
            "filename": document.filename,
            "mime_type": document.mime_type,
            "content": document.base64_content,
            "description": document.description,
            "document_type": document.document_type,
        }
    )


def invoice_to_document(invoice: Invoice) -> dict[str, Any]:
    """Build the plain mapping of ``invoice``.

    When totals have been computed they are written under ``totals`` and
    become the declared totals of a later import.
    """
    data: dict[str, Any] = {
        "invoice_number": invoice.invoice_number,
        "issue_date": invoice.issue_date.isoformat(),
        "type_code": invoice.type_code.value,
        "currency": invoice.currency,
    }
    if invoice.due_date is not None:
        data["due_date"] = invoice.due_date.isoformat()
    if invoice.delivery_date is not None:
        data["delivery_date"] = invoice.delivery_date.isoformat()
    if invoice.period is not None:
        data["period"] = _compact(
            {
                "start": invoice.period.start.isoformat() if invoice.period.start else None,
                "end": invoice.period.end.isoformat() if invoice.period.end else None,
            }
        )

    references = _compact({key: getattr(invoice, f"{key}_reference") for key in REFERENCE_KEYS})
    if references:
        data["references"] = references
    if invoice.preceding_invoice is not None:
        preceding = invoice.preceding_invoice
        data["preceding_invoice"] = _compact(
            {
                "number": preceding.number,
                "issue_date": preceding.issue_date.isoformat() if preceding.issue_date else None,
            }
        )
    if invoice.note is not None:
        data["note"] = invoice.note

    if invoice.seller is not None:
        data["seller"] = party_to_document(invoice.seller)
    if invoice.buyer is not None:
        data["buyer"] = party_to_document(invoice.buyer)

    if invoice.payment is not None:
        payment = invoice.payment
        data["payment"] = _compact(
            {
                "means_code": payment.means_code,
                "iban": payment.iban,
                "bic": payment.bic,
                "reference": payment.reference,
                "structured_reference": payment.structured_reference or None,
                "terms": payment.terms,
            }
        )
    if invoice.payment_terms is not None:
        data["payment_terms"] = invoice.payment_terms

    if invoice.attachments:
        data["attachments"] = [attachment_to_document(d) for d in invoice.attachments]

    data["lines"] = [line_to_document(line) for line in invoice.lines]
    if invoice.allowances_charges:
        data["allowances_charges"] = [
            allowance_charge_to_document(ac) for ac in invoice.allowances_charges
        ]
    if invoice.prepaid_amount:
        data["prepaid_amount"] = _money(invoice.prepaid_amount)
    if invoice.exemption_reasons:
        data["exemption_reasons"] = {
            category.value: code for category, code in invoice.exemption_reasons.items()
        }

    totals = invoice.totals
    if totals is not None:
        data["totals"] = {
            "line_extension": _money(totals.sum_of_line_net_amounts),
            "tax_exclusive": _money(totals.tax_exclusive_amount),
            "tax_inclusive": _money(totals.tax_inclusive_amount),
            "prepaid": _money(totals.prepaid_amount),
            "payable": _money(totals.payable_amount),
            "tax_amount": _money(totals.total_tax_amount),
        }

    return data


def dump_json(invoice: Invoice, path: str | Path | None = None, indent: int = 2) -> str:
    """Serialize ``invoice`` as a JSON document, optionally writing it to ``path``."""
    json_str = json.dumps(invoice_to_document(invoice), indent=indent)
    if path:
        Path(path).write_text(json_str)
    return json_str


def dump_yaml(invoice: Invoice, path: str | Path | None = None) -> str:
    """Serialize ``invoice`` as a YAML document, optionally writing it to ``path``."""
    yaml_str: str = yaml.dump(
        invoice_to_document(invoice),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    if path:
        Path(path).write_text(yaml_str)
    return yaml_str


def _names_file(source: str) -> bool:
    if "\n" in source:
        return False
    try:
        return Path(source).is_file()
    except OSError:
        # Too long to be a path name
        return False


def _read_source(source: str | Path) -> str:
    if isinstance(source, Path) or _names_file(source):
        try:
            return Path(source).read_text()
        except OSError as e:
            raise DocumentFormatError(f"Cannot read document {source}: {e}", cause=e) from e
    return source


def load_json(source: str | Path) -> dict[str, Any]:
    """Read a JSON document from a file path or string.

    Raises:
        DocumentFormatError: If the content is not valid JSON.
    """
    try:
        return json.loads(_read_source(source))
    except json.JSONDecodeError as e:
        raise DocumentFormatError(f"Invalid JSON document: {e}", cause=e) from e


def load_yaml(source: str | Path) -> dict[str, Any]:
    """Read a YAML document from a file path or string.

    Raises:
        DocumentFormatError: If the content is not valid YAML.
    """
    try:
        return yaml.safe_load(_read_source(source))
    except yaml.YAMLError as e:
        raise DocumentFormatError(f"Invalid YAML document: {e}", cause=e) from e
