"""Import of externally authored invoice documents, strict or lenient.

Strict mode aborts on the first inconsistent field with an
:class:`InvoiceImportError`; no partial invoice is returned. Lenient mode
records each inconsistency as an anomaly and loads the best-effort value:
a malformed BIC, structured reference or unit code is kept verbatim through
the models' raw-value builders, and any other unusable block is skipped.

In both modes the totals declared by the document are stored as the
invoice's write-once snapshot and totals are recomputed from the loaded
lines and adjustments. Lenient mode then reconciles the two; a strict
import never fails on totals drift, which callers can still inspect with
:meth:`Invoice.check_imported_totals`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from einvoice.core.config import ImportConfig
from einvoice.core.exceptions import DocumentFormatError, InvoiceImportError
from einvoice.importing.document import REFERENCE_KEYS, load_json, load_yaml
from einvoice.importing.reconciliation import reconcile_totals
from einvoice.importing.results import AnomalyCollector, ImportResult, ImportStatus
from einvoice.models.allowance import AllowanceCharge
from einvoice.models.attachment import AttachedDocument
from einvoice.models.invoice import Invoice, InvoicePeriod, PrecedingInvoiceReference
from einvoice.models.line import InvoiceLine
from einvoice.models.party import Address, ElectronicAddress, Party
from einvoice.models.payment import PaymentDetails
from einvoice.models.totals import DeclaredTotals
from einvoice.models.values import is_valid_bic, is_valid_structured_reference

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET = object()


def _describe(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" if e["loc"] else e["msg"]
            for e in error.errors()
        )
    return str(error)


def _text(value: Any) -> str | None:
    """Scalars from YAML may arrive as numbers or dates; ids are text."""
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _mapping(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{field} must be a mapping")
    return value


class _ImportSession:
    """State of one import call: mode and the anomalies found so far."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.collector = AnomalyCollector()

    def fail(self, field: str, error: Exception | str, raw_value: object = None) -> None:
        """Abort in strict mode, record an anomaly in lenient mode."""
        message = error if isinstance(error, str) else _describe(error)
        if self.strict:
            logger.error("Strict import aborted on %s: %s", field, message)
            raise InvoiceImportError(
                f"{field}: {message}",
                field=field,
                cause=error if isinstance(error, Exception) else None,
            )
        self.collector.add(field, message, raw_value)

    def attempt(self, field: str, build: Callable[[], T]) -> T | None:
        """Run ``build``; on a construction error, fail for ``field``."""
        try:
            return build()
        except (ValidationError, ValueError, TypeError) as e:
            self.fail(field, e)
            return None

    def items(self, field: str, value: Any) -> list[Any]:
        """Entries of a list block; anything else fails for ``field``."""
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            self.fail(field, f"{field} must be a list", value)
            return []
        return list(value)


class InvoiceImporter:
    """Builds invoices from plain document mappings, YAML or JSON.

    Example:
        ```python
        importer = InvoiceImporter(ImportConfig(strict=False))
        result = importer.load_yaml("partner-invoice.yaml")
        if not result.is_clean:
            for message in result.messages:
                print(message)
        invoice = result.invoice
        ```
    """

    def __init__(self, config: ImportConfig | None = None) -> None:
        self.config = config or ImportConfig()

    def load(self, document: Mapping[str, Any]) -> ImportResult:
        """Import one document mapping.

        Returns:
            ImportResult with the invoice and, in lenient mode, any findings.

        Raises:
            DocumentFormatError: If the document lacks an invoice number or
                issue date, or its header cannot be read.
            InvoiceImportError: In strict mode, on the first inconsistency.
        """
        if not isinstance(document, Mapping):
            raise DocumentFormatError("Invoice document must be a mapping")

        session = _ImportSession(self.config.strict)
        invoice = self._load_header(document)

        self._load_dates_and_references(invoice, document, session)
        for role in ("seller", "buyer"):
            if document.get(role) is not None:
                party = session.attempt(role, lambda r=role: self._build_party(document[r]))
                if party is not None:
                    setattr(invoice, role, party)
        self._load_payment(invoice, document, session)
        self._load_attachments(invoice, document, session)
        self._load_lines(invoice, document, session)
        self._load_allowances_charges(invoice, document, session)
        self._load_amounts(invoice, document, session)

        declared = self._load_declared_totals(document, session)
        if declared is not None:
            invoice.set_imported_totals(declared)

        discrepancies = []
        if invoice.lines:
            invoice.calculate_totals()
            if declared is not None and not session.strict:
                tolerance = self.config.tolerance_for(invoice.currency)
                discrepancies = reconcile_totals(declared, invoice.totals, tolerance)
        else:
            session.fail("lines", "Document has no usable invoice lines")

        for discrepancy in discrepancies:
            logger.warning("Totals discrepancy on invoice %s: %s", invoice.invoice_number, discrepancy)

        anomalies = session.collector.anomalies
        status = ImportStatus.WARNING if anomalies or discrepancies else ImportStatus.CLEAN
        logger.info(
            "Imported invoice %s (%s mode): %s",
            invoice.invoice_number,
            "strict" if session.strict else "lenient",
            status.value,
        )
        return ImportResult(
            invoice=invoice,
            status=status,
            anomalies=anomalies,
            discrepancies=discrepancies,
            strict=session.strict,
        )

    def load_yaml(self, source: str | Path) -> ImportResult:
        """Import a YAML document given as a file path or string."""
        return self.load(self._ensure_mapping(load_yaml(source)))

    def load_json(self, source: str | Path) -> ImportResult:
        """Import a JSON document given as a file path or string."""
        return self.load(self._ensure_mapping(load_json(source)))

    @staticmethod
    def _ensure_mapping(data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise DocumentFormatError("Invoice document must be a mapping")
        return data

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _load_header(self, document: Mapping[str, Any]) -> Invoice:
        number = _text(document.get("invoice_number"))
        issue_date = document.get("issue_date")
        if not number or not issue_date:
            raise DocumentFormatError("Document must contain at least an invoice number and an issue date")
        try:
            return Invoice(
                invoice_number=number,
                issue_date=issue_date,
                type_code=_text(document.get("type_code")) or "380",
                currency=_text(document.get("currency")) or "EUR",
            )
        except ValidationError as e:
            raise DocumentFormatError(f"Invalid document header: {_describe(e)}", cause=e) from e

    def _load_dates_and_references(
        self,
        invoice: Invoice,
        document: Mapping[str, Any],
        session: _ImportSession,
    ) -> None:
        for key in ("due_date", "delivery_date", "note", "payment_terms"):
            value = document.get(key)
            if value is not None:
                session.attempt(key, lambda k=key, v=value: setattr(invoice, k, v))

        if document.get("period") is not None:
            period = session.attempt(
                "period",
                lambda: InvoicePeriod(**_mapping(document["period"], "period")),
            )
            if period is not None:
                invoice.period = period

        references = document.get("references") or {}
        if not isinstance(references, Mapping):
            session.fail("references", "References block must be a mapping")
            references = {}
        for key, value in references.items():
            if key not in REFERENCE_KEYS:
                session.fail(f"references.{key}", "Unknown reference type", value)
                continue
            setattr(invoice, f"{key}_reference", _text(value))

        if document.get("preceding_invoice") is not None:
            preceding = session.attempt(
                "preceding_invoice",
                lambda: self._build_preceding(document["preceding_invoice"]),
            )
            if preceding is not None:
                invoice.preceding_invoice = preceding

    @staticmethod
    def _build_preceding(data: Any) -> PrecedingInvoiceReference:
        data = _mapping(data, "preceding_invoice")
        return PrecedingInvoiceReference(number=_text(data.get("number")), issue_date=data.get("issue_date"))

    @staticmethod
    def _build_party(data: Any) -> Party:
        data = _mapping(data, "party")
        address = Address(**{k: _text(v) for k, v in _mapping(data.get("address"), "address").items()})
        electronic = data.get("electronic_address")
        if electronic is not None:
            electronic = _mapping(electronic, "electronic_address")
        return Party(
            name=data.get("name"),
            address=address,
            vat_id=data.get("vat_id"),
            company_id=_text(data.get("company_id")),
            email=data.get("email"),
            telephone=_text(data.get("telephone")),
            electronic_address=(
                ElectronicAddress(
                    scheme=_text(electronic.get("scheme")),
                    identifier=_text(electronic.get("identifier")),
                )
                if electronic
                else None
            ),
        )

    def _load_payment(self, invoice: Invoice, document: Mapping[str, Any], session: _ImportSession) -> None:
        data = document.get("payment")
        if data is None:
            return
        if not isinstance(data, Mapping):
            session.fail("payment", "Payment block must be a mapping")
            return

        fields = {
            "means_code": _text(data.get("means_code")) or "30",
            "iban": data.get("iban"),
            "bic": data.get("bic"),
            "reference": _text(data.get("reference")),
            "terms": data.get("terms"),
            "structured_reference": bool(data.get("structured_reference", False)),
        }
        try:
            payment = PaymentDetails(**fields)
        except ValidationError as e:
            if session.strict:
                session.fail("payment", e)
            payment = self._load_payment_leniently(fields, e, session)
        if payment is not None:
            invoice.set_payment(payment)

    @staticmethod
    def _load_payment_leniently(
        fields: dict[str, Any],
        error: ValidationError,
        session: _ImportSession,
    ) -> PaymentDetails | None:
        raw_bic = fields["bic"]
        raw_reference = fields["reference"]
        bad_bic = raw_bic is not None and not is_valid_bic(_text(raw_bic))
        bad_reference = (
            fields["structured_reference"]
            and raw_reference is not None
            and not is_valid_structured_reference(raw_reference)
        )

        checked = dict(fields)
        if bad_bic:
            checked["bic"] = None
        if bad_reference:
            checked["reference"] = None
            checked["structured_reference"] = False

        try:
            payment = PaymentDetails(**checked)
        except ValidationError as e:
            session.fail("payment", f"Payment block skipped: {_describe(e)}")
            return None

        if bad_bic:
            payment = payment.with_raw_bic(_text(raw_bic))
            session.fail("payment.bic", f"Invalid BIC {raw_bic!r} loaded as is", raw_bic)
        if bad_reference:
            payment = payment.with_raw_reference(raw_reference)
            session.fail(
                "payment.reference",
                f"Invalid structured reference {raw_reference!r} loaded as is",
                raw_reference,
            )
        if not bad_bic and not bad_reference:
            session.fail("payment", error)
        return payment

    def _load_attachments(self, invoice: Invoice, document: Mapping[str, Any], session: _ImportSession) -> None:
        for index, data in enumerate(session.items("attachments", document.get("attachments"))):
            field = f"attachments[{index}]"
            attachment = session.attempt(field, lambda d=data: self._build_attachment(d))
            if attachment is not None:
                invoice.attach_document(attachment)

    @staticmethod
    def _build_attachment(data: Any) -> AttachedDocument:
        data = _mapping(data, "attachment")
        return AttachedDocument.from_base64(
            filename=_text(data.get("filename")),
            encoded=data.get("content") or "",
            mime_type=data.get("mime_type", "application/pdf"),
            description=data.get("description"),
            document_type=_text(data.get("document_type")),
        )

    def _load_lines(self, invoice: Invoice, document: Mapping[str, Any], session: _ImportSession) -> None:
        for index, data in enumerate(session.items("lines", document.get("lines"))):
            field = f"lines[{index}]"
            if not isinstance(data, Mapping):
                session.fail(field, "Line must be a mapping")
                continue
            line = self._build_line(data, field, session)
            if line is None:
                continue
            for ac_index, ac_data in enumerate(
                session.items(f"{field}.allowances_charges", data.get("allowances_charges"))
            ):
                ac = session.attempt(
                    f"{field}.allowances_charges[{ac_index}]",
                    lambda d=ac_data: self._build_allowance_charge(d),
                )
                if ac is not None:
                    line.add_allowance_charge(ac)
            invoice.add_line(line)

    @staticmethod
    def _build_line(data: Mapping[str, Any], field: str, session: _ImportSession) -> InvoiceLine | None:
        raw_unit_code = _text(data.get("unit_code")) or "C62"
        fields = {
            "id": _text(data.get("id")),
            "name": _text(data.get("name")),
            "description": data.get("description"),
            "quantity": data.get("quantity"),
            "unit_price": data.get("unit_price"),
            "tax_category": _text(data.get("tax_category")) or "S",
            "tax_rate": data.get("tax_rate", 0),
        }
        try:
            return InvoiceLine(unit_code=raw_unit_code, **fields)
        except ValidationError as e:
            if session.strict:
                session.fail(field, e)
            unit_error = any(err["loc"] == ("unit_code",) for err in e.errors())
            if not unit_error:
                session.fail(field, f"Line skipped: {_describe(e)}")
                return None

        try:
            line = InvoiceLine(**fields).with_raw_unit_code(raw_unit_code)
        except ValidationError as e:
            session.fail(field, f"Line skipped: {_describe(e)}")
            return None
        session.fail(
            f"{field}.unit_code",
            f"Non-standard unit code {raw_unit_code!r} loaded as is",
            raw_unit_code,
        )
        return line

    @staticmethod
    def _build_allowance_charge(data: Any) -> AllowanceCharge:
        data = _mapping(data, "allowance_charge")
        return AllowanceCharge(
            charge_indicator=bool(data.get("charge", False)),
            amount=data.get("amount"),
            tax_category=_text(data.get("tax_category")) or "S",
            tax_rate=data.get("tax_rate", 0),
            base_amount=data.get("base_amount"),
            percentage=data.get("percentage"),
            reason_code=_text(data.get("reason_code")),
            reason=data.get("reason"),
        )

    def _load_allowances_charges(
        self,
        invoice: Invoice,
        document: Mapping[str, Any],
        session: _ImportSession,
    ) -> None:
        for index, data in enumerate(
            session.items("allowances_charges", document.get("allowances_charges"))
        ):
            ac = session.attempt(
                f"allowances_charges[{index}]",
                lambda d=data: self._build_allowance_charge(d),
            )
            if ac is not None:
                invoice.add_allowance_charge(ac)

    def _load_amounts(self, invoice: Invoice, document: Mapping[str, Any], session: _ImportSession) -> None:
        prepaid = document.get("prepaid_amount")
        if prepaid is not None:
            session.attempt("prepaid_amount", lambda: invoice.set_prepaid_amount(prepaid))

        reasons = document.get("exemption_reasons") or {}
        if not isinstance(reasons, Mapping):
            session.fail("exemption_reasons", "Exemption reasons must be a mapping")
            reasons = {}
        for category, code in reasons.items():
            session.attempt(
                f"exemption_reasons.{category}",
                lambda c=category, r=code: invoice.set_exemption_reason(r, c),
            )

    @staticmethod
    def _load_declared_totals(document: Mapping[str, Any], session: _ImportSession) -> DeclaredTotals | None:
        data = document.get("totals")
        if data is None:
            return None
        if not isinstance(data, Mapping):
            session.fail("totals", "Totals block must be a mapping")
            return None

        values: dict[str, Decimal] = {}
        for key in DeclaredTotals.model_fields:
            value = data.get(key, _UNSET)
            if value is _UNSET or value is None:
                continue
            try:
                values[key] = DeclaredTotals(**{key: value}).model_dump()[key]
            except ValidationError as e:
                session.fail(f"totals.{key}", e, value)
        return DeclaredTotals(**values)


def import_invoice(
    document: Mapping[str, Any],
    strict: bool = True,
    config: ImportConfig | None = None,
) -> Invoice:
    """Import a document and return the invoice, raising on warnings.

    Raises:
        InvoiceImportError: In strict mode, on the first inconsistency.
        InvoiceImportWarning: In lenient mode, when anomalies or totals
            discrepancies were found; the exception carries the invoice.
    """
    if config is None:
        config = ImportConfig(strict=strict)
    return InvoiceImporter(config).load(document).raise_for_warnings()
