"""Custom exceptions for einvoice."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from einvoice.importing.results import ImportAnomaly, TotalsDiscrepancy
    from einvoice.models.invoice import Invoice


class EInvoiceError(Exception):
    """Base exception for all einvoice errors."""

    pass


class NoLinesError(EInvoiceError):
    """Raised when totals are computed for an invoice without lines."""

    pass


class SnapshotAlreadySetError(EInvoiceError):
    """Raised when the declared-totals snapshot is written a second time."""

    pass


class InvoiceImportError(EInvoiceError):
    """Raised when a strict import meets an inconsistent field."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.cause = cause


class DocumentFormatError(InvoiceImportError):
    """Raised when a source document cannot be read at all."""

    pass


class InvoiceImportWarning(EInvoiceError):
    """Raised for a lenient import that finished with anomalies or discrepancies.

    The imported invoice is fully built and stays usable through ``invoice``.
    """

    def __init__(
        self,
        invoice: Invoice,
        anomalies: list[ImportAnomaly] | None = None,
        discrepancies: list[TotalsDiscrepancy] | None = None,
    ) -> None:
        self.invoice = invoice
        self.anomalies = list(anomalies or [])
        self.discrepancies = list(discrepancies or [])

        parts: list[str] = []
        if self.discrepancies:
            parts.append(f"{len(self.discrepancies)} totals discrepancy(ies)")
        if self.anomalies:
            parts.append(f"{len(self.anomalies)} field anomaly(ies)")
        super().__init__(f"Lenient import finished with {', '.join(parts)}.")

    @property
    def messages(self) -> list[str]:
        """All findings as text, anomalies first."""
        return [str(a) for a in self.anomalies] + [str(d) for d in self.discrepancies]
