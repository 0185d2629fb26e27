"""Core constants, configuration and exceptions."""

from einvoice.core.config import DEFAULT_TOLERANCE, ImportConfig
from einvoice.core.constants import InvoiceTypeCode, TaxCategory
from einvoice.core.exceptions import (
    DocumentFormatError,
    EInvoiceError,
    InvoiceImportError,
    InvoiceImportWarning,
    NoLinesError,
    SnapshotAlreadySetError,
)

__all__ = [
    "DEFAULT_TOLERANCE",
    "ImportConfig",
    "InvoiceTypeCode",
    "TaxCategory",
    "EInvoiceError",
    "NoLinesError",
    "SnapshotAlreadySetError",
    "InvoiceImportError",
    "DocumentFormatError",
    "InvoiceImportWarning",
]
