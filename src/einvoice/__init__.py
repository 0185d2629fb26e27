"""
einvoice: Electronic invoice computation, validation and import reconciliation.
"""

from einvoice.core.config import ImportConfig
from einvoice.core.constants import InvoiceTypeCode, TaxCategory
from einvoice.core.exceptions import (
    DocumentFormatError,
    EInvoiceError,
    InvoiceImportError,
    InvoiceImportWarning,
    NoLinesError,
    SnapshotAlreadySetError,
)

# Models must load before the totals engine they feed
from einvoice.models import (
    Address,
    AllowanceCharge,
    AttachedDocument,
    DeclaredTotals,
    DocumentTotals,
    ElectronicAddress,
    Invoice,
    InvoiceLine,
    InvoicePeriod,
    Party,
    PaymentDetails,
    PrecedingInvoiceReference,
    TaxBreakdownEntry,
)
from einvoice.totals import TotalsEngine, compute_totals

# Validation
from einvoice.validation import (
    BELGIAN_RULES,
    CORE_RULES,
    BuiltinProfiles,
    InvoiceValidator,
    ProfileRegistry,
    ValidationProfile,
    register_rule,
)

# Import and reconciliation
from einvoice.importing import (
    ImportAnomaly,
    ImportResult,
    ImportStatus,
    InvoiceImporter,
    TotalsDiscrepancy,
    dump_json,
    dump_yaml,
    import_invoice,
    invoice_to_document,
    load_json,
    load_yaml,
    reconcile_totals,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "ImportConfig",
    "InvoiceTypeCode",
    "TaxCategory",
    "EInvoiceError",
    "NoLinesError",
    "SnapshotAlreadySetError",
    "InvoiceImportError",
    "DocumentFormatError",
    "InvoiceImportWarning",
    # Models
    "Address",
    "AllowanceCharge",
    "AttachedDocument",
    "DeclaredTotals",
    "DocumentTotals",
    "ElectronicAddress",
    "Invoice",
    "InvoiceLine",
    "InvoicePeriod",
    "Party",
    "PaymentDetails",
    "PrecedingInvoiceReference",
    "TaxBreakdownEntry",
    # Totals
    "TotalsEngine",
    "compute_totals",
    # Validation
    "BELGIAN_RULES",
    "CORE_RULES",
    "BuiltinProfiles",
    "InvoiceValidator",
    "ProfileRegistry",
    "ValidationProfile",
    "register_rule",
    # Import
    "ImportAnomaly",
    "ImportResult",
    "ImportStatus",
    "InvoiceImporter",
    "TotalsDiscrepancy",
    "dump_json",
    "dump_yaml",
    "import_invoice",
    "invoice_to_document",
    "load_json",
    "load_yaml",
    "reconcile_totals",
]
