"""Import of externally authored invoices and totals reconciliation."""

from einvoice.importing.comparators import ComparisonResult, MoneyComparator
from einvoice.importing.document import (
    dump_json,
    dump_yaml,
    invoice_to_document,
    load_json,
    load_yaml,
)
from einvoice.importing.importer import InvoiceImporter, import_invoice
from einvoice.importing.reconciliation import RECONCILED_FIELDS, reconcile_totals
from einvoice.importing.results import (
    AnomalyCollector,
    ImportAnomaly,
    ImportResult,
    ImportStatus,
    TotalsDiscrepancy,
)

__all__ = [
    "AnomalyCollector",
    "ComparisonResult",
    "ImportAnomaly",
    "ImportResult",
    "ImportStatus",
    "InvoiceImporter",
    "MoneyComparator",
    "RECONCILED_FIELDS",
    "TotalsDiscrepancy",
    "dump_json",
    "dump_yaml",
    "import_invoice",
    "invoice_to_document",
    "load_json",
    "load_yaml",
    "reconcile_totals",
]
