"""Invoice data model."""

from einvoice.models.allowance import AllowanceCharge
from einvoice.models.attachment import AttachedDocument
from einvoice.models.invoice import Invoice, InvoicePeriod, PrecedingInvoiceReference
from einvoice.models.line import InvoiceLine
from einvoice.models.party import Address, ElectronicAddress, Party
from einvoice.models.payment import PaymentDetails
from einvoice.models.totals import DeclaredTotals, DocumentTotals, TaxBreakdownEntry

__all__ = [
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
]
