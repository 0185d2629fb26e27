"""Tests for the invoice root aggregate."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from einvoice import (
    Address,
    AttachedDocument,
    DeclaredTotals,
    ElectronicAddress,
    Invoice,
    InvoiceLine,
    InvoiceTypeCode,
    NoLinesError,
    Party,
    PaymentDetails,
    SnapshotAlreadySetError,
    TaxCategory,
)


def make_party(name="Acme SPRL", vat_id="BE0477472701", country="BE"):
    return Party(
        name=name,
        address=Address(street="Rue de la Loi 16", city="Bruxelles", postal_code="1000", country=country),
        vat_id=vat_id,
        electronic_address=ElectronicAddress.from_vat(vat_id),
    )


def make_line(line_id="1", net="100.00", rate="21", category="S"):
    return InvoiceLine(
        id=line_id,
        name=f"Item {line_id}",
        quantity=1,
        unit_price=net,
        tax_category=category,
        tax_rate=rate,
    )


class TestInvoiceCreation:
    """Tests for Invoice construction."""

    def test_minimal_invoice(self):
        """Test creating an invoice from its mandatory fields."""
        invoice = Invoice(invoice_number="INV-2024-001", issue_date="2024-03-01")

        assert invoice.issue_date == date(2024, 3, 1)
        assert invoice.type_code == InvoiceTypeCode.COMMERCIAL_INVOICE
        assert invoice.currency == "EUR"
        assert invoice.lines == []
        assert invoice.totals is None
        assert invoice.declared_totals is None
        assert invoice.prepaid_amount == Decimal("0.00")

    def test_credit_note(self):
        """Test the type code enumeration."""
        invoice = Invoice(invoice_number="CN-1", issue_date="2024-03-01", type_code="381", currency="USD")
        assert invoice.type_code == InvoiceTypeCode.CREDIT_NOTE

    def test_unknown_type_code(self):
        """Test that the type code is enumerated."""
        with pytest.raises(ValidationError):
            Invoice(invoice_number="INV-1", issue_date="2024-03-01", type_code="999")

    def test_unknown_currency(self):
        """Test that the currency is enumerated."""
        with pytest.raises(ValidationError, match="Unknown currency code"):
            Invoice(invoice_number="INV-1", issue_date="2024-03-01", currency="XYZ")

    def test_reserved_characters_in_number(self):
        """Test that the invoice number rejects XML-hostile characters."""
        with pytest.raises(ValidationError):
            Invoice(invoice_number="INV<1>", issue_date="2024-03-01")

    def test_due_date_before_issue_date(self):
        """Test the due date invariant at construction."""
        with pytest.raises(ValidationError, match="Due date cannot be before"):
            Invoice(invoice_number="INV-1", issue_date="2024-03-01", due_date="2024-02-01")

    def test_due_date_checked_on_assignment(self):
        """Test that a rejected due date leaves the invoice unchanged."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-10", due_date="2024-03-31")
        with pytest.raises(ValidationError, match="Due date cannot be before"):
            invoice.due_date = "2024-03-01"

        assert invoice.due_date == date(2024, 3, 31)
        invoice.note = "Later assignments still validate"
        invoice.due_date = "2024-04-30"
        assert invoice.due_date == date(2024, 4, 30)

    def test_issue_date_checked_on_assignment(self):
        """Test that the issue date cannot move past the due date."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01", due_date="2024-03-31")
        with pytest.raises(ValidationError, match="Issue date cannot be after"):
            invoice.issue_date = "2024-04-15"

        assert invoice.issue_date == date(2024, 3, 1)


class TestInvoiceMutators:
    """Tests for the additive mutators."""

    @pytest.fixture
    def invoice(self):
        """Create an empty invoice."""
        return Invoice(invoice_number="INV-1", issue_date="2024-03-01")

    def test_chaining(self, invoice):
        """Test that mutators return the invoice."""
        result = (
            invoice.set_seller(make_party())
            .set_buyer(make_party("Client NV"))
            .add_line(make_line())
            .add_charge("10")
            .add_allowance("5")
        )

        assert result is invoice
        assert invoice.seller.name == "Acme SPRL"
        assert invoice.buyer.name == "Client NV"
        assert len(invoice.lines) == 1
        assert [ac.is_charge for ac in invoice.allowances_charges] == [True, False]

    def test_payment_terms_propagate_to_payment(self, invoice):
        """Test that terms set later reach existing payment details."""
        invoice.set_payment(PaymentDetails(iban="BE68539007547034"))
        invoice.set_payment_terms("30 days net")

        assert invoice.payment_terms == "30 days net"
        assert invoice.payment.terms == "30 days net"

    def test_payment_inherits_terms(self, invoice):
        """Test that payment details set later inherit the invoice terms."""
        invoice.set_payment_terms("Due on receipt")
        invoice.set_payment(PaymentDetails(iban="BE68539007547034"))

        assert invoice.payment.terms == "Due on receipt"

    def test_period(self, invoice):
        """Test the invoicing period."""
        invoice.set_period("2024-02-01", "2024-02-29")
        assert invoice.period.end == date(2024, 2, 29)

        with pytest.raises(ValidationError, match="Period end date"):
            invoice.set_period("2024-02-29", "2024-02-01")

    def test_references(self, invoice):
        """Test setting references by short name."""
        invoice.set_references(buyer="REF-9", purchase_order="PO-77", contract="C-3")

        assert invoice.buyer_reference == "REF-9"
        assert invoice.purchase_order_reference == "PO-77"
        assert invoice.contract_reference == "C-3"

    def test_unknown_reference(self, invoice):
        """Test that unknown reference names are rejected."""
        with pytest.raises(ValueError, match="Unknown reference"):
            invoice.set_references(shipping="X")

    def test_preceding_invoice(self, invoice):
        """Test the preceding invoice reference."""
        invoice.set_preceding_invoice("INV-0", "2024-01-15")

        assert invoice.preceding_invoice.number == "INV-0"
        assert invoice.preceding_invoice.issue_date == date(2024, 1, 15)

    def test_attach_document(self, invoice):
        """Test attaching documents."""
        invoice.attach_document(AttachedDocument(filename="a.pdf", content=b"%PDF"))
        assert len(invoice.attachments) == 1

    def test_negative_prepaid_amount(self, invoice):
        """Test that the prepaid amount cannot be negative."""
        with pytest.raises(ValidationError):
            invoice.set_prepaid_amount("-1")

    def test_exemption_reason_for_one_category(self, invoice):
        """Test recording an exemption reason for one category."""
        invoice.set_exemption_reason("VATEX-EU-IC", "K")
        assert invoice.exemption_reasons == {TaxCategory.INTRA_COMMUNITY: "VATEX-EU-IC"}

    def test_exemption_reason_for_all_categories(self, invoice):
        """Test recording an exemption reason for every exempt category."""
        invoice.set_exemption_reason("VATEX-EU-O")
        assert set(invoice.exemption_reasons) == {
            TaxCategory.EXEMPT,
            TaxCategory.REVERSE_CHARGE,
            TaxCategory.INTRA_COMMUNITY,
            TaxCategory.EXPORT,
            TaxCategory.OUTSIDE_SCOPE,
        }

    def test_exemption_reason_errors(self, invoice):
        """Test unknown codes and categories without exemption."""
        with pytest.raises(ValueError, match="Unknown tax exemption reason"):
            invoice.set_exemption_reason("VATEX-XX")
        with pytest.raises(ValueError, match="does not take an exemption reason"):
            invoice.set_exemption_reason("VATEX-EU-132", "S")


class TestInvoiceTotals:
    """Tests for totals on the invoice."""

    @pytest.fixture
    def invoice(self):
        """Create an invoice with one 1000.00 line at 21%."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")
        invoice.add_line(make_line(net="1000.00"))
        return invoice

    def test_totals_unset_until_calculated(self, invoice):
        """Test the explicit unset state."""
        assert invoice.totals is None

        totals = invoice.calculate_totals()

        assert invoice.totals is totals
        assert totals.tax_inclusive_amount == Decimal("1210.00")

    def test_totals_not_auto_invalidated(self, invoice):
        """Test that mutation does not silently refresh totals."""
        invoice.calculate_totals()
        invoice.add_line(make_line("2", net="500.00"))

        assert invoice.totals.tax_exclusive_amount == Decimal("1000.00")
        assert invoice.calculate_totals().tax_exclusive_amount == Decimal("1500.00")

    def test_prepaid(self, invoice):
        """Test payable with a prepaid amount."""
        invoice.set_prepaid_amount("500.00")
        assert invoice.calculate_totals().payable_amount == Decimal("710.00")

    def test_no_lines(self):
        """Test that totals need lines."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")
        with pytest.raises(NoLinesError):
            invoice.calculate_totals()
        assert invoice.totals is None


class TestImportedTotals:
    """Tests for the write-once declared totals snapshot."""

    @pytest.fixture
    def invoice(self):
        """Create an invoice with one 500.00 line at 21%."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")
        invoice.add_line(make_line(net="500.00"))
        return invoice

    def test_write_once(self, invoice):
        """Test that the snapshot cannot be replaced."""
        invoice.set_imported_totals(DeclaredTotals(tax_inclusive="605.00"))

        with pytest.raises(SnapshotAlreadySetError):
            invoice.set_imported_totals(DeclaredTotals(tax_inclusive="600.00"))
        assert invoice.declared_totals.tax_inclusive == Decimal("605.00")

    def test_snapshot_is_frozen(self, invoice):
        """Test that the snapshot cannot be mutated."""
        invoice.set_imported_totals(DeclaredTotals(tax_inclusive="605.00"))
        with pytest.raises(ValidationError):
            invoice.declared_totals.tax_inclusive = Decimal("1")

    def test_check_matching(self, invoice):
        """Test that matching declared totals give no discrepancy."""
        invoice.set_imported_totals(
            DeclaredTotals(tax_exclusive="500.00", tax_inclusive="605.02", tax_amount="105.00")
        )
        assert invoice.check_imported_totals() == []
        assert invoice.totals is not None

    def test_check_discrepancy(self, invoice):
        """Test a gap above tolerance."""
        invoice.set_imported_totals(DeclaredTotals(tax_inclusive="605.05"))

        (discrepancy,) = invoice.check_imported_totals()

        assert discrepancy.field == "tax_inclusive"
        assert discrepancy.difference == Decimal("0.05")
        assert invoice.check_imported_totals(tolerance="0.05") == []

    def test_check_without_snapshot(self, invoice):
        """Test that there is nothing to compare without a snapshot."""
        assert invoice.check_imported_totals() == []


class TestInvoiceSerialization:
    """Tests for to_dict."""

    def test_to_dict(self):
        """Test the JSON-friendly view."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")
        invoice.add_line(make_line(net="500.00"))
        invoice.attach_document(AttachedDocument(filename="a.txt", content=b"hi", mime_type="text/plain"))
        invoice.calculate_totals()
        invoice.set_imported_totals(DeclaredTotals(tax_inclusive="605.00"))

        data = invoice.to_dict()

        assert data["invoice_number"] == "INV-1"
        assert data["issue_date"] == "2024-03-01"
        assert data["lines"][0]["unit_price"] == "500.00"
        assert data["attachments"][0]["content"] == "aGk="
        assert data["totals"]["tax_inclusive_amount"] == "605.00"
        assert data["declared_totals"] == {"tax_inclusive": "605.00"}

    def test_to_dict_without_totals(self):
        """Test that unset totals are explicit."""
        data = Invoice(invoice_number="INV-1", issue_date="2024-03-01").to_dict()
        assert data["totals"] is None
        assert "declared_totals" not in data
