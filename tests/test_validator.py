"""Tests for the business-rule validator and the Belgian rules."""

import pytest

from einvoice import (
    Address,
    AllowanceCharge,
    AttachedDocument,
    ElectronicAddress,
    Invoice,
    InvoiceLine,
    InvoiceValidator,
    Party,
    PaymentDetails,
)
from einvoice.validation import BELGIAN_RULES, CORE_RULES
from einvoice.validation.belgium import (
    check_attachment_count,
    check_belgian_rates,
    check_belgian_vat_number,
    check_buyer_reference,
    check_electronic_addresses,
    check_exemption_reasons,
    check_payment_due,
)
from einvoice.validation.rules import check_seller


def make_party(name, vat_id="BE0477472701", country="BE", electronic=True):
    return Party(
        name=name,
        address=Address(street="Rue de la Loi 16", city="Bruxelles", postal_code="1000", country=country),
        vat_id=vat_id,
        electronic_address=ElectronicAddress.from_vat(vat_id) if electronic else None,
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


@pytest.fixture
def invoice():
    """A conformant Belgian invoice with computed totals."""
    invoice = Invoice(invoice_number="INV-2024-001", issue_date="2024-03-01", due_date="2024-03-31")
    invoice.set_seller(make_party("Acme SPRL"))
    invoice.set_buyer(make_party("Client NV", vat_id="BE0403170701"))
    invoice.set_references(buyer="REF-9")
    invoice.set_payment(PaymentDetails.with_structured_reference("123456789002", iban="BE68539007547034"))
    invoice.add_line(make_line(net="500.00"))
    invoice.attach_document(AttachedDocument(filename="a.pdf", content=b"%PDF-a"))
    invoice.attach_document(AttachedDocument(filename="b.pdf", content=b"%PDF-b"))
    invoice.calculate_totals()
    return invoice


class TestCoreRules:
    """Tests for the core rule set."""

    def test_conformant_invoice(self, invoice):
        """Test that a complete invoice has no violations."""
        assert InvoiceValidator().validate(invoice) == []
        assert InvoiceValidator().is_valid(invoice)

    def test_missing_parties_and_lines(self):
        """Test an invoice with only its header."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")

        errors = InvoiceValidator().validate(invoice)

        assert errors == [
            "BR-06: Seller is required",
            "BR-08: Buyer is required",
            "BR-16: At least one invoice line is required",
        ]

    def test_totals_never_calculated(self, invoice):
        """Test that uncalculated totals are reported."""
        fresh = Invoice(invoice_number="INV-2", issue_date="2024-03-01")
        fresh.set_seller(invoice.seller).set_buyer(invoice.buyer).add_line(make_line())

        assert InvoiceValidator().validate(fresh) == [
            "BR-CO-13: Invoice totals have not been calculated"
        ]

    def test_zero_tax_exclusive_with_lines(self, invoice):
        """Test that a zero net total with lines counts as not calculated."""
        free = Invoice(invoice_number="INV-3", issue_date="2024-03-01")
        free.set_seller(invoice.seller).set_buyer(invoice.buyer).add_line(make_line(net="0"))
        free.calculate_totals()

        assert "BR-CO-13: Invoice totals have not been calculated" in InvoiceValidator().validate(free)

    def test_nested_errors_are_namespaced(self, invoice):
        """Test that sub-errors carry their owner's prefix."""
        invoice.add_line(make_line("2").with_raw_unit_code("BOX"))
        invoice.add_allowance_charge(AllowanceCharge.allowance("10", tax_rate="0"))
        invoice.set_payment(PaymentDetails(iban="BE68539007547034").with_raw_bic("XX"))
        invoice.calculate_totals()

        errors = InvoiceValidator().validate(invoice)

        assert "Line 2: Invalid unit code 'BOX'" in errors
        assert "Allowance 1: Tax rate must be greater than 0 for the standard category (S)" in errors
        assert "Payment: Invalid BIC 'XX'" in errors

    def test_party_errors_are_namespaced(self, invoice):
        """Test the seller prefix."""
        invoice.set_seller(
            make_party("Acme SPRL").model_copy(update={"email": "not-an-email"})
        )
        assert InvoiceValidator().validate(invoice) == ["Seller: Invalid email address"]

    def test_breakdown_exemption_reason(self, invoice):
        """Test that exempt breakdown entries need a reason."""
        invoice.add_line(make_line("2", category="E", rate="0"))
        invoice.calculate_totals()

        assert InvoiceValidator().validate(invoice) == [
            "Tax E 0%: Exemption reason is required for category E"
        ]

        invoice.set_exemption_reason("VATEX-EU-132", "E")
        invoice.calculate_totals()
        assert InvoiceValidator().validate(invoice) == []

    def test_exhaustive(self):
        """Test that every rule runs without short-circuit."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")
        invoice.add_allowance_charge(AllowanceCharge.charge("5", tax_category="Z", tax_rate="21"))
        invoice.attach_document(
            AttachedDocument(filename="a.pdf", content=b"x").model_copy(update={"content": b""})
        )

        errors = InvoiceValidator().validate(invoice)

        assert "BR-06: Seller is required" in errors
        assert "Charge 1: Tax rate must be 0 for category Z" in errors
        assert "Attachment 1: Content is empty" in errors

    def test_core_rule_as_extra_runs_once(self):
        """Test that a core rule passed again is not run twice."""
        invoice = Invoice(invoice_number="INV-1", issue_date="2024-03-01")
        validator = InvoiceValidator(extra_rules=[check_seller, *BELGIAN_RULES])

        errors = validator.validate(invoice)

        assert validator.rules == (*CORE_RULES, *BELGIAN_RULES)
        assert errors.count("BR-06: Seller is required") == 1

    def test_rules_property(self):
        """Test that extra rules run after the core set."""
        def extra(invoice):
            return []

        validator = InvoiceValidator(extra_rules=[extra])
        assert validator.rules == (*CORE_RULES, extra)


class TestValidatorPurity:
    """Tests for referential transparency."""

    @pytest.mark.parametrize("rules", [(), BELGIAN_RULES])
    def test_same_result_twice(self, invoice, rules):
        """Test that validation neither mutates nor depends on call count."""
        invoice.add_line(make_line("2", rate="19").with_raw_unit_code("BOX"))
        before = invoice.model_dump()
        validator = InvoiceValidator(extra_rules=rules)

        first = validator.validate(invoice)
        second = validator.validate(invoice)

        assert first == second
        assert first
        assert invoice.model_dump() == before


class TestExtraRules:
    """Tests for caller-supplied rules."""

    def test_custom_rule(self, invoice):
        """Test composing a custom rule."""
        def require_contract(invoice):
            return [] if invoice.contract_reference else ["Contract reference is required"]

        assert invoice.validate_rules(extra_rules=[require_contract]) == [
            "Contract reference is required"
        ]
        invoice.set_references(contract="C-1")
        assert invoice.validate_rules(extra_rules=[require_contract]) == []

    def test_profile_by_name(self, invoice):
        """Test validating with a built-in profile name."""
        assert invoice.validate_rules(profile="ubl_be") == []
        assert invoice.validate_rules(profile="en16931") == []

    def test_unknown_profile(self, invoice):
        """Test that an unknown profile name raises."""
        with pytest.raises(KeyError):
            invoice.validate_rules(profile="xrechnung")


class TestBelgianRules:
    """Tests for the UBL.BE rules."""

    def test_conformant(self, invoice):
        """Test that the fixture passes every Belgian rule."""
        assert InvoiceValidator(extra_rules=BELGIAN_RULES).validate(invoice) == []

    def test_payment_due(self, invoice):
        """Test the due date or terms requirement."""
        invoice.due_date = None
        assert check_payment_due(invoice) == [
            "BR-CO-25: A due date or payment terms are required when an amount is payable"
        ]
        invoice.set_payment_terms("30 days net")
        assert check_payment_due(invoice) == []

    def test_nothing_payable(self, invoice):
        """Test that a fully prepaid invoice needs no due date."""
        invoice.due_date = None
        invoice.set_prepaid_amount("605.00")
        invoice.calculate_totals()
        assert check_payment_due(invoice) == []

    def test_buyer_reference(self, invoice):
        """Test the buyer or order reference requirement."""
        invoice.buyer_reference = None
        assert check_buyer_reference(invoice) == [
            "UBL-BE: A buyer reference or purchase order reference is required"
        ]
        invoice.set_references(purchase_order="PO-1")
        assert check_buyer_reference(invoice) == []

    def test_electronic_addresses(self, invoice):
        """Test that both parties need an electronic address."""
        invoice.set_buyer(make_party("Client NV", vat_id="BE0403170701", electronic=False))
        assert check_electronic_addresses(invoice) == ["UBL-BE: Buyer electronic address is required"]

    def test_attachment_count(self, invoice):
        """Test the minimum number of attachments."""
        invoice.attachments = invoice.attachments[:1]
        assert check_attachment_count(invoice) == [
            "UBL-BE-01: At least 2 attached documents are required"
        ]

    def test_belgian_rates(self, invoice):
        """Test that Belgian sellers use Belgian standard rates."""
        invoice.add_line(make_line("2", rate="19"))
        assert check_belgian_rates(invoice) == [
            "Line 2: Tax rate 19% is not a Belgian rate (21%, 12%, 6%, 0%)"
        ]

    def test_rates_of_foreign_seller(self, invoice):
        """Test that the rate rule only applies to Belgian sellers."""
        invoice.set_seller(make_party("Acme GmbH", vat_id="DE123456789", country="DE"))
        invoice.add_line(make_line("2", rate="19"))

        assert check_belgian_rates(invoice) == []
        assert check_belgian_vat_number(invoice) == []

    def test_belgian_vat_number(self, invoice):
        """Test the modulo 97 check of the seller VAT number."""
        invoice.set_seller(make_party("Acme SPRL", vat_id="BE0477472702"))
        assert len(check_belgian_vat_number(invoice)) == 1

    def test_exemption_reasons(self, invoice):
        """Test the exemption reason requirement for exempt categories."""
        invoice.add_line(make_line("2", category="AE", rate="0"))
        invoice.calculate_totals()
        assert check_exemption_reasons(invoice) == [
            "UBL-BE: Exemption reason is required for category AE"
        ]

        invoice.set_exemption_reason("VATEX-EU-AE", "AE")
        assert check_exemption_reasons(invoice) == []
