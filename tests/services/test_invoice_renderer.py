"""
Tests for hotelos/services/invoice_renderer.py
"""
import pytest
from datetime import date
from decimal import Decimal

from hotelos.services.invoice_renderer import (
    IssuerProfile, InvoiceDocument, InvoiceLine, render_invoice_html
)


@pytest.fixture
def issuer():
    return IssuerProfile(name="Seaside Inn", tax_id="27AFSFS6576C1ZD", currency_symbol="₹")


def _document(issuer, **overrides):
    values = dict(
        issuer=issuer,
        invoice_number="INV-2024-00007",
        issue_date=date(2024, 6, 10),
        guest_name="Asha Rao",
        company_name="Acme Travel",
        recipient_tax_id="29ABCDE1234F1Z5",
        payment_mode="credit_card",
        lines=(
            InvoiceLine(1, "101", "Room 101 (standard), 2 nights 2024-06-08 to 2024-06-10", Decimal("200.00")),
            InvoiceLine(2, "101", "Dinner (food)", Decimal("25.00")),
        ),
        gross_amount=Decimal("225.00"),
        prior_payments=Decimal("60.00"),
        base_amount=Decimal("165.00"),
        tax_rate=Decimal("2.50"),
        tax_primary_amount=Decimal("4.13"),
        tax_secondary_amount=Decimal("4.13"),
        total_amount=Decimal("173.26"),
    )
    values.update(overrides)
    return InvoiceDocument(**values)


class TestRenderInvoiceHtml:

    def test_contains_invoice_fields(self, issuer):
        html = render_invoice_html(_document(issuer))

        assert html.startswith("<!DOCTYPE html>")
        assert "Seaside Inn" in html
        assert "Tax Invoice" in html
        assert "INV-2024-00007" in html
        assert "10 Jun 2024" in html
        assert "Acme Travel" in html
        assert "Tax ID: 29ABCDE1234F1Z5" in html
        assert "Credit Card" in html
        assert "Dinner (food)" in html
        assert "CGST (2.5%):" in html
        assert "SGST (2.5%):" in html
        assert "₹173.26" in html
        assert "-₹60.00" in html

    def test_lines_in_position_order(self, issuer):
        html = render_invoice_html(_document(issuer))
        assert html.index("Room 101 (standard)") < html.index("Dinner (food)")

    def test_deterministic(self, issuer):
        assert render_invoice_html(_document(issuer)) == render_invoice_html(_document(issuer))

    def test_prior_payments_row_omitted_when_zero(self, issuer):
        html = render_invoice_html(_document(issuer, prior_payments=Decimal("0.00")))
        assert "Less Prior Payments" not in html

    def test_optional_recipient_fields(self, issuer):
        html = render_invoice_html(_document(issuer, company_name=None, recipient_tax_id=None))
        assert "Acme Travel" not in html
        assert "29ABCDE1234F1Z5" not in html

    def test_escapes_text(self, issuer):
        html = render_invoice_html(_document(
            issuer,
            guest_name="<script>alert(1)</script>",
            lines=(InvoiceLine(1, "101", "Wine & <cheese>", Decimal("10.00")),),
        ))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Wine &amp; &lt;cheese&gt;" in html

    def test_thousands_separator(self, issuer):
        html = render_invoice_html(_document(issuer, total_amount=Decimal("12345.60")))
        assert "₹12,345.60" in html

    def test_rendered_from_packaged_template(self, issuer):
        from hotelos.services.invoice_renderer import _env

        assert "invoice.html" in _env.list_templates()
        assert _env.autoescape is True

        html = render_invoice_html(_document(issuer))
        assert html.endswith("</html>\n")
        assert "{{" not in html and "{%" not in html
        assert "<p>Tax ID: 29ABCDE1234F1Z5</p>" in html


class TestInvoiceDocument:

    def test_from_invoice(self, db_session, sample_room, sample_guest, make_booking, operator, published, delivery):
        from hotelos.models.ontology import BookingStatus
        from hotelos.services.checkout_service import CheckoutService

        booking = make_booking(sample_guest, sample_room, status=BookingStatus.CHECKED_IN)
        result = CheckoutService(db_session, published, delivery_service=delivery).finalize_checkout(
            [booking.id], operator_id=operator.id
        )
        invoice = result.invoice

        document = InvoiceDocument.from_invoice(invoice, IssuerProfile.from_settings())
        assert document.invoice_number == invoice.invoice_number
        assert document.issue_date == invoice.created_at.date()
        assert document.guest_name == sample_guest.full_name
        assert [line.amount for line in document.lines] == [Decimal("200.00")]
        assert render_invoice_html(document) == result.document_html
