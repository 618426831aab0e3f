"""
Invoice renderer

InvoiceDocument is an immutable snapshot built from stored invoice rows
only; render_invoice_html is a pure function of it. The issue date comes
from the invoice's created_at, so rendering the same invoice twice yields
the same bytes and a lost document can be regenerated at any time.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined

from hotelos.config import Settings, settings as default_settings
from hotelos.models.ontology import Invoice, PaymentMethod


@dataclass(frozen=True)
class IssuerProfile:
    """Who issues the invoice and how taxes are labelled"""
    name: str
    tax_id: str
    tax_primary_label: str = "CGST"
    tax_secondary_label: str = "SGST"
    currency_symbol: str = "₹"

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "IssuerProfile":
        config = config or default_settings
        return cls(
            name=config.HOTEL_NAME,
            tax_id=config.HOTEL_TAX_ID,
            tax_primary_label=config.TAX_PRIMARY_LABEL,
            tax_secondary_label=config.TAX_SECONDARY_LABEL,
            currency_symbol=config.CURRENCY_SYMBOL,
        )


@dataclass(frozen=True)
class InvoiceLine:
    position: int
    room_number: str
    description: str
    amount: Decimal


@dataclass(frozen=True)
class InvoiceDocument:
    issuer: IssuerProfile
    invoice_number: str
    issue_date: date
    guest_name: str
    company_name: Optional[str]
    recipient_tax_id: Optional[str]
    payment_mode: str
    lines: Tuple[InvoiceLine, ...]
    gross_amount: Decimal
    prior_payments: Decimal
    base_amount: Decimal
    tax_rate: Decimal
    tax_primary_amount: Decimal
    tax_secondary_amount: Decimal
    total_amount: Decimal

    @classmethod
    def from_invoice(cls, invoice: Invoice, issuer: IssuerProfile) -> "InvoiceDocument":
        return cls(
            issuer=issuer,
            invoice_number=invoice.invoice_number,
            issue_date=invoice.created_at.date(),
            guest_name=invoice.guest.full_name,
            company_name=invoice.recipient_company_name,
            recipient_tax_id=invoice.recipient_tax_id,
            payment_mode=PaymentMethod(invoice.payment_mode).value,
            lines=tuple(
                InvoiceLine(
                    position=item.position,
                    room_number=item.room_number,
                    description=item.description,
                    amount=Decimal(item.amount),
                )
                for item in invoice.items
            ),
            gross_amount=Decimal(invoice.gross_amount),
            prior_payments=Decimal(invoice.prior_payments),
            base_amount=Decimal(invoice.base_amount),
            tax_rate=Decimal(invoice.tax_rate),
            tax_primary_amount=Decimal(invoice.tax_primary_amount),
            tax_secondary_amount=Decimal(invoice.tax_secondary_amount),
            total_amount=Decimal(invoice.total_amount),
        )


def _money(amount: Decimal, issuer: IssuerProfile) -> str:
    return f"{issuer.currency_symbol}{amount:,.2f}"


def _rate(rate: Decimal) -> str:
    # 2.50 -> 2.5, 9.00 -> 9
    text = f"{rate:f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def _payment_mode(mode: str) -> str:
    return mode.replace("_", " ").title()


_env = Environment(
    loader=PackageLoader("hotelos", "templates"),
    autoescape=True,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    trim_blocks=True,
)
_env.filters.update(money=_money, rate=_rate, payment_mode=_payment_mode)


def render_invoice_html(document: InvoiceDocument) -> str:
    """Render a complete, self-contained HTML page"""
    return _env.get_template("invoice.html").render(document=document, issuer=document.issuer)
